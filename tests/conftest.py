"""Dobles de prueba compartidos: backend LXD en memoria y proveedor de tokens."""

from __future__ import annotations

import pytest

from lxd_ghar.domain.contracts import TokenProvider
from lxd_ghar.domain.entities import ExecResult, InstanceInfo
from lxd_ghar.infrastructure import container_manager as container_manager_module
from lxd_ghar.infrastructure.container_manager import ContainerManager
from lxd_ghar.infrastructure.lxd_backends import InstanceBackend
from lxd_ghar.shared.constants import READINESS_PROBE, READINESS_SENTINEL
from lxd_ghar.shared.infrastructure_exceptions import LxdError


class FakeBackend(InstanceBackend):
    """Backend en memoria que registra cada llamada en orden."""

    name = "fake"

    def __init__(self, instances=None, probe_outputs=None, exec_results=None):
        self.instances = {info.name: info for info in (instances or [])}
        self.probe_outputs = list(probe_outputs or [])
        self.exec_results = list(exec_results or [])
        self.calls = []
        self.failures = {}

    def fail_on(self, operation, error=None):
        self.failures[operation] = error or LxdError(f"{operation} falló")

    def _maybe_fail(self, operation):
        if operation in self.failures:
            raise self.failures[operation]

    def get_instance(self, name):
        self.calls.append(("get", name))
        self._maybe_fail("get")
        return self.instances.get(name)

    def start_instance(self, name):
        self.calls.append(("start", name))
        self._maybe_fail("start")
        info = self.instances[name]
        self.instances[name] = InstanceInfo(name, "running", info.ephemeral)

    def stop_instance(self, name, timeout=-1, force=True):
        self.calls.append(("stop", name, timeout, force))
        self._maybe_fail("stop")
        info = self.instances[name]
        if info.ephemeral:
            del self.instances[name]
        else:
            self.instances[name] = InstanceInfo(name, "stopped", False)

    def copy_instance(self, source, dest):
        self.calls.append(("copy", source, dest))
        self._maybe_fail("copy")
        if dest in self.instances:
            raise LxdError(f"la instancia {dest} ya existe")
        self.instances[dest] = InstanceInfo(dest, "stopped", False)

    def delete_instance(self, name):
        self.calls.append(("delete", name))
        self._maybe_fail("delete")
        if self.instances[name].is_running:
            raise LxdError(f"la instancia {name} está corriendo")
        del self.instances[name]

    def execute(self, name, command, stdin=None):
        self.calls.append(("exec", name, tuple(command), stdin))
        if list(command) == READINESS_PROBE:
            output = self.probe_outputs.pop(0) if self.probe_outputs else READINESS_SENTINEL
            if isinstance(output, Exception):
                raise output
            if isinstance(output, ExecResult):
                return output
            return ExecResult(0 if output == READINESS_SENTINEL else 1, output + "\n", "")
        self._maybe_fail("exec")
        if self.exec_results:
            return self.exec_results.pop(0)
        return ExecResult(0, "configurado\n", "")

    def operations(self):
        return [call[0] for call in self.calls]


class FakeTokenProvider(TokenProvider):
    def __init__(self, token="AABBCC", error=None):
        self.token = token
        self.error = error
        self.calls = []
        self.closed = False

    def close(self):
        self.closed = True

    def generate_registration_token(self, owner, repo):
        self.calls.append((owner, repo))
        if self.error is not None:
            raise self.error
        return self.token


@pytest.fixture
def fake_backend():
    return FakeBackend(instances=[InstanceInfo("base", "stopped", False)])


@pytest.fixture
def manager(fake_backend):
    return ContainerManager(fake_backend, ready_poll_interval=0)


@pytest.fixture
def token_provider():
    return FakeTokenProvider()


@pytest.fixture
def execve_calls(monkeypatch):
    """Reemplaza shutil.which y os.execve para que la entrega del proceso retorne."""
    calls = []
    monkeypatch.setattr(container_manager_module.shutil, "which", lambda program: "/usr/bin/lxc")
    monkeypatch.setattr(container_manager_module.os, "execve",
                        lambda path, argv, env: calls.append((path, argv, env)))
    return calls


@pytest.fixture
def x86_64(monkeypatch):
    monkeypatch.setattr("lxd_ghar.domain.entities.host_architecture", lambda: "x86_64")
