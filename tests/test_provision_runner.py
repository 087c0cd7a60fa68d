"""Tests del cableado del caso de uso de provisión."""

from __future__ import annotations

import pytest
from conftest import FakeBackend

from lxd_ghar.domain.entities import InstanceInfo, RepositoryRef
from lxd_ghar.infrastructure.config import RunnerConfig, Settings
from lxd_ghar.infrastructure.container_manager import ContainerManager
from lxd_ghar.infrastructure.github_client import GitHubClient
from lxd_ghar.shared.constants import RunnerState
from lxd_ghar.use_cases import provision_runner as provision_runner_module
from lxd_ghar.use_cases.provision_runner import ProvisionRunner


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_secret")
    monkeypatch.setenv("LXD_GHAR_READY_TIMEOUT", "60")
    monkeypatch.setenv("LXD_GHAR_READY_POLL_INTERVAL", "0")
    monkeypatch.delenv("LXD_GHAR_GITHUB_API_BASE", raising=False)
    return Settings.from_env(backend="cli")


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend(instances=[InstanceInfo("base", "stopped")])
    monkeypatch.setattr(provision_runner_module, "create_backend", lambda settings: fake)
    return fake


class TestFromSettings:
    def test_wires_services_from_settings(self, settings, backend):
        repository = RepositoryRef.from_url("https://github.com/rgl/lxd-ghar")

        lifecycle = ProvisionRunner.from_settings(settings, repository).lifecycle

        assert isinstance(lifecycle.container_manager, ContainerManager)
        assert lifecycle.container_manager.backend is backend
        assert lifecycle.container_manager.ready_timeout == 60
        assert lifecycle.container_manager.ready_poll_interval == 0
        assert isinstance(lifecycle.token_provider, GitHubClient)
        assert lifecycle.token_provider.api_base == "https://api.github.com"
        assert lifecycle.configurator.host == "github.com"
        assert lifecycle.configurator.container_manager is lifecycle.container_manager

    def test_enterprise_repository(self, settings, backend):
        repository = RepositoryRef.from_url("https://git.example.com/org/repo")

        lifecycle = ProvisionRunner.from_settings(settings, repository).lifecycle

        assert lifecycle.token_provider.api_base == "https://git.example.com/api/v3"
        assert lifecycle.configurator.host == "git.example.com"


class TestExecute:
    def test_provisions_and_hands_off(self, settings, backend, execve_calls, x86_64):
        repository = RepositoryRef.from_url("https://github.com/rgl/lxd-ghar")
        use_case = ProvisionRunner.from_settings(settings, repository)
        use_case.lifecycle.token_provider.generate_registration_token = lambda owner, repo: "AABBCC"

        runner = use_case.execute(repository, RunnerConfig(name="ci", image="base", labels=["self-hosted"]))

        assert runner.name == "ci-0"
        assert runner.state is RunnerState.HANDED_OFF
        assert "ci-0" in backend.instances
        assert execve_calls[0][1][2] == "ci-0"
