"""Tests de la entidad Runner y su máquina de estados."""

from __future__ import annotations

import pytest

from lxd_ghar.domain.entities import InstanceInfo, RepositoryRef, Runner
from lxd_ghar.shared.constants import RunnerState
from lxd_ghar.shared.domain_exceptions import InvalidRunnerState, RepositoryError, ValidationError

HAPPY_PATH = [
    RunnerState.TOKEN_OBTAINED,
    RunnerState.CLONED,
    RunnerState.RUNNING,
    RunnerState.CONFIGURED,
    RunnerState.HANDED_OFF,
]


def make_runner():
    return Runner(owner="rgl", repo="lxd-ghar", name="ci-0", image="base", labels=["x86_64"])


class TestRunnerIdentity:
    def test_derive_name_uses_index_zero(self):
        assert Runner.derive_name("ci") == "ci-0"

    def test_derive_name_validates_instance_name(self):
        with pytest.raises(ValidationError):
            Runner.derive_name("ci_runner")

    def test_resolve_labels_appends_architecture(self):
        assert Runner.resolve_labels(["self-hosted"], architecture="x86_64") == ["self-hosted", "x86_64"]

    def test_resolve_labels_does_not_duplicate_architecture(self):
        assert Runner.resolve_labels(["x86_64", "lxd"], architecture="x86_64") == ["x86_64", "lxd"]

    def test_resolve_labels_defaults_to_host_architecture(self, x86_64):
        assert Runner.resolve_labels([]) == ["x86_64"]

    def test_token_is_not_in_repr(self):
        runner = make_runner()
        runner.token = "super-secret"
        assert "super-secret" not in repr(runner)


class TestRunnerStateMachine:
    def test_happy_path(self):
        runner = make_runner()
        for state in HAPPY_PATH:
            runner.transition_to(state)
        assert runner.state is RunnerState.HANDED_OFF
        assert runner.is_terminal()

    @pytest.mark.parametrize("steps", range(len(HAPPY_PATH)))
    def test_failed_reachable_from_every_non_terminal_state(self, steps):
        runner = make_runner()
        for state in HAPPY_PATH[:steps]:
            runner.transition_to(state)
        runner.transition_to(RunnerState.FAILED)
        assert runner.is_terminal()

    def test_cannot_skip_states(self):
        runner = make_runner()
        with pytest.raises(InvalidRunnerState):
            runner.transition_to(RunnerState.CLONED)

    @pytest.mark.parametrize("terminal", [RunnerState.HANDED_OFF, RunnerState.FAILED])
    def test_terminal_states_have_no_exit(self, terminal):
        runner = make_runner()
        if terminal is RunnerState.HANDED_OFF:
            for state in HAPPY_PATH:
                runner.transition_to(state)
        else:
            runner.transition_to(RunnerState.FAILED)
        with pytest.raises(InvalidRunnerState):
            runner.transition_to(RunnerState.FAILED)


class TestRepositoryRef:
    def test_from_url(self):
        ref = RepositoryRef.from_url("https://github.com/rgl/lxd-ghar")
        assert ref.full_name == "rgl/lxd-ghar"
        assert ref.url == "https://github.com/rgl/lxd-ghar"

    def test_from_url_rejects_http(self):
        with pytest.raises(RepositoryError):
            RepositoryRef.from_url("http://github.com/rgl/lxd-ghar")


class TestInstanceInfo:
    @pytest.mark.parametrize("status,running", [("running", True), ("frozen", True), ("stopped", False)])
    def test_is_running(self, status, running):
        assert InstanceInfo("ci-0", status).is_running is running
