"""Tests del cliente de GitHub API para tokens de registro."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import requests

from lxd_ghar.infrastructure.github_client import GitHubClient
from lxd_ghar.shared.infrastructure_exceptions import GitHubAPIError, NetworkError


def make_response(status_code=201, payload=None):
    response = requests.Response()
    response.status_code = status_code
    response.url = "https://api.github.com/repos/rgl/lxd-ghar/actions/runners/registration-token"
    response._content = b"" if payload is None else json.dumps(payload).encode()
    return response


@pytest.fixture
def client():
    github = GitHubClient("ghp_secret")
    github.session = MagicMock()
    return github


class TestGenerateRegistrationToken:
    def test_posts_to_repository_endpoint(self, client):
        client.session.post.return_value = make_response(
            201, {"token": "AABBCC", "expires_at": "2026-10-19T12:00:00Z"}
        )

        assert client.generate_registration_token("rgl", "lxd-ghar") == "AABBCC"

        args, kwargs = client.session.post.call_args
        assert args[0] == "https://api.github.com/repos/rgl/lxd-ghar/actions/runners/registration-token"
        assert kwargs["headers"]["Authorization"] == "Bearer ghp_secret"
        assert kwargs["timeout"] == 30.0

    def test_enterprise_api_base(self):
        github = GitHubClient("ghp_secret", api_base="https://git.example.com/api/v3/")
        github.session = MagicMock()
        github.session.post.return_value = make_response(201, {"token": "AABBCC"})

        github.generate_registration_token("org", "repo")

        assert github.session.post.call_args[0][0] == (
            "https://git.example.com/api/v3/repos/org/repo/actions/runners/registration-token"
        )

    @pytest.mark.parametrize("status_code", [401, 403, 404, 500])
    def test_http_errors_carry_status_code(self, client, status_code):
        client.session.post.return_value = make_response(status_code, {"message": "Bad credentials"})

        with pytest.raises(GitHubAPIError) as info:
            client.generate_registration_token("rgl", "lxd-ghar")

        assert info.value.status_code == status_code
        assert client.session.post.call_count == 1

    @pytest.mark.parametrize(
        "error",
        [requests.exceptions.ConnectionError("sin red"), requests.exceptions.Timeout("timeout")],
    )
    def test_network_errors(self, client, error):
        client.session.post.side_effect = error
        with pytest.raises(NetworkError):
            client.generate_registration_token("rgl", "lxd-ghar")

    def test_missing_token_in_response(self, client):
        client.session.post.return_value = make_response(201, {"expires_at": "2026-10-19T12:00:00Z"})
        with pytest.raises(GitHubAPIError, match="token"):
            client.generate_registration_token("rgl", "lxd-ghar")

    def test_invalid_json(self, client):
        response = make_response(201)
        response._content = b"<html>"
        client.session.post.return_value = response
        with pytest.raises(GitHubAPIError):
            client.generate_registration_token("rgl", "lxd-ghar")


def test_context_manager_closes_session():
    with GitHubClient("ghp_secret") as github:
        github.session = MagicMock()
        session = github.session
    session.close.assert_called_once_with()
