"""
Cliente HTTP para GitHub API.

Rol: Cliente técnico para interactuar con GitHub API.
Maneja autenticación, requests HTTP y errores de red.
Implementa el contrato TokenProvider del dominio.

Depende de: requests library, configuración de tokens.
"""

import logging

import requests

from ..domain import contracts
from ..shared.constants import DEFAULT_TIMEOUT, GITHUB_API_BASE, GITHUB_API_ENDPOINTS
from ..shared.infrastructure_exceptions import GitHubAPIError, NetworkError
from ..shared.logging_utils import log_operation_error, log_operation_start, log_operation_success

logger = logging.getLogger(__name__)


class GitHubClient(contracts.TokenProvider):
    """Cliente HTTP para GitHub API. Sin reintentos: cualquier falla es fatal."""

    def __init__(self, token: str, api_base: str = GITHUB_API_BASE, timeout: float = DEFAULT_TIMEOUT):
        """
        Inicializa cliente GitHub API.

        Args:
            token: Credencial bearer de GitHub
            api_base: URL base de GitHub API
            timeout: Timeout para requests
        """
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

        # Configurar headers
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "lxd-ghar",
        }

        self.session = requests.Session()

    def generate_registration_token(self, owner: str, repo: str) -> str:
        """
        Genera un registration token para GitHub Actions runner.

        Args:
            owner: Dueño del repositorio
            repo: Nombre del repositorio

        Returns:
            Token de registro temporal

        Raises:
            GitHubAPIError: Si hay error en la API
            NetworkError: Si hay error de red
        """
        operation = "generate_registration_token"
        log_operation_start(logger, operation, owner=owner, repo=repo)

        url = self.api_base + GITHUB_API_ENDPOINTS["registration_token"].format(owner=owner, repo=repo)

        try:
            response = self.session.post(url, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            token_data = response.json()
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            log_operation_error(logger, operation, e, owner=owner, repo=repo)
            raise NetworkError(f"Error de red generando token para {owner}/{repo}: {e}") from e
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            log_operation_error(logger, operation, e, owner=owner, repo=repo, status_code=status_code)
            raise GitHubAPIError(f"Error en API GitHub: {e}", status_code=status_code) from e
        except (requests.exceptions.RequestException, ValueError) as e:
            log_operation_error(logger, operation, e, owner=owner, repo=repo)
            raise GitHubAPIError(f"Error en API GitHub: {e}") from e

        token = token_data.get("token") if isinstance(token_data, dict) else None
        if not token:
            raise GitHubAPIError("La API no devolvió un token válido")

        log_operation_success(logger, operation, owner=owner, repo=repo,
                              expires_at=token_data.get("expires_at", "unknown"))
        return token

    def close(self):
        """Cierra la sesión HTTP."""
        if self.session:
            self.session.close()
