"""
Caso de uso para provisión de un runner efímero.

Rol: Construir una sola vez los servicios (backend LXD, gestor de
instancias, cliente GitHub, configurador) e inyectarlos en el ciclo de vida.
Es el punto de entrada para la lógica de negocio de provisión.

Depende de: Settings, RunnerLifecycle, ContainerManager, GitHubClient.
"""

import logging

from ..domain.agent_configurator import AgentConfigurator
from ..domain.entities import RepositoryRef, Runner
from ..domain.runner_lifecycle import RunnerLifecycle
from ..infrastructure.config import RunnerConfig, Settings
from ..infrastructure.container_manager import ContainerManager
from ..infrastructure.github_client import GitHubClient
from ..infrastructure.lxd_backends import create_backend

logger = logging.getLogger(__name__)


class ProvisionRunner:
    """Caso de uso para provisión de un runner efímero."""

    def __init__(self, lifecycle: RunnerLifecycle):
        """
        Inicializa caso de uso.

        Args:
            lifecycle: Ciclo de vida del runner con sus dependencias inyectadas
        """
        self.lifecycle = lifecycle

    @classmethod
    def from_settings(cls, settings: Settings, repository: RepositoryRef) -> "ProvisionRunner":
        """
        Construye el caso de uso con los servicios reales.

        Args:
            settings: Configuración del proceso
            repository: Repositorio destino (define el host del servicio)
        """
        backend = create_backend(settings)
        logger.info(f"Usando backend LXD: {backend.name}")

        container_manager = ContainerManager(
            backend,
            lxc_path=settings.lxc_path,
            ready_timeout=settings.ready_timeout,
            ready_poll_interval=settings.ready_poll_interval,
        )
        token_provider = GitHubClient(
            settings.github_token,
            api_base=settings.api_base_for(repository.host),
            timeout=settings.http_timeout,
        )
        configurator = AgentConfigurator(container_manager, host=repository.host)

        return cls(RunnerLifecycle(container_manager, token_provider, configurator))

    def execute(self, repository: RepositoryRef, runner_config: RunnerConfig) -> Runner:
        """
        Provisiona el runner y entrega el proceso al agente.

        Solo retorna si la entrega del proceso no reemplazó la imagen
        (dobles de prueba).

        Raises:
            ImageNotFoundError: Si la imagen base no existe
            LifecycleError: Si falla alguna etapa
        """
        runner = self.lifecycle.create_runner(repository.owner, repository.repo, runner_config)
        self.lifecycle.run(runner)
        return runner
