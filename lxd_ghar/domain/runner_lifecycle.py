"""
Ciclo de vida del runner efímero.

Rol: Llevar una instancia desde ausente hasta el agente registrado
ejecutándose como el proceso actual.
created -> token_obtained -> cloned -> running -> configured -> handed_off,
o failed desde cualquier estado no terminal.

No reintenta ni compensa: una instancia parcialmente creada queda en
el backend para diagnóstico.

Depende de: ContainerManager, TokenProvider, AgentConfigurator.
"""

import logging
from typing import Callable

from ..shared.constants import GUEST_RUN_SCRIPT, GUEST_USER, RunnerState
from ..shared.domain_exceptions import ImageNotFoundError, LifecycleError
from ..shared.logging_utils import log_operation_error, log_operation_start, log_operation_success
from .agent_configurator import AgentConfigurator
from .contracts import ContainerManager, TokenProvider
from .entities import Runner

logger = logging.getLogger(__name__)


class RunnerLifecycle:
    """Orquesta la provisión de un único runner."""

    def __init__(
        self,
        container_manager: ContainerManager,
        token_provider: TokenProvider,
        configurator: AgentConfigurator,
        user: str = GUEST_USER,
        run_script: str = GUEST_RUN_SCRIPT,
    ):
        """
        Inicializa el ciclo de vida.

        Args:
            container_manager: Gestor de instancias LXD
            token_provider: Proveedor de tokens de registro
            configurator: Configurador del agente en el invitado
            user: Cuenta de servicio del invitado
            run_script: Punto de entrada del agente en el invitado
        """
        self.container_manager = container_manager
        self.token_provider = token_provider
        self.configurator = configurator
        self.user = user
        self.run_script = run_script

    def create_runner(self, owner: str, repo: str, runner_config) -> Runner:
        """
        Resuelve identidad y labels del runner y verifica la imagen base.

        Args:
            owner: Dueño del repositorio
            repo: Nombre del repositorio
            runner_config: Configuración con name, image y labels

        Returns:
            Runner en estado created

        Raises:
            ImageNotFoundError: Si la imagen base no existe
            LifecycleError: Si falla la consulta de existencia
        """
        name = Runner.derive_name(runner_config.name)
        labels = Runner.resolve_labels(runner_config.labels)

        try:
            exists = self.container_manager.exists(runner_config.image)
        except Exception as e:
            raise LifecycleError(
                "image_check", name, f"no se pudo verificar la imagen {runner_config.image}: {e}"
            ) from e

        if not exists:
            raise ImageNotFoundError(f"la imagen lxc {runner_config.image} no existe")

        runner = Runner(owner=owner, repo=repo, name=name, image=runner_config.image, labels=labels)
        logger.info(f"Runner {runner.name} creado para {owner}/{repo} con labels {','.join(labels)}")
        return runner

    def run(self, runner: Runner) -> None:
        """
        Ejecuta las etapas del ciclo de vida hasta la entrega del proceso.

        En producción la última etapa reemplaza la imagen del proceso y este
        método no retorna.

        Raises:
            LifecycleError: Si alguna etapa falla; el runner queda en failed
        """
        operation = "provision_runner"
        log_operation_start(logger, operation, runner=runner.name, repository=f"{runner.owner}/{runner.repo}")

        logger.info(f"Obteniendo un token de registro para {runner.owner}/{runner.repo}")
        self._stage(runner, "registration_token", RunnerState.TOKEN_OBTAINED, lambda: self._obtain_token(runner))

        self._stage(runner, "clone", RunnerState.CLONED,
                    lambda: self.container_manager.clone(runner.image, runner.name))

        logger.info(f"Iniciando el runner {runner.name}")
        self._stage(runner, "start", RunnerState.RUNNING, lambda: self.container_manager.start(runner.name))

        self._stage(runner, "configure", RunnerState.CONFIGURED,
                    lambda: self.configurator.configure(
                        runner.name, runner.owner, runner.repo, runner.labels, runner.token))

        logger.info(f"Ejecutando el runner {runner.name}")
        log_operation_success(logger, operation, runner=runner.name, state=runner.state.value)
        self._stage(runner, "handoff", RunnerState.HANDED_OFF,
                    lambda: self.container_manager.exec_replacing(runner.name, self.user, self.run_script))

    def _obtain_token(self, runner: Runner) -> None:
        # el proveedor no se usa después de esta etapa
        with self.token_provider:
            runner.token = self.token_provider.generate_registration_token(runner.owner, runner.repo)

    def _stage(self, runner: Runner, stage: str, target: RunnerState, action: Callable[[], object]) -> None:
        try:
            action()
        except Exception as e:
            runner.transition_to(RunnerState.FAILED)
            log_operation_error(logger, stage, e, runner=runner.name)
            raise LifecycleError(stage, runner.name, str(e)) from e

        runner.transition_to(target)
