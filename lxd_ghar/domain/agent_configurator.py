"""
Configuración desatendida del agente dentro de la instancia.

Rol: Construir el comando config.sh con todos los argumentos escapados
para el shell y ejecutarlo como la cuenta de servicio del invitado.

Depende de: ContainerManager (contrato), shlex para el escapado.
"""

import logging
import shlex
from typing import List

from ..shared.constants import GITHUB_HOST, GUEST_CONFIG_SCRIPT, GUEST_USER
from ..shared.logging_utils import mask_sensitive_data
from .contracts import ContainerManager

logger = logging.getLogger(__name__)


def build_config_command(
    owner: str,
    repo: str,
    labels: List[str],
    token: str,
    host: str = GITHUB_HOST,
    config_script: str = GUEST_CONFIG_SCRIPT,
) -> str:
    """
    Construye la línea de comando de configuración del agente.

    Cada argumento se escapa como un único argumento de shell, de modo que
    tokens o labels con comillas, espacios o metacaracteres no alteran la
    estructura del comando.

    Args:
        owner: Dueño del repositorio
        repo: Nombre del repositorio
        labels: Labels del runner
        token: Token de registro
        host: Host del servicio de coordinación
        config_script: Ruta de config.sh dentro del invitado

    Returns:
        Comando listo para un shell POSIX
    """
    return shlex.join([
        config_script,
        "--unattended",
        "--ephemeral",
        "--replace",
        "--url", f"https://{host}/{owner}/{repo}",
        "--token", token,
        "--labels", ",".join(labels),
    ])


class AgentConfigurator:
    """Registra el agente dentro de la instancia en modo desatendido y efímero."""

    def __init__(
        self,
        container_manager: ContainerManager,
        host: str = GITHUB_HOST,
        user: str = GUEST_USER,
        config_script: str = GUEST_CONFIG_SCRIPT,
    ):
        self.container_manager = container_manager
        self.host = host
        self.user = user
        self.config_script = config_script

    def configure(self, instance_name: str, owner: str, repo: str, labels: List[str], token: str) -> str:
        """
        Ejecuta config.sh dentro de la instancia.

        El comando se entrega por stdin a un shell de login de la cuenta de servicio.

        Returns:
            stdout de la configuración

        Raises:
            InstanceExecError: Si config.sh termina con código distinto de cero
        """
        logger.info(f"Configurando el runner {instance_name}")
        command = build_config_command(owner, repo, labels, token, self.host, self.config_script)
        logger.debug(f"Comando: {command.replace(shlex.quote(token), mask_sensitive_data(token))}")

        stdout = self.container_manager.exec(instance_name, user=self.user, stdin=command)
        logger.info(f"Resultado de configuración:\n{stdout}")
        return stdout
