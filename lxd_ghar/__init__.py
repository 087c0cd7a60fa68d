"""
lxd-ghar - GitHub Actions Ephemeral Runner en LXD

Versión: 0.1.0
Propósito: Provisionar un runner efímero de GitHub Actions dentro de una
instancia LXD clonada y entregarle el proceso actual.
"""

__version__ = "0.1.0"
__author__ = "lxd-ghar Team"
__description__ = "GitHub Actions Ephemeral Runner on LXD"

# Exportaciones principales del dominio
from .domain.entities import Runner, RepositoryRef
from .domain.runner_lifecycle import RunnerLifecycle
from .domain.agent_configurator import AgentConfigurator, build_config_command

# Exportaciones de casos de uso
from .use_cases.provision_runner import ProvisionRunner

# Exportaciones de infraestructura
from .infrastructure.container_manager import ContainerManager
from .infrastructure.github_client import GitHubClient
from .infrastructure.lxd_backends import LxcCliBackend, LxdApiBackend, create_backend
from .infrastructure.config import AppConfig, RunnerConfig, Settings, load_config

__all__ = [
    # Versión y metadata
    "__version__",
    "__author__",
    "__description__",

    # Entidades de dominio
    "Runner",
    "RepositoryRef",

    # Servicios principales
    "RunnerLifecycle",
    "AgentConfigurator",
    "build_config_command",

    # Casos de uso
    "ProvisionRunner",

    # Infraestructura
    "ContainerManager",
    "GitHubClient",
    "LxdApiBackend",
    "LxcCliBackend",
    "create_backend",
    "AppConfig",
    "RunnerConfig",
    "Settings",
    "load_config",
]
