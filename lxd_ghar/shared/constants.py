"""
Constantes globales de la aplicación.

Rol: Definir constantes usadas en toda la aplicación.
DEFAULT_CONFIG_PATH, GUEST_USER, READINESS_SENTINEL, RunnerState.
Centraliza valores mágicos y el contrato con la imagen base.

Depende de: enums para estados.
"""

from enum import Enum

# Constantes de configuración
DEFAULT_CONFIG_PATH = "/etc/lxd-ghar/config.yml"
DEFAULT_TIMEOUT = 30.0
DEFAULT_READY_POLL_INTERVAL = 1.0
DEFAULT_BACKEND = "api"
SUPPORTED_BACKENDS = ("api", "cli")
DEFAULT_LXC_PATH = "lxc"

# Sin límite: el stop espera indefinidamente y fuerza la detención
STOP_TIMEOUT_UNBOUNDED = -1

# Índice de secuencia del runner (un solo runner por invocación)
RUNNER_INDEX = 0


class RunnerState(Enum):
    """Estados del ciclo de vida de un runner."""
    CREATED = "created"
    TOKEN_OBTAINED = "token_obtained"
    CLONED = "cloned"
    RUNNING = "running"
    CONFIGURED = "configured"
    HANDED_OFF = "handed_off"
    FAILED = "failed"


# Contrato con la imagen base del runner
GUEST_USER = "ghar"
GUEST_LOGIN_SHELL = "/bin/bash"
GUEST_CONFIG_SCRIPT = "/home/ghar/runner/config.sh"
GUEST_RUN_SCRIPT = "/home/ghar/runner/run.sh"
READINESS_PROBE = ["systemctl", "is-system-running"]
READINESS_SENTINEL = "running"
# 126: no ejecutable, 127: no encontrado
PROBE_UNRUNNABLE_EXIT_CODES = (126, 127)

# Prefijo de stderr con el que lxc reporta sus propias fallas
LXC_ERROR_PREFIX = "Error:"

# GitHub
GITHUB_HOST = "github.com"
GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_ENDPOINTS = {
    "registration_token": "/repos/{owner}/{repo}/actions/runners/registration-token",
}

# Expresiones regulares para validación
INSTANCE_NAME_PATTERN = r"^[a-zA-Z][a-zA-Z0-9-]{0,62}$"
MAX_LABEL_LENGTH = 256

# Códigos de salida del proceso
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
