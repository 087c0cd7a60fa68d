"""
Configuración y validación centralizada de la aplicación.

Rol: Cargar el documento YAML del runner y las variables de entorno.
Valida y provee defaults para el backend LXD, GitHub y el logging.
Provee configuración tipada y validada para toda la aplicación.

Depende de: PyYAML, pydantic y pydantic-settings para validación.
"""

import logging
from typing import List, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..shared.constants import (
    DEFAULT_BACKEND,
    DEFAULT_LXC_PATH,
    DEFAULT_READY_POLL_INTERVAL,
    DEFAULT_TIMEOUT,
    GITHUB_API_BASE,
    GITHUB_HOST,
    SUPPORTED_BACKENDS,
)
from ..shared.infrastructure_exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class RunnerConfig(BaseModel):
    """Configuración del runner: nombre base, imagen base y labels."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., description="Nombre base de la instancia del runner")
    image: str = Field(..., description="Instancia LXD base a clonar")
    labels: List[str] = Field(default_factory=list, description="Labels del runner")

    @field_validator("name", "image")
    @classmethod
    def validate_not_empty(cls, v):
        """Valida que el valor no esté vacío."""
        if not v or not v.strip():
            raise ValueError("no puede estar vacío")
        return v.strip()

    @field_validator("labels", mode="before")
    @classmethod
    def validate_labels(cls, v):
        """Acepta labels nulos en el YAML."""
        return v or []


class AppConfig(BaseModel):
    """Documento de configuración (por defecto /etc/lxd-ghar/config.yml)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    repository: str = Field(..., description="URL https del repositorio")
    runner: RunnerConfig = Field(..., description="Configuración del runner")


def load_config(path: str) -> AppConfig:
    """
    Carga y valida el documento de configuración.

    Args:
        path: Ruta del archivo YAML

    Returns:
        Configuración validada

    Raises:
        ConfigurationError: Si el archivo no se puede leer o es inválido
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"no se pudo leer la configuración desde {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"la configuración en {path} debe ser un mapeo YAML")

    try:
        config = AppConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"configuración inválida en {path}: {e}") from e

    logger.debug(f"Configuración cargada desde {path}: repository={config.repository}")
    return config


class Settings(BaseSettings):
    """Configuración del proceso tomada de variables de entorno."""

    model_config = SettingsConfigDict(
        env_prefix="LXD_GHAR_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    github_token: str = Field(
        ...,
        validation_alias=AliasChoices("GITHUB_TOKEN", "github_token"),
        description="Credencial bearer para GitHub API",
    )
    github_api_base: Optional[str] = Field(default=None, description="URL base de GitHub API")
    http_timeout: float = Field(default=DEFAULT_TIMEOUT, description="Timeout para requests")
    backend: str = Field(default=DEFAULT_BACKEND, description="Backend LXD: api o cli")
    socket: Optional[str] = Field(default=None, description="Ruta del socket unix de LXD")
    lxc_path: str = Field(default=DEFAULT_LXC_PATH, description="Ejecutable lxc")
    ready_timeout: Optional[float] = Field(
        default=None, description="Plazo máximo de espera de inicialización (None = sin límite)"
    )
    ready_poll_interval: float = Field(
        default=DEFAULT_READY_POLL_INTERVAL, description="Intervalo entre sondeos de inicialización"
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
        description="Nivel de logging",
    )

    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v):
        """Valida que el token no esté vacío."""
        if not v or not v.strip():
            raise ValueError("GITHUB_TOKEN es obligatorio")
        return v.strip()

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v):
        """Valida el backend LXD."""
        v = v.lower()
        if v not in SUPPORTED_BACKENDS:
            raise ValueError(f"backend debe ser uno de: {', '.join(SUPPORTED_BACKENDS)}")
        return v

    @field_validator("ready_timeout")
    @classmethod
    def validate_ready_timeout(cls, v):
        """Valida el plazo de inicialización."""
        if v is not None and v <= 0:
            raise ValueError("ready_timeout debe ser mayor que 0")
        return v

    @field_validator("ready_poll_interval", "http_timeout")
    @classmethod
    def validate_intervals(cls, v):
        """Valida intervalos de tiempo."""
        if v < 0:
            raise ValueError("el intervalo no puede ser negativo")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Valida nivel de logging."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level debe ser uno de: {valid_levels}")
        return v.upper()

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """
        Carga configuración desde variables de entorno.

        Args:
            **overrides: Valores que reemplazan a los del entorno (ej. flags de la CLI)

        Raises:
            ConfigurationError: Si falta una variable obligatoria o un valor es inválido
        """
        overrides = {k: v for k, v in overrides.items() if v is not None}
        try:
            return cls(**overrides)
        except ValidationError as e:
            raise ConfigurationError(f"Error en configuración: {e}") from e

    def api_base_for(self, host: str) -> str:
        """
        Obtiene la URL base de GitHub API para el host del repositorio.

        github.com usa api.github.com; GitHub Enterprise Server usa https://<host>/api/v3.
        """
        if self.github_api_base:
            return self.github_api_base.rstrip("/")
        if host == GITHUB_HOST:
            return GITHUB_API_BASE
        return f"https://{host}/api/v3"
