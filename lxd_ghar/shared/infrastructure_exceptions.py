"""
Excepciones específicas de infraestructura técnica.

Rol: Definir excepciones para errores técnicos externos.
LxdError, GitHubAPIError, ConfigurationError.
Excepciones que representan fallas en dependencias externas.

Depende de: excepciones base de Python.
"""

import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


# Excepciones base de infraestructura
class InfrastructureError(Exception):
    """Error base de infraestructura técnica."""
    pass


class ConfigurationError(InfrastructureError):
    """Error de configuración del sistema."""
    pass


class LxdError(InfrastructureError):
    """Error relacionado con operaciones de LXD."""
    pass


class InstanceExecError(LxdError):
    """Comando ejecutado dentro de la instancia terminó con código distinto de cero."""

    def __init__(self, exit_code: int, stdout: str, stderr: str):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"exec en la instancia falló: exit_code={exit_code} stdout={stdout} stderr={stderr}"
        )


class InstanceNotReadyError(LxdError):
    """La instancia no alcanzó el estado inicializado dentro del plazo."""
    pass


class GitHubAPIError(InfrastructureError):
    """Error relacionado con GitHub API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NetworkError(InfrastructureError):
    """Error de conectividad o red."""
    pass


class ErrorHandler:
    """Manejador centralizado de errores técnicos."""

    @staticmethod
    def log_error(
        error: Exception,
        operation: str,
        context: Optional[Dict[str, Any]] = None,
        level: str = "error",
    ) -> None:
        """
        Registra error con contexto detallado.

        Args:
            error: Excepción capturada
            operation: Descripción de la operación
            context: Contexto adicional (opcional)
            level: Nivel de logging (error, warning, info)
        """
        log_func = getattr(logger, level)

        error_type = type(error).__name__
        error_msg = str(error)

        log_msg = f"Error en {operation}: {error_type} - {error_msg}"

        if context:
            log_msg += f" | Contexto: {context}"

        log_func(log_msg)
