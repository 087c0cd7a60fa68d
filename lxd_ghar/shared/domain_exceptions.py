"""
Excepciones específicas del dominio de negocio.

Rol: Definir excepciones para errores de lógica de negocio.
RepositoryError, ImageNotFoundError, LifecycleError.
Excepciones que representan violaciones de reglas de negocio.

Depende de: excepciones base de Python.
"""


# Excepciones base del dominio
class DomainError(Exception):
    """Error base del dominio de negocio."""
    pass


class ValidationError(DomainError):
    """Error en validación de datos de entrada."""
    pass


class RepositoryError(ValidationError):
    """URL de repositorio mal formada, con esquema incorrecto o sin owner/repo."""
    pass


class ImageNotFoundError(DomainError):
    """La imagen base del runner no existe en el backend."""
    pass


class InvalidRunnerState(DomainError):
    """Estado de runner inválido para la operación solicitada."""
    pass


class LifecycleError(DomainError):
    """Falla de una etapa del ciclo de vida del runner."""

    def __init__(self, stage: str, runner_name: str, message: str):
        self.stage = stage
        self.runner_name = runner_name
        super().__init__(f"etapa {stage} del runner {runner_name} falló: {message}")
