"""
Utilitarios de configuración y manejo de logging.

Rol: Configurar logging centralizado para toda la aplicación.
Define formateadores, handlers y niveles de logging.
Provee funciones helper para logging de operaciones.

Depende de: logging library, configuración de entorno.
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging_config(level: Optional[str] = None) -> None:
    """
    Configura el logging básico para toda la aplicación.
    Debe llamarse una sola vez al inicio.

    Args:
        level: Nivel de logging (opcional, por defecto LOG_LEVEL o INFO)
    """
    log_level = getattr(logging, (level or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ],
        force=True,
    )

    # Reducir verbosidad de librerías externas
    for name in ("pylxd", "ws4py", "urllib3", "requests"):
        logging.getLogger(name).setLevel(logging.WARNING)


def mask_sensitive_data(data: str, mask_char: str = "*", visible_chars: int = 4) -> str:
    """
    Enmascara datos sensibles en logs.

    Args:
        data: Dato sensible (token, password, etc.)
        mask_char: Carácter para enmascarar
        visible_chars: Caracteres visibles al inicio

    Returns:
        Dato enmascarado
    """
    if not data or len(data) <= visible_chars:
        return mask_char * 8

    return data[:visible_chars] + mask_char * (len(data) - visible_chars)


def log_operation_start(logger: logging.Logger, operation: str, **kwargs) -> None:
    """Registra inicio de operación con contexto."""
    context = " | ".join([f"{k}={v}" for k, v in kwargs.items()])
    logger.info(f"INICIO | {operation} | {context}")


def log_operation_success(logger: logging.Logger, operation: str, **kwargs) -> None:
    """Registra éxito de operación con contexto."""
    context = " | ".join([f"{k}={v}" for k, v in kwargs.items()])
    logger.info(f"ÉXITO | {operation} | {context}")


def log_operation_error(logger: logging.Logger, operation: str, error: Exception, **kwargs) -> None:
    """
    Registra error de operación con contexto.

    Args:
        logger: Logger a usar
        operation: Descripción de operación
        error: Excepción capturada
        **kwargs: Contexto adicional
    """
    context = " | ".join([f"{k}={v}" for k, v in kwargs.items()])
    logger.error(f"ERROR | {operation} | {type(error).__name__}: {str(error)} | {context}")
