"""
Punto de entrada de línea de comandos.

Rol: Parsear flags, configurar logging, cargar configuración y
provisionar un runner efímero entregándole el proceso.
Los errores de configuración se reportan antes de tocar el backend.

Depende de: argparse, Settings, load_config, ProvisionRunner.
"""

import argparse
import logging
from typing import List, Optional

from . import __version__
from .domain.entities import RepositoryRef
from .infrastructure.config import Settings, load_config
from .shared.constants import (
    DEFAULT_CONFIG_PATH,
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    SUPPORTED_BACKENDS,
)
from .shared.domain_exceptions import DomainError, LifecycleError
from .shared.infrastructure_exceptions import ConfigurationError, ErrorHandler, InfrastructureError
from .shared.logging_utils import setup_logging_config
from .use_cases.provision_runner import ProvisionRunner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lxd-ghar",
        description="Provisiona un runner efímero de GitHub Actions en una instancia LXD",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Ruta del archivo de configuración")
    parser.add_argument("--backend", choices=SUPPORTED_BACKENDS, default=None,
                        help="Backend LXD (por defecto LXD_GHAR_BACKEND o api)")
    parser.add_argument("--log-level", default=None, help="Nivel de logging (por defecto LOG_LEVEL o INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Función principal.

    Returns:
        Código de salida; en caso de éxito el proceso es reemplazado por el agente
    """
    args = build_parser().parse_args(argv)
    # configuración provisional para reportar errores de Settings
    setup_logging_config(args.log_level)

    stage = "configuration"
    try:
        settings = Settings.from_env(backend=args.backend, log_level=args.log_level)
        setup_logging_config(settings.log_level)
        config = load_config(args.config)
        repository = RepositoryRef.from_url(config.repository)

        stage = "provision"
        use_case = ProvisionRunner.from_settings(settings, repository)
        use_case.execute(repository, config.runner)
        return EXIT_SUCCESS

    except KeyboardInterrupt:
        logger.info("Proceso interrumpido por usuario")
        return EXIT_INTERRUPTED
    except LifecycleError as e:
        ErrorHandler.log_error(e, f"etapa {e.stage}", {"runner": e.runner_name})
        return EXIT_FAILURE
    except (ConfigurationError, DomainError, InfrastructureError) as e:
        ErrorHandler.log_error(e, f"etapa {stage}", {"config": args.config})
        return EXIT_FAILURE
