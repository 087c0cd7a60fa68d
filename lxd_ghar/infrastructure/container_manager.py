"""
Implementación de gestión de instancias LXD.

Rol: Gestión completa de la instancia del runner sobre un backend LXD.
Verifica existencia, recupera, clona, inicia, ejecuta y entrega el proceso.
Implementa el contrato ContainerManager del dominio.

Depende de: InstanceBackend inyectado (API o CLI), lxc para la entrega final.
"""

import logging
import os
import shlex
import shutil
import time
from typing import List, NoReturn, Optional

from ..domain import contracts
from ..shared.constants import (
    DEFAULT_LXC_PATH,
    DEFAULT_READY_POLL_INTERVAL,
    GUEST_LOGIN_SHELL,
    PROBE_UNRUNNABLE_EXIT_CODES,
    READINESS_PROBE,
    READINESS_SENTINEL,
    STOP_TIMEOUT_UNBOUNDED,
)
from ..shared.infrastructure_exceptions import InstanceExecError, InstanceNotReadyError, LxdError
from ..shared.logging_utils import log_operation_error, log_operation_start, log_operation_success
from .lxd_backends import InstanceBackend

logger = logging.getLogger(__name__)


class ContainerManager(contracts.ContainerManager):
    """Gestor de instancias LXD para runners efímeros."""

    def __init__(
        self,
        backend: InstanceBackend,
        lxc_path: str = DEFAULT_LXC_PATH,
        ready_timeout: Optional[float] = None,
        ready_poll_interval: float = DEFAULT_READY_POLL_INTERVAL,
        stop_timeout: int = STOP_TIMEOUT_UNBOUNDED,
    ):
        """
        Inicializa gestor de instancias.

        Args:
            backend: Backend LXD (API o CLI)
            lxc_path: Ejecutable lxc usado para la entrega final del proceso
            ready_timeout: Plazo máximo de espera de inicialización (None = sin límite)
            ready_poll_interval: Segundos entre sondeos de inicialización
            stop_timeout: Timeout del stop (-1 = esperar indefinidamente)
        """
        self.backend = backend
        self.lxc_path = lxc_path
        self.ready_timeout = ready_timeout
        self.ready_poll_interval = ready_poll_interval
        self.stop_timeout = stop_timeout

    def exists(self, name: str) -> bool:
        """
        Verifica si existe una instancia.

        Un "not found" del backend no es un error y retorna False.

        Raises:
            LxdError: Si falla la consulta al backend
        """
        return self.backend.get_instance(name) is not None

    def reclaim(self, name: str) -> None:
        """
        Detiene y elimina una instancia existente.

        No hace nada si la instancia no existe. Una instancia efímera
        desaparece al detenerse, por lo que no se elimina explícitamente.

        Args:
            name: Nombre de la instancia

        Raises:
            LxdError: Indicando el paso (get, stop, delete) que falló
        """
        try:
            instance = self.backend.get_instance(name)
        except LxdError as e:
            raise LxdError(f"no se pudo recuperar la instancia {name}: get falló: {e}") from e

        if instance is None:
            return

        operation = "reclaim_instance"
        log_operation_start(logger, operation, instance=name, status=instance.status,
                            ephemeral=instance.ephemeral)

        if instance.is_running:
            try:
                self.backend.stop_instance(name, timeout=self.stop_timeout, force=True)
            except LxdError as e:
                log_operation_error(logger, operation, e, instance=name, step="stop")
                raise LxdError(f"no se pudo detener la instancia {name}: {e}") from e

            if instance.ephemeral:
                log_operation_success(logger, operation, instance=name, deleted_on_stop=True)
                return

        try:
            self.backend.delete_instance(name)
        except LxdError as e:
            log_operation_error(logger, operation, e, instance=name, step="delete")
            raise LxdError(f"no se pudo eliminar la instancia {name}: {e}") from e

        log_operation_success(logger, operation, instance=name)

    def clone(self, source: str, dest: str) -> None:
        """
        Clona la instancia base en una nueva instancia.

        Elimina primero cualquier instancia previa con el nombre destino.
        No se usa el modo efímero para que una ejecución fallida deje la
        instancia disponible para diagnóstico.

        Args:
            source: Instancia base
            dest: Nombre de la nueva instancia

        Raises:
            LxdError: Si falla la recuperación o la copia
        """
        try:
            exists = self.exists(dest)
        except LxdError as e:
            raise LxdError(f"no se pudo copiar {source} a {dest}: exists falló: {e}") from e

        if exists:
            logger.info(f"Eliminando la instancia existente {dest}")
            try:
                self.reclaim(dest)
            except LxdError as e:
                raise LxdError(f"no se pudo copiar {source} a {dest}: delete falló: {e}") from e

        operation = "clone_instance"
        log_operation_start(logger, operation, source=source, dest=dest)
        try:
            self.backend.copy_instance(source, dest)
        except LxdError as e:
            log_operation_error(logger, operation, e, source=source, dest=dest)
            raise
        log_operation_success(logger, operation, source=source, dest=dest)

    def start(self, name: str) -> None:
        """
        Inicia una instancia y espera a que el sistema invitado esté inicializado.

        Args:
            name: Nombre de la instancia

        Raises:
            LxdError: Si falla el inicio o el sondeo no se puede ejecutar
            InstanceNotReadyError: Si se configuró ready_timeout y se agotó
        """
        logger.info(f"Iniciando la instancia {name}")
        try:
            self.backend.start_instance(name)
        except LxdError as e:
            raise LxdError(f"no se pudo iniciar la instancia {name}: {e}") from e

        self.wait_until_ready(name)

    def wait_until_ready(self, name: str) -> None:
        """
        Sondea la instancia hasta que el sondeo retorne el centinela de inicialización.

        Un código de salida distinto de cero del sondeo no es un error
        (systemctl lo usa para starting o degraded); una falla al ejecutarlo sí,
        incluidos los códigos 126/127 del shell cuando systemctl no existe.
        Sin ready_timeout la espera no tiene límite.
        """
        logger.info(f"Esperando a que la instancia {name} esté completamente inicializada")
        deadline = None
        if self.ready_timeout is not None:
            deadline = time.monotonic() + self.ready_timeout

        attempts = 0
        while True:
            attempts += 1
            try:
                result = self.backend.execute(name, list(READINESS_PROBE))
            except LxdError as e:
                raise LxdError(f"no se pudo sondear la inicialización de la instancia {name}: {e}") from e

            if result.exit_code in PROBE_UNRUNNABLE_EXIT_CODES:
                raise LxdError(
                    f"no se pudo sondear la inicialización de la instancia {name}: "
                    f"exit_code={result.exit_code} stderr={result.stderr.strip()}"
                )

            state = result.stdout.strip()
            if state == READINESS_SENTINEL:
                logger.info(f"Instancia {name} inicializada tras {attempts} sondeos")
                return

            logger.debug(f"Instancia {name} aún no inicializada: {state or result.exit_code}")

            if deadline is not None and time.monotonic() >= deadline:
                raise InstanceNotReadyError(
                    f"la instancia {name} no se inicializó en {self.ready_timeout}s "
                    f"(último estado: {state or 'desconocido'})"
                )

            time.sleep(self.ready_poll_interval)

    def exec(
        self,
        name: str,
        command: Optional[List[str]] = None,
        user: Optional[str] = None,
        stdin: Optional[str] = None,
    ) -> str:
        """
        Ejecuta un comando dentro de la instancia.

        Con user el comando corre en un shell de login de ese usuario; sin
        command el shell de login lee el comando desde stdin.

        Args:
            name: Nombre de la instancia
            command: argv a ejecutar (opcional si se usa user y stdin)
            user: Usuario del invitado (opcional)
            stdin: Entrada estándar para el comando (opcional)

        Returns:
            stdout sin espacios al inicio ni al final

        Raises:
            InstanceExecError: Si el comando termina con código distinto de cero
            LxdError: Si el comando no se puede ejecutar
        """
        argv = self._build_argv(command, user)
        result = self.backend.execute(name, argv, stdin=stdin)
        if result.exit_code != 0:
            raise InstanceExecError(result.exit_code, result.stdout, result.stderr)
        return result.stdout.strip()

    @staticmethod
    def _build_argv(command: Optional[List[str]], user: Optional[str]) -> List[str]:
        if user is None:
            if not command:
                raise ValueError("command es obligatorio cuando no se indica user")
            return list(command)

        argv = ["su", "-s", GUEST_LOGIN_SHELL, "-l", user]
        if command:
            argv.extend(["-c", shlex.join(command)])
        return argv

    def exec_replacing(self, name: str, user: str, command: str) -> NoReturn:
        """
        Reemplaza el proceso actual por command ejecutado como user dentro de la instancia.

        El proceso hereda los descriptores de archivo y recibe un entorno vacío.
        Si tiene éxito no retorna.

        Raises:
            LxdError: Si no se encuentra lxc o no se puede reemplazar el proceso
        """
        path = shutil.which(self.lxc_path)
        if path is None:
            raise LxdError(f"no se encontró {self.lxc_path} en el PATH")

        argv = ["lxc", "exec", name, "--", "su", "-l", "-s", command, user]
        logger.info(f"Entregando el proceso a {command} en la instancia {name}")

        for handler in logging.getLogger().handlers:
            handler.flush()

        try:
            os.execve(path, argv, {})
        except OSError as e:
            raise LxdError(f"no se pudo ejecutar {path}: {e}") from e
