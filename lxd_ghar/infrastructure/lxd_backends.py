"""
Backends intercambiables para operar instancias LXD.

Rol: Implementar las operaciones de bajo nivel sobre LXD.
LxdApiBackend habla con la API REST por el socket unix local (pylxd).
LxcCliBackend invoca la herramienta lxc como subproceso.
Ambos cumplen el mismo contrato InstanceBackend.

Depende de: pylxd, subprocess, configuración del backend.
"""

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import quote

from pylxd import Client
from pylxd.exceptions import NotFound

from ..domain.entities import ExecResult, InstanceInfo
from ..shared.constants import DEFAULT_LXC_PATH, LXC_ERROR_PREFIX, STOP_TIMEOUT_UNBOUNDED
from ..shared.infrastructure_exceptions import ConfigurationError, LxdError

logger = logging.getLogger(__name__)


class InstanceBackend(ABC):
    """Contrato de bajo nivel contra el gestor de instancias LXD."""

    name = "abstract"

    @abstractmethod
    def get_instance(self, name: str) -> Optional[InstanceInfo]:
        """Obtiene el estado de una instancia o None si no existe."""
        pass

    @abstractmethod
    def start_instance(self, name: str) -> None:
        """Inicia una instancia y espera a que la operación termine."""
        pass

    @abstractmethod
    def stop_instance(self, name: str, timeout: int = STOP_TIMEOUT_UNBOUNDED, force: bool = True) -> None:
        """Detiene una instancia y espera a que la operación termine."""
        pass

    @abstractmethod
    def copy_instance(self, source: str, dest: str) -> None:
        """Copia una instancia y espera a que la operación termine."""
        pass

    @abstractmethod
    def delete_instance(self, name: str) -> None:
        """Elimina una instancia y espera a que la operación termine."""
        pass

    @abstractmethod
    def execute(self, name: str, command: List[str], stdin: Optional[str] = None) -> ExecResult:
        """Ejecuta un comando dentro de la instancia capturando stdout y stderr."""
        pass


class LxdApiBackend(InstanceBackend):
    """Backend que usa la API REST de LXD por el socket unix local."""

    name = "api"

    def __init__(self, socket_path: Optional[str] = None, client: Optional[Client] = None):
        """
        Inicializa el cliente de LXD.

        Args:
            socket_path: Ruta del socket unix (opcional, por defecto el de LXD)
            client: Cliente pylxd ya construido (opcional)

        Raises:
            LxdError: Si no se puede conectar con LXD
        """
        if client is not None:
            self.client = client
            return

        endpoint = None
        if socket_path:
            endpoint = "http+unix://" + quote(socket_path, safe="")

        try:
            self.client = Client(endpoint=endpoint)
        except Exception as e:
            raise LxdError(f"no se pudo crear el cliente lxd: {e}") from e

    def get_instance(self, name: str) -> Optional[InstanceInfo]:
        try:
            instance = self.client.instances.get(name)
        except NotFound:
            return None
        except Exception as e:
            raise LxdError(f"no se pudo obtener la instancia {name}: {e}") from e

        return InstanceInfo(
            name=instance.name,
            status=(instance.status or "").lower(),
            ephemeral=bool(instance.ephemeral),
        )

    def _get(self, name: str):
        try:
            return self.client.instances.get(name)
        except Exception as e:
            raise LxdError(f"no se pudo obtener la instancia {name}: {e}") from e

    def start_instance(self, name: str) -> None:
        instance = self._get(name)
        try:
            instance.start(wait=True)
        except Exception as e:
            raise LxdError(f"no se pudo iniciar la instancia {name}: {e}") from e

    def stop_instance(self, name: str, timeout: int = STOP_TIMEOUT_UNBOUNDED, force: bool = True) -> None:
        instance = self._get(name)
        try:
            instance.stop(timeout=timeout, force=force, wait=True)
        except Exception as e:
            raise LxdError(f"no se pudo detener la instancia {name}: {e}") from e

    def copy_instance(self, source: str, dest: str) -> None:
        config = {
            "name": dest,
            "source": {
                "type": "copy",
                "source": source,
            },
        }
        try:
            self.client.instances.create(config, wait=True)
        except Exception as e:
            raise LxdError(f"no se pudo copiar la instancia {source} a {dest}: {e}") from e

    def delete_instance(self, name: str) -> None:
        instance = self._get(name)
        try:
            instance.delete(wait=True)
        except Exception as e:
            raise LxdError(f"no se pudo eliminar la instancia {name}: {e}") from e

    def execute(self, name: str, command: List[str], stdin: Optional[str] = None) -> ExecResult:
        instance = self._get(name)
        try:
            result = instance.execute(command, stdin_payload=stdin)
        except Exception as e:
            raise LxdError(f"no se pudo ejecutar {command[0]} en la instancia {name}: {e}") from e

        return ExecResult(
            exit_code=result.exit_code,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )


class LxcCliBackend(InstanceBackend):
    """Backend que invoca la herramienta lxc como subproceso."""

    name = "cli"

    def __init__(self, lxc_path: str = DEFAULT_LXC_PATH):
        self.lxc_path = lxc_path

    def _run(self, args: List[str], stdin: Optional[str] = None) -> subprocess.CompletedProcess:
        """
        Ejecuta lxc y retorna el resultado sin verificar el código de salida.

        Raises:
            LxdError: Si el ejecutable no se puede lanzar
        """
        cmd = [self.lxc_path] + args
        logger.debug(f"Ejecutando: {' '.join(cmd[:3])}")

        kwargs = {"input": stdin} if stdin is not None else {"stdin": subprocess.DEVNULL}
        try:
            return subprocess.run(cmd, capture_output=True, text=True, **kwargs)
        except OSError as e:
            raise LxdError(f"no se pudo ejecutar {self.lxc_path}: {e}") from e

    def _check(self, args: List[str], action: str) -> subprocess.CompletedProcess:
        result = self._run(args)
        if result.returncode != 0:
            raise LxdError(f"{action} falló: {result.stderr.strip()}")
        return result

    def get_instance(self, name: str) -> Optional[InstanceInfo]:
        result = self._run(["query", f"/1.0/instances/{quote(name, safe='')}"])
        if result.returncode != 0:
            if "not found" in result.stderr.lower():
                return None
            raise LxdError(f"no se pudo obtener la instancia {name}: {result.stderr.strip()}")

        try:
            data = json.loads(result.stdout)
        except ValueError as e:
            raise LxdError(f"respuesta inválida de lxc para la instancia {name}: {e}") from e

        return InstanceInfo(
            name=data.get("name", name),
            status=(data.get("status") or "").lower(),
            ephemeral=bool(data.get("ephemeral", False)),
        )

    def start_instance(self, name: str) -> None:
        self._check(["start", name], f"iniciar la instancia {name}")

    def stop_instance(self, name: str, timeout: int = STOP_TIMEOUT_UNBOUNDED, force: bool = True) -> None:
        args = ["stop", name]
        if force:
            args.append("--force")
        if timeout >= 0:
            args.extend(["--timeout", str(timeout)])
        self._check(args, f"detener la instancia {name}")

    def copy_instance(self, source: str, dest: str) -> None:
        self._check(["copy", source, dest], f"copiar la instancia {source} a {dest}")

    def delete_instance(self, name: str) -> None:
        self._check(["delete", name], f"eliminar la instancia {name}")

    def execute(self, name: str, command: List[str], stdin: Optional[str] = None) -> ExecResult:
        """
        Ejecuta un comando con lxc exec.

        lxc reporta sus propias fallas (instancia inexistente o detenida,
        daemon inaccesible) con stderr "Error: ..."; esas no son el código
        de salida del comando invitado.

        Raises:
            LxdError: Si lxc no pudo ejecutar el comando en la instancia
        """
        result = self._run(["exec", name, "--"] + list(command), stdin=stdin)
        if result.returncode != 0 and result.stderr.lstrip().startswith(LXC_ERROR_PREFIX):
            raise LxdError(f"no se pudo ejecutar {command[0]} en la instancia {name}: {result.stderr.strip()}")
        return ExecResult(exit_code=result.returncode, stdout=result.stdout, stderr=result.stderr)


def create_backend(settings) -> InstanceBackend:
    """
    Crea el backend LXD seleccionado en la configuración.

    Args:
        settings: Configuración con backend, socket y lxc_path

    Returns:
        Backend listo para inyectar en ContainerManager

    Raises:
        ConfigurationError: Si el backend no es soportado
    """
    if settings.backend == "api":
        return LxdApiBackend(socket_path=settings.socket)
    if settings.backend == "cli":
        return LxcCliBackend(lxc_path=settings.lxc_path)
    raise ConfigurationError(f"backend LXD no soportado: {settings.backend}")
