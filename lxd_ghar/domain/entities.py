"""
Entidades de dominio con identidad y reglas de negocio.

Rol: Definir las entidades principales del sistema con su ciclo de vida.
Contiene Runner, RepositoryRef, InstanceInfo y ExecResult.
Estas entidades no tienen dependencias externas y representan el modelo de dominio puro.
"""

import platform
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..shared.constants import RunnerState, RUNNER_INDEX
from ..shared.domain_exceptions import InvalidRunnerState
from ..shared.validation_utils import parse_repository_url, validate_instance_name, validate_labels


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def host_architecture() -> str:
    """Retorna el tag de arquitectura del host (ej. x86_64, aarch64)."""
    return platform.machine()


@dataclass(frozen=True)
class RepositoryRef:
    """Referencia a un repositorio en el servicio de coordinación CI."""

    host: str
    owner: str
    repo: str

    @classmethod
    def from_url(cls, repository: str) -> "RepositoryRef":
        """Construye la referencia desde la URL https del repositorio."""
        host, owner, repo = parse_repository_url(repository)
        return cls(host=host, owner=owner, repo=repo)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://{self.host}/{self.owner}/{self.repo}"


@dataclass(frozen=True)
class InstanceInfo:
    """Estado observado de una instancia LXD."""

    name: str
    status: str
    ephemeral: bool = False

    @property
    def is_running(self) -> bool:
        # Cualquier estado distinto de stopped requiere detener la instancia
        return self.status not in ("", "stopped")


@dataclass(frozen=True)
class ExecResult:
    """Resultado crudo de un comando ejecutado dentro de una instancia."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""


@dataclass
class Runner:
    """Entidad principal: runner efímero de GitHub Actions dentro de una instancia LXD."""

    owner: str
    repo: str
    name: str
    image: str
    labels: List[str] = field(default_factory=list)
    token: Optional[str] = field(default=None, repr=False)
    state: RunnerState = RunnerState.CREATED
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @staticmethod
    def derive_name(base_name: str, index: int = RUNNER_INDEX) -> str:
        """Deriva el nombre de la instancia a partir del nombre base y un índice."""
        return validate_instance_name(f"{base_name}-{index}")

    @staticmethod
    def resolve_labels(labels: Iterable[str], architecture: Optional[str] = None) -> List[str]:
        """Une los labels configurados con el tag de arquitectura del host."""
        return validate_labels(list(labels) + [architecture or host_architecture()])

    def transition_to(self, new_state: RunnerState) -> None:
        """Transiciona el runner a un nuevo estado."""
        if not self._is_valid_transition(self.state, new_state):
            raise InvalidRunnerState(f"Transición inválida: {self.state.value} -> {new_state.value}")

        self.state = new_state
        self.updated_at = _utcnow()

    def _is_valid_transition(self, from_state: RunnerState, to_state: RunnerState) -> bool:
        """Verifica si la transición de estados es válida."""
        valid_transitions = {
            RunnerState.CREATED: [RunnerState.TOKEN_OBTAINED, RunnerState.FAILED],
            RunnerState.TOKEN_OBTAINED: [RunnerState.CLONED, RunnerState.FAILED],
            RunnerState.CLONED: [RunnerState.RUNNING, RunnerState.FAILED],
            RunnerState.RUNNING: [RunnerState.CONFIGURED, RunnerState.FAILED],
            RunnerState.CONFIGURED: [RunnerState.HANDED_OFF, RunnerState.FAILED],
            RunnerState.HANDED_OFF: [],
            RunnerState.FAILED: [],
        }

        return to_state in valid_transitions.get(from_state, [])

    def is_terminal(self) -> bool:
        """Verifica si el runner llegó a un estado terminal."""
        return self.state in [RunnerState.HANDED_OFF, RunnerState.FAILED]
