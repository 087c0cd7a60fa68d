"""
Contratos/interfaces para dependencias externas del dominio.

Rol: Definir las interfaces que el dominio necesita del mundo exterior.
Permite que el dominio permanezca aislado de implementaciones técnicas.
Usa ABC para definir contratos que deben cumplir las implementaciones.

Implementado por: ContainerManager, GitHubClient en infrastructure.
"""

from abc import ABC, abstractmethod
from typing import List, NoReturn, Optional


class ContainerManager(ABC):
    """Contrato para gestión de instancias LXD."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Verifica si existe una instancia con ese nombre."""
        pass

    @abstractmethod
    def reclaim(self, name: str) -> None:
        """Detiene y elimina una instancia existente."""
        pass

    @abstractmethod
    def clone(self, source: str, dest: str) -> None:
        """Clona la instancia base en una nueva instancia."""
        pass

    @abstractmethod
    def start(self, name: str) -> None:
        """Inicia una instancia y espera a que esté completamente inicializada."""
        pass

    @abstractmethod
    def exec(
        self,
        name: str,
        command: Optional[List[str]] = None,
        user: Optional[str] = None,
        stdin: Optional[str] = None,
    ) -> str:
        """Ejecuta un comando dentro de la instancia y retorna su stdout."""
        pass

    @abstractmethod
    def exec_replacing(self, name: str, user: str, command: str) -> NoReturn:
        """Reemplaza el proceso actual por un comando dentro de la instancia."""
        pass


class TokenProvider(ABC):
    """Contrato para gestión de tokens de GitHub."""

    @abstractmethod
    def generate_registration_token(self, owner: str, repo: str) -> str:
        """Genera un token de registro para GitHub Actions."""
        pass

    def close(self) -> None:
        """Libera los recursos del proveedor."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
