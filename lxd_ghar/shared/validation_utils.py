"""
Utilitarios de validación reutilizables.

Rol: Proveer funciones de validación comunes para toda la aplicación.
Validar URL de repositorio, nombres de instancia y labels.
Funciones puras sin dependencias externas.

Depende de: expresiones regulares, urllib.
"""

import re
from typing import Iterable, List, Tuple
from urllib.parse import urlparse

from .constants import INSTANCE_NAME_PATTERN, MAX_LABEL_LENGTH
from .domain_exceptions import RepositoryError, ValidationError


def parse_repository_url(repository: str) -> Tuple[str, str, str]:
    """
    Parsea la URL del repositorio en host, owner y repo.

    El repo conserva los segmentos restantes del path, de modo que
    https://host/owner/a/b produce repo "a/b".

    Args:
        repository: URL https del repositorio

    Returns:
        Tupla (host, owner, repo)

    Raises:
        RepositoryError: Si la URL es inválida, no es https o no tiene owner/repo
    """
    if not repository:
        raise RepositoryError("la URL del repositorio no puede estar vacía")

    try:
        parsed = urlparse(repository)
        host = parsed.netloc
    except ValueError as e:
        raise RepositoryError(f"no se pudo parsear el repositorio {repository}: {e}") from e

    if parsed.scheme != "https":
        raise RepositoryError(
            f"no se pudo parsear el repositorio {repository}: el esquema {parsed.scheme!r} no es https"
        )

    if not host:
        raise RepositoryError(f"no se pudo parsear el repositorio {repository}: falta el host")

    segments = parsed.path.strip("/").split("/")
    if len(segments) < 2 or not all(segments):
        raise RepositoryError(
            f"no se pudo parsear el repositorio {repository}: "
            "no hay suficientes segmentos para extraer owner y repo"
        )

    owner = segments[0]
    repo = "/".join(segments[1:])
    return host, owner, repo


def validate_instance_name(name: str) -> str:
    """
    Valida un nombre de instancia LXD.

    Args:
        name: Nombre a validar

    Returns:
        Nombre validado

    Raises:
        ValidationError: Si el nombre es inválido
    """
    if not name:
        raise ValidationError("el nombre de la instancia no puede estar vacío")

    if not re.match(INSTANCE_NAME_PATTERN, name):
        raise ValidationError(
            f"nombre de instancia inválido {name!r}: solo letras, dígitos y guiones, "
            "debe comenzar con letra y tener como máximo 63 caracteres"
        )

    return name


def validate_labels(labels: Iterable[str]) -> List[str]:
    """
    Normaliza una lista de labels preservando el orden.

    Elimina espacios, labels vacíos y duplicados.

    Args:
        labels: Labels a validar

    Returns:
        Labels validados
    """
    validated_labels: List[str] = []
    for label in labels:
        if not isinstance(label, str):
            raise ValidationError("todos los labels deben ser strings")

        label = label.strip()
        if not label:
            continue

        if "," in label:
            raise ValidationError(f"label {label!r} no puede contener comas")

        if len(label) > MAX_LABEL_LENGTH:
            raise ValidationError(f"label no puede exceder {MAX_LABEL_LENGTH} caracteres")

        if label not in validated_labels:
            validated_labels.append(label)

    return validated_labels
