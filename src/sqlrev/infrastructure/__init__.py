"""Repository persistence backends for sqlrev."""

from pathlib import Path
from typing import Union

from sqlrev.infrastructure.base import RepositoryStore
from sqlrev.infrastructure.memory import InMemoryRepositoryStore
from sqlrev.infrastructure.file_store import JsonFileRepositoryStore
from sqlrev.infrastructure.sqlite_store import SQLiteRepositoryStore


STORAGE_BACKENDS = ("sqlite", "json", "memory")


def create_store(kind: str, path: Union[str, Path, None] = None) -> RepositoryStore:
    """Build a repository store by backend name.

    Args:
        kind: One of ``sqlite``, ``json`` or ``memory``
        path: SQLite file (``sqlite``) or root directory (``json``)

    Raises:
        ValueError: If the backend is unknown or a required path is missing
    """
    if kind == "memory":
        return InMemoryRepositoryStore()
    if kind not in STORAGE_BACKENDS:
        raise ValueError(
            f"Unknown storage backend '{kind}'. Choose from: {', '.join(STORAGE_BACKENDS)}"
        )
    if path is None:
        raise ValueError(f"Storage backend '{kind}' requires a path")
    if kind == "json":
        return JsonFileRepositoryStore(path)
    return SQLiteRepositoryStore(path)


__all__ = [
    "RepositoryStore",
    "InMemoryRepositoryStore",
    "JsonFileRepositoryStore",
    "SQLiteRepositoryStore",
    "STORAGE_BACKENDS",
    "create_store",
]
