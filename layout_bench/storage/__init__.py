"""
Storage backends for the storage layout benchmark.

``create_backend`` resolves a backend by name; the PostgreSQL backend is
imported lazily so the in-memory path works without a reachable database.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from layout_bench.storage.abstract import AbstractStorageBackend, StorageBackend
from layout_bench.storage.memory import InMemoryBackend


def _postgres() -> StorageBackend:
    from layout_bench.storage.postgres import PostgresBackend

    return PostgresBackend()


def _backend_factories() -> Dict[str, Callable[[], StorageBackend]]:
    """Registry of available backends."""
    return {
        "memory": lambda: InMemoryBackend(),
        "postgres": _postgres,
    }


def available_backends() -> List[str]:
    """List available backend names."""
    return sorted(_backend_factories().keys())


def create_backend(name: str) -> StorageBackend:
    factories = _backend_factories()
    if name not in factories:
        raise ValueError(f"Unknown storage backend '{name}'. Available: {', '.join(factories)}")
    return factories[name]()


__all__ = [
    "AbstractStorageBackend",
    "InMemoryBackend",
    "StorageBackend",
    "available_backends",
    "create_backend",
]
