"""
Storage backend interface for the storage layout benchmark.

A backend persists records in either representation and returns them newest
first. Flat records travel as column mappings, documents as JSON text; the
backend never interprets document contents so malformed documents survive a
round trip untouched.
"""

from __future__ import annotations

import abc
from typing import List, Protocol, runtime_checkable

from layout_bench.domain.models import RawRecord, Representation


@runtime_checkable
class StorageBackend(Protocol):
    """
    Common interface all storage backends must implement.

    Every method raises ``StorageError`` on failure.
    """

    name: str

    def insert(self, representation: Representation, record: RawRecord) -> None:
        """Persist one record."""
        ...

    def fetch(self, representation: Representation, limit: int) -> List[RawRecord]:
        """
        Return at most ``limit`` records, strictly newest first by creation time.

        Ties are broken by insertion order, newest first. Returns fewer than
        ``limit`` records (never padding) when fewer are stored.
        """
        ...

    def clear(self, representation: Representation) -> None:
        """Delete every record of the given representation."""
        ...

    def count(self, representation: Representation) -> int:
        """Number of stored records of the given representation."""
        ...

    def close(self) -> None:
        """Release held resources."""
        ...


class AbstractStorageBackend(abc.ABC):
    """
    Optional ABC helper for class-based backends.

    Subclasses implement the storage primitives; ``close`` defaults to a no-op.
    """

    name: str

    @abc.abstractmethod
    def insert(self, representation: Representation, record: RawRecord) -> None:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def fetch(self, representation: Representation, limit: int) -> List[RawRecord]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def clear(self, representation: Representation) -> None:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def count(self, representation: Representation) -> int:  # pragma: no cover
        raise NotImplementedError

    def close(self) -> None:
        return None


__all__ = ["AbstractStorageBackend", "StorageBackend"]
