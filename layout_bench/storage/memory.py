"""
In-process storage backend.

Keeps both representations in plain lists. Useful for the unit tests and for
running the sweep without a database; timings then measure decode cost only.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List

from layout_bench.domain.errors import StorageError
from layout_bench.domain.models import RawRecord, Representation
from layout_bench.storage.abstract import AbstractStorageBackend


def _as_utc(value: Any) -> datetime:
    """Coerce a flat row's ``created_at`` to an aware UTC datetime; naive values are UTC."""
    if value is None:
        return datetime.now(timezone.utc)
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as exc:
            raise StorageError("invalid created_at", "insert", Representation.FLAT.value) from exc
    if not isinstance(value, datetime):
        raise StorageError("invalid created_at", "insert", Representation.FLAT.value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class _StoredRow:
    created_at: datetime
    seq: int
    record: RawRecord


class InMemoryBackend(AbstractStorageBackend):
    """
    List-backed store honouring the newest-first fetch contract.
    """

    name: str = "memory"

    def __init__(self) -> None:
        self._rows: Dict[Representation, List[_StoredRow]] = {
            Representation.FLAT: [],
            Representation.DOCUMENT: [],
        }
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, representation: Representation, record: RawRecord) -> None:
        representation = Representation(representation)
        if representation is Representation.FLAT:
            if not isinstance(record, dict):
                raise StorageError(
                    "flat records must be column mappings", "insert", representation.value
                )
            created_at = _as_utc(record.get("created_at"))
            record = dict(record, created_at=created_at)
        else:
            if not isinstance(record, (str, bytes)):
                raise StorageError(
                    "documents must be serialized text", "insert", representation.value
                )
            created_at = datetime.now(timezone.utc)
        with self._lock:
            self._rows[representation].append(
                _StoredRow(created_at=created_at, seq=next(self._seq), record=record)
            )

    def fetch(self, representation: Representation, limit: int) -> List[RawRecord]:
        representation = Representation(representation)
        if limit <= 0:
            return []
        with self._lock:
            rows = sorted(
                self._rows[representation],
                key=lambda row: (row.created_at, row.seq),
                reverse=True,
            )
        return [dict(row.record) if isinstance(row.record, dict) else row.record for row in rows[:limit]]

    def clear(self, representation: Representation) -> None:
        with self._lock:
            self._rows[Representation(representation)].clear()

    def count(self, representation: Representation) -> int:
        with self._lock:
            return len(self._rows[Representation(representation)])


__all__ = ["InMemoryBackend"]
