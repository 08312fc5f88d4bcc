"""
PostgreSQL storage backend.

Two tables, one per representation:

- ``users_column``: one column per attribute (preferences and social links as
  JSON text);
- ``users_json``: the whole record as one opaque TEXT value, so malformed
  documents are stored verbatim and surface only when decoded.

Both tables carry ``created_at`` plus a BIGSERIAL ``seq`` used to break
timestamp ties when fetching newest first.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from layout_bench.config import get_settings
from layout_bench.domain.errors import StorageError
from layout_bench.domain.models import RawRecord, Representation
from layout_bench.infrastructure.db_factory import (
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)
from layout_bench.storage.abstract import AbstractStorageBackend
from layout_bench.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users_column (
    seq BIGSERIAL PRIMARY KEY,
    id TEXT NOT NULL,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    age INTEGER NOT NULL,
    bio TEXT NOT NULL,
    avatar_url TEXT,
    preferences TEXT NOT NULL,
    social_links TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
);
CREATE INDEX IF NOT EXISTS users_column_created_at_idx ON users_column (created_at DESC, seq DESC);

CREATE TABLE IF NOT EXISTS users_json (
    seq BIGSERIAL PRIMARY KEY,
    id TEXT NOT NULL DEFAULT gen_random_uuid()::text,
    data TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
);
CREATE INDEX IF NOT EXISTS users_json_created_at_idx ON users_json (created_at DESC, seq DESC);
"""

_TABLES = {
    Representation.FLAT: "users_column",
    Representation.DOCUMENT: "users_json",
}

_INSERT_FLAT = """
INSERT INTO users_column (id, name, email, age, bio, avatar_url, preferences, social_links, created_at)
VALUES (%(id)s, %(name)s, %(email)s, %(age)s, %(bio)s, %(avatar_url)s, %(preferences)s,
        %(social_links)s, COALESCE(%(created_at)s::timestamptz, clock_timestamp()))
"""

_INSERT_DOCUMENT = "INSERT INTO users_json (data) VALUES (%s)"

_SELECT_FLAT = """
SELECT id, name, email, age, bio, avatar_url, preferences, social_links, created_at
FROM users_column
ORDER BY created_at DESC, seq DESC
LIMIT %s
"""

_SELECT_DOCUMENT = """
SELECT data
FROM users_json
ORDER BY created_at DESC, seq DESC
LIMIT %s
"""


class PostgresBackend(AbstractStorageBackend):
    """
    psycopg backend drawing connections from a shared ConnectionPool.

    Every psycopg failure is re-raised as StorageError; statements are not retried.
    """

    name: str = "postgres"

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        statement_timeout_ms: Optional[int] = None,
        create_schema: bool = True,
    ) -> None:
        settings = get_settings()
        self._dsn = dsn_override or build_dsn(settings)
        self._timeout_ms = (
            settings.db_statement_timeout_ms if statement_timeout_ms is None else statement_timeout_ms
        )
        self._pool: Optional[ConnectionPool] = None
        if create_schema:
            self.ensure_schema()

    def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            try:
                self._pool = get_sync_pool(self._dsn)
            except psycopg.Error as exc:
                raise StorageError(f"cannot open connection pool: {exc}", "connect") from exc
        return self._pool

    def ensure_schema(self) -> None:
        """
        Create both tables and their ordering indexes if missing.

        Runs on a dedicated connection that retries transient connect failures,
        so a database that is still starting does not fail construction.
        """
        try:
            with get_sync_connection(self._dsn) as conn:
                conn.execute(SCHEMA_SQL)
        except psycopg.Error as exc:
            raise StorageError(f"schema setup failed: {exc}", "ensure_schema") from exc

    def insert(self, representation: Representation, record: RawRecord) -> None:
        representation = Representation(representation)
        try:
            with self._get_pool().connection() as conn:
                if representation is Representation.FLAT:
                    params: Dict[str, Any] = dict(record)  # type: ignore[arg-type]
                    params.setdefault("avatar_url", None)
                    params.setdefault("created_at", None)
                    conn.execute(_INSERT_FLAT, params)
                else:
                    data = record.decode("utf-8") if isinstance(record, bytes) else record
                    conn.execute(_INSERT_DOCUMENT, (data,))
        except (psycopg.Error, KeyError, TypeError, UnicodeDecodeError) as exc:
            raise StorageError(str(exc), "insert", representation.value) from exc

    def fetch(self, representation: Representation, limit: int) -> List[RawRecord]:
        representation = Representation(representation)
        if limit <= 0:
            return []
        try:
            with self._get_pool().connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self._timeout_ms)
                    if representation is Representation.FLAT:
                        cur.execute(_SELECT_FLAT, (limit,))
                        return list(cur.fetchall())
                    cur.execute(_SELECT_DOCUMENT, (limit,))
                    return [row["data"] for row in cur.fetchall()]
        except psycopg.Error as exc:
            raise StorageError(str(exc), "fetch", representation.value) from exc

    def clear(self, representation: Representation) -> None:
        representation = Representation(representation)
        try:
            with self._get_pool().connection() as conn:
                conn.execute(f"TRUNCATE TABLE {_TABLES[representation]} RESTART IDENTITY")
        except psycopg.Error as exc:
            raise StorageError(str(exc), "clear", representation.value) from exc
        log.info("Cleared stored records", extra={"representation": representation.value})

    def count(self, representation: Representation) -> int:
        representation = Representation(representation)
        try:
            with self._get_pool().connection() as conn:
                row = conn.execute(f"SELECT COUNT(*) FROM {_TABLES[representation]}").fetchone()
        except psycopg.Error as exc:
            raise StorageError(str(exc), "count", representation.value) from exc
        return int(row[0]) if row else 0

    def close(self) -> None:
        # The pool is shared through PoolManager and closed at exit.
        self._pool = None


__all__ = ["PostgresBackend", "SCHEMA_SQL"]
