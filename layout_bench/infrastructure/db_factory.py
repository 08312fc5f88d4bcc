"""
Database connection factory utilities for the storage layout benchmark.

Provides the DSN builder, a process-wide pool manager with cleanup at exit, and
a retrying connect for transient connection failures (tenacity). Retries apply
to acquiring a connection only; statements are never re-run.
"""

from __future__ import annotations

import atexit
import threading
from typing import Dict, Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from layout_bench.config import Settings, get_settings
from layout_bench.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def apply_statement_timeout(cursor: psycopg.Cursor, timeout_ms: int) -> None:
    """
    Set a session statement timeout. A value of 0 leaves the server default.
    """
    if timeout_ms and timeout_ms > 0:
        cursor.execute(f"SET statement_timeout = {int(timeout_ms)}")


class PoolManager:
    """
    Thread-safe singleton holding one connection pool per DSN.

    Pools are closed automatically via an atexit hook.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._pools: Dict[str, ConnectionPool] = {}
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_pool(
        self, dsn: str, min_size: int = 1, max_size: int = 4, wait_timeout: float = 30.0
    ) -> ConnectionPool:
        """
        Get or create the pool for ``dsn``.

        The pool is opened eagerly and waits for its first connection so that an
        unreachable server surfaces here rather than on the first timed fetch.
        A pool that never fills is closed and not cached.
        """
        with self._lock:
            pool = self._pools.get(dsn)
            if pool is None:
                pool = ConnectionPool(conninfo=dsn, min_size=min_size, max_size=max_size, open=True)
                try:
                    pool.wait(timeout=wait_timeout)
                except PoolTimeout:
                    pool.close()
                    raise
                self._pools[dsn] = pool
            return pool

    def close_all(self) -> None:
        """Close all managed pools. Called automatically at exit."""
        with self._lock:
            pools, self._pools = self._pools, {}
        for dsn, pool in pools.items():
            try:
                pool.close()
            except psycopg.Error:
                log.warning("Pool close failed", extra={"dsn_host": dsn.rsplit("@", 1)[-1]})


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def get_sync_pool(dsn: Optional[str] = None, min_size: int = 1, max_size: int = 4) -> ConnectionPool:
    """Get or create a synchronous connection pool via PoolManager."""
    return PoolManager().get_pool(dsn or build_dsn(), min_size=min_size, max_size=max_size)


__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
