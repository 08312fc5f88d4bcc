"""
Infrastructure package for the storage layout benchmark.

Centralizes database connectivity concerns (DSN, pooling, retrying connect).
Keep this layer focused on I/O and resource management, decoupled from the
generator, runner and analytics logic.
"""

from layout_bench.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
