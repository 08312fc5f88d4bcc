"""
Utilities package for the storage layout benchmark.

Exports shared helpers for logging and timing. Keep this package lightweight
and free of domain-specific logic.
"""

from layout_bench.utils.logging import configure_logging, get_logger
from layout_bench.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
