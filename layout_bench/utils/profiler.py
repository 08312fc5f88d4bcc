"""
Timing utilities for benchmark trials.

``profile_block`` measures the wall-clock duration of a block with
``time.perf_counter`` and, through psutil, the peak resident set size (sampled
on a background thread) and the process CPU percentage over the block.

Usage:
    from layout_bench.utils.profiler import profile_block

    with profile_block("flat@1000") as stats:
        rows = backend.fetch(Representation.FLAT, 1000)

    stats.duration_seconds, stats.peak_rss_bytes
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass, field
from typing import Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Measurements for one profiled block.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)

    @property
    def duration_ms(self) -> int:
        return int(self.duration_seconds * 1000)


@contextlib.contextmanager
def profile_block(
    label: str, sample_interval_ms: int = 50, sample_memory: bool = True
) -> Generator[ProfileStats, None, None]:
    """
    Profile the enclosed block.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.
    sample_interval_ms : int
        RSS sampling interval in milliseconds.
    sample_memory : bool
        Disable to skip the sampling thread entirely (duration and CPU only).
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    peak_rss = process.memory_info().rss
    stop_sampling = threading.Event()

    def _sample() -> None:
        nonlocal peak_rss
        while not stop_sampling.is_set():
            try:
                peak_rss = max(peak_rss, process.memory_info().rss)
            except psutil.Error:
                return
            stop_sampling.wait(timeout=sample_interval_ms / 1000.0)

    sampler: Optional[threading.Thread] = None
    if sample_memory:
        sampler = threading.Thread(target=_sample, name=f"rss-sampler:{label}", daemon=True)
        sampler.start()

    # first call primes the counter and always returns 0.0
    process.cpu_percent(interval=None)
    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        stats.cpu_percent = process.cpu_percent(interval=None)

        stop_sampling.set()
        if sampler is not None:
            sampler.join(timeout=1.0)
            stats.peak_rss_bytes = max(peak_rss, process.memory_info().rss)


__all__ = ["ProfileStats", "profile_block"]
