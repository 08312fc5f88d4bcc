"""
Benchmark runner: timed fetch trials per representation and scale, the
complex-processing trial, the sequential sweep, and result persistence.

Usage (example from CLI):
    from layout_bench.runner import BenchmarkRunner

    runner = BenchmarkRunner(backend)
    results = runner.run([1_000, 10_000])

Sweep outputs are saved to `results/` when persisted:
- `results/latest.json` (last sweep)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypedDict

from layout_bench import analytics
from layout_bench.domain.errors import ParseError, StorageError
from layout_bench.domain.models import (
    RawRecord,
    Representation,
    User,
    from_document,
    from_flat_row,
)
from layout_bench.storage.abstract import StorageBackend
from layout_bench.utils.logging import get_logger
from layout_bench.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)

COMPLEX_TRIAL = "complex"


class TrialResult(TypedDict, total=False):
    """
    Report line for one timed trial.

    ``records_returned`` is what the backend handed back (at most the requested
    count); ``records_processed`` and ``records_dropped`` appear on complex
    trials only. ``error`` is set when the trial's storage call failed.
    """

    representation: str
    scale: int
    count_requested: int
    duration_seconds: float
    duration_ms: int
    records_returned: int
    decode_failures: int
    records_processed: int
    records_dropped: int
    peak_rss_bytes: Optional[int]
    cpu_percent: Optional[float]
    processing_details: Dict[str, str]
    error: Optional[str]


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def _validate_count(count: int) -> None:
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise ValueError(f"count must be a positive integer, got {count!r}")


def validate_scales(scales: Iterable[int]) -> List[int]:
    """Materialize ``scales`` keeping order; every entry must be a positive integer."""
    values = list(scales)
    if not values:
        raise ValueError("at least one scale is required")
    for scale in values:
        _validate_count(scale)
    return values


def _decode_all(representation: Representation, rows: Sequence[RawRecord]) -> Tuple[List[User], int]:
    """Decode fetched rows into typed users, counting rows that fail."""
    decoder: Callable[[Any], User] = (
        from_flat_row if representation is Representation.FLAT else from_document
    )
    users: List[User] = []
    failures = 0
    for row in rows:
        try:
            users.append(decoder(row))
        except ParseError:
            failures += 1
    return users, failures


def _timing_fields(stats: ProfileStats) -> Dict[str, Any]:
    return {
        "duration_seconds": _round_float(stats.duration_seconds, 6),
        "duration_ms": stats.duration_ms,
        "peak_rss_bytes": stats.peak_rss_bytes,
        "cpu_percent": _round_float(stats.cpu_percent, 1) if stats.cpu_percent else None,
    }


class BenchmarkRunner:
    """
    Time fetch trials against one storage backend.

    Trials never overlap: each call blocks until its fetch and decode are done,
    and ``run`` walks scales and representations strictly in order.
    """

    def __init__(self, backend: StorageBackend, sample_memory: bool = True) -> None:
        self._backend = backend
        self._sample_memory = sample_memory

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def benchmark(self, representation: Representation, count: int) -> TrialResult:
        """
        Fetch up to ``count`` newest records and decode each into its typed form.

        The timed span covers fetch plus decode. Raises StorageError when the
        fetch fails.
        """
        representation = Representation(representation)
        _validate_count(count)
        label = f"{representation.value}@{count}"
        with profile_block(label, sample_memory=self._sample_memory) as stats:
            rows = self._backend.fetch(representation, count)
            _users, failures = _decode_all(representation, rows)

        if failures:
            log.warning(
                f"[TRIAL] {label}: {failures} record(s) failed to decode",
                extra={"representation": representation.value, "decode_failures": failures},
            )
        result = TrialResult(
            representation=representation.value,
            count_requested=count,
            records_returned=len(rows),
            decode_failures=failures,
        )
        result.update(_timing_fields(stats))  # type: ignore[typeddict-item]
        return result

    def benchmark_complex(self, count: int) -> TrialResult:
        """
        Fetch up to ``count`` newest documents and run the analytics transform.

        ``records_processed`` counts documents that decoded and were transformed;
        it is lower than ``records_returned`` by ``records_dropped``.
        """
        _validate_count(count)
        label = f"{COMPLEX_TRIAL}@{count}"
        with profile_block(label, sample_memory=self._sample_memory) as stats:
            raws = self._backend.fetch(Representation.DOCUMENT, count)
            outcome = analytics.process(raws)

        result = TrialResult(
            representation=COMPLEX_TRIAL,
            count_requested=count,
            records_returned=len(raws),
            records_processed=outcome.processed,
            records_dropped=outcome.dropped,
            processing_details=analytics.processing_details(),
        )
        result.update(_timing_fields(stats))  # type: ignore[typeddict-item]
        return result

    def _guarded(self, scale: int, name: str, trial: Callable[[], TrialResult]) -> TrialResult:
        log.info(f"[TRIAL START] {name} @ {scale}", extra={"representation": name, "scale": scale})
        try:
            result = trial()
        except StorageError as exc:
            log.exception(
                f"[TRIAL FAILED] {name} @ {scale}",
                extra={"representation": name, "scale": scale},
            )
            result = TrialResult(
                representation=name,
                count_requested=scale,
                records_returned=0,
                duration_seconds=0.0,
                duration_ms=0,
                error=str(exc),
            )
        else:
            log.info(
                f"[TRIAL SUCCESS] {name} @ {scale}: {result['duration_ms']}ms, "
                f"{result['records_returned']} records",
                extra={
                    "representation": name,
                    "scale": scale,
                    "duration_ms": result["duration_ms"],
                    "records_returned": result["records_returned"],
                },
            )
        result["scale"] = scale
        return result

    def run(self, scales: Iterable[int], include_complex: bool = True) -> List[TrialResult]:
        """
        Run the sweep: for each scale in order, flat, then document, then complex.

        A StorageError fails only its own (scale, representation) trial, which
        is reported with an ``error`` entry; the sweep continues.
        """
        ordered = validate_scales(scales)
        results: List[TrialResult] = []
        for scale in ordered:
            log.info(f"{'=' * 60}")
            log.info(f"[SCALE] {scale}", extra={"scale": scale})
            log.info(f"{'=' * 60}")
            for representation in (Representation.FLAT, Representation.DOCUMENT):
                results.append(
                    self._guarded(
                        scale,
                        representation.value,
                        lambda r=representation, s=scale: self.benchmark(r, s),
                    )
                )
            if include_complex:
                results.append(
                    self._guarded(scale, COMPLEX_TRIAL, lambda s=scale: self.benchmark_complex(s))
                )

        failed = sum(1 for r in results if r.get("error"))
        log.info(
            f"[SWEEP COMPLETE] {len(results)} trial(s), {failed} failed",
            extra={"scales": ordered, "trials": len(results), "failed": failed},
        )
        return results


def persist_results(payload: dict, results_dir: Path | str) -> Path:
    """Write ``latest.json`` and a timestamped archive; return the archive path."""
    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})
    return archive_path


def sweep_payload(backend_name: str, scales: Sequence[int], results: List[TrialResult]) -> dict:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": backend_name,
        "scales": list(scales),
        "results": results,
    }


__all__ = [
    "COMPLEX_TRIAL",
    "BenchmarkRunner",
    "TrialResult",
    "persist_results",
    "sweep_payload",
    "validate_scales",
]
