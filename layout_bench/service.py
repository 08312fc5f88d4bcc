"""
Command interface over the benchmark core.

``BenchmarkService`` is what a front end (the CLI here, or any transport)
calls: generate records, time a single fetch, time the complex-processing path,
or run the whole sweep. Reports are plain dicts ready for JSON serialization.

``startup`` bundles the "fill the store and sweep it" sequence a deployment may
trigger after launch. Nothing in the core depends on it having run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from layout_bench.config import Settings, get_settings
from layout_bench.domain.models import Representation, Variant
from layout_bench.generator import GenerationReport, populate
from layout_bench.runner import (
    BenchmarkRunner,
    TrialResult,
    persist_results,
    sweep_payload,
    validate_scales,
)
from layout_bench.storage.abstract import StorageBackend
from layout_bench.utils.logging import get_logger

log = get_logger(__name__)


class BenchmarkService:
    """
    Dispatch the four benchmark commands against one backend.
    """

    def __init__(
        self,
        backend: StorageBackend,
        settings: Optional[Settings] = None,
        runner: Optional[BenchmarkRunner] = None,
    ) -> None:
        self.backend = backend
        self.settings = settings or get_settings()
        self.runner = runner or BenchmarkRunner(backend)

    def generate(
        self,
        variant: Variant,
        representation: Representation,
        count: int,
        stop_on_error: bool = False,
    ) -> dict:
        """
        Insert ``count`` synthesized records.

        Best-effort by default: failed writes are counted in the report and
        generation continues. ``stop_on_error`` propagates the first failure.
        """
        if count <= 0:
            raise ValueError(f"count must be a positive integer, got {count}")
        report = populate(
            self.backend, variant, representation, count, stop_on_error=stop_on_error
        )
        return report.as_dict()

    def benchmark(self, representation: Representation, count: int) -> TrialResult:
        return self.runner.benchmark(representation, count)

    def benchmark_complex(self, count: int) -> TrialResult:
        return self.runner.benchmark_complex(count)

    def run_full_sweep(
        self,
        scales: Optional[Iterable[int]] = None,
        persist: bool = False,
        results_dir: Optional[Path | str] = None,
    ) -> List[TrialResult]:
        """
        Run every scale for both representations plus the complex path.

        Scales default to ``settings.benchmark_scales``. When ``persist`` is set
        the sweep payload is written under ``results_dir`` (default
        ``settings.results_dir``).
        """
        ordered = validate_scales(scales if scales is not None else self.settings.benchmark_scales)
        results = self.runner.run(ordered)
        if persist:
            payload = sweep_payload(getattr(self.backend, "name", "unknown"), ordered, results)
            persist_results(payload, results_dir or self.settings.results_dir)
        return results

    def reset(self) -> None:
        """Delete stored records of both representations."""
        for representation in Representation:
            self.backend.clear(representation)

    def startup(
        self,
        count: Optional[int] = None,
        scales: Optional[Iterable[int]] = None,
        persist: bool = True,
    ) -> List[TrialResult]:
        """
        Clear the store, generate simple flat rows and complex documents, sweep.

        Generation here is best-effort; write failures are logged and counted.
        """
        count = count or self.settings.generate_count
        log.info("[STARTUP] Generating data and running benchmarks", extra={"count": count})
        self.reset()
        reports: List[GenerationReport] = [
            populate(self.backend, Variant.SIMPLE, Representation.FLAT, count),
            populate(self.backend, Variant.COMPLEX, Representation.DOCUMENT, count),
        ]
        for report in reports:
            if report.failed:
                log.warning(
                    f"[STARTUP] {report.failed} {report.representation} write(s) failed",
                    extra=report.as_dict(),
                )
        results = self.run_full_sweep(scales, persist=persist)
        log.info("[STARTUP] Completed", extra={"trials": len(results)})
        return results


__all__ = ["BenchmarkService"]
