from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import List

import pytest

from layout_bench.domain.errors import StorageError
from layout_bench.domain.models import RawRecord, Representation, Variant
from layout_bench.generator import generate, populate
from layout_bench.runner import (
    COMPLEX_TRIAL,
    BenchmarkRunner,
    persist_results,
    sweep_payload,
    validate_scales,
)
from layout_bench.storage.memory import InMemoryBackend


SEEDED_RECORDS = 500  # matches the seeded_backend fixture
SWEEP_SCALES = [1_000, 10_000]


class _FailingFetchBackend(InMemoryBackend):
    """Raises StorageError for selected (representation, limit) fetches."""

    def __init__(self, failures: set) -> None:
        super().__init__()
        self.failures = failures
        self.calls: List[tuple] = []

    def fetch(self, representation: Representation, limit: int) -> List[RawRecord]:
        representation = Representation(representation)
        self.calls.append((representation.value, limit))
        if (representation.value, limit) in self.failures:
            raise StorageError("connection reset", "fetch", representation.value)
        return super().fetch(representation, limit)


class _OverlapProbeBackend(InMemoryBackend):
    """Records the highest number of fetches in flight at once."""

    def __init__(self) -> None:
        super().__init__()
        self.in_flight = 0
        self.max_in_flight = 0

    def fetch(self, representation: Representation, limit: int) -> List[RawRecord]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            return super().fetch(representation, limit)
        finally:
            self.in_flight -= 1


def test_benchmark_reports_requested_and_returned(quiet_runner: BenchmarkRunner) -> None:
    result = quiet_runner.benchmark(Representation.FLAT, 100)

    assert result["representation"] == "flat"
    assert result["count_requested"] == 100
    assert result["records_returned"] == 100
    assert result["decode_failures"] == 0
    assert result["duration_seconds"] >= 0
    assert isinstance(result["duration_ms"], int)
    assert "error" not in result


def test_benchmark_accepts_string_representation(quiet_runner: BenchmarkRunner) -> None:
    assert quiet_runner.benchmark("document", 10)["representation"] == "document"


def test_sweep_with_fewer_records_than_scale_returns_stored_count(
    quiet_runner: BenchmarkRunner,
) -> None:
    results = quiet_runner.run(SWEEP_SCALES)

    assert len(results) == len(SWEEP_SCALES) * 3
    for result in results:
        assert result.get("error") is None
        assert result["records_returned"] == SEEDED_RECORDS


def test_sweep_runs_scales_in_order_flat_document_complex(quiet_runner: BenchmarkRunner) -> None:
    results = quiet_runner.run([30, 10])

    assert [(r["scale"], r["representation"]) for r in results] == [
        (30, "flat"),
        (30, "document"),
        (30, COMPLEX_TRIAL),
        (10, "flat"),
        (10, "document"),
        (10, COMPLEX_TRIAL),
    ]
    assert [r["records_returned"] for r in results] == [30, 30, 30, 10, 10, 10]


def test_sweep_without_complex_trials(quiet_runner: BenchmarkRunner) -> None:
    results = quiet_runner.run([5], include_complex=False)
    assert [r["representation"] for r in results] == ["flat", "document"]


def test_fetch_failure_is_isolated_to_its_trial() -> None:
    backend = _FailingFetchBackend(failures={("flat", 10)})
    populate(backend, Variant.SIMPLE, Representation.FLAT, 20)
    populate(backend, Variant.COMPLEX, Representation.DOCUMENT, 20)
    runner = BenchmarkRunner(backend, sample_memory=False)

    results = runner.run([10, 20])

    failed = [r for r in results if r.get("error")]
    assert len(failed) == 1
    assert failed[0]["scale"] == 10
    assert failed[0]["representation"] == "flat"
    assert "connection reset" in failed[0]["error"]
    assert failed[0]["records_returned"] == 0
    # everything after the failure still ran
    assert backend.calls == [
        ("flat", 10),
        ("document", 10),
        ("document", 10),
        ("flat", 20),
        ("document", 20),
        ("document", 20),
    ]
    assert [r["records_returned"] for r in results if not r.get("error")] == [10, 10, 20, 20, 20]


def test_single_benchmark_propagates_storage_error() -> None:
    backend = _FailingFetchBackend(failures={("document", 5)})
    runner = BenchmarkRunner(backend, sample_memory=False)

    with pytest.raises(StorageError):
        runner.benchmark(Representation.DOCUMENT, 5)
    with pytest.raises(StorageError):
        runner.benchmark_complex(5)


def test_trials_never_overlap() -> None:
    backend = _OverlapProbeBackend()
    populate(backend, Variant.COMPLEX, Representation.DOCUMENT, 10)
    BenchmarkRunner(backend, sample_memory=False).run([5, 10])

    assert backend.max_in_flight == 1


def test_complex_trial_reports_dropped_documents() -> None:
    backend = InMemoryBackend()
    populate(backend, Variant.COMPLEX, Representation.DOCUMENT, 4)
    backend.insert(Representation.DOCUMENT, '{"profile": {"bio": "trunc')
    runner = BenchmarkRunner(backend, sample_memory=False)

    result = runner.benchmark_complex(10)

    assert result["representation"] == COMPLEX_TRIAL
    assert result["records_returned"] == 5
    assert result["records_processed"] == 4
    assert result["records_dropped"] == 1
    assert result["records_processed"] < result["records_returned"]
    assert set(result["processing_details"]) == {
        "engagement_calculation",
        "tag_analysis",
        "achievement_aggregation",
        "text_analysis",
    }


def test_malformed_document_counts_as_decode_failure_in_document_trial() -> None:
    backend = InMemoryBackend()
    backend.insert(Representation.DOCUMENT, generate(1, Variant.SIMPLE, Representation.DOCUMENT))
    backend.insert(Representation.DOCUMENT, "not json at all")
    runner = BenchmarkRunner(backend, sample_memory=False)

    result = runner.benchmark(Representation.DOCUMENT, 10)

    assert result["records_returned"] == 2
    assert result["decode_failures"] == 1


def test_empty_backend_returns_zero_records() -> None:
    runner = BenchmarkRunner(InMemoryBackend(), sample_memory=False)
    result = runner.benchmark_complex(100)

    assert result["records_returned"] == 0
    assert result["records_processed"] == 0


@pytest.mark.parametrize("bad", [[], [0], [10, -1], [True], [1.5]])
def test_invalid_scales_are_rejected(bad) -> None:
    with pytest.raises(ValueError):
        validate_scales(bad)


def test_non_positive_count_is_rejected(quiet_runner: BenchmarkRunner) -> None:
    with pytest.raises(ValueError):
        quiet_runner.benchmark(Representation.FLAT, 0)


def test_persist_results_writes_latest_and_archive(tmp_path: Path) -> None:
    payload = sweep_payload("memory", [1], [{"representation": "flat", "records_returned": 1}])

    archive = persist_results(payload, tmp_path / "results")

    latest = tmp_path / "results" / "latest.json"
    assert latest.exists()
    assert archive.exists()
    assert archive.name.startswith("run-")
    assert json.loads(latest.read_text(encoding="utf-8"))["backend"] == "memory"


def test_runner_with_memory_sampling_reports_peak_rss(seeded_backend: InMemoryBackend) -> None:
    result = BenchmarkRunner(seeded_backend).benchmark(Representation.FLAT, 50)

    assert result["peak_rss_bytes"] is not None
    assert result["peak_rss_bytes"] > 0


def test_sweep_completes_with_mixed_timestamp_forms() -> None:
    backend = InMemoryBackend()
    populate(backend, Variant.SIMPLE, Representation.FLAT, 3)
    for created_at in (datetime(2025, 1, 1), "2025-01-01T00:00:00+00:00"):
        row = generate(9, Variant.SIMPLE, Representation.FLAT)
        row["created_at"] = created_at
        backend.insert(Representation.FLAT, row)

    results = BenchmarkRunner(backend, sample_memory=False).run([10], include_complex=False)

    assert [r.get("error") for r in results] == [None, None]
    assert results[0]["records_returned"] == 5
    assert results[0]["decode_failures"] == 0
