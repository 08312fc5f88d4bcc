from time import sleep

import pytest
from pydantic import ValidationError

from layout_bench import config
from layout_bench.utils import profiler


def test_get_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DB_HOST", "DB_PORT", "DB_NAME", "BENCHMARK_SCALES", "STORAGE_BACKEND"):
        monkeypatch.delenv(name, raising=False)
    settings = config.Settings(_env_file=None)
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_name == "structure_comparison"
    assert settings.benchmark_scales == [1_000, 10_000, 50_000, 100_000]
    assert settings.generate_count > 0
    assert settings.storage_backend == "postgres"


def test_settings_read_scales_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BENCHMARK_SCALES", "[5, 50]")
    monkeypatch.setenv("STORAGE_BACKEND", "Memory")

    settings = config.get_settings()

    assert settings.benchmark_scales == [5, 50]
    assert settings.storage_backend == "memory"


def test_settings_reject_bad_values() -> None:
    with pytest.raises(ValidationError):
        config.Settings(benchmark_scales=[100, 0])
    with pytest.raises(ValidationError):
        config.Settings(storage_backend="sqlite")


def test_get_settings_is_cached() -> None:
    assert config.get_settings() is config.get_settings()


def test_profile_block_measures_time() -> None:
    with profiler.profile_block("sleep") as stats:
        sleep(0.05)
    assert stats.duration_seconds >= 0.05
    assert stats.duration_ms >= 50
    assert stats.peak_rss_bytes is not None
    if stats.cpu_percent is not None:
        assert isinstance(stats.cpu_percent, float)


def test_profile_block_without_sampling_skips_rss() -> None:
    with profiler.profile_block("quick", sample_memory=False) as stats:
        pass
    assert stats.peak_rss_bytes is None
    assert stats.end_ts >= stats.start_ts
