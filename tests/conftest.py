"""
Pytest configuration for the storage layout benchmark.

Provides fixtures for:
- Settings overrides
- In-memory backends, empty and seeded
- PostgreSQL connectivity for integration tests
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest

from layout_bench.config import Settings, get_settings
from layout_bench.domain.models import Representation, Variant
from layout_bench.generator import populate
from layout_bench.runner import BenchmarkRunner
from layout_bench.storage.memory import InMemoryBackend

SEEDED_RECORDS = 500


@pytest.fixture(autouse=True)
def _fresh_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "structure_comparison"),
        log_level="DEBUG",
        benchmark_scales=[10, 50],
        generate_count=20,
    )


@pytest.fixture
def memory_backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture(scope="session")
def seeded_backend() -> InMemoryBackend:
    """
    Backend holding SEEDED_RECORDS simple flat rows and complex documents.

    Session scoped because seeding is the slow part; tests must not write to it.
    """
    backend = InMemoryBackend()
    populate(backend, Variant.SIMPLE, Representation.FLAT, SEEDED_RECORDS)
    populate(backend, Variant.COMPLEX, Representation.DOCUMENT, SEEDED_RECORDS)
    return backend


@pytest.fixture
def quiet_runner(seeded_backend: InMemoryBackend) -> BenchmarkRunner:
    """Runner over the seeded backend without the RSS sampling thread."""
    return BenchmarkRunner(seeded_backend, sample_memory=False)


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            conn.execute("SELECT 1;").fetchone()
        return True
    except psycopg.Error:
        return False
