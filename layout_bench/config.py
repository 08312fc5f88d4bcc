"""
Configuration settings for the storage layout benchmark.

Uses Pydantic Settings to load environment variables for the database
connection, logging, and the default benchmark sweep.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SCALES = [1_000, 10_000, 50_000, 100_000]


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("structure_comparison", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(0, alias="DB_STATEMENT_TIMEOUT_MS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    storage_backend: str = Field("postgres", alias="STORAGE_BACKEND")
    results_dir: str = Field("results", alias="RESULTS_DIR")

    # Benchmark defaults
    benchmark_scales: List[int] = Field(default_factory=lambda: list(DEFAULT_SCALES), alias="BENCHMARK_SCALES")
    generate_count: int = Field(100_000, alias="GENERATE_COUNT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("benchmark_scales")
    @classmethod
    def _scales_positive(cls, value: List[int]) -> List[int]:
        if not value or any(scale <= 0 for scale in value):
            raise ValueError("benchmark scales must be a non-empty list of positive integers")
        return value

    @field_validator("storage_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("postgres", "memory"):
            raise ValueError(f"Unknown storage backend '{value}'. Available: postgres, memory")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["DEFAULT_SCALES", "Settings", "get_settings"]
