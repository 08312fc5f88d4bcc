"""
Storage layout benchmark - flat columns versus serialized documents.

Measures how long it takes to fetch and decode increasing numbers of user
records stored either one attribute per column or as one JSON document per
record, and what deriving analytics from the nested document form costs:

- deterministic synthetic records (simple and complex variants)
- timed fetch trials per representation and scale, run strictly in sequence
- an analytics transform that tolerates partial documents
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from layout_bench.analytics import ProcessingOutcome, process, transform
from layout_bench.config import Settings, get_settings
from layout_bench.domain.errors import ParseError, StorageError
from layout_bench.domain.models import Representation, Variant
from layout_bench.generator import GenerationReport, generate, populate, synthesize
from layout_bench.runner import BenchmarkRunner, TrialResult
from layout_bench.service import BenchmarkService
from layout_bench.storage import InMemoryBackend, StorageBackend, create_backend
from layout_bench.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "ParseError",
    "Representation",
    "StorageError",
    "Variant",
    # Generation
    "GenerationReport",
    "generate",
    "populate",
    "synthesize",
    # Benchmarking
    "BenchmarkRunner",
    "BenchmarkService",
    "TrialResult",
    # Analytics
    "ProcessingOutcome",
    "process",
    "transform",
    # Storage
    "InMemoryBackend",
    "StorageBackend",
    "create_backend",
    # Logging
    "configure_logging",
    "get_logger",
]
