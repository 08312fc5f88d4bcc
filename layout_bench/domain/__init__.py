"""
Domain package for the storage layout benchmark.

Exports the record models, the representation codecs and the error taxonomy.
Keep this package focused on data definitions and validation concerns.
"""

from layout_bench.domain.errors import LayoutBenchError, ParseError, StorageError
from layout_bench.domain.models import (
    ComplexUser,
    Representation,
    SimpleUser,
    User,
    Variant,
    from_document,
    from_flat_row,
    to_document,
    to_flat_row,
)

__all__ = [
    "ComplexUser",
    "LayoutBenchError",
    "ParseError",
    "Representation",
    "SimpleUser",
    "StorageError",
    "User",
    "Variant",
    "from_document",
    "from_flat_row",
    "to_document",
    "to_flat_row",
]
