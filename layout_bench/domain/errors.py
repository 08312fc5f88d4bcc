"""
Error taxonomy for the storage layout benchmark.

StorageError covers any read or write failure against a backend; ParseError is
raised when a stored record cannot be decoded into its structured form.
"""

from __future__ import annotations

from typing import Optional


class LayoutBenchError(Exception):
    """Base class for errors raised by this package."""


class StorageError(LayoutBenchError):
    """
    A backend write or read failed.

    Parameters
    ----------
    message : str
        Human readable cause.
    operation : str | None
        Backend operation that failed (``insert``, ``fetch``, ``clear`` ...).
    representation : str | None
        Storage representation the operation targeted.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        representation: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.representation = representation


class ParseError(LayoutBenchError):
    """A fetched record could not be decoded into the expected structure."""


__all__ = ["LayoutBenchError", "StorageError", "ParseError"]
