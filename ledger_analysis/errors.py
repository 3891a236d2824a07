"""Exception types raised by ``ledger_analysis``.

Each error subclasses a builtin so callers can catch either the specific type
or the familiar ``ValueError``/``RuntimeError``.
"""

from __future__ import annotations


class RowParseError(ValueError):
    """A data row carries a value that is present but malformed."""


class UnknownDialectError(ValueError):
    """The CSV header does not match any supported bank export."""


class IngestionError(RuntimeError):
    """The payload could not be decoded or read; nothing was ingested."""


class FileValidationError(ValueError):
    """A file was rejected before its bytes were read (extension, size, empty)."""


class UnknownCategoryError(ValueError):
    """A category name outside the closed category set was supplied."""


__all__ = [
    "RowParseError",
    "UnknownDialectError",
    "IngestionError",
    "FileValidationError",
    "UnknownCategoryError",
]
