"""Shared constants and the error taxonomy used across the dictionary engine."""

from __future__ import annotations

from typing import Tuple

import numpy as np

# Records are addressed with an 8-bit index; 255 is the largest index a
# dictionary file may declare.
MAX_RECORD_INDEX = 255
DEFAULT_ENCODING = "utf-8"
BACKING_DTYPES: Tuple[np.dtype, ...] = (
    np.dtype(np.uint8),
    np.dtype(np.uint16),
    np.dtype(np.uint32),
    np.dtype(np.uint64),
)


class DictionaryError(RuntimeError):
    """Base class for every error raised by the dictionary engine."""


class DictionaryIOError(DictionaryError):
    """Raised when a dictionary file cannot be read."""

    def __init__(self, path: object, reason: object) -> None:
        super().__init__(f"I/O error: unable to read {path}: {reason}")
        self.path = path


class DictionaryParseError(DictionaryError, ValueError):
    """Raised when a field literal fails integer conversion."""

    def __init__(self, field: str, literal: object, reason: object = None) -> None:
        message = f"Failed to parse integer for field {field!r}: {literal!r}"
        if reason is not None:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.field = field
        self.literal = literal


class DictionaryStructureError(DictionaryError, ValueError):
    """Raised when a document does not match the record schema."""


class TooManyRecordsError(DictionaryError):
    """Raised when a document declares more records than can be addressed."""

    def __init__(self, count: int, max_allowed: int = MAX_RECORD_INDEX) -> None:
        super().__init__(
            f"Too many records. Found {count}, max count is {max_allowed}."
        )
        self.count = count
        self.max_allowed = max_allowed


class AlreadyInitializedError(DictionaryError):
    """Raised when a store that already holds a dictionary is initialized again."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} dictionary already initialized")
        self.name = name


class FieldOverflowError(DictionaryError, ValueError):
    """Raised when a value does not fit in its field's bit width."""

    def __init__(self, field: str, value: int, width: int) -> None:
        super().__init__(
            f"Value {value} does not fit in field {field!r} of width {width} "
            f"(expected 0 <= value < {1 << width})"
        )
        self.field = field
        self.value = value
        self.width = width


class SchemaError(DictionaryError, ValueError):
    """Raised when a field or schema definition is invalid."""


__all__ = [
    "AlreadyInitializedError",
    "BACKING_DTYPES",
    "DEFAULT_ENCODING",
    "DictionaryError",
    "DictionaryIOError",
    "DictionaryParseError",
    "DictionaryStructureError",
    "FieldOverflowError",
    "MAX_RECORD_INDEX",
    "SchemaError",
    "TooManyRecordsError",
]
