"""Error types raised by criteria resolution, storage and store-backed contexts."""

from __future__ import annotations


class DocqError(Exception):
    """Base class for docq errors."""


class InvalidCriteriaError(DocqError, ValueError):
    """Raised when a criteria or query argument is malformed."""


class StorageError(DocqError, RuntimeError):
    """Raised when the backing store cannot be read or written."""


class DocumentNotFoundError(DocqError, LookupError):
    """Raised when a document id does not exist in the store."""


__all__ = [
    "DocqError",
    "DocumentNotFoundError",
    "InvalidCriteriaError",
    "StorageError",
]
