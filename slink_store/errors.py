"""
Error taxonomy for Slink Store.

Every storage backend translates its driver exceptions into these types at the
backend boundary, so callers can decide between retrying (``Duplicate`` on a
generated code) and failing permanently (``QueryError`` / ``StoreConnectionError``).

Digest-based dedup is *not* an error: a repeated URL comes back as
``Outcome.EXISTING`` from ``upsert``.

LLM Prompt Example:
    "Show how a small exception hierarchy lets a service distinguish a
    retryable uniqueness collision from a permanent store failure."
"""

from typing import Optional

__all__ = [
    "StorageError",
    "NotFound",
    "Duplicate",
    "StoreConnectionError",
    "QueryError",
    "MigrationError",
]


class StorageError(Exception):
    """Base class for all storage-layer failures."""


class NotFound(StorageError):
    """Lookup target is absent from every namespace."""

    def __init__(self, what: str = "record", key: Optional[object] = None):
        self.what = what
        self.key = key
        msg = f"{what} not found" if key is None else f"{what} not found: {key!r}"
        super().__init__(msg)


class Duplicate(StorageError):
    """
    Uniqueness violation on a public code.

    Attributes:
        field: "code" when the value is already taken as a canonical code,
               "alias_code" when it is already taken as an alias.
        value: the offending code.
    """

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"duplicate {field}: {value!r}")


class StoreConnectionError(StorageError):
    """Store is unreachable or not configured."""


class QueryError(StorageError):
    """Any other store-level failure."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        detail = type(cause).__name__ if cause is not None else "unknown error"
        super().__init__(f"{operation} failed: {detail}")


class MigrationError(StorageError):
    """Schema setup failed."""
