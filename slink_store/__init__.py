"""
slink_store package initializer.
"""

from . import manager
from . import storage
from .errors import Duplicate, NotFound, QueryError, StorageError, StoreConnectionError, MigrationError
from .fingerprint import fingerprint
from .models import AliasRecord, BloomSnapshot, Outcome, UpsertResult, UrlRecord

__version__ = "0.1.0"

__all__ = [
    "manager",
    "storage",
    "fingerprint",
    "Outcome",
    "UpsertResult",
    "UrlRecord",
    "AliasRecord",
    "BloomSnapshot",
    "StorageError",
    "NotFound",
    "Duplicate",
    "StoreConnectionError",
    "QueryError",
    "MigrationError",
]
