"""
Storage factory – switch storage backend from config (lazy env version)
======================================================================

This module centralizes selection of the storage backend (memory, SQLite,
PostgreSQL) so the rest of the app can stay ignorant of where data lives.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the PostgreSQL backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- SLINK_STORAGE_BACKEND: "memory" (default), "sqlite" or "postgres"
- SLINK_SQLITE_PATH:     database file if backend=="sqlite" (default "slink.db")
- SLINK_DB_DSN:          DSN string if backend=="postgres"
"""

from typing import Optional
import logging
import os

from slink_store.errors import StoreConnectionError
from slink_store.storage.base import BaseStorage
from slink_store.storage.storage import Storage

log = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory", "sqlite" or "postgres". If omitted, reads SLINK_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend: path="..." for sqlite, dsn="..." / connect=... for postgres.

    Returns
    -------
    BaseStorage

    Raises
    ------
    StoreConnectionError
        postgres selected without a DSN.
    ValueError
        Unknown backend name.
    """
    be = (backend or os.getenv("SLINK_STORAGE_BACKEND", "memory")).strip().lower()
    log.debug("selected storage backend: %r", be)

    if be == "memory":
        return Storage()

    if be == "sqlite":
        from slink_store.storage.sqlite_storage import SQLiteStorage

        path = kwargs.get("path") or os.getenv("SLINK_SQLITE_PATH", "slink.db")
        return SQLiteStorage(path)

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("SLINK_DB_DSN", "")
        if not dsn:
            raise StoreConnectionError("DB_DSN is required for postgres backend (env SLINK_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from slink_store.storage.db_storage import DBStorage

        return DBStorage(dsn=dsn, connect=kwargs.get("connect"))

    raise ValueError(f"Unknown storage backend: {be!r}")
