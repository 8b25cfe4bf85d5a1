"""
Global pytest fixtures for the Slink Store test suite.

Responsibilities:
    - Provide isolated in-memory Storage for direct unit testing
    - Provide a SlinkManager fixture wired to that storage with a predictable code strategy
    - Provide `any_storage`, parametrized over every backend available in this environment
      (memory, SQLite file, SQLite :memory:, and PostgreSQL when SLINK_DB_DSN is set)

LLM Prompt Example:
    "Show how to structure pytest fixtures so one contract test suite runs
    unchanged against in-memory, SQLite and PostgreSQL storage backends."
"""

import itertools
import os

import pytest

from slink_store.manager.slink_manager import SlinkManager
from slink_store.storage.sqlite_storage import SQLiteStorage
from slink_store.storage.storage import Storage

BACKENDS = ["memory", "sqlite-file", "sqlite-memory"] + (["postgres"] if os.getenv("SLINK_DB_DSN") else [])


def _fresh_postgres():
    import psycopg
    from slink_store.storage.db_storage import DBStorage

    dsn = os.environ["SLINK_DB_DSN"]
    storage = DBStorage(dsn)
    storage.migrate()
    with psycopg.connect(dsn, autocommit=True) as con:
        con.execute("TRUNCATE aliases, urls, bloom_snapshots RESTART IDENTITY CASCADE")
    return storage


def make_storage(backend: str, tmp_path):
    if backend == "memory":
        return Storage()
    if backend == "sqlite-file":
        s = SQLiteStorage(str(tmp_path / "slink.db"))
        s.migrate()
        return s
    if backend == "sqlite-memory":
        s = SQLiteStorage(":memory:")
        s.migrate()
        return s
    if backend == "postgres":
        return _fresh_postgres()
    raise ValueError(backend)


@pytest.fixture
def make_store(tmp_path):
    """Factory fixture: build a fresh, migrated storage for a backend name."""
    return lambda backend: make_storage(backend, tmp_path)


@pytest.fixture(params=BACKENDS)
def any_storage(request, tmp_path):
    """Fresh, migrated storage for each available backend."""
    return make_storage(request.param, tmp_path)


@pytest.fixture
def storage() -> Storage:
    """Fresh in-memory Storage backend."""
    return Storage()


class CountingCodes:
    """Predictable code strategy: c000001, c000002, ..."""

    def __init__(self, prefix: str = "c"):
        self._it = itertools.count(1)
        self.prefix = prefix

    def __call__(self) -> str:
        return f"{self.prefix}{next(self._it):06d}"


@pytest.fixture
def manager(storage: Storage) -> SlinkManager:
    """SlinkManager wired to the in-memory storage fixture with counting codes."""
    return SlinkManager(storage=storage, code_strategy=CountingCodes())
