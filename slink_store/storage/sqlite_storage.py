"""
SQLiteStorage – SQLite-backed storage for Slink Store
=====================================================

Single-file durable backend. Same contract as the in-memory Storage and the
PostgreSQL DBStorage; uniqueness is enforced by SQLite unique indexes, not by
application locks, so several processes may share one database file.

Key Design Points
-----------------
- **Race-free upsert**: one conditional write
  (`INSERT ... ON CONFLICT(content_digest) DO NOTHING RETURNING id`) and a
  fallback read only when nothing was inserted.
- **Error translation**: `UNIQUE constraint failed: urls.code` becomes
  `Duplicate("code")`, `aliases.alias` becomes `Duplicate("alias_code")`,
  a foreign key failure on `aliases.target_id` becomes `NotFound`.
- **Two namespaces, one view**: `all_short_codes` unions canonical codes and
  aliases; `ns = 0` rows (canonical) win when resolving.
- **Connections**: short connection per call in autocommit mode, with
  `foreign_keys` switched on. A `":memory:"` database keeps one shared
  connection instead, since each new connection would see an empty database.

Example
-------
>>> storage = SQLiteStorage(":memory:")
>>> storage.migrate()
>>> storage.upsert("aaa111", "https://example.com").outcome
<Outcome.CREATED: 'created'>
>>> storage.resolve("aaa111")
'https://example.com'
"""

import contextlib
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import List, Optional

from ..errors import Duplicate, MigrationError, NotFound, QueryError, StoreConnectionError
from ..fingerprint import fingerprint
from ..models import BloomSnapshot, Outcome, UpsertResult, UrlRecord
from .base import BaseStorage, check_window

log = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS urls (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    code            TEXT    NOT NULL UNIQUE,
    url             TEXT    NOT NULL,
    content_digest  BLOB    NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS aliases (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    alias       TEXT    NOT NULL UNIQUE,
    target_id   INTEGER NOT NULL REFERENCES urls(id)
);

CREATE TABLE IF NOT EXISTS bloom_snapshots (
    name        TEXT PRIMARY KEY,
    data        BLOB NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE VIEW IF NOT EXISTS all_short_codes AS
    SELECT u.code AS code, u.url AS url, u.id AS target_id, 0 AS ns, u.id AS seq
      FROM urls u
    UNION ALL
    SELECT a.alias, u.url, a.target_id, 1, a.id
      FROM aliases a
      JOIN urls u ON u.id = a.target_id;
"""

_CODE_VIOLATION = "UNIQUE constraint failed: urls.code"
_ALIAS_VIOLATION = "UNIQUE constraint failed: aliases.alias"


class SQLiteStorage(BaseStorage):
    """SQLite implementation of the Slink storage contract.

    Parameters
    ----------
    path : str
        Database file, or ":memory:" for a private in-process database.
    timeout : float
        Seconds a writer waits on a locked database before failing.
    """

    def __init__(self, path: str, timeout: float = 30.0) -> None:
        self.path = path
        self.timeout = timeout
        self._shared: Optional[sqlite3.Connection] = None
        self._shared_lock = threading.Lock()
        if path == ":memory:":
            self._shared = self._open()

    # ---- Internal helpers -------------------------------------------------

    def _open(self) -> sqlite3.Connection:
        try:
            con = sqlite3.connect(
                self.path,
                timeout=self.timeout,
                isolation_level=None,
                check_same_thread=self.path != ":memory:",
            )
            con.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise StoreConnectionError(f"cannot open sqlite database {self.path!r}") from e
        return con

    @contextlib.contextmanager
    def _conn(self):
        """Yield a connection; per call for files, the shared one for ':memory:'."""
        if self._shared is not None:
            with self._shared_lock:
                yield self._shared
            return
        con = self._open()
        try:
            yield con
        finally:
            con.close()

    def _fetch_by_digest(self, con: sqlite3.Connection, digest: bytes) -> Optional[UrlRecord]:
        row = con.execute(
            "SELECT id, code, url, content_digest FROM urls WHERE content_digest = ? LIMIT 1",
            (digest,),
        ).fetchone()
        if row is None:
            return None
        return UrlRecord(id=row[0], code=row[1], url=row[2], content_digest=bytes(row[3]))

    # ---- Schema -----------------------------------------------------------

    def migrate(self) -> None:
        try:
            with self._conn() as con:
                if self._shared is None:
                    # WAL lets readers proceed while one writer commits
                    con.execute("PRAGMA journal_mode = WAL").fetchall()
                con.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise MigrationError(f"sqlite schema setup failed: {type(e).__name__}") from e
        log.info("sqlite schema ready at %s", self.path)

    # ---- Canonical store --------------------------------------------------

    def upsert(self, code: str, url: str) -> UpsertResult:
        """Conditional insert keyed on content digest, then fallback read.

        The `NOT EXISTS` guard keeps a canonical code from shadowing an alias.
        When nothing is inserted and the digest is still absent, the guard is
        what stopped the insert, so the code is reported as a duplicate.
        """
        digest = fingerprint(url)
        with self._conn() as con:
            try:
                # fetchall steps the statement to completion so autocommit fires here
                rows = con.execute(
                    """
                    INSERT INTO urls (code, url, content_digest)
                    SELECT ?, ?, ?
                     WHERE NOT EXISTS (SELECT 1 FROM aliases WHERE alias = ?)
                    ON CONFLICT (content_digest) DO NOTHING
                    RETURNING id
                    """,
                    (code, url, digest, code),
                ).fetchall()
            except sqlite3.IntegrityError as e:
                if _CODE_VIOLATION not in str(e):
                    raise QueryError("upsert", e) from e
                # same URL may have landed concurrently under this very code
                existing = self._fetch_by_digest(con, digest)
                if existing is None:
                    raise Duplicate("code", code) from e
                return UpsertResult(Outcome.EXISTING, existing)
            except sqlite3.Error as e:
                raise QueryError("upsert", e) from e

            if rows:
                new_id = rows[0][0]
                log.debug("sqlite upsert created id=%s code=%s", new_id, code)
                return UpsertResult(Outcome.CREATED, UrlRecord(id=new_id, code=code, url=url, content_digest=digest))

            try:
                existing = self._fetch_by_digest(con, digest)
            except sqlite3.Error as e:
                raise QueryError("upsert", e) from e
            if existing is None:
                raise Duplicate("code", code)
            return UpsertResult(Outcome.EXISTING, existing)

    def lookup_by_digest(self, url: str) -> UrlRecord:
        try:
            with self._conn() as con:
                record = self._fetch_by_digest(con, fingerprint(url))
        except sqlite3.Error as e:
            raise QueryError("lookup_by_digest", e) from e
        if record is None:
            raise NotFound("url", url)
        return record

    def list_codes(self, offset: int = 0, limit: int = 100) -> List[str]:
        check_window(offset, limit)
        try:
            with self._conn() as con:
                rows = con.execute(
                    "SELECT code FROM all_short_codes ORDER BY ns, seq LIMIT ? OFFSET ?",
                    (limit, offset),
                ).fetchall()
        except sqlite3.Error as e:
            raise QueryError("list_codes", e) from e
        return [r[0] for r in rows]

    # ---- Alias index ------------------------------------------------------

    def add_alias(self, alias_code: str, target_id: int) -> None:
        try:
            with self._conn() as con:
                cur = con.execute(
                    """
                    INSERT INTO aliases (alias, target_id)
                    SELECT ?, ?
                     WHERE NOT EXISTS (SELECT 1 FROM urls WHERE code = ?)
                    """,
                    (alias_code, target_id, alias_code),
                )
                inserted = cur.rowcount
        except sqlite3.IntegrityError as e:
            msg = str(e)
            if _ALIAS_VIOLATION in msg:
                raise Duplicate("alias_code", alias_code) from e
            if "FOREIGN KEY constraint failed" in msg:
                raise NotFound("target id", target_id) from e
            raise QueryError("add_alias", e) from e
        except sqlite3.Error as e:
            raise QueryError("add_alias", e) from e
        if inserted != 1:
            raise Duplicate("code", alias_code)

    # ---- Resolver ---------------------------------------------------------

    def resolve(self, code: str) -> str:
        try:
            with self._conn() as con:
                row = con.execute(
                    "SELECT url FROM all_short_codes WHERE code = ? ORDER BY ns LIMIT 1",
                    (code,),
                ).fetchone()
        except sqlite3.Error as e:
            raise QueryError("resolve", e) from e
        if row is None:
            raise NotFound("code", code)
        return row[0]

    # ---- Bloom snapshots --------------------------------------------------

    def get_bloom_snapshot(self, name: str) -> Optional[BloomSnapshot]:
        try:
            with self._conn() as con:
                row = con.execute(
                    "SELECT data, updated_at FROM bloom_snapshots WHERE name = ? LIMIT 1",
                    (name,),
                ).fetchone()
        except sqlite3.Error as e:
            raise QueryError("get_bloom_snapshot", e) from e
        if row is None:
            return None
        return BloomSnapshot(name=name, data=bytes(row[0]), updated_at=datetime.fromisoformat(row[1]))

    def save_bloom_snapshot(self, name: str, data: bytes) -> None:
        try:
            with self._conn() as con:
                con.execute(
                    """
                    INSERT INTO bloom_snapshots (name, data, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT (name) DO UPDATE SET
                        data = excluded.data,
                        updated_at = excluded.updated_at
                    """,
                    (name, bytes(data), datetime.now(timezone.utc).isoformat()),
                )
        except sqlite3.Error as e:
            raise QueryError("save_bloom_snapshot", e) from e
        log.info("bloom snapshot %r saved (%d bytes)", name, len(data))
