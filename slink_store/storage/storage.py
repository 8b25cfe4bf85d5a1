"""
Storage module for Slink Store (in-memory implementation).

Responsibilities:
    - Keep canonical records keyed by content digest, with a code index
    - Keep the alias namespace separately, pointing at canonical ids
    - Resolve codes through an explicit merge of both namespaces
    - Persist opaque bloom snapshots by name

Design:
    - This is an in-memory reference implementation that satisfies the BaseStorage contract.
    - A single lock makes every write one atomic step, which plays the role the
      unique indexes play in the SQL backends: concurrent upserts of the same URL
      serialize and exactly one of them creates the record.
    - Useful for unit tests and single-process tools; swap for SQLite/Postgres in production.

LLM Prompt Example:
    "Explain how this in-memory storage can be swapped for a database-backed layer
     (SQLite/Postgres) without changing the manager or CLI code, by adhering to a
     narrow, explicit BaseStorage interface."
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..errors import Duplicate, NotFound
from ..fingerprint import fingerprint
from ..models import BloomSnapshot, Outcome, UpsertResult, UrlRecord
from .base import BaseStorage, check_window

log = logging.getLogger(__name__)


class Storage(BaseStorage):
    def __init__(self):
        """
        Initialize empty in-memory tables.

        Internal schema:
            self._by_digest = {content_digest: UrlRecord}
            self._by_code   = {code: UrlRecord}
            self._by_id     = {id: UrlRecord}
            self._aliases   = {alias_code: target_id}   (dict keeps insertion order)
            self._snapshots = {name: BloomSnapshot}
        """
        self._lock = threading.Lock()
        self._next_id = 1
        self._by_digest: Dict[bytes, UrlRecord] = {}
        self._by_code: Dict[str, UrlRecord] = {}
        self._by_id: Dict[int, UrlRecord] = {}
        self._aliases: Dict[str, int] = {}
        self._snapshots: Dict[str, BloomSnapshot] = {}

    # ---- Canonical store ---------------------------------------------------

    def upsert(self, code: str, url: str) -> UpsertResult:
        """
        Insert-or-return-existing by content digest.

        Rules:
            - Same digest already stored -> (EXISTING, stored record); `code` ignored.
            - `code` used by another canonical record or by an alias -> Duplicate.
            - Otherwise assign the next id and store.
        """
        digest = fingerprint(url)
        with self._lock:
            existing = self._by_digest.get(digest)
            if existing is not None:
                return UpsertResult(Outcome.EXISTING, existing)
            if code in self._by_code or code in self._aliases:
                raise Duplicate("code", code)

            record = UrlRecord(id=self._next_id, code=code, url=url, content_digest=digest)
            self._next_id += 1
            self._by_digest[digest] = record
            self._by_code[code] = record
            self._by_id[record.id] = record

        log.debug("memory upsert created id=%s code=%s", record.id, code)
        return UpsertResult(Outcome.CREATED, record)

    def lookup_by_digest(self, url: str) -> UrlRecord:
        record = self._by_digest.get(fingerprint(url))
        if record is None:
            raise NotFound("url", url)
        return record

    def list_codes(self, offset: int = 0, limit: int = 100) -> List[str]:
        check_window(offset, limit)
        with self._lock:
            # ids are assigned in insertion order, so sorting by id is insertion order
            codes = [r.code for r in sorted(self._by_id.values(), key=lambda r: r.id)]
            codes.extend(self._aliases)
        return codes[offset:offset + limit]

    # ---- Alias index -------------------------------------------------------

    def add_alias(self, alias_code: str, target_id: int) -> None:
        with self._lock:
            if alias_code in self._aliases:
                raise Duplicate("alias_code", alias_code)
            if alias_code in self._by_code:
                raise Duplicate("code", alias_code)
            if target_id not in self._by_id:
                raise NotFound("target id", target_id)
            self._aliases[alias_code] = target_id

    # ---- Resolver ----------------------------------------------------------

    def resolve(self, code: str) -> str:
        """
        Merge step over both namespaces; canonical codes take precedence.

        LLM Prompt Example:
            "Discuss adding a small cache layer (e.g., LRU or Redis) in front of this call
             to reduce read latency under heavy redirect traffic."
        """
        record = self._by_code.get(code)
        if record is not None:
            return record.url
        target_id = self._aliases.get(code)
        if target_id is not None:
            return self._by_id[target_id].url
        raise NotFound("code", code)

    # ---- Bloom snapshots ---------------------------------------------------

    def get_bloom_snapshot(self, name: str) -> Optional[BloomSnapshot]:
        return self._snapshots.get(name)

    def save_bloom_snapshot(self, name: str, data: bytes) -> None:
        snapshot = BloomSnapshot(name=name, data=bytes(data), updated_at=datetime.now(timezone.utc))
        # single dict assignment: a concurrent reader sees the old or the new snapshot, never a mix
        self._snapshots[name] = snapshot
