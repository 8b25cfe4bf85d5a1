"""
Base storage interface for Slink Store.

Purpose:
    Define a small, stable contract that every backend (in-memory, SQLite,
    PostgreSQL) implements, so the manager and the CLI never care where data
    lives.

    The contract covers four concerns:
        - canonical store   : upsert / lookup_by_digest / list_codes
        - alias index       : add_alias
        - resolver          : resolve (canonical + alias namespaces, canonical wins)
        - bloom snapshots   : load / save / get opaque filter payloads

Errors:
    Backends raise only the types in ``slink_store.errors``. A repeated URL is
    not an error; it comes back as ``Outcome.EXISTING``.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.

LLM Prompt Example:
    "Show how a narrow, explicit storage interface enables dependency
    injection and easy backend swapping without touching service code."
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import BloomSnapshot, UpsertResult, UrlRecord


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    def migrate(self) -> None:
        """
        Create the schema if it does not exist yet. Idempotent.

        Backends without a schema (in-memory) keep this no-op.
        """

    # ---- Canonical store ---------------------------------------------------

    @abstractmethod  # pragma: no cover
    def upsert(self, code: str, url: str) -> UpsertResult:
        """
        Insert ``url`` under ``code`` unless its content digest is already stored.

        Returns:
            UpsertResult: (Outcome.CREATED, new record) or
                          (Outcome.EXISTING, the stored record; ``code`` is discarded).

        Raises:
            Duplicate: ``code`` is already used by a different URL or by an alias.
            QueryError: any other store failure.

        LLM Prompt Example:
            "Design an idempotent insert API on top of a single conditional
            write (INSERT ... ON CONFLICT DO NOTHING RETURNING) plus a fallback read."
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def lookup_by_digest(self, url: str) -> UrlRecord:
        """
        Return the canonical record whose content digest matches ``url``.

        Raises:
            NotFound: the URL has never been stored.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_codes(self, offset: int = 0, limit: int = 100) -> List[str]:
        """
        Page through canonical and alias codes combined.

        Order is canonical codes by id, then alias codes by insertion order.
        """
        raise NotImplementedError

    # ---- Alias index -------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def add_alias(self, alias_code: str, target_id: int) -> None:
        """
        Register ``alias_code`` as another public name for canonical record ``target_id``.

        Raises:
            Duplicate: the alias already exists, or collides with a canonical code.
            NotFound: ``target_id`` does not exist.
        """
        raise NotImplementedError

    # ---- Resolver ----------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def resolve(self, code: str) -> str:
        """
        Return the original URL for a canonical or alias code.

        Raises:
            NotFound: the code is in neither namespace.
        """
        raise NotImplementedError

    # ---- Bloom snapshots ---------------------------------------------------

    @abstractmethod  # pragma: no cover
    def get_bloom_snapshot(self, name: str) -> Optional[BloomSnapshot]:
        """Return the stored snapshot (payload + updated_at) or None."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def save_bloom_snapshot(self, name: str, data: bytes) -> None:
        """Replace the snapshot stored under ``name`` (last writer wins)."""
        raise NotImplementedError

    def load_bloom_snapshot(self, name: str) -> Optional[bytes]:
        """Return the stored payload, or None when nothing was ever saved under ``name``."""
        snapshot = self.get_bloom_snapshot(name)
        return snapshot.data if snapshot is not None else None


def check_window(offset: int, limit: int) -> None:
    """Reject negative pagination arguments before they reach a backend."""
    if offset < 0 or limit < 0:
        raise ValueError("offset and limit must be non-negative")
