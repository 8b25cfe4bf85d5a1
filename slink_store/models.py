"""
Data model for Slink Store.

Records are frozen dataclasses: once a canonical URL, alias or bloom snapshot
has been read from a backend it is an immutable value. Backends never hand out
references to their internal state.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple


class Outcome(enum.Enum):
    """Result of a canonical upsert."""

    CREATED = "created"
    EXISTING = "existing"


@dataclass(frozen=True)
class UrlRecord:
    """
    One canonical stored URL.

    Attributes:
        id: store-assigned integer, the handle aliases point at.
        code: short public code, unique across canonical records.
        url: original URL, never mutated.
        content_digest: SHA-256 of ``url``, unique across canonical records.
    """

    id: int
    code: str
    url: str
    content_digest: bytes


@dataclass(frozen=True)
class AliasRecord:
    alias_code: str
    target_id: int


@dataclass(frozen=True)
class BloomSnapshot:
    """Serialized filter payload plus the time it was last written (UTC)."""

    name: str
    data: bytes
    updated_at: datetime


class UpsertResult(NamedTuple):
    outcome: Outcome
    record: UrlRecord

    @property
    def created(self) -> bool:
        return self.outcome is Outcome.CREATED
