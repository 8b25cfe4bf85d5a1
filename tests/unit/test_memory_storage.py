"""
Unit tests for the in-memory Storage module.

Covers the parts specific to the dict-backed implementation; the shared
contract runs against every backend in tests/integration/test_storage_contract.py.
"""

import pytest

from slink_store.errors import Duplicate, NotFound
from slink_store.fingerprint import fingerprint
from slink_store.models import Outcome


def test_ids_are_assigned_in_insertion_order(storage):
    _, a = storage.upsert("aaa111", "https://a.example")
    _, b = storage.upsert("bbb222", "https://b.example")
    assert (a.id, b.id) == (1, 2)


def test_existing_upsert_does_not_consume_an_id(storage):
    storage.upsert("aaa111", "https://a.example")
    storage.upsert("zzz999", "https://a.example")
    _, b = storage.upsert("bbb222", "https://b.example")
    assert b.id == 2


def test_record_carries_digest(storage):
    _, rec = storage.upsert("aaa111", "https://a.example")
    assert rec.content_digest == fingerprint("https://a.example")


def test_failed_upsert_leaves_no_trace(storage):
    storage.upsert("aaa111", "https://a.example")
    with pytest.raises(Duplicate):
        storage.upsert("aaa111", "https://b.example")
    with pytest.raises(NotFound):
        storage.lookup_by_digest("https://b.example")
    assert storage.list_codes() == ["aaa111"]


def test_canonical_code_cannot_reuse_alias_spelling(storage):
    _, rec = storage.upsert("aaa111", "https://a.example")
    storage.add_alias("promo", rec.id)
    with pytest.raises(Duplicate) as exc:
        storage.upsert("promo", "https://b.example")
    assert exc.value.field == "code"


def test_snapshot_payload_is_copied(storage):
    buf = bytearray(b"\x01\x02")
    storage.save_bloom_snapshot("f", buf)
    buf[0] = 0xFF
    assert storage.load_bloom_snapshot("f") == b"\x01\x02"


def test_upsert_returns_existing_outcome_enum(storage):
    storage.upsert("aaa111", "https://a.example")
    result = storage.upsert("bbb222", "https://a.example")
    assert result.outcome is Outcome.EXISTING
    assert result.created is False
