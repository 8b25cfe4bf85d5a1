"""Unit tests for the bloom filter codec used as a negative-lookup hint."""

import pytest

from slink_store.bloom import MAX_HASH_COUNT, BloomFilter, _HEADER


def test_added_items_are_always_members():
    bf = BloomFilter(1000, 0.01)
    codes = [f"code{i}" for i in range(500)]
    bf.update(codes)
    assert all(c in bf for c in codes)
    assert len(bf) == 500


def test_false_positive_rate_is_in_the_right_ballpark():
    bf = BloomFilter(1000, 0.01)
    bf.update(f"in{i}" for i in range(1000))
    false_hits = sum(f"out{i}" in bf for i in range(10_000))
    assert false_hits < 500  # 5%, generous bound over the 1% target


def test_bytes_reconstruct_the_same_filter():
    bf = BloomFilter(200, 0.05)
    bf.update(["aaa111", "ccc333"])
    clone = BloomFilter.from_bytes(bf.to_bytes())
    assert "aaa111" in clone and "ccc333" in clone
    assert (clone.size, clone.hash_count, len(clone)) == (bf.size, bf.hash_count, 2)
    assert clone.to_bytes() == bf.to_bytes()


@pytest.mark.parametrize("payload", [b"", b"SLBF", b"XXXX" + b"\x00" * 40])
def test_malformed_payload_rejected(payload):
    with pytest.raises(ValueError):
        BloomFilter.from_bytes(payload)


def test_truncated_bits_rejected():
    data = BloomFilter(100, 0.01).to_bytes()
    with pytest.raises(ValueError, match="corrupt"):
        BloomFilter.from_bytes(data[:-1])


@pytest.mark.parametrize("capacity,error_rate", [(0, 0.01), (10, 0), (10, 1.0)])
def test_invalid_parameters(capacity, error_rate):
    with pytest.raises(ValueError):
        BloomFilter(capacity, error_rate)


def test_hash_count_out_of_range_rejected():
    good = BloomFilter(100, 0.01).to_bytes()
    fields = list(_HEADER.unpack_from(good))
    fields[1] = MAX_HASH_COUNT + 1  # num_slices
    bits_per_slice = fields[2]
    bad = _HEADER.pack(*fields) + bytes(((MAX_HASH_COUNT + 1) * bits_per_slice + 7) // 8)
    with pytest.raises(ValueError, match="hash count"):
        BloomFilter.from_bytes(bad)


def test_zero_hash_count_rejected():
    good = BloomFilter(100, 0.01).to_bytes()
    fields = list(_HEADER.unpack_from(good))
    fields[1] = 0
    with pytest.raises(ValueError):
        BloomFilter.from_bytes(_HEADER.pack(*fields))


def test_adding_past_capacity_raises_index_error():
    bf = BloomFilter(2, 0.01)
    with pytest.raises(IndexError):
        bf.update(f"c{i}" for i in range(10))
