"""
Bloom filter used as a negative-lookup hint in front of the resolver.

The storage layer only ever sees the serialized bytes (``to_bytes``); this
module is the consumer side that builds, queries and decodes them. The bit
array and hashing come from ``pybloom_live``; the payload is its ``tofile``
format (header ``<dQQQQ``: error_rate, num_slices, bits_per_slice, capacity,
count, then the packed bits).
"""

import io
import struct
from typing import Iterable

import pybloom_live

MAX_HASH_COUNT = 64

_HEADER = struct.Struct(pybloom_live.BloomFilter.FILE_FMT)


class BloomFilter:
    """Fixed-capacity probabilistic set for membership checks.

    Adding past ``capacity`` raises ``IndexError`` (from pybloom_live).
    """

    def __init__(self, capacity: int, error_rate: float) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if error_rate <= 0 or error_rate >= 1:
            raise ValueError("error_rate must be between 0 and 1")
        self._bf = pybloom_live.BloomFilter(capacity=capacity, error_rate=error_rate)

    @property
    def capacity(self) -> int:
        return self._bf.capacity

    @property
    def size(self) -> int:
        """Number of bits."""
        return self._bf.num_bits

    @property
    def hash_count(self) -> int:
        return self._bf.num_slices

    def add(self, item: str) -> None:
        # skip_check keeps count equal to the number of adds
        self._bf.add(item, skip_check=True)

    def update(self, items: Iterable[str]) -> None:
        for item in items:
            self.add(item)

    def __contains__(self, item: str) -> bool:
        return item in self._bf

    def __len__(self) -> int:
        return self._bf.count

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self._bf.tofile(buf)
        return buf.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "BloomFilter":
        """Rebuild a filter from ``to_bytes`` output; ValueError on a malformed payload.

        The header is checked before pybloom_live sees it, since it derives
        one hash salt per slice and a corrupt slice count would stall here.
        """
        if len(data) < _HEADER.size:
            raise ValueError("bloom payload too short")
        error_rate, num_slices, bits_per_slice, capacity, count = _HEADER.unpack_from(data)
        if not 0 < error_rate < 1 or capacity == 0 or bits_per_slice == 0:
            raise ValueError("not a bloom filter payload")
        if not 1 <= num_slices <= MAX_HASH_COUNT:
            raise ValueError(f"bloom payload is corrupt: hash count {num_slices} out of range")
        if len(data) - _HEADER.size != (num_slices * bits_per_slice + 7) // 8:
            raise ValueError("bloom payload is corrupt: bit length mismatch")
        if count > capacity + 1:
            raise ValueError("bloom payload is corrupt: count exceeds capacity")

        bf = cls.__new__(cls)
        try:
            bf._bf = pybloom_live.BloomFilter.fromfile(io.BytesIO(data))
        except (ValueError, struct.error) as e:
            raise ValueError("bloom payload is corrupt") from e
        return bf
