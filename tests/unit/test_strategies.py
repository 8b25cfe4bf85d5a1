"""
Unit tests for slink_store.manager.strategies.

LLM Prompt Example:
    "Demonstrate tests that validate random and sequential code strategies,
    and explicitly cover Base62's zero edge-case."
"""

import re

import pytest

from slink_store.manager.strategies import (
    RandomStrategy,
    SequentialStrategy,
    _base62_encode,
    get_strategy_from_config,
)

BASE62_PATTERN = re.compile(r"^[0-9a-zA-Z]+$")


def test_random_strategy_length_charset_and_diversity():
    r = RandomStrategy(length=7)
    samples = [r.generate() for _ in range(200)]
    assert all(len(x) == 7 and BASE62_PATTERN.match(x) for x in samples)
    assert len(set(samples)) > 190


def test_random_strategy_length_is_clamped():
    r = RandomStrategy()
    assert len(r.generate(length=1)) == 4
    assert len(r.generate(length=99)) == 32


def test_strategies_are_zero_arg_callables():
    assert BASE62_PATTERN.match(RandomStrategy(length=5)())
    assert SequentialStrategy(start=0, min_length=4)() == "0000"


def test_sequential_uniqueness_and_padding():
    s = SequentialStrategy(start=1000, min_length=6)
    seen = set()
    for _ in range(5000):
        code = s.generate()
        assert len(code) >= 6
        assert code not in seen
        seen.add(code)


def test_sequential_prefix():
    s = SequentialStrategy(start=1000, min_length=6, prefix="ap")
    c = s.generate()
    assert c.startswith("ap")
    assert len(c) >= 2 + 6


def test_sequential_instances_do_not_share_counters():
    a = SequentialStrategy(start=10, min_length=4)
    b = SequentialStrategy(start=10, min_length=4)
    assert a.generate() == b.generate()


def test_base62_progression_sanity():
    assert _base62_encode(0) == "0"
    assert _base62_encode(61) == "Z"
    assert _base62_encode(62) == "10"
    with pytest.raises(ValueError):
        _base62_encode(-1)


def test_registry_resolution():
    assert isinstance(get_strategy_from_config("random"), RandomStrategy)
    assert isinstance(get_strategy_from_config("nanoid"), RandomStrategy)
    assert isinstance(get_strategy_from_config("Sequential"), SequentialStrategy)
    with pytest.raises(ValueError, match="Unknown code strategy"):
        get_strategy_from_config("sha256")
