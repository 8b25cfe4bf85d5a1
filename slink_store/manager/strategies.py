"""
Strategies for short-code generation in slink_store.

The storage core never generates codes; it only enforces that they are unique
and reports `Duplicate` when one is taken. These strategies are the default
generators the manager draws from (and draws again from after a collision).

Provided strategies:
- RandomStrategy: nanoid-style random Base62 of length L (default CODE_LENGTH, 7)
- SequentialStrategy: Bitly-like monotonically increasing integer -> Base62, with optional left-pad and prefix

Configuration (via slink_store.config.settings):
- CODE_STRATEGY: "random" (default) or "sequential"
- CODE_LENGTH: default length for random codes (clamped 4..32)
- SEQ_START / CODE_MIN_LENGTH / SHARD_PREFIX: sequential knobs

Notes:
- RandomStrategy relies on storage-level uniqueness (unique index + caller retry).
- SequentialStrategy is collision-free within one process only; several processes
  need distinct SHARD_PREFIX values or the manager's retry loop will be busy.
"""

import itertools
import logging
import secrets
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional, Type

from slink_store.config import settings

log = logging.getLogger(__name__)

_BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
_BASE62_BASE = len(_BASE62_ALPHABET)


def _base62_encode(num: int) -> str:
    """
    Convert a non-negative integer to a Base62 string using the global alphabet.
    0 -> "0", 61 -> "Z", 62 -> "10"
    """
    if num < 0:
        raise ValueError("num must be non-negative")
    if num == 0:
        return "0"
    out = []
    while num > 0:
        num, rem = divmod(num, _BASE62_BASE)
        out.append(_BASE62_ALPHABET[rem])
    return "".join(reversed(out))


def _safe_len(length: Optional[int]) -> int:
    """Resolve desired code length from arg or config, clamped to [4, 32]."""
    L = int(length) if length is not None else int(settings.CODE_LENGTH)
    return max(4, min(32, L))


class BaseStrategy(ABC):
    """Abstract base for code generation strategies."""

    @abstractmethod
    def generate(self, *, length: Optional[int] = None) -> str:
        """Return a fresh candidate code. Uniqueness is checked by the store, not here."""
        raise NotImplementedError

    def __call__(self) -> str:
        return self.generate()


@dataclass(frozen=True)
class RandomStrategy(BaseStrategy):
    """Random Base62 codes drawn from the OS CSPRNG."""

    length: Optional[int] = None

    def generate(self, *, length: Optional[int] = None) -> str:
        L = _safe_len(length if length is not None else self.length)
        return "".join(secrets.choice(_BASE62_ALPHABET) for _ in range(L))


@dataclass
class SequentialStrategy(BaseStrategy):
    """
    Bitly-like sequential strategy:
    - Maintains a process-local monotonically increasing counter
    - Encodes next integer to Base62
    - Enforces minimum visible length via left-padding (e.g., "000abc")
    - Optionally prepends a shard/region prefix (e.g., "ap000abc")
    """

    start: int = 3_500_000
    min_length: int = 6
    prefix: str = ""
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    _counter: "itertools.count[int]" = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # Instantiate the counter at runtime so forked processes do not share the same iterator object.
        self._counter = itertools.count(self.start)

    def generate(self, *, length: Optional[int] = None) -> str:
        # length is intentionally ignored; sequential growth is natural; min_length is enforced.
        with self._lock:
            n = next(self._counter)
        code = _base62_encode(n).rjust(self.min_length, "0")
        return f"{self.prefix}{code}" if self.prefix else code


STRATEGY_REGISTRY: Dict[str, Type[BaseStrategy]] = {
    "random": RandomStrategy,
    "rand": RandomStrategy,
    "nanoid": RandomStrategy,
    "sequential": SequentialStrategy,
    "seq": SequentialStrategy,
    "bitly": SequentialStrategy,
}


def get_strategy_from_config(name: Optional[str] = None) -> BaseStrategy:
    """
    Resolve the active strategy from parameter or settings.CODE_STRATEGY.

    Raises:
        ValueError: unknown strategy name.
    """
    key = (name or settings.CODE_STRATEGY or "random").strip().lower()
    cls = STRATEGY_REGISTRY.get(key)
    if cls is None:
        raise ValueError(f"Unknown code strategy: {key!r}")
    log.debug("using code strategy %s -> %s", key, cls.__name__)

    if cls is SequentialStrategy:
        return SequentialStrategy(
            start=settings.SEQ_START,
            min_length=settings.CODE_MIN_LENGTH,
            prefix=settings.SHARD_PREFIX,
        )
    return RandomStrategy(length=settings.CODE_LENGTH)
