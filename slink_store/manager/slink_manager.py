"""
SlinkManager module for Slink Store.

Responsibilities:
    - Validate URLs and aliases before they reach storage
    - Draw short codes from the configured strategy and upsert them
    - Own the retry policy on generated-code collisions (storage never retries)
    - Attach vanity aliases to canonical records
    - Resolve codes, short-circuiting definite misses through a loaded bloom filter
    - Rebuild and persist the bloom snapshot from the union code listing

Design notes:
    - Storage is an injected dependency; nothing here knows which backend runs.
    - Dedup is by content digest inside storage: shortening the same URL twice
      returns the same record, whatever code the second call drew.
    - A loaded bloom filter is owned by this manager until the next explicit
      `load_bloom`; codes written through this manager are added to it so its
      own writes never read back as misses.

LLM Prompt Example:
    "Explain how a service layer can keep retry policy for random short codes
    out of the storage layer, while the storage layer guarantees idempotent,
    race-free inserts through unique constraints."
"""

import logging
import re
from typing import Callable, Optional
from urllib.parse import urlparse

from ..bloom import BloomFilter
from ..config import settings
from ..errors import Duplicate, NotFound
from ..models import UrlRecord
from ..storage.base import BaseStorage
from .strategies import get_strategy_from_config

log = logging.getLogger(__name__)

Base62Pattern = re.compile(r"^[0-9a-zA-Z]+$")
MAX_ALIAS_LENGTH = 32

CodeStrategy = Callable[[], str]


class SlinkManager:
    """
    Coordinates creation, aliasing and lookup rules on top of a storage backend.

    LLM Prompt Example:
        "Show how DI enables swapping code strategies and storage backends
        without touching business logic."
    """

    def __init__(
        self,
        storage: BaseStorage,
        code_strategy: Optional[CodeStrategy] = None,
        max_attempts: Optional[int] = None,
    ):
        """
        Args:
            storage (BaseStorage): Backend storage instance.
            code_strategy (Optional[CodeStrategy]): zero-arg callable returning a fresh code.
                Defaults to the strategy named by SLINK_CODE_STRATEGY.
            max_attempts (Optional[int]): codes to try before giving up on collisions.
        """
        self.storage = storage
        self.code_strategy = code_strategy or get_strategy_from_config()
        self.max_attempts = max(1, max_attempts if max_attempts is not None else settings.MAX_CODE_ATTEMPTS)
        self.bloom: Optional[BloomFilter] = None

    # ---------------------------------------------------------------------
    # Validation Helpers
    # ---------------------------------------------------------------------
    def _validate_url(self, url: str) -> None:
        """
        Validate that a URL has an http/https scheme and a netloc.

        Raises:
            ValueError: If the URL is malformed.
        """
        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("Invalid URL format")
        try:
            url.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError("Invalid URL format") from e

    def _validate_alias(self, alias: str) -> None:
        """
        Validate alias characters and length (max 32, Base62 only).

        Raises:
            ValueError: If alias contains invalid characters or is too long.
        """
        if not Base62Pattern.match(alias):
            raise ValueError("Alias must contain only 0-9a-zA-Z")
        if len(alias) > MAX_ALIAS_LENGTH:
            raise ValueError("Alias too long")

    def _remember(self, code: str) -> None:
        if self.bloom is None:
            return
        try:
            self.bloom.add(code)
        except IndexError:
            # a full filter would report new codes as misses; fall back to storage
            log.warning("bloom filter at capacity (%d); dropped until next rebuild", self.bloom.capacity)
            self.bloom = None

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def shorten(self, url: str, alias: Optional[str] = None) -> UrlRecord:
        """
        Store a URL (or find it) and optionally attach a vanity alias.

        Rules:
            - Validate URL format (http/https, netloc) and the alias if given.
            - Draw a code and upsert. A repeated URL returns the stored record
              (its original code); the drawn code is simply discarded.
            - On Duplicate for the drawn code, draw again, up to `max_attempts`.
            - If `alias` is given, register it against the canonical record.

        Returns:
            UrlRecord: the canonical record for `url`.

        Raises:
            ValueError: invalid URL or alias.
            Duplicate: every drawn code collided, or the alias is taken.
        """
        self._validate_url(url)
        if alias is not None:
            self._validate_alias(alias)

        attempt = 0
        while True:
            attempt += 1
            code = self.code_strategy()
            try:
                outcome, record = self.storage.upsert(code, url)
            except Duplicate:
                log.warning("code collision on %r (attempt %d/%d)", code, attempt, self.max_attempts)
                if attempt >= self.max_attempts:
                    raise
                continue
            break
        log.info("shorten %s -> %s (%s)", url, record.code, outcome.value)
        self._remember(record.code)

        if alias is not None:
            self.storage.add_alias(alias, record.id)
            self._remember(alias)
        return record

    def add_alias(self, alias: str, code: str) -> None:
        """
        Attach `alias` to the canonical record behind canonical code `code`.

        Raises:
            ValueError: invalid alias.
            NotFound: `code` does not resolve.
            Duplicate: alias already taken in either namespace.
        """
        self._validate_alias(alias)
        url = self.storage.resolve(code)
        record = self.storage.lookup_by_digest(url)
        self.storage.add_alias(alias, record.id)
        self._remember(alias)

    def resolve(self, code: str) -> str:
        """
        Return the original URL for a canonical or alias code.

        With a bloom filter loaded, a definite miss raises NotFound without
        touching storage. A hit (possibly a false positive) always goes to storage.
        """
        if self.bloom is not None and code not in self.bloom:
            log.debug("bloom miss for %r", code)
            raise NotFound("code", code)
        return self.storage.resolve(code)

    # ---------------------------------------------------------------------
    # Bloom snapshot handling
    # ---------------------------------------------------------------------
    def load_bloom(self, name: Optional[str] = None) -> bool:
        """
        Load the named snapshot into memory.

        Returns False (and keeps resolving through storage only) when no
        snapshot was ever saved under that name.

        Raises:
            ValueError: the stored payload is not a valid filter.
        """
        name = name or settings.BLOOM_NAME
        data = self.storage.load_bloom_snapshot(name)
        if data is None:
            log.info("no bloom snapshot named %r", name)
            self.bloom = None
            return False
        self.bloom = BloomFilter.from_bytes(data)
        log.info("loaded bloom snapshot %r (%d codes)", name, len(self.bloom))
        return True

    def rebuild_bloom(
        self,
        name: Optional[str] = None,
        capacity: int = 100_000,
        error_rate: float = 0.01,
        page_size: int = 1000,
    ) -> int:
        """
        Build a filter over every canonical and alias code and save it as `name`.

        The filter is sized to at least the number of codes listed, so
        `capacity` is a floor, not a limit.

        Returns:
            int: number of codes added.
        """
        name = name or settings.BLOOM_NAME
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        codes = []
        offset = 0
        while True:
            page = self.storage.list_codes(offset=offset, limit=page_size)
            codes.extend(page)
            offset += len(page)
            if len(page) < page_size:
                break
        bf = BloomFilter(max(capacity, len(codes)), error_rate)
        bf.update(codes)
        self.storage.save_bloom_snapshot(name, bf.to_bytes())
        self.bloom = bf
        log.info("rebuilt bloom snapshot %r with %d codes", name, len(bf))
        return len(bf)
