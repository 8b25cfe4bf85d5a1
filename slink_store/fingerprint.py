"""
Content fingerprinting for URLs.

The digest is the dedup key of the canonical namespace: SHA-256 over the UTF-8
bytes of the URL, exactly as submitted (no normalization). Lone surrogates are
encoded as-is ("surrogatepass"), so every str has a digest.
"""

import hashlib

DIGEST_SIZE = 32


def fingerprint(url: str) -> bytes:
    """Return the 32-byte SHA-256 digest of ``url``."""
    return hashlib.sha256(url.encode("utf-8", "surrogatepass")).digest()


def fingerprint_hex(url: str) -> str:
    return fingerprint(url).hex()
