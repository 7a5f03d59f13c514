"""Hashing helpers for content addressing.

Blobs are addressed by the lowercase hex SHA-256 of their bytes.  A
deployment is addressed by the SHA-256 of its sorted blob digests joined
with commas, so filenames never take part in deployment identity.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Iterable

DIGEST_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def is_valid_digest(value: str) -> bool:
    """Whether *value* is a 64-character lowercase hex SHA-256 digest."""
    return isinstance(value, str) and DIGEST_PATTERN.match(value) is not None


def compute_deployment_digest(digests: Iterable[str]) -> str:
    """SHA-256 of the sorted blob digests joined by ``","``.

    Duplicates are kept: two files sharing one blob contribute the digest
    twice.

    Examples
    --------
    >>> compute_deployment_digest(["b", "a"]) == sha256_hex(b"a,b")
    True
    """
    return sha256_hex(",".join(sorted(digests)).encode("utf-8"))
