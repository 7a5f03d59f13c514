"""Content-addressed, write-once blob store.

Storage layout: {base_path}/{sha256[0:2]}/{sha256[2:4]}/{sha256}
No delete method — blobs are immutable once stored.
"""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Iterator
from pathlib import Path

from hotdrop.core.errors import BlobNotFound, CorruptBlob, InvalidDigest
from hotdrop.core.hasher import is_valid_digest, sha256_hex

logger = logging.getLogger(__name__)


class BlobStore:
    """SHA-256 keyed, immutable blob store.

    Every blob is stored under the digest its writer supplies.  Writing a
    digest that is already present is a no-op, so concurrent writers of the
    same blob need no coordination.

    Parameters
    ----------
    base_path:
        Root directory for blob storage.
    verify_digests:
        Recompute the digest of incoming content and reject mismatches with
        ``CorruptBlob``.  When off, callers are trusted.
    """

    def __init__(self, base_path: Path, *, verify_digests: bool = True) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)
        self._verify_digests = verify_digests

    @property
    def base_path(self) -> Path:
        return self._base

    def path_for(self, digest: str) -> Path:
        """Compute the storage path for a digest.

        Raises ``InvalidDigest`` for anything but 64 lowercase hex chars, so
        a digest can never name a path outside the store.
        """
        if not is_valid_digest(digest):
            raise InvalidDigest(digest)
        return self._base / digest[:2] / digest[2:4] / digest

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def put(self, digest: str, content: bytes) -> bool:
        """Store *content* under *digest* unless already present.

        Returns ``True`` when the blob was written, ``False`` when it
        already existed.  The write lands in a temp file beside the target
        and is renamed into place, so a blob is either absent or complete.
        """
        path = self.path_for(digest)
        if self._verify_digests:
            actual = sha256_hex(content)
            if actual != digest:
                raise CorruptBlob(digest, actual)

        if path.exists():
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{digest}.{uuid.uuid4().hex}.tmp")
        try:
            with open(tmp, "wb") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, path)
        finally:
            tmp.unlink(missing_ok=True)

        logger.debug("Stored blob %s (%d bytes).", digest, len(content))
        return True

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    def get(self, digest: str) -> bytes:
        """Return the bytes stored under *digest*.

        Raises
        ------
        BlobNotFound
            If no blob was ever stored under *digest*.
        """
        path = self.path_for(digest)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise BlobNotFound(digest) from exc

    # ------------------------------------------------------------------
    # Check and verify
    # ------------------------------------------------------------------

    def exists(self, digest: str) -> bool:
        """Check if a blob exists in the store."""
        return self.path_for(digest).is_file()

    def verify(self, digest: str) -> bool:
        """Re-hash stored bytes and compare against the digest."""
        path = self.path_for(digest)
        if not path.is_file():
            return False
        return sha256_hex(path.read_bytes()) == digest

    def digests(self) -> Iterator[str]:
        """Yield the digest of every stored blob, in sorted order."""
        for path in sorted(self._base.glob("??/??/*")):
            if path.is_file() and is_valid_digest(path.name):
                yield path.name
