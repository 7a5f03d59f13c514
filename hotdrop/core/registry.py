"""Deployment registry — the durable "latest deployment" pointer.

The pointer is a single plain-text file holding one deployment digest.  It
is the only mutable shared state in hotdrop:

- ``publish()`` writes the new digest to a temp file, fsyncs it and renames
  it over the pointer, then updates the in-memory copy.  A crash at any
  point leaves either the old or the new digest on disk, never a torn one.
- ``current()`` reads only the in-memory copy.  The file is read once, when
  the registry is constructed.
"""

from __future__ import annotations

import logging
import os
import threading
import uuid
from pathlib import Path

from hotdrop.core.errors import InvalidDigest, RegistryPersistenceError
from hotdrop.core.hasher import is_valid_digest

logger = logging.getLogger(__name__)


class DeploymentRegistry:
    """Single-writer pointer to the currently active deployment.

    Parameters
    ----------
    pointer_path:
        File holding the latest deployment digest.  Its parent directory is
        created if needed.

    Examples
    --------
    >>> from pathlib import Path
    >>> registry = DeploymentRegistry(Path("/tmp/hotdrop_doc/latest_deployment"))
    >>> registry.publish("0" * 64)
    >>> registry.current() == "0" * 64
    True
    """

    def __init__(self, pointer_path: Path) -> None:
        self._pointer_path = Path(pointer_path)
        self._pointer_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._current: str | None = None
        self._rehydrate()

    @property
    def pointer_path(self) -> Path:
        return self._pointer_path

    def current(self) -> str | None:
        """Return the active deployment digest, or ``None`` if none yet."""
        return self._current

    def publish(self, deployment_digest: str) -> None:
        """Persist *deployment_digest* as the latest, then adopt it in memory.

        Raises
        ------
        InvalidDigest
            If *deployment_digest* is not a hex SHA-256 digest.
        RegistryPersistenceError
            If the pointer could not be written.  The previous pointer stays
            in effect, both on disk and in memory.
        """
        if not is_valid_digest(deployment_digest):
            raise InvalidDigest(deployment_digest)

        with self._lock:
            try:
                self._write_pointer(deployment_digest)
            except OSError as exc:
                logger.critical(
                    "Failed to persist latest deployment %s: %s",
                    deployment_digest,
                    exc,
                )
                raise RegistryPersistenceError(
                    f"Could not persist latest deployment: {exc}",
                    deployment=deployment_digest,
                ) from exc
            previous, self._current = self._current, deployment_digest

        logger.info(
            "Published deployment %s (previous: %s).",
            deployment_digest,
            previous,
            extra={"deployment": deployment_digest},
        )

    # -- Internal helpers ---------------------------------------------------

    def _write_pointer(self, deployment_digest: str) -> None:
        tmp = self._pointer_path.with_name(
            f".{self._pointer_path.name}.{uuid.uuid4().hex}.tmp"
        )
        try:
            with open(tmp, "w", encoding="utf-8") as fh:
                fh.write(deployment_digest)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self._pointer_path)
        finally:
            tmp.unlink(missing_ok=True)
        self._fsync_directory()

    def _fsync_directory(self) -> None:
        """Flush the rename itself; skipped where directories can't be opened."""
        try:
            fd = os.open(self._pointer_path.parent, os.O_RDONLY)
        except OSError:
            return
        try:
            os.fsync(fd)
        except OSError:
            logger.debug("Directory fsync unsupported for %s.", self._pointer_path.parent)
        finally:
            os.close(fd)

    def _rehydrate(self) -> None:
        if not self._pointer_path.exists():
            logger.info("No deployment found.")
            return

        value = self._pointer_path.read_text(encoding="utf-8").strip()
        if not is_valid_digest(value):
            logger.warning(
                "Ignoring malformed deployment pointer in '%s'.", self._pointer_path
            )
            return

        self._current = value
        logger.info(
            "Latest deployment found: %s.", value, extra={"deployment": value}
        )
