"""Deployment builder — turns a deploy request into a published deployment.

A build runs in a fixed order:

1. Validate every entry (digest shape, safe filename, no clashing names).
2. Make sure every referenced blob is stored, writing inline content.
3. Compute the deployment digest from the sorted blob digests.
4. Materialize ``{deployments}/{digest}/`` with one file per entry.  When
   the directory already exists, every entry is checked against it first,
   so a conflicting build links nothing into a published deployment.
5. Publish the digest to the registry.

Nothing is published unless every earlier step succeeded, so a reader of
the registry only ever sees fully materialized deployments.  Blobs written
by a failed build stay behind; they are inert until a later build uses them.
"""

from __future__ import annotations

import filecmp
import logging
import os
import shutil
import uuid
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from hotdrop.core.blob_store import BlobStore
from hotdrop.core.errors import (
    BadRequest,
    DeploymentConflict,
    InvalidDigest,
    InvalidFilename,
    MissingBlobData,
)
from hotdrop.core.hasher import compute_deployment_digest, is_valid_digest
from hotdrop.core.registry import DeploymentRegistry
from hotdrop.models.deployments import FileDescriptor, LinkMode

logger = logging.getLogger(__name__)


class DeploymentBuilder:
    """Validates, stores, materializes and publishes deployments.

    Parameters
    ----------
    blob_store:
        Where blob content is kept.
    deployments_dir:
        Parent directory of all materialized deployments.
    registry:
        Receives the deployment digest once materialization succeeded.
    link_mode:
        How deployment files are created from blobs.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        deployments_dir: Path,
        registry: DeploymentRegistry,
        *,
        link_mode: LinkMode = LinkMode.AUTO,
    ) -> None:
        self._blobs = blob_store
        self._deployments_dir = Path(deployments_dir)
        self._deployments_dir.mkdir(parents=True, exist_ok=True)
        self._registry = registry
        self._link_mode = LinkMode(link_mode)

    @property
    def deployments_dir(self) -> Path:
        return self._deployments_dir

    def deployment_path(self, deployment_digest: str) -> Path:
        """Directory a deployment is materialized into."""
        if not is_valid_digest(deployment_digest):
            raise InvalidDigest(deployment_digest)
        return self._deployments_dir / deployment_digest

    # -- Public API ---------------------------------------------------------

    def build(self, entries: Sequence[FileDescriptor]) -> str:
        """Materialize *entries* as a deployment and make it the latest.

        Returns
        -------
        str
            The deployment digest.

        Raises
        ------
        BadRequest
            If the request is malformed (``InvalidDigest``,
            ``InvalidFilename``, ``CorruptBlob``) or references a blob that
            is neither stored nor supplied (``MissingBlobData``).  The
            registry is untouched and no deployment directory is created.
        DeploymentConflict
            If a file of the deployment already exists with other content,
            or a path is a file in one build and a directory in another.  An
            existing deployment directory is left exactly as it was.
        """
        if not entries:
            raise BadRequest("A deployment needs at least one file")
        relative_paths = self._validate(entries)

        for entry in entries:
            self._ensure_blob(entry)

        deployment_digest = compute_deployment_digest(e.digest for e in entries)
        root = self.deployment_path(deployment_digest)
        targets = [root.joinpath(*relative.parts) for relative in relative_paths]
        if root.is_dir():
            # Same digest built before: nothing may be linked unless every
            # file fits the existing tree.
            for entry, relative in zip(entries, relative_paths):
                self._check_layout(root, relative, self._blobs.path_for(entry.digest))
        root.mkdir(parents=True, exist_ok=True)

        for entry, target in zip(entries, targets):
            self._materialize(entry.digest, root, target)

        self._registry.publish(deployment_digest)
        logger.info(
            "Built deployment %s from %d file(s).",
            deployment_digest,
            len(entries),
            extra={"deployment": deployment_digest},
        )
        return deployment_digest

    def list_files(self, deployment_digest: str) -> list[str]:
        """Relative POSIX names of every file in a materialized deployment."""
        root = self.deployment_path(deployment_digest)
        if not root.is_dir():
            return []
        return sorted(
            p.relative_to(root).as_posix()
            for p in root.rglob("*")
            if p.is_file() and "__pycache__" not in p.parts
        )

    # -- Internal helpers ---------------------------------------------------

    def _validate(self, entries: Sequence[FileDescriptor]) -> list[PurePosixPath]:
        seen: dict[PurePosixPath, str] = {}
        relative_paths: list[PurePosixPath] = []
        for entry in entries:
            if not is_valid_digest(entry.digest):
                raise InvalidDigest(entry.digest)
            relative = safe_relative_path(entry.filename)
            previous = seen.setdefault(relative, entry.digest)
            if previous != entry.digest:
                raise InvalidFilename(
                    entry.filename, "listed twice with different digests"
                )
            relative_paths.append(relative)

        directories = {parent for path in relative_paths for parent in path.parents}
        for entry, relative in zip(entries, relative_paths):
            if relative in directories:
                raise InvalidFilename(
                    entry.filename, "also used as a directory by another file"
                )
        return relative_paths

    def _ensure_blob(self, entry: FileDescriptor) -> None:
        if not entry.has_content:
            if not self._blobs.exists(entry.digest):
                raise MissingBlobData(entry.digest)
            return
        if self._blobs.put(entry.digest, entry.payload()):
            logger.debug("New blob %s for '%s'.", entry.digest, entry.filename)

    def _check_layout(self, root: Path, relative: PurePosixPath, blob_path: Path) -> None:
        for parent in reversed(relative.parents[:-1]):
            directory = root.joinpath(*parent.parts)
            if directory.is_symlink() or (directory.exists() and not directory.is_dir()):
                raise _conflict(
                    root, relative, f"'{parent}' is a file in deployment {root.name}"
                )
        target = root.joinpath(*relative.parts)
        if target.exists() or target.is_symlink():
            self._check_existing(blob_path, root, target)

    def _materialize(self, digest: str, root: Path, target: Path) -> None:
        blob_path = self._blobs.path_for(digest)
        relative = PurePosixPath(target.relative_to(root).as_posix())
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except (FileExistsError, NotADirectoryError) as exc:
            raise _conflict(
                root, relative, f"a parent of '{relative}' is a file in deployment {root.name}"
            ) from exc

        if target.exists() or target.is_symlink():
            self._check_existing(blob_path, root, target)
            return

        if self._link_mode is LinkMode.COPY:
            self._copy(blob_path, root, target)
            return

        try:
            os.link(blob_path, target)
        except FileExistsError:
            # Another build of the same deployment got there first.
            self._check_existing(blob_path, root, target)
        except OSError as exc:
            if self._link_mode is LinkMode.HARDLINK:
                raise
            logger.debug("Hard link refused for '%s' (%s); copying.", target, exc)
            self._copy(blob_path, root, target)

    def _copy(self, blob_path: Path, root: Path, target: Path) -> None:
        tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            shutil.copyfile(blob_path, tmp)
            if target.exists():
                self._check_existing(blob_path, root, target)
                return
            os.replace(tmp, target)
        finally:
            tmp.unlink(missing_ok=True)

    @staticmethod
    def _check_existing(blob_path: Path, root: Path, target: Path) -> None:
        if target.is_file() and (
            os.path.samefile(blob_path, target)
            or filecmp.cmp(blob_path, target, shallow=False)
        ):
            return
        relative = PurePosixPath(target.relative_to(root).as_posix())
        raise _conflict(
            root,
            relative,
            f"'{relative}' already exists in deployment {root.name} with different content",
        )


def _conflict(root: Path, relative: PurePosixPath, message: str) -> DeploymentConflict:
    return DeploymentConflict(
        message, deployment=root.name, path=str(root.joinpath(*relative.parts))
    )


def safe_relative_path(filename: str) -> PurePosixPath:
    """Parse *filename* as a relative POSIX path confined to its root.

    Raises ``InvalidFilename`` for empty names, absolute paths, backslashes,
    NUL bytes and any ``.`` or ``..`` component.

    Examples
    --------
    >>> safe_relative_path("lib/util.py").parts
    ('lib', 'util.py')
    """
    if not filename:
        raise InvalidFilename(filename, "empty")
    if "\\" in filename or "\x00" in filename:
        raise InvalidFilename(filename, "contains a backslash or NUL byte")
    path = PurePosixPath(filename)
    if path.is_absolute():
        raise InvalidFilename(filename, "absolute paths are not allowed")
    if any(part in (".", "..") for part in filename.split("/")):
        raise InvalidFilename(filename, "'.' and '..' components are not allowed")
    if not path.parts or "" in filename.split("/"):
        raise InvalidFilename(filename, "empty path component")
    return path
