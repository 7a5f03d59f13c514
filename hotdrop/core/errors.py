"""Error hierarchy for hotdrop.

Every error carries a stable ``code`` and the HTTP status the server maps it
to.  Bad-request errors describe a defect in the caller's deploy request;
the rest are raised while serving deployed logic or persisting state.
"""

from __future__ import annotations

from typing import Any


class HotdropError(Exception):
    """Base exception for all hotdrop failures."""

    code = "HOTDROP_ERROR"
    http_status = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> dict[str, Any]:
        """Convert to the REST error envelope."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class Unauthorized(HotdropError):
    """Deploy token missing or wrong."""

    code = "UNAUTHORIZED"
    http_status = 401


class BadRequest(HotdropError):
    code = "BAD_REQUEST"
    http_status = 400


class MissingBlobData(BadRequest):
    """A file references a digest with no stored blob and no inline content."""

    code = "MISSING_BLOB_DATA"

    def __init__(self, digest: str) -> None:
        super().__init__(f"Missing data for hash {digest}", digest=digest)
        self.digest = digest


class InvalidDigest(BadRequest):
    code = "INVALID_DIGEST"

    def __init__(self, digest: str) -> None:
        super().__init__(
            f"Not a lowercase hex SHA-256 digest: {digest!r}", digest=digest
        )
        self.digest = digest


class InvalidFilename(BadRequest):
    code = "INVALID_FILENAME"

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(
            f"Invalid filename {filename!r}: {reason}", filename=filename
        )
        self.filename = filename


class CorruptBlob(BadRequest):
    """Supplied content does not hash to the digest it was sent under."""

    code = "CORRUPT_BLOB"

    def __init__(self, digest: str, actual: str) -> None:
        super().__init__(
            f"Content for hash {digest} hashes to {actual}",
            digest=digest,
            actual=actual,
        )
        self.digest = digest


class DeploymentConflict(HotdropError):
    """A file clashes with one already materialized for the same digest."""

    code = "DEPLOYMENT_CONFLICT"
    http_status = 409


class BlobNotFound(HotdropError):
    """A blob was requested that was never stored (integrity error)."""

    code = "BLOB_NOT_FOUND"
    http_status = 500

    def __init__(self, digest: str) -> None:
        super().__init__(f"Blob not found: {digest}", digest=digest)
        self.digest = digest


class NoDeploymentAvailable(HotdropError):
    code = "NO_DEPLOYMENT"
    http_status = 503

    def __init__(self) -> None:
        super().__init__("No deployment has been published yet")


class ModuleLoadFailure(HotdropError):
    """The active deployment's entry module is missing or failed to execute."""

    code = "MODULE_LOAD_FAILURE"
    http_status = 500


class RegistryPersistenceError(HotdropError):
    """The latest-deployment pointer could not be written to disk."""

    code = "REGISTRY_PERSISTENCE"
    http_status = 500
