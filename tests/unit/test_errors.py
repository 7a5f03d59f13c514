"""Tests for the error hierarchy — codes, statuses, response envelope."""

from __future__ import annotations

import pytest

from hotdrop.core.errors import (
    BadRequest,
    BlobNotFound,
    CorruptBlob,
    DeploymentConflict,
    HotdropError,
    InvalidDigest,
    InvalidFilename,
    MissingBlobData,
    ModuleLoadFailure,
    NoDeploymentAvailable,
    RegistryPersistenceError,
    Unauthorized,
)


class TestErrorStatuses:
    @pytest.mark.parametrize(
        "error, status, code",
        [
            (Unauthorized("no"), 401, "UNAUTHORIZED"),
            (MissingBlobData("a" * 64), 400, "MISSING_BLOB_DATA"),
            (InvalidDigest("zz"), 400, "INVALID_DIGEST"),
            (InvalidFilename("../x", "traversal"), 400, "INVALID_FILENAME"),
            (CorruptBlob("a" * 64, "b" * 64), 400, "CORRUPT_BLOB"),
            (DeploymentConflict("clash"), 409, "DEPLOYMENT_CONFLICT"),
            (BlobNotFound("a" * 64), 500, "BLOB_NOT_FOUND"),
            (NoDeploymentAvailable(), 503, "NO_DEPLOYMENT"),
            (ModuleLoadFailure("broken"), 500, "MODULE_LOAD_FAILURE"),
            (RegistryPersistenceError("disk full"), 500, "REGISTRY_PERSISTENCE"),
        ],
    )
    def test_status_and_code(self, error: HotdropError, status: int, code: str):
        assert error.http_status == status
        assert error.code == code
        assert error.to_response()["error"]["code"] == code

    def test_bad_request_family(self):
        for error in (MissingBlobData("a" * 64), InvalidDigest("x"), CorruptBlob("a", "b")):
            assert isinstance(error, BadRequest)


class TestMissingBlobData:
    def test_names_digest(self):
        digest = "c" * 64
        error = MissingBlobData(digest)
        assert str(error) == f"Missing data for hash {digest}"
        assert error.to_response()["error"]["details"] == {"digest": digest}


class TestToResponse:
    def test_no_details_key_when_empty(self):
        assert "details" not in Unauthorized("Invalid deploy key").to_response()["error"]
