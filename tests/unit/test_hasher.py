"""Tests for hashing helpers — digests and deployment identity."""

from __future__ import annotations

import hashlib

from hotdrop.core.hasher import compute_deployment_digest, is_valid_digest, sha256_hex


class TestSha256Hex:
    def test_matches_hashlib(self):
        assert sha256_hex(b"hello") == hashlib.sha256(b"hello").hexdigest()

    def test_lowercase_hex(self):
        digest = sha256_hex(b"x")
        assert digest == digest.lower()
        assert len(digest) == 64


class TestIsValidDigest:
    def test_accepts_real_digest(self):
        assert is_valid_digest(sha256_hex(b"x")) is True

    def test_rejects_uppercase(self):
        assert is_valid_digest(sha256_hex(b"x").upper()) is False

    def test_rejects_wrong_length(self):
        assert is_valid_digest("abc") is False
        assert is_valid_digest("a" * 65) is False

    def test_rejects_path_like_values(self):
        assert is_valid_digest("../" + "a" * 61) is False

    def test_rejects_non_strings(self):
        assert is_valid_digest(None) is False  # type: ignore[arg-type]


class TestDeploymentDigest:
    def test_sorted_comma_joined(self):
        h1, h2 = sha256_hex(b"one"), sha256_hex(b"two")
        expected = sha256_hex(",".join(sorted([h1, h2])).encode("utf-8"))
        assert compute_deployment_digest([h2, h1]) == expected

    def test_order_independent(self):
        digests = [sha256_hex(bytes([i])) for i in range(5)]
        assert compute_deployment_digest(digests) == compute_deployment_digest(
            list(reversed(digests))
        )

    def test_duplicates_count(self):
        h1 = sha256_hex(b"C1")
        assert compute_deployment_digest([h1, h1]) == sha256_hex(f"{h1},{h1}".encode())
        assert compute_deployment_digest([h1, h1]) != compute_deployment_digest([h1])
