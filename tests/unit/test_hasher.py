"""Tests for hashing helpers."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from packforge.core.errors import VerificationError
from packforge.core.hasher import (
    canonical_json_bytes,
    content_address,
    file_digest,
    parse_checksum_text,
    verify_file_digest,
)


class TestCanonicalJson:
    def test_key_order_does_not_matter(self):
        assert canonical_json_bytes({"b": 1, "a": 2}) == canonical_json_bytes({"a": 2, "b": 1})

    def test_content_address_prefix(self):
        addr = content_address(["mkdir -p output"])
        assert addr.startswith("sha256:")
        assert len(addr) == len("sha256:") + 64


class TestFileDigest:
    def test_sha1_matches_hashlib(self, tmp_path: Path):
        path = tmp_path / "settings.yaml"
        path.write_bytes(b"key: value\n")
        assert file_digest(path) == hashlib.sha1(b"key: value\n").hexdigest()

    def test_verify_accepts_uppercase_expected(self, tmp_path: Path):
        path = tmp_path / "f"
        path.write_bytes(b"abc")
        verify_file_digest(path, hashlib.sha1(b"abc").hexdigest().upper())

    def test_verify_rejects_mismatch(self, tmp_path: Path):
        path = tmp_path / "f"
        path.write_bytes(b"abc")
        with pytest.raises(VerificationError, match="mismatch"):
            verify_file_digest(path, "0" * 40)


class TestParseChecksumText:
    def test_bare_digest(self):
        assert parse_checksum_text("ABCDEF\n") == "abcdef"

    def test_sha1sum_format(self):
        assert parse_checksum_text("abcdef  settings.yaml\n") == "abcdef"

    def test_empty_is_an_error(self):
        with pytest.raises(VerificationError):
            parse_checksum_text("   \n")
