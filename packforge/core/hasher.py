"""Hashing helpers for snapshot verification and plan content addressing.

Settings snapshots are published with a SHA-1 companion file, matching the
``sha1sum`` output that build hosts already produce. Command plans are
content-addressed with SHA-256 over their canonical JSON form.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

from packforge.core.errors import VerificationError

_CHUNK_SIZE = 8192


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes: deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def content_address(obj: Any) -> str:
    """Content-address a JSON-serializable object as ``sha256:<hex>``."""
    return f"sha256:{sha256_hex(canonical_json_bytes(obj))}"


def file_digest(path: Path, algorithm: str = "sha1") -> str:
    """Hex digest of a file's contents, read in chunks."""
    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def parse_checksum_text(text: str) -> str:
    """Extract the hex digest from checksum file contents.

    Accepts a bare digest or ``sha1sum`` style ``<digest>  <filename>``.
    """
    tokens = text.split()
    if not tokens:
        raise VerificationError("Checksum file is empty")
    return tokens[0].strip().lower()


def verify_file_digest(path: Path, expected: str, algorithm: str = "sha1") -> None:
    """Raise ``VerificationError`` unless *path* hashes to *expected*."""
    actual = file_digest(path, algorithm)
    if actual != expected.lower():
        raise VerificationError(
            f"{algorithm} mismatch for {path}: expected {expected}, got {actual}"
        )
