"""Unit tests for streamed file digests."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from sipmeta.utils.hashing import file_digest, supported_algorithms


def test_digest_matches_hashlib(tmp_path: Path) -> None:
    path = tmp_path / "data.bin"
    payload = b"sipmeta" * 1000
    path.write_bytes(payload)

    assert file_digest(path) == hashlib.sha256(payload).hexdigest()
    assert file_digest(path, "MD5", chunk_size=7) == hashlib.md5(payload).hexdigest()


def test_supported_algorithms_exclude_shake() -> None:
    algorithms = supported_algorithms()
    assert {"md5", "sha1", "sha256", "sha512"} <= algorithms
    assert not any(name.startswith("shake_") for name in algorithms)


def test_rejects_bad_arguments(tmp_path: Path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"x")
    with pytest.raises(ValueError, match="unsupported hash algorithm"):
        file_digest(path, "crc")
    with pytest.raises(ValueError, match="chunk_size"):
        file_digest(path, chunk_size=0)
