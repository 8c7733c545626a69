"""Streamed content digests for the optional ``hash`` of manifest files."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

PathLike = str | os.PathLike[str]

_FILE_READ_CHUNK_BYTES = 1024 * 1024
# shake digests need an explicit length, so they are not offered.
_ALGORITHMS = frozenset(
    name for name in hashlib.algorithms_guaranteed if not name.startswith("shake_")
)

__all__ = ["file_digest", "supported_algorithms"]


def supported_algorithms() -> frozenset[str]:
    return _ALGORITHMS


def file_digest(
    path: PathLike,
    algorithm: str = "sha256",
    *,
    chunk_size: int = _FILE_READ_CHUNK_BYTES,
) -> str:
    """Return the lowercase hex digest of a file read in chunks."""

    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    name = algorithm.lower()
    if name not in _ALGORITHMS:
        raise ValueError(f"unsupported hash algorithm: {algorithm!r}")
    digest = hashlib.new(name)
    with Path(path).open("rb") as file_handle:
        while True:
            chunk = file_handle.read(chunk_size)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()
