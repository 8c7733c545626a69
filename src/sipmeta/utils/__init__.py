"""Utility exports for filesystem and hashing helpers."""

from sipmeta.utils.fs import atomic_write, copy_file
from sipmeta.utils.hashing import file_digest, supported_algorithms

__all__ = [
    "atomic_write",
    "copy_file",
    "file_digest",
    "supported_algorithms",
]
