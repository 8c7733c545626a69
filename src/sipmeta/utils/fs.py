"""
sipmeta — filesystem utilities

File: src/sipmeta/utils/fs.py

Purpose
- Atomic document writes and non-destructive file copies for SIP output folders.

Functional requirements
- Atomic writes use temp files in the destination directory and replace in a single step.
- ``copy_file`` never overwrites: an existing target is left alone and reported as skipped.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from pathlib import Path

import structlog

PathLike = str | os.PathLike[str]

_COPY_CHUNK_BYTES = 1024 * 1024

logger = structlog.get_logger(__name__)

__all__ = [
    "atomic_write",
    "copy_file",
]


def atomic_write(path: PathLike, data: bytes | str, *, encoding: str = "utf-8") -> None:
    """
    Atomically write ``data`` to ``path``.

    The write strategy is:
    1. create temp file in the same directory,
    2. write + flush + fsync file data,
    3. replace target via ``os.replace``.
    """

    target = Path(path)
    target_parent = target.parent.resolve(strict=True)
    if not target_parent.is_dir():
        raise NotADirectoryError(f"{target_parent!s} is not a directory")

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        if isinstance(data, bytes):
            with os.fdopen(fd, "wb") as file_handle:
                file_handle.write(data)
                file_handle.flush()
                os.fsync(file_handle.fileno())
        else:
            with os.fdopen(fd, "w", encoding=encoding, newline="\n") as file_handle:
                file_handle.write(data)
                file_handle.flush()
                os.fsync(file_handle.fileno())

        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def copy_file(source: PathLike, target_dir: PathLike) -> Path | None:
    """
    Copy ``source`` into ``target_dir`` keeping its file name and modification time.

    ``target_dir`` is created when missing. Returns the new path, or ``None``
    when a file of that name already exists there. A missing ``source``
    raises ``FileNotFoundError``.
    """

    source_path = Path(source)
    directory = Path(target_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / source_path.name

    with source_path.open("rb") as reader:
        try:
            writer = target.open("xb")
        except FileExistsError:
            logger.debug("copy_skipped", source=str(source_path), target=str(target))
            return None
        try:
            with writer:
                shutil.copyfileobj(reader, writer, _COPY_CHUNK_BYTES)
        except Exception:
            with contextlib.suppress(OSError):
                target.unlink(missing_ok=True)
            raise
    shutil.copystat(source_path, target)
    return target


def _fsync_directory(path: Path) -> None:
    """
    Best-effort directory fsync for metadata durability after ``os.replace``.

    Some platforms/filesystems do not support fsync on directories.
    """

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        return
    finally:
        os.close(dir_fd)
