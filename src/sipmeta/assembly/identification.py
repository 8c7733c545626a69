"""
sipmeta — format identification and archive iteration collaborators.

File: src/sipmeta/assembly/identification.py

Purpose
- Define the ``FormatClassifier`` and ``ArchiveOpener`` protocols the batch
  actions depend on.
- Ship simple built-in implementations: extension/magic-number classification
  and zip/tar expansion with ``zipfile`` and ``tarfile``.

Functional requirements
- A classifier returns at most one identification (short PUID plus MIME).
- An opener returns ``None`` for a stream that is not an archive it understands.
- Entry paths join the container name and member name with ``#``.
"""

from __future__ import annotations

import re
import tarfile
import zipfile
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import IO, Final, Protocol, runtime_checkable

from sipmeta.constants import PRONOM_NS

ZIP_PUID: Final[str] = "x-fmt/263"
TAR_PUID: Final[str] = "x-fmt/265"
GZIP_PUID: Final[str] = "x-fmt/266"

# PRONOM formats treated as expandable containers.
ARCHIVE_PUIDS: Final[frozenset[str]] = frozenset({ZIP_PUID, TAR_PUID, GZIP_PUID})

ENTRY_SEPARATOR: Final[str] = "#"

DEFAULT_FORMAT_MAP: Final[Mapping[str, tuple[str, str]]] = {
    "csv": ("x-fmt/18", "text/csv"),
    "doc": ("fmt/40", "application/msword"),
    "docx": (
        "fmt/412",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
    "gif": ("fmt/4", "image/gif"),
    "gz": (GZIP_PUID, "application/gzip"),
    "htm": ("fmt/96", "text/html"),
    "html": ("fmt/96", "text/html"),
    "jpeg": ("fmt/43", "image/jpeg"),
    "jpg": ("fmt/43", "image/jpeg"),
    "json": ("fmt/817", "application/json"),
    "pdf": ("fmt/276", "application/pdf"),
    "png": ("fmt/11", "image/png"),
    "tar": (TAR_PUID, "application/x-tar"),
    "tgz": (GZIP_PUID, "application/gzip"),
    "tif": ("fmt/353", "image/tiff"),
    "tiff": ("fmt/353", "image/tiff"),
    "txt": ("x-fmt/111", "text/plain"),
    "xml": ("fmt/101", "text/xml"),
    "zip": (ZIP_PUID, "application/zip"),
}

_TAR_MAGIC_OFFSET: Final[int] = 257
_SNIFF_BYTES: Final[int] = 512
_SEGMENT_RE: Final[re.Pattern[str]] = re.compile(r"[\\/#]")

__all__ = [
    "ARCHIVE_PUIDS",
    "ArchiveEntry",
    "ArchiveOpener",
    "ContainerArchiveOpener",
    "DEFAULT_FORMAT_MAP",
    "ENTRY_SEPARATOR",
    "ExtensionClassifier",
    "FormatClassifier",
    "Identification",
    "extension_of",
    "is_archive",
]


@dataclass(frozen=True, slots=True)
class Identification:
    puid: str
    mime: str = ""


@dataclass(slots=True)
class ArchiveEntry:
    """One member of an archive. ``reader`` is only valid while iteration is at this entry."""

    path: str
    mime: str
    size: int
    reader: IO[bytes]


@runtime_checkable
class FormatClassifier(Protocol):
    def identify(
        self, stream: IO[bytes], name: str, mime_hint: str = ""
    ) -> Identification | None: ...


@runtime_checkable
class ArchiveOpener(Protocol):
    def open(self, stream: IO[bytes], name: str) -> Iterator[ArchiveEntry] | None: ...


def is_archive(puid: str) -> bool:
    """True when ``puid`` (short or full PRONOM IRI) names an expandable container."""

    return puid.removeprefix(PRONOM_NS) in ARCHIVE_PUIDS


def extension_of(name: str) -> str:
    """Lower-cased extension of the last path segment, without the dot."""

    leaf = _SEGMENT_RE.split(name)[-1]
    stem, dot, extension = leaf.rpartition(".")
    if not dot or not stem:
        return ""
    return extension.lower()


class ExtensionClassifier:
    """Classify by file extension, falling back to archive magic numbers."""

    def __init__(self, format_map: Mapping[str, tuple[str, str] | list[str]] | None = None) -> None:
        merged: dict[str, tuple[str, str]] = dict(DEFAULT_FORMAT_MAP)
        for extension, (puid, mime) in (format_map or {}).items():
            merged[extension.lower().lstrip(".")] = (puid, mime)
        self._format_map = merged

    def identify(
        self, stream: IO[bytes], name: str, mime_hint: str = ""
    ) -> Identification | None:
        mapped = self._format_map.get(extension_of(name))
        if mapped is not None:
            return Identification(puid=mapped[0], mime=mapped[1])
        return _sniff(stream)


class ContainerArchiveOpener:
    """Expand zip and tar (optionally compressed) archives from seekable streams."""

    def open(self, stream: IO[bytes], name: str) -> Iterator[ArchiveEntry] | None:
        if not stream.seekable():
            return None
        stream.seek(0)
        if zipfile.is_zipfile(stream):
            stream.seek(0)
            return self._iter_zip(stream, name)
        stream.seek(0)
        if _is_tarfile(stream):
            stream.seek(0)
            return self._iter_tar(stream, name)
        stream.seek(0)
        return None

    @staticmethod
    def _iter_zip(stream: IO[bytes], name: str) -> Iterator[ArchiveEntry]:
        with zipfile.ZipFile(stream) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                with archive.open(info) as reader:
                    yield ArchiveEntry(
                        path=f"{name}{ENTRY_SEPARATOR}{info.filename}",
                        mime="",
                        size=info.file_size,
                        reader=reader,
                    )

    @staticmethod
    def _iter_tar(stream: IO[bytes], name: str) -> Iterator[ArchiveEntry]:
        with tarfile.open(fileobj=stream, mode="r:*") as archive:
            for member in archive:
                if not member.isfile():
                    continue
                reader = archive.extractfile(member)
                if reader is None:
                    continue
                with reader:
                    yield ArchiveEntry(
                        path=f"{name}{ENTRY_SEPARATOR}{member.name}",
                        mime="",
                        size=member.size,
                        reader=reader,
                    )


def _sniff(stream: IO[bytes]) -> Identification | None:
    if not stream.seekable():
        return None
    position = stream.tell()
    try:
        stream.seek(0)
        head = stream.read(_SNIFF_BYTES)
    finally:
        stream.seek(position)
    if head.startswith(b"PK\x03\x04"):
        return Identification(puid=ZIP_PUID, mime="application/zip")
    if head.startswith(b"\x1f\x8b"):
        return Identification(puid=GZIP_PUID, mime="application/gzip")
    if head[_TAR_MAGIC_OFFSET : _TAR_MAGIC_OFFSET + 5] == b"ustar":
        return Identification(puid=TAR_PUID, mime="application/x-tar")
    return None


def _is_tarfile(stream: IO[bytes]) -> bool:
    try:
        with tarfile.open(fileobj=stream, mode="r:*"):
            return True
    except (tarfile.TarError, EOFError, OSError):
        return False
