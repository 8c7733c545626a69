"""
sipmeta — output actions run for each object before its documents are written.

File: src/sipmeta/assembly/actions.py

Purpose
- Provide the stock :data:`~sipmeta.assembly.batch.Action` factories: copy
  content into the SIP, rebuild a manifest from the files on disk, report
  progress and expand archives into a derived version.

Functional requirements
- Copies never overwrite an existing file.
- Files the format map and classifier cannot identify get PUID ``UNKNOWN``.
- Archive members never escape ``versions/1`` of the object directory.
"""

from __future__ import annotations

import re
import shutil
import tempfile
from collections.abc import Callable, Iterable, Mapping
from contextlib import closing
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import IO, Final

import structlog

from sipmeta.assembly.batch import Action, Batch
from sipmeta.assembly.identification import (
    ArchiveEntry,
    ArchiveOpener,
    ContainerArchiveOpener,
    ENTRY_SEPARATOR,
    ExtensionClassifier,
    FormatClassifier,
    extension_of,
    is_archive,
)
from sipmeta.constants import UNKNOWN_PUID, VERSIONS_DIR
from sipmeta.domain.ids import FileTarget, reference_file, to_puid
from sipmeta.domain.models import File, Hash, Manifest, reference_files
from sipmeta.utils.fs import copy_file
from sipmeta.utils.hashing import file_digest

logger = structlog.get_logger(__name__)

PathFunc = Callable[[Batch, str], "str | Path"]

_SPOOL_BYTES: Final[int] = 16 * 1024 * 1024
_COPY_CHUNK_BYTES: Final[int] = 1024 * 1024
# "inner.zip#member" becomes "inner_zip/member".
_NESTED_ARCHIVE_RE: Final[re.Pattern[str]] = re.compile(r"\.([A-Za-z0-9]+)#")

__all__ = [
    "PathFunc",
    "decompress",
    "index_path",
    "manifest_copy",
    "progress",
    "simple_manifest",
]


def index_path(batch: Batch, key: str) -> Path:
    """Path function for keys that are full file paths: the key's directory."""

    return Path(key).parent


def manifest_copy(path_func: PathFunc = index_path) -> Action:
    """Copy every file listed in the manifest into ``versions/<n>/``.

    Sources are ``path_func(batch, key) / file.name``.
    """

    def action(batch: Batch, target: Path, key: str) -> None:
        manifest = batch.manifests[key]
        source_dir = Path(path_func(batch, key))
        for version_index, version in enumerate(manifest.versions):
            version_dir = target / VERSIONS_DIR / str(version_index)
            for item in version.files:
                relative = PurePosixPath(item.name)
                copy_file(source_dir / relative, version_dir / relative.parent)

    return action


def simple_manifest(
    format_map: Mapping[str, tuple[str, str] | list[str]] | None = None,
    classifier: FormatClassifier | None = None,
    hash_algorithm: str = "",
) -> Action:
    """Describe the files already present under ``versions/0``, ``versions/1``, ...

    A manifest is created for the object when it has none. Formats come from
    ``format_map`` (extension to ``(puid, mime)``) first, then ``classifier``.
    """

    formats = {
        extension.lower().lstrip("."): (pair[0], pair[1])
        for extension, pair in (format_map or {}).items()
    }

    def action(batch: Batch, target: Path, key: str) -> None:
        manifest = batch.manifests.setdefault(key, Manifest())
        version_index = 0
        while True:
            version_dir = target / VERSIONS_DIR / str(version_index)
            if not version_dir.is_dir():
                return
            files = [
                _describe(path, version_dir, formats, classifier, hash_algorithm)
                for path in sorted(version_dir.rglob("*"))
                if path.is_file()
            ]
            manifest.add_version(files)
            version_index += 1

    return action


def progress(every: int = 1) -> Action:
    """Log every ``every``-th object processed."""

    if every < 1:
        raise ValueError("every must be at least 1")
    processed = 0

    def action(batch: Batch, target: Path, key: str) -> None:
        nonlocal processed
        processed += 1
        if processed % every == 0:
            logger.info("progress", processed=processed, total=len(batch), key=key)

    return action


def decompress(
    classifier: FormatClassifier | None = None,
    opener: ArchiveOpener | None = None,
    hash_algorithm: str = "",
) -> Action:
    """Expand a lone archive in ``versions/0`` into a new ``versions/1``.

    Only manifests with exactly one version holding one archive file are
    touched. Nested archives are expanded recursively. Access rules whose
    display target was the archive now display every extracted file.
    """

    resolved_classifier = classifier if classifier is not None else ExtensionClassifier()
    resolved_opener = opener if opener is not None else ContainerArchiveOpener()

    def action(batch: Batch, target: Path, key: str) -> None:
        manifest = batch.manifests[key]
        if len(manifest.versions) != 1 or len(manifest.versions[0].files) != 1:
            return
        archive = manifest.versions[0].files[0]
        if not is_archive(archive.puid):
            return

        source = target / VERSIONS_DIR / "0" / archive.name
        version_number = len(manifest.versions)
        expander = _Expander(
            base=target / VERSIONS_DIR / str(version_number),
            classifier=resolved_classifier,
            opener=resolved_opener,
            hash_algorithm=hash_algorithm,
        )
        with source.open("rb") as stream:
            entries = resolved_opener.open(stream, "")
            if entries is None:
                logger.warning("archive_unsupported", source=str(source), puid=archive.puid)
                return
            expander.expand_entries(entries)

        manifest.add_version(expander.files)
        _retarget_display(manifest, version_number, len(expander.files))
        logger.info("archive_expanded", source=str(source), entries=len(expander.files))

    return action


class _Expander:
    def __init__(
        self,
        *,
        base: Path,
        classifier: FormatClassifier,
        opener: ArchiveOpener,
        hash_algorithm: str,
    ) -> None:
        self.base = base
        self.classifier = classifier
        self.opener = opener
        self.hash_algorithm = hash_algorithm
        self.files: list[File] = []

    def expand_entries(self, entries: Iterable[ArchiveEntry]) -> None:
        for entry in entries:
            with tempfile.SpooledTemporaryFile(max_size=_SPOOL_BYTES) as buffered:
                with closing(entry.reader):
                    shutil.copyfileobj(entry.reader, buffered, _COPY_CHUNK_BYTES)
                buffered.seek(0)
                self.expand(buffered, entry.path, entry.mime)

    def expand(self, stream: IO[bytes], name: str, mime_hint: str) -> None:
        identification = self.classifier.identify(stream, name, mime_hint)
        stream.seek(0)
        if identification is not None and is_archive(identification.puid):
            entries = self.opener.open(stream, name)
            if entries is not None:
                self.expand_entries(entries)
                return
            stream.seek(0)

        original_name = name.removeprefix(ENTRY_SEPARATOR)
        relative = _entry_path(original_name)
        if relative is None:
            logger.warning("archive_entry_skipped", entry=original_name, reason="unsafe path")
            return
        destination = self.base / relative
        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("wb") as writer:
            shutil.copyfileobj(stream, writer, _COPY_CHUNK_BYTES)

        stat = destination.stat()
        puid, mime = UNKNOWN_PUID, ""
        if identification is not None:
            puid, mime = identification.puid, identification.mime
        file_hash = None
        if self.hash_algorithm:
            file_hash = Hash(
                algorithm=self.hash_algorithm,
                value=file_digest(destination, self.hash_algorithm),
            )
        self.files.append(
            File(
                name=relative.as_posix(),
                original_name=original_name if original_name != relative.as_posix() else "",
                size=stat.st_size,
                modified=datetime.fromtimestamp(stat.st_mtime).astimezone(),
                mime=mime,
                puid=to_puid(puid),
                hash=file_hash,
            )
        )


def _entry_path(original_name: str) -> PurePosixPath | None:
    mapped = _NESTED_ARCHIVE_RE.sub(r"_\1/", original_name).replace("\\", "/")
    relative = PurePosixPath(mapped)
    if relative.is_absolute() or ".." in relative.parts or not relative.parts:
        return None
    if relative.name in ("", "."):
        return None
    return relative


def _retarget_display(manifest: Manifest, version_number: int, file_count: int) -> None:
    if file_count == 0:
        return
    first_file = reference_file(0, 0)
    targets = [FileTarget(version_number, position) for position in range(file_count)]
    for rule in manifest.access_rules:
        if rule.display_target == first_file:
            rule.display_target = reference_files(targets)


def _describe(
    path: Path,
    version_dir: Path,
    formats: Mapping[str, tuple[str, str]],
    classifier: FormatClassifier | None,
    hash_algorithm: str,
) -> File:
    name = path.relative_to(version_dir).as_posix()
    puid, mime = formats.get(extension_of(name), (UNKNOWN_PUID, ""))
    if puid == UNKNOWN_PUID and classifier is not None:
        with path.open("rb") as stream:
            identification = classifier.identify(stream, name, "")
        if identification is not None:
            puid, mime = identification.puid, identification.mime

    stat = path.stat()
    file_hash = None
    if hash_algorithm:
        file_hash = Hash(algorithm=hash_algorithm, value=file_digest(path, hash_algorithm))
    return File(
        name=name,
        size=stat.st_size,
        modified=datetime.fromtimestamp(stat.st_mtime).astimezone().replace(microsecond=0),
        mime=mime,
        puid=to_puid(puid),
        hash=file_hash,
    )
