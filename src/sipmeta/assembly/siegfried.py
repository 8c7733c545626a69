"""
sipmeta — siegfried results reader.

File: src/sipmeta/assembly/siegfried.py

Purpose
- Read the output of the ``sf`` format identification tool in its YAML
  (default) or JSON (``sf -json``) form.

Functional requirements
- YAML input is a stream of documents: one header followed by one document
  per identified file. JSON input is one object with a ``files`` array.
- The header must name exactly one identifier, and that identifier's matches
  must carry a MIME field.
- A file record's hash, when present, sits under the algorithm name
  (``md5``, ``sha1``, ``sha256``, ``sha512`` or ``crc``).
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Final

import yaml

from sipmeta.constants import UNKNOWN_PUID
from sipmeta.domain.dates import DateFormatError, parse_datetime

HASH_FIELDS: Final[tuple[str, ...]] = ("md5", "sha1", "sha256", "sha512", "crc")
_MIME_FIELDS: Final[tuple[str, ...]] = ("mime", "MIME")

__all__ = [
    "HASH_FIELDS",
    "ResultsFormatError",
    "SiegfriedHeader",
    "SiegfriedRecord",
    "SiegfriedResults",
    "read_results",
]


class ResultsFormatError(ValueError):
    """Raised when a results file is not usable siegfried output."""


@dataclass(frozen=True, slots=True)
class SiegfriedHeader:
    version: str
    identifiers: tuple[str, ...]
    hash_algorithm: str = ""


@dataclass(frozen=True, slots=True)
class SiegfriedRecord:
    path: str
    size: int
    modified: datetime | None
    puid: str
    mime: str
    hash_value: str = ""


@dataclass(frozen=True, slots=True)
class SiegfriedResults:
    header: SiegfriedHeader
    records: tuple[SiegfriedRecord, ...]

    def __iter__(self) -> Iterator[SiegfriedRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


def read_results(source: str | Path | IO[str]) -> SiegfriedResults:
    """Parse siegfried results from a path or an open text stream."""

    if isinstance(source, (str, Path)):
        path = Path(source)
        with path.open("r", encoding="utf-8") as handle:
            text = handle.read()
    else:
        text = source.read()

    if text.lstrip().startswith("{"):
        header_payload, file_payloads = _split_json(text)
    else:
        header_payload, file_payloads = _split_yaml(text)

    header = _parse_header(header_payload, file_payloads)
    records = tuple(
        _parse_record(payload, position, header.hash_algorithm)
        for position, payload in enumerate(file_payloads)
    )
    return SiegfriedResults(header=header, records=records)


def _split_json(text: str) -> tuple[Mapping[str, Any], list[Mapping[str, Any]]]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ResultsFormatError(f"invalid siegfried JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ResultsFormatError("siegfried JSON must be an object")
    files = payload.get("files", [])
    if not isinstance(files, list) or not all(isinstance(item, Mapping) for item in files):
        raise ResultsFormatError("siegfried JSON 'files' must be an array of objects")
    return payload, files


def _split_yaml(text: str) -> tuple[Mapping[str, Any], list[Mapping[str, Any]]]:
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as exc:
        raise ResultsFormatError(f"invalid siegfried YAML: {exc}") from exc
    if not documents:
        raise ResultsFormatError("siegfried results are empty")
    if not all(isinstance(doc, Mapping) for doc in documents):
        raise ResultsFormatError("siegfried YAML documents must be mappings")
    return documents[0], documents[1:]


def _parse_header(
    payload: Mapping[str, Any], files: list[Mapping[str, Any]]
) -> SiegfriedHeader:
    raw_identifiers = payload.get("identifiers")
    if not isinstance(raw_identifiers, list):
        raise ResultsFormatError("siegfried header has no identifiers")
    identifiers = tuple(
        str(item.get("name", "")) if isinstance(item, Mapping) else str(item)
        for item in raw_identifiers
    )
    if len(identifiers) != 1:
        raise ResultsFormatError(
            f"siegfried loader can only process single IDs, have {len(identifiers)} identifiers"
        )

    if files:
        first_match = _first_match(files[0], 0)
        if not any(field in first_match for field in _MIME_FIELDS):
            raise ResultsFormatError(
                "siegfried loader expects a single identifier that has a MIME field"
            )

    hash_algorithm = ""
    if files:
        hash_algorithm = next((field for field in HASH_FIELDS if field in files[0]), "")

    return SiegfriedHeader(
        version=str(payload.get("siegfried", "")),
        identifiers=identifiers,
        hash_algorithm=hash_algorithm,
    )


def _parse_record(
    payload: Mapping[str, Any], position: int, hash_algorithm: str
) -> SiegfriedRecord:
    path = payload.get("filename")
    if not isinstance(path, str) or not path:
        raise ResultsFormatError(f"file record {position} has no filename")

    size = payload.get("filesize", 0)
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise ResultsFormatError(f"file record {position} has invalid filesize {size!r}")

    match = _first_match(payload, position)
    mime = next((match[field] for field in _MIME_FIELDS if field in match), "")

    return SiegfriedRecord(
        path=path,
        size=size,
        modified=_parse_modified(payload.get("modified"), position),
        puid=str(match.get("id") or UNKNOWN_PUID),
        mime=str(mime or ""),
        hash_value=str(payload.get(hash_algorithm) or "") if hash_algorithm else "",
    )


def _first_match(payload: Mapping[str, Any], position: int) -> Mapping[str, Any]:
    matches = payload.get("matches")
    if not isinstance(matches, list) or not matches or not isinstance(matches[0], Mapping):
        raise ResultsFormatError(f"file record {position} has no matches")
    return matches[0]


def _parse_modified(value: object, position: int) -> datetime | None:
    if value is None or value == "":
        return None
    # PyYAML already resolves unquoted timestamps.
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if not isinstance(value, str):
        raise ResultsFormatError(f"file record {position} has invalid modified time {value!r}")
    try:
        return parse_datetime(value)
    except DateFormatError as exc:
        raise ResultsFormatError(f"file record {position}: {exc}") from exc
