"""Blank-node references and IRI helpers for SIP entities."""

from __future__ import annotations

import re
from typing import Final, NamedTuple

from sipmeta.constants import (
    ACCESS_DIRECTION_NS,
    CONSIGNMENT_NS,
    PRONOM_NS,
    SERIES_NS,
)

BLANK_NODE_LEAD: Final[str] = "_:"
_PLACEHOLDER_SEPARATOR: Final[str] = ":"

# Stable reference prefixes.
VERSION_PREFIX: Final[str] = "v"
FILE_PREFIX: Final[str] = "f"
ACCESS_RULE_PREFIX: Final[str] = "ar"

# Placeholder kinds swapped for UUIDs by the downstream migration step.
OBJECT_KIND: Final[str] = "obj"
MIGRATION_KIND: Final[str] = "mig"
LOG_KIND: Final[str] = "log"

_PREFIX_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z]+$")
_REFERENCE_RE: Final[re.Pattern[str]] = re.compile(r"^_:(?:[A-Za-z]+\d+)+$")
_PUID_RE: Final[re.Pattern[str]] = re.compile(r"^(?:x-)?fmt/")

__all__ = [
    "ACCESS_RULE_PREFIX",
    "BLANK_NODE_LEAD",
    "FILE_PREFIX",
    "FileTarget",
    "LOG_KIND",
    "MIGRATION_KIND",
    "OBJECT_KIND",
    "Ref",
    "VERSION_PREFIX",
    "reference",
    "reference_access_rule",
    "reference_file",
    "reference_log",
    "reference_migration",
    "reference_object",
    "reference_version",
    "to_access_direction",
    "to_consignment",
    "to_id",
    "to_puid",
    "to_ref",
    "to_series",
    "validate_reference",
]


class Ref(NamedTuple):
    """One ``(prefix, index)`` pair of a blank-node reference."""

    prefix: str
    index: int


class FileTarget(NamedTuple):
    """A ``(version, file)`` coordinate inside one manifest."""

    version: int
    file: int

    def reference(self) -> str:
        return reference_file(self.version, self.file)

    def __str__(self) -> str:
        return self.reference()


def reference(*refs: Ref | tuple[str, int]) -> str:
    """Build a blank-node reference by concatenating pairs in call order.

    ``reference(("v", 1), ("f", 0))`` returns ``"_:v1f0"``.
    """

    parts = [BLANK_NODE_LEAD]
    for raw in refs:
        prefix, index = raw
        _validate_prefix(prefix)
        if isinstance(index, bool) or not isinstance(index, int):
            raise ValueError(f"reference index must be an int, got {type(index).__name__}")
        parts.append(f"{prefix}{index}")
    return "".join(parts)


def reference_version(index: int) -> str:
    return reference(Ref(VERSION_PREFIX, index))


def reference_file(version: int, index: int) -> str:
    return reference(Ref(VERSION_PREFIX, version), Ref(FILE_PREFIX, index))


def reference_access_rule(index: int) -> str:
    return reference(Ref(ACCESS_RULE_PREFIX, index))


def validate_reference(value: str) -> None:
    """Validate the ``_:<prefix><digits>...`` shape of a blank-node reference."""

    if not isinstance(value, str):
        raise ValueError(f"reference must be a string, got {type(value).__name__}")
    if _REFERENCE_RE.fullmatch(value) is None:
        raise ValueError(f"reference must look like '_:v0f0' (got {value!r})")


def to_id(index: int, namespace: str) -> str:
    """Turn an integer identifier into an IRI; non-positive integers give ``""``."""

    if index <= 0:
        return ""
    return f"{namespace}{index}"


def to_ref(index: int, kind: str) -> str:
    """Turn an integer into a ``kind:index`` placeholder; negatives give ``""``."""

    if index < 0:
        return ""
    return f"{kind}{_PLACEHOLDER_SEPARATOR}{index}"


def to_puid(code: str) -> str:
    """Expand a short PUID such as ``fmt/18`` to its PRONOM IRI.

    Anything that is not a ``fmt/`` or ``x-fmt/`` code is returned unchanged.
    """

    if _PUID_RE.match(code) is None:
        return code
    return PRONOM_NS + code


def to_series(index: int) -> str:
    return to_id(index, SERIES_NS)


def to_consignment(index: int) -> str:
    return to_id(index, CONSIGNMENT_NS)


def to_access_direction(index: int) -> str:
    return to_id(index, ACCESS_DIRECTION_NS)


def reference_object(index: int) -> str:
    return to_ref(index, OBJECT_KIND)


def reference_migration(index: int) -> str:
    return to_ref(index, MIGRATION_KIND)


def reference_log(index: int) -> str:
    return to_ref(index, LOG_KIND)


def _validate_prefix(prefix: str) -> None:
    if not isinstance(prefix, str):
        raise ValueError(f"prefix must be a string, got {type(prefix).__name__}")
    if _PREFIX_RE.fullmatch(prefix) is None:
        raise ValueError(f"prefix must be non-empty ASCII letters (got {prefix!r})")
