"""
sipmeta — manifest.json model and builder.

File: src/sipmeta/domain/models.py

Purpose
- Describe a manifest: versions of an object, the files in each version and
  the access rules that govern them.
- Assign blank-node references to versions, files and rules by position and
  resolve ``(version, file)`` targets into those references.

Functional requirements
- References are derived from append position; once assigned they never change.
- A rule's display/preview/text target serializes as nothing, a string or an
  array for zero, one or several targets.
- Builder operations are all-or-nothing: a failed date or scope check raises
  and leaves the rule list untouched.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum
from typing import ClassVar

from sipmeta.constants import MANIFEST_TYPE, VERSIONS_DIR
from sipmeta.domain.context import Context, JSONLDDocument, TermDefinition
from sipmeta.domain.dates import W3CDate, parse_date
from sipmeta.domain.ids import (
    FileTarget,
    reference_access_rule,
    reference_file,
    reference_version,
    to_access_direction,
)
from sipmeta.domain.jsonld import JSONLDModel, term
from sipmeta.domain.vocab import MANIFEST_CONTEXT

Target = str | list[str] | None
TargetSpec = FileTarget | tuple[int, int]

__all__ = [
    "AccessRule",
    "AccessScope",
    "Basis",
    "File",
    "Hash",
    "Manifest",
    "ScopeError",
    "Target",
    "TargetSpec",
    "Version",
    "append_access_rule",
    "copy_access_rules",
    "reference_files",
]


class ScopeError(ValueError):
    """Raised when an access rule scope is not root, global or local."""


class AccessScope(StrEnum):
    ROOT = "root"
    GLOBAL = "global"
    LOCAL = "local"


@dataclass(slots=True)
class Hash(JSONLDModel):
    algorithm: str = term("hashAlgorithm", omitempty=True, default="")
    value: str = term("hashValue", omitempty=True, default="")


@dataclass(slots=True)
class File(JSONLDModel):
    id: str = term("@id", default="")
    name: str = term("name", default="")
    original_name: str = term("originalName", omitempty=True, default="")
    size: int = term("size", default=0)
    created: datetime | None = term("fileCreated", omitnone=True, default=None)
    modified: datetime | None = term("modified", omitnone=True, default=None)
    mime: str = term("mime", omitempty=True, default="")
    puid: str = term("puid", omitempty=True, default="")
    hash: Hash | None = term("hash", omitnone=True, default=None)
    has_access_rules: list[str] = term("hasAccessRules", omitempty=True, default_factory=list)


@dataclass(slots=True)
class Version(JSONLDModel):
    id: str = term("@id")
    base: str = term("base", omitempty=True, default="")
    derived_from: str = term("derivedFrom", omitempty=True, default="")
    generated_by: str = term("generatedBy", omitempty=True, default="")
    has_access_rules: list[str] = term("hasAccessRules", omitempty=True, default_factory=list)
    files: list[File] = term("files", default_factory=list)


@dataclass(slots=True)
class Basis(JSONLDModel):
    access_direction: str = term("accessDirection")
    access_description: str = term("accessDescription", omitempty=True, default="")


@dataclass(slots=True)
class AccessRule(JSONLDModel):
    """One access rule.

    ``metadata_patch`` and ``full_manifest`` are rare and are set directly on
    the rule after it is built; they serialize whenever they are not ``None``.
    """

    id: str = term("@id")
    execute_date: W3CDate = term("executeDate")
    scope: AccessScope = term("scope", default=AccessScope.GLOBAL)
    publish: bool = term("publish", default=False)
    basis: Basis | None = term("basis", omitempty=True, default=None)
    metadata_patch: int | None = term("metadataPatch", omitnone=True, default=None)
    full_manifest: bool | None = term("fullManifest", omitnone=True, default=None)
    display_target: Target = term("displayTarget", omitempty=True, default=None)
    preview_target: Target = term("previewTarget", omitempty=True, default=None)
    text_target: Target = term("textTarget", omitempty=True, default=None)


@dataclass(slots=True)
class Manifest(JSONLDDocument):
    """A manifest.json document."""

    terms: ClassVar[Mapping[str, TermDefinition | str]] = MANIFEST_CONTEXT

    type: str = term("@type", default=MANIFEST_TYPE)
    access_rules: list[AccessRule] = term("accessRules", omitempty=True, default_factory=list)
    versions: list[Version] = term("versions", omitempty=True, default_factory=list)
    context: Context | None = term("@context", default=None)

    def add_version(
        self,
        files: Sequence[File],
        *,
        derived_from: str = "",
        generated_by: str = "",
    ) -> str:
        """Append a version holding ``files`` and return its reference.

        Each file gets its ``_:v<n>f<i>`` reference assigned in place.
        """

        index = len(self.versions)
        for position, item in enumerate(files):
            item.id = reference_file(index, position)
        version_id = reference_version(index)
        self.versions.append(
            Version(
                id=version_id,
                base=(VERSIONS_DIR / str(index)).as_posix(),
                derived_from=derived_from,
                generated_by=generated_by,
                files=list(files),
            )
        )
        return version_id

    def add_access_rule(
        self,
        execute_date: str,
        scope: str = "",
        publish: bool = False,
        access_direction: int = 0,
        access_description: str = "",
        display: Iterable[TargetSpec] = (),
        preview: Iterable[TargetSpec] = (),
        text: Iterable[TargetSpec] = (),
    ) -> str:
        """Append a new access rule and return its ``_:ar<n>`` reference."""

        self.access_rules, rule_id = append_access_rule(
            self.access_rules,
            execute_date,
            scope,
            publish,
            access_direction,
            access_description,
            display=display,
            preview=preview,
            text=text,
        )
        return rule_id


def append_access_rule(
    rules: Sequence[AccessRule],
    execute_date: str,
    scope: str = "",
    publish: bool = False,
    access_direction: int = 0,
    access_description: str = "",
    *,
    display: Iterable[TargetSpec] = (),
    preview: Iterable[TargetSpec] = (),
    text: Iterable[TargetSpec] = (),
) -> tuple[list[AccessRule], str]:
    """Build an access rule and return a new rule list ending with it, plus its ID.

    ``rules`` itself is never modified. An empty ``scope`` means global.
    Raises ``DateFormatError`` for a bad ``execute_date`` and ``ScopeError``
    for an unknown scope.
    """

    parsed_date = parse_date(execute_date)
    parsed_scope = _parse_scope(scope)
    basis = None
    if access_direction > 0:
        basis = Basis(
            access_direction=to_access_direction(access_direction),
            access_description=access_description,
        )
    rule_id = reference_access_rule(len(rules))
    rule = AccessRule(
        id=rule_id,
        execute_date=parsed_date,
        scope=parsed_scope,
        publish=publish,
        basis=basis,
        display_target=reference_files(display),
        preview_target=reference_files(preview),
        text_target=reference_files(text),
    )
    return [*rules, rule], rule_id


def copy_access_rules(rules: Iterable[AccessRule]) -> list[AccessRule]:
    """Duplicate rules so the copies can be re-targeted without touching the originals."""

    return [
        replace(
            rule,
            basis=replace(rule.basis) if rule.basis is not None else None,
            display_target=_copy_target(rule.display_target),
            preview_target=_copy_target(rule.preview_target),
            text_target=_copy_target(rule.text_target),
        )
        for rule in rules
    ]


def reference_files(targets: Iterable[TargetSpec]) -> Target:
    """Resolve file targets into ``None``, one reference string or a list of them."""

    resolved = [FileTarget(*target).reference() for target in targets]
    if not resolved:
        return None
    if len(resolved) == 1:
        return resolved[0]
    return resolved


def _parse_scope(scope: str | AccessScope) -> AccessScope:
    if scope == "":
        return AccessScope.GLOBAL
    try:
        return AccessScope(scope)
    except ValueError:
        raise ScopeError(f"scope must be either root, global or local (got {scope!r})") from None


def _copy_target(target: Target) -> Target:
    if isinstance(target, list):
        return list(target)
    return target

