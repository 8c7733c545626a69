"""
sipmeta — unit tests for the manifest builder

File: tests/unit/domain/test_models.py

Purpose
- Verify reference assignment for versions, files and access rules.
- Verify scope defaults, the single/list target duality and rule copying.
- Pin down the serialized shape of manifest.json.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from sipmeta.constants import ACCESS_DIRECTION_NS, MANIFEST_TYPE, PRONOM_NS, RECORDS_TERMS_NS
from sipmeta.domain.dates import DateFormatError
from sipmeta.domain.ids import FileTarget, to_puid
from sipmeta.domain.models import (
    AccessScope,
    File,
    Hash,
    Manifest,
    ScopeError,
    append_access_rule,
    copy_access_rules,
    reference_files,
)


def _manifest_with_files(count: int) -> Manifest:
    manifest = Manifest()
    manifest.add_version([File(name=f"file{i}.txt", size=i) for i in range(count)])
    return manifest


def test_add_version_assigns_positional_references() -> None:
    manifest = Manifest()

    first = manifest.add_version([File(name="a.txt"), File(name="b.txt")])
    second = manifest.add_version([File(name="c.txt")], derived_from=first)

    assert (first, second) == ("_:v0", "_:v1")
    assert [item.id for item in manifest.versions[0].files] == ["_:v0f0", "_:v0f1"]
    assert manifest.versions[1].files[0].id == "_:v1f0"
    assert manifest.versions[0].base == "versions/0"
    assert manifest.versions[1].base == "versions/1"
    assert manifest.versions[1].derived_from == "_:v0"


def test_add_access_rule_defaults_to_global_scope() -> None:
    manifest = _manifest_with_files(1)

    rule_id = manifest.add_access_rule("2020")
    second_id = manifest.add_access_rule("2021-06", "local", True)

    assert (rule_id, second_id) == ("_:ar0", "_:ar1")
    assert manifest.access_rules[0].scope is AccessScope.GLOBAL
    assert manifest.access_rules[0].publish is False
    assert manifest.access_rules[0].basis is None
    assert manifest.access_rules[1].scope is AccessScope.LOCAL
    assert manifest.access_rules[1].execute_date.isoformat() == "2021-06"


def test_invalid_scope_raises_and_leaves_rules_untouched() -> None:
    manifest = _manifest_with_files(1)
    manifest.add_access_rule("2020")

    with pytest.raises(ScopeError, match="root, global or local"):
        manifest.add_access_rule("2020", "public")

    assert len(manifest.access_rules) == 1


def test_invalid_execute_date_raises_and_leaves_rules_untouched() -> None:
    manifest = _manifest_with_files(1)

    with pytest.raises(DateFormatError):
        manifest.add_access_rule("31/01/2015", "root")

    assert manifest.access_rules == []


def test_append_access_rule_does_not_mutate_input() -> None:
    rules, first_id = append_access_rule([], "2020", "root")
    extended, second_id = append_access_rule(rules, "2021", access_direction=4)

    assert len(rules) == 1
    assert len(extended) == 2
    assert (first_id, second_id) == ("_:ar0", "_:ar1")
    assert extended[1].basis is not None
    assert extended[1].basis.access_direction == ACCESS_DIRECTION_NS + "4"


def test_targets_are_absent_single_or_list() -> None:
    assert reference_files([]) is None
    assert reference_files([FileTarget(0, 0)]) == "_:v0f0"
    assert reference_files([(0, 0), (1, 2)]) == ["_:v0f0", "_:v1f2"]

    manifest = _manifest_with_files(2)
    manifest.add_access_rule(
        "2020",
        display=[FileTarget(0, 0), FileTarget(0, 1)],
        preview=[FileTarget(0, 1)],
    )
    rule = manifest.access_rules[0].to_dict()
    assert rule["displayTarget"] == ["_:v0f0", "_:v0f1"]
    assert rule["previewTarget"] == "_:v0f1"
    assert "textTarget" not in rule


def test_copy_access_rules_is_independent() -> None:
    manifest = _manifest_with_files(2)
    manifest.add_access_rule(
        "2020", access_direction=2, display=[FileTarget(0, 0), FileTarget(0, 1)]
    )
    original = manifest.access_rules[0]

    copies = copy_access_rules(manifest.access_rules)
    copied = copies[0]
    assert isinstance(copied.display_target, list)
    copied.display_target.append("_:v1f0")
    assert copied.basis is not None
    copied.basis.access_description = "changed"

    assert original.display_target == ["_:v0f0", "_:v0f1"]
    assert original.basis is not None
    assert original.basis.access_description == ""
    assert copied.id == original.id


def test_manifest_serialization_shape() -> None:
    manifest = Manifest()
    manifest.add_version(
        [
            File(
                name="report.pdf",
                size=10,
                modified=datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
                mime="application/pdf",
                puid=to_puid("fmt/276"),
                hash=Hash(algorithm="md5", value="abc"),
            )
        ]
    )
    manifest.add_access_rule("2030-01-01", "", True, 3, "Early", display=[FileTarget(0, 0)])

    text = manifest.serialize()
    payload = json.loads(text)

    assert text.startswith('{\n  "@type"')
    assert text.endswith("}\n")
    assert list(payload) == ["@type", "accessRules", "versions", "@context"]
    assert payload["@type"] == MANIFEST_TYPE
    assert payload["accessRules"] == [
        {
            "@id": "_:ar0",
            "executeDate": "2030-01-01",
            "scope": "global",
            "publish": True,
            "basis": {
                "accessDirection": ACCESS_DIRECTION_NS + "3",
                "accessDescription": "Early",
            },
            "displayTarget": "_:v0f0",
        }
    ]
    assert payload["versions"] == [
        {
            "@id": "_:v0",
            "base": "versions/0",
            "files": [
                {
                    "@id": "_:v0f0",
                    "name": "report.pdf",
                    "size": 10,
                    "modified": "2020-01-02T03:04:05Z",
                    "mime": "application/pdf",
                    "puid": PRONOM_NS + "fmt/276",
                    "hash": {"hashAlgorithm": "md5", "hashValue": "abc"},
                }
            ],
        }
    ]
    assert set(payload["@context"]) == {
        "accessDescription",
        "accessDirection",
        "accessRules",
        "base",
        "basis",
        "displayTarget",
        "executeDate",
        "files",
        "hash",
        "hashAlgorithm",
        "hashValue",
        "mime",
        "modified",
        "name",
        "publish",
        "puid",
        "scope",
        "size",
        "versions",
    }
    assert payload["@context"]["scope"] == RECORDS_TERMS_NS + "scope"
    assert payload["@context"]["executeDate"] == {
        "@id": RECORDS_TERMS_NS + "executeDate",
        "@type": "http://www.w3.org/2001/XMLSchema#date",
    }


def test_optional_rule_flags_serialize_when_set() -> None:
    manifest = _manifest_with_files(1)
    manifest.add_access_rule("2020")
    rule = manifest.access_rules[0]

    assert "metadataPatch" not in rule.to_dict()
    rule.metadata_patch = 0
    rule.full_manifest = False
    serialized = rule.to_dict()
    assert serialized["metadataPatch"] == 0
    assert serialized["fullManifest"] is False
    assert "metadataPatch" in json.loads(manifest.serialize())["@context"]


def test_non_ascii_names_are_written_verbatim() -> None:
    manifest = Manifest()
    manifest.add_version([File(name="café <draft>.txt", size=1)])
    assert "café <draft>.txt" in manifest.serialize()
