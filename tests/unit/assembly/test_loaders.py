"""
sipmeta — unit tests for built-in loaders

File: tests/unit/assembly/test_loaders.py

Purpose
- Validate object creation from siegfried results and the decorating loaders.
"""

from __future__ import annotations

import io
import json
from datetime import date

from sipmeta.assembly.batch import Batch
from sipmeta.assembly.loaders import (
    AgencyLoader,
    DisposalRuleLoader,
    GlobalAccess,
    SeriesLoader,
    SiegfriedLoader,
    TitleLoader,
)
from sipmeta.assembly.siegfried import read_results
from sipmeta.constants import ACCESS_DIRECTION_NS, AGENCY_NS, PRONOM_NS, SERIES_NS
from sipmeta.domain.models import AccessScope


def _results(*records: tuple[str, str], hashed: bool = True) -> str:
    files = []
    for filename, puid in records:
        record: dict[str, object] = {
            "filename": filename,
            "filesize": 10,
            "modified": "2018-07-01T09:30:00Z",
            "matches": [{"ns": "pronom", "id": puid, "mime": "application/pdf"}],
        }
        if hashed:
            record["sha1"] = "a9993e36"
        files.append(record)
    return json.dumps(
        {"siegfried": "1.9.1", "identifiers": [{"name": "pronom"}], "files": files}
    )


def test_siegfried_loader_builds_one_object_per_file() -> None:
    source = io.StringIO(
        _results(
            ("C:\\transfer\\Minutes 2018.pdf", "fmt/276"),
            ("transfer/data/table.csv", "UNKNOWN"),
        )
    )

    batch = Batch.from_loaders(SiegfriedLoader(source))

    assert batch.index == ["C:\\transfer\\Minutes 2018.pdf", "transfer/data/table.csv"]
    first = batch.metadata[batch.index[0]]
    assert first.id == "obj:0"
    assert first.title == "Minutes 2018"
    assert first.created is not None
    assert first.created.isoformat() == "2018-07-01"

    manifest = batch.manifests[batch.index[0]]
    [item] = manifest.versions[0].files
    assert item.id == "_:v0f0"
    assert item.name == "Minutes 2018.pdf"
    assert item.size == 10
    assert item.mime == "application/pdf"
    assert item.puid == PRONOM_NS + "fmt/276"
    assert item.hash is not None
    assert (item.hash.algorithm, item.hash.value) == ("sha1", "a9993e36")

    second = batch.metadata[batch.index[1]]
    assert second.id == "obj:1"
    assert second.title == "table"
    assert batch.manifests[batch.index[1]].versions[0].files[0].puid == "UNKNOWN"


def test_siegfried_loader_without_hashes() -> None:
    results = read_results(io.StringIO(_results(("a.pdf", "fmt/276"), hashed=False)))
    batch = Batch.from_loaders(SiegfriedLoader(results))
    assert batch.manifests["a.pdf"].versions[0].files[0].hash is None


def test_blacklist_skips_formats_and_keeps_numbering_dense() -> None:
    source = io.StringIO(
        _results(("a.pdf", "fmt/276"), ("b.ds_store", "fmt/682"), ("c.pdf", "fmt/276"))
    )

    batch = Batch.from_loaders(SiegfriedLoader(source, blacklist=["fmt/682"]))

    assert batch.index == ["a.pdf", "c.pdf"]
    assert batch.metadata["c.pdf"].id == "obj:1"


def test_decorating_loaders_apply_to_every_object() -> None:
    source = io.StringIO(_results(("a.pdf", "fmt/276"), ("b.pdf", "fmt/276")))

    batch = Batch.from_loaders(
        SiegfriedLoader(source),
        AgencyLoader("Department of Examples", 15),
        SeriesLoader(42),
        DisposalRuleLoader("GA28", "1.1.1"),
        GlobalAccess(3, "Early access", "2030-01-01"),
        TitleLoader(lambda batch, key: key.upper()),
    )

    for key, metadata, manifest in batch.items():
        assert metadata.title == key.upper()
        assert metadata.series == SERIES_NS + "42"
        assert metadata.creator is not None
        assert metadata.to_dict()["creator"]["@id"] == AGENCY_NS + "15"
        assert metadata.to_dict()["disposalRule"] == {"authority": "GA28", "class": "1.1.1"}

        [rule] = manifest.access_rules
        assert rule.scope is AccessScope.GLOBAL
        assert rule.publish is True
        assert rule.execute_date.isoformat() == "2030-01-01"
        assert rule.basis is not None
        assert rule.basis.access_direction == ACCESS_DIRECTION_NS + "3"
        assert rule.basis.access_description == "Early access"
        assert rule.display_target == "_:v0f0"


def test_global_access_scope_and_publish_are_configurable() -> None:
    batch = Batch.from_loaders(
        SiegfriedLoader(io.StringIO(_results(("a.pdf", "fmt/276")))),
        GlobalAccess(0, "", "2025", scope="local", publish=False),
    )

    [rule] = batch.manifests["a.pdf"].access_rules
    assert rule.scope is AccessScope.LOCAL
    assert rule.publish is False
    assert rule.basis is None
    assert rule.execute_date.value == date(2025, 1, 1)
