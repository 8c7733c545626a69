"""Unit tests for metadata.json documents, agents and business things."""

from __future__ import annotations

import json
from datetime import date

from sipmeta.constants import AGENCY_NS, DIGITAL_ARCHIVE_TYPE, SERIES_NS
from sipmeta.domain.dates import parse_date
from sipmeta.domain.ids import to_series
from sipmeta.domain.metadata import (
    AGENCY_TYPE,
    BUNDLE_TYPE,
    CONTAINER_TYPE,
    EXHIBIT_TYPE,
    MARKUP_SET_TYPE,
    PERSON_TYPE,
    SDO_EMAIL_MESSAGE,
    SDO_ORGANIZATION,
    DisposalRule,
    Metadata,
    Node,
    append_agent,
    bundle,
    email,
    exhibit,
    file_container,
    make_agency,
    make_agent,
    make_business,
    make_person,
    markup_set,
)


def test_new_metadata_carries_placeholders() -> None:
    metadata = Metadata.new(3, "Annual report")

    assert metadata.to_dict() == {
        "@id": "obj:3",
        "migration": "mig:0",
        "@type": DIGITAL_ARCHIVE_TYPE,
        "title": "Annual report",
        "@context": None,
    }
    payload = json.loads(metadata.serialize())
    assert set(payload["@context"]) == {"migration", "title"}


def test_add_type_turns_type_into_list() -> None:
    metadata = Metadata.new(0, "x")
    metadata.add_type(MARKUP_SET_TYPE)
    metadata.add_type("http://example.org/Other")
    assert metadata.type == [DIGITAL_ARCHIVE_TYPE, MARKUP_SET_TYPE, "http://example.org/Other"]


def test_agents_are_names_nodes_or_lists() -> None:
    assert make_agent("Jane Citizen") == "Jane Citizen"
    assert make_person("Jane Citizen", 0) == Node(type=PERSON_TYPE, name="Jane Citizen")
    agency = make_agency("State Archives", 15)
    assert agency == Node(id=AGENCY_NS + "15", type=AGENCY_TYPE, name="State Archives")

    creators = append_agent(None, agency)
    assert creators is agency
    creators = append_agent(creators, "Jane Citizen")
    assert creators == [agency, "Jane Citizen"]
    assert append_agent(creators, "Joe") == [agency, "Jane Citizen", "Joe"]


def test_single_creator_list_is_flattened() -> None:
    metadata = Metadata.new(0, "x")
    metadata.creator = [make_agency("State Archives", 15)]

    assert metadata.to_dict()["creator"] == {
        "@id": AGENCY_NS + "15",
        "@type": AGENCY_TYPE,
        "name": "State Archives",
    }

    metadata.creator = ["A", "B"]
    assert metadata.to_dict()["creator"] == ["A", "B"]


def test_series_and_disposal_rule() -> None:
    metadata = Metadata.new(0, "x")
    metadata.series = to_series(42)
    metadata.disposal_rule = DisposalRule(authority="GA28", class_="1.1.1")

    payload = json.loads(metadata.serialize())

    assert payload["series"] == SERIES_NS + "42"
    assert payload["disposalRule"] == {"authority": "GA28", "class": "1.1.1"}
    assert {"series", "disposalRule", "authority", "class"} <= set(payload["@context"])


def test_business_keeps_every_proprietor() -> None:
    business = make_business(
        "Acme Trading",
        "BN123",
        commenced_trading=date(2001, 2, 3),
        proprietors=["Alice Pty Ltd", "Bob Pty Ltd"],
    )

    serialized = business.to_dict()

    assert serialized == {
        "@type": SDO_ORGANIZATION,
        "legalName": "Acme Trading",
        "commencedTrading": "2001-02-03",
        "registrationNumber": "BN123",
        "proprietor": [
            {"@type": SDO_ORGANIZATION, "name": "Alice Pty Ltd"},
            {"@type": SDO_ORGANIZATION, "name": "Bob Pty Ltd"},
        ],
    }


def test_business_proprietor_duality() -> None:
    single = make_business("Acme", proprietors=("Alice Pty Ltd",)).to_dict()
    assert single["proprietor"] == {"@type": SDO_ORGANIZATION, "name": "Alice Pty Ltd"}

    nobody = make_business("Acme").to_dict()
    assert "proprietor" not in nobody


def test_business_as_about_populates_context() -> None:
    metadata = Metadata.new(0, "Registration")
    metadata.about = make_business("Acme", "BN1", "12345678901")
    metadata.created = parse_date("1999-04")

    payload = json.loads(metadata.serialize())

    assert payload["created"] == "1999-04"
    assert payload["about"]["abn"] == "12345678901"
    assert {"about", "legalName", "registrationNumber", "abn", "created"} <= set(payload["@context"])


def test_containers() -> None:
    assert markup_set("Markups").to_dict() == {"@type": MARKUP_SET_TYPE, "title": "Markups"}
    assert email("<msg@example.org>").to_dict() == {
        "@id": "<msg@example.org>",
        "@type": SDO_EMAIL_MESSAGE,
    }

    metadata = Metadata.new(0, "x")
    metadata.is_part_of = [markup_set("Markups")]
    assert metadata.to_dict()["isPartOf"] == {"@type": MARKUP_SET_TYPE, "title": "Markups"}


def test_typed_containers() -> None:
    assert exhibit("Exhibit A").to_dict() == {"@type": EXHIBIT_TYPE, "title": "Exhibit A"}
    assert bundle("Court bundle").type == BUNDLE_TYPE
    assert file_container("Box 1").type == CONTAINER_TYPE


def test_disposal_rule_single_or_list() -> None:
    metadata = Metadata.new(0, "x")
    rule = DisposalRule(authority="GA28", class_="1.1")
    other = DisposalRule(authority="GDA10", class_="2.3")

    metadata.disposal_rule = rule
    assert json.loads(metadata.serialize())["disposalRule"] == {"authority": "GA28", "class": "1.1"}

    metadata.disposal_rule = [rule]
    assert json.loads(metadata.serialize())["disposalRule"] == {"authority": "GA28", "class": "1.1"}

    metadata.disposal_rule = [rule, other]
    assert json.loads(metadata.serialize())["disposalRule"] == [
        {"authority": "GA28", "class": "1.1"},
        {"authority": "GDA10", "class": "2.3"},
    ]

    metadata.disposal_rule = []
    assert "disposalRule" not in json.loads(metadata.serialize())
