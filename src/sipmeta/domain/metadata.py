"""
sipmeta — metadata.json model plus Agent and Thing helpers.

File: src/sipmeta/domain/metadata.py

Purpose
- Describe one archival object: title, dates, creators, series and
  consignment links, disposal rule and an open-ended ``about`` payload.
- Provide constructors for the agents and containers that appear in those fields.

Functional requirements
- An Agent is a bare name, an identified ``Node`` or a list of agents; a
  one-element list serializes as its only element.
- ``Business`` keeps every proprietor it is given.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Final, TypeAlias

from sipmeta.constants import AGENCY_NS, DIGITAL_ARCHIVE_TYPE, PERSON_NS, RECORDS_TERMS_NS
from sipmeta.domain.context import Context, JSONLDDocument, TermDefinition
from sipmeta.domain.dates import W3CDate, wrap_date
from sipmeta.domain.ids import reference_migration, reference_object, to_id
from sipmeta.domain.jsonld import JSONLDModel, term
from sipmeta.domain.vocab import METADATA_CONTEXT

SDO_PERSON: Final[str] = "http://schema.org/Person"
SDO_ORGANIZATION: Final[str] = "http://schema.org/Organization"
SDO_SOFTWARE: Final[str] = "http://schema.org/SoftwareApplication"
SDO_EMAIL_MESSAGE: Final[str] = "https://schema.org/EmailMessage"
PERSON_TYPE: Final[str] = RECORDS_TERMS_NS + "Person"
AGENCY_TYPE: Final[str] = RECORDS_TERMS_NS + "Agency"
MARKUP_SET_TYPE: Final[str] = RECORDS_TERMS_NS + "MarkupSet"
EXHIBIT_TYPE: Final[str] = RECORDS_TERMS_NS + "Exhibit"
BUNDLE_TYPE: Final[str] = RECORDS_TERMS_NS + "Bundle"
CONTAINER_TYPE: Final[str] = RECORDS_TERMS_NS + "Container"

__all__ = [
    "Agent",
    "Business",
    "DisposalRule",
    "Metadata",
    "Node",
    "Thing",
    "append_agent",
    "bundle",
    "email",
    "exhibit",
    "file_container",
    "make_agency",
    "make_agent",
    "make_business",
    "make_container",
    "make_organization",
    "make_person",
    "make_sdo_person",
    "make_software",
    "markup_set",
]


@dataclass(slots=True)
class Node(JSONLDModel):
    """An identified JSON-LD object: agents, containers and software all use it."""

    id: str = term("@id", omitempty=True, default="")
    type: str = term("@type", omitempty=True, default="")
    name: str = term("name", omitempty=True, default="")
    title: str = term("title", omitempty=True, default="")
    software_version: str = term("softwareVersion", omitempty=True, default="")


Agent: TypeAlias = "str | Node | list[Agent]"
Thing: TypeAlias = object


@dataclass(slots=True)
class DisposalRule(JSONLDModel):
    authority: str = term("authority")
    class_: str = term("class")


@dataclass(slots=True)
class Business(JSONLDModel):
    """A registered business name, used as the ``about`` of a metadata document."""

    type: str = term("@type", omitempty=True, default="")
    legal_name: str = term("legalName", omitempty=True, default="")
    commenced_trading: W3CDate | None = term("commencedTrading", omitnone=True, default=None)
    ceased_trading: W3CDate | None = term("ceasedTrading", omitnone=True, default=None)
    renewal_due_date: W3CDate | None = term("renewalDueDate", omitnone=True, default=None)
    registration_number: str = term("registrationNumber", omitempty=True, default="")
    abn: str = term("abn", omitempty=True, default="")
    proprietor: Agent | None = term("proprietor", omitempty=True, flatten=True, default=None)


@dataclass(slots=True)
class Metadata(JSONLDDocument):
    """A metadata.json document.

    ``id`` and ``migration`` hold ``obj:<n>`` and ``mig:<n>`` placeholders that a
    later migration step replaces with permanent identifiers.
    """

    terms: ClassVar[Mapping[str, TermDefinition | str]] = METADATA_CONTEXT

    id: str = term("@id", default="")
    migration: str = term("migration", default=reference_migration(0))
    type: str | list[str] = term("@type", default=DIGITAL_ARCHIVE_TYPE)
    title: str = term("title", default="")
    description: str = term("description", omitempty=True, default="")
    created: W3CDate | None = term("created", omitnone=True, default=None)
    modified: W3CDate | None = term("modified", omitnone=True, default=None)
    creator: Agent | None = term("creator", omitempty=True, flatten=True, default=None)
    source: str | list[str] | None = term("source", omitempty=True, default=None)
    is_part_of: str | Node | list[str | Node] | None = term(
        "isPartOf", omitempty=True, flatten=True, default=None
    )
    series: str = term("series", omitempty=True, default="")
    consignment: str = term("consignment", omitempty=True, default="")
    disposal_rule: DisposalRule | list[DisposalRule] | None = term(
        "disposalRule", omitempty=True, flatten=True, default=None
    )
    duration: str = term("duration", omitempty=True, default="")
    language: str | list[str] | None = term("language", omitempty=True, default=None)
    subtitles: str | list[str] | None = term("subtitles", omitempty=True, default=None)
    director: str | list[str] | None = term("director", omitempty=True, default=None)
    actor: str | list[str] | None = term("actor", omitempty=True, default=None)
    production_company: str | list[str] | None = term(
        "productionCompany", omitempty=True, default=None
    )
    about: Thing | None = term("about", omitempty=True, default=None)
    context: Context | None = term("@context", default=None)

    @classmethod
    def new(cls, index: int, title: str) -> Metadata:
        return cls(id=reference_object(index), title=title)

    def add_type(self, type_iri: str) -> None:
        """Add another ``@type``; a single type becomes a list of types."""

        if isinstance(self.type, list):
            self.type = [*self.type, type_iri]
        else:
            self.type = [self.type, type_iri]


def make_agent(name: str, id: str = "", type: str = "") -> Agent:
    """Return ``name`` unchanged when there is no ``id`` or ``type``, otherwise a Node."""

    if not id and not type:
        return name
    return Node(id=id, type=type, name=name)


def append_agent(agents: Agent | None, agent: Agent) -> Agent:
    if agents is None:
        return agent
    if isinstance(agents, list):
        return [*agents, agent]
    return [agents, agent]


def make_sdo_person(name: str) -> Agent:
    return make_agent(name, type=SDO_PERSON)


def make_organization(name: str) -> Agent:
    return make_agent(name, type=SDO_ORGANIZATION)


def make_person(name: str, index: int) -> Agent:
    return make_agent(name, to_id(index, PERSON_NS), PERSON_TYPE)


def make_agency(name: str, index: int) -> Agent:
    return make_agent(name, to_id(index, AGENCY_NS), AGENCY_TYPE)


def make_software(name: str, version: str = "") -> Node:
    """A software agent, typically the ``agent`` of a migration log."""

    return Node(type=SDO_SOFTWARE, name=name, software_version=version)


def make_business(
    legal_name: str,
    registration_number: str = "",
    abn: str = "",
    commenced_trading: date | None = None,
    ceased_trading: date | None = None,
    renewal_due_date: date | None = None,
    *,
    proprietors: Iterable[str] = (),
) -> Business:
    """Build a schema.org Organization ``Thing`` with one Organization per proprietor."""

    owners: list[Agent] = [make_organization(name) for name in proprietors]
    return Business(
        type=SDO_ORGANIZATION,
        legal_name=legal_name,
        commenced_trading=_wrap_optional(commenced_trading),
        ceased_trading=_wrap_optional(ceased_trading),
        renewal_due_date=_wrap_optional(renewal_due_date),
        registration_number=registration_number,
        abn=abn,
        proprietor=owners or None,
    )


def make_container(title: str, id: str = "", type: str = "") -> Node:
    return Node(id=id, type=type, title=title)


def markup_set(title: str) -> Node:
    return make_container(title, type=MARKUP_SET_TYPE)


def exhibit(title: str) -> Node:
    return make_container(title, type=EXHIBIT_TYPE)


def bundle(title: str) -> Node:
    return make_container(title, type=BUNDLE_TYPE)


def email(id: str) -> Node:
    return make_container("", id, SDO_EMAIL_MESSAGE)


def file_container(title: str) -> Node:
    return make_container(title, type=CONTAINER_TYPE)


def _wrap_optional(value: date | None) -> W3CDate | None:
    if value is None:
        return None
    return wrap_date(value)
