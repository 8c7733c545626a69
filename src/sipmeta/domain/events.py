"""Preservation event logs written to ``logs/<n>.json`` inside a SIP."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import ClassVar

from sipmeta.domain.context import Context, JSONLDDocument, TermDefinition
from sipmeta.domain.ids import reference_log
from sipmeta.domain.jsonld import term
from sipmeta.domain.metadata import Agent
from sipmeta.domain.vocab import LOG_CONTEXT

__all__ = ["EventType", "Log", "MIGRATION_EVENT", "MODIFICATION_EVENT", "new_log"]


class EventType(StrEnum):
    """PREMIS event types (http://id.loc.gov/vocabulary/preservation/eventType)."""

    MODIFICATION = "http://id.loc.gov/vocabulary/preservation/eventType/mod"
    MIGRATION = "http://id.loc.gov/vocabulary/preservation/eventType/mig"


MODIFICATION_EVENT = EventType.MODIFICATION
MIGRATION_EVENT = EventType.MIGRATION


@dataclass(slots=True)
class Log(JSONLDDocument):
    """One preservation event, e.g. a format migration, described with PROV and PREMIS terms."""

    terms: ClassVar[Mapping[str, TermDefinition | str]] = LOG_CONTEXT

    id: str = term("@id")
    type: str = term("@type")
    start_time: datetime | None = term("startTime", omitnone=True, default=None)
    end_time: datetime | None = term("endTime", default=None)
    detail: str = term("detail", default="")
    agent: Agent | None = term("agent", flatten=True, default=None)
    context: Context | None = term("@context", default=None)


def new_log(index: int, event_type: str) -> Log:
    return Log(id=reference_log(index), type=event_type)
