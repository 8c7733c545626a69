"""Master term dictionaries for metadata.json, manifest.json and log documents."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

from sipmeta.constants import RECORDS_TERMS_NS
from sipmeta.domain.context import TermDefinition

_DC: Final[str] = "http://purl.org/dc/terms/"
_SDO: Final[str] = "http://schema.org/"
_SDO_HTTPS: Final[str] = "https://schema.org/"
_NFO: Final[str] = "http://www.semanticdesktop.org/ontologies/2007/03/22/nfo#"
_PROV: Final[str] = "http://www.w3.org/ns/prov#"
_PROV_HTTPS: Final[str] = "https://www.w3.org/ns/prov#"
_XSD: Final[str] = "http://www.w3.org/2001/XMLSchema#"
_PREMIS: Final[str] = "http://id.loc.gov/vocabulary/preservation/"
_T: Final[str] = RECORDS_TERMS_NS

_ID: Final[str] = "@id"

__all__ = ["LOG_CONTEXT", "MANIFEST_CONTEXT", "METADATA_CONTEXT"]

METADATA_CONTEXT: Final[Mapping[str, TermDefinition | str]] = MappingProxyType(
    {
        "abn": "http://www.wikidata.org/wiki/Q4823913",
        "about": _SDO + "about",
        "actor": _SDO + "actor",
        "authority": _T + "disposalAuthority",
        "ceasedTrading": _SDO + "dissolutionDate",
        "class": _T + "disposalClass",
        "commencedTrading": _SDO + "foundingDate",
        "consignment": TermDefinition(id=_T + "consignment", type=_ID),
        "created": TermDefinition(id=_DC + "created", type=_XSD + "date"),
        "creator": _DC + "creator",
        "description": _DC + "description",
        "director": _SDO + "director",
        "disposalRule": TermDefinition(id=_T + "disposalRule", type=_T + "DisposalRule"),
        "duration": _SDO + "duration",
        "isPartOf": _DC + "isPartOf",
        "language": _SDO + "inLanguage",
        "legalName": _SDO + "legalName",
        "migration": TermDefinition(id=_T + "migration", type=_ID),
        "modified": TermDefinition(id=_DC + "modified", type=_XSD + "date"),
        "name": _SDO + "name",
        "productionCompany": _SDO + "productionCompany",
        "proprietor": _T + "proprietor",
        "registrationNumber": _T + "registrationNumber",
        "renewalDueDate": TermDefinition(id=_T + "renewalDueDate", type=_XSD + "date"),
        "series": TermDefinition(id=_T + "series", type=_ID),
        "source": _DC + "source",
        "subtitles": _SDO + "subtitleLanguage",
        "title": _DC + "title",
    }
)

MANIFEST_CONTEXT: Final[Mapping[str, TermDefinition | str]] = MappingProxyType(
    {
        "accessDescription": _T + "accessDescription",
        "accessDirection": TermDefinition(id=_T + "accessDirection", type=_ID),
        "accessRules": TermDefinition(id=_T + "accessRules", type=_T + "AccessRule"),
        "base": _T + "base",
        "basis": TermDefinition(id=_T + "basis", type=_T + "Basis"),
        "derivedFrom": TermDefinition(id=_PROV + "wasDerivedFrom", type=_ID),
        "displayTarget": TermDefinition(id=_T + "displayTarget", type=_ID),
        "executeDate": TermDefinition(id=_T + "executeDate", type=_XSD + "date"),
        "fileCreated": TermDefinition(id=_NFO + "fileCreated", type=_XSD + "dateTime"),
        "files": TermDefinition(
            id="http://www.openarchives.org/ore/0.9/jsonld#aggregates",
            type=_NFO + "FileDataObject",
        ),
        "fullManifest": TermDefinition(id=_T + "fullManifest", type=_XSD + "boolean"),
        "generatedBy": TermDefinition(id=_PROV + "wasGeneratedBy", type=_ID),
        "hasAccessRules": TermDefinition(id=_T + "hasAccessRules", type=_ID),
        "hash": _NFO + "hasHash",
        "hashAlgorithm": _NFO + "hashAlgorithm",
        "hashValue": _NFO + "hashValue",
        "metadataPatch": TermDefinition(id=_T + "metadataPatch", type=_XSD + "integer"),
        "mime": TermDefinition(id=_DC + "format", type=_DC + "MediaType"),
        "modified": TermDefinition(id=_NFO + "fileLastModified", type=_XSD + "dateTime"),
        "name": _NFO + "fileName",
        "originalName": _PREMIS + "hasOriginalName",
        "previewTarget": TermDefinition(id=_T + "previewTarget", type=_ID),
        "publish": TermDefinition(id=_T + "publish", type=_XSD + "boolean"),
        "puid": TermDefinition(id=_DC + "format", type=_ID),
        "scope": _T + "scope",
        "size": TermDefinition(id=_NFO + "fileSize", type=_XSD + "integer"),
        "textTarget": TermDefinition(id=_T + "textTarget", type=_ID),
        "versions": TermDefinition(id=_T + "versions", type=_T + "Version"),
    }
)

LOG_CONTEXT: Final[Mapping[str, TermDefinition | str]] = MappingProxyType(
    {
        "agent": TermDefinition(id=_PROV_HTTPS + "wasAssociatedWith", type=_PROV_HTTPS + "Agent"),
        "detail": _PREMIS + "hasNote",
        "endTime": TermDefinition(id=_PROV_HTTPS + "endedAtTime", type=_XSD + "dateTime"),
        "name": _SDO + "name",
        "softwareVersion": _SDO_HTTPS + "softwareVersion",
        "startTime": TermDefinition(id=_PROV_HTTPS + "startedAtTime", type=_XSD + "dateTime"),
    }
)
