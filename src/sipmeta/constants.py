"""Stable constants shared across the SIP builder."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Namespaces used to mint IRIs from integer identifiers.
RECORDS_TERMS_NS: Final[str] = "http://records.nsw.gov.au/terms/"
ACCESS_DIRECTION_NS: Final[str] = "http://records.nsw.gov.au/accessDirection/"
AGENCY_NS: Final[str] = "http://records.nsw.gov.au/agencies/"
PERSON_NS: Final[str] = "http://records.nsw.gov.au/persons/"
SERIES_NS: Final[str] = "http://records.nsw.gov.au/series/"
CONSIGNMENT_NS: Final[str] = "http://records.nsw.gov.au/consignments/"
PRONOM_NS: Final[str] = "http://www.nationalarchives.gov.uk/pronom/"

# Document type IRIs.
MANIFEST_TYPE: Final[str] = RECORDS_TERMS_NS + "Manifest"
DIGITAL_ARCHIVE_TYPE: Final[str] = RECORDS_TERMS_NS + "DigitalArchive"

# Placeholder for files the classifier could not identify.
UNKNOWN_PUID: Final[str] = "UNKNOWN"

# SIP folder layout.
METADATA_FILENAME: Final[str] = "metadata.json"
MANIFEST_FILENAME: Final[str] = "manifest.json"
LOGS_DIR: Final[PurePosixPath] = PurePosixPath("logs")
VERSIONS_DIR: Final[PurePosixPath] = PurePosixPath("versions")

DEFAULT_CAPACITY: Final[int] = 1000

__all__ = [
    "ACCESS_DIRECTION_NS",
    "AGENCY_NS",
    "CONSIGNMENT_NS",
    "DEFAULT_CAPACITY",
    "DIGITAL_ARCHIVE_TYPE",
    "LOGS_DIR",
    "MANIFEST_FILENAME",
    "MANIFEST_TYPE",
    "METADATA_FILENAME",
    "PERSON_NS",
    "PRONOM_NS",
    "RECORDS_TERMS_NS",
    "SERIES_NS",
    "UNKNOWN_PUID",
    "VERSIONS_DIR",
]
