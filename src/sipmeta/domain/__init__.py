"""
sipmeta — domain layer

File: src/sipmeta/domain/__init__.py

Purpose
- JSON-LD document models (metadata, manifest, log), the manifest builder,
  blank-node references, W3C dates and ``@context`` inference.

Functional requirements
- No IO side effects: everything here is pure data assembly.
"""

from sipmeta.domain.context import (
    Context,
    JSONLDDocument,
    MalformedJSONError,
    TermDefinition,
    keys,
    populate,
)
from sipmeta.domain.dates import DateFormatError, W3CDate, new_date, parse_date
from sipmeta.domain.events import Log, new_log
from sipmeta.domain.metadata import Business, DisposalRule, Metadata, Node
from sipmeta.domain.models import (
    AccessRule,
    AccessScope,
    Basis,
    File,
    Hash,
    Manifest,
    ScopeError,
    Version,
    append_access_rule,
    copy_access_rules,
    reference_files,
)

__all__ = [
    "AccessRule",
    "AccessScope",
    "Basis",
    "Business",
    "Context",
    "DateFormatError",
    "DisposalRule",
    "File",
    "Hash",
    "JSONLDDocument",
    "Log",
    "MalformedJSONError",
    "Manifest",
    "Metadata",
    "Node",
    "ScopeError",
    "TermDefinition",
    "Version",
    "W3CDate",
    "append_access_rule",
    "copy_access_rules",
    "keys",
    "new_date",
    "new_log",
    "parse_date",
    "populate",
    "reference_files",
]
