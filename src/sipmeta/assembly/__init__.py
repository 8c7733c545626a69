"""Batch assembly: loaders fill a batch, actions run while each object is written."""

from sipmeta.assembly.actions import (
    PathFunc,
    decompress,
    index_path,
    manifest_copy,
    progress,
    simple_manifest,
)
from sipmeta.assembly.batch import Action, Batch, Loader
from sipmeta.assembly.identification import (
    ARCHIVE_PUIDS,
    ArchiveEntry,
    ArchiveOpener,
    ContainerArchiveOpener,
    ExtensionClassifier,
    FormatClassifier,
    Identification,
    is_archive,
)
from sipmeta.assembly.loaders import (
    AgencyLoader,
    DisposalRuleLoader,
    GlobalAccess,
    SeriesLoader,
    SiegfriedLoader,
    TitleLoader,
)
from sipmeta.assembly.siegfried import ResultsFormatError, SiegfriedResults, read_results

__all__ = [
    "ARCHIVE_PUIDS",
    "Action",
    "AgencyLoader",
    "ArchiveEntry",
    "ArchiveOpener",
    "Batch",
    "ContainerArchiveOpener",
    "DisposalRuleLoader",
    "ExtensionClassifier",
    "FormatClassifier",
    "GlobalAccess",
    "Identification",
    "Loader",
    "PathFunc",
    "ResultsFormatError",
    "SeriesLoader",
    "SiegfriedLoader",
    "SiegfriedResults",
    "TitleLoader",
    "decompress",
    "index_path",
    "is_archive",
    "manifest_copy",
    "progress",
    "read_results",
    "simple_manifest",
]
