"""Built-in loaders: each fills in or decorates the objects of a :class:`Batch`."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path, PureWindowsPath
from typing import IO

import structlog

from sipmeta.assembly.batch import Batch
from sipmeta.assembly.siegfried import SiegfriedRecord, SiegfriedResults, read_results
from sipmeta.domain.dates import wrap_date
from sipmeta.domain.ids import FileTarget, to_puid, to_series
from sipmeta.domain.metadata import DisposalRule, Metadata, make_agency
from sipmeta.domain.models import AccessScope, File, Hash, Manifest

logger = structlog.get_logger(__name__)

TitleFunc = Callable[[Batch, str], str]

__all__ = [
    "AgencyLoader",
    "DisposalRuleLoader",
    "GlobalAccess",
    "SeriesLoader",
    "SiegfriedLoader",
    "TitleFunc",
    "TitleLoader",
]


@dataclass(slots=True)
class SiegfriedLoader:
    """Create one object per file in a siegfried results file.

    ``blacklist`` holds short PUIDs (e.g. ``fmt/682``) whose files are skipped.
    """

    source: str | Path | IO[str] | SiegfriedResults
    blacklist: Iterable[str] = field(default_factory=tuple)

    def load(self, batch: Batch) -> None:
        results = (
            self.source
            if isinstance(self.source, SiegfriedResults)
            else read_results(self.source)
        )
        blacklist = frozenset(self.blacklist)
        skipped = 0
        for record in results:
            if record.puid in blacklist:
                skipped += 1
                continue
            metadata, manifest = _object_for(record, len(batch), results.header.hash_algorithm)
            batch.add(record.path, metadata, manifest)
        if skipped:
            logger.info("blacklisted", skipped=skipped)
        logger.debug("siegfried_loaded", records=len(results), objects=len(batch))


@dataclass(frozen=True, slots=True)
class GlobalAccess:
    """Give every object a rule covering its first file; global and published by default."""

    direction: int
    description: str
    execute_date: str
    scope: str = AccessScope.GLOBAL
    publish: bool = True

    def load(self, batch: Batch) -> None:
        for key in batch.index:
            batch.manifests[key].add_access_rule(
                self.execute_date,
                self.scope,
                self.publish,
                self.direction,
                self.description,
                display=[FileTarget(0, 0)],
            )


@dataclass(frozen=True, slots=True)
class DisposalRuleLoader:
    authority: str
    class_: str

    def load(self, batch: Batch) -> None:
        for key in batch.index:
            batch.metadata[key].disposal_rule = DisposalRule(
                authority=self.authority, class_=self.class_
            )


@dataclass(frozen=True, slots=True)
class SeriesLoader:
    series: int

    def load(self, batch: Batch) -> None:
        for key in batch.index:
            batch.metadata[key].series = to_series(self.series)


@dataclass(frozen=True, slots=True)
class AgencyLoader:
    """Set the creating agency of every object."""

    name: str
    agency: int

    def load(self, batch: Batch) -> None:
        for key in batch.index:
            batch.metadata[key].creator = make_agency(self.name, self.agency)


@dataclass(frozen=True, slots=True)
class TitleLoader:
    """Derive each title from the batch, e.g. by rewriting the file name."""

    func: TitleFunc

    def load(self, batch: Batch) -> None:
        for key in batch.index:
            batch.metadata[key].title = self.func(batch, key)


def _object_for(
    record: SiegfriedRecord, index: int, hash_algorithm: str
) -> tuple[Metadata, Manifest]:
    # Results may come from a Windows scan; accept both separators.
    path = PureWindowsPath(record.path)
    name = path.name

    metadata = Metadata.new(index, path.stem)
    if record.modified is not None:
        metadata.created = wrap_date(record.modified)

    file_hash = None
    if hash_algorithm:
        file_hash = Hash(algorithm=hash_algorithm, value=record.hash_value)

    manifest = Manifest()
    manifest.add_version(
        [
            File(
                name=name,
                size=record.size,
                modified=record.modified,
                mime=record.mime,
                puid=to_puid(record.puid),
                hash=file_hash,
            )
        ]
    )
    return metadata, manifest
