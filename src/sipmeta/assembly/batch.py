"""
sipmeta — batch of digital objects and SIP output.

File: src/sipmeta/assembly/batch.py

Purpose
- Hold the metadata, manifest and logs of every object in a transfer, keyed
  by an ordered index.
- Write each object to ``<target>/<position>/`` as metadata.json,
  manifest.json and ``logs/<n>.json`` after running the output actions.

Functional requirements
- Loaders run in the order given; the first failure aborts construction.
- Output order and directory numbering follow the index.
- Documents are written atomically with their ``@context`` populated.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from sipmeta.constants import DEFAULT_CAPACITY, LOGS_DIR, MANIFEST_FILENAME, METADATA_FILENAME
from sipmeta.domain.events import Log
from sipmeta.domain.metadata import Metadata
from sipmeta.domain.models import Manifest
from sipmeta.observability.logging import bind_object_context
from sipmeta.utils.fs import atomic_write

logger = structlog.get_logger(__name__)

Action = Callable[["Batch", Path, str], None]

__all__ = ["Action", "Batch", "Loader"]


@runtime_checkable
class Loader(Protocol):
    def load(self, batch: Batch) -> None: ...


@dataclass(slots=True)
class Batch:
    """An ordered set of objects.

    ``capacity`` is a sizing hint for large jobs and has no effect on output.
    ``store`` is free for project-specific data shared between loaders and
    actions.
    """

    capacity: int = DEFAULT_CAPACITY
    sample_size: int = -1
    index: list[str] = field(default_factory=list)
    metadata: dict[str, Metadata] = field(default_factory=dict)
    manifests: dict[str, Manifest] = field(default_factory=dict)
    logs: dict[str, list[Log]] = field(default_factory=dict)
    store: dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_loaders(cls, *loaders: Loader, capacity: int = DEFAULT_CAPACITY) -> Batch:
        batch = cls(capacity=capacity)
        for loader in loaders:
            loader.load(batch)
        logger.info("batch_loaded", objects=len(batch), capacity=capacity)
        return batch

    def __len__(self) -> int:
        return len(self.index)

    def __contains__(self, key: object) -> bool:
        return key in self.metadata

    def add(self, key: str, metadata: Metadata, manifest: Manifest | None = None) -> None:
        """Append a new object at the end of the index."""

        if key in self.metadata:
            raise ValueError(f"duplicate object key {key!r}")
        self.index.append(key)
        self.metadata[key] = metadata
        self.manifests[key] = manifest if manifest is not None else Manifest()

    def add_log(self, key: str, log: Log) -> None:
        if key not in self.metadata:
            raise KeyError(key)
        self.logs.setdefault(key, []).append(log)

    def items(self) -> Iterator[tuple[str, Metadata, Manifest]]:
        for key in self.index:
            yield key, self.metadata[key], self.manifests[key]

    def output(self, target: str | Path, *actions: Action) -> list[Path]:
        """Write every object; returns the object directories in index order."""

        return self.sample(0, -1, target, *actions)

    def sample(self, start: int, size: int, target: str | Path, *actions: Action) -> list[Path]:
        """Write ``size`` objects from position ``start`` (``-1`` means all).

        A negative ``start`` counts back from the end of the index. Directory
        names are the absolute index positions.
        """

        if start < 0:
            start = max(len(self.index) + start, 0)
        self.sample_size = size
        root = Path(target)
        written: list[Path] = []
        remaining = size
        for position, key in enumerate(self.index):
            if position < start:
                continue
            if remaining == 0:
                break
            remaining -= 1
            written.append(self._write_object(position, key, root, actions))
        logger.info("batch_written", objects=len(written), target=str(root))
        return written

    def _write_object(
        self, position: int, key: str, root: Path, actions: tuple[Action, ...]
    ) -> Path:
        directory = root / str(position)
        with bind_object_context(position, key):
            directory.mkdir(parents=True, exist_ok=True)
            for action in actions:
                action(self, directory, key)
            atomic_write(directory / METADATA_FILENAME, self.metadata[key].serialize())
            atomic_write(directory / MANIFEST_FILENAME, self.manifests[key].serialize())
            logs = self.logs.get(key, [])
            if logs:
                logs_dir = directory / LOGS_DIR
                logs_dir.mkdir(exist_ok=True)
                for number, log in enumerate(logs):
                    atomic_write(logs_dir / f"{number}.json", log.serialize())
            logger.debug("object_written", output=str(directory))
        return directory
