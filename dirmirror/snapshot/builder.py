# dirmirror/snapshot/builder.py
"""
Snapshot builder (the create-db tool).

Walks a tree once and records every directory and file into a metadata
store. The whole build is one store transaction that first clears the
previous snapshot, so the store ends up holding either the old snapshot
or the complete new one.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from dirmirror.core.encoding import PathCodec
from dirmirror.core.exceptions import ScanError
from dirmirror.logging import get_logger
from dirmirror.logging.tags import SNAPSHOT
from dirmirror.scan.digest import DEFAULT_CHUNK_SIZE
from dirmirror.scan.probe import MetadataProbe
from dirmirror.scan.scanner import TreeScanner
from dirmirror.store.base import MetadataStore

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SnapshotSummary:
    """Summary of a create-db run."""

    source: str = ""
    directories: int = 0
    files: int = 0
    bytes_hashed: int = 0
    skipped: int = 0
    denied: int = 0
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def __str__(self) -> str:
        return (
            f"directories {self.directories}, files {self.files}, "
            f"bytes {self.bytes_hashed}, skipped {self.skipped}, denied {self.denied}"
        )


def check_source(source: str | Path) -> str:
    """Return `source` as a string, or raise ScanError if it is not a directory."""
    path = os.fspath(source)
    if not os.path.isdir(path):
        raise ScanError(path, detail="not a directory")
    return path


class SnapshotBuilder:
    """
    Scan observer that writes each traversal event into a store.

    Usage:
        builder = SnapshotBuilder(store, MetadataProbe())
        TreeScanner().scan(root, builder)
    """

    def __init__(
        self,
        store: MetadataStore,
        probe: MetadataProbe,
        codec: Optional[PathCodec] = None,
    ) -> None:
        self._store = store
        self._probe = probe
        self._codec = codec or PathCodec()
        self.directories = 0
        self.files = 0

    def directory_entered(self, rel_dir: str) -> None:
        self._store.upsert_directories([self._codec.to_canonical(rel_dir)])
        self.directories += 1

    def file_found(self, dir_path: str, rel_dir: str, name: str) -> None:
        record = self._probe.probe(os.path.join(dir_path, name))
        self._store.upsert_file(
            self._codec.to_canonical(rel_dir),
            self._codec.to_canonical(name),
            record,
        )
        self.files += 1

    def directory_left(self, rel_dir: str) -> None:
        pass


def create_db(
    source: str | Path,
    store: MetadataStore,
    *,
    codec: Optional[PathCodec] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> SnapshotSummary:
    """
    Record a snapshot of `source` into `store`, replacing any previous one.

    The store is not closed here; the caller owns it (see managed_store).

    Args:
        source: Directory to snapshot.
        store: Open metadata store.
        codec: Path charset converter; defaults to UTF-8.
        chunk_size: Digest read chunk size.

    Returns:
        SnapshotSummary with counts.

    Raises:
        ScanError, OpenFileError, ReadFileError, StoreError, EncodingError:
            Any failure aborts the build and rolls the store back.
    """
    root = check_source(source)
    summary = SnapshotSummary(source=root)
    probe = MetadataProbe(chunk_size)
    builder = SnapshotBuilder(store, probe, codec)
    scanner = TreeScanner()

    logger.info(f"{SNAPSHOT} Building snapshot of '{root}' into '{store.path}'...")

    with store.transaction():
        store.clear()
        stats = scanner.scan(root, builder)

    summary.directories = builder.directories
    summary.files = builder.files
    summary.bytes_hashed = probe.bytes_hashed
    summary.skipped = stats.skipped
    summary.denied = len(stats.denied)
    summary.finished_at = _utcnow()

    logger.info(f"{SNAPSHOT} Snapshot complete: {summary}")
    return summary


__all__ = [
    "SnapshotBuilder",
    "SnapshotSummary",
    "check_source",
    "create_db",
]
