# dirmirror/snapshot/verifier.py
"""
Consistency verifier (the verify-dir tool).

Walks the live tree once and compares it with a snapshot:

1. On entering a directory, its snapshot records are read into an
   expectation map and pushed on a stack; the directory is ticked off
   the set of known directories.
2. Each file found is looked up in the map on top of the stack and
   removed from it, matched or not. Unknown names are new files.
3. On leaving a directory, whatever is left in its map was not found
   on disk.
4. After the walk, every known directory that was never entered is
   missing.

Divergences are data, not errors: they all go to one MismatchHandler
and the walk continues. Only scanner, probe and store failures abort.
The store is only read.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from dirmirror.core.encoding import PathCodec
from dirmirror.core.models import MetadataRecord, join_relative
from dirmirror.logging import get_logger
from dirmirror.logging.tags import VERIFY
from dirmirror.scan.digest import DEFAULT_CHUNK_SIZE
from dirmirror.scan.probe import MetadataProbe
from dirmirror.scan.scanner import TreeScanner
from dirmirror.snapshot.builder import check_source
from dirmirror.snapshot.handlers import MismatchField, MismatchHandler
from dirmirror.store.base import DirectoryExpectationMap, DirectorySet, MetadataStore

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VerifySummary:
    """Summary of a verify-dir run. Mismatch counts live in the handler."""

    source: str = ""
    directories: int = 0
    files: int = 0
    bytes_hashed: int = 0
    missing_directories: int = 0
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
            f"missing directories {self.missing_directories}"
        )


def compare_records(
    path: str,
    expected: MetadataRecord,
    actual: MetadataRecord,
    handler: MismatchHandler,
) -> bool:
    """
    Compare two records of the same path and report differences.

    A kind mismatch is reported alone and stops the comparison. For
    files, size, modification time (milliseconds) and digest are each
    checked and every differing field is reported.

    Returns:
        True if the records match fully.
    """
    if expected.kind != actual.kind:
        handler.type_mismatch(path, expected, actual)
        return False

    if not actual.is_file:
        return True

    full_match = True
    if expected.size != actual.size:
        handler.field_mismatch(path, MismatchField.SIZE, expected, actual)
        full_match = False
    if expected.modified_at_ms != actual.modified_at_ms:
        handler.field_mismatch(path, MismatchField.MODIFIED_AT, expected, actual)
        full_match = False
    if expected.digest != actual.digest:
        handler.field_mismatch(path, MismatchField.DIGEST, expected, actual)
        full_match = False
    return full_match


class ConsistencyVerifier:
    """
    Scan observer comparing traversal events with a snapshot.

    Usage:
        verifier = ConsistencyVerifier(store, MetadataProbe(), handler)
        TreeScanner().scan(root, verifier)
        verifier.finish()
    """

    def __init__(
        self,
        store: MetadataStore,
        probe: MetadataProbe,
        handler: MismatchHandler,
        codec: Optional[PathCodec] = None,
    ) -> None:
        self._store = store
        self._probe = probe
        self._handler = handler
        self._codec = codec or PathCodec()
        self._stack: List[DirectoryExpectationMap] = []
        self.remaining_dirs: DirectorySet = store.read_all_directories()
        self.directories = 0
        self.files = 0

    def directory_entered(self, rel_dir: str) -> None:
        canonical = self._codec.to_canonical(rel_dir)
        if canonical in self.remaining_dirs:
            self.remaining_dirs.discard(canonical)
        else:
            self._handler.new_directory_found(canonical)
        self._stack.append(self._store.read_files_of(canonical))
        self.directories += 1

    def file_found(self, dir_path: str, rel_dir: str, name: str) -> None:
        canonical_dir = self._codec.to_canonical(rel_dir)
        canonical_name = self._codec.to_canonical(name)
        rel_path = join_relative(canonical_dir, canonical_name)
        logger.debug(f"{VERIFY} Checking the file '{rel_path}'...")

        actual = self._probe.probe(os.path.join(dir_path, name))
        self.files += 1

        expected = self._stack[-1].pop(canonical_name, None)
        if expected is None:
            self._handler.new_file_found(rel_path, actual.kind)
            return

        compare_records(rel_path, expected, actual, self._handler)

    def directory_left(self, rel_dir: str) -> None:
        leftovers = self._stack.pop()
        canonical_dir = self._codec.to_canonical(rel_dir)
        for name in sorted(leftovers):
            self._handler.file_not_found(join_relative(canonical_dir, name), leftovers[name].kind)

    def finish(self) -> List[str]:
        """
        Report every known directory that was never entered.

        Returns:
            The missing directory paths, sorted.
        """
        assert not self._stack, f"{len(self._stack)} directory contexts left open"

        missing = sorted(self.remaining_dirs)
        for rel_dir in missing:
            self._handler.directory_not_found(rel_dir)
        self.remaining_dirs = set()
        return missing


def verify_dir(
    source: str | Path,
    store: MetadataStore,
    handler: MismatchHandler,
    *,
    codec: Optional[PathCodec] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> VerifySummary:
    """
    Verify the live tree at `source` against the snapshot in `store`.

    Mismatches are delivered to `handler` as they are found. The store
    is read, never written, and not closed here.

    Args:
        source: Directory to verify.
        store: Open metadata store holding the snapshot.
        handler: Receives every mismatch.
        codec: Path charset converter; defaults to UTF-8.
        chunk_size: Digest read chunk size.

    Returns:
        VerifySummary with traversal counts.

    Raises:
        ScanError, OpenFileError, ReadFileError, StoreError, EncodingError:
            On a fatal failure; mismatches already reported stay reported.
    """
    root = check_source(source)
    summary = VerifySummary(source=root)
    probe = MetadataProbe(chunk_size)
    verifier = ConsistencyVerifier(store, probe, handler, codec)

    logger.info(f"{VERIFY} Verifying '{root}' against '{store.path}'...")
    TreeScanner().scan(root, verifier)
    missing = verifier.finish()

    summary.directories = verifier.directories
    summary.files = verifier.files
    summary.bytes_hashed = probe.bytes_hashed
    summary.missing_directories = len(missing)
    summary.finished_at = _utcnow()

    logger.info(f"{VERIFY} Verification complete: {summary}")
    return summary


__all__ = [
    "ConsistencyVerifier",
    "VerifySummary",
    "compare_records",
    "verify_dir",
]
