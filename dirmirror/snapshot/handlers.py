# dirmirror/snapshot/handlers.py
"""
Mismatch reporting for verification.

The verifier reports every divergence through exactly one
MismatchHandler. Handlers decide what to do with it: log it, collect
it, or stop the run.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from dirmirror.core.exceptions import MismatchFound
from dirmirror.core.models import EntryKind, MetadataRecord
from dirmirror.logging import get_logger
from dirmirror.logging.tags import VERIFY

logger = get_logger(__name__)


class MismatchField(str, Enum):
    """Record field compared for files whose kinds match."""

    SIZE = "size"
    MODIFIED_AT = "modified_at"
    DIGEST = "digest"

    def __str__(self) -> str:
        return self.value


class MismatchType(str, Enum):
    """Category of a reported divergence."""

    NEW_FILE = "new_file"
    NEW_DIRECTORY = "new_directory"
    FILE_NOT_FOUND = "file_not_found"
    DIRECTORY_NOT_FOUND = "directory_not_found"
    TYPE_MISMATCH = "type_mismatch"
    FIELD_MISMATCH = "field_mismatch"

    def __str__(self) -> str:
        return self.value


def field_value(record: MetadataRecord, mismatch_field: MismatchField) -> Any:
    """The value of one compared field, in display form."""
    if mismatch_field is MismatchField.SIZE:
        return record.size
    if mismatch_field is MismatchField.MODIFIED_AT:
        return record.modified_at.isoformat(timespec="milliseconds")
    return record.digest_hex


@dataclass(frozen=True)
class Mismatch:
    """One reported divergence between the snapshot and the filesystem."""

    type: MismatchType
    path: str
    kind: Optional[EntryKind] = None
    field: Optional[MismatchField] = None
    expected: Optional[MetadataRecord] = None
    actual: Optional[MetadataRecord] = None

    def describe(self) -> str:
        """Human-readable one-line description."""
        if self.type is MismatchType.NEW_FILE:
            return f"New {self.kind} found in the file system: '{self.path}'"
        if self.type is MismatchType.NEW_DIRECTORY:
            return f"New directory found in the file system: '{self.path}'"
        if self.type is MismatchType.FILE_NOT_FOUND:
            return f"{str(self.kind).capitalize()} not found in the file system: '{self.path}'"
        if self.type is MismatchType.DIRECTORY_NOT_FOUND:
            return f"Directory not found in the file system: '{self.path}'"
        if self.type is MismatchType.TYPE_MISMATCH:
            return (
                f"File type mismatch for '{self.path}': "
                f"DB type '{self.expected.kind}', file system type '{self.actual.kind}'"
            )
        return (
            f"File {self.field} mismatch for '{self.path}': "
            f"DB {field_value(self.expected, self.field)}, "
            f"file system {field_value(self.actual, self.field)}"
        )

    def __str__(self) -> str:
        return self.describe()


@runtime_checkable
class MismatchHandler(Protocol):
    """Receives every divergence found by the verifier, as it is found."""

    def new_file_found(self, path: str, kind: EntryKind) -> None:
        ...

    def new_directory_found(self, path: str) -> None:
        ...

    def file_not_found(self, path: str, kind: EntryKind) -> None:
        ...

    def directory_not_found(self, path: str) -> None:
        ...

    def type_mismatch(self, path: str, expected: MetadataRecord, actual: MetadataRecord) -> None:
        ...

    def field_mismatch(
        self,
        path: str,
        field: MismatchField,
        expected: MetadataRecord,
        actual: MetadataRecord,
    ) -> None:
        ...


class MismatchDispatcher:
    """
    Base handler that funnels every callback into on_mismatch().

    Subclasses only implement on_mismatch().
    """

    def on_mismatch(self, mismatch: Mismatch) -> None:
        raise NotImplementedError

    def new_file_found(self, path: str, kind: EntryKind) -> None:
        self.on_mismatch(Mismatch(MismatchType.NEW_FILE, path, kind=kind))

    def new_directory_found(self, path: str) -> None:
        self.on_mismatch(Mismatch(MismatchType.NEW_DIRECTORY, path, kind=EntryKind.DIRECTORY))

    def file_not_found(self, path: str, kind: EntryKind) -> None:
        self.on_mismatch(Mismatch(MismatchType.FILE_NOT_FOUND, path, kind=kind))

    def directory_not_found(self, path: str) -> None:
        self.on_mismatch(
            Mismatch(MismatchType.DIRECTORY_NOT_FOUND, path, kind=EntryKind.DIRECTORY)
        )

    def type_mismatch(self, path: str, expected: MetadataRecord, actual: MetadataRecord) -> None:
        self.on_mismatch(
            Mismatch(
                MismatchType.TYPE_MISMATCH,
                path,
                kind=actual.kind,
                expected=expected,
                actual=actual,
            )
        )

    def field_mismatch(
        self,
        path: str,
        field: MismatchField,
        expected: MetadataRecord,
        actual: MetadataRecord,
    ) -> None:
        self.on_mismatch(
            Mismatch(
                MismatchType.FIELD_MISMATCH,
                path,
                kind=actual.kind,
                field=field,
                expected=expected,
                actual=actual,
            )
        )


class LoggingMismatchHandler(MismatchDispatcher):
    """Logs every mismatch at ERROR level."""

    def on_mismatch(self, mismatch: Mismatch) -> None:
        logger.error(f"{VERIFY} {mismatch.describe()}")


@dataclass
class CollectingMismatchHandler(MismatchDispatcher):
    """
    Collects mismatches for later inspection.

    Usage:
        handler = CollectingMismatchHandler()
        verify_dir(root, store, handler)
        if not handler.is_clean:
            for m in handler.mismatches:
                print(m)
    """

    mismatches: List[Mismatch] = field(default_factory=list)

    def on_mismatch(self, mismatch: Mismatch) -> None:
        self.mismatches.append(mismatch)

    @property
    def is_clean(self) -> bool:
        return not self.mismatches

    def of_type(self, mismatch_type: MismatchType) -> List[Mismatch]:
        return [m for m in self.mismatches if m.type is mismatch_type]

    def paths(self, mismatch_type: MismatchType) -> List[str]:
        return [m.path for m in self.of_type(mismatch_type)]

    def field_mismatches(self, mismatch_field: MismatchField) -> List[Mismatch]:
        return [m for m in self.of_type(MismatchType.FIELD_MISMATCH) if m.field is mismatch_field]

    @property
    def counts(self) -> Dict[str, int]:
        """Count per category; field mismatches are split per field."""
        counter: Counter = Counter()
        for m in self.mismatches:
            if m.type is MismatchType.FIELD_MISMATCH:
                counter[f"{m.field}_mismatch"] += 1
            else:
                counter[m.type.value] += 1
        return dict(counter)

    @property
    def summary(self) -> str:
        if self.is_clean:
            return "no mismatches"
        return ", ".join(f"{name} {count}" for name, count in sorted(self.counts.items()))


class FailFastMismatchHandler(MismatchDispatcher):
    """Raises MismatchFound on the first divergence."""

    def on_mismatch(self, mismatch: Mismatch) -> None:
        raise MismatchFound(mismatch)


class CompositeMismatchHandler:
    """Forwards every callback to several handlers, in order."""

    def __init__(self, handlers: Sequence[MismatchHandler]) -> None:
        self._handlers = list(handlers)

    def new_file_found(self, path: str, kind: EntryKind) -> None:
        for h in self._handlers:
            h.new_file_found(path, kind)

    def new_directory_found(self, path: str) -> None:
        for h in self._handlers:
            h.new_directory_found(path)

    def file_not_found(self, path: str, kind: EntryKind) -> None:
        for h in self._handlers:
            h.file_not_found(path, kind)

    def directory_not_found(self, path: str) -> None:
        for h in self._handlers:
            h.directory_not_found(path)

    def type_mismatch(self, path: str, expected: MetadataRecord, actual: MetadataRecord) -> None:
        for h in self._handlers:
            h.type_mismatch(path, expected, actual)

    def field_mismatch(
        self,
        path: str,
        field: MismatchField,
        expected: MetadataRecord,
        actual: MetadataRecord,
    ) -> None:
        for h in self._handlers:
            h.field_mismatch(path, field, expected, actual)


__all__ = [
    "CollectingMismatchHandler",
    "CompositeMismatchHandler",
    "FailFastMismatchHandler",
    "LoggingMismatchHandler",
    "Mismatch",
    "MismatchDispatcher",
    "MismatchField",
    "MismatchHandler",
    "MismatchType",
    "field_value",
]
