# dirmirror/core/models.py
"""
Data model shared by the scanner, the store and the snapshot tools.

Records and keys are immutable: a changed entry gets a new record,
never an edited one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

DIGEST_SIZE = 16
EMPTY_DIGEST = bytes(DIGEST_SIZE)

ROOT_DIR = ""
SEPARATOR = "/"


class EntryKind(str, Enum):
    """Type of a filesystem entry tracked by a snapshot."""

    FILE = "file"
    DIRECTORY = "directory"

    def __str__(self) -> str:
        return self.value


def join_relative(rel_dir: str, name: str) -> str:
    """
    Extend a relative directory path by one segment.

    The root is the empty string, so first-level entries carry no
    leading separator.
    """
    if rel_dir == ROOT_DIR:
        return name
    return f"{rel_dir}{SEPARATOR}{name}"


def split_relative(path: str) -> tuple[str, str]:
    """Split a relative path into (parent directory, entry name)."""
    parent, sep, name = path.rpartition(SEPARATOR)
    if not sep:
        return ROOT_DIR, path
    return parent, name


@dataclass(frozen=True)
class MetadataRecord:
    """
    Metadata of one filesystem entry.

    size and digest are only meaningful for files; directory records
    carry 0 and an all-zero digest.
    """

    kind: EntryKind
    size: int
    modified_at_ms: int
    digest: bytes = EMPTY_DIGEST

    def __post_init__(self) -> None:
        if len(self.digest) != DIGEST_SIZE:
            raise ValueError(f"digest must be {DIGEST_SIZE} bytes, got {len(self.digest)}")
        if self.size < 0:
            raise ValueError(f"size must not be negative, got {self.size}")

    @classmethod
    def for_file(cls, size: int, modified_at_ms: int, digest: bytes) -> "MetadataRecord":
        return cls(EntryKind.FILE, size, modified_at_ms, digest)

    @classmethod
    def for_directory(cls, modified_at_ms: int) -> "MetadataRecord":
        return cls(EntryKind.DIRECTORY, 0, modified_at_ms, EMPTY_DIGEST)

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def digest_hex(self) -> str:
        return self.digest.hex()

    @property
    def modified_at(self) -> datetime:
        """Modification time as an aware UTC datetime (millisecond precision)."""
        return datetime.fromtimestamp(self.modified_at_ms / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class PathKey:
    """
    Store key: a canonical relative path plus the entry kind.

    The same path with a different kind is a different key.
    """

    path: str
    kind: EntryKind

    @classmethod
    def for_entry(cls, rel_dir: str, name: str, kind: EntryKind) -> "PathKey":
        return cls(join_relative(rel_dir, name), kind)

    @property
    def parent(self) -> str:
        return split_relative(self.path)[0]

    @property
    def name(self) -> str:
        return split_relative(self.path)[1]


__all__ = [
    "DIGEST_SIZE",
    "EMPTY_DIGEST",
    "ROOT_DIR",
    "SEPARATOR",
    "EntryKind",
    "MetadataRecord",
    "PathKey",
    "join_relative",
    "split_relative",
]
