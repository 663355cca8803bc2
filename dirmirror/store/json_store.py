# dirmirror/store/json_store.py
"""
JSON-file metadata store.

The whole snapshot is one pydantic-validated document held in memory.
It is written atomically (temp file + os.replace) when a transaction
commits, or on close() if there are uncommitted direct writes, so a
crash never leaves a half-written file behind.

Suited to small trees and to snapshots that should be diffable or
readable by other tools; the sqlite engine is the default.
"""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dirmirror.core.exceptions import StoreError
from dirmirror.core.models import DIGEST_SIZE, EntryKind, MetadataRecord
from dirmirror.logging import get_logger
from dirmirror.logging.tags import STORE
from dirmirror.store.base import DirectoryExpectationMap, DirectorySet

logger = get_logger(__name__)

SCHEMA_VERSION = 1


class EntryModel(BaseModel):
    """One stored entry."""

    kind: EntryKind
    size: int = Field(ge=0)
    mtime_ms: int
    digest: str

    model_config = ConfigDict(extra="forbid")

    @field_validator("digest")
    @classmethod
    def _check_digest(cls, value: str) -> str:
        try:
            raw = bytes.fromhex(value)
        except ValueError:
            raise ValueError("digest must be hex encoded") from None
        if len(raw) != DIGEST_SIZE:
            raise ValueError(f"digest must be {DIGEST_SIZE} bytes")
        return value.lower()

    @classmethod
    def from_record(cls, record: MetadataRecord) -> "EntryModel":
        return cls(
            kind=record.kind,
            size=record.size,
            mtime_ms=record.modified_at_ms,
            digest=record.digest_hex,
        )

    def to_record(self) -> MetadataRecord:
        return MetadataRecord(
            kind=self.kind,
            size=self.size,
            modified_at_ms=self.mtime_ms,
            digest=bytes.fromhex(self.digest),
        )


class SnapshotDocument(BaseModel):
    """
    On-disk document.

    files maps a relative directory to {entry name -> entry}. Keys of
    the inner mapping are "<kind>:<name>" so the same name can exist
    once per kind.
    """

    schema_version: int = SCHEMA_VERSION
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    directories: List[str] = Field(default_factory=list)
    files: Dict[str, Dict[str, EntryModel]] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    @field_validator("schema_version")
    @classmethod
    def _check_version(cls, value: int) -> int:
        if value > SCHEMA_VERSION:
            raise ValueError(f"schema version {value} is newer than supported ({SCHEMA_VERSION})")
        return value


def _entry_key(kind: EntryKind, name: str) -> str:
    return f"{kind.value}:{name}"


def _entry_name(key: str) -> str:
    return key.split(":", 1)[1]


class JsonMetadataStore:
    """Metadata store persisted as a single JSON document."""

    engine = "json"

    def __init__(self, path: str | Path, create: bool = True) -> None:
        self.path = str(path)
        self._file = Path(path)
        self._closed = False
        self._dirty = False
        self._in_transaction = False
        self._directories: set[str] = set()
        self._files: Dict[str, Dict[str, EntryModel]] = {}
        self.load(create=create)

    def load(self, create: bool = True) -> None:
        """(Re)load the document from disk."""
        if not self._file.exists():
            if not create:
                raise StoreError(f"Database not found: {self._file}")
            logger.debug(f"{STORE} No JSON store at '{self.path}', starting empty")
            self._directories = set()
            self._files = {}
            self._dirty = True
            return

        try:
            raw = self._file.read_text(encoding="utf-8")
            doc = SnapshotDocument.model_validate(json.loads(raw))
        except OSError as e:
            raise StoreError(f"Unable to read '{self.path}': {e}") from e
        except (json.JSONDecodeError, ValidationError) as e:
            raise StoreError(f"Corrupt JSON store '{self.path}': {e}") from e

        self._directories = set(doc.directories)
        self._files = {rel_dir: dict(entries) for rel_dir, entries in doc.files.items()}
        self._dirty = False
        logger.debug(f"{STORE} Loaded JSON store '{self.path}'")

    def save(self) -> None:
        """Atomically write the document to disk."""
        doc = SnapshotDocument(
            directories=sorted(self._directories),
            files={
                rel_dir: dict(sorted(entries.items()))
                for rel_dir, entries in sorted(self._files.items())
                if entries
            },
        )
        payload = doc.model_dump_json(indent=2)

        directory = self._file.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._file.name}.", suffix=".tmp", dir=str(directory)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self._file)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise StoreError(f"Unable to write '{self.path}': {e}") from e

        self._dirty = False
        logger.debug(f"{STORE} Saved JSON store '{self.path}'")

    def _check_open(self) -> None:
        if self._closed:
            raise StoreError(f"Database '{self.path}' is closed")

    def upsert_directories(self, paths: Iterable[str]) -> None:
        self._check_open()
        self._directories.update(paths)
        self._dirty = True

    def upsert_file(self, rel_dir: str, name: str, record: MetadataRecord) -> None:
        self._check_open()
        entries = self._files.setdefault(rel_dir, {})
        entries[_entry_key(record.kind, name)] = EntryModel.from_record(record)
        self._dirty = True

    def read_files_of(self, rel_dir: str) -> DirectoryExpectationMap:
        self._check_open()
        entries = self._files.get(rel_dir, {})
        return {_entry_name(key): entry.to_record() for key, entry in entries.items()}

    def read_all_directories(self) -> DirectorySet:
        self._check_open()
        return set(self._directories)

    def clear(self) -> None:
        self._check_open()
        self._directories = set()
        self._files = {}
        self._dirty = True

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self._check_open()
        if self._in_transaction:
            raise StoreError("Nested transactions are not supported")

        saved_dirs = set(self._directories)
        saved_files = {rel_dir: dict(entries) for rel_dir, entries in self._files.items()}
        saved_dirty = self._dirty
        self._in_transaction = True
        try:
            yield
        except BaseException:
            self._directories = saved_dirs
            self._files = saved_files
            self._dirty = saved_dirty
            raise
        else:
            self.save()
        finally:
            self._in_transaction = False

    def close(self) -> None:
        if self._closed:
            return
        try:
            if self._dirty:
                self.save()
        finally:
            self._closed = True
            logger.debug(f"{STORE} Closed JSON store '{self.path}'")


__all__ = [
    "EntryModel",
    "JsonMetadataStore",
    "SCHEMA_VERSION",
    "SnapshotDocument",
]
