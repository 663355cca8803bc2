# dirmirror/store/base.py
"""
Metadata store contract.

A store maps (relative directory, entry name) to a MetadataRecord and
keeps the set of known relative directories (the root is ""). The core
depends only on this protocol; engines live in sibling modules.
"""

from __future__ import annotations

from typing import ContextManager, Dict, Iterable, Protocol, Set, runtime_checkable

from dirmirror.core.models import MetadataRecord

# Entry name (single path segment) -> expected record, for one directory.
DirectoryExpectationMap = Dict[str, MetadataRecord]

# Relative directory paths known to a store.
DirectorySet = Set[str]


@runtime_checkable
class MetadataStore(Protocol):
    """
    Persistent (directory, name) -> MetadataRecord mapping.

    Every method is durable and consistent once it returns, except that
    writes made inside transaction() only become visible to other
    readers when the transaction commits.
    """

    path: str

    def upsert_directories(self, paths: Iterable[str]) -> None:
        """Idempotently add relative directory paths."""
        ...

    def upsert_file(self, rel_dir: str, name: str, record: MetadataRecord) -> None:
        """Insert or replace the record of one entry."""
        ...

    def read_files_of(self, rel_dir: str) -> DirectoryExpectationMap:
        """Snapshot of the records directly inside rel_dir (non-recursive)."""
        ...

    def read_all_directories(self) -> DirectorySet:
        """Fresh, caller-owned set of every known directory."""
        ...

    def clear(self) -> None:
        """Drop every directory and record."""
        ...

    def transaction(self) -> ContextManager[None]:
        """Atomic unit: commit on normal exit, roll back on exception."""
        ...

    def close(self) -> None:
        """Flush and release the store. Calling it again is a no-op."""
        ...


__all__ = [
    "DirectoryExpectationMap",
    "DirectorySet",
    "MetadataStore",
]
