# dirmirror/store/__init__.py
"""
Metadata store abstraction and engines.

Usage:
    from dirmirror.store import managed_store

    with managed_store("mirror.db") as store:
        store.read_all_directories()
"""

from .base import DirectoryExpectationMap, DirectorySet, MetadataStore
from .json_store import JsonMetadataStore
from .registry import (
    DEFAULT_ENGINE,
    STORE_REGISTRY,
    available_engines,
    managed_store,
    open_store,
    resolve_engine,
)
from .sqlite import SqliteMetadataStore

__all__ = [
    # Contract
    "MetadataStore",
    "DirectoryExpectationMap",
    "DirectorySet",
    # Engines
    "SqliteMetadataStore",
    "JsonMetadataStore",
    # Registry
    "DEFAULT_ENGINE",
    "STORE_REGISTRY",
    "available_engines",
    "resolve_engine",
    "open_store",
    "managed_store",
]
