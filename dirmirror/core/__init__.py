# dirmirror/core/__init__.py
"""
Core types shared by every dirmirror component.

Public API:
    - EntryKind, MetadataRecord, PathKey: data model
    - PathCodec: local charset <-> canonical UTF-8 path text
    - Exceptions: MirrorError hierarchy
"""

from .encoding import PathCodec
from .exceptions import (
    ConfigError,
    EncodingError,
    ErrorKind,
    MirrorError,
    MismatchFound,
    OpenFileError,
    ReadFileError,
    ScanError,
    StoreError,
    UsageError,
)
from .models import (
    DIGEST_SIZE,
    EMPTY_DIGEST,
    ROOT_DIR,
    EntryKind,
    MetadataRecord,
    PathKey,
    join_relative,
    split_relative,
)

__all__ = [
    # Model
    "DIGEST_SIZE",
    "EMPTY_DIGEST",
    "ROOT_DIR",
    "EntryKind",
    "MetadataRecord",
    "PathKey",
    "join_relative",
    "split_relative",
    # Encoding
    "PathCodec",
    # Exceptions
    "ErrorKind",
    "MirrorError",
    "ScanError",
    "OpenFileError",
    "ReadFileError",
    "StoreError",
    "EncodingError",
    "ConfigError",
    "UsageError",
    "MismatchFound",
]
