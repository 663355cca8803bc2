# dirmirror/core/exceptions.py
"""
Error hierarchy for dirmirror.

Every fatal condition raised by the core derives from MirrorError and
carries an ErrorKind, so the CLI boundary can turn any escaping failure
into one diagnostic line and a non-zero exit status.

Mismatches found during verification are NOT errors; they are reported
through a MismatchHandler. The only exception is MismatchFound, raised
by the fail-fast handler when a caller explicitly asks to stop.
"""

from __future__ import annotations

import errno as errno_codes
import os
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of a fatal failure."""

    SCAN = "scan"
    OPEN = "open"
    READ = "read"
    STORE = "store"
    ENCODING = "encoding"
    CONFIG = "config"
    USAGE = "usage"
    MISMATCH = "mismatch"


class MirrorError(Exception):
    """Base error for all dirmirror failures."""

    kind: ErrorKind = ErrorKind.SCAN


class _PathError(MirrorError):
    """Failure tied to a filesystem path and (usually) an errno."""

    action = "access"

    def __init__(self, path: str, errno: Optional[int] = None, detail: str = "") -> None:
        self.path = path
        self.errno = errno
        self.detail = detail

        message = f"Unable to {self.action} '{path}'"
        if errno is not None:
            message += f": {os.strerror(errno)} ({errno_codes.errorcode.get(errno, errno)})"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    @classmethod
    def from_os_error(cls, path: str, error: OSError) -> "_PathError":
        return cls(path, errno=error.errno, detail="" if error.errno is not None else str(error))


class ScanError(_PathError):
    """A directory could not be opened (other than access denied) or enumerated."""

    kind = ErrorKind.SCAN
    action = "scan"


class OpenFileError(_PathError):
    """A file observed by the scanner could not be opened or stat-ed."""

    kind = ErrorKind.OPEN
    action = "open"


class ReadFileError(_PathError):
    """Reading a file failed part way through."""

    kind = ErrorKind.READ
    action = "read"


class StoreError(MirrorError):
    """The metadata store could not be opened, read, written or closed."""

    kind = ErrorKind.STORE


class EncodingError(MirrorError):
    """A path could not be converted to or from the canonical UTF-8 form."""

    kind = ErrorKind.ENCODING


class ConfigError(MirrorError):
    """Configuration is missing or invalid."""

    kind = ErrorKind.CONFIG


class UsageError(MirrorError):
    """Bad or missing command-line arguments."""

    kind = ErrorKind.USAGE


class MismatchFound(MirrorError):
    """Raised by the fail-fast mismatch handler on the first divergence."""

    kind = ErrorKind.MISMATCH

    def __init__(self, mismatch) -> None:
        self.mismatch = mismatch
        super().__init__(str(mismatch))


__all__ = [
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
