# dirmirror/scan/probe.py
"""
Metadata probe: stat + streamed digest -> MetadataRecord.

The probe runs right after the scanner has seen an entry. If the entry
can no longer be opened or read, the snapshot attempt is invalid, so
failures are raised, never skipped.
"""

from __future__ import annotations

import os
import stat

from dirmirror.core.exceptions import OpenFileError
from dirmirror.core.models import MetadataRecord
from dirmirror.logging import get_logger
from dirmirror.logging.tags import PROBE
from dirmirror.scan.digest import DEFAULT_CHUNK_SIZE, digest_stream

logger = get_logger(__name__)


def _mtime_ms(st: os.stat_result) -> int:
    return st.st_mtime_ns // 1_000_000


class MetadataProbe:
    """
    Builds the MetadataRecord of a filesystem path.

    Usage:
        probe = MetadataProbe()
        record = probe.probe("/data/a.txt")
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._chunk_size = chunk_size
        self.bytes_hashed = 0

    def probe(self, path: str) -> MetadataRecord:
        """
        Probe one path.

        Raises:
            OpenFileError: The path cannot be stat-ed or opened, or is
                neither a regular file nor a directory.
            ReadFileError: Reading the file failed part way through.
        """
        try:
            st = os.lstat(path)
        except OSError as e:
            raise OpenFileError.from_os_error(path, e) from e

        if stat.S_ISDIR(st.st_mode):
            return MetadataRecord.for_directory(_mtime_ms(st))
        if not stat.S_ISREG(st.st_mode):
            raise OpenFileError(path, detail="not a regular file or directory")

        try:
            f = open(path, "rb")
        except OSError as e:
            raise OpenFileError.from_os_error(path, e) from e

        with f:
            result = digest_stream(f, self._chunk_size, name=path)

        self.bytes_hashed += result.size

        # stat is authoritative; the streamed count only cross-checks it
        if result.size != st.st_size:
            logger.warning(
                f"{PROBE} '{path}' changed while being read: "
                f"stat size {st.st_size}, read {result.size} bytes"
            )

        return MetadataRecord.for_file(st.st_size, _mtime_ms(st), result.digest)


__all__ = ["MetadataProbe"]
