# dirmirror/scan/digest.py
"""
Streaming content digest.

Files are hashed in fixed-size chunks so memory use does not depend on
file size. The digest is MD5 (16 bytes); it detects change, it is not a
security boundary.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import BinaryIO

from dirmirror.core.exceptions import ReadFileError

DEFAULT_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class DigestResult:
    """Byte count and digest of one stream."""

    size: int
    digest: bytes

    @property
    def hexdigest(self) -> str:
        return self.digest.hex()


class DigestBuilder:
    """Incremental MD5 plus byte counter. One instance per file."""

    def __init__(self) -> None:
        self._hash = hashlib.md5()
        self._size = 0

    def update(self, chunk: bytes) -> None:
        self._hash.update(chunk)
        self._size += len(chunk)

    @property
    def size(self) -> int:
        return self._size

    def digest(self) -> bytes:
        return self._hash.digest()

    def result(self) -> DigestResult:
        return DigestResult(self._size, self.digest())


def digest_stream(
    stream: BinaryIO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    *,
    name: str = "<stream>",
) -> DigestResult:
    """
    Digest a binary stream until end-of-stream.

    Args:
        stream: Readable binary stream.
        chunk_size: Maximum bytes per read.
        name: Path used in error messages.

    Returns:
        DigestResult with the total byte count and the 16-byte digest.

    Raises:
        ReadFileError: If the stream reports an error mid-read.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    builder = DigestBuilder()
    try:
        for chunk in iter(lambda: stream.read(chunk_size), b""):
            builder.update(chunk)
    except OSError as e:
        raise ReadFileError.from_os_error(name, e) from e
    return builder.result()


def digest_bytes(data: bytes) -> bytes:
    """One-shot digest of an in-memory buffer."""
    return hashlib.md5(data).digest()


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DigestBuilder",
    "DigestResult",
    "digest_bytes",
    "digest_stream",
]
