# dirmirror/core/encoding.py
"""
Path text encoding boundary.

Names come from the OS as `str` decoded with the filesystem encoding
(undecodable bytes survive as surrogate escapes). The store keys every
path by its canonical UTF-8 text. PathCodec converts between the two
using a charset resolved once at startup and passed in explicitly.
"""

from __future__ import annotations

import codecs
import os
import sys
from dataclasses import dataclass

from dirmirror.core.exceptions import EncodingError


@dataclass(frozen=True)
class PathCodec:
    """Converts path text between the local charset and canonical UTF-8."""

    charset: str = "utf-8"

    def __post_init__(self) -> None:
        try:
            normalized = codecs.lookup(self.charset).name
        except LookupError:
            raise EncodingError(f"Unknown charset: '{self.charset}'") from None
        object.__setattr__(self, "charset", normalized)

    @classmethod
    def from_system(cls) -> "PathCodec":
        """Resolve the local filesystem charset."""
        return cls(sys.getfilesystemencoding())

    @property
    def is_identity(self) -> bool:
        return self.charset == "utf-8"

    def to_canonical(self, os_text: str) -> str:
        """OS path text -> canonical (valid UTF-8) text."""
        raw = os.fsencode(os_text)
        try:
            text = raw.decode(self.charset)
            # Reject lone surrogates that cannot be stored as UTF-8.
            text.encode("utf-8")
        except UnicodeError as e:
            raise EncodingError(
                f"Path {raw!r} is not valid {self.charset}: {e}"
            ) from None
        return text

    def from_canonical(self, text: str) -> str:
        """Canonical text -> OS path text."""
        try:
            raw = text.encode(self.charset)
        except UnicodeError as e:
            raise EncodingError(
                f"Path '{text}' cannot be represented in {self.charset}: {e}"
            ) from None
        return os.fsdecode(raw)


__all__ = ["PathCodec"]
