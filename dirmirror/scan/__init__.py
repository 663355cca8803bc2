# dirmirror/scan/__init__.py
"""
Filesystem side of dirmirror.

Key components:
- Digest: streams file bytes through MD5 in fixed-size chunks
- Probe: stat + digest -> MetadataRecord
- Scanner: single-pass depth-first walk emitting traversal events
"""

from .digest import DEFAULT_CHUNK_SIZE, DigestBuilder, DigestResult, digest_bytes, digest_stream
from .probe import MetadataProbe
from .scanner import ScanObserver, ScanStats, TreeScanner, scan_tree

__all__ = [
    # Digest
    "DEFAULT_CHUNK_SIZE",
    "DigestBuilder",
    "DigestResult",
    "digest_bytes",
    "digest_stream",
    # Probe
    "MetadataProbe",
    # Scanner
    "ScanObserver",
    "ScanStats",
    "TreeScanner",
    "scan_tree",
]
