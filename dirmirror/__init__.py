# dirmirror/__init__.py
"""
dirmirror - snapshot and verify directory trees.

Records path, type, size, modification time and MD5 digest of every
entry under a directory into a metadata store, and later reports every
divergence between that snapshot and the live filesystem.

Usage:
    from dirmirror import create_db, managed_store, verify_dir
    from dirmirror.snapshot import CollectingMismatchHandler

    with managed_store("mirror.db") as store:
        create_db("./backup", store)

    handler = CollectingMismatchHandler()
    with managed_store("mirror.db", create=False) as store:
        verify_dir("./backup", store, handler)
    print(handler.summary)
"""

from dirmirror.version import PROGRAM_NAME, __version__
from dirmirror.snapshot import create_db, verify_dir
from dirmirror.store import managed_store, open_store

__all__ = [
    "PROGRAM_NAME",
    "__version__",
    "create_db",
    "verify_dir",
    "open_store",
    "managed_store",
]
