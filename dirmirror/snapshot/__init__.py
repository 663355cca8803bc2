# dirmirror/snapshot/__init__.py
"""
Snapshot tools.

Key components:
- Builder: create-db, records a tree into a metadata store
- Verifier: verify-dir, compares a tree with a recorded snapshot
- Handlers: pluggable mismatch reporting (log, collect, fail fast)
"""

from .builder import SnapshotBuilder, SnapshotSummary, check_source, create_db
from .handlers import (
    CollectingMismatchHandler,
    CompositeMismatchHandler,
    FailFastMismatchHandler,
    LoggingMismatchHandler,
    Mismatch,
    MismatchDispatcher,
    MismatchField,
    MismatchHandler,
    MismatchType,
)
from .verifier import ConsistencyVerifier, VerifySummary, compare_records, verify_dir

__all__ = [
    # Builder
    "SnapshotBuilder",
    "SnapshotSummary",
    "check_source",
    "create_db",
    # Verifier
    "ConsistencyVerifier",
    "VerifySummary",
    "compare_records",
    "verify_dir",
    # Handlers
    "Mismatch",
    "MismatchField",
    "MismatchType",
    "MismatchHandler",
    "MismatchDispatcher",
    "LoggingMismatchHandler",
    "CollectingMismatchHandler",
    "FailFastMismatchHandler",
    "CompositeMismatchHandler",
]
