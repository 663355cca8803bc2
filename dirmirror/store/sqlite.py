# dirmirror/store/sqlite.py
"""SQLite-backed metadata store."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

from dirmirror.core.exceptions import StoreError
from dirmirror.core.models import EntryKind, MetadataRecord, PathKey
from dirmirror.logging import get_logger
from dirmirror.logging.tags import STORE
from dirmirror.store.base import DirectoryExpectationMap, DirectorySet

logger = get_logger(__name__)

_SCHEMA_VERSION = 1


def _check_schema(connection: sqlite3.Connection) -> None:
    rows = connection.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name IN ('directories', 'entries')"
    ).fetchall()
    missing = {"directories", "entries"} - {str(row[0]) for row in rows}
    if missing:
        raise StoreError(f"Not a snapshot database (missing tables: {', '.join(sorted(missing))})")


def _init_db(connection: sqlite3.Connection, create: bool) -> None:
    user_version = int(connection.execute("PRAGMA user_version").fetchone()[0])
    if user_version > _SCHEMA_VERSION:
        raise StoreError(
            f"Database schema version {user_version} is newer than supported ({_SCHEMA_VERSION})"
        )
    if not create:
        _check_schema(connection)
        return

    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS directories (
            path TEXT PRIMARY KEY
        )
        """
    )
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS entries (
            path TEXT NOT NULL,
            kind TEXT NOT NULL,
            parent TEXT NOT NULL,
            name TEXT NOT NULL,
            size INTEGER NOT NULL,
            mtime_ms INTEGER NOT NULL,
            digest BLOB NOT NULL,
            PRIMARY KEY (path, kind)
        )
        """
    )
    connection.execute("CREATE INDEX IF NOT EXISTS idx_entries_parent ON entries(parent)")
    if user_version < _SCHEMA_VERSION:
        connection.execute(f"PRAGMA user_version={_SCHEMA_VERSION}")
    connection.commit()


def _row_to_record(row: sqlite3.Row) -> MetadataRecord:
    return MetadataRecord(
        kind=EntryKind(row["kind"]),
        size=int(row["size"]),
        modified_at_ms=int(row["mtime_ms"]),
        digest=bytes(row["digest"]),
    )


class SqliteMetadataStore:
    """
    Metadata store in a single SQLite file.

    Autocommit mode is used outside transaction(); inside it, writes are
    grouped into one BEGIN ... COMMIT unit.

    With create=False the file must already hold a snapshot: its schema
    is checked, never created or upgraded.
    """

    engine = "sqlite"

    def __init__(self, path: str | Path, create: bool = True) -> None:
        self.path = str(path)
        self._in_transaction = False

        db_path = Path(path)
        if not create and not db_path.exists():
            raise StoreError(f"Database not found: {db_path}")

        self._conn: Optional[sqlite3.Connection] = None
        try:
            if create:
                db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.path, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            _init_db(self._conn, create)
        except (sqlite3.Error, OSError, StoreError) as e:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            raise StoreError(f"Unable to open database '{self.path}': {e}") from e

        logger.debug(f"{STORE} Opened sqlite store '{self.path}'")

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError(f"Database '{self.path}' is closed")
        return self._conn

    @contextmanager
    def _errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            raise StoreError(f"Unable to {action} in '{self.path}': {e}") from e

    def upsert_directories(self, paths: Iterable[str]) -> None:
        with self._errors("write directories"):
            self.connection.executemany(
                "INSERT OR IGNORE INTO directories(path) VALUES (?)",
                ((p,) for p in paths),
            )

    def upsert_file(self, rel_dir: str, name: str, record: MetadataRecord) -> None:
        key = PathKey.for_entry(rel_dir, name, record.kind)
        with self._errors(f"write '{key.path}'"):
            self.connection.execute(
                """
                INSERT OR REPLACE INTO entries(path, kind, parent, name, size, mtime_ms, digest)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    key.path,
                    record.kind.value,
                    rel_dir,
                    name,
                    record.size,
                    record.modified_at_ms,
                    record.digest,
                ),
            )

    def read_files_of(self, rel_dir: str) -> DirectoryExpectationMap:
        with self._errors(f"read entries of '{rel_dir}'"):
            rows = self.connection.execute(
                "SELECT name, kind, size, mtime_ms, digest FROM entries WHERE parent = ?",
                (rel_dir,),
            ).fetchall()
        return {str(row["name"]): _row_to_record(row) for row in rows}

    def read_all_directories(self) -> DirectorySet:
        with self._errors("read directories"):
            rows = self.connection.execute("SELECT path FROM directories").fetchall()
        return {str(row["path"]) for row in rows}

    def clear(self) -> None:
        with self._errors("clear"):
            self.connection.execute("DELETE FROM entries")
            self.connection.execute("DELETE FROM directories")

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._in_transaction:
            raise StoreError("Nested transactions are not supported")

        with self._errors("begin transaction"):
            self.connection.execute("BEGIN")
        self._in_transaction = True
        try:
            yield
        except BaseException:
            try:
                self.connection.execute("ROLLBACK")
            except sqlite3.Error as e:
                logger.error(f"{STORE} Rollback failed for '{self.path}': {e}")
            raise
        else:
            with self._errors("commit"):
                self.connection.execute("COMMIT")
        finally:
            self._in_transaction = False

    def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            if conn.in_transaction:
                conn.rollback()
            conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Unable to close database '{self.path}': {e}") from e
        logger.debug(f"{STORE} Closed sqlite store '{self.path}'")


__all__ = ["SqliteMetadataStore"]
