# tests/test_verifier.py
"""
Tests for dirmirror.snapshot.verifier (verify-dir) and mismatch handlers.
"""

import hashlib
import logging
import os
import shutil
from pathlib import Path

import pytest

from dirmirror.core.exceptions import MismatchFound, ScanError, StoreError
from dirmirror.core.models import EntryKind, MetadataRecord
from dirmirror.snapshot import (
    CollectingMismatchHandler,
    CompositeMismatchHandler,
    FailFastMismatchHandler,
    LoggingMismatchHandler,
    Mismatch,
    MismatchField,
    MismatchHandler,
    MismatchType,
    compare_records,
    create_db,
    verify_dir,
)
from dirmirror.store import managed_store

from conftest import rewrite_keep_mtime, write_tree


def snapshot_then_verify(tree: Path, store_path: Path, mutate=None) -> CollectingMismatchHandler:
    with managed_store(store_path) as store:
        create_db(tree, store)
    if mutate is not None:
        mutate(tree)
    handler = CollectingMismatchHandler()
    with managed_store(store_path, create=False) as store:
        verify_dir(tree, store, handler)
    return handler


class TestVerifyDir:
    """End-to-end create-db then verify-dir."""

    def test_unchanged_tree_is_clean(self, sample_tree: Path, store_path: Path):
        handler = snapshot_then_verify(sample_tree, store_path)

        assert handler.is_clean
        assert handler.summary == "no mismatches"

    def test_content_change_same_size_same_mtime(self, sample_tree: Path, store_path: Path):
        handler = snapshot_then_verify(
            sample_tree,
            store_path,
            lambda t: rewrite_keep_mtime(t / "a.txt", "Hello"),
        )

        assert len(handler.mismatches) == 1
        mismatch = handler.mismatches[0]
        assert mismatch.type is MismatchType.FIELD_MISMATCH
        assert mismatch.field is MismatchField.DIGEST
        assert mismatch.path == "a.txt"
        assert mismatch.expected.digest == hashlib.md5(b"hello").digest()
        assert mismatch.actual.digest == hashlib.md5(b"Hello").digest()
        assert handler.field_mismatches(MismatchField.SIZE) == []

    def test_size_and_digest_both_reported(self, sample_tree: Path, store_path: Path):
        handler = snapshot_then_verify(
            sample_tree,
            store_path,
            lambda t: rewrite_keep_mtime(t / "b" / "c.txt", "longer"),
        )

        fields = {m.field for m in handler.of_type(MismatchType.FIELD_MISMATCH)}
        assert fields == {MismatchField.SIZE, MismatchField.DIGEST}
        assert all(m.path == "b/c.txt" for m in handler.mismatches)

    def test_mtime_change_reported(self, sample_tree: Path, store_path: Path):
        def touch(tree: Path) -> None:
            st = (tree / "a.txt").stat()
            os.utime(tree / "a.txt", ns=(st.st_atime_ns, st.st_mtime_ns + 5_000_000_000))

        handler = snapshot_then_verify(sample_tree, store_path, touch)

        assert [m.field for m in handler.mismatches] == [MismatchField.MODIFIED_AT]

    def test_deleted_file_reported_once(self, sample_tree: Path, store_path: Path):
        handler = snapshot_then_verify(
            sample_tree,
            store_path,
            lambda t: (t / "b" / "c.txt").unlink(),
        )

        assert handler.paths(MismatchType.FILE_NOT_FOUND) == ["b/c.txt"]
        assert len(handler.mismatches) == 1
        assert handler.mismatches[0].kind is EntryKind.FILE

    def test_added_file_reported_once(self, sample_tree: Path, store_path: Path):
        handler = snapshot_then_verify(
            sample_tree,
            store_path,
            lambda t: write_tree(t, {"d/new.txt": "new"}),
        )

        assert handler.paths(MismatchType.NEW_FILE) == ["d/new.txt"]
        assert len(handler.mismatches) == 1

    def test_deleted_empty_directory(self, sample_tree: Path, store_path: Path):
        handler = snapshot_then_verify(
            sample_tree,
            store_path,
            lambda t: (t / "d").rmdir(),
        )

        assert handler.paths(MismatchType.DIRECTORY_NOT_FOUND) == ["d"]
        assert handler.of_type(MismatchType.FILE_NOT_FOUND) == []
        assert len(handler.mismatches) == 1

    def test_deleted_subtree(self, sample_tree: Path, store_path: Path):
        handler = snapshot_then_verify(
            sample_tree,
            store_path,
            lambda t: shutil.rmtree(t / "b"),
        )

        # Files of a directory that is never entered are not reported individually
        assert handler.paths(MismatchType.DIRECTORY_NOT_FOUND) == ["b"]
        assert handler.of_type(MismatchType.FILE_NOT_FOUND) == []

    def test_new_directory_reported(self, sample_tree: Path, store_path: Path):
        handler = snapshot_then_verify(
            sample_tree,
            store_path,
            lambda t: (t / "e").mkdir(),
        )

        assert handler.paths(MismatchType.NEW_DIRECTORY) == ["e"]
        assert len(handler.mismatches) == 1

    def test_missing_directories_sorted(self, tmp_path: Path, store_path: Path):
        tree = write_tree(tmp_path / "tree", {}, dirs=("z", "m", "a"))

        def remove_all(t: Path) -> None:
            for name in ("z", "m", "a"):
                (t / name).rmdir()

        handler = snapshot_then_verify(tree, store_path, remove_all)

        assert handler.paths(MismatchType.DIRECTORY_NOT_FOUND) == ["a", "m", "z"]

    def test_counts(self, sample_tree: Path, store_path: Path):
        def mutate(t: Path) -> None:
            (t / "a.txt").unlink()
            write_tree(t, {"n.txt": "n"})
            (t / "d").rmdir()

        handler = snapshot_then_verify(sample_tree, store_path, mutate)

        assert handler.counts == {
            "file_not_found": 1,
            "new_file": 1,
            "directory_not_found": 1,
        }

    def test_summary_counts(self, sample_tree: Path, store_path: Path):
        with managed_store(store_path) as store:
            create_db(sample_tree, store)
            summary = verify_dir(sample_tree, store, CollectingMismatchHandler())

        assert summary.directories == 3
        assert summary.files == 2
        assert summary.missing_directories == 0

    def test_store_not_modified(self, sample_tree: Path, store_path: Path):
        with managed_store(store_path) as store:
            create_db(sample_tree, store)
            before = (store.read_all_directories(), store.read_files_of(""))
            (sample_tree / "a.txt").unlink()
            verify_dir(sample_tree, store, CollectingMismatchHandler())
            after = (store.read_all_directories(), store.read_files_of(""))

        assert before == after

    def test_missing_database(self, sample_tree: Path, store_path: Path):
        with pytest.raises(StoreError):
            with managed_store(store_path, create=False) as store:
                verify_dir(sample_tree, store, CollectingMismatchHandler())

    def test_empty_sqlite_file_is_rejected(self, sample_tree: Path, tmp_path: Path):
        """An empty file is not an empty snapshot, and verification leaves it untouched."""
        db = tmp_path / "empty.db"
        db.write_bytes(b"")

        with pytest.raises(StoreError):
            with managed_store(db, create=False) as store:
                verify_dir(sample_tree, store, CollectingMismatchHandler())

        assert db.stat().st_size == 0

    def test_source_not_a_directory(self, sample_tree: Path, store_path: Path):
        with managed_store(store_path) as store:
            create_db(sample_tree, store)
            with pytest.raises(ScanError):
                verify_dir(sample_tree / "a.txt", store, CollectingMismatchHandler())


class TestCompareRecords:
    """Tests for compare_records."""

    FILE = MetadataRecord.for_file(5, 1000, hashlib.md5(b"hello").digest())

    def test_identical(self):
        handler = CollectingMismatchHandler()

        assert compare_records("a", self.FILE, self.FILE, handler) is True
        assert handler.is_clean

    def test_type_mismatch_short_circuits(self):
        handler = CollectingMismatchHandler()
        directory = MetadataRecord.for_directory(2000)

        assert compare_records("a", self.FILE, directory, handler) is False
        assert len(handler.mismatches) == 1
        assert handler.mismatches[0].type is MismatchType.TYPE_MISMATCH
        assert "DB type 'file', file system type 'directory'" in str(handler.mismatches[0])

    def test_every_field_checked(self):
        handler = CollectingMismatchHandler()
        other = MetadataRecord.for_file(6, 2000, hashlib.md5(b"hello!").digest())

        compare_records("a", self.FILE, other, handler)

        assert [m.field for m in handler.mismatches] == [
            MismatchField.SIZE,
            MismatchField.MODIFIED_AT,
            MismatchField.DIGEST,
        ]

    def test_directories_compare_kind_only(self):
        handler = CollectingMismatchHandler()

        compare_records("d", MetadataRecord.for_directory(1), MetadataRecord.for_directory(2), handler)

        assert handler.is_clean


class TestHandlers:
    """Tests for the mismatch handlers."""

    def test_handlers_satisfy_protocol(self):
        for handler in (
            CollectingMismatchHandler(),
            LoggingMismatchHandler(),
            FailFastMismatchHandler(),
            CompositeMismatchHandler([]),
        ):
            assert isinstance(handler, MismatchHandler)

    def test_fail_fast_raises(self, sample_tree: Path, store_path: Path):
        with managed_store(store_path) as store:
            create_db(sample_tree, store)
            (sample_tree / "b" / "c.txt").unlink()

            with pytest.raises(MismatchFound) as exc_info:
                verify_dir(sample_tree, store, FailFastMismatchHandler())

        assert exc_info.value.mismatch.path == "b/c.txt"

    def test_logging_handler(self, caplog):
        handler = LoggingMismatchHandler()

        with caplog.at_level(logging.ERROR, logger="dirmirror"):
            handler.file_not_found("b/c.txt", EntryKind.FILE)

        assert "File not found in the file system: 'b/c.txt'" in caplog.text

    def test_composite_forwards_in_order(self):
        first = CollectingMismatchHandler()
        second = CollectingMismatchHandler()
        composite = CompositeMismatchHandler([first, second])

        composite.new_file_found("x", EntryKind.FILE)
        composite.directory_not_found("d")

        assert first.mismatches == second.mismatches
        assert [m.type for m in first.mismatches] == [
            MismatchType.NEW_FILE,
            MismatchType.DIRECTORY_NOT_FOUND,
        ]

    def test_descriptions(self):
        expected = MetadataRecord.for_file(5, 0, bytes(16))
        actual = MetadataRecord.for_file(6, 0, bytes(16))

        assert Mismatch(MismatchType.NEW_FILE, "x", kind=EntryKind.FILE).describe() == (
            "New file found in the file system: 'x'"
        )
        assert Mismatch(MismatchType.DIRECTORY_NOT_FOUND, "d").describe() == (
            "Directory not found in the file system: 'd'"
        )
        assert Mismatch(
            MismatchType.FIELD_MISMATCH,
            "x",
            kind=EntryKind.FILE,
            field=MismatchField.SIZE,
            expected=expected,
            actual=actual,
        ).describe() == "File size mismatch for 'x': DB 5, file system 6"
