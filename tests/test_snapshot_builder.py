# tests/test_snapshot_builder.py
"""
Tests for dirmirror.snapshot.builder (create-db).
"""

import hashlib
import os
from pathlib import Path

import pytest

from dirmirror.core.encoding import PathCodec
from dirmirror.core.exceptions import OpenFileError, ScanError
from dirmirror.core.models import EntryKind
from dirmirror.scan.probe import MetadataProbe
from dirmirror.snapshot import SnapshotBuilder, create_db
from dirmirror.store import managed_store

from conftest import write_tree


class TestCreateDb:
    """Tests for create_db."""

    def test_records_every_directory_and_file(self, sample_tree: Path, store_path: Path):
        with managed_store(store_path) as store:
            summary = create_db(sample_tree, store)

            assert store.read_all_directories() == {"", "b", "d"}
            assert set(store.read_files_of("")) == {"a.txt"}
            assert set(store.read_files_of("b")) == {"c.txt"}
            assert store.read_files_of("d") == {}

        assert summary.directories == 3
        assert summary.files == 2
        assert summary.bytes_hashed == len("hello") + len("x")
        assert summary.finished_at is not None

    def test_stored_record_matches_file(self, sample_tree: Path, store_path: Path):
        target = sample_tree / "a.txt"
        os.utime(target, ns=(1_600_000_000_000_000_000, 1_600_000_000_987_654_321))

        with managed_store(store_path) as store:
            create_db(sample_tree, store)
            record = store.read_files_of("")["a.txt"]

        assert record.kind is EntryKind.FILE
        assert record.size == 5
        assert record.modified_at_ms == 1_600_000_000_987
        assert record.digest == hashlib.md5(b"hello").digest()

    def test_rebuild_is_idempotent(self, sample_tree: Path, store_path: Path):
        with managed_store(store_path) as store:
            create_db(sample_tree, store)
            first = (store.read_all_directories(), store.read_files_of(""), store.read_files_of("b"))
            create_db(sample_tree, store)
            second = (store.read_all_directories(), store.read_files_of(""), store.read_files_of("b"))

        assert first == second

    def test_rebuild_drops_deleted_entries(self, sample_tree: Path, store_path: Path):
        with managed_store(store_path) as store:
            create_db(sample_tree, store)

        (sample_tree / "b" / "c.txt").unlink()
        (sample_tree / "b").rmdir()

        with managed_store(store_path) as store:
            create_db(sample_tree, store)
            assert store.read_all_directories() == {"", "d"}
            assert store.read_files_of("b") == {}

    def test_failure_keeps_previous_snapshot(self, sample_tree: Path, store_path: Path, monkeypatch):
        with managed_store(store_path) as store:
            create_db(sample_tree, store)

        write_tree(sample_tree, {"b/broken.txt": "zzz"})
        original_probe = MetadataProbe.probe

        def flaky_probe(self, path):
            if path.endswith("broken.txt"):
                raise OpenFileError(path, errno=5)
            return original_probe(self, path)

        monkeypatch.setattr(MetadataProbe, "probe", flaky_probe)

        with pytest.raises(OpenFileError):
            with managed_store(store_path) as store:
                create_db(sample_tree, store)

        with managed_store(store_path, create=False) as store:
            assert store.read_all_directories() == {"", "b", "d"}
            assert set(store.read_files_of("b")) == {"c.txt"}

    def test_source_not_a_directory(self, tmp_path: Path, store_path: Path):
        not_dir = tmp_path / "file.txt"
        not_dir.write_text("x")

        with managed_store(store_path) as store:
            with pytest.raises(ScanError, match="not a directory"):
                create_db(not_dir, store)

    def test_missing_source(self, tmp_path: Path, store_path: Path):
        with managed_store(store_path) as store:
            with pytest.raises(ScanError):
                create_db(tmp_path / "nope", store)

    def test_skipped_entries_counted(self, sample_tree: Path, store_path: Path):
        os.symlink(sample_tree / "a.txt", sample_tree / "link")

        with managed_store(store_path) as store:
            summary = create_db(sample_tree, store)
            assert "link" not in store.read_files_of("")

        assert summary.skipped == 1


class TestSnapshotBuilder:
    """Tests for SnapshotBuilder as a scan observer."""

    def test_events_write_through(self, tmp_path: Path, store_path: Path):
        write_tree(tmp_path / "src", {"f.txt": "data"})
        src = str(tmp_path / "src")

        with managed_store(store_path) as store:
            builder = SnapshotBuilder(store, MetadataProbe())
            builder.directory_entered("")
            builder.file_found(src, "", "f.txt")
            builder.directory_left("")

            assert store.read_all_directories() == {""}
            assert store.read_files_of("")["f.txt"].size == 4
        assert builder.directories == 1
        assert builder.files == 1

    def test_uses_codec(self, tmp_path: Path, store_path: Path):
        write_tree(tmp_path / "src", {"ü.txt": "data"})

        with managed_store(store_path) as store:
            create_db(tmp_path / "src", store, codec=PathCodec("utf-8"))
            assert set(store.read_files_of("")) == {"ü.txt"}
