# tests/conftest.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Tuple

import pytest


def write_tree(root: Path, files: Dict[str, str], dirs: Tuple[str, ...] = ()) -> Path:
    """Create files (relative path -> text) and extra empty directories under root."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    for rel in dirs:
        (root / rel).mkdir(parents=True, exist_ok=True)
    return root


def rewrite_keep_mtime(path: Path, text: str) -> None:
    """Change file content but keep its modification time."""
    st = path.stat()
    path.write_text(text, encoding="utf-8")
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns))


class RecordingObserver:
    """Scan observer that records every event."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, ...]] = []

    def directory_entered(self, rel_dir: str) -> None:
        self.events.append(("enter", rel_dir))

    def file_found(self, dir_path: str, rel_dir: str, name: str) -> None:
        self.events.append(("file", rel_dir, name))

    def directory_left(self, rel_dir: str) -> None:
        self.events.append(("leave", rel_dir))

    def of(self, kind: str) -> List[Tuple[str, ...]]:
        return [e for e in self.events if e[0] == kind]


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """a.txt = "hello", b/c.txt = "x", empty d/."""
    return write_tree(
        tmp_path / "tree",
        {"a.txt": "hello", "b/c.txt": "x"},
        dirs=("d",),
    )


@pytest.fixture(params=["sqlite", "json"])
def store_path(request, tmp_path: Path) -> Path:
    """Database path for each store engine (engine picked by suffix)."""
    suffix = ".json" if request.param == "json" else ".db"
    return tmp_path / f"snapshot{suffix}"
