# dirmirror/scan/scanner.py
"""
Depth-first directory tree scanner.

Walks a tree exactly once and reports traversal events to an observer:

    directory_entered(rel_dir)
        file_found(dir_path, rel_dir, name)    # for each regular file
        ... nested directory_entered / directory_left pairs ...
    directory_left(rel_dir)

Pairs are properly nested and every file event of a directory falls
between that directory's pair. Sibling order is whatever the filesystem
yields and must not be relied upon.

Symlinks, devices, sockets and FIFOs are skipped (links are never
followed). A directory that cannot be opened because access is denied
is skipped with its whole subtree; any other failure aborts the scan.

The walk uses an explicit stack, so tree depth is not bounded by the
interpreter recursion limit. Each directory is listed and its handle
closed before any of its children are visited.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Protocol, runtime_checkable

from dirmirror.core.exceptions import ScanError
from dirmirror.core.models import ROOT_DIR, join_relative
from dirmirror.logging import get_logger
from dirmirror.logging.tags import SCAN

logger = get_logger(__name__)


@runtime_checkable
class ScanObserver(Protocol):
    """Receives traversal events from TreeScanner."""

    def directory_entered(self, rel_dir: str) -> None:
        """A directory was opened; rel_dir is "" for the scan root."""
        ...

    def file_found(self, dir_path: str, rel_dir: str, name: str) -> None:
        """A regular file `name` was found in directory `dir_path`."""
        ...

    def directory_left(self, rel_dir: str) -> None:
        """All descendants of rel_dir have been reported."""
        ...


@dataclass
class ScanStats:
    """Counters for one scan."""

    directories: int = 0
    files: int = 0
    skipped: int = 0
    denied: List[str] = field(default_factory=list)


@dataclass
class _Frame:
    rel_dir: str
    dir_path: str
    entries: Iterator[os.DirEntry]


class TreeScanner:
    """
    Single-pass, depth-first tree walker.

    Usage:
        scanner = TreeScanner()
        scanner.scan("/data", observer)
        print(scanner.stats.files)
    """

    def __init__(self) -> None:
        self.stats = ScanStats()

    def scan(self, root: str, observer: ScanObserver, rel_dir: str = ROOT_DIR) -> ScanStats:
        """
        Walk `root` and report events to `observer`.

        Args:
            root: Absolute or relative path of the directory to walk.
            observer: Event receiver.
            rel_dir: Relative path reported for `root` itself.

        Returns:
            ScanStats for this walk.

        Raises:
            ScanError: A directory could not be opened (other than access
                denied) or enumerated.
        """
        self.stats = ScanStats()
        logger.debug(f"{SCAN} Scanning '{root}'...")

        stack: List[_Frame] = []
        self._enter(stack, observer, root, rel_dir)

        while stack:
            frame = stack[-1]
            entry = next(frame.entries, None)

            if entry is None:
                stack.pop()
                observer.directory_left(frame.rel_dir)
                continue

            kind = self._classify(entry)
            if kind == "file":
                self.stats.files += 1
                observer.file_found(frame.dir_path, frame.rel_dir, entry.name)
            elif kind == "dir":
                self._enter(
                    stack,
                    observer,
                    os.path.join(frame.dir_path, entry.name),
                    join_relative(frame.rel_dir, entry.name),
                )
            else:
                self.stats.skipped += 1
                logger.debug(
                    f"{SCAN} '{entry.path}' is neither a directory nor a regular file. Skipping it..."
                )

        return self.stats

    def _enter(self, stack: List[_Frame], observer: ScanObserver, dir_path: str, rel_dir: str) -> None:
        entries = self._list(dir_path)
        if entries is None:
            return
        self.stats.directories += 1
        observer.directory_entered(rel_dir)
        stack.append(_Frame(rel_dir, dir_path, iter(entries)))

    def _list(self, dir_path: str) -> Optional[List[os.DirEntry]]:
        """List a directory, or return None if access is denied."""
        try:
            it = os.scandir(dir_path)
        except PermissionError:
            logger.debug(f"{SCAN} No access to '{dir_path}'")
            self.stats.denied.append(dir_path)
            return None
        except OSError as e:
            raise ScanError.from_os_error(dir_path, e) from e

        try:
            with it:
                return list(it)
        except OSError as e:
            raise ScanError.from_os_error(dir_path, e) from e

    @staticmethod
    def _classify(entry: os.DirEntry) -> Optional[str]:
        try:
            if entry.is_symlink():
                return None
            if entry.is_file(follow_symlinks=False):
                return "file"
            if entry.is_dir(follow_symlinks=False):
                return "dir"
        except OSError as e:
            # Type unknown and lstat failed: the entry vanished or is unreadable.
            logger.debug(f"{SCAN} Cannot determine type of '{entry.path}': {e}")
        return None


def scan_tree(root: str, observer: ScanObserver) -> ScanStats:
    """Convenience function: walk `root` with a fresh TreeScanner."""
    return TreeScanner().scan(root, observer)


__all__ = [
    "ScanObserver",
    "ScanStats",
    "TreeScanner",
    "scan_tree",
]
