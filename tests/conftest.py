"""Shared pytest helpers and fixtures for the pathselector test suite.

FakeFileSystem          — in-memory tree with symlinks and injectable failures
touch(path, mtime_ms)   — create a real file with an exact millisecond mtime
fake_fs                 — function fixture: an empty FakeFileSystem rooted at /data
"""

import os
from pathlib import Path

import pytest
import structlog

from pathselector.config import get_settings
from pathselector.filesystem import DirectoryListing, FileEntry

ROOT = "/data"


class FakeFileSystem:
    """Dict-backed :class:`~pathselector.filesystem.FileSystem`.

    Directories are created implicitly by ``add_file``.  ``add_link`` adds a
    symlinked directory whose listing is the target's listing, so a link to
    an ancestor forms a real cycle for any walker that follows it.
    """

    def __init__(self) -> None:
        self._children: dict[str, dict[str, FileEntry]] = {}
        self._links: dict[str, str] = {}
        self._failures: dict[str, OSError] = {}
        self.listed: list[str] = []

    def mkdir(self, path: str) -> None:
        missing = []
        while path and path not in self._children:
            missing.append(path)
            path = path.rpartition("/")[0]
        for p in reversed(missing):
            self._children[p] = {}
            parent = p.rpartition("/")[0]
            if parent:
                self._children[parent][p] = FileEntry(p, 0, 0, is_dir=True)

    def add_file(self, path: str, *, mtime: int, size: int = 100) -> None:
        parent = path.rpartition("/")[0]
        self.mkdir(parent)
        self._children[parent][path] = FileEntry(path, size, mtime)

    def add_link(self, path: str, target: str) -> None:
        parent = path.rpartition("/")[0]
        self.mkdir(parent)
        self._links[path] = target
        self._children[parent][path] = FileEntry(path, 0, 0, is_dir=True, is_symlink=True)

    def remove(self, path: str) -> None:
        """Drop *path*'s contents but keep its entry in the parent listing."""
        del self._children[path]

    def fail(self, path: str, error: OSError | None = None) -> None:
        self._failures[path] = error or PermissionError(13, "Permission denied", path)

    def list_directory(self, path: str) -> DirectoryListing:
        self.listed.append(path)
        if path in self._failures:
            return DirectoryListing.failed(path, self._failures[path])
        target = self._links.get(path, path)
        if target not in self._children:
            return DirectoryListing.missing(path)
        return DirectoryListing.ok(path, self._children[target].values())


def touch(path: Path, mtime_ms: int, size: int = 100) -> Path:
    """Create *path* with *size* bytes and set its mtime to *mtime_ms* epoch milliseconds."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    ns = mtime_ms * 1_000_000
    os.utime(path, ns=(ns, ns))
    return path


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    fs = FakeFileSystem()
    fs.mkdir(ROOT)
    return fs


@pytest.fixture(autouse=True)
def _isolate_global_state():
    """Fresh settings cache and structlog configuration for every test."""
    get_settings.cache_clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
