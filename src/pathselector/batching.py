"""Ordering and size-bounded prefix selection.

``select_prefix(files, budget)`` sorts eligible files oldest-first and takes
the longest prefix whose cumulative size stays strictly below *budget*.  It
stops at the first file that would reach the budget, even if a later, smaller
file would still fit: every file with an ``mtime`` at or below the last one
taken must already be in the batch, or the next checkpoint would skip it.

A first file that alone reaches the budget yields an empty batch.  That is
backpressure, not an error; the caller retries with a larger budget.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pathselector.filesystem import FileEntry


@dataclass(frozen=True)
class Batch:
    """Files selected for one invocation, in ascending ``(mtime, path)`` order."""

    files: tuple[FileEntry, ...] = ()
    total_bytes: int = 0
    max_mtime: int | None = None

    def __len__(self) -> int:
        return len(self.files)

    def __bool__(self) -> bool:
        return bool(self.files)


def sort_files(files: Iterable[FileEntry]) -> list[FileEntry]:
    """Return *files* sorted by ``mtime``, ties broken by path."""
    return sorted(files, key=lambda f: (f.mtime, f.path))


def select_prefix(files: Iterable[FileEntry], budget: int) -> Batch:
    """Sort *files* and return the largest prefix with total size ``< budget``."""
    selected: list[FileEntry] = []
    total = 0
    max_mtime: int | None = None

    for f in sort_files(files):
        if total + f.size >= budget:
            break
        selected.append(f)
        total += f.size
        max_mtime = f.mtime

    return Batch(files=tuple(selected), total_bytes=total, max_mtime=max_mtime)
