"""Tree walker: find regular files newer than a checkpoint threshold.

``TreeWalker(fs, ignore_prefixes=..., max_workers=...).walk(root, threshold)``
returns every regular file under *root* whose ``mtime`` is strictly greater
than *threshold* and whose ``size`` is non-zero, plus a :class:`WalkStats`
tally of what was skipped and why.

Pruning rules, applied at every depth:

- Entries whose name starts with an ignore prefix (``.`` and ``_`` by
  default) are dropped, files and directories alike.  This hides temp files,
  staging directories and ``_SUCCESS``-style markers.
- Symlinked directories are never entered.  A link back to an ancestor would
  otherwise loop forever; the cost is that legitimately linked data trees are
  skipped, which is what ``skipped_symlinks`` is for.
- Zero-length files are never eligible (writes in progress, placeholders).

A missing root is an error; a missing subdirectory (removed between its
parent's listing and its own) is counted and skipped.

The tree is walked one level at a time from an explicit frontier list, so
depth is bounded by the heap rather than the interpreter stack.  With
``max_workers > 1`` the directories of a level are listed concurrently;
callers sort the result, so listing order never leaks out.
"""

from __future__ import annotations

import errno
import os
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from pathselector.filesystem import DirectoryListing, FileEntry, FileSystem

DEFAULT_IGNORE_PREFIXES: tuple[str, ...] = (".", "_")


class WalkError(OSError):
    """Raised when a directory listing fails; the whole walk is abandoned."""

    def __init__(self, path: str, cause: OSError | None) -> None:
        super().__init__(f"failed to list {path}: {cause}")
        self.path = path
        self.cause = cause


@dataclass
class WalkStats:
    """Counters collected during one walk.

    Attributes:
        directories_listed:  Directories successfully listed, root included.
        ignored_entries:     Entries dropped by an ignore prefix.
        skipped_symlinks:    Symlinked directories not followed.
        missing_directories: Directories that disappeared before listing.
        stale_files:         Files at or below the checkpoint threshold.
        empty_files:         Zero-length files newer than the threshold.
    """

    directories_listed: int = 0
    ignored_entries: int = 0
    skipped_symlinks: int = 0
    missing_directories: int = 0
    stale_files: int = 0
    empty_files: int = 0


@dataclass(frozen=True)
class WalkResult:
    files: list[FileEntry]
    stats: WalkStats = field(default_factory=WalkStats)


class TreeWalker:
    """Level-by-level directory walker over a :class:`FileSystem`.

    Args:
        fs:              Listing capability.
        ignore_prefixes: Name prefixes to prune at every depth.
        max_workers:     Threads for listing sibling directories.  ``1``
                         lists them one after another on the calling thread.
    """

    def __init__(
        self,
        fs: FileSystem,
        ignore_prefixes: Sequence[str] = DEFAULT_IGNORE_PREFIXES,
        max_workers: int = 1,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._fs = fs
        self._ignore = tuple(ignore_prefixes)
        self._max_workers = max_workers

    def is_ignored(self, entry: FileEntry) -> bool:
        return entry.name.startswith(self._ignore)

    def walk(self, root: str, threshold: int) -> WalkResult:
        """Return all eligible files under *root*, in no particular order.

        Raises:
            WalkError: Any directory listing failed, or *root* itself does
                not exist.  Nothing found so far is returned.  A subdirectory
                that vanishes between two listings is only counted.
        """
        files: list[FileEntry] = []
        stats = WalkStats()

        frontier = [root]
        at_root = True
        while frontier:
            pending: list[str] = []
            for listing in self._list_level(frontier):
                if listing.kind == "failed":
                    raise WalkError(listing.path, listing.error)
                if listing.kind == "missing":
                    if at_root:
                        # Only the root must exist.
                        raise WalkError(
                            listing.path,
                            FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), listing.path),
                        )
                    stats.missing_directories += 1
                    continue
                stats.directories_listed += 1
                for entry in listing.entries:
                    if self.is_ignored(entry):
                        stats.ignored_entries += 1
                    elif entry.is_dir:
                        if entry.is_symlink:
                            stats.skipped_symlinks += 1
                        else:
                            pending.append(entry.path)
                    elif entry.mtime <= threshold:
                        stats.stale_files += 1
                    elif entry.size <= 0:
                        stats.empty_files += 1
                    else:
                        files.append(entry)
            frontier = pending
            at_root = False

        return WalkResult(files=files, stats=stats)

    def _list_one(self, path: str) -> DirectoryListing:
        # Handles that raise instead of returning a failed listing.
        try:
            return self._fs.list_directory(path)
        except OSError as exc:
            return DirectoryListing.failed(path, exc)

    def _list_level(self, paths: list[str]) -> Iterable[DirectoryListing]:
        if self._max_workers == 1 or len(paths) == 1:
            return map(self._list_one, paths)
        workers = min(self._max_workers, len(paths))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pathselector-list") as pool:
            return list(pool.map(self._list_one, paths))
