"""Filesystem capability consumed by the tree walker.

The walker never touches ``os`` directly.  It talks to a :class:`FileSystem`,
whose one job is ``list_directory(path) -> DirectoryListing``.  A listing
says explicitly which of three things happened:

  ok       the directory was read (possibly with zero entries)
  missing  the path does not exist or is not a directory
  failed   the listing raised an I/O error (permissions, network, …)

Only ``failed`` is fatal to a selection; ``missing`` is an ordinary
condition, e.g. a staging directory removed between two listings.

Handles are resolved from the configured root with
:func:`resolve_filesystem`, which dispatches on the URI scheme.  Plain paths
and ``file://`` URIs map to :class:`LocalFileSystem`; other schemes can be
plugged in with :func:`register_filesystem`.
"""

from __future__ import annotations

import os
import posixpath
import stat
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Literal, NamedTuple, Protocol
from urllib.parse import urlsplit

from pathselector.config import Settings


class FilesystemError(OSError):
    """Raised when no filesystem handle can be resolved for a root path."""


class FileEntry(NamedTuple):
    """One filesystem object as reported by a listing.

    Immutable so it is safe to use as a dict key or in a set.
    """

    path: str  # absolute
    size: int  # bytes; 0 for directories
    mtime: int  # epoch milliseconds
    is_dir: bool = False
    is_symlink: bool = False

    @property
    def name(self) -> str:
        return posixpath.basename(self.path.rstrip("/")) or self.path


ListingKind = Literal["ok", "missing", "failed"]


@dataclass(frozen=True)
class DirectoryListing:
    """Outcome of listing one directory."""

    path: str
    kind: ListingKind
    entries: tuple[FileEntry, ...] = ()
    error: OSError | None = None

    @classmethod
    def ok(cls, path: str, entries: Iterable[FileEntry]) -> DirectoryListing:
        return cls(path=path, kind="ok", entries=tuple(entries))

    @classmethod
    def missing(cls, path: str) -> DirectoryListing:
        return cls(path=path, kind="missing")

    @classmethod
    def failed(cls, path: str, error: OSError) -> DirectoryListing:
        return cls(path=path, kind="failed", error=error)


class FileSystem(Protocol):
    """Read-only directory listing capability."""

    def list_directory(self, path: str) -> DirectoryListing: ...


class LocalFileSystem:
    """:class:`FileSystem` backed by ``os.scandir``.

    Symlinks are stat'ed through to their target, so a link to a directory
    is reported with ``is_dir=True, is_symlink=True``.  Entries that vanish
    between the directory read and the stat (including dangling links) are
    left out of the listing.
    """

    def list_directory(self, path: str) -> DirectoryListing:
        path = os.path.abspath(path)
        try:
            with os.scandir(path) as it:
                entries = [e for e in (_to_entry(item) for item in it) if e is not None]
        except (FileNotFoundError, NotADirectoryError):
            return DirectoryListing.missing(path)
        except OSError as exc:
            return DirectoryListing.failed(path, exc)
        return DirectoryListing.ok(path, entries)


def _to_entry(item: os.DirEntry[str]) -> FileEntry | None:
    is_symlink = item.is_symlink()
    try:
        st = item.stat()
    except FileNotFoundError:
        return None
    is_dir = stat.S_ISDIR(st.st_mode)
    return FileEntry(
        path=item.path,
        size=0 if is_dir else st.st_size,
        mtime=st.st_mtime_ns // 1_000_000,
        is_dir=is_dir,
        is_symlink=is_symlink,
    )


# ---------------------------------------------------------------------------
# Scheme registry
# ---------------------------------------------------------------------------

FileSystemFactory = Callable[[Settings | None], FileSystem]

_FACTORIES: dict[str, FileSystemFactory] = {}
_LOCAL_SCHEMES = frozenset({"", "file"})


def register_filesystem(scheme: str, factory: FileSystemFactory) -> None:
    """Register *factory* as the handle builder for URIs with *scheme*.

    Re-registering a scheme replaces the previous factory.
    """
    _FACTORIES[scheme.lower()] = factory


def resolve_filesystem(
    root_path: str, settings: Settings | None = None
) -> tuple[FileSystem, str]:
    """Return ``(handle, root)`` for *root_path*.

    For local paths *root* is the absolute filesystem path; for any other
    scheme the URI is passed through untouched.

    Raises:
        FilesystemError: No factory is registered for the scheme, or the
            factory itself failed with an ``OSError``.
    """
    parts = urlsplit(root_path)
    # A single letter is a Windows drive, not a scheme.
    scheme = parts.scheme.lower() if len(parts.scheme) > 1 else ""

    factory = _FACTORIES.get(scheme)
    if factory is None:
        raise FilesystemError(f"no filesystem registered for scheme {scheme!r}: {root_path}")

    try:
        fs = factory(settings)
    except OSError as exc:
        raise FilesystemError(f"cannot open filesystem for {root_path}: {exc}") from exc

    if scheme in _LOCAL_SCHEMES:
        local = parts.path if scheme else root_path
        return fs, os.path.abspath(local)
    return fs, root_path


register_filesystem("", lambda _settings: LocalFileSystem())
register_filesystem("file", lambda _settings: LocalFileSystem())
