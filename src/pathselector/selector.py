"""Next-batch selection: walk → sort → take prefix → resolve checkpoint.

``PathSelector.select_next_batch(last_checkpoint, byte_budget)`` answers
"which new files have arrived since *last_checkpoint*, up to *byte_budget*
bytes?" and returns a :class:`SelectionResult` with the files to process and
the checkpoint to persist once they have been processed.

The selector keeps no state between calls.  The checkpoint is threaded
through by the caller, and nothing is persisted here, so a failed call can
simply be retried.

Failure semantics:

- A malformed checkpoint raises :class:`~pathselector.checkpoint.CheckpointError`.
- A missing root, any listing failure, and any exception a filesystem
  handle raises while listing all become :class:`SelectionError`, chained
  to the underlying error and naming the checkpoint that was attempted.
- A budget smaller than the oldest eligible file is *not* a failure: the
  result is empty and carries the unchanged checkpoint.

Typical usage::

    selector = PathSelector.from_settings(get_settings())
    result = selector.select_next_batch(stored_checkpoint, 512 * 1024 * 1024)
    if result:
        process(result.path_list())
    store(result.checkpoint)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from pathselector.batching import select_prefix
from pathselector.checkpoint import CheckpointError, parse_checkpoint, resolve_checkpoint
from pathselector.config import Settings, get_settings
from pathselector.filesystem import FileEntry, FileSystem, FilesystemError, resolve_filesystem
from pathselector.logging import get_logger, selection_context
from pathselector.walker import DEFAULT_IGNORE_PREFIXES, TreeWalker, WalkError, WalkStats

_log = get_logger(__name__)


class SelectionError(RuntimeError):
    """Raised when a selection cannot be completed; nothing is returned."""


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of one selection.

    Attributes:
        paths:       Comma-joined absolute paths in ascending ``mtime`` order,
                     or ``None`` when nothing was selected.
        checkpoint:  Value to persist once the files have been processed.
        files:       The selected entries, same order as ``paths``.
        total_bytes: Sum of the selected file sizes.
        stats:       What the walk skipped and why.
    """

    paths: str | None
    checkpoint: str
    files: tuple[FileEntry, ...] = ()
    total_bytes: int = 0
    stats: WalkStats = field(default_factory=WalkStats)

    def __bool__(self) -> bool:
        return self.paths is not None

    def path_list(self) -> list[str]:
        return [f.path for f in self.files]


class PathSelector:
    """Checkpoint-driven file selector rooted at one directory.

    Args:
        fs:              Filesystem handle used for every listing.
        root:            Directory to scan, in *fs*'s own addressing.
        ignore_prefixes: Entry name prefixes pruned at every depth.
        max_workers:     Threads for listing sibling directories.
    """

    def __init__(
        self,
        fs: FileSystem,
        root: str,
        *,
        ignore_prefixes: Sequence[str] = DEFAULT_IGNORE_PREFIXES,
        max_workers: int = 1,
    ) -> None:
        self.root = root
        self._walker = TreeWalker(fs, ignore_prefixes=ignore_prefixes, max_workers=max_workers)

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, *, root_path: str | None = None
    ) -> PathSelector:
        """Build a selector from the ``[source]`` settings.

        *root_path* overrides ``settings.source.root_path``.

        Raises:
            FilesystemError: No handle can be resolved for the root.
        """
        if settings is None:
            settings = get_settings()
        fs, root = resolve_filesystem(root_path or settings.source.root_path, settings)
        return cls(
            fs,
            root,
            ignore_prefixes=settings.source.ignore_prefixes,
            max_workers=settings.source.max_workers,
        )

    def select_next_batch(self, last_checkpoint: str | None, byte_budget: int) -> SelectionResult:
        """Return the files newer than *last_checkpoint* that fit in *byte_budget*.

        Args:
            last_checkpoint: Previously returned checkpoint, or ``None`` to
                             start from the beginning of time.
            byte_budget:     Exclusive upper bound on the total size selected.

        Raises:
            ValueError:      *byte_budget* is not positive.
            CheckpointError: *last_checkpoint* is not an integer string.
            SelectionError:  The root is missing, a directory could not be
                             listed, or the filesystem handle raised.
        """
        if byte_budget <= 0:
            raise ValueError(f"byte_budget must be positive, got {byte_budget}")

        with selection_context(last_checkpoint, byte_budget):
            return self._select(last_checkpoint, byte_budget)

    def _select(self, last_checkpoint: str | None, byte_budget: int) -> SelectionResult:
        try:
            threshold = parse_checkpoint(last_checkpoint)
        except CheckpointError as exc:
            _log.error("selection failed", root=self.root, detail=str(exc))
            raise

        _log.info("selection started", root=self.root)

        try:
            walk = self._walker.walk(self.root, threshold)
        except WalkError as exc:
            _log.error(
                "selection failed",
                root=self.root,
                checkpoint=last_checkpoint,
                path=exc.path,
                detail=str(exc.cause),
            )
            raise SelectionError(
                f"unable to read from {self.root} from checkpoint {last_checkpoint!r}: {exc}"
            ) from exc
        except Exception as exc:
            # Handles outside this package may raise anything while listing.
            _log.error(
                "selection failed",
                root=self.root,
                checkpoint=last_checkpoint,
                exc_info=True,
            )
            raise SelectionError(
                f"unable to read from {self.root} from checkpoint {last_checkpoint!r}: {exc!r}"
            ) from exc

        stats = walk.stats
        _log.debug(
            "walk complete",
            eligible=len(walk.files),
            directories=stats.directories_listed,
            ignored=stats.ignored_entries,
            missing=stats.missing_directories,
            stale=stats.stale_files,
            empty=stats.empty_files,
        )
        if stats.skipped_symlinks:
            _log.warning("symlinked directories skipped", count=stats.skipped_symlinks)

        batch = select_prefix(walk.files, byte_budget)
        paths, checkpoint = resolve_checkpoint(batch, last_checkpoint)

        _log.info(
            "selection complete",
            selected=len(batch),
            eligible=len(walk.files),
            total_bytes=batch.total_bytes,
            next_checkpoint=checkpoint,
        )
        return SelectionResult(
            paths=paths,
            checkpoint=checkpoint,
            files=batch.files,
            total_bytes=batch.total_bytes,
            stats=stats,
        )


def select_next_batch(
    last_checkpoint: str | None,
    byte_budget: int,
    settings: Settings | None = None,
) -> SelectionResult:
    """Resolve the configured root and run one selection against it.

    Handle resolution failures are reported as :class:`SelectionError`,
    like listing failures.
    """
    try:
        selector = PathSelector.from_settings(settings)
    except FilesystemError as exc:
        raise SelectionError(
            f"unable to read from source from checkpoint {last_checkpoint!r}: {exc}"
        ) from exc
    return selector.select_next_batch(last_checkpoint, byte_budget)
