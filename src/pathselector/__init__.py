"""pathselector — incremental, checkpoint-ordered file selection for ingestion jobs.

Scans a directory tree for files modified after a checkpoint and hands them
out oldest-first in batches bounded by a byte budget, together with the next
checkpoint to persist.

    from pathselector import PathSelector

    result = PathSelector.from_settings().select_next_batch(checkpoint, budget)
"""

__version__ = "0.1.0"

from pathselector.selector import PathSelector, SelectionError, SelectionResult  # noqa: E402

__all__ = ["PathSelector", "SelectionError", "SelectionResult", "__version__"]
