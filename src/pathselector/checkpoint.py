"""Checkpoint parsing and next-checkpoint resolution.

A checkpoint is the decimal string of an ``mtime`` in epoch milliseconds:
the newest modification time handed out so far.  ``None`` means nothing has
been handed out yet.

When a selection comes back empty the caller gets its own checkpoint back,
or :data:`BEGINNING_OF_TIME` if it had none, so persisting the returned value
is always safe.
"""

from __future__ import annotations

from pathselector.batching import Batch

# Signed 64-bit range; MIN_TIMESTAMP is lower than any real mtime.
MIN_TIMESTAMP = -(2**63)
MAX_TIMESTAMP = 2**63 - 1
BEGINNING_OF_TIME = str(MIN_TIMESTAMP)


class CheckpointError(ValueError):
    """Raised when a checkpoint string is not a base-10 64-bit integer."""


def parse_checkpoint(value: str | None) -> int:
    """Return the threshold encoded by *value*.

    ``None`` maps to :data:`MIN_TIMESTAMP`.  Anything else must be an
    integer string within the signed 64-bit range.  There is no fallback
    to the beginning of time, which would silently re-select the whole tree,
    and no clamping of huge values, which would select nothing forever.
    """
    if value is None:
        return MIN_TIMESTAMP
    text = value.strip()
    # int() also accepts "1_000" and non-ASCII digits; checkpoints are plain decimal.
    digits = text[1:] if text[:1] in "+-" else text
    if not (digits.isascii() and digits.isdigit()):
        raise CheckpointError(f"checkpoint is not an integer timestamp: {value!r}")
    n = int(text)
    if not MIN_TIMESTAMP <= n <= MAX_TIMESTAMP:
        raise CheckpointError(f"checkpoint is outside the 64-bit timestamp range: {value!r}")
    return n


def resolve_checkpoint(batch: Batch, last_checkpoint: str | None) -> tuple[str | None, str]:
    """Return ``(comma-joined paths or None, next checkpoint)`` for *batch*."""
    if not batch:
        return None, last_checkpoint if last_checkpoint is not None else BEGINNING_OF_TIME
    return ",".join(f.path for f in batch.files), str(batch.max_mtime)
