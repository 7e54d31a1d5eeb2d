"""structlog setup for selection runs.

Two layers of context end up on every event:

- per process: ``configure_logging()`` binds ``run_id`` and the configured
  ``source_root``, so lines from concurrent ingestion jobs pointed at
  different trees can be told apart;
- per selection: :func:`selection_context` binds ``checkpoint`` and
  ``budget`` for the duration of one ``select_next_batch`` call, and unbinds
  them afterwards.

Events render as one JSON object per line (``format = "json"``) or as
coloured key=value pairs (``format = "text"``), always on stderr.  Exceptions
logged with ``exc_info`` are rendered into the event as a traceback string.
"""

import logging as _stdlib
import sys
import uuid
from contextlib import AbstractContextManager

import structlog

from pathselector.config import Settings, get_settings


def configure_logging(settings: Settings | None = None) -> str:
    """Install the processor chain and bind process-wide context.

    Safe to call more than once; each call replaces the chain and binds a
    new ``run_id``.

    Returns:
        The 8-character hex ``run_id``.
    """
    if settings is None:
        settings = get_settings()

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if settings.logging.format == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(_stdlib, settings.logging.level, _stdlib.INFO)
        ),
        context_class=dict,
        # stdout carries the selected paths.  Not cached: CliRunner swaps
        # sys.stderr per invocation.
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    run_id = uuid.uuid4().hex[:8]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        run_id=run_id,
        source_root=settings.source.root_path,
    )
    return run_id


def selection_context(checkpoint: str | None, budget: int) -> AbstractContextManager:
    """Bind *checkpoint* and *budget* to every event logged inside the block."""
    return structlog.contextvars.bound_contextvars(checkpoint=checkpoint, budget=budget)


def get_logger(name: str = "pathselector") -> structlog.BoundLogger:
    return structlog.get_logger(name)
