"""CLI root — entry point for all pathselector subcommands.

Entry points:
  pathselector
  python -m pathselector

Command surface:
  pathselector select        print the next batch of files and its checkpoint
  pathselector config show   print resolved configuration

Exit codes for ``select``: 0 = success (including an empty batch),
1 = the tree could not be read or the checkpoint is malformed,
2 = invalid budget.
"""

import json

import typer

from pathselector import __version__
from pathselector.logging import get_logger

app = typer.Typer(
    name="pathselector",
    help="Select newly arrived files in checkpoint order, bounded by a byte budget.",
    no_args_is_help=True,
)

_log = get_logger(__name__)


# ---------------------------------------------------------------------------
# Global callback — runs before every subcommand
# ---------------------------------------------------------------------------


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pathselector {__version__}")
        raise typer.Exit()


@app.callback()
def _main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Print version and exit.",
    ),
) -> None:
    """Select newly arrived files in checkpoint order, bounded by a byte budget."""
    # --version exits before this body, so logging is only set up for subcommands.
    from pathselector.logging import configure_logging

    configure_logging()


# ---------------------------------------------------------------------------
# select
# ---------------------------------------------------------------------------


@app.command("select")
def select(
    checkpoint: str | None = typer.Option(
        None,
        "--checkpoint",
        "-c",
        help="Checkpoint returned by the previous run.  Omit to start from the beginning.",
    ),
    budget: int | None = typer.Option(
        None,
        "--budget",
        "-b",
        help="Exclusive byte budget for the batch.  Omit to use batch.source_limit.",
    ),
    root: str = typer.Option(
        "",
        "--root",
        "-r",
        help="Directory or file:// URI to scan.  Empty = source.root_path.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print a single JSON object instead of one path per line.",
    ),
) -> None:
    """Print the next batch of files newer than CHECKPOINT.

    Walks the source tree, skipping names that start with an ignore prefix
    and symlinked directories, and selects the oldest files whose combined
    size stays below the budget.  The last line of plain output is the
    checkpoint to pass to the next run.  Nothing is persisted.
    """
    from pathselector.checkpoint import CheckpointError
    from pathselector.config import get_settings
    from pathselector.filesystem import FilesystemError
    from pathselector.selector import PathSelector, SelectionError

    settings = get_settings()
    byte_budget = settings.batch.source_limit if budget is None else budget
    if byte_budget <= 0:
        typer.echo(f"Error: budget must be positive, got {byte_budget}", err=True)
        raise typer.Exit(2)

    try:
        selector = PathSelector.from_settings(settings, root_path=root or None)
    except FilesystemError as exc:
        _log.error("filesystem unavailable", root=root or settings.source.root_path, detail=str(exc))
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc

    # The selector has already logged these.
    try:
        result = selector.select_next_batch(checkpoint, byte_budget)
    except (CheckpointError, SelectionError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "paths": result.path_list(),
                    "checkpoint": result.checkpoint,
                    "total_bytes": result.total_bytes,
                    "skipped_symlinks": result.stats.skipped_symlinks,
                }
            )
        )
        return

    for path in result.path_list():
        typer.echo(path)
    typer.echo(f"checkpoint: {result.checkpoint}")


# ---------------------------------------------------------------------------
# config subcommands
# ---------------------------------------------------------------------------

_config_app = typer.Typer(help="Inspect resolved configuration.")
app.add_typer(_config_app, name="config")


@_config_app.command("show")
def config_show() -> None:
    """Print the fully-resolved configuration and exit.

    Shows which config file was loaded and the final value of every setting
    after environment-variable overrides are applied.
    """
    from pathselector.config import _config_file, get_settings

    settings = get_settings()

    typer.echo(f"\n  config : {_config_file()}\n")

    for section_name, section in settings.model_dump().items():
        typer.echo(f"  [{section_name}]")
        width = max(len(k) for k in section)
        for key, val in section.items():
            typer.echo(f"  {key.ljust(width)} = {val}")
        typer.echo()
