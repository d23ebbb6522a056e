# treefiles/cli/console_output.py
"""
Handles progress and diagnostic output on stderr during CLI execution.
"""
import sys
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

import click
from rich.console import Console as RichConsole
from rich.progress import Progress, SpinnerColumn, TextColumn
import structlog

from treefiles.exceptions import MaxResultsExceeded, TreeFilesError

log = structlog.get_logger(__name__)

PROGRESS_UPDATE_EVERY = 10
OVERFLOW_EXIT_CODE = 3

@contextmanager
def walk_progress(enabled: bool) -> Iterator[Callable[[int], None]]:
    """
    Shows a live count of discovered files on stderr.

    Yields a callback taking the running count; the display refreshes every
    PROGRESS_UPDATE_EVERY files and disappears when the block exits.
    """
    stderr_console = RichConsole(file=sys.stderr)
    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        transient=True,
        disable=not enabled or not sys.stderr.isatty(),
        console=stderr_console,
    ) as progress:
        task = progress.add_task("walking...", total=None)

        def update(count: int) -> None:
            if count % PROGRESS_UPDATE_EVERY == 0:
                progress.update(task, description=f"{count:,} files")

        yield update

def report_walk_error(error: Optional[BaseException]) -> int:
    """Prints the walk's terminal error to stderr and returns the exit code for it."""
    if error is None:
        return 0
    if isinstance(error, MaxResultsExceeded):
        click.echo(str(error), err=True)
        return OVERFLOW_EXIT_CODE
    if isinstance(error, TreeFilesError):
        click.secho(f"Error: {error}", fg="red", err=True)
        return 1
    log.critical("unexpected_walk_error", error_type=type(error).__name__, message=str(error))
    click.secho(f"Unexpected error: {error}. Please report this.", fg="red", err=True)
    return 1
