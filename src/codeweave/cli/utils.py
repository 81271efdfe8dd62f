"""CLI utilities."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from rich.table import Table

from codeweave.config.loader import load_config
from codeweave.core.errors import CodeWeaveError, RefactorError
from codeweave.core.logging import configure_logging
from codeweave.core.progress import get_console, pluralize, status
from codeweave.mutation.ops import CommitResult
from codeweave.refactor.ops import RefactorOps


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn structured errors into click errors (exit code 1)."""
    try:
        yield
    except CodeWeaveError as e:
        raise click.ClickException(str(e)) from e


def open_session(root: Path, project: str, *, verbose: bool = False) -> RefactorOps:
    """Load configuration for root, apply its logging section and open a session.

    Raises:
        click.ClickException: invalid configuration or unknown project.
    """
    with reported_errors():
        config = load_config(root)
        configure_logging(config=config.logging, level="DEBUG" if verbose else None)
        return RefactorOps.open(root, project, config=config)


def print_commit(commit: CommitResult | None) -> None:
    """Summarize a commit; dry runs also print the unified diff to stdout."""
    if commit is None or not commit.files:
        status("No files changed", style="info")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("File")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    for delta in commit.files:
        table.add_row(delta.path, str(delta.insertions), str(delta.deletions))
    get_console().print(table)

    summary = (
        f"{pluralize(commit.files_changed, 'file')}, "
        f"+{commit.insertions} -{commit.deletions}"
    )
    if commit.dry_run:
        status(f"Dry run: {summary} (nothing written)", style="warning")
        click.echo(commit.diff, nl=False)
    else:
        status(f"Committed {commit.commit_id}: {summary}", style="success")


def print_rejected(rejected: list[RefactorError]) -> None:
    for error in rejected:
        status(error.message, style="warning", indent=2)
