"""codeweave forward-deprecated command - redirect calls to successor methods."""

from pathlib import Path

import click

from codeweave.cli.utils import open_session, print_commit, print_rejected, reported_errors
from codeweave.config.models import RenameMode
from codeweave.core.progress import pluralize, status, task


@click.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--project", "-p", required=True, help="Project that declares the interface")
@click.option("--interface", "-i", "interface_name", required=True, help="Interface class name")
@click.option("--marker", default=None, help="Text preceding the successor name (default from config)")
@click.option(
    "--rename-mode",
    type=click.Choice([m.value for m in RenameMode]),
    default=None,
    help="textual: every same-named attribute in affected files; resolved: call sites only",
)
@click.option("--dry-run", is_flag=True, help="Show the diff without writing files")
@click.pass_context
def forward_deprecated_command(
    ctx: click.Context,
    root: Path,
    project: str,
    interface_name: str,
    marker: str | None,
    rename_mode: str | None,
    dry_run: bool,
) -> None:
    """Rewrite calls to deprecated interface methods to their successors.

    A method is deprecated when decorated with @deprecated("... Use NewName").
    """
    ops = open_session(root.resolve(), project, verbose=ctx.obj.get("verbose", False))
    with task(f"Forwarding deprecated methods of {interface_name}") as progress, reported_errors():
        result = ops.forward_deprecated(
            interface_name,
            marker,
            rename_mode=RenameMode(rename_mode) if rename_mode else None,
            dry_run=dry_run,
        )
        progress.detail = pluralize(result.renamed, "call") + " renamed"

    for old, new in result.forwarded:
        status(f"{old} -> {new}", style="info", indent=2)
    if result.rejected:
        status(f"Skipped {pluralize(len(result.rejected), 'deprecated method')}:", style="warning")
        print_rejected(result.rejected)
    print_commit(result.commit)
