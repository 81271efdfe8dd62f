"""codeweave weave command - prepend statements to interface implementations."""

from pathlib import Path

import click

from codeweave.cli.utils import open_session, print_commit, reported_errors
from codeweave.core.progress import pluralize, status, task


@click.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--project", "-p", required=True, help="Project that declares the interface")
@click.option("--interface", "-i", "interface_name", required=True, help="Interface class name")
@click.option(
    "--statement",
    "-s",
    "statements",
    multiple=True,
    required=True,
    help="Statement to insert at the top of each implementation (repeatable, kept in order)",
)
@click.option("--method", "-m", "methods", multiple=True, help="Only weave these methods")
@click.option("--exclude-project", "excluded_projects", multiple=True, help="Project whose calls disqualify a method")
@click.option("--exclude-class", "excluded_classes", multiple=True, help="Class whose calls disqualify a method")
@click.option("--dry-run", is_flag=True, help="Show the diff without writing files")
@click.pass_context
def weave_command(
    ctx: click.Context,
    root: Path,
    project: str,
    interface_name: str,
    statements: tuple[str, ...],
    methods: tuple[str, ...],
    excluded_projects: tuple[str, ...],
    excluded_classes: tuple[str, ...],
    dry_run: bool,
) -> None:
    """Weave statements into every implementation of an interface.

    ROOT is the codebase directory; each subdirectory holding Python files
    is a project.
    """
    ops = open_session(root.resolve(), project, verbose=ctx.obj.get("verbose", False))
    with task(f"Weaving {interface_name}") as progress, reported_errors():
        result = ops.weave_aspect(
            interface_name,
            list(statements),
            methods=methods or None,
            excluded_projects=excluded_projects,
            excluded_classes=excluded_classes,
            dry_run=dry_run,
        )
        progress.detail = (
            f"{pluralize(result.implementations, 'implementation')} of "
            f"{pluralize(len(result.woven), 'method')}"
        )

    if result.excluded:
        status(f"Excluded by call sites: {', '.join(result.excluded)}", style="warning")
    print_commit(result.commit)
