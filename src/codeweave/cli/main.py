"""codeweave CLI - codeweave command."""

import click

from codeweave.cli.deprecate import forward_deprecated_command
from codeweave.cli.weave import weave_command
from codeweave.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="codeweave")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """codeweave - batch refactoring across a multi-project Python codebase."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(weave_command, name="weave")
cli.add_command(forward_deprecated_command, name="forward-deprecated")


if __name__ == "__main__":
    cli()
