from __future__ import annotations

import click

from vcsgate.cli.common import cli_error_handler
from vcsgate.cli.console import console
from vcsgate.cli.context import async_command, get_cli_context
from vcsgate.tools import RepositoryToolHandler


@click.command()
@click.argument("operation")
@click.option("-p", "--path", default="", help="Path inside the repository.")
@click.option("-r", "--revision", default="", help="Revision, range or ref.")
@click.option("-n", "--limit", default="10", help="Maximum entries for history operations.")
@click.pass_context
@async_command
async def run(
    ctx: click.Context,
    operation: str,
    path: str,
    revision: str,
    limit: str,
) -> None:
    """Run one read-only OPERATION against the active repository.

    Output is exactly what a tool-calling driver would receive.

    Examples:
        vcsgate run log --limit 5
        vcsgate run cat --path README.md --revision 42
    """
    cli_ctx = get_cli_context(ctx)

    with cli_error_handler():
        handler = RepositoryToolHandler.from_config(cli_ctx.config)

    text = await handler.handle(
        {"operation": operation, "path": path, "revision": revision, "limit": limit}
    )
    console.print(text, markup=False, highlight=False, soft_wrap=True)
