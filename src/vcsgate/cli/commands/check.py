from __future__ import annotations

import click
from rich.markup import escape

from vcsgate.backends import create_backend
from vcsgate.cli.common import cli_error_handler
from vcsgate.cli.console import console
from vcsgate.cli.context import ExitCode, async_command, get_cli_context


@click.command()
@click.pass_context
@async_command
async def check(ctx: click.Context) -> None:
    """Check the client installation and the repository connection.

    Examples:
        vcsgate check
        vcsgate -c ./vcsgate.yaml check
    """
    cli_ctx = get_cli_context(ctx)

    with cli_error_handler():
        backend = create_backend(cli_ctx.config)

    console.print(
        f"[bold]Provider:[/bold] {backend.provider_name} ({escape(backend.name)})"
    )
    console.print(f"[bold]Repository:[/bold] {escape(backend.repository_label or '-')}")

    if not await backend.ensure_client():
        console.print("[red]Client not installed[/red]")
        console.print(backend.installation_guidance(), markup=False)
        raise SystemExit(ExitCode.FAILURE)

    console.print(f"[bold]Client:[/bold] {escape(backend.client_version())}")

    if await backend.test_connection():
        console.print("[green]Connection OK[/green]")
        return

    detail = backend.connection_status.detail
    console.print("[red]Connection failed[/red]")
    if detail:
        console.print(detail, markup=False)
        console.print(backend.error_guidance(detail), markup=False)
    raise SystemExit(ExitCode.FAILURE)
