from __future__ import annotations

import json

import click
from rich.markup import escape
from rich.table import Table

from vcsgate.backends import create_backend
from vcsgate.cli.common import cli_error_handler
from vcsgate.cli.console import console
from vcsgate.cli.context import get_cli_context


@click.command()
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.pass_context
def operations(ctx: click.Context, fmt: str) -> None:
    """List the read-only operations of the active repository provider.

    Examples:
        vcsgate operations
        vcsgate operations --format json
    """
    cli_ctx = get_cli_context(ctx)

    with cli_error_handler():
        backend = create_backend(cli_ctx.config)

    catalog = backend.describe_operations()
    if fmt == "json":
        click.echo(
            json.dumps(
                {"provider": backend.provider_name, "operations": dict(catalog)},
                indent=2,
            )
        )
        return

    table = Table(title=f"{backend.provider_name} operations ({escape(backend.name)})")
    table.add_column("Operation", style="bold cyan")
    table.add_column("Description")
    for op, description in catalog.items():
        table.add_row(op, description)
    console.print(table)
