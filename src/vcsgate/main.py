"""CLI entry point for vcsgate.

This module defines the click command group installed as ``vcsgate``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from vcsgate import __version__
from vcsgate.cli.commands.check import check
from vcsgate.cli.commands.operations import operations
from vcsgate.cli.commands.run import run
from vcsgate.cli.context import CLIContext, ExitCode
from vcsgate.cli.output import format_error
from vcsgate.config import load_config
from vcsgate.exceptions import ConfigError
from vcsgate.logging import configure_logging

_VERBOSITY_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="vcsgate")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=False, path_type=str),
    default=None,
    help="Path to config file (overrides ./vcsgate.yaml).",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress non-essential output (ERROR level only).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    verbose: int,
    quiet: bool,
) -> None:
    """vcsgate - read-only access to SVN, Git and GitHub repositories."""
    ctx.ensure_object(dict)

    config_path = Path(config_file) if config_file else None
    try:
        config = load_config(config_path)
    except ConfigError as e:
        details = []
        if e.field:
            details.append(f"Field: {e.field}")
        if e.value is not None:
            details.append(f"Value: {e.value}")
        click.echo(format_error(e.message, details=details or None), err=True)
        ctx.exit(ExitCode.FAILURE)

    # Priority: quiet > verbose > config
    if quiet:
        level = logging.ERROR
    elif verbose > 0:
        level = logging.INFO if verbose == 1 else logging.DEBUG
    else:
        level = _VERBOSITY_LEVELS.get(config.verbosity, logging.WARNING)
    configure_logging(level=level)

    if verbose > 1 and not config.debug:
        config = config.model_copy(update={"debug": True})

    ctx.obj["cli_ctx"] = CLIContext(
        config=config,
        config_path=config_path,
        verbosity=verbose,
        quiet=quiet,
    )

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(operations)
cli.add_command(check)
cli.add_command(run)

if __name__ == "__main__":
    cli()
