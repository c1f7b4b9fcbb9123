from __future__ import annotations

import contextlib
from collections.abc import Generator

import click

from vcsgate.cli.context import ExitCode
from vcsgate.cli.output import format_error
from vcsgate.exceptions import ConfigError, VcsGateError
from vcsgate.logging import get_logger


@contextlib.contextmanager
def cli_error_handler() -> Generator[None, None, None]:
    """Context manager for common CLI error handling.

    Handles:
    - KeyboardInterrupt: Exit with code 130
    - ConfigError: Format error with the offending field
    - VcsGateError: Format error with message

    Example:
        >>> with cli_error_handler():
        >>>     backend = create_backend(config)
    """
    logger = get_logger(__name__)

    try:
        yield
    except KeyboardInterrupt:
        click.echo("\n\nInterrupted by user.", err=True)
        raise SystemExit(ExitCode.INTERRUPTED) from None
    except ConfigError as e:
        details = []
        if e.field:
            details.append(f"Field: {e.field}")
        if e.value is not None:
            details.append(f"Value: {e.value}")
        click.echo(
            format_error(
                e.message,
                details=details or None,
                suggestion="Check the repository section of vcsgate.yaml",
            ),
            err=True,
        )
        raise SystemExit(ExitCode.FAILURE) from e
    except VcsGateError as e:
        logger.debug("cli_command_failed", error=e.message)
        click.echo(format_error(e.message), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
