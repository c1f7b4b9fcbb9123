"""CLI context and utilities for vcsgate.

Exit codes, the typed context object stored on the click context, and a
bridge from click's synchronous commands to async code.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, TypeVar

import click

from vcsgate.config import VcsGateConfig

__all__ = ["CLIContext", "ExitCode", "async_command", "get_cli_context"]


class ExitCode(IntEnum):
    """Exit codes for the vcsgate CLI."""

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global options and configuration shared by subcommands.

    Attributes:
        config: Loaded configuration.
        config_path: Path given with ``--config``, if any.
        verbosity: 0 = default, 1 = INFO, 2+ = DEBUG.
        quiet: Only errors are logged.
    """

    config: VcsGateConfig
    config_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False


def get_cli_context(ctx: click.Context) -> CLIContext:
    return ctx.obj["cli_ctx"]


F = TypeVar("F", bound=Callable[..., Any])


def async_command(f: F) -> F:
    """Run an async click command body with ``asyncio.run()``."""

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper  # type: ignore[return-value]
