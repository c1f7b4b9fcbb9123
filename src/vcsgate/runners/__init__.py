"""Subprocess runners used by the command-line backends."""

from __future__ import annotations

from vcsgate.runners.command import CommandRunner
from vcsgate.runners.models import CommandResult

__all__ = ["CommandResult", "CommandRunner"]
