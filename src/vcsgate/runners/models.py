"""Data models for subprocess runners."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "COMMAND_NOT_FOUND_EXIT_CODE",
    "PERMISSION_DENIED_EXIT_CODE",
    "CommandResult",
]

#: Exit code reported when the executable is missing (shell convention).
COMMAND_NOT_FOUND_EXIT_CODE = 127

#: Exit code reported when the executable is not runnable.
PERMISSION_DENIED_EXIT_CODE = 126


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of executing a single command.

    Attributes:
        returncode: Exit code from the command (0 = success).
        stdout: Standard output captured from the command.
        stderr: Standard error captured from the command.
        duration_ms: Execution time in milliseconds.
        timed_out: True if the command exceeded its timeout limit. Output
            captured before termination is discarded.
    """

    returncode: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """True if command completed successfully (returncode 0, no timeout)."""
        return self.returncode == 0 and not self.timed_out

    @property
    def not_found(self) -> bool:
        """True if the executable could not be started at all."""
        return self.returncode == COMMAND_NOT_FOUND_EXIT_CODE
