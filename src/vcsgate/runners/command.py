"""Command runner for safe async subprocess execution.

This module provides the CommandRunner class for executing external
version-control clients with a hard timeout and proper termination.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING

from vcsgate.exceptions import ConfigError
from vcsgate.runners.models import (
    COMMAND_NOT_FOUND_EXIT_CODE,
    PERMISSION_DENIED_EXIT_CODE,
    CommandResult,
)
from vcsgate.utils import security

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["CommandRunner", "TERMINATION_GRACE_PERIOD"]

TERMINATION_GRACE_PERIOD: float = 2.0


class CommandRunner:
    """Execute commands safely with timeout and environment control.

    Provides async command execution with:
    - Timeout handling with forced termination (SIGTERM + grace period + SIGKILL)
    - Working directory validation
    - Environment variable inheritance and override
    - Duration measurement

    No retries are attempted; a failed or timed-out command is reported once
    and the caller decides what to do with it.

    Example:
        ```python
        runner = CommandRunner(timeout=60.0, env={"GIT_TERMINAL_PROMPT": "0"})
        result = await runner.run(["git", "log", "-5"], cwd=Path("/checkout"))
        if result.timed_out:
            ...
        ```
    """

    def __init__(
        self,
        cwd: Path | None = None,
        timeout: float | None = 60.0,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize the CommandRunner.

        Args:
            cwd: Working directory for commands. If None, uses current directory.
            timeout: Default timeout in seconds. Use None for no timeout.
            env: Additional environment variables to merge with os.environ.
        """
        self._cwd = cwd
        self._timeout = timeout
        self._extra_env = env or {}

    @property
    def cwd(self) -> Path | None:
        """Working directory for command execution."""
        return self._cwd

    @property
    def timeout(self) -> float | None:
        """Default timeout in seconds."""
        return self._timeout

    def _validate_cwd(self, cwd: Path | None) -> None:
        if cwd is not None and not cwd.is_dir():
            raise ConfigError(
                f"Working directory does not exist: {cwd}",
                field="working_copy_path",
                value=str(cwd),
            )

    def _build_env(self, extra_env: dict[str, str] | None = None) -> dict[str, str]:
        env = os.environ.copy()
        env.update(self._extra_env)
        if extra_env:
            env.update(extra_env)
        return env

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
        scrub_secrets: bool = False,
    ) -> CommandResult:
        """Execute a command and return the result.

        Args:
            command: Command and arguments as a sequence (no shell expansion).
            cwd: Override working directory for this command.
            timeout: Override timeout. Use 0 or negative for no timeout.
            env: Additional environment variables for this command.
            scrub_secrets: If True, scrub sensitive patterns from stderr.

        Returns:
            CommandResult with returncode, stdout, stderr, duration_ms, timed_out.

        Raises:
            ConfigError: If the working directory does not exist.
        """
        effective_cwd = cwd if cwd is not None else self._cwd
        self._validate_cwd(effective_cwd)

        effective_timeout = timeout if timeout is not None else self._timeout
        if effective_timeout is not None and effective_timeout <= 0:
            effective_timeout = None

        result = await self._execute_once(
            command, effective_cwd, effective_timeout, self._build_env(env)
        )

        if scrub_secrets and result.stderr:
            result = CommandResult(
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=security.scrub_secrets(result.stderr),
                duration_ms=result.duration_ms,
                timed_out=result.timed_out,
            )
        return result

    async def _execute_once(
        self,
        command: Sequence[str],
        cwd: Path | None,
        timeout: float | None,
        env: dict[str, str],
    ) -> CommandResult:
        start_time = time.monotonic()
        timed_out = False
        returncode = 0
        stdout_str = ""
        stderr_str = ""

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=env,
            )

            try:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(
                    process.communicate(),
                    timeout=timeout,
                )
                returncode = process.returncode or 0
                stdout_str = stdout_bytes.decode("utf-8", errors="replace")
                stderr_str = stderr_bytes.decode("utf-8", errors="replace")

            except TimeoutError:
                # Partial output is dropped; the caller only learns it timed out
                timed_out = True
                process.terminate()
                try:
                    await asyncio.wait_for(
                        process.wait(), timeout=TERMINATION_GRACE_PERIOD
                    )
                except TimeoutError:
                    process.kill()
                    await process.wait()
                returncode = -1

        except FileNotFoundError:
            returncode = COMMAND_NOT_FOUND_EXIT_CODE
            stderr_str = f"Command not found: {command[0]}"
        except PermissionError:
            returncode = PERMISSION_DENIED_EXIT_CODE
            stderr_str = f"Permission denied: {command[0]}"

        duration_ms = int((time.monotonic() - start_time) * 1000)

        return CommandResult(
            returncode=returncode,
            stdout=stdout_str,
            stderr=stderr_str,
            duration_ms=duration_ms,
            timed_out=timed_out,
        )
