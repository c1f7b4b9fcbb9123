"""Backend exceptions.

Errors raised by version-control backends while validating or executing a
read-only operation.
"""

from __future__ import annotations

from collections.abc import Iterable

from vcsgate.exceptions.base import VcsGateError


class BackendError(VcsGateError):
    """Base exception for backend operations.

    Attributes:
        message: Human-readable error message.
        provider: Name of the backend that raised the error (e.g. ``"SVN"``).
    """

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class DisallowedOperationError(BackendError):
    """Operation is not allow-listed, or is explicitly denied.

    Attributes:
        operation: The rejected operation name.
        allowed: Operations the backend accepts.
    """

    def __init__(
        self,
        operation: str,
        allowed: Iterable[str] = (),
        *,
        provider: str | None = None,
    ) -> None:
        self.operation = operation
        self.allowed = tuple(allowed)
        super().__init__(
            f"Operation '{operation}' is not allowed. Only read-only operations "
            "can be executed.",
            provider=provider,
        )


class ClientUnavailableError(BackendError):
    """The local command-line client is not installed or not on PATH.

    Attributes:
        executable: Name of the missing executable.
    """

    def __init__(
        self,
        executable: str,
        message: str | None = None,
        *,
        provider: str | None = None,
    ) -> None:
        self.executable = executable
        super().__init__(
            message or f"'{executable}' executable not found on PATH",
            provider=provider,
        )


class ExecutionTimeoutError(BackendError):
    """A process or network call exceeded its time budget.

    Attributes:
        timeout_seconds: The budget that was exceeded.
        command: The command (or API call) that timed out.
    """

    def __init__(
        self,
        message: str,
        *,
        timeout_seconds: float | None = None,
        command: list[str] | None = None,
        provider: str | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.command = command
        super().__init__(message, provider=provider)


class BackendExecutionError(BackendError):
    """The client exited non-zero or the API answered with a failure status.

    Attributes:
        exit_code: Process exit code (CLI backends).
        status: HTTP status code (REST backend).
        stderr: Raw diagnostic text from the client or API.
    """

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        status: int | None = None,
        stderr: str | None = None,
        provider: str | None = None,
    ) -> None:
        self.exit_code = exit_code
        self.status = status
        self.stderr = stderr
        super().__init__(message, provider=provider)


class InvalidRequestError(BackendError):
    """A request parameter is missing or unsafe for the chosen operation.

    Attributes:
        parameter: Name of the offending parameter (``"path"``, ``"revision"``).
    """

    def __init__(
        self,
        message: str,
        *,
        parameter: str | None = None,
        provider: str | None = None,
    ) -> None:
        self.parameter = parameter
        super().__init__(message, provider=provider)


__all__ = [
    "BackendError",
    "BackendExecutionError",
    "ClientUnavailableError",
    "DisallowedOperationError",
    "ExecutionTimeoutError",
    "InvalidRequestError",
]
