from __future__ import annotations


class VcsGateError(Exception):
    """Base exception class for all vcsgate-specific errors.

    This is the root of the vcsgate exception hierarchy. Every error a
    backend raises inherits from this class, which lets the operation
    handler and the CLI catch them at their boundary while system
    exceptions propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            output = await backend.execute("log", request)
        except VcsGateError as e:
            logger.error("operation_failed", error=e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the VcsGateError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
