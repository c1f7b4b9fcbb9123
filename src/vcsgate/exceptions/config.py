from __future__ import annotations

from typing import Any

from vcsgate.exceptions.base import VcsGateError


class ConfigError(VcsGateError):
    """Exception for configuration loading, parsing, and validation errors.

    Raised when configuration cannot be loaded, parsed, or validated. This
    includes YAML parsing failures, Pydantic validation errors, and invalid
    environment variable values.

    Attributes:
        message: Human-readable error message describing the configuration issue.
        field: Optional field name that caused the error (e.g., "repository_url").
        value: Optional value that failed validation (for debugging).

    Examples:
        ```python
        raise ConfigError(
            "Failed to parse vcsgate.yaml: invalid YAML syntax at line 10"
        )

        raise ConfigError(
            "Invalid configuration value",
            field="command_timeout",
            value=-1,
        )
        ```
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        """Initialize the ConfigError.

        Args:
            message: Human-readable error message.
            field: Optional field name that caused the error.
            value: Optional value that failed validation.
        """
        self.field = field
        self.value = value
        super().__init__(message)


class MalformedConfigurationError(ConfigError):
    """A provider block is incomplete or cannot be interpreted.

    Raised at backend construction (missing remote address, unparseable
    repository URL, unknown provider kind). Never retried.
    """
