"""vcsgate exception hierarchy.

All exceptions can be imported from this package:
    from vcsgate.exceptions import DisallowedOperationError, ConfigError
"""

from __future__ import annotations

# Backend exceptions
from vcsgate.exceptions.backend import (
    BackendError,
    BackendExecutionError,
    ClientUnavailableError,
    DisallowedOperationError,
    ExecutionTimeoutError,
    InvalidRequestError,
)

# Base exception
from vcsgate.exceptions.base import VcsGateError

# Configuration exceptions
from vcsgate.exceptions.config import ConfigError, MalformedConfigurationError

__all__ = [
    # Base
    "VcsGateError",
    # Backend
    "BackendError",
    "BackendExecutionError",
    "ClientUnavailableError",
    "DisallowedOperationError",
    "ExecutionTimeoutError",
    "InvalidRequestError",
    # Configuration
    "ConfigError",
    "MalformedConfigurationError",
]
