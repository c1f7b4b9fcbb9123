"""VersionControlBackend protocol definition.

This protocol defines the read-only capability contract consumed by the
repository tool handler and the command-line entry point. The Subversion,
Git and GitHub backends satisfy it via structural typing; they share an
implementation base in :mod:`vcsgate.backends.base` but callers only rely
on this interface.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vcsgate.backends.base import ConnectionStatus, OperationRequest


@runtime_checkable
class VersionControlBackend(Protocol):
    """Read-only repository access abstraction.

    ``execute`` is authoritative: it re-validates the operation against the
    backend's allow-list and deny-list even when a caller already did so.
    """

    @property
    def provider_name(self) -> str:
        """Human-readable backend name (``"SVN"``, ``"Git"``, ``"GitHub"``)."""
        ...

    @property
    def default_revision(self) -> str:
        """Revision used when a request does not name one."""
        ...

    @property
    def connection_status(self) -> ConnectionStatus:
        """Latest published result of the background connection probe."""
        ...

    def is_client_reachable(self) -> bool:
        """Return True if the backend's client (or API) can be used."""
        ...

    def client_version(self) -> str:
        """Return the reported client version, or an empty string."""
        ...

    async def ensure_client(self) -> bool:
        """Like :meth:`is_client_reachable`, detecting without blocking the loop."""
        ...

    async def test_connection(self) -> bool:
        """Probe the configured repository; never raises."""
        ...

    def list_allowed_operations(self) -> list[str]:
        """Return the allow-listed operation names in catalog order."""
        ...

    def describe_operations(self) -> Mapping[str, str]:
        """Return an operation name to description catalog."""
        ...

    def is_operation_allowed(self, operation: str) -> bool:
        """Return True if *operation* is allow-listed and not denied."""
        ...

    async def execute(self, operation: str, request: OperationRequest) -> str:
        """Run *operation* and return its raw text result."""
        ...

    def installation_guidance(self) -> str:
        """Return instructions for installing the backend's client."""
        ...

    def error_guidance(self, message: str, status: int | None = None) -> str:
        """Return a remediation hint for a failure message."""
        ...

    def format_result(
        self, operation: str, body: str, request: OperationRequest
    ) -> str:
        """Wrap a raw result in the presentation envelope."""
        ...
