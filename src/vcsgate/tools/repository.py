"""Repository operation tool for tool-calling drivers.

:class:`RepositoryToolHandler` exposes the active backend as a single
function-calling tool named ``<provider>_operation``. It validates the
request a second time, delegates to the backend, records an audit note and
renders the result. ``handle`` never raises: every failure comes back as
text with a remediation hint.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from vcsgate.backends.base import BaseBackend, OperationRequest, normalize_operation
from vcsgate.backends.factory import create_backend, get_active_provider_config
from vcsgate.config import VcsGateConfig
from vcsgate.exceptions import ClientUnavailableError, DisallowedOperationError
from vcsgate.logging import get_logger
from vcsgate.tools.context import ContextSink, MemoryContextSink

__all__ = ["RepositoryToolHandler"]

logger = get_logger(__name__)

#: Role under which audit notes are recorded.
NOTE_ROLE = "system"


class RepositoryToolHandler:
    """Consumer-facing entry point for read-only repository operations.

    Args:
        backend: Backend the tool delegates to.
        connection_name: Configured provider name used in audit notes.
        sink: Context sink receiving audit notes. Defaults to an in-memory sink.

    Example:
        ```python
        handler = RepositoryToolHandler.from_config(load_config())
        text = await handler.handle({"operation": "log", "limit": "5"})
        ```
    """

    def __init__(
        self,
        backend: BaseBackend,
        connection_name: str | None = None,
        sink: ContextSink | None = None,
    ) -> None:
        self._backend = backend
        self._connection_name = connection_name or backend.name
        self._sink = sink if sink is not None else MemoryContextSink()
        logger.debug(
            "repository_tool_initialized",
            provider=backend.provider_name,
            connection=self._connection_name,
        )

    @classmethod
    def from_config(
        cls,
        config: VcsGateConfig,
        sink: ContextSink | None = None,
        *,
        start_diagnostics: bool = False,
    ) -> RepositoryToolHandler:
        """Build the handler for the active provider in *config*."""
        provider = get_active_provider_config(config)
        backend = create_backend(config, start_diagnostics=start_diagnostics)
        return cls(backend, provider.name, sink)

    @property
    def backend(self) -> BaseBackend:
        return self._backend

    @property
    def sink(self) -> ContextSink:
        return self._sink

    @property
    def tool_name(self) -> str:
        return f"{self._backend.provider_name.lower()}_operation"

    @property
    def context_key(self) -> str:
        return self._backend.provider_name.lower()

    def tool_definition(self) -> dict[str, Any]:
        """Return a JSON-schema function definition for this tool."""
        backend = self._backend
        allowed = backend.list_allowed_operations()
        catalog = "; ".join(
            f"'{op}' ({description})" for op, description in backend.describe_operations().items()
        )
        return {
            "type": "function",
            "function": {
                "name": self.tool_name,
                "description": (
                    f"Runs READ-ONLY operations on the {backend.provider_name} repository "
                    f"'{self._connection_name}'. Operations: {', '.join(allowed)}. "
                    "Modifications (commit, delete, add, update, ...) are not allowed. "
                    "Use it to inspect history, read files and get repository information."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "operation": {
                            "type": "string",
                            "description": (
                                f"{backend.provider_name} operation to run: {catalog}"
                            ),
                            "enum": allowed,
                        },
                        "path": {
                            "type": "string",
                            "description": (
                                "File or directory path in the repository (optional, "
                                "defaults to the root), e.g. 'trunk/src/main.py' or "
                                "'src/main.py'"
                            ),
                        },
                        "revision": {
                            "type": "string",
                            "description": (
                                "Revision, range or ref (e.g. '1234', '1000:1100' for SVN; "
                                "a commit id, branch or 'A..B' for Git). Defaults to "
                                f"{backend.default_revision}."
                            ),
                        },
                        "limit": {
                            "type": "string",
                            "description": "Maximum entries for history operations such as log. Defaults to 10.",
                        },
                    },
                    "required": ["operation"],
                },
            },
        }

    async def handle(self, args: Mapping[str, Any]) -> str:
        """Execute one tool call and return its rendered result.

        Never raises; failures are returned as text.
        """
        backend = self._backend
        raw_operation = str(args.get("operation") or "")
        operation = normalize_operation(raw_operation)
        if not operation:
            return "Error: the operation cannot be empty."

        try:
            request = OperationRequest.from_params(args, backend.default_revision)
            if not await backend.ensure_client():
                return backend.installation_guidance()

            if not backend.is_operation_allowed(operation):
                logger.error(
                    "repository_operation_refused",
                    provider=backend.provider_name,
                    operation=raw_operation,
                )
                return self._refusal(raw_operation.strip())

            logger.debug(
                "repository_operation_received",
                provider=backend.provider_name,
                operation=operation,
                path=request.path,
                revision=request.revision,
            )
            result = await backend.execute(operation, request)
            self._sink.add_note(
                self.context_key,
                NOTE_ROLE,
                f"{self._connection_name}: {operation} executed: "
                f"{request.path} @ {request.revision}",
            )
            return backend.format_result(operation, result, request)

        except DisallowedOperationError as e:
            return self._refusal(e.operation)
        except ClientUnavailableError:
            return backend.installation_guidance()
        except Exception as e:
            logger.error(
                "repository_operation_failed",
                provider=backend.provider_name,
                operation=operation,
                error=str(e),
            )
            return self._render_error(e)

    def _refusal(self, operation: str) -> str:
        allowed = ", ".join(self._backend.list_allowed_operations())
        return (
            "**Operation refused for safety**\n\n"
            f"The operation '{operation}' is not allowed.\n\n"
            f"**Allowed operations**: {allowed}\n\n"
            "Only read-only operations can be executed."
        )

    def _render_error(self, error: Exception) -> str:
        backend = self._backend
        message = str(error)
        status = getattr(error, "status", None)
        parts = [
            f"**Error in {self._connection_name} ({backend.provider_name})**",
            "",
            f"**Message**: {message}",
            "",
        ]
        connection = backend.connection_status
        if connection.is_unreachable and connection.detail:
            parts.extend(
                [f"**Startup connection check failed**: {connection.detail}", ""]
            )
        parts.append(backend.error_guidance(message, status))
        return "\n".join(parts)
