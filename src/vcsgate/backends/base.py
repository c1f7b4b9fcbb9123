"""Shared runtime for repository backends.

:class:`BaseBackend` carries everything the three backends have in common:
gated logging, allow-list enforcement, request checks, truncation, the
presentation envelope and the background connection probe.
:class:`CommandLineBackend` adds the pieces shared by the backends that
drive a local client through :class:`~vcsgate.runners.CommandRunner`.
"""

from __future__ import annotations

import asyncio
import dataclasses
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from vcsgate.backends.capabilities import (
    ClientCapabilities,
    capability_cache,
    detect_client,
    probe_client,
)
from vcsgate.config import RepositoryProviderConfig
from vcsgate.constants import (
    DEFAULT_LIMIT,
    HEAD_REVISION,
    MAX_RESULT_CHARS,
    NO_DATA_MESSAGE,
    PROBE_ERROR_EXCERPT,
    TRUNCATION_MARKER,
)
from vcsgate.exceptions import (
    BackendExecutionError,
    ClientUnavailableError,
    DisallowedOperationError,
    ExecutionTimeoutError,
    InvalidRequestError,
)
from vcsgate.logging import get_logger
from vcsgate.runners import CommandResult, CommandRunner
from vcsgate.utils import redact_command

__all__ = [
    "BaseBackend",
    "CommandLineBackend",
    "ConnectionStatus",
    "OperationRequest",
    "ProbeState",
    "normalize_operation",
    "parse_limit",
]


def normalize_operation(operation: str | None) -> str:
    """Trim and lower-case an operation name (``None`` becomes ``""``)."""
    return (operation or "").strip().lower()


def parse_limit(value: Any, default: int = DEFAULT_LIMIT) -> int:
    """Coerce a requested entry limit to a positive integer.

    Accepts ints and numeric strings. Anything else, including zero and
    negative numbers, yields *default*.

    Examples:
        >>> parse_limit("25")
        25
        >>> parse_limit("abc")
        10
        >>> parse_limit(-3)
        10
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return default
    else:
        return default
    return parsed if parsed > 0 else default


@dataclass(frozen=True, slots=True)
class OperationRequest:
    """Parameters of one read-only operation.

    Attributes:
        path: Repository-relative path; empty means the repository root.
        revision: Revision, range or ref. Empty means the backend's
            :attr:`~BaseBackend.default_revision`.
        limit: Maximum number of entries for history-style operations.
    """

    path: str = ""
    revision: str = ""
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        default_revision: str = HEAD_REVISION,
    ) -> OperationRequest:
        """Build a request from loosely typed tool arguments.

        Missing or blank values fall back to the repository root, the
        backend's default revision and :data:`DEFAULT_LIMIT`.
        """
        path = str(params.get("path") or "").strip()
        revision = str(params.get("revision") or "").strip() or default_revision
        return cls(path=path, revision=revision, limit=parse_limit(params.get("limit")))


class ProbeState(str, Enum):
    """Lifecycle of the background connection probe."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"


class ConnectionStatus:
    """Thread-safe slot holding the latest connection probe outcome.

    Written by the diagnostics thread, read by request handlers on the
    event loop.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = ProbeState.NOT_STARTED
        self._detail = ""

    @property
    def state(self) -> ProbeState:
        with self._lock:
            return self._state

    @property
    def detail(self) -> str:
        with self._lock:
            return self._detail

    @property
    def is_unreachable(self) -> bool:
        return self.state == ProbeState.UNREACHABLE

    def publish(self, state: ProbeState, detail: str = "") -> None:
        with self._lock:
            self._state = state
            self._detail = detail


class BaseBackend(ABC):
    """Common implementation of :class:`VersionControlBackend`.

    Subclasses declare their operation vocabulary through class attributes
    and implement :meth:`_execute`, :meth:`_probe` and the guidance hooks.

    Attributes:
        PROVIDER_NAME: Display name used in envelopes and audit notes.
        KIND: Lower-case key (``"svn"``, ``"git"``, ``"github"``).
        ALLOWED_OPERATIONS: Operations that may run.
        DENIED_OPERATIONS: Mutating operations refused even if allow-listed.
        OPERATION_DESCRIPTIONS: Catalog of allowed operations, in display order.
    """

    PROVIDER_NAME: ClassVar[str]
    KIND: ClassVar[str]
    ALLOWED_OPERATIONS: ClassVar[frozenset[str]]
    DENIED_OPERATIONS: ClassVar[frozenset[str]]
    OPERATION_DESCRIPTIONS: ClassVar[Mapping[str, str]]

    def __init__(
        self,
        config: RepositoryProviderConfig,
        *,
        debug: bool = False,
    ) -> None:
        self._config = config
        self._debug = debug
        self._connection_status = ConnectionStatus()
        self._probe_thread: threading.Thread | None = None
        self._logger = get_logger(type(self).__module__).bind(
            provider=self.PROVIDER_NAME, connection=config.name
        )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def config(self) -> RepositoryProviderConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def provider_name(self) -> str:
        return self.PROVIDER_NAME

    @property
    def default_revision(self) -> str:
        return HEAD_REVISION

    @property
    def repository_url(self) -> str:
        return self._config.repository_url

    @property
    def repository_label(self) -> str:
        """Location shown in result envelopes."""
        if self.repository_url:
            return self.repository_url
        if self._config.working_copy_path is not None:
            return str(self._config.working_copy_path)
        return ""

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._connection_status

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def _log_debug(self, event: str, **kwargs: Any) -> None:
        if self._debug and self._config.enable_logging:
            self._logger.debug(event, **kwargs)

    def _log_info(self, event: str, **kwargs: Any) -> None:
        if self._config.enable_logging:
            self._logger.info(event, **kwargs)

    def _log_warning(self, event: str, **kwargs: Any) -> None:
        if self._config.enable_logging:
            self._logger.warning(event, **kwargs)

    def _log_error(self, event: str, **kwargs: Any) -> None:
        self._logger.error(event, **kwargs)

    # ------------------------------------------------------------------
    # Operation vocabulary
    # ------------------------------------------------------------------

    def list_allowed_operations(self) -> list[str]:
        return [op for op in self.OPERATION_DESCRIPTIONS if op in self.ALLOWED_OPERATIONS]

    def describe_operations(self) -> Mapping[str, str]:
        return {op: self.OPERATION_DESCRIPTIONS[op] for op in self.list_allowed_operations()}

    def is_operation_allowed(self, operation: str) -> bool:
        """Return True if *operation* is allow-listed and not deny-listed.

        The deny-list wins over the allow-list.
        """
        op = normalize_operation(operation)
        if not op or op in self.DENIED_OPERATIONS:
            return False
        return op in self.ALLOWED_OPERATIONS

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, operation: str, request: OperationRequest) -> str:
        """Validate and run one read-only operation.

        Raises:
            DisallowedOperationError: The operation is not allowed.
            InvalidRequestError: A path or revision could be read as an option.
            ClientUnavailableError: The local client is missing.
            ExecutionTimeoutError: The operation exceeded its budget.
            BackendExecutionError: The client or API reported a failure.
        """
        op = normalize_operation(operation)
        if not self.is_operation_allowed(op):
            self._log_warning("operation_refused", operation=op or operation)
            raise DisallowedOperationError(
                op or operation,
                self.list_allowed_operations(),
                provider=self.PROVIDER_NAME,
            )
        if not request.revision:
            request = dataclasses.replace(request, revision=self.default_revision)
        self._check_request(request)

        if not await self.ensure_client():
            raise ClientUnavailableError(
                self.KIND,
                f"{self.PROVIDER_NAME} client is not installed or not reachable",
                provider=self.PROVIDER_NAME,
            )

        self._log_info(
            "operation_started",
            operation=op,
            path=request.path,
            revision=request.revision,
        )
        try:
            result = await self._execute(op, request)
        except (BackendExecutionError, ExecutionTimeoutError) as e:
            self._log_error("operation_failed", operation=op, error=e.message)
            raise
        self._log_debug("operation_completed", operation=op, length=len(result))
        return result

    def _check_request(self, request: OperationRequest) -> None:
        for parameter, value in (("path", request.path), ("revision", request.revision)):
            if value.startswith("-"):
                raise InvalidRequestError(
                    f"Invalid {parameter} '{value}': values may not start with '-'",
                    parameter=parameter,
                    provider=self.PROVIDER_NAME,
                )

    @abstractmethod
    async def _execute(self, operation: str, request: OperationRequest) -> str:
        """Run an already validated operation."""

    # ------------------------------------------------------------------
    # Client and connection
    # ------------------------------------------------------------------

    @abstractmethod
    def is_client_reachable(self) -> bool: ...

    @abstractmethod
    def client_version(self) -> str: ...

    async def ensure_client(self) -> bool:
        """Detect the client if needed, without blocking the event loop."""
        return self.is_client_reachable()

    @abstractmethod
    async def _probe(self) -> None:
        """Check the repository is reachable; raise on failure."""

    async def test_connection(self) -> bool:
        """Probe the repository and publish the outcome.

        Returns:
            True if the repository answered. Failures are logged and
            published on :attr:`connection_status`, never raised.
        """
        self._connection_status.publish(ProbeState.RUNNING)
        try:
            await self._probe()
        except Exception as e:
            detail = str(e)[:PROBE_ERROR_EXCERPT]
            self._log_warning("connection_probe_failed", error=detail)
            self._connection_status.publish(ProbeState.UNREACHABLE, detail)
            return False
        self._log_info("connection_probe_succeeded")
        self._connection_status.publish(ProbeState.REACHABLE)
        return True

    def start_diagnostics(self) -> threading.Thread:
        """Run :meth:`test_connection` in a daemon thread.

        Requests are served while the probe is in flight; its result becomes
        visible through :attr:`connection_status`.
        """
        if self._probe_thread is not None and self._probe_thread.is_alive():
            return self._probe_thread
        thread = threading.Thread(
            target=lambda: asyncio.run(self.test_connection()),
            name=f"vcsgate-probe-{self.KIND}",
            daemon=True,
        )
        self._probe_thread = thread
        thread.start()
        return thread

    # ------------------------------------------------------------------
    # Guidance
    # ------------------------------------------------------------------

    @abstractmethod
    def installation_guidance(self) -> str: ...

    @abstractmethod
    def error_guidance(self, message: str, status: int | None = None) -> str: ...

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    @staticmethod
    def truncate(text: str, max_length: int = MAX_RESULT_CHARS) -> str:
        if len(text) <= max_length:
            return text
        return text[:max_length] + TRUNCATION_MARKER

    def format_result(
        self, operation: str, body: str, request: OperationRequest
    ) -> str:
        """Wrap *body* in the presentation envelope.

        The revision line only appears when it differs from the backend's
        default revision.
        """
        lines = [
            f"**{self.PROVIDER_NAME} - {normalize_operation(operation).upper()} result**",
            "",
            f"**Repository**: `{self.repository_label}`",
        ]
        if request.path:
            lines.append(f"**Path**: `{request.path}`")
        if request.revision and request.revision != self.default_revision:
            lines.append(f"**Revision**: `{request.revision}`")
        lines.extend(["", "**Result:**", "```", self.truncate(body), "```"])
        return "\n".join(lines) + "\n"


class CommandLineBackend(BaseBackend):
    """Backend that drives a local version-control client.

    Attributes:
        EXECUTABLE: Client executable name.
        VERSION_COMMAND: Arguments of the detection probe.
        VERSION_PREFIX: Text stripped from the reported version.
    """

    EXECUTABLE: ClassVar[str]
    VERSION_COMMAND: ClassVar[tuple[str, ...]]
    VERSION_PREFIX: ClassVar[str] = ""

    def __init__(
        self,
        config: RepositoryProviderConfig,
        *,
        debug: bool = False,
        runner: CommandRunner | None = None,
    ) -> None:
        super().__init__(config, debug=debug)
        self._runner = runner or CommandRunner(
            timeout=float(config.command_timeout), env=self._client_env()
        )

    def _client_env(self) -> dict[str, str]:
        """Extra environment for every client invocation."""
        return {}

    @property
    def capabilities(self) -> ClientCapabilities:
        """Detected client facts, probed once per process."""
        return capability_cache.get_or_detect(self.KIND, self._detect_client)

    def _detect_client(self) -> ClientCapabilities:
        caps = detect_client(
            [self.EXECUTABLE, *self.VERSION_COMMAND],
            strip_prefix=self.VERSION_PREFIX,
        )
        return self._record_detection(caps)

    async def ensure_client(self) -> bool:
        """Run the version probe through the async runner on a cache miss."""
        caps = capability_cache.get(self.KIND)
        if caps is None:
            detected = await probe_client(
                self._runner,
                [self.EXECUTABLE, *self.VERSION_COMMAND],
                strip_prefix=self.VERSION_PREFIX,
            )
            caps = capability_cache.store(self.KIND, self._record_detection(detected))
        return caps.installed

    def _record_detection(self, caps: ClientCapabilities) -> ClientCapabilities:
        if caps.installed:
            self._log_debug("client_detected", version=caps.version)
        else:
            self._log_warning("client_not_installed", executable=self.EXECUTABLE)
        return caps

    def is_client_reachable(self) -> bool:
        return self.capabilities.installed

    def client_version(self) -> str:
        return self.capabilities.version

    @property
    def working_copy(self) -> Path | None:
        """Configured working copy, if it exists on disk."""
        path = self._config.working_copy_path
        if path is not None and path.is_dir():
            return path
        return None

    async def _run_client(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> str:
        """Run the client and return its standard output.

        Raises:
            ExecutionTimeoutError: The process was terminated on timeout.
            ClientUnavailableError: The executable could not be started.
            BackendExecutionError: The client exited non-zero.
        """
        command = [self.EXECUTABLE, *args]
        budget = timeout if timeout is not None else float(self._config.command_timeout)
        self._log_debug("client_command", command=" ".join(redact_command(command)))

        result = await self._runner.run(
            command, cwd=cwd, timeout=budget, scrub_secrets=True
        )
        return self._check_result(command, result, budget)

    def _check_result(
        self, command: list[str], result: CommandResult, timeout: float
    ) -> str:
        if result.timed_out:
            raise ExecutionTimeoutError(
                f"{self.PROVIDER_NAME} command timed out after {timeout:g} seconds",
                timeout_seconds=timeout,
                command=redact_command(command),
                provider=self.PROVIDER_NAME,
            )
        if result.not_found:
            raise ClientUnavailableError(self.EXECUTABLE, provider=self.PROVIDER_NAME)
        if not result.success:
            stderr = result.stderr.strip()
            raise BackendExecutionError(
                stderr or f"{self.EXECUTABLE} exited with code {result.returncode}",
                exit_code=result.returncode,
                stderr=result.stderr,
                provider=self.PROVIDER_NAME,
            )
        if not result.stdout.strip():
            return NO_DATA_MESSAGE
        return result.stdout
