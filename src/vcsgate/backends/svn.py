"""Subversion backend driven through the ``svn`` command-line client."""

from __future__ import annotations

from types import MappingProxyType

from vcsgate.backends.base import CommandLineBackend, OperationRequest
from vcsgate.constants import CONNECTION_PROBE_TIMEOUT, HEAD_REVISION

__all__ = ["SvnBackend"]

#: Operations that only target a working copy when one is configured.
_WORKING_COPY_OPERATIONS = frozenset({"status", "info"})


class SvnBackend(CommandLineBackend):
    """Read-only access to a Subversion repository.

    Every command is non-interactive. Credentials are passed only when the
    command targets the remote URL; working-copy commands rely on the
    client's cached authentication.

    Example:
        ```python
        backend = SvnBackend(config)
        text = await backend.execute(
            "cat", OperationRequest(path="README.md", revision="42")
        )
        # svn cat <url>/README.md -r 42 --username ... --non-interactive ...
        ```
    """

    PROVIDER_NAME = "SVN"
    KIND = "svn"
    EXECUTABLE = "svn"
    VERSION_COMMAND = ("--version", "--quiet")

    ALLOWED_OPERATIONS = frozenset(
        {"log", "info", "list", "cat", "diff", "blame", "status"}
    )
    DENIED_OPERATIONS = frozenset(
        {
            "commit", "ci", "delete", "del", "remove", "rm",
            "add", "checkout", "co", "update", "up", "switch",
            "merge", "copy", "cp", "move", "mv", "mkdir",
            "import", "export", "propdel", "propset", "lock", "unlock",
        }
    )  # fmt: skip
    OPERATION_DESCRIPTIONS = MappingProxyType(
        {
            "log": "Commit history of a path (revision, author, date, changed paths)",
            "info": "Repository or path metadata (URL, last changed revision, author)",
            "list": "Directory listing with size, author and revision",
            "cat": "Contents of a file at a revision",
            "diff": "Changes between a revision (or range 'A:B') and HEAD",
            "blame": "Line-by-line author and revision attribution of a file",
            "status": "Working copy status (requires a configured working copy)",
        }
    )

    # ------------------------------------------------------------------
    # Command construction
    # ------------------------------------------------------------------

    def _uses_working_copy(self, operation: str) -> bool:
        return operation in _WORKING_COPY_OPERATIONS and self.working_copy is not None

    def _target(self, operation: str, path: str) -> str:
        """Resolve the URL or local path an operation acts on."""
        relative = path.strip("/")
        working_copy = self.working_copy
        if working_copy is not None and operation in _WORKING_COPY_OPERATIONS:
            if not relative:
                return str(working_copy)
            return str(working_copy.joinpath(*relative.split("/")))
        base = self.repository_url.rstrip("/")
        return f"{base}/{relative}" if relative else base

    def _credential_args(self) -> list[str]:
        if not self._config.username:
            return []
        args = ["--username", self._config.username]
        if self._config.has_credential:
            args.extend(["--password", self._config.password.get_secret_value()])
        return args

    def _common_args(self) -> list[str]:
        args = ["--non-interactive"]
        if self.capabilities.major_version >= 1:
            args.append("--trust-server-cert")
        return args

    def build_command(self, operation: str, request: OperationRequest) -> list[str]:
        """Build the ``svn`` argument list (without the executable)."""
        revision = request.revision or HEAD_REVISION
        args = [operation, self._target(operation, request.path)]

        if operation == "log":
            # HEAD alone selects a single revision; walk back so the limit applies
            log_range = f"{HEAD_REVISION}:1" if revision == HEAD_REVISION else revision
            args.extend(["-r", log_range, "-l", str(request.limit), "-v"])
        elif operation in ("info", "cat", "blame"):
            if revision != HEAD_REVISION:
                args.extend(["-r", revision])
        elif operation == "list":
            if revision != HEAD_REVISION:
                args.extend(["-r", revision])
            args.append("-v")
        elif operation == "diff":
            if ":" in revision:
                args.extend(["-r", revision])
            elif revision != HEAD_REVISION:
                args.extend(["-r", f"{revision}:{HEAD_REVISION}"])

        if not self._uses_working_copy(operation):
            args.extend(self._credential_args())
        args.extend(self._common_args())
        return args

    async def _execute(self, operation: str, request: OperationRequest) -> str:
        return await self._run_client(self.build_command(operation, request))

    async def _probe(self) -> None:
        if not await self.ensure_client():
            raise RuntimeError("svn client is not installed")
        url = self.repository_url.rstrip("/")
        self._log_debug("connection_probe_started", url=url)
        await self._run_client(
            ["info", url, *self._credential_args(), *self._common_args()],
            timeout=CONNECTION_PROBE_TIMEOUT,
        )

    # ------------------------------------------------------------------
    # Guidance
    # ------------------------------------------------------------------

    def installation_guidance(self) -> str:
        return "\n".join(
            [
                "**SVN client not found**",
                "",
                "The `svn` executable (Subversion command-line client) is not on PATH.",
                "",
                "**Windows:** install TortoiseSVN (https://tortoisesvn.net/) with the",
                "*command line client tools* option, or Apache Subversion",
                "(https://subversion.apache.org/packages.html), and add its `bin`",
                "directory to PATH.",
                "",
                "**Debian/Ubuntu:** `sudo apt-get install subversion`",
                "**CentOS/RHEL:** `sudo yum install subversion`",
                "**macOS:** `brew install svn`",
                "",
                "Verify with `svn --version`, then restart the application.",
            ]
        )

    def error_guidance(self, message: str, status: int | None = None) -> str:
        lines = ["**Possible solutions:**", ""]
        if "E170013" in message or "Unable to connect" in message:
            lines.extend(
                [
                    "**Connection problem:**",
                    f"1. Check the repository URL: `{self.repository_url}`",
                    "2. Check network access to the server (DNS, firewall, proxy)",
                    "3. Check the configured username and password",
                    "4. The server may require a valid SSL certificate",
                    "5. Configure `working_copy_path` to use a local working copy",
                    "",
                    "Manual test:",
                    f"`svn info {self.repository_url} --username "
                    f"{self._config.username or '<user>'} --password <password>`",
                ]
            )
        elif "E120112" in message or "APR does not understand" in message:
            lines.extend(
                [
                    "**Apache Portable Runtime error:**",
                    "1. This can be a transient server problem; try again later",
                    "2. Reinstall the SVN command-line client",
                    "3. Clear cached credentials: `~/.subversion/auth` "
                    "(Windows: `%APPDATA%\\Subversion\\auth`)",
                ]
            )
        elif "E170001" in message or "authorization" in message:
            lines.extend(
                [
                    "**Authentication problem:**",
                    "1. Check the username and password in the configuration",
                    "2. Check the user has read permission on the repository",
                    "3. Authenticate once manually with `svn info`",
                ]
            )
        elif "E155007" in message or "not a working copy" in message:
            lines.extend(
                [
                    "**Working copy problem:**",
                    "1. `status` needs a checked-out working copy",
                    "2. Set `working_copy_path` to an existing checkout of "
                    f"`{self.repository_url}`",
                ]
            )
        elif "timed out" in message:
            lines.extend(
                [
                    "**Timeout:**",
                    f"1. The command exceeded {self._config.command_timeout} seconds",
                    "2. Narrow the request (smaller limit, specific path or revision)",
                    "3. Increase `command_timeout` for slow servers",
                ]
            )
        lines.extend(["", "If the problem persists, consider using a local working copy."])
        return "\n".join(lines)
