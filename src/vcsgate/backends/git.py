"""Git backend driven through the ``git`` command-line client.

All operations run inside a configured local working copy. The remote URL
is only used by the connection probe (``git ls-remote``) and in guidance.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType

from vcsgate.backends.base import CommandLineBackend, OperationRequest
from vcsgate.constants import CONNECTION_PROBE_TIMEOUT, HEAD_REVISION
from vcsgate.exceptions import BackendExecutionError, InvalidRequestError

__all__ = ["GitBackend"]


class GitBackend(CommandLineBackend):
    """Read-only access to a Git repository through its working copy."""

    PROVIDER_NAME = "Git"
    KIND = "git"
    EXECUTABLE = "git"
    VERSION_COMMAND = ("--version",)
    VERSION_PREFIX = "git version "

    ALLOWED_OPERATIONS = frozenset(
        {"log", "show", "ls-tree", "blame", "diff", "status", "branch", "tag"}
    )
    DENIED_OPERATIONS = frozenset(
        {
            "commit", "push", "pull", "fetch", "add", "rm", "remove",
            "checkout", "switch", "merge", "rebase", "cherry-pick", "reset",
            "revert", "stash", "init", "clone", "remote", "gc", "clean",
        }
    )  # fmt: skip
    OPERATION_DESCRIPTIONS = MappingProxyType(
        {
            "log": "One-line commit graph, optionally limited to a path",
            "show": "A commit, or a file at a revision when a path is given",
            "ls-tree": "Files tracked at a revision, optionally under a path",
            "blame": "Line-by-line attribution of a file (path required)",
            "diff": "Changes between a revision (or range 'A..B') and HEAD",
            "status": "Short working copy status",
            "branch": "Local and remote-tracking branches",
            "tag": "Tags of the repository",
        }
    )

    def _client_env(self) -> dict[str, str]:
        return {"GIT_TERMINAL_PROMPT": "0"}

    def _require_working_copy(self) -> Path:
        configured = self._config.working_copy_path
        working_copy = self.working_copy
        if working_copy is None:
            if configured is None:
                message = "Git operations require a working copy; set working_copy_path"
            else:
                message = f"Git working copy does not exist: {configured}"
            raise BackendExecutionError(message, provider=self.PROVIDER_NAME)
        return working_copy

    def build_command(self, operation: str, request: OperationRequest) -> list[str]:
        """Build the ``git`` argument list (without the executable).

        Raises:
            InvalidRequestError: ``blame`` was requested without a path.
        """
        revision = request.revision or HEAD_REVISION
        path = request.path

        if operation == "log":
            args = ["log", f"-{request.limit}", "--oneline", "--graph", revision]
            if path:
                args.extend(["--", path])
        elif operation == "show":
            args = ["show", f"{revision}:{path}" if path else revision]
        elif operation == "ls-tree":
            args = ["ls-tree", "-r", "--name-only", revision]
            if path:
                args.append(path)
        elif operation == "blame":
            if not path:
                raise InvalidRequestError(
                    "The 'blame' operation requires a path",
                    parameter="path",
                    provider=self.PROVIDER_NAME,
                )
            args = ["blame"]
            if revision != HEAD_REVISION:
                args.append(revision)
            args.extend(["--", path])
        elif operation == "diff":
            args = ["diff", revision if ".." in revision else f"{revision}..{HEAD_REVISION}"]
            if path:
                args.extend(["--", path])
        elif operation == "status":
            args = ["status", "--short"]
        elif operation == "branch":
            args = ["branch", "-a"]
        elif operation == "tag":
            args = ["tag", "-l"]
        else:
            raise InvalidRequestError(
                f"Unsupported operation '{operation}'",
                parameter="operation",
                provider=self.PROVIDER_NAME,
            )
        return args

    async def _execute(self, operation: str, request: OperationRequest) -> str:
        working_copy = self._require_working_copy()
        args = self.build_command(operation, request)
        return await self._run_client(args, cwd=working_copy)

    async def _probe(self) -> None:
        if not await self.ensure_client():
            raise RuntimeError("git client is not installed")
        if self.repository_url:
            self._log_debug("connection_probe_started", url=self.repository_url)
            await self._run_client(
                ["ls-remote", "--heads", self.repository_url],
                timeout=CONNECTION_PROBE_TIMEOUT,
            )
            return
        working_copy = self._require_working_copy()
        self._log_debug("connection_probe_started", working_copy=str(working_copy))
        await self._run_client(
            ["rev-parse", "--is-inside-work-tree"],
            cwd=working_copy,
            timeout=CONNECTION_PROBE_TIMEOUT,
        )

    def installation_guidance(self) -> str:
        return "\n".join(
            [
                "**Git client not found**",
                "",
                "The `git` executable is not on PATH.",
                "",
                "**Windows:** install Git for Windows (https://git-scm.com/download/win)",
                "and keep the option that adds Git to PATH.",
                "**Debian/Ubuntu:** `sudo apt-get install git`",
                "**CentOS/RHEL:** `sudo yum install git`",
                "**macOS:** `brew install git` or `xcode-select --install`",
                "",
                "Verify with `git --version`, then restart the application.",
            ]
        )

    def error_guidance(self, message: str, status: int | None = None) -> str:
        remote = self.repository_url or "<repository-url>"
        lowered = message.lower()
        lines = ["**Possible solutions:**", ""]
        if "could not read" in lowered or "authentication failed" in lowered:
            lines.extend(
                [
                    "**Authentication problem:**",
                    f"1. Check the repository URL: `{remote}`",
                    "2. For private repositories configure a credential helper",
                    "   (`git config --global credential.helper store`)",
                    "3. For hosted services use a personal access token, not a password",
                    "4. For SSH remotes check that your key is loaded",
                    "",
                    f"Manual test: `git ls-remote {remote}`",
                ]
            )
        elif "not a git repository" in lowered or "working copy" in lowered:
            lines.extend(
                [
                    "**No usable working copy:**",
                    "1. Point `working_copy_path` at a cloned Git repository",
                    f"2. Clone one if needed: `git clone {remote} <local-path>`",
                ]
            )
        elif "unable to access" in lowered:
            lines.extend(
                [
                    "**Network or access problem:**",
                    "1. Check network connectivity",
                    "2. Check firewall and proxy settings",
                    "3. Check the repository URL is reachable",
                    "4. The server may be temporarily down",
                ]
            )
        elif "unknown revision" in lowered or "bad revision" in lowered:
            lines.extend(
                [
                    "**Unknown revision:**",
                    "1. Check the commit id, branch or tag name",
                    "2. Use the `branch` and `tag` operations to list valid refs",
                    "3. The working copy may need a fetch outside this tool",
                ]
            )
        elif "timed out" in lowered:
            lines.extend(
                [
                    "**Timeout:**",
                    f"1. The command exceeded {self._config.command_timeout} seconds",
                    "2. Narrow the request (smaller limit or a specific path)",
                    "3. Increase `command_timeout` for large repositories",
                ]
            )
        lines.extend(["", "If the problem persists, check the repository configuration."])
        return "\n".join(lines)
