"""GitHub backend using the REST API v3 through PyGithub.

No local client is needed. PyGithub is synchronous, so every operation runs
its API calls in a worker thread (``asyncio.to_thread``) and projects the
returned objects to plain text there, since attribute access on lazy
PyGithub objects may itself hit the network.

Rate limits: GitHub allows 60 requests/hour anonymously and 5,000
requests/hour with a personal access token.
"""

from __future__ import annotations

import asyncio
import base64
import re
from collections.abc import Callable
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import urlparse

import requests
from github import Auth, Github, GithubException

from vcsgate.backends.base import BaseBackend, OperationRequest
from vcsgate.config import RepositoryProviderConfig
from vcsgate.exceptions import (
    BackendExecutionError,
    ExecutionTimeoutError,
    InvalidRequestError,
    MalformedConfigurationError,
)

if TYPE_CHECKING:
    from github.Commit import Commit
    from github.Repository import Repository

__all__ = ["GitHubBackend", "parse_repository_url"]

T = TypeVar("T")

#: Public GitHub host and API root.
GITHUB_HOST = "github.com"
GITHUB_API_URL = "https://api.github.com"

#: Items requested per page; list-style operations read a single page.
PAGE_SIZE = 100

_SCP_URL = re.compile(r"^[\w.-]+@(?P<host>[^:/]+):(?P<path>.+)$")

BLAME_NOTE = (
    "Note: the GitHub REST API has no line-level blame. For line-by-line "
    "attribution use the Git backend with a local working copy."
)


def parse_repository_url(url: str) -> tuple[str, str, str]:
    """Split a GitHub repository address into ``(host, owner, repo)``.

    Accepted forms: ``https://host/owner/repo``, ``git@host:owner/repo`` and
    bare ``owner/repo`` (host ``github.com``). Surrounding whitespace, a
    trailing ``/`` and a ``.git`` suffix are ignored.

    Raises:
        MalformedConfigurationError: The address has none of these forms.

    Examples:
        >>> parse_repository_url("https://github.com/octo/hello.git/")
        ('github.com', 'octo', 'hello')
        >>> parse_repository_url("git@ghe.example.com:team/app")
        ('ghe.example.com', 'team', 'app')
    """
    text = url.strip().rstrip("/")
    if text.endswith(".git"):
        text = text[: -len(".git")].rstrip("/")

    scp = _SCP_URL.match(text)
    if scp:
        host, path = scp.group("host"), scp.group("path")
    elif "://" in text:
        parsed = urlparse(text)
        host, path = parsed.hostname or "", parsed.path
    else:
        host, path = GITHUB_HOST, text

    parts = [part for part in path.split("/") if part]
    if not host or len(parts) != 2:
        raise MalformedConfigurationError(
            f"Invalid GitHub repository URL: '{url}'. "
            "Expected https://github.com/owner/repo, git@github.com:owner/repo "
            "or owner/repo",
            field="repository_url",
            value=url,
        )
    host = host.lower()
    if host == f"www.{GITHUB_HOST}":
        host = GITHUB_HOST
    return host, parts[0], parts[1]


def _api_message(error: GithubException) -> str:
    data = error.data
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(error)


class GitHubBackend(BaseBackend):
    """Read-only access to a GitHub (or GitHub Enterprise) repository.

    The configured ``password`` is used as a personal access token. Without
    one only public repositories are reachable, at the anonymous rate limit.
    """

    PROVIDER_NAME = "GitHub"
    KIND = "github"

    ALLOWED_OPERATIONS = frozenset(
        {"log", "show", "list", "cat", "diff", "blame", "branches", "tags", "info"}
    )
    DENIED_OPERATIONS = frozenset(
        {
            "commit", "push", "pull", "merge", "create", "delete",
            "update", "add", "remove", "fork",
        }
    )  # fmt: skip
    OPERATION_DESCRIPTIONS = MappingProxyType(
        {
            "log": "Recent commits of a branch, optionally limited to a path",
            "show": "Author, message and changed files of a commit",
            "list": "Directory contents at a ref",
            "cat": "Contents of a file at a ref (path required)",
            "diff": "Per-file patches of a commit, optionally filtered by path",
            "blame": "Most recent commit touching a file (no line-level blame)",
            "branches": "Branches with their protection flag",
            "tags": "Tags with their commit ids",
            "info": "Repository metadata (description, visibility, stars, forks)",
        }
    )

    def __init__(
        self,
        config: RepositoryProviderConfig,
        *,
        debug: bool = False,
        github: Github | None = None,
    ) -> None:
        super().__init__(config, debug=debug)
        self._host, self._owner, self._repo = parse_repository_url(config.repository_url)

        if github is None:
            kwargs: dict[str, Any] = {
                "base_url": self.api_url,
                "timeout": config.command_timeout,
                "per_page": PAGE_SIZE,
                "retry": None,
            }
            if config.has_credential:
                kwargs["auth"] = Auth.Token(config.password.get_secret_value())
            github = Github(**kwargs)
        self._github = github

        if not config.has_credential:
            self._log_warning(
                "github_token_missing",
                detail="Only public repositories are accessible (60 requests/hour)",
            )
        self._log_debug(
            "github_backend_initialized",
            repository=self.full_name,
            branch=config.branch,
        )

    @property
    def full_name(self) -> str:
        return f"{self._owner}/{self._repo}"

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def repo(self) -> str:
        return self._repo

    @property
    def api_url(self) -> str:
        if self._host == GITHUB_HOST:
            return GITHUB_API_URL
        return f"https://{self._host}/api/v3"

    @property
    def default_revision(self) -> str:
        return self._config.branch

    def is_client_reachable(self) -> bool:
        return True

    def client_version(self) -> str:
        return "GitHub REST API v3"

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _call(self, description: str, func: Callable[[], T]) -> T:
        """Run blocking PyGithub work in a thread and map its failures."""
        try:
            return await asyncio.to_thread(func)
        except GithubException as e:
            message = _api_message(e)
            raise BackendExecutionError(
                f"GitHub API returned {e.status} for {description}: {message}",
                status=e.status,
                stderr=str(e),
                provider=self.PROVIDER_NAME,
            ) from e
        except requests.exceptions.Timeout as e:
            timeout = float(self._config.command_timeout)
            raise ExecutionTimeoutError(
                f"GitHub API request timed out after {timeout:g} seconds ({description})",
                timeout_seconds=timeout,
                command=[description],
                provider=self.PROVIDER_NAME,
            ) from e
        except requests.exceptions.RequestException as e:
            raise BackendExecutionError(
                f"Could not reach the GitHub API for {description}: {e}",
                provider=self.PROVIDER_NAME,
            ) from e

    async def _execute(self, operation: str, request: OperationRequest) -> str:
        handlers: dict[str, Callable[[OperationRequest], str]] = {
            "log": self._log,
            "show": self._show,
            "list": self._list,
            "cat": self._cat,
            "diff": self._diff,
            "blame": self._blame,
            "branches": self._branches,
            "tags": self._tags,
            "info": self._info,
        }
        if operation in ("cat", "blame") and not request.path:
            raise InvalidRequestError(
                f"The '{operation}' operation requires a file path",
                parameter="path",
                provider=self.PROVIDER_NAME,
            )
        handler = handlers[operation]
        return await self._call(f"{operation} {self.full_name}", lambda: handler(request))

    async def _probe(self) -> None:
        self._log_debug("connection_probe_started", repository=self.full_name)
        await self._call(
            f"repository lookup {self.full_name}",
            lambda: self._github.get_repo(self.full_name).full_name,
        )

    def _repository(self) -> Repository:
        return self._github.get_repo(self.full_name, lazy=True)

    def _recent_commits(self, request: OperationRequest, count: int) -> list[Commit]:
        kwargs: dict[str, Any] = {"sha": request.revision}
        if request.path:
            kwargs["path"] = request.path
        return list(self._repository().get_commits(**kwargs).get_page(0)[:count])

    # ------------------------------------------------------------------
    # Projections (run in the worker thread)
    # ------------------------------------------------------------------

    def _log(self, request: OperationRequest) -> str:
        commits = self._recent_commits(request, request.limit)
        lines = [f"Last {len(commits)} commits on {request.revision}:", ""]
        for commit in commits:
            author = commit.commit.author
            subject = commit.commit.message.splitlines()[0] if commit.commit.message else ""
            lines.append(f"{commit.sha[:7]} - {author.name if author else 'unknown'}")
            if author and author.date:
                lines.append(f"   {author.date.isoformat()}")
            lines.append(f"   {subject}")
            lines.append("")
        return "\n".join(lines)

    def _show(self, request: OperationRequest) -> str:
        commit = self._repository().get_commit(request.revision)
        author = commit.commit.author
        lines = [
            f"Commit {commit.sha[:7]}:",
            "",
            f"**Author**: {author.name if author else 'unknown'}",
            f"**Email**: {author.email if author else ''}",
            f"**Date**: {author.date.isoformat() if author and author.date else ''}",
            f"**Message**: {commit.commit.message}",
            "",
            "**Changed files**:",
        ]
        for file in commit.files:
            lines.append(
                f"  {file.status}: {file.filename} (+{file.additions}/-{file.deletions})"
            )
        return "\n".join(lines)

    def _list(self, request: OperationRequest) -> str:
        contents = self._repository().get_contents(request.path, ref=request.revision)
        items = contents if isinstance(contents, list) else [contents]
        lines = [f"Contents of {request.path or 'repository root'}:", ""]
        for item in items:
            if item.type == "dir":
                lines.append(f"{item.name}/")
            else:
                lines.append(f"{item.name} ({item.size} bytes)")
        return "\n".join(lines)

    def _cat(self, request: OperationRequest) -> str:
        contents = self._repository().get_contents(request.path, ref=request.revision)
        if isinstance(contents, list) or contents.type == "dir":
            raise InvalidRequestError(
                f"'{request.path}' is a directory; use the 'list' operation",
                parameter="path",
                provider=self.PROVIDER_NAME,
            )
        payload = contents.content or ""
        if contents.encoding == "base64":
            raw = base64.b64decode(payload.replace("\n", ""))
            return raw.decode("utf-8", errors="replace")
        return payload

    def _diff(self, request: OperationRequest) -> str:
        commit = self._repository().get_commit(request.revision)
        lines = [f"Changes in commit {commit.sha[:7]}:", ""]
        for file in commit.files:
            if request.path and request.path not in file.filename:
                continue
            lines.extend(
                [
                    f"**File**: {file.filename}",
                    "```diff",
                    file.patch or "(no textual changes)",
                    "```",
                    "",
                ]
            )
        return "\n".join(lines)

    def _blame(self, request: OperationRequest) -> str:
        commits = self._recent_commits(request, 1)
        lines = [f"Authorship of {request.path}:", ""]
        if commits:
            last = commits[0]
            author = last.commit.author
            lines.extend(
                [
                    f"**Last modified by**: {author.name if author else 'unknown'}",
                    f"**Commit**: {last.sha[:7]}",
                    f"**Date**: {author.date.isoformat() if author and author.date else ''}",
                    f"**Message**: {last.commit.message}",
                ]
            )
        else:
            lines.append("No commits found for this file.")
        lines.extend(["", BLAME_NOTE])
        return "\n".join(lines)

    def _branches(self, request: OperationRequest) -> str:
        branches = self._repository().get_branches().get_page(0)
        lines = ["Branches:", ""]
        for branch in branches:
            lines.append(f"{branch.name} [protected]" if branch.protected else branch.name)
        return "\n".join(lines)

    def _tags(self, request: OperationRequest) -> str:
        tags = self._repository().get_tags().get_page(0)
        if not tags:
            return "This repository has no tags."
        lines = ["Tags:", ""]
        for tag in tags:
            lines.append(f"{tag.name} ({tag.commit.sha[:7]})")
        return "\n".join(lines)

    def _info(self, request: OperationRequest) -> str:
        repo = self._github.get_repo(self.full_name)
        return "\n".join(
            [
                f"Repository {repo.full_name}:",
                "",
                f"**Name**: {repo.full_name}",
                f"**Description**: {repo.description or 'No description'}",
                f"**Visibility**: {'private' if repo.private else 'public'}",
                f"**Default branch**: {repo.default_branch}",
                f"**Language**: {repo.language or 'N/A'}",
                f"**Size**: {repo.size} KB",
                f"**Stars**: {repo.stargazers_count}",
                f"**Forks**: {repo.forks_count}",
                f"**Open issues**: {repo.open_issues_count}",
                f"**Created**: {repo.created_at.isoformat() if repo.created_at else ''}",
                f"**Updated**: {repo.updated_at.isoformat() if repo.updated_at else ''}",
                f"**URL**: {repo.html_url}",
            ]
        )

    # ------------------------------------------------------------------
    # Guidance
    # ------------------------------------------------------------------

    def installation_guidance(self) -> str:
        return "\n".join(
            [
                "**GitHub API**",
                "",
                "No local client is needed; the REST API is used directly.",
                "",
                "1. Create a personal access token at https://github.com/settings/tokens",
                "   with the `repo` scope (`public_repo` for public repositories).",
                "2. Configure the provider:",
                "",
                "```yaml",
                "repository:",
                "  active_provider: github",
                "  providers:",
                "    - name: github",
                "      type: github",
                "      repository_url: https://github.com/owner/repo",
                "      password: ghp_YourPersonalAccessToken",
                "      branch: main",
                "```",
                "",
                "The token is optional for public repositories. Never commit it.",
            ]
        )

    def _classify(self, message: str, status: int | None) -> str:
        if status is not None:
            if status == 401:
                return "credentials"
            if status == 404:
                return "not_found"
            if status == 429 or (status == 403 and "rate limit" in message.lower()):
                return "rate_limit"
            if status == 403:
                return "forbidden"
        lowered = message.lower()
        if "401" in message or "unauthorized" in lowered or "bad credentials" in lowered:
            return "credentials"
        if "404" in message or "not found" in lowered:
            return "not_found"
        if "rate limit" in lowered or "429" in message:
            return "rate_limit"
        if "403" in message or "forbidden" in lowered:
            return "forbidden"
        if "timed out" in lowered or "timeout" in lowered:
            return "timeout"
        return ""

    def error_guidance(self, message: str, status: int | None = None) -> str:
        lines = ["**Possible solutions:**", ""]
        category = self._classify(message, status)
        if category == "credentials":
            lines.extend(
                [
                    "**Authentication failed (401 Unauthorized):**",
                    "1. Check that the personal access token is valid and not expired",
                    "2. Create a new token at https://github.com/settings/tokens",
                    "3. Make sure it has the `repo` or `public_repo` scope",
                ]
            )
        elif category == "not_found":
            lines.extend(
                [
                    "**Resource not found (404):**",
                    f"1. Check the repository exists: https://{self._host}/{self.full_name}",
                    "2. Check the file path and the branch or commit",
                    "3. Private repositories answer 404 without a token that can read them",
                ]
            )
        elif category == "rate_limit":
            if self._config.has_credential:
                quota = "Authenticated requests are limited to 5,000 per hour."
                advice = "Wait for the limit to reset."
            else:
                quota = "Anonymous requests are limited to 60 per hour."
                advice = "Configure a personal access token to raise the limit to 5,000 per hour."
            lines.extend(["**API rate limit exceeded:**", f"1. {quota}", f"2. {advice}"])
        elif category == "forbidden":
            lines.extend(
                [
                    "**Access forbidden (403):**",
                    "1. The token may lack the scope needed for this repository",
                    "2. Organization policies may block token access (SSO authorization)",
                    "3. A 403 can also signal rate limiting: 60 requests/hour anonymous,",
                    "   5,000 requests/hour with a token",
                ]
            )
        elif category == "timeout":
            lines.extend(
                [
                    "**Connection timeout:**",
                    "1. Check internet connectivity",
                    "2. Check firewall and proxy settings",
                    "3. Increase `command_timeout`",
                ]
            )
        lines.extend(
            [
                "",
                "Quick check:",
                f"`curl -H \"Authorization: Bearer <token>\" {self.api_url}/repos/{self.full_name}`",
            ]
        )
        return "\n".join(lines)
