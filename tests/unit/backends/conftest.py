"""Shared fixtures for backend tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from pydantic import SecretStr

from vcsgate.backends.capabilities import ClientCapabilities, capability_cache
from vcsgate.config import RepositoryProviderConfig
from vcsgate.runners.command import CommandRunner
from vcsgate.runners.models import CommandResult


@pytest.fixture(autouse=True)
def reset_capability_cache() -> Generator[None, None, None]:
    """Start and finish every test with an empty client capability cache."""
    capability_cache.invalidate()
    yield
    capability_cache.invalidate()


@pytest.fixture
def svn_installed() -> ClientCapabilities:
    """Seed the cache with an installed svn 1.14 client."""
    caps = ClientCapabilities(installed=True, version="1.14.2", major_version=1)
    capability_cache.get_or_detect("svn", lambda: caps)
    return caps


@pytest.fixture
def git_installed() -> ClientCapabilities:
    """Seed the cache with an installed git client."""
    caps = ClientCapabilities(installed=True, version="2.43.0", major_version=2)
    capability_cache.get_or_detect("git", lambda: caps)
    return caps


@pytest.fixture
def mock_runner() -> AsyncMock:
    """Create a mock CommandRunner that returns success by default."""
    runner = AsyncMock(spec=CommandRunner)
    runner.run.return_value = CommandResult(
        returncode=0, stdout="output\n", stderr="", duration_ms=5
    )
    return runner


@pytest.fixture
def svn_config() -> RepositoryProviderConfig:
    return RepositoryProviderConfig(
        name="svn-main",
        type="svn",
        repository_url="https://svn.example.com/repos/app/",
        username="reader",
        password=SecretStr("s3cret"),
        command_timeout=30,
    )


@pytest.fixture
def git_config(temp_dir: Path) -> RepositoryProviderConfig:
    return RepositoryProviderConfig(
        name="git-local",
        type="git",
        repository_url="https://git.example.com/app.git",
        working_copy_path=temp_dir,
    )


@pytest.fixture
def github_config() -> RepositoryProviderConfig:
    return RepositoryProviderConfig(
        name="gh",
        type="github",
        repository_url="https://github.com/octo/hello.git",
        password=SecretStr("ghp_" + "a" * 36),
    )
