"""Shared fixtures for repository tool tests."""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from pydantic import SecretStr

from vcsgate.backends.capabilities import ClientCapabilities, capability_cache
from vcsgate.backends.svn import SvnBackend
from vcsgate.config import RepositoryProviderConfig
from vcsgate.runners.command import CommandRunner
from vcsgate.runners.models import CommandResult
from vcsgate.tools import MemoryContextSink, RepositoryToolHandler


@pytest.fixture(autouse=True)
def installed_svn() -> Generator[None, None, None]:
    capability_cache.invalidate()
    capability_cache.get_or_detect(
        "svn", lambda: ClientCapabilities(installed=True, version="1.14.2", major_version=1)
    )
    yield
    capability_cache.invalidate()


@pytest.fixture
def mock_runner() -> AsyncMock:
    runner = AsyncMock(spec=CommandRunner)
    runner.run.return_value = CommandResult(
        returncode=0, stdout="r42 | alice | 2024-03-01\n", stderr="", duration_ms=5
    )
    return runner


@pytest.fixture
def svn_backend(mock_runner: AsyncMock) -> SvnBackend:
    config = RepositoryProviderConfig(
        name="svn-main",
        type="svn",
        repository_url="https://svn.example.com/repos/app",
        username="reader",
        password=SecretStr("s3cret"),
    )
    return SvnBackend(config, runner=mock_runner)


@pytest.fixture
def sink() -> MemoryContextSink:
    return MemoryContextSink()


@pytest.fixture
def handler(svn_backend: SvnBackend, sink: MemoryContextSink) -> RepositoryToolHandler:
    return RepositoryToolHandler(svn_backend, "svn-main", sink)
