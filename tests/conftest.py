from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from click.testing import CliRunner


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for the test environment.

    Runs automatically for all tests so log output goes to stderr at
    WARNING level and does not mix with test stdout.
    """
    from vcsgate.logging import configure_logging

    configure_logging(level=logging.WARNING)
    yield


@pytest.fixture(autouse=True)
def isolated_user_config(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    """Point the user-level config file at an empty location."""
    missing = tmp_path_factory.mktemp("home") / "config.yaml"
    monkeypatch.setattr("vcsgate.config.get_user_config_path", lambda: missing)


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory to prevent
    tests that use os.chdir() from affecting other tests.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
    os.chdir(original_cwd)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove all VCSGATE_ environment variables for clean testing."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("VCSGATE_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def sample_config_yaml() -> str:
    """Return sample vcsgate.yaml content with one provider of each kind."""
    return """
repository:
  active_provider: "svn-main"
  providers:
    - name: "svn-main"
      type: "SVN"
      repository_url: "https://svn.example.com/repos/app"
      username: "reader"
      password: "s3cret-pass"
      command_timeout: 30
    - name: "git-local"
      type: "git"
      working_copy_path: "/srv/checkouts/app"
    - name: "gh"
      type: "github"
      repository_url: "https://github.com/octo/hello"
      branch: "develop"

verbosity: "info"
"""


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner.

    Example:
        >>> def test_version(cli_runner):
        ...     from vcsgate.main import cli
        ...     result = cli_runner.invoke(cli, ["--version"])
        ...     assert result.exit_code == 0
    """
    from click.testing import CliRunner

    return CliRunner()
