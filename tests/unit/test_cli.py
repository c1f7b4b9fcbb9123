"""Unit tests for the CLI entry point."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from vcsgate import __version__
from vcsgate.backends.capabilities import ClientCapabilities, capability_cache
from vcsgate.main import cli
from vcsgate.runners.models import CommandResult


@pytest.fixture(autouse=True)
def reset_capabilities() -> Generator[None, None, None]:
    capability_cache.invalidate()
    yield
    capability_cache.invalidate()


@pytest.fixture
def config_file(clean_env: None, temp_dir: Path, sample_config_yaml: str) -> Path:
    path = temp_dir / "vcsgate.yaml"
    path.write_text(sample_config_yaml)
    return path


def seed_svn(installed: bool = True) -> None:
    capabilities = (
        ClientCapabilities(installed=True, version="1.14.2", major_version=1)
        if installed
        else ClientCapabilities.missing()
    )
    capability_cache.get_or_detect("svn", lambda: capabilities)


def test_version_output(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_output(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "read-only" in result.output
    assert "operations" in result.output
    assert "run" in result.output


def test_invalid_config_exits_with_failure(
    cli_runner: CliRunner, clean_env: None, temp_dir: Path
) -> None:
    path = temp_dir / "vcsgate.yaml"
    path.write_text("repository: [unclosed\n")

    result = cli_runner.invoke(cli, ["-c", str(path), "operations"])

    assert result.exit_code == 1
    assert "Invalid YAML" in result.output


class TestOperationsCommand:
    def test_json(self, cli_runner: CliRunner, config_file: Path) -> None:
        result = cli_runner.invoke(cli, ["-c", str(config_file), "operations", "-f", "json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["provider"] == "SVN"
        assert list(payload["operations"]) == [
            "log", "info", "list", "cat", "diff", "blame", "status",
        ]  # fmt: skip

    def test_table(self, cli_runner: CliRunner, config_file: Path) -> None:
        result = cli_runner.invoke(cli, ["-c", str(config_file), "operations"])

        assert result.exit_code == 0
        assert "blame" in result.stdout

    def test_unknown_active_provider(
        self, cli_runner: CliRunner, clean_env: None, temp_dir: Path
    ) -> None:
        path = temp_dir / "vcsgate.yaml"
        path.write_text("repository:\n  active_provider: missing\n")

        result = cli_runner.invoke(cli, ["-c", str(path), "operations"])

        assert result.exit_code == 1
        assert "Error:" in result.output


class TestRunCommand:
    def test_refused_operation(self, cli_runner: CliRunner, config_file: Path) -> None:
        seed_svn()

        result = cli_runner.invoke(cli, ["-c", str(config_file), "run", "commit"])

        assert result.exit_code == 0
        assert "Operation refused for safety" in result.stdout

    def test_runs_operation(self, cli_runner: CliRunner, config_file: Path) -> None:
        seed_svn()
        run = AsyncMock(
            return_value=CommandResult(returncode=0, stdout="r7 | bob\n", stderr="", duration_ms=4)
        )

        with patch("vcsgate.runners.command.CommandRunner.run", run):
            result = cli_runner.invoke(
                cli, ["-c", str(config_file), "run", "log", "--limit", "2"]
            )

        assert result.exit_code == 0
        assert "**SVN - LOG result**" in result.stdout
        assert "r7 | bob" in result.stdout
        command = run.call_args.args[0]
        assert command[command.index("-l") + 1] == "2"

    def test_missing_client(self, cli_runner: CliRunner, config_file: Path) -> None:
        seed_svn(installed=False)

        result = cli_runner.invoke(cli, ["-c", str(config_file), "run", "log"])

        assert result.exit_code == 0
        assert "SVN client not found" in result.stdout


class TestCheckCommand:
    def test_missing_client(self, cli_runner: CliRunner, config_file: Path) -> None:
        seed_svn(installed=False)

        result = cli_runner.invoke(cli, ["-c", str(config_file), "check"])

        assert result.exit_code == 1
        assert "Client not installed" in result.stdout

    def test_connection_ok(self, cli_runner: CliRunner, config_file: Path) -> None:
        seed_svn()
        run = AsyncMock(
            return_value=CommandResult(returncode=0, stdout="Path: app\n", stderr="", duration_ms=4)
        )

        with patch("vcsgate.runners.command.CommandRunner.run", run):
            result = cli_runner.invoke(cli, ["-c", str(config_file), "check"])

        assert result.exit_code == 0
        assert "Connection OK" in result.stdout
        assert "1.14.2" in result.stdout

    def test_connection_failed(self, cli_runner: CliRunner, config_file: Path) -> None:
        seed_svn()
        run = AsyncMock(
            return_value=CommandResult(
                returncode=1,
                stdout="",
                stderr="svn: E170013: Unable to connect to a repository",
                duration_ms=4,
            )
        )

        with patch("vcsgate.runners.command.CommandRunner.run", run):
            result = cli_runner.invoke(cli, ["-c", str(config_file), "check"])

        assert result.exit_code == 1
        assert "Connection failed" in result.stdout
        assert "E170013" in result.stdout
