from __future__ import annotations

import dataclasses

import pytest

from vcsgate.runners.models import COMMAND_NOT_FOUND_EXIT_CODE, CommandResult


class TestCommandResult:
    def test_success(self) -> None:
        assert CommandResult(returncode=0, stdout="", stderr="", duration_ms=1).success

    def test_timeout_is_not_success(self) -> None:
        result = CommandResult(returncode=0, stdout="", stderr="", duration_ms=1, timed_out=True)

        assert result.success is False

    def test_not_found(self) -> None:
        result = CommandResult(
            returncode=COMMAND_NOT_FOUND_EXIT_CODE, stdout="", stderr="", duration_ms=0
        )

        assert result.not_found is True
        assert result.success is False

    def test_frozen(self) -> None:
        result = CommandResult(returncode=0, stdout="", stderr="", duration_ms=1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            result.returncode = 1  # type: ignore[misc]
