"""Tests for the vcsgate.logging module."""

from __future__ import annotations

import logging
import os
from unittest.mock import patch

import structlog

from vcsgate.logging import configure_logging, get_logger


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_custom_level(self) -> None:
        configure_logging(level=logging.DEBUG)

        root_logger = logging.getLogger()
        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1

    def test_configure_logging_level_from_env(self) -> None:
        with patch.dict(os.environ, {"VCSGATE_LOG_LEVEL": "ERROR"}):
            configure_logging()

        assert logging.getLogger().level == logging.ERROR

    def test_unknown_env_level_falls_back_to_info(self) -> None:
        with patch.dict(os.environ, {"VCSGATE_LOG_LEVEL": "chatty"}):
            configure_logging()

        assert logging.getLogger().level == logging.INFO

    def test_json_via_env(self) -> None:
        with patch.dict(os.environ, {"VCSGATE_LOG_FORMAT": "json"}):
            configure_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_reconfigure_does_not_stack_handlers(self) -> None:
        configure_logging(level=logging.INFO)
        configure_logging(level=logging.INFO)

        assert len(logging.getLogger().handlers) == 1


def test_get_logger_binds_context() -> None:
    log = get_logger("vcsgate.backends.svn").bind(provider="SVN")

    assert log is not None
