"""Shared utilities."""

from __future__ import annotations

from vcsgate.utils.security import redact_command, scrub_secrets

__all__ = ["redact_command", "scrub_secrets"]
