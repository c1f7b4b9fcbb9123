"""Tool-calling surface for repository backends."""

from __future__ import annotations

from vcsgate.tools.context import ContextNote, ContextSink, MemoryContextSink
from vcsgate.tools.repository import RepositoryToolHandler

__all__ = [
    "ContextNote",
    "ContextSink",
    "MemoryContextSink",
    "RepositoryToolHandler",
]
