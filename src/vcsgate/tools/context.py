"""Conversation context sinks.

The repository tool handler records one audit note per executed operation.
Hosts plug in their own memory store by implementing :class:`ContextSink`.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

__all__ = ["ContextNote", "ContextSink", "MemoryContextSink"]


@runtime_checkable
class ContextSink(Protocol):
    """Destination for notes appended under a module key."""

    def add_note(self, key: str, role: str, content: str) -> None: ...


@dataclass(frozen=True, slots=True)
class ContextNote:
    role: str
    content: str


class MemoryContextSink:
    """In-process :class:`ContextSink` keeping notes per key in arrival order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._notes: dict[str, list[ContextNote]] = {}

    def add_note(self, key: str, role: str, content: str) -> None:
        with self._lock:
            self._notes.setdefault(key, []).append(ContextNote(role=role, content=content))

    def notes(self, key: str) -> list[ContextNote]:
        """Return a copy of the notes recorded under *key*."""
        with self._lock:
            return list(self._notes.get(key, []))

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._notes)

    def clear(self) -> None:
        with self._lock:
            self._notes.clear()
