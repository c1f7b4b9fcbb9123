from __future__ import annotations

from vcsgate.tools.context import ContextNote, ContextSink, MemoryContextSink


def test_memory_sink_is_a_context_sink() -> None:
    assert isinstance(MemoryContextSink(), ContextSink)


def test_notes_are_kept_per_key_in_order() -> None:
    sink = MemoryContextSink()

    sink.add_note("svn", "system", "first")
    sink.add_note("git", "system", "other")
    sink.add_note("svn", "system", "second")

    assert sink.notes("svn") == [
        ContextNote(role="system", content="first"),
        ContextNote(role="system", content="second"),
    ]
    assert sink.keys() == ["svn", "git"]
    assert sink.notes("github") == []


def test_clear() -> None:
    sink = MemoryContextSink()
    sink.add_note("svn", "system", "x")

    sink.clear()

    assert sink.keys() == []
