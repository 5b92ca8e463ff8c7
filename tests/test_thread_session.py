# tests/test_thread_session.py

from __future__ import annotations

from task_organizer.core.thread import ThreadSession


def test_new_session_has_no_token() -> None:
    s = ThreadSession("x")
    assert s.continuation_token() is None
    assert not s.active


def test_adopt_overwrites_and_missing_token_keeps_previous() -> None:
    s = ThreadSession("x")
    s.adopt("t1")
    assert s.continuation_token() == "t1"

    s.adopt(None)
    s.adopt("")
    assert s.continuation_token() == "t1"

    s.adopt("t2")
    assert s.continuation_token() == "t2"
    assert s.active


def test_reset_drops_token() -> None:
    s = ThreadSession("x")
    s.adopt("t1")
    s.reset()
    assert s.continuation_token() is None
    assert not s.active
