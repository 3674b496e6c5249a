from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient

from dinepick.app import app
from dinepick.recommendations.data_store import reset_store
from dinepick.recommendations.session import (
    clear_sessions,
    find_session,
    get_session,
    session_count,
)

HOUR = 60 * 60


def test_get_session_reuses_live_session():
    clear_sessions()
    first = get_session("a", now=0.0)
    first.veto("saved|x")
    assert get_session("a", now=HOUR - 1) is first
    assert session_count() == 1


def test_idle_sessions_are_evicted():
    clear_sessions()
    get_session("idle", now=0.0)
    get_session("busy", now=0.0)
    get_session("busy", now=HOUR - 10)

    get_session("new", now=HOUR)
    assert find_session("idle", now=HOUR) is None
    assert find_session("busy", now=HOUR) is not None
    assert session_count() == 2


def test_store_is_capped_by_least_recently_seen():
    clear_sessions()
    with patch("dinepick.recommendations.session._MAX_SESSIONS", 3):
        get_session("a", now=1.0)
        get_session("b", now=2.0)
        get_session("c", now=3.0)
        get_session("a", now=4.0)
        get_session("d", now=5.0)

    assert session_count() == 3
    assert find_session("b", now=6.0) is None
    assert find_session("a", now=6.0) is not None


def test_find_session_never_creates():
    clear_sessions()
    assert find_session("ghost") is None
    assert find_session(None) is None
    assert session_count() == 0


def test_reads_without_cookie_do_not_allocate_sessions():
    clear_sessions()
    reset_store()
    for _ in range(20):
        c = TestClient(app)
        assert c.get("/nearby").status_code == 200
        assert c.post("/picks/spin").status_code == 409
    assert session_count() == 0

    c = TestClient(app)
    c.post("/picks", json={"seed": 1})
    c.get("/nearby")
    assert session_count() == 1
