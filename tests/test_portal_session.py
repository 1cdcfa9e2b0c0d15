"""
api/session.py 포털 상태 저장소 테스트: 만료 정리와 응시 중 보호.
"""

import pytest

import api.session as session


class _Context:
    def __init__(self, in_progress: bool):
        self.in_progress = in_progress


@pytest.fixture
def expire_now(monkeypatch):
    monkeypatch.setattr(session, "SESSION_TTL", -1)


def test_expired_state_without_exam_is_dropped(expire_now):
    sid = session.create_session()

    assert session.cleanup_expired() >= 1
    assert session.get_session(sid) is None


def test_exam_in_progress_survives_expiry(expire_now):
    sid = session.create_session()
    session.put(sid, "context", _Context(in_progress=True))

    session.cleanup_expired()

    assert session.get_session(sid) is not None
    assert session.get(sid, "context").in_progress


def test_finished_exam_expires(expire_now):
    sid = session.create_session()
    session.put(sid, "context", _Context(in_progress=False))

    assert session.get_session(sid) is None


def test_reset_keeps_token():
    sid = session.create_session()
    session.put(sid, "token", "abc")
    session.put(sid, "context", _Context(in_progress=False))

    session.reset(sid)

    assert session.get(sid, "token") == "abc"
    assert session.get(sid, "context") is None


def test_unknown_id_has_no_state():
    assert session.get_session("missing") is None
    assert session.get("missing", "token", "fallback") == "fallback"
