"""
api/session.py

브라우저별 포털 상태 저장소.

쿠키의 세션 ID 하나에 {"token": Results API 토큰, "context": SessionContext}가
대응한다. 마지막 접근 후 SESSION_TTL이 지나면 버리지만, 시험이 진행 중인
컨텍스트(로드 중 / Active / Submitting)는 응시 도중 사라지지 않도록 남겨 둔다.
"""

import threading
import time
import uuid
from typing import Any

from config import SESSION_TTL

_lock = threading.Lock()
_states: dict[str, dict[str, Any]] = {}
_last_seen: dict[str, float] = {}


def _blank_state() -> dict[str, Any]:
    return {"token": "", "context": None}


def _expired(sid: str, now: float) -> bool:
    if now - _last_seen[sid] <= SESSION_TTL:
        return False
    ctx = _states[sid].get("context")
    return ctx is None or not ctx.in_progress


def _drop(sid: str) -> None:
    del _states[sid]
    del _last_seen[sid]


def create_session() -> str:
    """빈 포털 상태를 만들고 쿠키에 넣을 ID를 돌려준다."""
    sid = uuid.uuid4().hex
    with _lock:
        _states[sid] = _blank_state()
        _last_seen[sid] = time.time()
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """
    쿠키 ID에 해당하는 포털 상태. 모르는 ID이거나 만료되었으면 None
    (미들웨어가 새 ID를 발급한다).
    """
    now = time.time()
    with _lock:
        if sid not in _states:
            return None
        if _expired(sid, now):
            _drop(sid)
            return None
        _last_seen[sid] = now
        return _states[sid]


def get(sid: str, key: str, default=None):
    state = get_session(sid)
    if state is None:
        return default
    return state.get(key, default)


def put(sid: str, key: str, value) -> None:
    with _lock:
        if sid in _states:
            _states[sid][key] = value
            _last_seen[sid] = time.time()


def reset(sid: str) -> None:
    """시험 컨텍스트를 버린다. Results API 토큰은 로그인 상태이므로 유지."""
    with _lock:
        if sid in _states:
            token = _states[sid].get("token", "")
            _states[sid] = _blank_state()
            _states[sid]["token"] = token
            _last_seen[sid] = time.time()


def cleanup_expired() -> int:
    """응시 중이 아닌 만료 상태를 정리하고 정리한 개수를 반환."""
    now = time.time()
    with _lock:
        expired = [sid for sid in _last_seen if _expired(sid, now)]
        for sid in expired:
            _drop(sid)
    return len(expired)
