"""
api/app.py

시험 포털 로컬 서버 조립.

  - 브라우저마다 포털 상태(api/session.py)를 쿠키로 연결
  - /api/* 라우터 (api/routes.py)
  - 프런트엔드 정적 파일 (static/index.html)
  - 응시 중이 아닌 만료 상태를 주기적으로 정리하는 데몬 스레드
"""

import logging
import os
import threading
import time
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from config import SESSION_CLEANUP_INTERVAL, STATIC_DIR, TICK_INTERVAL
from api.routes import router
import api.session as session
from exam_portal.services.results_api import ResultsApi

SESSION_COOKIE = "exam_portal_session"

logger = logging.getLogger(__name__)


def _default_results_api(token: str) -> ResultsApi:
    # 빈 토큰이면 RESULTS_API_TOKEN 환경 설정을 쓴다
    return ResultsApi(token=token or None)


def _start_cleanup_thread() -> None:
    def _loop():
        while True:
            time.sleep(SESSION_CLEANUP_INTERVAL)
            removed = session.cleanup_expired()
            if removed:
                logger.info(f"만료된 포털 상태 {removed}개 정리")

    threading.Thread(target=_loop, name="portal-session-cleanup", daemon=True).start()


def create_app(
    results_api_factory: Optional[Callable[[str], ResultsApi]] = None,
    tick_interval: Optional[float] = TICK_INTERVAL,
    cleanup: bool = True,
) -> FastAPI:
    """
    Args:
        results_api_factory: 토큰 → ResultsApi. 기본은 설정값 기반 httpx 클라이언트.
        tick_interval:       시험 타이머 주기 (초). None이면 타이머 비활성.
        cleanup:             만료 상태 정리 스레드 실행 여부.
    """
    app = FastAPI(title="Exam Portal", docs_url=None, redoc_url=None)
    app.state.results_api_factory = results_api_factory or _default_results_api
    app.state.tick_interval = tick_interval

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def attach_portal_state(request: Request, call_next):
        # 모르는 / 만료된 쿠키면 새 포털 상태로 시작 (진행 중이던 시험은 없음)
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=session.SESSION_TTL,
        )
        return response

    app.include_router(router)

    if os.path.isdir(STATIC_DIR):
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/")
    async def portal_index():
        index_path = os.path.join(STATIC_DIR, "index.html")
        if os.path.exists(index_path):
            return FileResponse(index_path)
        return {"error": "index.html not found"}

    if cleanup:
        _start_cleanup_thread()

    return app
