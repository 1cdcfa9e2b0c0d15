"""
api/routes.py

FastAPI 엔드포인트

브라우저 한 개 = 쿠키 세션 한 개 = SessionContext 한 개.
시험 응시 흐름은 SessionContext / ExamSessionController에 위임하고
여기서는 요청 본문 검증과 예외 → HTTP 상태 매핑만 한다.
"""

from typing import Any, Union

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

import api.session as session
from exam_portal.services.countdown import format_time, is_warning
from exam_portal.services.errors import (
    LoadFailure,
    ResultsApiError,
    SessionAlreadyActive,
    SessionInactive,
    SubmitFailure,
)
from exam_portal.services.exam_session import ExitChoice
from exam_portal.services.navigation import SessionContext

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class TokenBody(BaseModel):
    token: str

class NavigateBody(BaseModel):
    path: str

class SaveAnswerBody(BaseModel):
    question_id: Union[int, str]
    option: str

class ExitPromptBody(BaseModel):
    choice: ExitChoice


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _context(request: Request) -> SessionContext:
    sid = request.state.session_id
    ctx: SessionContext | None = session.get(sid, "context")
    if ctx is None:
        factory = request.app.state.results_api_factory
        token = session.get(sid, "token", "")
        ctx = SessionContext(
            lambda: factory(token),
            tick_interval=request.app.state.tick_interval,
        )
        session.put(sid, "context", ctx)
    return ctx


def _require_controller(ctx: SessionContext):
    if ctx.controller is None or ctx.controller.session is None:
        raise HTTPException(status_code=404, detail="No exam session")
    return ctx.controller


def _proxy_error(e: ResultsApiError) -> HTTPException:
    status = e.status_code if e.status_code and 400 <= e.status_code < 500 else 502
    return HTTPException(status_code=status, detail=e.message)


def _exam_state(ctx: SessionContext) -> dict[str, Any]:
    controller = _require_controller(ctx)
    s = controller.session
    return {
        "exam_id": s.exam_id,
        "exam_name": s.exam_name,
        "phase": s.phase.value,
        "outcome": controller.outcome.value if controller.outcome else None,
        "remaining_seconds": s.remaining_seconds,
        "time_left": format_time(s.remaining_seconds),
        "warning": is_warning(s.remaining_seconds),
        "total": len(s.questions),
        "answered_count": s.answered_count,
        "progress": round(s.progress * 100, 1),
        "questions": [
            {
                "number": i + 1,
                "id": q.id,
                "text": q.text,
                "options": q.options,
                "selected": s.answers[q.id],
                "status": "answered" if s.is_answered(q.id) else "unanswered",
            }
            for i, q in enumerate(s.questions)
        ],
        "prompt_open": controller.prompt_open,
        "last_error": controller.last_error,
        "location": ctx.navigator.current_path,
    }


# ── 세션 / 내비게이션 ───────────────────────────────────────────────────────

@router.post("/api/set-token")
async def set_token(body: TokenBody, request: Request):
    token = body.token.strip()
    if not token:
        raise HTTPException(status_code=400, detail="Token is empty")
    sid = request.state.session_id
    ctx = _context(request)
    factory = request.app.state.results_api_factory
    try:
        await ctx.replace_results_api(lambda: factory(token))
    except SessionAlreadyActive as e:
        raise HTTPException(status_code=409, detail=str(e))
    session.put(sid, "token", token)
    return {"ok": True}


@router.get("/api/session-status")
async def session_status(request: Request):
    ctx = _context(request)
    return {
        "location": ctx.navigator.current_path,
        "in_exam": ctx.navigator.in_exam_route,
        "session_active": ctx.is_session_active,
        "token_set": bool(session.get(request.state.session_id, "token")),
    }


@router.post("/api/navigate")
async def navigate(body: NavigateBody, request: Request):
    ctx = _context(request)
    moved = ctx.navigate(body.path)
    return {"intercepted": not moved, "location": ctx.navigator.current_path}


@router.post("/api/back")
async def go_back(request: Request):
    ctx = _context(request)
    moved = ctx.back()
    return {"intercepted": not moved, "location": ctx.navigator.current_path}


@router.post("/api/unload")
async def unload(request: Request):
    return {"warning": _context(request).unload_warning()}


# ── 시험 응시 ───────────────────────────────────────────────────────────────

@router.post("/api/exam/{exam_id}/start")
async def start_exam(exam_id: str, request: Request):
    ctx = _context(request)
    try:
        await ctx.start_exam(exam_id)
    except SessionAlreadyActive as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LoadFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _exam_state(ctx)


@router.get("/api/exam-state")
async def get_exam_state(request: Request):
    return _exam_state(_context(request))


@router.post("/api/save-answer")
async def save_answer(body: SaveAnswerBody, request: Request):
    ctx = _context(request)
    controller = _require_controller(ctx)
    try:
        controller.select_answer(body.question_id, body.option)
    except SessionInactive as e:
        raise HTTPException(status_code=400, detail=str(e))
    except KeyError:
        raise HTTPException(status_code=404, detail="Question not found")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    s = controller.session
    return {"ok": True, "answered_count": s.answered_count, "progress": round(s.progress * 100, 1)}


@router.post("/api/submit-exam")
async def submit_exam(request: Request):
    ctx = _context(request)
    controller = _require_controller(ctx)
    try:
        submitted = await controller.submit()
    except SubmitFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"ok": submitted, "location": ctx.navigator.current_path}


@router.post("/api/exit-request")
async def exit_request(request: Request):
    ctx = _context(request)
    _require_controller(ctx)
    return {"prompt_open": ctx.request_exit()}


@router.post("/api/exit-prompt")
async def exit_prompt(body: ExitPromptBody, request: Request):
    ctx = _context(request)
    _require_controller(ctx)
    try:
        terminated = await ctx.resolve_prompt(body.choice)
    except SubmitFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"terminated": terminated, "location": ctx.navigator.current_path}


# ── 조회 (Results API 프록시) ───────────────────────────────────────────────

@router.get("/api/my-exams")
async def my_exams(request: Request):
    try:
        return await _context(request).results_api.my_exams()
    except ResultsApiError as e:
        raise _proxy_error(e)


@router.get("/api/my-results")
async def my_results(request: Request):
    try:
        return await _context(request).results_api.my_results()
    except ResultsApiError as e:
        raise _proxy_error(e)


@router.get("/api/results/{result_id}")
async def get_result(result_id: str, request: Request):
    try:
        return await _context(request).results_api.get_result(result_id)
    except ResultsApiError as e:
        raise _proxy_error(e)


@router.post("/api/reset")
async def reset_session(request: Request):
    sid = request.state.session_id
    ctx: SessionContext | None = session.get(sid, "context")
    if ctx is not None:
        await ctx.reset()
    session.reset(sid)
    return {"ok": True}
