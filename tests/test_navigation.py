"""
SessionContext / Navigator 테스트: 이동 가로채기와 종료 후 이동.
"""

import pytest

from conftest import FakeResultsServer, make_exam
from exam_portal.models.session_state import Outcome
from exam_portal.services.errors import LoadFailure, SessionAlreadyActive, SessionInactive, SubmitFailure
from exam_portal.services.exam_session import ExitChoice
from exam_portal.services.navigation import Navigator, SessionContext, exam_path


def _context(server):
    return SessionContext(server.client, navigator=Navigator("/student/exams"), tick_interval=None)


def test_navigator_history():
    nav = Navigator("/student")
    nav.go_to("/student/exams")
    nav.go_to(exam_path(7))

    assert nav.in_exam_route
    assert nav.go_back() == "/student/exams"
    assert nav.go_back() == "/student"
    assert nav.go_back() == "/student"


def test_navigation_without_session_is_not_intercepted(server):
    ctx = _context(server)

    assert ctx.navigate("/student/results")
    assert ctx.navigator.current_path == "/student/results"
    assert ctx.back()
    assert ctx.navigator.current_path == "/student/exams"
    assert ctx.unload_warning() is None
    assert not ctx.request_exit()


@pytest.mark.asyncio
async def test_start_exam_moves_to_exam_route(server):
    ctx = _context(server)
    await ctx.start_exam(7)

    assert ctx.is_session_active
    assert ctx.navigator.current_path == "/student/exam/7"


@pytest.mark.asyncio
async def test_load_failure_returns_to_exam_list(server):
    server.start_status = 404
    ctx = _context(server)

    with pytest.raises(LoadFailure):
        await ctx.start_exam(7)

    assert ctx.controller is None
    assert not ctx.in_progress
    assert ctx.navigator.current_path == "/student/exams"


@pytest.mark.asyncio
async def test_invalid_exam_payload_does_not_leave_context_stuck():
    server = FakeResultsServer(make_exam(duration_minutes=0.005))
    ctx = _context(server)

    with pytest.raises(LoadFailure):
        await ctx.start_exam(7)

    assert ctx.controller is None
    assert not ctx.in_progress
    assert ctx.navigator.current_path == "/student/exams"

    server.exam = make_exam()
    await ctx.start_exam(7)
    assert ctx.is_session_active


@pytest.mark.asyncio
async def test_only_one_session_per_context(server):
    ctx = _context(server)
    await ctx.start_exam(7)

    with pytest.raises(SessionAlreadyActive):
        await ctx.start_exam(8)


@pytest.mark.asyncio
async def test_back_is_intercepted_and_go_back_restores_location(server):
    ctx = _context(server)
    await ctx.start_exam(7)
    ctx.controller.select_answer(1, "A")

    assert not ctx.back()
    assert ctx.controller.prompt_open
    assert ctx.navigator.current_path == "/student/exam/7"

    assert await ctx.resolve_prompt(ExitChoice.GO_BACK)
    assert ctx.navigator.current_path == "/student/exams"
    assert server.posts == []


@pytest.mark.asyncio
async def test_menu_navigation_exit_and_submit_goes_to_pending_path(server):
    ctx = _context(server)
    await ctx.start_exam(7)
    ctx.controller.select_answer(2, "B")

    assert not ctx.navigate("/student/pipelines")
    assert ctx.pending_path == "/student/pipelines"

    assert await ctx.resolve_prompt(ExitChoice.EXIT_AND_SUBMIT)
    assert ctx.controller.outcome is Outcome.EXITED
    assert ctx.navigator.current_path == "/student/pipelines"
    assert len(server.posts) == 1

    # 종료 후 이동은 더 이상 가로채지 않는다
    assert ctx.navigate("/student")
    assert ctx.navigator.current_path == "/student"


@pytest.mark.asyncio
async def test_continue_clears_pending_navigation(server):
    ctx = _context(server)
    await ctx.start_exam(7)
    ctx.navigate("/student/results")

    assert not await ctx.resolve_prompt(ExitChoice.CONTINUE)
    assert ctx.pending_path is None
    assert ctx.is_session_active

    assert await ctx.controller.submit()
    assert ctx.navigator.current_path == "/student/results"


@pytest.mark.asyncio
async def test_failed_exit_keeps_user_in_exam(server):
    ctx = _context(server)
    await ctx.start_exam(7)
    ctx.navigate("/student")
    server.submit_failures = 1

    with pytest.raises(SubmitFailure):
        await ctx.resolve_prompt(ExitChoice.EXIT_AND_SUBMIT)

    assert ctx.is_session_active
    assert ctx.pending_path is None
    assert ctx.navigator.current_path == "/student/exam/7"


@pytest.mark.asyncio
async def test_unload_warning_while_active(server):
    ctx = _context(server)
    await ctx.start_exam(7)

    assert ctx.unload_warning()
    assert server.posts == []


@pytest.mark.asyncio
async def test_resolve_prompt_without_session(server):
    ctx = _context(server)

    with pytest.raises(SessionInactive):
        await ctx.resolve_prompt(ExitChoice.CONTINUE)


@pytest.mark.asyncio
async def test_reset_allows_new_session(server):
    ctx = _context(server)
    await ctx.start_exam(7)
    await ctx.reset()

    assert not ctx.in_progress
    await ctx.start_exam(7)
    assert ctx.is_session_active
