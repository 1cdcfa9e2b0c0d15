"""
services/navigation.py

포털 내비게이션과 시험 세션 컨텍스트.

전역 상태 대신 클라이언트(브라우저)마다 SessionContext 하나를 만들어
세션 컨트롤러와 내비게이션 가드가 함께 사용한다.
  - Navigator:      현재 경로 + 이동 기록 (go_to / go_back)
  - SessionContext: 진행 중인 ExamSessionController 보관, 이동 시도 가로채기,
                    종료 후 결과 화면 / 이전 화면으로 이동
"""

import logging
from typing import Callable, List, Optional

from config import EXAM_PATH_PREFIX, EXAMS_PATH, HOME_PATH, RESULTS_PATH, TICK_INTERVAL
from exam_portal.models.question_model import ExamId
from exam_portal.models.session_state import Outcome, Phase
from exam_portal.services.errors import (
    SessionAlreadyActive,
    SessionInactive,
    SubmitFailure,
)
from exam_portal.services.exam_session import ExamSessionController, ExitChoice
from exam_portal.services.results_api import ResultsApi

logger = logging.getLogger(__name__)


def exam_path(exam_id: ExamId) -> str:
    return f"{EXAM_PATH_PREFIX}{exam_id}"


class Navigator:
    """브라우저 history를 흉내 내는 경로 스택."""

    def __init__(self, start_path: str = HOME_PATH):
        self.history: List[str] = [start_path]

    @property
    def current_path(self) -> str:
        return self.history[-1]

    @property
    def in_exam_route(self) -> bool:
        return self.current_path.startswith(EXAM_PATH_PREFIX)

    def go_to(self, path: str) -> str:
        self.history.append(path)
        return path

    def go_back(self) -> str:
        if len(self.history) > 1:
            self.history.pop()
        return self.current_path


class SessionContext:
    def __init__(
        self,
        results_api_factory: Callable[[], ResultsApi],
        navigator: Optional[Navigator] = None,
        tick_interval: Optional[float] = TICK_INTERVAL,
    ):
        self.results_api_factory = results_api_factory
        self.navigator = navigator or Navigator()
        self.tick_interval = tick_interval
        self.controller: Optional[ExamSessionController] = None
        self.pending_path: Optional[str] = None
        self._results_api: Optional[ResultsApi] = None

    # ── Results API ───────────────────────────────────────────────────────

    @property
    def results_api(self) -> ResultsApi:
        if self._results_api is None:
            self._results_api = self.results_api_factory()
        return self._results_api

    async def replace_results_api(self, factory: Callable[[], ResultsApi]) -> None:
        """토큰 변경 등으로 클라이언트를 교체. 진행 중인 세션이 있으면 거부."""
        if self.in_progress:
            raise SessionAlreadyActive("An exam session is in progress")
        if self._results_api is not None:
            await self._results_api.aclose()
        self.results_api_factory = factory
        self._results_api = None

    # ── 세션 상태 ─────────────────────────────────────────────────────────

    @property
    def is_session_active(self) -> bool:
        return self.controller is not None and self.controller.is_active

    @property
    def in_progress(self) -> bool:
        """로드 중 / Active / Submitting 인 세션이 있는지."""
        c = self.controller
        return c is not None and (c.session is None or c.phase is not Phase.TERMINATED)

    async def start_exam(self, exam_id: ExamId) -> ExamSessionController:
        """
        시험 화면으로 이동하고 세션을 시작한다.
        시작이 어떤 이유로든 실패하면 컨트롤러를 비우고 시험 목록으로 이동한 뒤
        예외를 다시 던진다.
        """
        if self.in_progress:
            raise SessionAlreadyActive("An exam session is already in progress")

        controller = ExamSessionController(
            exam_id,
            self.results_api,
            on_submitted=self._on_submitted,
            on_abandoned=self._on_abandoned,
            tick_interval=self.tick_interval,
        )
        self.controller = controller
        self.pending_path = None
        self.navigator.go_to(exam_path(exam_id))
        try:
            await controller.start()
        except Exception:
            self.controller = None
            self.navigator.go_to(EXAMS_PATH)
            raise
        return controller

    def _on_submitted(self, outcome: Outcome) -> None:
        target = self.pending_path or RESULTS_PATH
        self.pending_path = None
        self.navigator.go_to(target)
        logger.info(f"세션 종료 ({outcome.value}) → {target}")

    def _on_abandoned(self) -> None:
        self.pending_path = None
        target = self.navigator.go_back()
        logger.info(f"세션 폐기 → {target}")

    # ── 내비게이션 가드 ───────────────────────────────────────────────────

    def request_exit(self) -> bool:
        """앱 차원의 '시험 나가기' 요청. Active 세션이 있으면 확인 프롬프트를 연다."""
        if self.controller is None:
            return False
        return self.controller.on_leave_attempt()

    def navigate(self, path: str) -> bool:
        """
        메뉴 등에서의 화면 이동.

        Returns:
            True  이동함
            False 시험 중이라 가로챔 (프롬프트 열림, 목적지는 pending_path에 보관)
        """
        if self.is_session_active:
            self.pending_path = path
            return not self.request_exit()
        self.navigator.go_to(path)
        return True

    def back(self) -> bool:
        """브라우저 뒤로가기. 시험 중이면 가로챈다."""
        if self.is_session_active:
            self.pending_path = None
            return not self.request_exit()
        self.navigator.go_back()
        return True

    def unload_warning(self) -> Optional[str]:
        """탭 닫기 / 새로고침 경고 문구 (제출은 하지 않음)."""
        if self.controller is None:
            return None
        return self.controller.on_unload()

    async def resolve_prompt(self, choice: ExitChoice) -> bool:
        if self.controller is None:
            raise SessionInactive("No active exam session")
        if choice is ExitChoice.CONTINUE:
            self.pending_path = None
        try:
            return await self.controller.resolve_prompt(choice)
        except SubmitFailure:
            self.pending_path = None
            raise

    async def reset(self) -> None:
        """세션과 클라이언트를 모두 정리."""
        if self.controller is not None:
            self.controller.stop_countdown()
        self.controller = None
        self.pending_path = None
        if self._results_api is not None:
            await self._results_api.aclose()
            self._results_api = None
