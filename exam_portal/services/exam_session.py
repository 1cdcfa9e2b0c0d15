"""
services/exam_session.py

시험 응시 1회분의 생명주기를 관리하는 ExamSessionController.

상태 전이:
    Active     → Submitting  (제출 / 중도 퇴장)
    Active     → Terminated  (저장 없이 나가기)
    Submitting → Terminated  (API 성공)
    Submitting → Active      (API 실패, 재시도 가능)

종료 트리거(타이머 만료, 제출 버튼, 퇴장, 뒤로가기)는 모두 _latch()의
Active → Submitting 전이 하나를 통과해야 한다. 전이는 네트워크 호출 전에
동기적으로 일어나므로, 두 번째 트리거는 Active가 아닌 phase를 보고 무시된다.
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from config import TICK_INTERVAL, UNLOAD_WARNING
from exam_portal.models.question_model import ExamId, QuestionId
from exam_portal.models.session_state import ExamSession, Outcome, Phase
from exam_portal.services.countdown import run_countdown
from exam_portal.services.errors import (
    LoadFailure,
    NavigationConflict,
    ResultsApiError,
    SessionInactive,
    SubmitFailure,
)
from exam_portal.services.results_api import ResultsApi

logger = logging.getLogger(__name__)


class ExitChoice(str, Enum):
    """퇴장 확인 프롬프트의 세 가지 선택지."""
    CONTINUE = "continue"
    GO_BACK = "go_back"
    EXIT_AND_SUBMIT = "exit_and_submit"


class ExamSessionController:
    def __init__(
        self,
        exam_id: ExamId,
        results_api: ResultsApi,
        on_submitted: Optional[Callable[[Outcome], None]] = None,
        on_abandoned: Optional[Callable[[], None]] = None,
        tick_interval: Optional[float] = TICK_INTERVAL,
    ):
        """
        Args:
            exam_id:       응시할 시험 ID
            results_api:   Results API 클라이언트
            on_submitted:  제출 / 중도 퇴장 성공 시 호출 (Outcome 전달)
            on_abandoned:  저장 없이 나가기 시 호출
            tick_interval: 타이머 주기 (초). None이면 타이머를 돌리지 않고
                           호출 측이 tick()을 직접 부른다.
        """
        self.exam_id = exam_id
        self.results_api = results_api
        self.on_submitted = on_submitted
        self.on_abandoned = on_abandoned
        self.tick_interval = tick_interval

        self.session: Optional[ExamSession] = None
        self.outcome: Optional[Outcome] = None
        self.prompt_open = False
        self.last_error: Optional[str] = None

        self._lock = threading.Lock()
        self._countdown: Optional[asyncio.Task] = None

    # ── 상태 조회 ─────────────────────────────────────────────────────────

    @property
    def phase(self) -> Optional[Phase]:
        return self.session.phase if self.session else None

    @property
    def is_active(self) -> bool:
        return self.phase is Phase.ACTIVE

    @property
    def is_terminated(self) -> bool:
        return self.session is None or self.session.phase is Phase.TERMINATED

    # ── 시작 ──────────────────────────────────────────────────────────────

    async def start(self) -> ExamSession:
        """
        시험 메타데이터와 문항을 한 번의 요청으로 받아 세션을 만든다.

        Raises:
            LoadFailure: 요청 실패 또는 응답 형식 오류. 세션은 만들어지지 않는다.
        """
        if self.session is not None:
            raise RuntimeError("이미 시작된 컨트롤러입니다.")
        try:
            payload = await self.results_api.start_exam(self.exam_id)
            session = ExamSession.from_start(self.exam_id, payload)
        except (ResultsApiError, ValidationError) as e:
            logger.error(f"시험 로드 실패 (exam_id={self.exam_id}): {e}")
            raise LoadFailure("Failed to load exam data") from e

        self.session = session
        logger.info(
            f"시험 시작 (exam_id={self.exam_id}, 문항 {len(self.session.questions)}개, "
            f"제한 시간 {self.session.duration_seconds}초)"
        )
        if self.tick_interval is not None:
            self._countdown = asyncio.get_running_loop().create_task(
                run_countdown(self, self.tick_interval)
            )
        return self.session

    def stop_countdown(self) -> None:
        if self._countdown is not None and not self._countdown.done():
            self._countdown.cancel()
        self._countdown = None

    # ── 타이머 ────────────────────────────────────────────────────────────

    async def tick(self) -> None:
        """1초 경과. 0에 도달하는 순간 한 번만 자동 제출한다."""
        session = self.session
        if session is None or session.phase is not Phase.ACTIVE:
            return
        if session.remaining_seconds <= 0:
            return
        session.remaining_seconds -= 1
        if session.remaining_seconds == 0:
            logger.info(f"시간 종료, 자동 제출 (exam_id={self.exam_id})")
            await self.submit()

    # ── 답안 ──────────────────────────────────────────────────────────────

    def select_answer(self, question_id: QuestionId, option: str) -> None:
        if not self.is_active:
            raise SessionInactive("No active exam session")
        self.session.select(question_id, option)

    # ── 종료 경로 ─────────────────────────────────────────────────────────

    def _latch(self) -> ExamSession:
        with self._lock:
            session = self.session
            if session is None or session.phase is not Phase.ACTIVE:
                raise NavigationConflict(f"phase={self.phase}")
            session.phase = Phase.SUBMITTING
            return session

    async def submit(self) -> bool:
        """
        전체 제출 (미응답 포함). 제출 버튼 또는 시간 만료.

        Returns:
            True:  제출 완료 (Terminated)
            False: 이미 다른 종료 경로가 진행 중 / 완료되어 무시됨
        Raises:
            SubmitFailure: API 실패. 세션은 Active로 복귀.
        """
        return await self._finish(Outcome.SUBMITTED)

    async def exit(self) -> bool:
        """중도 퇴장 (응답한 문항만 제출). 반환값 / 예외는 submit()과 같다."""
        return await self._finish(Outcome.EXITED)

    async def _finish(self, outcome: Outcome) -> bool:
        try:
            session = self._latch()
        except NavigationConflict as e:
            logger.info(f"종료 트리거 무시 ({outcome.value}, exam_id={self.exam_id}): {e}")
            return False

        self.prompt_open = False
        if outcome is Outcome.SUBMITTED:
            action = "submit exam"
            submission = session.full_submission()
            send = self.results_api.submit_exam
        else:
            action = "exit exam"
            submission = session.partial_submission()
            send = self.results_api.exit_exam

        try:
            await send(self.exam_id, submission)
        except ResultsApiError as e:
            session.phase = Phase.ACTIVE
            failure = SubmitFailure(action, e.message)
            self.last_error = str(failure)
            logger.error(f"{action} 실패 (exam_id={self.exam_id}): {e.message}")
            raise failure from e

        session.phase = Phase.TERMINATED
        self.outcome = outcome
        self.last_error = None
        logger.info(
            f"{action} 완료 (exam_id={self.exam_id}, 답안 {len(submission.answers)}개, "
            f"소요 {submission.time_taken_seconds}초)"
        )
        if self.on_submitted:
            self.on_submitted(outcome)
        return True

    def abandon(self) -> bool:
        """저장 없이 나가기. 네트워크 호출이 없는 유일한 종료 경로."""
        with self._lock:
            session = self.session
            if session is None or session.phase is not Phase.ACTIVE:
                logger.info(f"나가기 무시 (exam_id={self.exam_id}, phase={self.phase})")
                return False
            session.phase = Phase.TERMINATED
        self.prompt_open = False
        self.outcome = Outcome.ABANDONED
        self.stop_countdown()
        logger.info(f"저장 없이 나감 (exam_id={self.exam_id})")
        if self.on_abandoned:
            self.on_abandoned()
        return True

    # ── 이탈 가로채기 ─────────────────────────────────────────────────────

    def on_leave_attempt(self) -> bool:
        """
        뒤로가기 / 다른 화면으로 이동 시도.
        Active이면 확인 프롬프트를 띄우고 True(가로챔)를 반환한다.
        """
        if not self.is_active:
            return False
        self.prompt_open = True
        return True

    def on_unload(self) -> Optional[str]:
        """
        탭 닫기 / 새로고침. 브라우저 기본 경고 문구만 돌려준다.
        unload 중에는 네트워크 호출을 기다릴 수 없으므로 제출하지 않는다.
        """
        return UNLOAD_WARNING if self.is_active else None

    async def resolve_prompt(self, choice: ExitChoice) -> bool:
        """
        퇴장 확인 프롬프트 처리.

        Returns:
            세션이 종료되었으면 True
        """
        if self.session is None:
            raise SessionInactive("No active exam session")
        if not self.is_active:
            logger.info(f"프롬프트 선택 무시 ({choice.value}, phase={self.phase})")
            return False
        if choice is ExitChoice.CONTINUE:
            self.prompt_open = False
            return False
        if choice is ExitChoice.GO_BACK:
            return self.abandon()
        return await self.exit()
