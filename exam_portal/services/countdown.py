"""
services/countdown.py

시험 타이머.
  - run_countdown(): 1초마다 controller.tick()을 호출하는 asyncio 루프
  - format_time() / is_warning(): 남은 시간 표시용 헬퍼
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from config import TICK_INTERVAL, TIME_WARNING_SECONDS
from exam_portal.services.errors import SubmitFailure

if TYPE_CHECKING:
    from exam_portal.services.exam_session import ExamSessionController

logger = logging.getLogger(__name__)


async def run_countdown(
    controller: ExamSessionController,
    interval: float = TICK_INTERVAL,
) -> None:
    """
    세션이 Terminated가 될 때까지 interval마다 한 번씩 tick.

    Submitting 중의 tick은 controller 쪽에서 무시되므로 네트워크 대기 시간은
    남은 시간에서 차감되지 않는다. 자동 제출 실패는 세션을 Active로 되돌리고
    여기서는 로그만 남긴다 (재시도는 사용자가 직접).

    tick 시각은 loop.time() 기준으로 interval 간격에 고정되므로 tick 처리
    시간만큼 주기가 밀리지 않는다. 제출 대기 등으로 한 주기 이상 늦어지면
    밀린 tick을 몰아서 실행하지 않고 현재 시각부터 다시 센다.
    """
    loop = asyncio.get_running_loop()
    next_at = loop.time() + interval
    while not controller.is_terminated:
        await asyncio.sleep(max(0.0, next_at - loop.time()))
        if controller.is_terminated:
            break
        next_at += interval
        if next_at <= loop.time():
            next_at = loop.time() + interval
        try:
            await controller.tick()
        except SubmitFailure as e:
            logger.warning(f"자동 제출 실패 (exam_id={controller.exam_id}): {e}")
    logger.debug(f"타이머 종료 (exam_id={controller.exam_id})")


def format_time(seconds: int) -> str:
    """남은 초를 MM:SS 문자열로."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def is_warning(remaining_seconds: int) -> bool:
    """10분 미만이면 경고 스타일."""
    return remaining_seconds < TIME_WARNING_SECONDS
