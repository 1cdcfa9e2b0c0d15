"""
services/errors.py

시험 세션 예외 계층.
"""

from typing import Optional


class ExamSessionError(Exception):
    """시험 세션 관련 예외의 베이스."""


class ResultsApiError(ExamSessionError):
    """Results API 호출 실패 (HTTP 오류 응답, 네트워크 오류, 타임아웃, 응답 형식 오류)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class LoadFailure(ExamSessionError):
    """시험 로드 실패. 세션은 생성되지 않고 호출 측이 다른 화면으로 이동한다."""


class SubmitFailure(ExamSessionError):
    """
    제출 / 중도 퇴장 요청 실패.
    세션은 Active로 되돌아가며 사용자가 다시 시도할 수 있다.
    """

    def __init__(self, action: str, reason: str):
        super().__init__(f"Failed to {action}: {reason}")
        self.action = action
        self.reason = reason


class NavigationConflict(ExamSessionError):
    """이미 Active가 아닌 세션에 종료 트리거가 들어옴. 공개 동작에서는 조용히 무시된다."""


class SessionInactive(ExamSessionError):
    """Active 세션이 없는 상태에서 답안 선택 등을 시도함."""


class SessionAlreadyActive(ExamSessionError):
    """같은 컨텍스트에서 진행 중인 세션이 있는데 새 세션을 시작하려 함."""
