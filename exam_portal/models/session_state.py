"""
models/session_state.py

응시 1회분(세션)의 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반. UI / 네트워크 코드 없음.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from exam_portal.models.question_model import (
    OPTION_LABELS,
    AnswerEntry,
    ExamId,
    ExamStart,
    OptionLabel,
    Question,
    QuestionId,
    Submission,
)


class Phase(str, Enum):
    ACTIVE = "active"
    SUBMITTING = "submitting"
    TERMINATED = "terminated"


class Outcome(str, Enum):
    """세션 종료 결과. 세션당 정확히 하나."""
    SUBMITTED = "submitted"
    EXITED = "exited"
    ABANDONED = "abandoned"


class ExamSession(BaseModel):
    """
    한 학생의 한 시험 응시 상태.

    Attributes:
        exam_id:           시험 식별자. 세션 동안 불변.
        exam_name:         화면 표시용 시험명.
        duration_seconds:  제한 시간 (초). 시작 시점에 고정.
        questions:         문항 목록. 순서가 곧 표시 순서 / 문항 번호.
        answers:           답안지. {question.id: 선택 라벨 또는 None(미응답)}
                           모든 문항이 시작 시점부터 키로 존재한다.
        remaining_seconds: 남은 시간 (초). Active 동안 1초에 한 번씩만 감소.
        phase:             Active / Submitting / Terminated
    """

    exam_id: ExamId = Field(..., frozen=True)
    exam_name: str = ""
    duration_seconds: int = Field(..., gt=0, frozen=True)
    questions: Tuple[Question, ...] = Field(..., min_length=1, frozen=True)
    answers: Dict[QuestionId, Optional[OptionLabel]]
    remaining_seconds: int = Field(..., ge=0)
    phase: Phase = Phase.ACTIVE

    @model_validator(mode="after")
    def validate_answer_keys(self) -> "ExamSession":
        """
        답안지 키 집합은 문항 ID 집합과 정확히 같아야 한다.
        """
        question_ids = {q.id for q in self.questions}
        if set(self.answers) != question_ids:
            raise ValueError("답안지 키가 문항 ID와 일치하지 않습니다.")
        if self.remaining_seconds > self.duration_seconds:
            raise ValueError("남은 시간이 제한 시간보다 클 수 없습니다.")
        return self

    @classmethod
    def from_start(cls, exam_id: ExamId, payload: ExamStart) -> "ExamSession":
        """exam-start 응답으로 새 세션을 만든다. 모든 문항은 미응답으로 시작."""
        duration = payload.exam.duration_seconds
        return cls(
            exam_id=exam_id,
            exam_name=payload.exam.name,
            duration_seconds=duration,
            questions=tuple(payload.questions),
            answers={q.id: None for q in payload.questions},
            remaining_seconds=duration,
        )

    # ── 답안 ──────────────────────────────────────────────────────────────

    def select(self, question_id: QuestionId, option: str) -> None:
        """
        답안 기록 (마지막 선택이 이긴다, 이력 없음).

        Raises:
            KeyError:   세션에 없는 문항 ID
            ValueError: A~D 이외의 보기 라벨
        """
        if question_id not in self.answers:
            raise KeyError(question_id)
        if option not in OPTION_LABELS:
            raise ValueError(f"보기 라벨은 A~D 중 하나여야 합니다: {option!r}")
        self.answers[question_id] = option

    def is_answered(self, question_id: QuestionId) -> bool:
        return self.answers.get(question_id) is not None

    @property
    def answered_count(self) -> int:
        return sum(1 for v in self.answers.values() if v is not None)

    @property
    def progress(self) -> float:
        """0.0 ~ 1.0 진행률."""
        return self.answered_count / len(self.questions)

    @property
    def time_taken(self) -> int:
        return max(0, self.duration_seconds - self.remaining_seconds)

    # ── 제출 본문 ─────────────────────────────────────────────────────────

    def full_submission(self) -> Submission:
        """전체 제출용 본문: 미응답 포함 전 문항."""
        entries: List[AnswerEntry] = [
            AnswerEntry(question_id=q.id, selected_option=self.answers[q.id])
            for q in self.questions
        ]
        return Submission(answers=entries, time_taken_seconds=self.time_taken)

    def partial_submission(self) -> Submission:
        """중도 퇴장용 본문: 응답한 문항만."""
        entries: List[AnswerEntry] = [
            AnswerEntry(question_id=q.id, selected_option=self.answers[q.id])
            for q in self.questions
            if self.answers[q.id] is not None
        ]
        return Submission(answers=entries, time_taken_seconds=self.time_taken)
