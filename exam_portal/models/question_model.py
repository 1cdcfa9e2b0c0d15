from typing import Dict, List, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator

OptionLabel = Literal["A", "B", "C", "D"]
OPTION_LABELS: Tuple[str, ...] = ("A", "B", "C", "D")

ExamId = Union[int, str]
QuestionId = Union[int, str]


class Question(BaseModel):
    """
    시험 문항 모델 (4지선다).
    정답 정보는 클라이언트에 내려오지 않는다. 채점은 Results API 쪽 책임.
    """
    id: QuestionId = Field(
        ...,
        description="문항 식별자 (불투명 값)"
    )
    text: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("text", "questionText", "question_text"),
        description="발문"
    )
    option_a: str = Field(..., validation_alias=AliasChoices("optionA", "option_a"))
    option_b: str = Field(..., validation_alias=AliasChoices("optionB", "option_b"))
    option_c: str = Field(..., validation_alias=AliasChoices("optionC", "option_c"))
    option_d: str = Field(..., validation_alias=AliasChoices("optionD", "option_d"))

    model_config = {"frozen": True}

    @property
    def options(self) -> Dict[str, str]:
        """보기 라벨(A~D) → 보기 텍스트."""
        return {
            "A": self.option_a,
            "B": self.option_b,
            "C": self.option_c,
            "D": self.option_d,
        }


class ExamInfo(BaseModel):
    """exam-start 응답의 시험 메타데이터."""
    id: ExamId
    name: str = Field(
        "",
        validation_alias=AliasChoices("name", "title"),
    )
    duration_minutes: float = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("durationMinutes", "duration", "duration_minutes"),
        description="제한 시간 (분)"
    )

    @field_validator("duration_minutes")
    @classmethod
    def validate_whole_seconds(cls, v: float) -> float:
        """
        초 단위로 반올림했을 때 0초가 되는 제한 시간은 받지 않는다.
        """
        if round(v * 60) < 1:
            raise ValueError("제한 시간은 1초 이상이어야 합니다.")
        return v

    @property
    def duration_seconds(self) -> int:
        return int(round(self.duration_minutes * 60))


class ExamStart(BaseModel):
    """GET exam-start 응답 전체."""
    exam: ExamInfo
    questions: List[Question] = Field(..., min_length=1)

    @field_validator("questions")
    @classmethod
    def validate_unique_ids(cls, v: List[Question]) -> List[Question]:
        """
        문항 ID는 답안지의 키가 되므로 중복을 허용하지 않는다.
        """
        ids = [q.id for q in v]
        if len(ids) != len(set(ids)):
            raise ValueError("중복된 문항 ID가 있습니다.")
        return v


class AnswerEntry(BaseModel):
    question_id: QuestionId = Field(..., serialization_alias="questionId")
    selected_option: Optional[OptionLabel] = Field(None, serialization_alias="selectedOption")


class Submission(BaseModel):
    """
    submit / exit 요청 본문.

    answers의 순서는 문항 표시 순서를 따른다.
    미응답 문항은 selected_option=None (JSON null)로 인코딩된다.
    """
    answers: List[AnswerEntry] = Field(default_factory=list)
    time_taken_seconds: int = Field(..., ge=0, serialization_alias="timeTakenSeconds")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
