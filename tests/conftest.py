"""Pytest configuration and shared fixtures."""

import json
from typing import Any, Callable, Optional

import httpx
import pytest

from exam_portal.services.results_api import ResultsApi

BASE_URL = "http://results.test/api"


def make_exam(n_questions: int = 3, duration_minutes: float = 1, exam_id: Any = 7) -> dict:
    """exam-start 응답 본문 (3문항, 60초가 기본)."""
    return {
        "exam": {"id": exam_id, "name": "PMP Mock Exam", "durationMinutes": duration_minutes},
        "questions": [
            {
                "id": i,
                "text": f"Question {i}?",
                "optionA": f"{i}-a",
                "optionB": f"{i}-b",
                "optionC": f"{i}-c",
                "optionD": f"{i}-d",
            }
            for i in range(1, n_questions + 1)
        ],
    }


class FakeResultsServer:
    """
    MockTransport 뒤에서 Results API를 흉내 낸다.
    모든 요청을 (method, path, json body)로 기록한다.
    """

    def __init__(self, exam: Optional[dict] = None):
        self.exam = exam or make_exam()
        self.requests: list[tuple[str, str, Any]] = []
        self.headers: list[httpx.Headers] = []
        self.start_status = 200
        self.submit_failures = 0
        self.on_post: Optional[Callable[[httpx.Request], None]] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path
        self.requests.append((request.method, path, body))
        self.headers.append(request.headers)

        if request.method == "POST" and self.on_post is not None:
            self.on_post(request)

        if path.endswith("/start"):
            if self.start_status != 200:
                return httpx.Response(self.start_status, json={"message": "Exam not found"})
            return httpx.Response(200, json=self.exam)
        if path.endswith("/submit") or path.endswith("/exit"):
            if self.submit_failures:
                self.submit_failures -= 1
                return httpx.Response(500, json={"message": "Database unavailable"})
            return httpx.Response(201, json={"message": "Saved", "resultId": 99})
        if path.endswith("/my-exams"):
            return httpx.Response(200, json=[{"id": 7, "name": "PMP Mock Exam", "attempted": False}])
        if path.endswith("/my-results"):
            return httpx.Response(200, json=[{"id": 99, "examId": 7, "score": 80}])
        if path.endswith("/results/99"):
            return httpx.Response(200, json={"id": 99, "score": 80, "answers": []})
        return httpx.Response(404, json={"message": "Result not found"})

    @property
    def posts(self) -> list[tuple[str, str, Any]]:
        return [r for r in self.requests if r[0] == "POST"]

    def client(self, token: Optional[str] = None) -> ResultsApi:
        return ResultsApi(
            base_url=BASE_URL,
            token=token or "",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def server() -> FakeResultsServer:
    return FakeResultsServer()
