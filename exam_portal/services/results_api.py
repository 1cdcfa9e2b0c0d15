"""
services/results_api.py

원격 Results API 비동기 클라이언트 (httpx).

    GET  {base}/results/exam/{exam_id}/start
    POST {base}/results/exam/{exam_id}/submit
    POST {base}/results/exam/{exam_id}/exit
    GET  {base}/results/my-exams
    GET  {base}/results/my-results
    GET  {base}/results/{result_id}

모든 실패는 ResultsApiError 하나로 정규화한다.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from config import RESULTS_API_TIMEOUT, RESULTS_API_TOKEN, RESULTS_API_URL
from exam_portal.models.question_model import ExamId, ExamStart, Submission
from exam_portal.services.errors import ResultsApiError

logger = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> str:
    """서버가 내려준 message 필드가 있으면 그것을, 없으면 상태 줄을 사용."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP {resp.status_code}"


class ResultsApi:
    def __init__(
        self,
        base_url: str = RESULTS_API_URL,
        token: Optional[str] = None,
        timeout: float = RESULTS_API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        token = token if token is not None else RESULTS_API_TOKEN
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ResultsApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            logger.warning(f"Results API 타임아웃: {method} {path}")
            raise ResultsApiError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"Results API 연결 오류: {method} {path} ({e})")
            raise ResultsApiError(f"Network error: {e}") from e

        if resp.is_error:
            message = _error_message(resp)
            logger.warning(f"Results API 오류 응답: {method} {path} → {resp.status_code} {message}")
            raise ResultsApiError(message, status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ResultsApiError("Malformed response body", status_code=resp.status_code) from e

    # ── 시험 응시 ─────────────────────────────────────────────────────────

    async def start_exam(self, exam_id: ExamId) -> ExamStart:
        data = await self._request("GET", f"/results/exam/{exam_id}/start")
        try:
            return ExamStart.model_validate(data)
        except ValidationError as e:
            raise ResultsApiError(f"Malformed exam data: {e.error_count()} error(s)") from e

    async def submit_exam(self, exam_id: ExamId, submission: Submission) -> Any:
        return await self._request(
            "POST", f"/results/exam/{exam_id}/submit", json=submission.to_json()
        )

    async def exit_exam(self, exam_id: ExamId, submission: Submission) -> Any:
        return await self._request(
            "POST", f"/results/exam/{exam_id}/exit", json=submission.to_json()
        )

    # ── 조회 (학생 대시보드 / 결과 화면) ─────────────────────────────────

    async def my_exams(self) -> Any:
        return await self._request("GET", "/results/my-exams")

    async def my_results(self) -> Any:
        return await self._request("GET", "/results/my-results")

    async def get_result(self, result_id: ExamId) -> Any:
        return await self._request("GET", f"/results/{result_id}")
