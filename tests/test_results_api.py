"""
Results API 클라이언트 테스트 (httpx MockTransport).
"""

import httpx
import pytest

from conftest import BASE_URL, make_exam
from exam_portal.models.question_model import AnswerEntry, Submission
from exam_portal.services.errors import ResultsApiError
from exam_portal.services.results_api import ResultsApi


def _api(handler, token=""):
    return ResultsApi(base_url=BASE_URL, token=token, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_start_exam_parses_payload(server):
    async with server.client() as api:
        payload = await api.start_exam(7)

    assert server.requests[0][:2] == ("GET", "/api/results/exam/7/start")
    assert payload.exam.duration_seconds == 60
    assert [q.id for q in payload.questions] == [1, 2, 3]
    assert payload.questions[0].options == {"A": "1-a", "B": "1-b", "C": "1-c", "D": "1-d"}


@pytest.mark.asyncio
async def test_start_exam_accepts_legacy_field_names():
    legacy = {
        "exam": {"id": 3, "title": "Legacy", "duration": 2},
        "questions": [
            {"id": 10, "questionText": "Q?", "optionA": "a", "optionB": "b", "optionC": "c", "optionD": "d"}
        ],
    }

    async with _api(lambda request: httpx.Response(200, json=legacy)) as api:
        payload = await api.start_exam(3)

    assert payload.exam.name == "Legacy"
    assert payload.exam.duration_seconds == 120
    assert payload.questions[0].text == "Q?"


@pytest.mark.asyncio
async def test_start_exam_rejects_malformed_payload():
    broken = make_exam()
    broken["questions"] = []

    async with _api(lambda request: httpx.Response(200, json=broken)) as api:
        with pytest.raises(ResultsApiError, match="Malformed exam data"):
            await api.start_exam(7)


@pytest.mark.asyncio
async def test_error_message_comes_from_server_body(server):
    server.start_status = 404
    async with server.client() as api:
        with pytest.raises(ResultsApiError) as exc_info:
            await api.start_exam(7)

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Exam not found"


@pytest.mark.asyncio
async def test_error_without_body_uses_status():
    async with _api(lambda request: httpx.Response(503)) as api:
        with pytest.raises(ResultsApiError, match="HTTP 503"):
            await api.my_results()


@pytest.mark.asyncio
async def test_timeout_is_reported_as_api_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    async with _api(handler) as api:
        with pytest.raises(ResultsApiError, match="timed out"):
            await api.exit_exam(7, Submission(time_taken_seconds=1))


@pytest.mark.asyncio
async def test_submit_sends_camel_case_body_and_token(server):
    submission = Submission(
        answers=[
            AnswerEntry(question_id=1, selected_option="A"),
            AnswerEntry(question_id=2, selected_option=None),
        ],
        time_taken_seconds=30,
    )
    async with server.client(token="secret") as api:
        await api.submit_exam(7, submission)

    method, path, body = server.requests[0]
    assert (method, path) == ("POST", "/api/results/exam/7/submit")
    assert body == {
        "answers": [
            {"questionId": 1, "selectedOption": "A"},
            {"questionId": 2, "selectedOption": None},
        ],
        "timeTakenSeconds": 30,
    }
    assert server.headers[0]["authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_read_only_endpoints(server):
    async with server.client() as api:
        assert (await api.my_exams())[0]["id"] == 7
        assert (await api.my_results())[0]["score"] == 80
        assert (await api.get_result(99))["id"] == 99
        with pytest.raises(ResultsApiError) as exc_info:
            await api.get_result(1)

    assert exc_info.value.status_code == 404
