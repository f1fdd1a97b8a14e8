"""Tests for the Cloud Tasks scheduler (mocked httpx client)."""

import base64
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from mention_reminder.errors import ScheduleError
from mention_reminder.gcp.tasks import (
    CloudTasksScheduler,
    _is_retryable,
    build_task_id,
    format_schedule_time,
)
from mention_reminder.models import CallbackName, TaskPayload

PAYLOAD = TaskPayload(
    team_id="T1", channel_id="C1", message_ts="100.0", user_id="U9", parent_user_id="U1"
)
QUEUE_URL = (
    "https://cloudtasks.googleapis.com/v2/projects/proj/locations/asia-northeast1"
    "/queues/remind-queue/tasks"
)


def _response(status_code: int, body: dict | None = None) -> httpx.Response:
    return httpx.Response(
        status_code,
        json=body or {},
        request=httpx.Request("POST", QUEUE_URL),
    )


def _scheduler(http: AsyncMock, service_account: str = "") -> CloudTasksScheduler:
    tokens = MagicMock()
    tokens.auth_headers = AsyncMock(return_value={"Authorization": "Bearer tkn"})
    return CloudTasksScheduler(
        http,
        tokens,
        project="proj",
        region="asia-northeast1",
        queues={CallbackName.REMIND: "remind-queue", CallbackName.ESCALATE: "escalate-queue"},
        audience="https://reminder.example.run.app/",
        service_account=service_account,
        scheduler_secret="s3cret",
    )


@pytest.fixture
def no_backoff():
    with patch("asyncio.sleep", new_callable=AsyncMock):
        yield


def test_task_id_is_deterministic_per_callback():
    assert build_task_id(CallbackName.REMIND, PAYLOAD) == build_task_id(
        CallbackName.REMIND, PAYLOAD.model_copy(update={"parent_user_id": ""})
    )
    assert build_task_id(CallbackName.REMIND, PAYLOAD) != build_task_id(
        CallbackName.ESCALATE, PAYLOAD
    )
    assert build_task_id(CallbackName.REMIND, PAYLOAD).startswith("remind-")


def test_format_schedule_time():
    assert format_schedule_time(1600) == "1970-01-01T00:26:40Z"


def test_build_task_targets_callback_endpoint():
    task = _scheduler(AsyncMock()).build_task(1600, CallbackName.ESCALATE, PAYLOAD)

    request = task["httpRequest"]
    assert request["url"] == "https://reminder.example.run.app/check/escalate"
    assert request["httpMethod"] == "POST"
    assert request["headers"]["X-Scheduler-Secret"] == "s3cret"
    assert json.loads(base64.b64decode(request["body"])) == PAYLOAD.model_dump()
    assert task["scheduleTime"] == "1970-01-01T00:26:40Z"
    assert task["name"].startswith(
        "projects/proj/locations/asia-northeast1/queues/escalate-queue/tasks/escalate-"
    )
    assert "oidcToken" not in request


def test_build_task_with_service_account_adds_oidc_token():
    task = _scheduler(AsyncMock(), service_account="tasks@proj.iam.gserviceaccount.com").build_task(
        1600, CallbackName.REMIND, PAYLOAD
    )

    assert task["httpRequest"]["oidcToken"] == {
        "serviceAccountEmail": "tasks@proj.iam.gserviceaccount.com",
        "audience": "https://reminder.example.run.app",
    }


async def test_schedule_at_posts_task():
    http = AsyncMock()
    http.post.return_value = _response(200)

    await _scheduler(http).schedule_at(1600, CallbackName.REMIND, PAYLOAD)

    http.post.assert_awaited_once()
    assert http.post.await_args.args[0] == QUEUE_URL
    assert http.post.await_args.kwargs["headers"] == {"Authorization": "Bearer tkn"}
    assert http.post.await_args.kwargs["json"]["task"]["scheduleTime"] == "1970-01-01T00:26:40Z"


async def test_schedule_at_existing_task_is_success():
    """409 ALREADY_EXISTS means a redelivered event already scheduled this callback."""
    http = AsyncMock()
    http.post.return_value = _response(409)

    await _scheduler(http).schedule_at(1600, CallbackName.REMIND, PAYLOAD)

    http.post.assert_awaited_once()


async def test_schedule_at_client_error_raises_without_retry():
    http = AsyncMock()
    http.post.return_value = _response(400, {"error": {"message": "bad queue"}})

    with pytest.raises(ScheduleError, match="status=400"):
        await _scheduler(http).schedule_at(1600, CallbackName.REMIND, PAYLOAD)
    http.post.assert_awaited_once()


async def test_schedule_at_retries_server_errors(no_backoff):
    http = AsyncMock()
    http.post.side_effect = [_response(503), _response(200)]

    await _scheduler(http).schedule_at(1600, CallbackName.REMIND, PAYLOAD)

    assert http.post.await_count == 2


async def test_schedule_at_gives_up_after_three_attempts(no_backoff):
    http = AsyncMock()
    http.post.return_value = _response(503)

    with pytest.raises(ScheduleError, match="status=503"):
        await _scheduler(http).schedule_at(1600, CallbackName.REMIND, PAYLOAD)
    assert http.post.await_count == 3


async def test_schedule_at_transport_error(no_backoff):
    http = AsyncMock()
    http.post.side_effect = httpx.ConnectError("connection refused")

    with pytest.raises(ScheduleError, match="unreachable"):
        await _scheduler(http).schedule_at(1600, CallbackName.REMIND, PAYLOAD)
    assert http.post.await_count == 3


async def test_schedule_at_refetches_token_after_401():
    http = AsyncMock()
    http.post.side_effect = [_response(401), _response(200)]
    scheduler = _scheduler(http)

    await scheduler.schedule_at(1600, CallbackName.REMIND, PAYLOAD)

    assert http.post.await_count == 2
    scheduler._tokens.invalidate.assert_called_once()
    assert scheduler._tokens.auth_headers.await_count == 2


async def test_schedule_at_second_401_raises():
    http = AsyncMock()
    http.post.return_value = _response(401)

    with pytest.raises(ScheduleError, match="status=401"):
        await _scheduler(http).schedule_at(1600, CallbackName.REMIND, PAYLOAD)
    assert http.post.await_count == 2


# --- _is_retryable tests ---


@pytest.mark.parametrize(
    "status_code, expected",
    [(429, True), (500, True), (503, True), (400, False), (403, False)],
)
def test_is_retryable_status(status_code: int, expected: bool):
    response = _response(status_code)
    error = httpx.HTTPStatusError("failed", request=response.request, response=response)
    assert _is_retryable(error) is expected


def test_is_retryable_transport_error():
    assert _is_retryable(httpx.ReadTimeout("timed out")) is True


def test_is_retryable_other_error():
    assert _is_retryable(ValueError("boom")) is False
