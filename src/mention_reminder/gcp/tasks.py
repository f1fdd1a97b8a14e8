"""Cloud Tasks scheduler for the remind and escalate callbacks.

Creates HTTP tasks through the Cloud Tasks REST API. Task names are derived
from (callback, watch record key), so a redelivered Slack event cannot
enqueue the same callback twice: Cloud Tasks answers 409 ALREADY_EXISTS,
which is treated as success.
"""

import base64
import hashlib
import logging
from datetime import datetime, timezone

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from mention_reminder.errors import ScheduleError
from mention_reminder.gcp.auth import MetadataTokenProvider, send_authorized
from mention_reminder.models import CallbackName, TaskPayload

logger = logging.getLogger(__name__)

CLOUD_TASKS_API = "https://cloudtasks.googleapis.com/v2"


def _is_retryable(error: BaseException) -> bool:
    """Network failures, rate limits (429) and server errors (5xx) are transient."""
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    return False


def build_task_id(callback: CallbackName, payload: TaskPayload) -> str:
    """Deterministic task id: letters, digits and hyphens only."""
    digest = hashlib.sha256(str(payload.key).encode("utf-8")).hexdigest()
    return f"{callback.value}-{digest}"


def format_schedule_time(run_at: int) -> str:
    return datetime.fromtimestamp(run_at, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class CloudTasksScheduler:
    """SchedulerPort that posts the task payload back to /check/<callback>."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        tokens: MetadataTokenProvider,
        *,
        project: str,
        region: str,
        queues: dict[CallbackName, str],
        audience: str,
        service_account: str = "",
        scheduler_secret: str = "",
    ) -> None:
        self._http = http
        self._tokens = tokens
        self._project = project
        self._region = region
        self._queues = queues
        self._audience = audience.rstrip("/")
        self._service_account = service_account
        self._scheduler_secret = scheduler_secret

    def _queue_path(self, callback: CallbackName) -> str:
        return (
            f"projects/{self._project}/locations/{self._region}"
            f"/queues/{self._queues[callback]}"
        )

    def build_task(self, run_at: int, callback: CallbackName, payload: TaskPayload) -> dict:
        """Build the Cloud Tasks ``Task`` resource for one callback."""
        body = payload.model_dump_json().encode("utf-8")
        http_request: dict = {
            "url": f"{self._audience}/check/{callback.value}",
            "httpMethod": "POST",
            "headers": {
                "Content-Type": "application/json",
                "X-Scheduler-Secret": self._scheduler_secret,
            },
            "body": base64.b64encode(body).decode("ascii"),
        }
        if self._service_account:
            http_request["oidcToken"] = {
                "serviceAccountEmail": self._service_account,
                "audience": self._audience,
            }
        return {
            "name": f"{self._queue_path(callback)}/tasks/{build_task_id(callback, payload)}",
            "scheduleTime": format_schedule_time(run_at),
            "httpRequest": http_request,
        }

    async def schedule_at(
        self, run_at: int, callback: CallbackName, payload: TaskPayload
    ) -> None:
        task = self.build_task(run_at, callback, payload)
        try:
            await self._create_task(self._queue_path(callback), task)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 409:
                logger.info(
                    "Task %s already exists", task["name"],
                    extra={"mention_key": str(payload.key)},
                )
                return
            raise ScheduleError(
                f"Cloud Tasks rejected {callback.value} task "
                f"(status={exc.response.status_code}): {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ScheduleError(f"Cloud Tasks unreachable for {callback.value} task: {exc}") from exc

        logger.info(
            "Scheduled %s callback at %s", callback.value, task["scheduleTime"],
            extra={"mention_key": str(payload.key)},
        )

    @retry(
        retry=retry_if_exception(_is_retryable),
        wait=wait_exponential_jitter(initial=0.5, max=5, jitter=1),
        stop=stop_after_attempt(3),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _create_task(self, queue_path: str, task: dict) -> None:
        response = await send_authorized(
            self._tokens,
            lambda headers: self._http.post(
                f"{CLOUD_TASKS_API}/{queue_path}/tasks", json={"task": task}, headers=headers
            ),
        )
        response.raise_for_status()
