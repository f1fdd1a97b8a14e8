"""Scheduler callback endpoints: /check/remind and /check/escalate.

Cloud Tasks retries a task on any non-2xx response, so failures that a
retry may fix (Slack, store, timeout) answer 503, and stale or duplicate
deliveries answer 200 through the orchestrator's no-op paths. A malformed body
also answers 200, after an error log, since redelivering it cannot help.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from mention_reminder.config import get_settings
from mention_reminder.dependencies import get_orchestrator
from mention_reminder.errors import ReminderError
from mention_reminder.models import CallbackName, TaskPayload
from mention_reminder.reminder import MentionLifecycleOrchestrator

logger = logging.getLogger(__name__)


async def verify_scheduler(request: Request) -> None:
    """Verify the scheduler secret header for protected endpoints.

    Compares the X-Scheduler-Secret header against the configured secret.
    Raises HTTPException 403 if the header is missing, empty, or mismatched.
    """
    settings = get_settings()
    secret = request.headers.get("X-Scheduler-Secret", "")
    if not settings.scheduler_secret or secret != settings.scheduler_secret:
        raise HTTPException(status_code=403, detail="Invalid scheduler secret")


router = APIRouter(prefix="/check", tags=["callbacks"], dependencies=[Depends(verify_scheduler)])


@router.post("/remind")
async def check_remind(
    request: Request,
    orchestrator: MentionLifecycleOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Reminder check, fired remind_after_seconds after the mention."""
    return await run_check(CallbackName.REMIND, orchestrator.check_remind, await request.body())


@router.post("/escalate")
async def check_escalate(
    request: Request,
    orchestrator: MentionLifecycleOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Escalation check, fired escalate_after_seconds after the mention."""
    return await run_check(CallbackName.ESCALATE, orchestrator.check_escalate, await request.body())


async def run_check(
    callback: CallbackName,
    check: Callable[[TaskPayload], Awaitable[None]],
    body: bytes,
) -> JSONResponse:
    """Run one check under the configured deadline and map the outcome to a status code.

    A body that is not a valid TaskPayload can never succeed, so it is logged
    and acknowledged with 200 to keep Cloud Tasks from redelivering it.
    """
    try:
        payload = TaskPayload.model_validate_json(body)
    except ValidationError as exc:
        logger.error(
            "Dropping malformed %s callback: %s", callback.value,
            exc.errors(include_url=False, include_input=False),
        )
        return JSONResponse({"status": "ignored", "error": "malformed payload"})

    timeout = get_settings().check_timeout_seconds
    try:
        async with asyncio.timeout(timeout):
            await check(payload)
    except TimeoutError:
        logger.error(
            "%s check timed out after %ss", callback.value, timeout,
            extra={"mention_key": str(payload.key)},
        )
        return JSONResponse(
            {"status": "error", "error": f"{callback.value} check timed out"}, status_code=503
        )
    except ReminderError as exc:
        logger.error(
            "%s check failed", callback.value,
            extra={"mention_key": str(payload.key)},
            exc_info=True,
        )
        return JSONResponse({"status": "error", "error": str(exc)}, status_code=503)

    return JSONResponse({"status": "ok"})
