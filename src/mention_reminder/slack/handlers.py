"""Slack event dispatch and mention event construction."""

import logging
import time
from collections.abc import Callable
from enum import Enum

from fastapi import BackgroundTasks
from fastapi.responses import JSONResponse

from mention_reminder.errors import ReminderError
from mention_reminder.models import MentionEvent
from mention_reminder.reminder import MentionLifecycleOrchestrator

logger = logging.getLogger(__name__)


class SlackEventType(str, Enum):
    """Inner event types the app subscribes to."""

    APP_MENTION = "app_mention"
    MESSAGE = "message"


def handle_slack_event(
    payload: dict,
    background_tasks: BackgroundTasks,
    orchestrator: MentionLifecycleOrchestrator,
) -> JSONResponse:
    """Dispatch a Slack event based on its type.

    - url_verification: return the challenge token
    - event_callback: process the contained event
    - anything else: acknowledge with 200
    """
    if payload.get("type") == "url_verification":
        return JSONResponse({"challenge": payload.get("challenge", "")})

    if payload.get("type") == "event_callback":
        handle_event_callback(payload, background_tasks, orchestrator)

    return JSONResponse({"ok": True})


def handle_event_callback(
    payload: dict,
    background_tasks: BackgroundTasks,
    orchestrator: MentionLifecycleOrchestrator,
) -> None:
    """Route the inner event to its handler.

    Unknown event types and bot-authored messages are dropped.
    """
    event = payload.get("event", {})

    try:
        event_type = SlackEventType(event.get("type"))
    except ValueError:
        logger.debug("Ignoring unsubscribed event type %s", event.get("type"))
        return

    if event.get("bot_id") or event.get("subtype") == "bot_message":
        return

    _EVENT_HANDLERS[event_type](payload, event, background_tasks, orchestrator)


def _on_app_mention(
    payload: dict,
    event: dict,
    background_tasks: BackgroundTasks,
    orchestrator: MentionLifecycleOrchestrator,
) -> None:
    mention = build_mention_event(payload, event, now=int(time.time()))
    logger.info(
        "Dispatching mention from user %s in channel %s",
        mention.parent_user_id,
        mention.channel_id,
    )
    background_tasks.add_task(process_mention, orchestrator, mention)


def _on_message(
    payload: dict,
    event: dict,
    background_tasks: BackgroundTasks,
    orchestrator: MentionLifecycleOrchestrator,
) -> None:
    # Replies are detected by reading the thread when a check fires
    return


_EVENT_HANDLERS: dict[SlackEventType, Callable[..., None]] = {
    SlackEventType.APP_MENTION: _on_app_mention,
    SlackEventType.MESSAGE: _on_message,
}


def find_bot_user_id(payload: dict) -> str:
    """Return the bot's user id from the event's authorizations, or ""."""
    for authorization in payload.get("authorizations") or []:
        if authorization.get("is_bot"):
            return authorization.get("user_id", "")
    return ""


def build_mention_event(payload: dict, event: dict, now: int) -> MentionEvent:
    """Extract the fields the orchestrator needs from an app_mention callback."""
    return MentionEvent(
        team_id=payload.get("team_id", ""),
        channel_id=event.get("channel", ""),
        message_ts=event.get("ts", ""),
        text=event.get("text", ""),
        bot_user_id=find_bot_user_id(payload),
        parent_user_id=event.get("user", ""),
        now=now,
    )


async def process_mention(
    orchestrator: MentionLifecycleOrchestrator, mention: MentionEvent
) -> None:
    """Run on_mention after Slack has been acknowledged.

    Failures are logged only: Slack would redeliver the whole event on a
    non-2xx, and the response has already been sent.
    """
    try:
        await orchestrator.on_mention(mention)
    except ReminderError:
        logger.error(
            "Failed to watch mention %s in channel %s",
            mention.message_ts,
            mention.channel_id,
            exc_info=True,
        )
