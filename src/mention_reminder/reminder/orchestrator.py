"""Mention lifecycle: watch on mention, remind after the first window, escalate after the second.

Each watch record moves detected -> reminded -> escalated and never back.
Flags record "action taken", not "check performed": when the mentioned user
has replied, a check returns without touching the flag, and the escalate
check always re-queries reply state instead of trusting the remind check.

Callbacks arrive at-least-once and possibly out of order. Safety rests on
the store's atomic upsert/flag writes and on every step being idempotent:
- missing record            -> stale callback, success
- flag already set          -> duplicate delivery, success
- escalated already set     -> terminal, remind is skipped too
- notification failure      -> propagate, flag stays unset, scheduler retries
- flag write failure        -> FlagWriteError, distinct from "missing record"
"""

import logging
from collections.abc import Awaitable, Callable

from mention_reminder.errors import (
    FlagWriteError,
    MentionNotFoundError,
    PersistenceError,
    TenantNotFoundError,
)
from mention_reminder.models import (
    CallbackName,
    MentionEvent,
    MentionKey,
    MentionRecord,
    TaskPayload,
    Tenant,
)
from mention_reminder.reminder.mentions import extract_mentions
from mention_reminder.reminder.messages import (
    build_escalation_text,
    build_manager_dm_text,
    build_reminder_text,
)
from mention_reminder.reminder.ports import (
    MentionStore,
    NotificationPort,
    ReplyOracle,
    SchedulerPort,
    TenantStore,
)

logger = logging.getLogger(__name__)


class MentionLifecycleOrchestrator:
    """Stateless coordinator for the three entry points: on_mention, check_remind, check_escalate."""

    def __init__(
        self,
        mentions: MentionStore,
        tenants: TenantStore,
        replies: ReplyOracle,
        notifier: NotificationPort,
        scheduler: SchedulerPort,
        remind_after_seconds: int,
        escalate_after_seconds: int,
    ) -> None:
        if escalate_after_seconds <= remind_after_seconds:
            raise ValueError("escalate window must be longer than remind window")
        self._mentions = mentions
        self._tenants = tenants
        self._replies = replies
        self._notifier = notifier
        self._scheduler = scheduler
        self._remind_after = remind_after_seconds
        self._escalate_after = escalate_after_seconds

    async def on_mention(self, event: MentionEvent) -> None:
        """Persist a watch record and schedule both checks for every mentioned user.

        A failure aborts the remaining users and propagates. Users already
        processed keep their records and tasks.
        """
        user_ids = extract_mentions(event.text, event.bot_user_id)
        if not user_ids:
            return

        for user_id in user_ids:
            record = MentionRecord(
                team_id=event.team_id,
                channel_id=event.channel_id,
                message_ts=event.message_ts,
                mentioned_user_id=user_id,
                created_at=event.now,
            )
            record.ensure_valid()
            await self._mentions.save(record)

            payload = TaskPayload(
                team_id=event.team_id,
                channel_id=event.channel_id,
                message_ts=event.message_ts,
                user_id=user_id,
                parent_user_id=event.parent_user_id,
            )
            await self._scheduler.schedule_at(
                event.now + self._remind_after, CallbackName.REMIND, payload
            )
            await self._scheduler.schedule_at(
                event.now + self._escalate_after, CallbackName.ESCALATE, payload
            )
            logger.info("Watching mention", extra={"mention_key": str(record.key)})

    async def check_remind(self, payload: TaskPayload) -> None:
        """Post an in-thread reminder if the mentioned user has not replied."""
        key = payload.key
        record = await self._find(key, CallbackName.REMIND)
        if record is None:
            return
        if record.reminded or record.escalated:
            logger.debug(
                "Skipping remind callback in state %s", record.state.value,
                extra={"mention_key": str(key)},
            )
            return

        if await self._has_replied(key):
            logger.info("Reply found, skipping reminder", extra={"mention_key": str(key)})
            return

        await self._notifier.post_to_thread(
            key.team_id, key.channel_id, key.message_ts, build_reminder_text(key.user_id)
        )
        await self._mark(self._mentions.mark_reminded, key, CallbackName.REMIND)
        logger.info("Reminder sent", extra={"mention_key": str(key)})

    async def check_escalate(self, payload: TaskPayload) -> None:
        """Re-notify in thread and DM the tenant's manager if the user still has not replied."""
        key = payload.key
        record = await self._find(key, CallbackName.ESCALATE)
        if record is None:
            return
        if record.escalated:
            logger.debug(
                "Skipping escalate callback in state %s", record.state.value,
                extra={"mention_key": str(key)},
            )
            return

        if await self._has_replied(key):
            logger.info("Reply found, skipping escalation", extra={"mention_key": str(key)})
            return

        await self._notifier.post_to_thread(
            key.team_id, key.channel_id, key.message_ts, build_escalation_text(key.user_id)
        )

        tenant = await self._find_tenant(key.team_id)
        if tenant is not None and tenant.manager_user_id:
            await self._notifier.post_direct(
                key.team_id, tenant.manager_user_id, build_manager_dm_text(key)
            )

        await self._mark(self._mentions.mark_escalated, key, CallbackName.ESCALATE)
        logger.info("Escalation sent", extra={"mention_key": str(key)})

    async def _find(self, key: MentionKey, callback: CallbackName) -> MentionRecord | None:
        try:
            return await self._mentions.find(key)
        except MentionNotFoundError:
            logger.info(
                "Stale %s callback, no watch record", callback.value,
                extra={"mention_key": str(key)},
            )
            return None

    async def _has_replied(self, key: MentionKey) -> bool:
        # Replies are looked up from the parent message onward
        return await self._replies.has_replied(
            key.team_id, key.channel_id, key.message_ts, key.user_id, key.message_ts
        )

    async def _find_tenant(self, team_id: str) -> Tenant | None:
        try:
            return await self._tenants.get(team_id)
        except TenantNotFoundError:
            logger.info("Tenant %s not registered, skipping manager DM", team_id)
            return None

    async def _mark(
        self,
        mark: Callable[[MentionKey], Awaitable[None]],
        key: MentionKey,
        callback: CallbackName,
    ) -> None:
        """Set a completion flag after the notification went out."""
        try:
            await mark(key)
        except MentionNotFoundError:
            logger.info(
                "Watch record removed before %s flag was set", callback.value,
                extra={"mention_key": str(key)},
            )
        except PersistenceError as exc:
            logger.error(
                "Failed to set %s flag after notifying; a retry will notify again",
                callback.value,
                extra={"mention_key": str(key)},
                exc_info=True,
            )
            raise FlagWriteError(f"could not mark {callback.value} for {key}") from exc
