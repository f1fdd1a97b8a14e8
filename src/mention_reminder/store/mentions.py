"""SQL implementation of the watch record store.

save() is INSERT ... ON CONFLICT DO NOTHING, so repeating it never resets
a flag or moves created_at. Each flag is a single-column UPDATE, atomic per
row. Flag writes happen after a notification was sent, so transient
OperationalErrors are retried before the failure is surfaced.
"""

import logging

from sqlalchemy import update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from mention_reminder.errors import MentionNotFoundError, PersistenceError
from mention_reminder.models import MentionKey, MentionRecord
from mention_reminder.store.database import create_session_maker, dialect_insert, transaction
from mention_reminder.store.tables import MentionRow

logger = logging.getLogger(__name__)


class SqlMentionStore:
    """MentionStore backed by the ``mentions`` table."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._sessions = create_session_maker(engine)
        self._insert = dialect_insert(engine)

    async def save(self, record: MentionRecord) -> None:
        record.ensure_valid()
        stmt = (
            self._insert(MentionRow)
            .values(
                key=str(record.key),
                team_id=record.team_id,
                channel_id=record.channel_id,
                message_ts=record.message_ts,
                mentioned_user_id=record.mentioned_user_id,
                created_at=record.created_at,
                reminded=record.reminded,
                escalated=record.escalated,
            )
            .on_conflict_do_nothing(index_elements=[MentionRow.key])
        )
        async with transaction(self._sessions, f"save mention {record.key}") as session:
            await session.execute(stmt)

    async def find(self, key: MentionKey) -> MentionRecord:
        async with transaction(self._sessions, f"find mention {key}") as session:
            row = await session.get(MentionRow, str(key))
            if row is None:
                raise MentionNotFoundError(str(key))
            return row.to_record()

    async def mark_reminded(self, key: MentionKey) -> None:
        await self._mark(key, "reminded")

    async def mark_escalated(self, key: MentionKey) -> None:
        await self._mark(key, "escalated")

    async def _mark(self, key: MentionKey, flag: str) -> None:
        try:
            matched = await self._update_flag(str(key), flag)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"set {flag} on {key} failed: {exc}") from exc
        if matched == 0:
            raise MentionNotFoundError(str(key))

    @retry(
        retry=retry_if_exception_type(OperationalError),
        wait=wait_exponential_jitter(initial=0.2, max=2, jitter=0.5),
        stop=stop_after_attempt(3),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _update_flag(self, key: str, flag: str) -> int:
        """Set one boolean column to true and return the number of matched rows."""
        async with self._sessions.begin() as session:
            result = await session.execute(
                update(MentionRow).where(MentionRow.key == key).values({flag: True})
            )
            return result.rowcount
