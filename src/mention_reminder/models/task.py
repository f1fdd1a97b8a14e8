"""Scheduler callback names and the payload carried between them."""

from enum import Enum

from pydantic import BaseModel, field_validator

from mention_reminder.models.mention import MentionKey


class CallbackName(str, Enum):
    """Delayed callbacks the orchestrator can schedule."""

    REMIND = "remind"
    ESCALATE = "escalate"


class TaskPayload(BaseModel):
    """Identity of a watch record as it travels through the scheduler.

    Wire shape: {team_id, channel_id, message_ts, user_id, parent_user_id}, all
    strings; parent_user_id is "" when the author is unknown.
    """

    team_id: str
    channel_id: str
    message_ts: str
    user_id: str
    parent_user_id: str = ""

    @field_validator("parent_user_id", mode="before")
    @classmethod
    def _null_author_is_empty(cls, value: object) -> object:
        # An unknown author travels as "", older tasks may still carry null
        return "" if value is None else value

    @property
    def key(self) -> MentionKey:
        return MentionKey(
            team_id=self.team_id,
            channel_id=self.channel_id,
            message_ts=self.message_ts,
            user_id=self.user_id,
        )
