"""Watch record model, its composite key, and derived lifecycle state."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

from mention_reminder.errors import InvalidError


class MentionState(str, Enum):
    """Lifecycle state derived from the two completion flags."""

    DETECTED = "detected"
    REMINDED = "reminded"
    ESCALATED = "escalated"


@dataclass(frozen=True)
class MentionKey:
    """Composite identity of a watch record."""

    team_id: str
    channel_id: str
    message_ts: str
    user_id: str

    def __str__(self) -> str:
        return f"{self.team_id}:{self.channel_id}:{self.message_ts}:{self.user_id}"


class MentionRecord(BaseModel):
    """A mentioned user being watched for a reply to one message."""

    team_id: str
    channel_id: str
    message_ts: str  # Slack ts of the parent message, e.g. "1234567890.123456"
    mentioned_user_id: str
    created_at: int  # epoch seconds
    reminded: bool = False
    escalated: bool = False

    @property
    def key(self) -> MentionKey:
        return MentionKey(
            team_id=self.team_id,
            channel_id=self.channel_id,
            message_ts=self.message_ts,
            user_id=self.mentioned_user_id,
        )

    @property
    def state(self) -> MentionState:
        if self.escalated:
            return MentionState.ESCALATED
        if self.reminded:
            return MentionState.REMINDED
        return MentionState.DETECTED

    def ensure_valid(self) -> None:
        """Raise InvalidError if a key field is blank or created_at is not positive."""
        for field in ("team_id", "channel_id", "message_ts", "mentioned_user_id"):
            if not getattr(self, field).strip():
                raise InvalidError(f"{field} is required")
        if self.created_at <= 0:
            raise InvalidError("created_at must be greater than 0")
