"""Mention event model with fields extracted from a Slack app_mention callback."""

from pydantic import BaseModel


class MentionEvent(BaseModel):
    """An inbound mention, stripped of the raw Slack envelope."""

    team_id: str
    channel_id: str
    message_ts: str  # Slack message ts, e.g., "1234567890.123456"
    text: str
    bot_user_id: str  # excluded from the mentioned users
    parent_user_id: str  # author of the message
    now: int  # epoch seconds at receipt
