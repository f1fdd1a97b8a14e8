"""Data models for watch records, tenants, and scheduler payloads."""

from mention_reminder.models.mention import MentionKey, MentionRecord, MentionState
from mention_reminder.models.slack import MentionEvent
from mention_reminder.models.task import CallbackName, TaskPayload
from mention_reminder.models.tenant import Tenant

__all__ = [
    "MentionEvent",
    "MentionKey",
    "MentionRecord",
    "MentionState",
    "CallbackName",
    "TaskPayload",
    "Tenant",
]
