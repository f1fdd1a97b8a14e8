"""Mention lifecycle core: extraction, port contracts, and the remind/escalate state machine.

Public API:
    MentionLifecycleOrchestrator(...).on_mention(event)
    MentionLifecycleOrchestrator(...).check_remind(payload)
    MentionLifecycleOrchestrator(...).check_escalate(payload)
"""

from mention_reminder.reminder.mentions import extract_mentions
from mention_reminder.reminder.orchestrator import MentionLifecycleOrchestrator
from mention_reminder.reminder.ports import (
    MentionStore,
    NotificationPort,
    ReplyOracle,
    SchedulerPort,
    SecretStore,
    TenantStore,
)

__all__ = [
    "extract_mentions",
    "MentionLifecycleOrchestrator",
    "MentionStore",
    "NotificationPort",
    "ReplyOracle",
    "SchedulerPort",
    "SecretStore",
    "TenantStore",
]
