"""Text templates for reminder, escalation, and manager notifications."""

from mention_reminder.models import MentionKey


def build_reminder_text(user_id: str) -> str:
    return (
        f"<@{user_id}> friendly reminder: please reply when you get a chance "
        ":pray: (automatic reminder)"
    )


def build_escalation_text(user_id: str) -> str:
    return (
        f"<@{user_id}> this still looks unanswered. Could you share at least a "
        "rough ETA? :pray: (automatic reminder)"
    )


def build_thread_url(key: MentionKey) -> str:
    return (
        f"https://app.slack.com/client/{key.team_id}/{key.channel_id}"
        f"/thread/{key.message_ts}"
    )


def build_manager_dm_text(key: MentionKey) -> str:
    """DM to the manager naming the silent user and linking the thread."""
    return (
        f"[Escalation] <@{key.user_id}> has not replied yet. "
        f"Thread: {build_thread_url(key)}"
    )
