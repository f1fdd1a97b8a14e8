"""Interfaces the orchestrator consumes.

Every implementation raises mention_reminder.errors subclasses, never the
underlying library's exceptions. NotFound conditions are raised as
MentionNotFoundError / TenantNotFoundError and must never be used for
transient failures.
"""

from typing import Protocol

from mention_reminder.models import CallbackName, MentionKey, MentionRecord, TaskPayload, Tenant


class MentionStore(Protocol):
    """Persistence for watch records. Upsert and flag updates are atomic per record."""

    async def save(self, record: MentionRecord) -> None:
        """Insert the record if its key is new; otherwise leave the stored one untouched.

        Raises InvalidError for malformed records.
        """
        ...

    async def find(self, key: MentionKey) -> MentionRecord:
        """Raises MentionNotFoundError if no record exists."""
        ...

    async def mark_reminded(self, key: MentionKey) -> None:
        """Set reminded=true. No-op if already set. Raises MentionNotFoundError."""
        ...

    async def mark_escalated(self, key: MentionKey) -> None:
        """Set escalated=true. No-op if already set. Raises MentionNotFoundError."""
        ...


class TenantStore(Protocol):
    async def get(self, team_id: str) -> Tenant:
        """Raises TenantNotFoundError if the workspace is not installed."""
        ...

    async def set_manager(self, team_id: str, manager_user_id: str | None) -> None:
        """Set or clear (None) the manager. Raises TenantNotFoundError."""
        ...

    async def upsert_credential_ref(self, team_id: str, credential_ref: str) -> None:
        """Create or update the tenant, preserving created_at. Raises InvalidError."""
        ...


class ReplyOracle(Protocol):
    async def has_replied(
        self, team_id: str, channel_id: str, parent_ts: str, user_id: str, since_ts: str
    ) -> bool:
        """Whether user_id posted in the thread after since_ts. Raises ReplyCheckError."""
        ...


class NotificationPort(Protocol):
    async def post_to_thread(
        self, team_id: str, channel_id: str, parent_ts: str, text: str
    ) -> None:
        """Raises NotifyError."""
        ...

    async def post_direct(self, team_id: str, user_id: str, text: str) -> None:
        """Raises NotifyError."""
        ...


class SchedulerPort(Protocol):
    async def schedule_at(
        self, run_at: int, callback: CallbackName, payload: TaskPayload
    ) -> None:
        """Deliver payload to callback at epoch second run_at. Raises ScheduleError."""
        ...


class SecretStore(Protocol):
    async def get(self, name: str) -> str:
        """Raises CredentialError."""
        ...

    async def put(self, name: str, value: str) -> None:
        """Raises CredentialError."""
        ...
