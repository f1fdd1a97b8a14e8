"""Workspace (tenant) configuration model."""

from pydantic import BaseModel

from mention_reminder.errors import InvalidError


class Tenant(BaseModel):
    """An installed Slack workspace.

    ``manager_user_id`` is None when no escalation target is configured.
    A workspace that was never installed has no Tenant at all; stores raise
    TenantNotFoundError for it instead of returning an empty model.
    """

    team_id: str
    credential_ref: str  # secret name holding the bot token
    created_at: int  # epoch seconds
    manager_user_id: str | None = None

    def ensure_valid(self) -> None:
        if not self.team_id.strip():
            raise InvalidError("team_id is required")
        if not self.credential_ref.strip():
            raise InvalidError("credential_ref is required")
        if self.created_at <= 0:
            raise InvalidError("created_at must be greater than 0")
