"""Table models for watch records and tenants."""

from sqlalchemy import BigInteger, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from mention_reminder.models import MentionRecord, Tenant
from mention_reminder.store.database import Base


class MentionRow(Base):
    """One watched (message, mentioned user) pair, keyed by "team:channel:ts:user"."""

    __tablename__ = "mentions"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    team_id: Mapped[str] = mapped_column(String(32), index=True)
    channel_id: Mapped[str] = mapped_column(String(32))
    message_ts: Mapped[str] = mapped_column(String(32))
    mentioned_user_id: Mapped[str] = mapped_column(String(32))
    created_at: Mapped[int] = mapped_column(BigInteger)
    reminded: Mapped[bool] = mapped_column(Boolean, default=False)
    escalated: Mapped[bool] = mapped_column(Boolean, default=False)

    def to_record(self) -> MentionRecord:
        return MentionRecord(
            team_id=self.team_id,
            channel_id=self.channel_id,
            message_ts=self.message_ts,
            mentioned_user_id=self.mentioned_user_id,
            created_at=self.created_at,
            reminded=self.reminded,
            escalated=self.escalated,
        )


class TenantRow(Base):
    __tablename__ = "tenants"

    team_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    credential_ref: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[int] = mapped_column(BigInteger)
    manager_user_id: Mapped[str | None] = mapped_column(String(32), nullable=True)

    def to_tenant(self) -> Tenant:
        return Tenant(
            team_id=self.team_id,
            credential_ref=self.credential_ref,
            created_at=self.created_at,
            manager_user_id=self.manager_user_id,
        )
