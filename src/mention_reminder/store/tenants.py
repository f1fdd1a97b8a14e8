"""SQL implementation of the tenant store."""

import time

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine

from mention_reminder.errors import TenantNotFoundError
from mention_reminder.models import Tenant
from mention_reminder.store.database import create_session_maker, dialect_insert, transaction
from mention_reminder.store.tables import TenantRow


class SqlTenantStore:
    """TenantStore backed by the ``tenants`` table."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._sessions = create_session_maker(engine)
        self._insert = dialect_insert(engine)

    async def get(self, team_id: str) -> Tenant:
        async with transaction(self._sessions, f"get tenant {team_id}") as session:
            row = await session.get(TenantRow, team_id)
            if row is None:
                raise TenantNotFoundError(team_id)
            return row.to_tenant()

    async def set_manager(self, team_id: str, manager_user_id: str | None) -> None:
        """Set the escalation target, or clear it with None."""
        async with transaction(self._sessions, f"set manager for {team_id}") as session:
            result = await session.execute(
                update(TenantRow)
                .where(TenantRow.team_id == team_id)
                .values(manager_user_id=manager_user_id)
            )
            if result.rowcount == 0:
                raise TenantNotFoundError(team_id)

    async def upsert_credential_ref(self, team_id: str, credential_ref: str) -> None:
        """Register a workspace or point it at a new credential.

        created_at and the manager of an existing tenant are left as they are.
        """
        tenant = Tenant(
            team_id=team_id,
            credential_ref=credential_ref,
            created_at=int(time.time()),
        )
        tenant.ensure_valid()
        stmt = (
            self._insert(TenantRow)
            .values(
                team_id=tenant.team_id,
                credential_ref=tenant.credential_ref,
                created_at=tenant.created_at,
            )
            .on_conflict_do_update(
                index_elements=[TenantRow.team_id],
                set_={"credential_ref": tenant.credential_ref},
            )
        )
        async with transaction(self._sessions, f"upsert tenant {team_id}") as session:
            await session.execute(stmt)
