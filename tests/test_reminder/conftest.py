"""In-memory port doubles for orchestrator tests."""

from unittest.mock import AsyncMock

import pytest

from mention_reminder.errors import MentionNotFoundError, TenantNotFoundError
from mention_reminder.models import MentionKey, MentionRecord, Tenant
from mention_reminder.reminder import MentionLifecycleOrchestrator

REMIND_AFTER = 600
ESCALATE_AFTER = 1800


class MemoryMentionStore:
    """MentionStore keeping records in a dict, with the same upsert/flag semantics as SQL."""

    def __init__(self) -> None:
        self.records: dict[MentionKey, MentionRecord] = {}

    async def save(self, record: MentionRecord) -> None:
        record.ensure_valid()
        self.records.setdefault(record.key, record.model_copy())

    async def find(self, key: MentionKey) -> MentionRecord:
        if key not in self.records:
            raise MentionNotFoundError(str(key))
        return self.records[key].model_copy()

    async def mark_reminded(self, key: MentionKey) -> None:
        self._require(key).reminded = True

    async def mark_escalated(self, key: MentionKey) -> None:
        self._require(key).escalated = True

    def _require(self, key: MentionKey) -> MentionRecord:
        if key not in self.records:
            raise MentionNotFoundError(str(key))
        return self.records[key]


class MemoryTenantStore:
    def __init__(self) -> None:
        self.tenants: dict[str, Tenant] = {}

    async def get(self, team_id: str) -> Tenant:
        if team_id not in self.tenants:
            raise TenantNotFoundError(team_id)
        return self.tenants[team_id]

    async def set_manager(self, team_id: str, manager_user_id: str | None) -> None:
        tenant = await self.get(team_id)
        tenant.manager_user_id = manager_user_id

    async def upsert_credential_ref(self, team_id: str, credential_ref: str) -> None:
        if team_id in self.tenants:
            self.tenants[team_id].credential_ref = credential_ref
        else:
            self.tenants[team_id] = Tenant(
                team_id=team_id, credential_ref=credential_ref, created_at=1
            )


@pytest.fixture
def mentions() -> MemoryMentionStore:
    return MemoryMentionStore()


@pytest.fixture
def tenants() -> MemoryTenantStore:
    return MemoryTenantStore()


@pytest.fixture
def replies() -> AsyncMock:
    oracle = AsyncMock()
    oracle.has_replied.return_value = False
    return oracle


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def scheduler() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def orchestrator(mentions, tenants, replies, notifier, scheduler) -> MentionLifecycleOrchestrator:
    return MentionLifecycleOrchestrator(
        mentions=mentions,
        tenants=tenants,
        replies=replies,
        notifier=notifier,
        scheduler=scheduler,
        remind_after_seconds=REMIND_AFTER,
        escalate_after_seconds=ESCALATE_AFTER,
    )
