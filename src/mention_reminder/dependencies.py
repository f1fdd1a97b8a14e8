"""Service wiring for the FastAPI app.

The lifespan builds one Services bundle and stores it on ``app.state``;
route dependencies read it back from the request. Tests replace individual
getters through ``app.dependency_overrides``.
"""

from dataclasses import dataclass

import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from mention_reminder.config import Settings
from mention_reminder.gcp import CloudTasksScheduler, MetadataTokenProvider, SecretManagerStore
from mention_reminder.models import CallbackName
from mention_reminder.reminder import MentionLifecycleOrchestrator, SecretStore, TenantStore
from mention_reminder.slack.client import SlackClientCache
from mention_reminder.slack.notifier import SlackNotifier
from mention_reminder.slack.replies import SlackReplyOracle
from mention_reminder.slack.users import SlackUserDirectory
from mention_reminder.store import SqlMentionStore, SqlTenantStore


@dataclass
class Services:
    orchestrator: MentionLifecycleOrchestrator
    tenants: TenantStore
    secrets: SecretStore
    clients: SlackClientCache
    users: SlackUserDirectory


def build_services(settings: Settings, engine: AsyncEngine, http: httpx.AsyncClient) -> Services:
    """Construct the stores, Google Cloud adapters, Slack adapters and orchestrator."""
    tokens = MetadataTokenProvider(http)
    secrets = SecretManagerStore(http, tokens, project=settings.gcp_project)
    tenants = SqlTenantStore(engine)
    clients = SlackClientCache(tenants, secrets)
    scheduler = CloudTasksScheduler(
        http,
        tokens,
        project=settings.gcp_project,
        region=settings.region,
        queues={
            CallbackName.REMIND: settings.tasks_queue_remind,
            CallbackName.ESCALATE: settings.tasks_queue_escalate,
        },
        audience=settings.tasks_audience,
        service_account=settings.tasks_service_account,
        scheduler_secret=settings.scheduler_secret,
    )
    orchestrator = MentionLifecycleOrchestrator(
        mentions=SqlMentionStore(engine),
        tenants=tenants,
        replies=SlackReplyOracle(clients),
        notifier=SlackNotifier(clients),
        scheduler=scheduler,
        remind_after_seconds=settings.remind_after_seconds,
        escalate_after_seconds=settings.escalate_after_seconds,
    )
    return Services(
        orchestrator=orchestrator,
        tenants=tenants,
        secrets=secrets,
        clients=clients,
        users=SlackUserDirectory(clients),
    )


def _services(request: Request) -> Services:
    return request.app.state.services


def get_orchestrator(request: Request) -> MentionLifecycleOrchestrator:
    return _services(request).orchestrator


def get_tenant_store(request: Request) -> TenantStore:
    return _services(request).tenants


def get_secret_store(request: Request) -> SecretStore:
    return _services(request).secrets


def get_client_cache(request: Request) -> SlackClientCache:
    return _services(request).clients


def get_user_directory(request: Request) -> SlackUserDirectory:
    return _services(request).users
