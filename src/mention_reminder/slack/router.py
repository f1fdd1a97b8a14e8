"""Slack webhook router: events, slash commands, and the OAuth redirect."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse

from mention_reminder.config import Settings, get_settings
from mention_reminder.dependencies import (
    get_client_cache,
    get_orchestrator,
    get_secret_store,
    get_tenant_store,
    get_user_directory,
)
from mention_reminder.errors import ChatPlatformError, ReminderError
from mention_reminder.reminder import MentionLifecycleOrchestrator, SecretStore, TenantStore
from mention_reminder.slack.client import SlackClientCache
from mention_reminder.slack.commands import handle_slash_command
from mention_reminder.slack.handlers import handle_slack_event
from mention_reminder.slack.oauth import INSTALL_SUCCESS_HTML, complete_install
from mention_reminder.slack.users import SlackUserDirectory
from mention_reminder.slack.verification import verify_slack_form, verify_slack_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["slack"])


@router.post("/slack/events")
async def slack_events(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: dict = Depends(verify_slack_request),
    orchestrator: MentionLifecycleOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Receive Slack webhook events.

    Slack retries (X-Slack-Retry-Num header) are acknowledged immediately
    to prevent duplicate processing.
    """
    if request.headers.get("X-Slack-Retry-Num"):
        return JSONResponse({"ok": True})

    return handle_slack_event(payload, background_tasks, orchestrator)


@router.post("/slack/commands")
async def slack_commands(
    form: dict[str, str] = Depends(verify_slack_form),
    tenants: TenantStore = Depends(get_tenant_store),
    users: SlackUserDirectory = Depends(get_user_directory),
) -> JSONResponse:
    """Receive manager slash commands."""
    return await handle_slash_command(form, tenants, users)


@router.get("/slack/oauth_redirect")
async def slack_oauth_redirect(
    code: str = "",
    settings: Settings = Depends(get_settings),
    secrets: SecretStore = Depends(get_secret_store),
    tenants: TenantStore = Depends(get_tenant_store),
    clients: SlackClientCache = Depends(get_client_cache),
) -> HTMLResponse:
    """Finish the OAuth v2 install flow."""
    if not code:
        return HTMLResponse("Missing code parameter", status_code=400)

    try:
        await complete_install(code, settings, secrets, tenants, clients)
    except ChatPlatformError:
        logger.warning("OAuth code exchange failed", exc_info=True)
        return HTMLResponse("Installation failed: could not exchange code", status_code=400)
    except ReminderError:
        logger.error("Failed to store installation", exc_info=True)
        return HTMLResponse("Installation failed: could not save credentials", status_code=500)

    return HTMLResponse(INSTALL_SUCCESS_HTML)
