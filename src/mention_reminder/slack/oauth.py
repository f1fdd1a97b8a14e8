"""OAuth v2 install flow: exchange the code and register the workspace."""

import logging

from slack_sdk.web.async_client import AsyncWebClient

from mention_reminder.config import Settings
from mention_reminder.errors import ChatPlatformError
from mention_reminder.reminder.ports import SecretStore, TenantStore
from mention_reminder.slack.client import SLACK_ERRORS, SlackClientCache

logger = logging.getLogger(__name__)

INSTALL_SUCCESS_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>Installed</title>
    <style>
        body { font-family: sans-serif; margin: 40px; }
        .success { color: green; font-size: 18px; font-weight: bold; }
    </style>
</head>
<body>
    <div class="success">Mention Reminder is installed.</div>
    <p>Mention @Mention Reminder together with a teammate to start watching for their reply.</p>
    <p>Admins can set the escalation target with <code>/_set_manager @manager</code>.</p>
</body>
</html>
"""


async def complete_install(
    code: str,
    settings: Settings,
    secrets: SecretStore,
    tenants: TenantStore,
    clients: SlackClientCache,
) -> str:
    """Exchange an OAuth code, store the bot token, and register the tenant.

    Returns the installed team id. Raises ChatPlatformError if Slack rejects
    the exchange; storage failures propagate as their own ReminderError kind.
    """
    try:
        response = await AsyncWebClient().oauth_v2_access(
            client_id=settings.slack_client_id,
            client_secret=settings.slack_client_secret,
            code=code,
            redirect_uri=settings.oauth_redirect_url or None,
        )
    except SLACK_ERRORS as exc:
        raise ChatPlatformError(f"OAuth code exchange failed: {exc}") from exc

    team_id = response["team"]["id"]
    secret_name = f"{settings.secret_token_prefix}{team_id}"

    await secrets.put(secret_name, response["access_token"])
    await tenants.upsert_credential_ref(team_id, secret_name)
    # A reinstall may have rotated the token
    clients.invalidate(team_id)

    logger.info("Installed workspace %s", team_id)
    return team_id
