"""Per-workspace async Slack clients.

Each workspace has its own bot token, stored in the SecretStore under the
tenant's credential reference. Clients are created on first use and kept
until invalidate() (called after a reinstall) or clear().
"""

import logging

import aiohttp
from slack_sdk.errors import SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from mention_reminder.errors import CredentialError, TenantNotFoundError
from mention_reminder.reminder.ports import SecretStore, TenantStore

logger = logging.getLogger(__name__)

# Errors an AsyncWebClient call can raise: API errors (ok=false) and transport failures
SLACK_ERRORS = (SlackClientError, aiohttp.ClientError, TimeoutError)


class SlackClientCache:
    """Lazily populated map of team id to AsyncWebClient."""

    def __init__(self, tenants: TenantStore, secrets: SecretStore) -> None:
        self._tenants = tenants
        self._secrets = secrets
        self._clients: dict[str, AsyncWebClient] = {}

    async def get_client(self, team_id: str) -> AsyncWebClient:
        """Return the cached client for a workspace, loading its token on first use.

        Raises CredentialError if the workspace is not installed or its
        token cannot be read.
        """
        client = self._clients.get(team_id)
        if client is not None:
            return client

        try:
            tenant = await self._tenants.get(team_id)
        except TenantNotFoundError as exc:
            raise CredentialError(f"Workspace {team_id} is not installed") from exc

        token = await self._secrets.get(tenant.credential_ref)
        client = AsyncWebClient(token=token)
        self._clients[team_id] = client
        logger.info("Created Slack client for team %s", team_id)
        return client

    def invalidate(self, team_id: str) -> None:
        """Forget the client for one workspace so the next call reloads its token."""
        self._clients.pop(team_id, None)

    def clear(self) -> None:
        """Forget every cached client."""
        self._clients.clear()
