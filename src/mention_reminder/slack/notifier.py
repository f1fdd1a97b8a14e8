"""Slack notification delivery for reminders and escalations.

Unlike fire-and-forget status messages, these notifications are the whole
point of a check: every failure is raised as NotifyError so the completion
flag stays unset and the scheduler retries the callback.
"""

import logging

from mention_reminder.errors import CredentialError, NotifyError
from mention_reminder.slack.client import SLACK_ERRORS, SlackClientCache

logger = logging.getLogger(__name__)


class SlackNotifier:
    """NotificationPort backed by chat.postMessage."""

    def __init__(self, clients: SlackClientCache) -> None:
        self._clients = clients

    async def post_to_thread(
        self, team_id: str, channel_id: str, parent_ts: str, text: str
    ) -> None:
        """Post a thread reply under the parent message.

        Args:
            team_id: Workspace whose bot token is used.
            channel_id: Slack channel ID.
            parent_ts: Parent message timestamp (thread root).
            text: Message text, may contain <@USER> mentions.
        """
        try:
            client = await self._clients.get_client(team_id)
            await client.chat_postMessage(channel=channel_id, thread_ts=parent_ts, text=text)
        except (*SLACK_ERRORS, CredentialError) as exc:
            logger.warning(
                "Thread post failed (channel=%s, ts=%s)", channel_id, parent_ts, exc_info=True
            )
            raise NotifyError(
                f"Thread post failed (channel={channel_id}, ts={parent_ts}): {exc}"
            ) from exc

    async def post_direct(self, team_id: str, user_id: str, text: str) -> None:
        """Open (or reuse) the DM channel with a user and post text to it."""
        try:
            client = await self._clients.get_client(team_id)
            opened = await client.conversations_open(users=[user_id])
            await client.chat_postMessage(channel=opened["channel"]["id"], text=text)
        except (*SLACK_ERRORS, CredentialError) as exc:
            logger.warning("Direct message to %s failed", user_id, exc_info=True)
            raise NotifyError(f"Direct message to {user_id} failed: {exc}") from exc
