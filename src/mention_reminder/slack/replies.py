"""Reply detection by reading the mention's thread.

Only the first page of conversations.replies is inspected; a user whose
reply lands beyond it is treated as not having replied.
"""

from mention_reminder.errors import CredentialError, ReplyCheckError
from mention_reminder.slack.client import SLACK_ERRORS, SlackClientCache

_REPLIES_PAGE_SIZE = 200


class SlackReplyOracle:
    """ReplyOracle backed by conversations.replies."""

    def __init__(self, clients: SlackClientCache) -> None:
        self._clients = clients

    async def has_replied(
        self, team_id: str, channel_id: str, parent_ts: str, user_id: str, since_ts: str
    ) -> bool:
        """Whether user_id posted anything in the thread after since_ts."""
        return await self.has_replied_with_mention(
            team_id, channel_id, parent_ts, user_id, "", since_ts
        )

    async def has_replied_with_mention(
        self,
        team_id: str,
        channel_id: str,
        parent_ts: str,
        user_id: str,
        parent_user_id: str,
        since_ts: str,
    ) -> bool:
        """Whether user_id replied in the thread, optionally mentioning parent_user_id back.

        With an empty parent_user_id any post counts as a reply.
        """
        for message in await self._first_page(team_id, channel_id, parent_ts, since_ts):
            if message.get("ts") == parent_ts:
                continue
            if message.get("user") != user_id:
                continue
            if not parent_user_id:
                return True
            if f"<@{parent_user_id}>" in message.get("text", ""):
                return True
        return False

    async def _first_page(
        self, team_id: str, channel_id: str, parent_ts: str, since_ts: str
    ) -> list[dict]:
        try:
            client = await self._clients.get_client(team_id)
            response = await client.conversations_replies(
                channel=channel_id,
                ts=parent_ts,
                oldest=since_ts,
                limit=_REPLIES_PAGE_SIZE,
            )
        except (*SLACK_ERRORS, CredentialError) as exc:
            raise ReplyCheckError(
                f"Reply check failed (channel={channel_id}, ts={parent_ts}): {exc}"
            ) from exc
        return response.get("messages", [])
