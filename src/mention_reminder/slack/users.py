"""Resolve a user reference typed into a slash command to a Slack user id."""

import re

from mention_reminder.errors import ChatPlatformError
from mention_reminder.slack.client import SLACK_ERRORS, SlackClientCache

# Escaped user reference as Slack sends it in slash command text: <@U123|name> or <@U123>
ESCAPED_USER_PATTERN = re.compile(r"^<@([A-Z0-9]+)(?:\|[^>]*)?>$")

_USERS_PAGE_SIZE = 200


class SlackUserDirectory:
    """Look up user ids by name, display name, real name, or email."""

    def __init__(self, clients: SlackClientCache) -> None:
        self._clients = clients

    async def resolve(self, team_id: str, reference: str) -> str | None:
        """Return the user id for reference, or None if nobody matches.

        Escaped references resolve without an API call.
        """
        reference = reference.strip()
        match = ESCAPED_USER_PATTERN.match(reference)
        if match:
            return match.group(1)

        name = reference.removeprefix("@")
        try:
            client = await self._clients.get_client(team_id)
            cursor: str | None = None
            while True:
                response = await client.users_list(limit=_USERS_PAGE_SIZE, cursor=cursor)
                for member in response.get("members", []):
                    if _matches(member, name, reference):
                        return member["id"]
                cursor = response.get("response_metadata", {}).get("next_cursor")
                if not cursor:
                    return None
        except SLACK_ERRORS as exc:
            raise ChatPlatformError(f"User lookup failed for team {team_id}: {exc}") from exc


def _matches(member: dict, name: str, reference: str) -> bool:
    profile = member.get("profile", {})
    return name in (
        member.get("name"),
        member.get("real_name"),
        profile.get("display_name"),
    ) or reference == profile.get("email")
