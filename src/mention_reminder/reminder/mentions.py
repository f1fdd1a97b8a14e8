"""User mention extraction from Slack message text."""

import re

# Slack encodes user mentions as <@U0123ABCD>. Does NOT match channel refs
# <#C123>, special mentions <!here>, or lowercase ids.
SLACK_MENTION_PATTERN = re.compile(r"<@([A-Z0-9]+)>")


def extract_mentions(text: str, bot_user_id: str) -> list[str]:
    """Return distinct mentioned user ids in first-occurrence order.

    The bot's own id is dropped, so a message that only mentions the bot
    yields an empty list.
    """
    seen: set[str] = set()
    result: list[str] = []
    for user_id in SLACK_MENTION_PATTERN.findall(text):
        if user_id == bot_user_id or user_id in seen:
            continue
        seen.add(user_id)
        result.append(user_id)
    return result
