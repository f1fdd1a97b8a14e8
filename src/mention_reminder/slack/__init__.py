"""Slack adapters: signature verification, events, commands, OAuth, and Web API ports."""

from mention_reminder.slack.client import SlackClientCache
from mention_reminder.slack.notifier import SlackNotifier
from mention_reminder.slack.replies import SlackReplyOracle
from mention_reminder.slack.users import SlackUserDirectory

__all__ = [
    "SlackClientCache",
    "SlackNotifier",
    "SlackReplyOracle",
    "SlackUserDirectory",
]
