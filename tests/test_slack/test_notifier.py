"""Tests for thread posts, direct messages, and reply detection.

Notification failures must propagate as NotifyError: the completion flag
is only set after a successful post.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from slack_sdk.errors import SlackApiError

from mention_reminder.errors import CredentialError, NotifyError, ReplyCheckError
from mention_reminder.slack.notifier import SlackNotifier
from mention_reminder.slack.replies import SlackReplyOracle

TEAM = "T1"
CHANNEL = "C0AFQJHAVS6"
TS = "1234567890.123456"


def _make_slack_api_error(error_code: str) -> SlackApiError:
    """Build a SlackApiError with a mock response carrying the given error code."""
    resp = MagicMock()
    resp.get = MagicMock(
        side_effect=lambda key, default="": error_code if key == "error" else default,
    )
    resp.__getitem__ = MagicMock(
        side_effect=lambda key: error_code if key == "error" else None,
    )
    return SlackApiError(message=f"slack error: {error_code}", response=resp)


@pytest.fixture()
def mock_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def clients(mock_client: AsyncMock) -> MagicMock:
    """SlackClientCache double returning mock_client for every team."""
    cache = MagicMock()
    cache.get_client = AsyncMock(return_value=mock_client)
    return cache


# -- post_to_thread --


async def test_post_to_thread_replies_in_thread(clients, mock_client: AsyncMock):
    await SlackNotifier(clients).post_to_thread(TEAM, CHANNEL, TS, "<@U9> hello")

    clients.get_client.assert_awaited_once_with(TEAM)
    mock_client.chat_postMessage.assert_awaited_once_with(
        channel=CHANNEL, thread_ts=TS, text="<@U9> hello"
    )


async def test_post_to_thread_api_error_raises_notify_error(clients, mock_client: AsyncMock):
    mock_client.chat_postMessage.side_effect = _make_slack_api_error("channel_not_found")

    with pytest.raises(NotifyError, match="channel_not_found"):
        await SlackNotifier(clients).post_to_thread(TEAM, CHANNEL, TS, "text")


async def test_post_to_thread_missing_credential_raises_notify_error(clients):
    clients.get_client.side_effect = CredentialError("Workspace T1 is not installed")

    with pytest.raises(NotifyError):
        await SlackNotifier(clients).post_to_thread(TEAM, CHANNEL, TS, "text")


# -- post_direct --


async def test_post_direct_opens_dm_then_posts(clients, mock_client: AsyncMock):
    mock_client.conversations_open.return_value = {"channel": {"id": "D123"}}

    await SlackNotifier(clients).post_direct(TEAM, "UMGR", "escalation")

    mock_client.conversations_open.assert_awaited_once_with(users=["UMGR"])
    mock_client.chat_postMessage.assert_awaited_once_with(channel="D123", text="escalation")


async def test_post_direct_open_failure_raises_notify_error(clients, mock_client: AsyncMock):
    mock_client.conversations_open.side_effect = _make_slack_api_error("user_not_found")

    with pytest.raises(NotifyError, match="UMGR"):
        await SlackNotifier(clients).post_direct(TEAM, "UMGR", "escalation")
    mock_client.chat_postMessage.assert_not_called()


async def test_post_direct_timeout_raises_notify_error(clients, mock_client: AsyncMock):
    mock_client.conversations_open.return_value = {"channel": {"id": "D123"}}
    mock_client.chat_postMessage.side_effect = TimeoutError()

    with pytest.raises(NotifyError):
        await SlackNotifier(clients).post_direct(TEAM, "UMGR", "escalation")


# -- SlackReplyOracle --


def _thread(*messages: dict) -> dict:
    parent = {"ts": TS, "user": "U1", "text": "<@U9> please check"}
    return {"messages": [parent, *messages]}


async def test_has_replied_true_for_user_reply(clients, mock_client: AsyncMock):
    mock_client.conversations_replies.return_value = _thread(
        {"ts": "1234567899.000001", "user": "U9", "text": "on it"}
    )

    assert await SlackReplyOracle(clients).has_replied(TEAM, CHANNEL, TS, "U9", TS) is True
    mock_client.conversations_replies.assert_awaited_once_with(
        channel=CHANNEL, ts=TS, oldest=TS, limit=200
    )


async def test_has_replied_false_for_other_users(clients, mock_client: AsyncMock):
    mock_client.conversations_replies.return_value = _thread(
        {"ts": "1234567899.000001", "user": "U7", "text": "me too"}
    )

    assert await SlackReplyOracle(clients).has_replied(TEAM, CHANNEL, TS, "U9", TS) is False


async def test_has_replied_ignores_parent_message(clients, mock_client: AsyncMock):
    """The mentioned user authoring the parent does not count as a reply."""
    mock_client.conversations_replies.return_value = {
        "messages": [{"ts": TS, "user": "U9", "text": "note to self <@U9>"}]
    }

    assert await SlackReplyOracle(clients).has_replied(TEAM, CHANNEL, TS, "U9", TS) is False


async def test_has_replied_empty_thread(clients, mock_client: AsyncMock):
    mock_client.conversations_replies.return_value = {}

    assert await SlackReplyOracle(clients).has_replied(TEAM, CHANNEL, TS, "U9", TS) is False


async def test_has_replied_with_mention_requires_mention_back(clients, mock_client: AsyncMock):
    mock_client.conversations_replies.return_value = _thread(
        {"ts": "1234567899.000001", "user": "U9", "text": "on it"},
        {"ts": "1234567899.000002", "user": "U9", "text": "<@U1> done"},
    )
    oracle = SlackReplyOracle(clients)

    assert await oracle.has_replied_with_mention(TEAM, CHANNEL, TS, "U9", "U1", TS) is True
    assert await oracle.has_replied_with_mention(TEAM, CHANNEL, TS, "U9", "U5", TS) is False


async def test_has_replied_api_error_raises_reply_check_error(clients, mock_client: AsyncMock):
    mock_client.conversations_replies.side_effect = _make_slack_api_error("ratelimited")

    with pytest.raises(ReplyCheckError, match="ratelimited"):
        await SlackReplyOracle(clients).has_replied(TEAM, CHANNEL, TS, "U9", TS)
