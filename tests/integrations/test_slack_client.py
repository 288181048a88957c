"""
SlackClient tests with a mocked slack_sdk WebClient.
"""

from unittest.mock import MagicMock

import pytest
from slack_sdk.errors import SlackApiError

from servicebot.exceptions import SlackIntegrationError
from servicebot.integrations.slack.client import SlackClient


@pytest.fixture
def web_client():
    return MagicMock()


@pytest.fixture
def slack_client(settings, web_client):
    return SlackClient(settings, client=web_client)


@pytest.mark.asyncio
async def test_post_message_in_thread(slack_client, web_client):
    web_client.chat_postMessage.return_value = {"ok": True, "channel": "C1", "ts": "2.0"}

    result = await slack_client.post_message("C1", "hello", thread_ts="1.0")

    assert result["ts"] == "2.0"
    web_client.chat_postMessage.assert_called_once_with(channel="C1", text="hello", thread_ts="1.0")


@pytest.mark.asyncio
async def test_api_error_wrapped(slack_client, web_client):
    web_client.chat_update.side_effect = SlackApiError("failed", {"ok": False, "error": "message_not_found"})

    with pytest.raises(SlackIntegrationError) as exc_info:
        await slack_client.update_message("C1", "1.0", "text")

    assert exc_info.value.operation == "chat_update"
    assert str(exc_info.value) == "message_not_found"


@pytest.mark.asyncio
async def test_permalink_cached(slack_client, web_client):
    web_client.chat_getPermalink.return_value = {"ok": True, "permalink": "https://slack/p1"}

    assert await slack_client.get_permalink("C1", "1.0") == "https://slack/p1"
    assert await slack_client.get_permalink("C1", "1.0") == "https://slack/p1"
    web_client.chat_getPermalink.assert_called_once_with(channel="C1", message_ts="1.0")


@pytest.mark.asyncio
async def test_user_info(slack_client, web_client):
    web_client.users_info.return_value = {"ok": True, "user": {"id": "U1", "real_name": "Ada"}}
    assert (await slack_client.get_user_info("U1"))["real_name"] == "Ada"


def test_extract_text_prefers_message_text():
    payload = {"message": {"text": "from message"}, "event": {"text": "from event"}}
    assert SlackClient.extract_text(payload) == "from message"


def test_extract_text_from_blocks():
    payload = {"message": {"blocks": [{"text": {"type": "mrkdwn", "text": "a"}}, {"type": "divider"}]}}
    assert SlackClient.extract_text(payload) == "a"


@pytest.mark.asyncio
async def test_ephemeral_reply_in_thread(slack_client, web_client):
    web_client.chat_postEphemeral.return_value = {"ok": True}

    await slack_client.post_ephemeral("C1", "U1", "only you", thread_ts="1.0")

    web_client.chat_postEphemeral.assert_called_once_with(channel="C1", user="U1", text="only you", thread_ts="1.0")
