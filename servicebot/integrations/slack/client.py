"""
Slack API Client

Responsibilities:
- chat.postMessage / chat.update / chat.postEphemeral
- views.open / views.publish for the request modal and home tab
- chat.getPermalink and users.info lookups
- response_url replies for interactive messages
- Plain text extraction from event and interaction payloads
"""

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
from slack_sdk.webhook import WebhookClient
from servicebot.config import Settings, get_settings
from servicebot.exceptions import SlackIntegrationError
from typing import List, Optional, Dict, Any
import asyncio
import logging

logger = logging.getLogger(__name__)


class SlackClient:
    """Slack Web API client; sync slack_sdk calls run in worker threads."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[WebClient] = None):
        self.settings = settings or get_settings()
        self.client = client or WebClient(token=self.settings.slack_bot_token)
        self._permalinks: Dict[str, str] = {}

    async def _call(self, method_name: str, **params) -> Dict[str, Any]:
        method = getattr(self.client, method_name)
        try:
            result = await asyncio.to_thread(method, **params)
            return result.data if hasattr(result, "data") else result
        except SlackApiError as e:
            logger.error(f"Slack API error on {method_name}: {e.response['error']}")
            raise SlackIntegrationError(e.response["error"], operation=method_name) from e

    async def post_message(
        self,
        channel: str,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
        thread_ts: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Post a message to a channel, DM or thread.

        Returns:
            The Slack response; ``ts`` and ``channel`` address the new message
        """
        params: Dict[str, Any] = {"channel": channel, "text": text}
        if blocks:
            params["blocks"] = blocks
        if thread_ts:
            params["thread_ts"] = thread_ts
        return await self._call("chat_postMessage", **params)

    async def update_message(
        self, channel: str, ts: str, text: str, blocks: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"channel": channel, "ts": ts, "text": text}
        if blocks is not None:
            params["blocks"] = blocks
        return await self._call("chat_update", **params)

    async def post_ephemeral(
        self, channel: str, user: str, text: str, thread_ts: Optional[str] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"channel": channel, "user": user, "text": text}
        if thread_ts:
            params["thread_ts"] = thread_ts
        return await self._call("chat_postEphemeral", **params)

    async def send_direct_message(self, user_id: str, text: str) -> Dict[str, Any]:
        """DM a user; posting to a user id opens the bot's IM channel with them."""
        return await self._call("chat_postMessage", channel=user_id, text=text)

    async def open_view(self, trigger_id: str, view: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("views_open", trigger_id=trigger_id, view=view)

    async def publish_home(self, user_id: str, view: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("views_publish", user_id=user_id, view=view)

    async def get_permalink(self, channel: str, ts: str) -> str:
        """Permalink for a message (cached per channel/ts)."""
        cache_key = f"{channel}:{ts}"
        if cache_key not in self._permalinks:
            result = await self._call("chat_getPermalink", channel=channel, message_ts=ts)
            self._permalinks[cache_key] = result.get("permalink", "")
        return self._permalinks[cache_key]

    async def get_user_info(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Raw users.info ``user`` object, or None when Slack reports no such user."""
        result = await self._call("users_info", user=user_id)
        if not result.get("ok", True):
            return None
        return result.get("user")

    async def send_response(self, response_url: str, **payload) -> None:
        """Reply through an interaction's response_url (e.g. ``replace_original``)."""
        webhook = WebhookClient(response_url)
        response = await asyncio.to_thread(webhook.send_dict, payload)
        if response.status_code >= 400:
            logger.error(f"Slack response_url error {response.status_code}: {response.body}")
            raise SlackIntegrationError(response.body, operation="response_url", status_code=response.status_code)

    @staticmethod
    def extract_text(payload: Dict[str, Any]) -> str:
        """
        Best plain text for an event or interaction payload.

        Prefers the message text, then the event text, then the text of section blocks.
        """
        message = payload.get("message") or {}
        if message.get("text"):
            return message["text"]
        event = payload.get("event") or {}
        if event.get("text"):
            return event["text"]
        if payload.get("text"):
            return payload["text"]

        parts = []
        for block in message.get("blocks", []) or payload.get("blocks", []):
            text = block.get("text")
            if isinstance(text, dict) and text.get("text"):
                parts.append(text["text"])
        return "\n".join(parts)
