"""
Slack Data Models

Typed views over the Slack payloads the bot receives: Events API callbacks,
interactivity payloads (block actions, shortcuts, view submissions) and slash commands.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class SlackModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class SlackRef(SlackModel):
    """A ``{"id": ...}`` reference to a user, channel or team."""

    id: str = ""
    name: Optional[str] = None


class SlackMessage(SlackModel):
    """Message attached to an interaction payload."""

    ts: str = ""
    thread_ts: Optional[str] = None
    text: str = ""
    user: Optional[str] = None
    blocks: list[dict] = []


class SlackContainer(SlackModel):
    type: str = ""
    message_ts: Optional[str] = None
    thread_ts: Optional[str] = None
    channel_id: Optional[str] = None


class SlackActionItem(SlackModel):
    action_id: str = ""
    block_id: str = ""
    value: Optional[str] = None


class BlockActionPayload(SlackModel):
    """``block_actions`` payload from a button press."""

    type: str = "block_actions"
    user: SlackRef
    channel: Optional[SlackRef] = None
    message: Optional[SlackMessage] = None
    container: Optional[SlackContainer] = None
    actions: list[SlackActionItem] = []
    response_url: str = ""
    trigger_id: str = ""

    @property
    def channel_id(self) -> str:
        if self.channel:
            return self.channel.id
        return self.container.channel_id if self.container and self.container.channel_id else ""

    @property
    def thread_ts(self) -> str:
        """Timestamp of the thread the pressed message lives in."""
        if self.message:
            return self.message.thread_ts or self.message.ts
        if self.container:
            return self.container.thread_ts or self.container.message_ts or ""
        return ""


class ShortcutPayload(SlackModel):
    """``message_action`` (message shortcut) or global ``shortcut`` payload."""

    type: str
    callback_id: str = ""
    trigger_id: str = ""
    user: SlackRef
    channel: Optional[SlackRef] = None
    message: Optional[SlackMessage] = None
    response_url: str = ""


class SlackViewState(SlackModel):
    values: dict[str, dict[str, dict[str, Any]]] = {}


class SlackView(SlackModel):
    id: str = ""
    callback_id: str = ""
    private_metadata: str = ""
    state: SlackViewState = SlackViewState()


class ViewSubmissionPayload(SlackModel):
    """``view_submission`` payload for the request modal."""

    type: str = "view_submission"
    user: SlackRef
    view: SlackView

    def _element(self, block_id: str, action_id: str) -> dict[str, Any]:
        return self.view.state.values.get(block_id, {}).get(action_id, {}) or {}

    def _selected(self, block_id: str, action_id: str) -> str:
        option = self._element(block_id, action_id).get("selected_option") or {}
        return option.get("value", "") or ""

    @property
    def title(self) -> str:
        return self._element("title_input", "title").get("value") or ""

    @property
    def description(self) -> str:
        return self._element("description_input", "description").get("value") or ""

    @property
    def priority(self) -> str:
        return self._selected("priority_input", "priority")

    @property
    def category(self) -> str:
        return self._selected("category_input", "category")


class SlackEvent(SlackModel):
    """Inner event of an Events API callback."""

    type: str
    subtype: Optional[str] = None
    user: Optional[str] = None
    channel: Optional[str] = None
    ts: str = ""
    thread_ts: Optional[str] = None
    text: str = ""
    bot_id: Optional[str] = None
    tab: Optional[str] = None

    @property
    def is_thread_reply(self) -> bool:
        return bool(self.thread_ts) and self.thread_ts != self.ts

    @property
    def is_from_bot(self) -> bool:
        return bool(self.bot_id) or self.subtype == "bot_message"


class EventCallback(SlackModel):
    """Events API envelope (``url_verification`` or ``event_callback``)."""

    type: str
    challenge: Optional[str] = None
    team_id: Optional[str] = None
    event: Optional[SlackEvent] = None


class SlashCommandPayload(SlackModel):
    """Form fields posted by a slash command."""

    command: str = ""
    text: str = ""
    user_id: str
    channel_id: str
    trigger_id: str = ""
    response_url: str = ""
