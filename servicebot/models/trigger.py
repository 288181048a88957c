"""
Trigger Model

A Trigger is one external event resolved to a FlowAction, with the fields every flow
needs lifted out of the source-specific payload at the boundary.
"""

from dataclasses import dataclass
from typing import Optional, Union

from servicebot.integrations.jira.models import JiraUser, JiraWebhookPayload
from servicebot.integrations.slack.models import (
    BlockActionPayload,
    ShortcutPayload,
    SlackEvent,
    SlashCommandPayload,
    ViewSubmissionPayload,
)
from servicebot.models.request import FlowAction, FlowSource

TriggerPayload = Union[
    BlockActionPayload,
    ShortcutPayload,
    SlashCommandPayload,
    ViewSubmissionPayload,
    SlackEvent,
    JiraWebhookPayload,
]


@dataclass
class Trigger:
    """An external event resolved to an action."""

    action: FlowAction
    source: FlowSource
    payload: TriggerPayload
    user_id: str = ""  # Slack user id
    tracker_user: Optional[JiraUser] = None
    channel_id: str = ""
    thread_ts: str = ""
    response_url: str = ""
    trigger_id: str = ""
    text: str = ""

    @classmethod
    def from_block_action(cls, payload: BlockActionPayload, action: FlowAction) -> "Trigger":
        return cls(
            action=action,
            source=FlowSource.SLACK,
            payload=payload,
            user_id=payload.user.id,
            channel_id=payload.channel_id,
            thread_ts=payload.thread_ts,
            response_url=payload.response_url,
            trigger_id=payload.trigger_id,
        )

    @classmethod
    def from_shortcut(cls, payload: ShortcutPayload) -> "Trigger":
        message = payload.message
        return cls(
            action=FlowAction.MODAL_REQUEST,
            source=FlowSource.SLACK,
            payload=payload,
            user_id=payload.user.id,
            channel_id=payload.channel.id if payload.channel else "",
            thread_ts=(message.thread_ts or message.ts) if message else "",
            trigger_id=payload.trigger_id,
            text=message.text if message else "",
        )

    @classmethod
    def from_command(cls, payload: SlashCommandPayload) -> "Trigger":
        return cls(
            action=FlowAction.MODAL_REQUEST,
            source=FlowSource.SLACK,
            payload=payload,
            user_id=payload.user_id,
            channel_id=payload.channel_id,
            trigger_id=payload.trigger_id,
            response_url=payload.response_url,
            text=payload.text,
        )

    @classmethod
    def from_view_submission(cls, payload: ViewSubmissionPayload) -> "Trigger":
        return cls(
            action=FlowAction.CREATE,
            source=FlowSource.SLACK,
            payload=payload,
            user_id=payload.user.id,
            text=payload.title,
        )

    @classmethod
    def from_message_event(cls, event: SlackEvent) -> "Trigger":
        return cls(
            action=FlowAction.COMMENT,
            source=FlowSource.SLACK,
            payload=event,
            user_id=event.user or "",
            channel_id=event.channel or "",
            thread_ts=event.thread_ts or event.ts,
            text=event.text,
        )

    @classmethod
    def from_jira_webhook(cls, payload: JiraWebhookPayload, action: FlowAction) -> "Trigger":
        return cls(
            action=action,
            source=FlowSource.JIRA,
            payload=payload,
            tracker_user=payload.triggering_user,
            text=payload.comment.body if payload.comment else "",
        )
