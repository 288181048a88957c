# Slack integration module
from servicebot.integrations.slack.client import SlackClient
from servicebot.integrations.slack.models import (
    BlockActionPayload,
    EventCallback,
    ShortcutPayload,
    SlashCommandPayload,
    ViewSubmissionPayload,
)

__all__ = [
    "SlackClient",
    "BlockActionPayload",
    "EventCallback",
    "ShortcutPayload",
    "SlashCommandPayload",
    "ViewSubmissionPayload",
]
