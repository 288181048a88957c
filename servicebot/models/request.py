"""
Service Request Data Models

Types shared by the request aggregate, flows and renderers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RequestState(str, Enum):
    """Display state of a request. Derived from the ticket, never stored."""

    TODO = "todo"
    CLAIMED = "claimed"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    WORKING = "working"
    ERROR = "error"
    UNKNOWN = "unknown"


class FlowAction(str, Enum):
    """Every action a trigger can resolve to. Values double as Slack action ids."""

    MODAL_REQUEST = "modal_request"
    CREATE = "create_request"
    CLAIM = "claim_request"
    COMPLETE = "complete_request"
    CANCEL = "cancel_request"
    COMMENT = "comment_on_request"
    PAGE = "page_request"
    TICKET_CHANGED = "jira_ticket_changed"
    VIEW = "view_request"


class FlowSource(str, Enum):
    """System a trigger originated from."""

    SLACK = "slack"
    JIRA = "jira"


class IssueAction(str, Enum):
    """Buttons shown on the request action bar."""

    CLAIM = "claim"
    COMPLETE = "complete"
    CANCEL = "cancel"
    VIEW = "view"


class SidecarProperties(BaseModel):
    """
    Thread linkage stored on the Jira ticket as an issue property.

    Field names are serialized with the camelCase keys used in the stored blob. The
    older ``actionMsgId``/``*SlackId`` keys are still accepted when reading.
    """

    model_config = ConfigDict(populate_by_name=True)

    channel_id: str = Field(default="", validation_alias=AliasChoices("channelId", "channel_id"), serialization_alias="channelId")
    thread_id: str = Field(default="", validation_alias=AliasChoices("threadId", "thread_id"), serialization_alias="threadId")
    action_message_id: str = Field(
        default="",
        validation_alias=AliasChoices("actionMessageId", "actionMsgId", "action_message_id"),
        serialization_alias="actionMessageId",
    )
    notification_channel_id: str = Field(
        default="",
        validation_alias=AliasChoices("notificationChannelId", "notification_channel_id"),
        serialization_alias="notificationChannelId",
    )
    reporter_id: str = Field(
        default="", validation_alias=AliasChoices("reporterId", "reporterSlackId", "reporter_id"), serialization_alias="reporterId"
    )
    claimer_id: str = Field(
        default="", validation_alias=AliasChoices("claimerId", "claimerSlackId", "claimer_id"), serialization_alias="claimerId"
    )
    closer_id: str = Field(
        default="", validation_alias=AliasChoices("closerId", "closerSlackId", "closer_id"), serialization_alias="closerId"
    )

    def to_property(self) -> dict[str, str]:
        """Serialize for storage as a Jira issue property value."""
        return self.model_dump(by_alias=True)


@dataclass
class ChannelAssignments:
    """Where the conversation happens and where notifications are mirrored."""

    conversation_channel_id: str
    notification_channel_id: Optional[str] = None


def determine_conversation_channel(
    originating_channel_id: str, primary_channel_id: str, restriction: str
) -> ChannelAssignments:
    """
    Decide which channel hosts the request thread.

    With the ``primary`` restriction requests raised elsewhere are moved to the primary
    channel and the originating channel is notified. With ``invited`` the conversation
    stays where it started and the primary channel is notified instead.
    """
    if primary_channel_id and originating_channel_id != primary_channel_id:
        if restriction == "primary":
            return ChannelAssignments(primary_channel_id, originating_channel_id)
        if restriction == "invited":
            return ChannelAssignments(originating_channel_id, primary_channel_id)
    return ChannelAssignments(originating_channel_id, None)


@dataclass
class RenderedState:
    """
    A flow's contribution to the thread rendering.

    Scalars are optional so contributions can be merged: the first non-empty value
    wins, lists are concatenated in flow priority order.
    """

    state: Optional[RequestState] = None
    icon: str = ""
    message: str = ""
    actions: list[IssueAction] = field(default_factory=list)
    fields: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def merge(cls, contributions: list["RenderedState"]) -> "RenderedState":
        merged = cls()
        for contribution in contributions:
            merged.state = merged.state or contribution.state
            merged.icon = merged.icon or contribution.icon
            merged.message = merged.message or contribution.message
            merged.actions.extend(contribution.actions)
            merged.fields.extend(contribution.fields)
        return merged
