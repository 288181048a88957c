# Data models module
from servicebot.models.identity import RequestIdentity, encode, decode
from servicebot.models.request import (
    RequestState,
    FlowAction,
    FlowSource,
    IssueAction,
    SidecarProperties,
    ChannelAssignments,
    RenderedState,
    determine_conversation_channel,
)

__all__ = [
    "RequestIdentity",
    "encode",
    "decode",
    "RequestState",
    "FlowAction",
    "FlowSource",
    "IssueAction",
    "SidecarProperties",
    "ChannelAssignments",
    "RenderedState",
    "determine_conversation_channel",
]
