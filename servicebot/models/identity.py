"""
Request Identity Codec

A thread is addressed by its (channel, timestamp) pair. The pair is flattened into a
single token that is used as a Jira label and as the opaque private metadata of Slack
modals, e.g. ``C024BE91L||1712345678.000200``.
"""

import re
from dataclasses import dataclass

from servicebot.exceptions import MalformedIdentity

DELIMITER = "||"

# Tokens issued before the switch to "||" used "--"
_SPLIT_PATTERN = re.compile(r"\|\||--")


@dataclass(frozen=True)
class RequestIdentity:
    """Immutable (channel, timestamp) pair identifying a Slack thread."""

    channel: str
    ts: str

    @property
    def valid(self) -> bool:
        return bool(self.channel) and bool(self.ts)

    def encode(self) -> str:
        return encode(self)


def encode(identity: RequestIdentity) -> str:
    """Encode an identity into its ``channel||ts`` token."""
    return f"{identity.channel}{DELIMITER}{identity.ts}"


def decode(token: str) -> RequestIdentity:
    """
    Decode a ``channel||ts`` token (or a legacy ``channel--ts`` token).

    Raises:
        MalformedIdentity: If the token does not split into at least two parts
    """
    parts = _SPLIT_PATTERN.split(token or "")
    if len(parts) < 2:
        raise MalformedIdentity(f"Cannot decode request identity from token: {token!r}")
    return RequestIdentity(channel=parts[0], ts=parts[1])
