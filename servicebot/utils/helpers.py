"""
Shared Utility Functions

Text helpers used when moving request content between Slack and Jira.
"""

import re
from typing import Tuple

# Jira summary field limit
MAX_TITLE_LENGTH = 255
ELLIPSIS = "..."
MAX_QUOTED_DESCRIPTION = 500

_MENTION_PATTERN = re.compile(r"<@([A-Z0-9]*)>", re.IGNORECASE)


def prep_title_and_description(title: str, description: str = "") -> Tuple[str, str]:
    """
    Normalize a request title for the Jira summary field.

    Newlines become spaces, angle brackets are dropped and ``@`` is spelled out so the
    summary cannot carry Slack markup. Titles over the summary limit are cut with an
    ellipsis and the overflow is moved to the front of the description.

    Args:
        title: Raw title as typed by the user
        description: Raw description (may be empty)

    Returns:
        Tuple of (title, description)
    """
    title = (
        (title or "")
        .replace("\n", " ")
        .replace("<", "")
        .replace(">", "")
        .replace("@", "(at)")
    )
    description = description or ""

    if len(title) <= MAX_TITLE_LENGTH:
        return title, description

    slice_index = MAX_TITLE_LENGTH - len(ELLIPSIS)
    overflow = title[slice_index:]
    description = ELLIPSIS + overflow + (f"\n\n{description}" if description else "")
    title = title[:slice_index] + ELLIPSIS
    return title, description


def quote_description(description: str, limit: int = MAX_QUOTED_DESCRIPTION) -> str:
    """Render a description as a Slack block quote, truncated to ``limit`` characters."""
    if not description:
        return ""
    quoted = description.replace("\n", "\n> ")
    if len(quoted) > limit:
        quoted = quoted[:limit] + ELLIPSIS
    return quoted


def find_user_mentions(text: str) -> list[str]:
    """Return the Slack user ids mentioned as ``<@U123>`` in the given text."""
    return _MENTION_PATTERN.findall(text or "")


def replace_user_mentions(text: str, names: dict[str, str]) -> str:
    """Replace ``<@U123>`` mentions with display names; unknown ids are left untouched."""

    def _substitute(match: re.Match) -> str:
        return names.get(match.group(1), match.group(0))

    return _MENTION_PATTERN.sub(_substitute, text or "")
