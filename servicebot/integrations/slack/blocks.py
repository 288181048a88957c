"""
Slack Block Kit Surfaces

Pure rendering functions: request thread header, action bar, thread replies, the
request modal and the home tab. Nothing here talks to Slack.
"""

from typing import Any, Dict, List, Optional, Sequence

from servicebot.models.request import FlowAction, IssueAction, RenderedState

ACTION_BLOCK_ID = "request_actions"
REQUEST_MODAL_CALLBACK_ID = "request_modal"
SUBMIT_REQUEST_CALLBACK_ID = "submit_request"

REQUEST_DESCRIPTION_BLOCK_ID = "request_description"
HIGH_PRIORITY_BLOCK_ID = "high_priority_warning"
PAGE_COMPLETED_BLOCK_ID = "page_request_completed"

_BUTTONS = {
    IssueAction.CLAIM: ("Claim", FlowAction.CLAIM, "primary"),
    IssueAction.COMPLETE: ("Complete", FlowAction.COMPLETE, "primary"),
    IssueAction.CANCEL: ("Cancel", FlowAction.CANCEL, "danger"),
    IssueAction.VIEW: ("View Ticket", FlowAction.VIEW, "primary"),
}


def _mrkdwn(text: str) -> Dict[str, str]:
    return {"type": "mrkdwn", "text": text}


def _plain(text: str) -> Dict[str, Any]:
    return {"type": "plain_text", "text": text, "emoji": True}


def action_button(action: IssueAction, url: Optional[str] = None) -> Dict[str, Any]:
    label, flow_action, style = _BUTTONS[action]
    button: Dict[str, Any] = {
        "type": "button",
        "text": _plain(label),
        "action_id": flow_action.value,
        "value": flow_action.value,
        "style": style,
    }
    if action == IssueAction.VIEW and url:
        button["url"] = url
    return button


def action_bar(actions: Sequence[IssueAction], url: Optional[str] = None) -> Optional[Dict[str, Any]]:
    if not actions:
        return None
    return {
        "type": "actions",
        "block_id": ACTION_BLOCK_ID,
        "elements": [action_button(action, url) for action in actions],
    }


def request_thread_blocks(
    key: str,
    summary: str,
    link: str,
    rendered: RenderedState,
) -> tuple[str, List[Dict[str, Any]]]:
    """
    Top-level message of a request thread.

    Returns:
        Tuple of (fallback text, blocks)
    """
    text = f"{rendered.icon} {key}: {summary}".strip()
    header: Dict[str, Any] = {
        "type": "section",
        "text": _mrkdwn(f"{rendered.icon} *<{link}|{key}>* {summary}".strip()),
    }
    if rendered.fields:
        header["fields"] = [_mrkdwn(f"*{f['title']}*\n{f['value']}") for f in rendered.fields]

    blocks: List[Dict[str, Any]] = [header]
    if rendered.message:
        blocks.append({"type": "context", "elements": [_mrkdwn(rendered.message)]})

    bar = action_bar(rendered.actions, link)
    if bar:
        blocks.append(bar)
    return text, blocks


def working_blocks(message: str, icon: str) -> tuple[str, List[Dict[str, Any]]]:
    """Placeholder shown while a ticket is being created or changed."""
    text = f"{icon} {message}"
    return text, [{"type": "section", "text": _mrkdwn(text)}]


def request_reply_blocks(
    description: str,
    high_priority: bool,
    high_priority_text: str,
    on_call_button_text: str,
    info_text: str,
) -> List[Dict[str, Any]]:
    """First reply in a new request thread."""
    quoted = f"*Request Description*\n> {description}" if description else "_No description given_"
    blocks: List[Dict[str, Any]] = [
        {"type": "section", "block_id": REQUEST_DESCRIPTION_BLOCK_ID, "text": _mrkdwn(quoted)},
        {"type": "divider"},
    ]
    if high_priority:
        blocks.append(
            {
                "type": "section",
                "block_id": HIGH_PRIORITY_BLOCK_ID,
                "text": _mrkdwn(high_priority_text),
                "accessory": {
                    "type": "button",
                    "text": _plain(on_call_button_text),
                    "action_id": FlowAction.PAGE.value,
                    "value": FlowAction.PAGE.value,
                    "style": "danger",
                },
            }
        )
    else:
        blocks.append({"type": "context", "elements": [_mrkdwn(info_text)]})
    return blocks


def page_completed_blocks(original_blocks: List[Dict[str, Any]], pressed_text: str) -> List[Dict[str, Any]]:
    """Reply blocks with the page button removed and a confirmation appended."""
    kept = []
    for block in original_blocks:
        if block.get("block_id") == REQUEST_DESCRIPTION_BLOCK_ID:
            kept.append(block)
        elif block.get("block_id") == HIGH_PRIORITY_BLOCK_ID:
            kept.append({key: value for key, value in block.items() if key != "accessory"})
    kept.append({"type": "section", "block_id": PAGE_COMPLETED_BLOCK_ID, "text": _mrkdwn(pressed_text)})
    return kept


def jira_comment_blocks(body: str, poster: str) -> tuple[str, List[Dict[str, Any]]]:
    """Thread reply mirroring a comment added in Jira."""
    return body, [
        {"type": "section", "text": _mrkdwn(body)},
        {"type": "context", "elements": [_mrkdwn(f"Posted in Jira by {poster}")]},
    ]


def _option(text: str, value: str, description: str = "") -> Dict[str, Any]:
    option: Dict[str, Any] = {"text": _plain(text), "value": value}
    if description:
        option["description"] = _plain(description[:75])
    return option


def request_modal(
    private_metadata: str,
    priorities: Sequence[Dict[str, str]],
    components: Sequence[Dict[str, str]],
    title: str = "",
    description: str = "",
) -> Dict[str, Any]:
    """
    The "submit a request" modal.

    Args:
        private_metadata: Encoded identity of the originating message
        priorities: ``{"id", "name", "description"}`` entries
        components: ``{"id", "name"}`` entries
        title: Pre-filled title
        description: Pre-filled description
    """
    title_element: Dict[str, Any] = {"type": "plain_text_input", "action_id": "title", "max_length": 255}
    if title:
        title_element["initial_value"] = title[:255]
    description_element: Dict[str, Any] = {"type": "plain_text_input", "action_id": "description", "multiline": True}
    if description:
        description_element["initial_value"] = description

    blocks: List[Dict[str, Any]] = [
        {"type": "input", "block_id": "title_input", "label": _plain("Summary"), "element": title_element},
        {
            "type": "input",
            "block_id": "description_input",
            "label": _plain("Description"),
            "optional": True,
            "element": description_element,
        },
    ]
    if priorities:
        blocks.append(
            {
                "type": "input",
                "block_id": "priority_input",
                "label": _plain("Priority"),
                "element": {
                    "type": "static_select",
                    "action_id": "priority",
                    "options": [_option(p["name"], p["id"], p.get("description", "")) for p in priorities],
                },
            }
        )
    if components:
        blocks.append(
            {
                "type": "input",
                "block_id": "category_input",
                "label": _plain("Category"),
                "element": {
                    "type": "static_select",
                    "action_id": "category",
                    "options": [_option(c["name"], c["id"]) for c in components],
                },
            }
        )

    return {
        "type": "modal",
        "callback_id": REQUEST_MODAL_CALLBACK_ID,
        "private_metadata": private_metadata,
        "title": _plain("Submit a Request"),
        "submit": _plain("Submit"),
        "close": _plain("Cancel"),
        "blocks": blocks,
    }


def home_view(entries: Sequence[Dict[str, str]]) -> Dict[str, Any]:
    """
    Home tab listing open requests.

    Args:
        entries: ``{"icon", "key", "summary", "link", "status"}`` entries
    """
    blocks: List[Dict[str, Any]] = [
        {"type": "header", "text": _plain("Open Requests")},
        {"type": "divider"},
    ]
    if not entries:
        blocks.append({"type": "section", "text": _mrkdwn("_There are no open requests right now._")})
    for entry in entries:
        blocks.append(
            {
                "type": "section",
                "text": _mrkdwn(f"{entry['icon']} *<{entry['link']}|{entry['key']}>* {entry['summary']}"),
            }
        )
        blocks.append({"type": "context", "elements": [_mrkdwn(f"Status: {entry['status']}")]})
    return {"type": "home", "blocks": blocks}
