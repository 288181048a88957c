"""
Block Kit rendering tests.
"""

from servicebot.integrations.slack.blocks import (
    ACTION_BLOCK_ID,
    HIGH_PRIORITY_BLOCK_ID,
    PAGE_COMPLETED_BLOCK_ID,
    REQUEST_DESCRIPTION_BLOCK_ID,
    page_completed_blocks,
    request_modal,
    request_reply_blocks,
    request_thread_blocks,
)
from servicebot.models.request import IssueAction, RenderedState


def test_thread_header_with_fields_and_actions():
    rendered = RenderedState(
        icon=":black_circle:",
        actions=[IssueAction.CLAIM, IssueAction.VIEW],
        fields=[{"title": "Reported By", "value": "<@U1>"}],
    )

    text, blocks = request_thread_blocks("REQ-1", "Fix the thing", "https://jira/browse/REQ-1", rendered)

    assert text == ":black_circle: REQ-1: Fix the thing"
    assert blocks[0]["fields"] == [{"type": "mrkdwn", "text": "*Reported By*\n<@U1>"}]
    bar = blocks[-1]
    assert bar["block_id"] == ACTION_BLOCK_ID
    view = bar["elements"][1]
    assert view["action_id"] == "view_request"
    assert view["url"] == "https://jira/browse/REQ-1"


def test_thread_header_shows_error_message_without_actions():
    rendered = RenderedState(icon=":x:", message="Something broke")

    _, blocks = request_thread_blocks("REQ-1", "Fix", "https://jira/browse/REQ-1", rendered)

    assert [block["type"] for block in blocks] == ["section", "context"]
    assert blocks[1]["elements"][0]["text"] == "Something broke"


def test_reply_without_high_priority_shows_info():
    blocks = request_reply_blocks("", False, "warn", "Page", "We got it")

    assert blocks[0]["text"]["text"] == "_No description given_"
    assert blocks[-1] == {"type": "context", "elements": [{"type": "mrkdwn", "text": "We got it"}]}


def test_page_completed_strips_button():
    original = request_reply_blocks("desc", True, "warn", "Page", "info")

    blocks = page_completed_blocks(original, "Paged!")

    assert [block.get("block_id") for block in blocks] == [
        REQUEST_DESCRIPTION_BLOCK_ID,
        HIGH_PRIORITY_BLOCK_ID,
        PAGE_COMPLETED_BLOCK_ID,
    ]
    assert "accessory" not in blocks[1]
    assert "accessory" in original[2]


def test_modal_prefill_and_options():
    view = request_modal(
        "C1||1.0",
        [{"id": "2", "name": "High", "description": "x" * 100}],
        [{"id": "100", "name": "Access"}],
        title="t" * 300,
    )

    assert view["private_metadata"] == "C1||1.0"
    block_ids = [block["block_id"] for block in view["blocks"]]
    assert block_ids == ["title_input", "description_input", "priority_input", "category_input"]
    assert len(view["blocks"][0]["element"]["initial_value"]) == 255
    option = view["blocks"][2]["element"]["options"][0]
    assert option["value"] == "2"
    assert len(option["description"]["text"]) == 75


def test_modal_without_catalog():
    view = request_modal("C1||", [], [])
    assert [block["block_id"] for block in view["blocks"]] == ["title_input", "description_input"]
