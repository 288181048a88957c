"""
Tests for request data models: sidecar properties, channel assignment and state merging.
"""

from servicebot.models.request import (
    IssueAction,
    RenderedState,
    RequestState,
    SidecarProperties,
    determine_conversation_channel,
)


class TestSidecarProperties:
    def test_serializes_with_camel_case_keys(self):
        """Test that stored sidecar keys use the camelCase names."""
        sidecar = SidecarProperties(channel_id="C1", thread_id="1.0", reporter_id="U1")
        stored = sidecar.to_property()
        assert stored["channelId"] == "C1"
        assert stored["threadId"] == "1.0"
        assert stored["reporterId"] == "U1"
        assert stored["actionMessageId"] == ""

    def test_reads_legacy_keys(self):
        """Test that sidecars written with the older key names still load."""
        sidecar = SidecarProperties.model_validate(
            {"channelId": "C1", "threadId": "1.0", "actionMsgId": "2.0", "claimerSlackId": "U2"}
        )
        assert sidecar.action_message_id == "2.0"
        assert sidecar.claimer_id == "U2"


class TestChannelAssignments:
    def test_primary_restriction_moves_conversation(self):
        assignments = determine_conversation_channel("COTHER", "CPRIMARY", "primary")
        assert assignments.conversation_channel_id == "CPRIMARY"
        assert assignments.notification_channel_id == "COTHER"

    def test_invited_restriction_keeps_conversation(self):
        assignments = determine_conversation_channel("COTHER", "CPRIMARY", "invited")
        assert assignments.conversation_channel_id == "COTHER"
        assert assignments.notification_channel_id == "CPRIMARY"

    def test_same_channel_has_no_notification_channel(self):
        assignments = determine_conversation_channel("CPRIMARY", "CPRIMARY", "primary")
        assert assignments.conversation_channel_id == "CPRIMARY"
        assert assignments.notification_channel_id is None


class TestRenderedStateMerge:
    def test_first_non_empty_scalar_wins(self):
        merged = RenderedState.merge(
            [
                RenderedState(actions=[IssueAction.CLAIM]),
                RenderedState(state=RequestState.TODO, icon=":black_circle:"),
                RenderedState(state=RequestState.CLAIMED, icon=":large_blue_circle:"),
            ]
        )
        assert merged.state == RequestState.TODO
        assert merged.icon == ":black_circle:"

    def test_lists_concatenate_in_order(self):
        merged = RenderedState.merge(
            [
                RenderedState(actions=[IssueAction.CLAIM, IssueAction.CANCEL], fields=[{"title": "A", "value": "1"}]),
                RenderedState(actions=[IssueAction.VIEW], fields=[{"title": "B", "value": "2"}]),
            ]
        )
        assert merged.actions == [IssueAction.CLAIM, IssueAction.CANCEL, IssueAction.VIEW]
        assert [f["title"] for f in merged.fields] == ["A", "B"]

    def test_merge_does_not_mutate_contributions(self):
        first = RenderedState(actions=[IssueAction.VIEW])
        RenderedState.merge([first, RenderedState(actions=[IssueAction.CLAIM])])
        assert first.actions == [IssueAction.VIEW]
