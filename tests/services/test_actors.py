"""
Tests for actor resolution and its lookup caches.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from servicebot.exceptions import JiraApiError, SlackIntegrationError
from servicebot.integrations.jira.models import JiraUser
from servicebot.services.actors import ActorResolver, ActorSource

RILEY_SLACK = {"id": "U1", "profile": {"real_name": "Riley Reporter", "email": "riley@example.com"}}
RILEY_JIRA = JiraUser.model_validate(
    {"accountId": "acc-riley", "displayName": "Riley (Jira)", "emailAddress": "riley@example.com"}
)


@pytest.fixture
def slack():
    client = MagicMock()
    client.get_user_info = AsyncMock(return_value=RILEY_SLACK)
    return client


@pytest.fixture
def jira():
    client = MagicMock()
    client.find_users = AsyncMock(return_value=[RILEY_JIRA])
    client.get_user = AsyncMock(return_value=RILEY_JIRA)
    return client


class TestResolve:
    def test_source_priority(self, slack, jira):
        """Test that email beats Slack id beats Jira id when choosing the source."""
        resolver = ActorResolver(slack, jira)
        assert resolver.resolve(email="a@b.c", slack_user_id="U1").source == ActorSource.EMAIL
        assert resolver.resolve(slack_user_id="U1", jira_user_id="acc").source == ActorSource.SLACK
        assert resolver.resolve(jira_user_id="acc").source == ActorSource.JIRA
        assert resolver.resolve(jira_user=RILEY_JIRA).source == ActorSource.JIRA

    def test_resolve_does_no_io(self, slack, jira):
        ActorResolver(slack, jira).resolve(slack_user_id="U1")
        slack.get_user_info.assert_not_called()
        jira.find_users.assert_not_called()

    def test_display_name_prefers_slack(self, slack, jira):
        actor = ActorResolver(slack, jira).resolve(slack_user_id="U1")
        actor.slack_user = RILEY_SLACK
        actor.jira_user = RILEY_JIRA
        assert actor.display_name == "Riley Reporter"
        assert actor.slack_mention() == "<@U1>"

    def test_unresolved_actor_is_unknown(self, slack, jira):
        actor = ActorResolver(slack, jira).resolve(jira_user_id="acc-x")
        assert actor.display_name == "Unknown"
        assert actor.slack_mention() == "Unknown"


class TestLoading:
    @pytest.mark.asyncio
    async def test_load_best_profile_from_slack(self, slack, jira):
        resolver = ActorResolver(slack, jira)
        actor = resolver.resolve(slack_user_id="U1")

        assert await resolver.load_best_profile(actor)
        assert actor.email == "riley@example.com"
        jira.get_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_load_best_profile_prefers_jira_for_jira_actors(self, slack, jira):
        resolver = ActorResolver(slack, jira)
        actor = resolver.resolve(jira_user_id="acc-riley")

        assert await resolver.load_best_profile(actor)
        jira.get_user.assert_awaited_once_with("acc-riley")
        slack.get_user_info.assert_not_called()

    @pytest.mark.asyncio
    async def test_load_best_profile_without_ids(self, slack, jira):
        resolver = ActorResolver(slack, jira)
        actor = resolver.resolve()
        assert await resolver.load_best_profile(actor) is False

    @pytest.mark.asyncio
    async def test_load_jira_user_via_slack_email(self, slack, jira):
        """Test that a Slack-only actor is matched to Jira through its Slack email."""
        resolver = ActorResolver(slack, jira)
        actor = resolver.resolve(slack_user_id="U1")

        assert await resolver.load_jira_user(actor)
        assert actor.jira_account_id == "acc-riley"
        jira.find_users.assert_awaited_once_with("riley@example.com")

    @pytest.mark.asyncio
    async def test_caches_hits_and_misses(self, slack, jira):
        email_cache = {}
        profile_cache = {}
        resolver = ActorResolver(slack, jira, email_cache=email_cache, profile_cache=profile_cache)
        jira.find_users = AsyncMock(return_value=[])

        assert await resolver.get_jira_user_by_email("nobody@example.com") is None
        assert await resolver.get_jira_user_by_email("nobody@example.com") is None
        await resolver.get_slack_profile("U1")
        await resolver.get_slack_profile("U1")

        jira.find_users.assert_awaited_once()
        slack.get_user_info.assert_awaited_once()
        assert email_cache == {"nobody@example.com": None}
        assert profile_cache == {"U1": RILEY_SLACK}

    @pytest.mark.asyncio
    async def test_failures_degrade_without_caching(self, slack, jira):
        """Test that lookup failures return None and are retried next time."""
        jira.find_users = AsyncMock(side_effect=JiraApiError("boom", status_code=500))
        slack.get_user_info = AsyncMock(side_effect=SlackIntegrationError("user_not_found"))
        resolver = ActorResolver(slack, jira)

        assert await resolver.get_jira_user_by_email("riley@example.com") is None
        assert await resolver.get_slack_profile("U1") is None
        assert resolver.email_cache == {}
        assert resolver.profile_cache == {}

        actor = resolver.resolve(slack_user_id="U1")
        assert await resolver.load_best_profile(actor) is False
        assert actor.display_name == "Unknown"
