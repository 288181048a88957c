"""
Actor Resolution

Responsibilities:
- Represent a person known by a Slack id, a Jira account id and/or an email
- Lazily enrich an actor with the raw profile of the other system
- Cache email -> Jira user and Slack id -> Slack profile lookups for the process lifetime

Lookup failures are logged and leave the actor unresolved; callers fall back to
"Unknown" rather than failing the request operation.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from servicebot.exceptions import IntegrationFailure
from servicebot.integrations.jira.models import JiraUser

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown"


class ActorSource(str, Enum):
    """System the actor's identity originally came from."""

    EMAIL = "email"
    SLACK = "slack"
    JIRA = "jira"


class Actor:
    """A person across Slack and Jira."""

    def __init__(
        self,
        source: ActorSource,
        email: Optional[str] = None,
        slack_user_id: Optional[str] = None,
        jira_user_id: Optional[str] = None,
        jira_user: Optional[JiraUser] = None,
        slack_user: Optional[Dict[str, Any]] = None,
    ):
        self.source = source
        self.slack_user_id = slack_user_id
        self.jira_user_id = jira_user_id or (jira_user.account_id if jira_user else None)
        self.jira_user = jira_user
        self.slack_user = slack_user
        self._email = email

    def __repr__(self) -> str:
        return f"Actor(source={self.source.value}, slack={self.slack_user_id}, jira={self.jira_user_id})"

    @property
    def has_raw_profile(self) -> bool:
        return self.jira_user is not None or self.slack_user is not None

    @property
    def email(self) -> Optional[str]:
        if self.slack_user:
            email = (self.slack_user.get("profile") or {}).get("email")
            if email:
                return email
        if self.jira_user and self.jira_user.email_address:
            return self.jira_user.email_address
        return self._email

    @property
    def real_name(self) -> Optional[str]:
        if self.slack_user:
            profile = self.slack_user.get("profile") or {}
            name = profile.get("real_name") or self.slack_user.get("real_name")
            if name:
                return name
        if self.jira_user and self.jira_user.display_name:
            return self.jira_user.display_name
        return None

    @property
    def display_name(self) -> str:
        return self.real_name or UNKNOWN_USER

    @property
    def jira_account_id(self) -> Optional[str]:
        if self.jira_user and self.jira_user.account_id:
            return self.jira_user.account_id
        return self.jira_user_id

    def slack_mention(self) -> str:
        """Best way to name this actor inside a Slack message."""
        if self.slack_user_id:
            return f"<@{self.slack_user_id}>"
        return self.display_name


class ActorResolver:
    """
    Builds and enriches actors.

    Both caches are plain dicts owned by whoever constructs the resolver, so a test (or a
    second resolver) can start from an isolated cache. Misses are cached too.
    """

    def __init__(
        self,
        slack,
        jira,
        email_cache: Optional[Dict[str, Optional[JiraUser]]] = None,
        profile_cache: Optional[Dict[str, Optional[Dict[str, Any]]]] = None,
    ):
        self.slack = slack
        self.jira = jira
        self.email_cache = email_cache if email_cache is not None else {}
        self.profile_cache = profile_cache if profile_cache is not None else {}

    def resolve(
        self,
        email: Optional[str] = None,
        slack_user_id: Optional[str] = None,
        jira_user_id: Optional[str] = None,
        jira_user: Optional[JiraUser] = None,
    ) -> Actor:
        """Build an actor from whatever partial identity the event supplied. No I/O."""
        if email:
            source = ActorSource.EMAIL
        elif slack_user_id:
            source = ActorSource.SLACK
        else:
            source = ActorSource.JIRA
        return Actor(
            source,
            email=email,
            slack_user_id=slack_user_id,
            jira_user_id=jira_user_id,
            jira_user=jira_user,
        )

    async def get_jira_user_by_email(self, email: str) -> Optional[JiraUser]:
        if email in self.email_cache:
            return self.email_cache[email]
        try:
            users = await self.jira.find_users(email)
        except IntegrationFailure as e:
            logger.error(f"Failed to look up Jira user for {email}: {e}")
            return None
        user = users[0] if users else None
        self.email_cache[email] = user
        return user

    async def get_slack_profile(self, slack_user_id: str) -> Optional[Dict[str, Any]]:
        if slack_user_id in self.profile_cache:
            return self.profile_cache[slack_user_id]
        try:
            user = await self.slack.get_user_info(slack_user_id)
        except IntegrationFailure as e:
            logger.error(f"Failed to look up Slack user {slack_user_id}: {e}")
            return None
        self.profile_cache[slack_user_id] = user
        return user

    async def load_slack_profile(self, actor: Actor) -> bool:
        if actor.slack_user is not None:
            return True
        if not actor.slack_user_id:
            return False
        actor.slack_user = await self.get_slack_profile(actor.slack_user_id)
        return actor.slack_user is not None

    async def load_jira_user(self, actor: Actor) -> bool:
        """
        Make sure the actor has a raw Jira user.

        Looks the user up by account id when one is known, otherwise by email, loading the
        Slack profile first if that is the only place the email can come from.
        """
        if actor.jira_user is not None:
            return True

        if actor.jira_user_id:
            try:
                actor.jira_user = await self.jira.get_user(actor.jira_user_id)
            except IntegrationFailure as e:
                logger.error(f"Failed to load Jira user {actor.jira_user_id}: {e}")
            return actor.jira_user is not None

        if not actor.email and actor.slack_user_id:
            await self.load_slack_profile(actor)

        email = actor.email
        if not email:
            return False
        actor.jira_user = await self.get_jira_user_by_email(email)
        if actor.jira_user:
            actor.jira_user_id = actor.jira_user.account_id
        return actor.jira_user is not None

    async def load_best_profile(self, actor: Actor) -> bool:
        """Load a raw profile from whichever system the actor is best known in."""
        if actor.has_raw_profile:
            return True

        prefer_jira = actor.jira_user_id and (actor.source == ActorSource.JIRA or not actor.slack_user_id)
        if prefer_jira:
            return await self.load_jira_user(actor)
        if actor.slack_user_id:
            return await self.load_slack_profile(actor)
        if actor.email:
            return await self.load_jira_user(actor)
        return False
