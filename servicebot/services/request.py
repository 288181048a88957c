"""
Service Request Aggregate

Responsibilities:
- Pair one Slack thread (RequestIdentity) with one Jira ticket
- Validate and update the sidecar properties stored on the ticket
- Derive the request state from the ticket's status category and resolution
- Ticket mutations: create, claim, complete, cancel, comment relay, page
- Thread output: replies, error replies, reporter DMs, notification channel notices
- Render the thread's top-level message

The ticket is the only source of truth; a ServiceRequest is rebuilt for every event.
"""

import logging
from typing import Any, Dict, List, Optional

from servicebot.config import Settings
from servicebot.exceptions import ConfigurationDrift, IntegrationFailure, SidecarMismatch, UserError
from servicebot.integrations.jira.models import JiraIssue
from servicebot.integrations.slack.blocks import jira_comment_blocks, request_thread_blocks, working_blocks
from servicebot.models.identity import RequestIdentity
from servicebot.models.request import RenderedState, RequestState, SidecarProperties
from servicebot.services.actors import Actor, ActorResolver
from servicebot.utils.helpers import find_user_mentions, prep_title_and_description, replace_user_mentions

logger = logging.getLogger(__name__)

# Used when the configured resolution name cannot be found in Jira
DEFAULT_RESOLUTION_ID = "1"
DEFAULT_RESOLUTION_NAME = "Done"

_TODO_CATEGORIES = {"to do", "new", "undefined"}
_IN_PROGRESS_CATEGORIES = {"in progress", "indeterminate"}
_DONE_CATEGORIES = {"done", "complete"}


def derive_state(status_category: str, resolution: str, done_resolution: str) -> RequestState:
    """
    Map a Jira status category (and resolution, for done tickets) to a RequestState.

    A done ticket is complete when its resolution is empty or matches the configured
    "done" resolution name; any other resolution means it was cancelled.
    """
    category = (status_category or "").lower()
    if category in _TODO_CATEGORIES:
        return RequestState.TODO
    if category in _IN_PROGRESS_CATEGORIES:
        return RequestState.CLAIMED
    if category in _DONE_CATEGORIES:
        if not resolution or resolution.lower() == (done_resolution or "").lower():
            return RequestState.COMPLETE
        return RequestState.CANCELLED
    return RequestState.UNKNOWN


def icon_for_state(settings: Settings, state: RequestState) -> str:
    icons = {
        RequestState.TODO: settings.emoji_todo,
        RequestState.CLAIMED: settings.emoji_claimed,
        RequestState.COMPLETE: settings.emoji_complete,
        RequestState.CANCELLED: settings.emoji_cancelled,
        RequestState.WORKING: settings.emoji_working,
        RequestState.ERROR: settings.emoji_error,
        RequestState.UNKNOWN: settings.emoji_unknown,
    }
    return icons.get(state, ":question:")


class ServiceRequest:
    """One Slack thread paired with one Jira ticket."""

    def __init__(
        self,
        identity: RequestIdentity,
        jira,
        slack,
        resolver: ActorResolver,
        settings: Settings,
        notification_channel_id: Optional[str] = None,
    ):
        self.identity = identity
        self.jira = jira
        self.slack = slack
        self.resolver = resolver
        self.settings = settings
        self.notification_channel_id = notification_channel_id

        self.ticket: Optional[JiraIssue] = None
        self.sidecar: Optional[SidecarProperties] = None

        self.reporter: Optional[Actor] = None
        self.claimer: Optional[Actor] = None
        self.closer: Optional[Actor] = None

        self.transient_state: Optional[RequestState] = None
        self.transient_message = ""

    def __repr__(self) -> str:
        return f"ServiceRequest({self.identity.encode()}, ticket={self.key})"

    # State

    @property
    def key(self) -> Optional[str]:
        return self.ticket.key if self.ticket else None

    @property
    def has_ticket(self) -> bool:
        return self.ticket is not None

    @property
    def link(self) -> str:
        return self.jira.key_to_web_link(self.ticket.key) if self.ticket else ""

    @property
    def ticket_state(self) -> RequestState:
        """State derived from the ticket alone, ignoring working/error markers."""
        if not self.ticket:
            return RequestState.UNKNOWN
        return derive_state(
            self.ticket.status_category, self.ticket.resolution_name, self.settings.jira_resolution_done
        )

    @property
    def state(self) -> RequestState:
        return self.transient_state or self.ticket_state

    def mark_working(self, message: str) -> None:
        self.transient_state = RequestState.WORKING
        self.transient_message = message

    def mark_error(self, message: str) -> None:
        self.transient_state = RequestState.ERROR
        self.transient_message = message

    def clear_transient_state(self) -> None:
        self.transient_state = None
        self.transient_message = ""

    # Ticket association

    async def set_ticket(self, issue: JiraIssue, sidecar: Optional[SidecarProperties] = None) -> None:
        """
        Attach a ticket, validating that its sidecar points back at this thread.

        The ticket and sidecar are only assigned once both are known to be consistent.

        Raises:
            SidecarMismatch: If the sidecar is missing or belongs to another thread
        """
        label = self.settings.jira_service_label
        if sidecar is None:
            raw = issue.properties.get(label)
            if raw is None:
                raw = await self.jira.get_issue_property(issue.key, label)
            if not raw:
                raise SidecarMismatch(f"Ticket {issue.key} has no '{label}' properties")
            sidecar = SidecarProperties.model_validate(raw)

        if sidecar.channel_id != self.identity.channel or sidecar.thread_id != self.identity.ts:
            raise SidecarMismatch(
                f"Ticket {issue.key} belongs to {sidecar.channel_id}/{sidecar.thread_id}, "
                f"not {self.identity.channel}/{self.identity.ts}"
            )

        self.ticket = issue
        self.sidecar = sidecar
        if not self.notification_channel_id and sidecar.notification_channel_id:
            self.notification_channel_id = sidecar.notification_channel_id
        self._load_participants()

    def _load_participants(self) -> None:
        sidecar = self.sidecar
        if sidecar.reporter_id and not self.reporter:
            self.reporter = self.resolver.resolve(slack_user_id=sidecar.reporter_id)
        if sidecar.claimer_id and not self.claimer:
            self.claimer = self.resolver.resolve(slack_user_id=sidecar.claimer_id)
        if sidecar.closer_id and not self.closer:
            self.closer = self.resolver.resolve(slack_user_id=sidecar.closer_id)

    async def find_ticket(self) -> bool:
        """Look the ticket up by the identity label. Returns False when the thread has none."""
        token = self.identity.encode()
        jql = f'labels in ("{token}") and labels in ("{self.settings.request_label}")'
        issues = await self.jira.search_issues(jql, properties=[self.settings.jira_service_label])
        if not issues:
            return False
        await self.set_ticket(issues[0])
        return True

    async def reload(self) -> None:
        """Re-fetch the ticket (ground truth) after a mutation."""
        issue = await self.jira.get_issue(self.ticket.key, properties=[self.settings.jira_service_label])
        await self.set_ticket(issue, sidecar=self._sidecar_or(issue, self.sidecar))

    async def update_sidecar(self, **changes: str) -> None:
        self.sidecar = self.sidecar.model_copy(update=changes)
        await self.jira.set_issue_property(
            self.ticket.key, self.settings.jira_service_label, self.sidecar.to_property()
        )

    def _require_ticket(self) -> JiraIssue:
        if not self.ticket:
            raise UserError("There is no ticket associated with this thread.")
        return self.ticket

    # Transitions

    async def create(
        self,
        title: str,
        description: str,
        reporter: Actor,
        priority_id: str = "",
        component_id: str = "",
    ) -> JiraIssue:
        """
        Create the ticket for this thread.

        Only the base ticket creation must succeed; epic and reporter linkage are applied
        afterwards and their failures are logged without undoing the ticket.
        """
        title, description = prep_title_and_description(title, description)
        await self.resolver.load_best_profile(reporter)
        if reporter.real_name:
            description = f"{description}\nSubmitted by {reporter.real_name}"

        sidecar = SidecarProperties(
            channel_id=self.identity.channel,
            thread_id=self.identity.ts,
            notification_channel_id=self.notification_channel_id or "",
            reporter_id=reporter.slack_user_id or "",
        )
        fields: Dict[str, Any] = {
            "summary": title,
            "description": description,
            "project": {"key": self.settings.jira_project},
            "issuetype": {"id": self.settings.jira_issue_type_id},
            "labels": [self.settings.request_label, self.identity.encode()],
        }
        if priority_id:
            fields["priority"] = {"id": priority_id}
        if component_id:
            fields["components"] = [{"id": component_id}]

        key = await self.jira.create_issue(
            fields, properties=[{"key": self.settings.jira_service_label, "value": sidecar.to_property()}]
        )
        self.reporter = reporter

        await self._link_epic(key)
        await self._link_reporter(key, reporter)

        try:
            issue = await self.jira.get_issue(key, properties=[self.settings.jira_service_label])
        except IntegrationFailure as e:
            logger.warning(f"Could not re-fetch new ticket {key}, using submitted fields: {e}")
            issue = JiraIssue.model_validate(
                {
                    "key": key,
                    "fields": {
                        "summary": title,
                        "description": description,
                        "status": {"name": "To Do", "statusCategory": {"name": "To Do"}},
                        "priority": fields.get("priority"),
                        "labels": fields["labels"],
                    },
                    "properties": {self.settings.jira_service_label: sidecar.to_property()},
                }
            )
        await self.set_ticket(issue, sidecar=self._sidecar_or(issue, sidecar))
        return issue

    def _sidecar_or(self, issue: JiraIssue, fallback: SidecarProperties) -> SidecarProperties:
        raw = issue.properties.get(self.settings.jira_service_label)
        return SidecarProperties.model_validate(raw) if raw else fallback

    async def _link_epic(self, key: str) -> None:
        epic = self.settings.jira_epic_key
        if not epic:
            return
        if self.settings.jira_epic_link_field_id:
            fields = {self.settings.jira_epic_link_field_id: epic}
        else:
            fields = {"parent": {"key": epic}}
        try:
            await self.jira.edit_issue(key, fields)
        except Exception as e:
            logger.error(f"Failed to link {key} to epic {epic}: {e}")

    async def _link_reporter(self, key: str, reporter: Actor) -> None:
        try:
            if not await self.resolver.load_jira_user(reporter):
                logger.info(f"No Jira account found for reporter of {key}; leaving default reporter")
                return
            await self.jira.edit_issue(key, {"reporter": {"accountId": reporter.jira_account_id}})
        except Exception as e:
            logger.error(f"Failed to set reporter on {key}: {e}")

    async def claim(self, claimer: Actor) -> None:
        """
        Assign the ticket to the claimer and start it.

        Raises:
            UserError: If the ticket has already been started, or the claimer has no Jira account
        """
        ticket = self._require_ticket()
        if ticket.status_category.lower() != "to do":
            raise UserError("You can only claim tickets that haven't been started yet.")

        if not await self.resolver.load_jira_user(claimer):
            raise UserError(
                "I couldn't find a Jira account matching your Slack email, so the ticket can't be assigned to you."
            )

        await self.jira.assign_issue(ticket.key, claimer.jira_account_id)
        await self.jira.transition_issue(ticket.key, self.settings.jira_transition_start)
        self.claimer = claimer
        await self.update_sidecar(claimer_id=claimer.slack_user_id or "")
        await self.reload()

    async def complete(self, closer: Actor) -> None:
        """
        Resolve the ticket as done.

        Raises:
            UserError: If the request has not been claimed
        """
        ticket = self._require_ticket()
        if self.ticket_state != RequestState.CLAIMED:
            raise UserError("You can only complete requests that have been claimed.")

        resolution_id = await self.resolution_id(self.settings.jira_resolution_done)
        await self.jira.transition_issue(ticket.key, self.settings.jira_transition_complete, resolution_id)
        self.closer = closer
        await self.update_sidecar(closer_id=closer.slack_user_id or "")
        await self.reload()

    async def cancel(self, closer: Actor) -> None:
        """
        Resolve the ticket with the cancel resolution.

        Raises:
            UserError: If the request is already closed
        """
        ticket = self._require_ticket()
        if self.ticket_state not in (RequestState.TODO, RequestState.CLAIMED):
            raise UserError("This request has already been closed.")

        resolution_id = await self.resolution_id(self.settings.jira_resolution_cancel)
        await self.jira.transition_issue(ticket.key, self.settings.cancel_transition, resolution_id)
        self.closer = closer
        await self.update_sidecar(closer_id=closer.slack_user_id or "")
        await self.reload()

    async def find_resolution_id(self, name: str) -> str:
        """
        Raises:
            ConfigurationDrift: If Jira has no resolution with this name
        """
        for resolution in await self.jira.get_resolutions():
            if resolution.name.lower() == (name or "").lower():
                return resolution.id
        raise ConfigurationDrift(f"Resolution '{name}' not found in Jira")

    async def resolution_id(self, name: str) -> str:
        """Jira id for a resolution name, falling back to the default "Done" resolution."""
        try:
            return await self.find_resolution_id(name)
        except ConfigurationDrift as e:
            logger.warning(f"{e}; using '{DEFAULT_RESOLUTION_NAME}' ({DEFAULT_RESOLUTION_ID})")
            return DEFAULT_RESOLUTION_ID

    async def relay_slack_comment(self, text: str, poster: Actor, message_ts: str) -> str:
        """
        Copy a thread reply into a Jira comment, resolving user mentions to names.

        Returns:
            The comment body posted to Jira
        """
        ticket = self._require_ticket()
        permalink = await self.slack.get_permalink(self.identity.channel, message_ts)

        names = {}
        for user_id in set(find_user_mentions(text)):
            mentioned = self.resolver.resolve(slack_user_id=user_id)
            if await self.resolver.load_slack_profile(mentioned) and mentioned.real_name:
                names[user_id] = mentioned.real_name

        await self.resolver.load_best_profile(poster)
        body = (
            f"\n{replace_user_mentions(text, names)}\n"
            f"~Comment posted in [Slack|{permalink}] by {poster.display_name}~"
        )
        await self.jira.add_comment(ticket.key, body)
        return body

    async def relay_jira_comment(self, body: str, poster: Actor) -> None:
        """Post a comment made in Jira into the thread."""
        await self.resolver.load_best_profile(poster)
        text, blocks = jira_comment_blocks(body, poster.display_name)
        await self.post_reply(text, blocks)

    def incident_details(self) -> tuple[str, str]:
        """Title and body for an on-call incident about this ticket."""
        ticket = self._require_ticket()
        title = f"{ticket.key} - {ticket.fields.summary}"
        details = (
            f"{ticket.key}\n{self.link}\n-----\n{ticket.fields.description or 'No description given'}"
        )
        return title, details

    # Slack output

    async def post_reply(self, text: str, blocks: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        return await self.slack.post_message(self.identity.channel, text, blocks=blocks, thread_ts=self.identity.ts)

    async def post_error_reply(self, message: str, user_id: Optional[str] = None) -> None:
        """Error reply in the thread; only visible to ``user_id`` when one is given."""
        text = f"{self.settings.emoji_error} {message}"
        if user_id:
            await self.slack.post_ephemeral(self.identity.channel, user_id, text, thread_ts=self.identity.ts)
            return
        await self.post_reply(text)

    async def notify_reporter(self, text: str) -> None:
        if not self.reporter or not self.reporter.slack_user_id:
            logger.debug(f"No Slack reporter to notify for {self.key}")
            return
        await self.slack.send_direct_message(self.reporter.slack_user_id, text)

    async def notify_notification_channel(self, text: str) -> None:
        if not self.notification_channel_id or self.settings.slack_conversation_restriction != "primary":
            return
        await self.slack.post_message(self.notification_channel_id, text)

    async def render(self, rendered: RenderedState) -> None:
        """Update the thread's top-level message to reflect the merged rendered state."""
        if self.transient_state == RequestState.WORKING or (not self.ticket and self.transient_state):
            text, blocks = working_blocks(
                self.transient_message, icon_for_state(self.settings, self.transient_state)
            )
        elif self.ticket:
            if self.transient_state == RequestState.ERROR:
                rendered.state = RequestState.ERROR
                rendered.icon = self.settings.emoji_error
                rendered.message = self.transient_message
            text, blocks = request_thread_blocks(self.ticket.key, self.ticket.fields.summary, self.link, rendered)
        else:
            logger.debug(f"Nothing to render for {self.identity.encode()}")
            return
        await self.slack.update_message(self.identity.channel, self.identity.ts, text, blocks)
