"""
Create Action

Opens a new request thread in the conversation channel and creates its Jira ticket.
"""

import logging
from typing import Optional

from servicebot.exceptions import MalformedIdentity
from servicebot.integrations.slack.blocks import request_reply_blocks
from servicebot.models.identity import RequestIdentity, decode
from servicebot.models.request import FlowAction, determine_conversation_channel
from servicebot.services.actions.base import Action
from servicebot.services.request import ServiceRequest
from servicebot.utils.helpers import quote_description

logger = logging.getLogger(__name__)


class CreateAction(Action):
    action = FlowAction.CREATE

    def _originating_channel(self) -> str:
        metadata = self.context.payload.view.private_metadata
        try:
            return decode(metadata).channel
        except MalformedIdentity as e:
            logger.warning(f"{e}; using the primary channel")
            return self.settings.slack_primary_channel

    async def run(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        # The thread doesn't exist yet, so failures before it does can only be logged
        try:
            request = await self._open_thread()
        except Exception as e:
            logger.error(f"Could not start a request thread: {e}", exc_info=True)
            return None
        return await super().run(request)

    async def _open_thread(self) -> ServiceRequest:
        assignments = determine_conversation_channel(
            self._originating_channel(),
            self.settings.slack_primary_channel,
            self.settings.slack_conversation_restriction,
        )
        user_id = self.context.trigger.user_id
        result = await self.context.slack.post_message(
            assignments.conversation_channel_id, f":gear: Creating a ticket for <@{user_id}>"
        )
        identity = RequestIdentity(channel=result["channel"], ts=result["ts"])
        request = self.context.new_request(identity, assignments.notification_channel_id)
        request.mark_working(f"Creating a ticket for <@{user_id}>")
        return request

    async def execute(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        payload = self.context.payload
        await self.context.catalog.ensure_loaded()
        await request.create(
            title=payload.title,
            description=payload.description,
            reporter=self.context.triggering_actor(),
            priority_id=payload.priority,
            component_id=payload.category,
        )
        request.clear_transient_state()
        logger.info(f"Created {request.key} for thread {request.identity.encode()}")
        return request

    def post_run(self, request: ServiceRequest) -> ServiceRequest:
        if not self.completed:
            return request

        ticket = request.ticket
        high_priority = self.context.catalog.triggers_pagerduty(ticket.priority_id)
        blocks = request_reply_blocks(
            quote_description(self.context.payload.description),
            high_priority,
            self.settings.high_priority_reply_text,
            self.settings.on_call_button_text,
            self.settings.info_reply_text,
        )
        self.context.spawn(request.post_reply("Request details", blocks), f"create reply {request.key}")

        mention = request.reporter.slack_mention() if request.reporter else "Someone"
        self.context.spawn(
            request.notify_notification_channel(
                f"{mention} submitted a new request: <{request.link}|{ticket.key}> {ticket.fields.summary}"
            ),
            f"create notice {request.key}",
        )
        self.context.spawn(
            request.notify_reporter(
                f":star: Nicely done! Your request <{request.link}|{ticket.key}> has been submitted. "
                "I'll let you know when someone picks it up."
            ),
            f"create DM {request.key}",
        )
        return request

