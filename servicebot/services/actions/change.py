"""
Change Action

Handles a Jira-side edit of a request ticket. The ticket in the webhook is already the
latest state, so there is nothing to mutate; the orchestrator's render picks it up.
"""

import logging
from typing import Optional

from servicebot.models.request import FlowAction
from servicebot.services.actions.base import Action
from servicebot.services.request import ServiceRequest

logger = logging.getLogger(__name__)


class ChangeAction(Action):
    action = FlowAction.TICKET_CHANGED

    async def execute(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        request.clear_transient_state()
        logger.info(f"{request.key} changed in Jira; now {request.state.value}")
        return request

    def post_run(self, request: ServiceRequest) -> ServiceRequest:
        payload = self.context.payload
        if not self.completed or "status" not in payload.changed_fields:
            return request
        status = request.ticket.fields.status.name if request.ticket.fields.status else request.state.value
        changed_by = payload.user.display_name if payload.user and payload.user.display_name else "someone"
        self.context.spawn(
            request.post_reply(f"Status changed to *{status}* in Jira by {changed_by}."),
            f"status reply {request.key}",
        )
        return request
