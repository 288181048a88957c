"""
Page Action

Raises a PagerDuty incident for a high priority request.
"""

import logging
from typing import Optional

from servicebot.exceptions import UserError
from servicebot.models.request import FlowAction
from servicebot.services.actions.base import Action
from servicebot.services.request import ServiceRequest

logger = logging.getLogger(__name__)


class PageAction(Action):
    action = FlowAction.PAGE

    async def execute(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        ticket = request.ticket
        await self.context.catalog.ensure_loaded()
        if not self.context.catalog.triggers_pagerduty(ticket.priority_id):
            raise UserError("On-call can only be paged for high priority requests.")

        title, details = request.incident_details()
        incident = await self.context.pagerduty.create_incident(title, details)
        logger.info(f"Paged on-call for {ticket.key}: incident {incident.get('id')}")
        return request

    def post_run(self, request: ServiceRequest) -> ServiceRequest:
        if not self.completed:
            return request
        pager = self.context.triggering_actor().slack_mention()
        self.context.spawn(
            request.post_reply(f":rotating_light: {pager} paged the on-call engineer for {request.key}."),
            f"page reply {request.key}",
        )
        return request
