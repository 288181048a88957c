"""
Complete Action
"""

import logging
from typing import Optional

from servicebot.models.request import FlowAction
from servicebot.services.actions.base import Action
from servicebot.services.request import ServiceRequest

logger = logging.getLogger(__name__)


class CompleteAction(Action):
    action = FlowAction.COMPLETE

    async def execute(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        closer = self.context.triggering_actor()
        await request.complete(closer)
        logger.info(f"{request.key} completed by {closer}")
        return request

    def post_run(self, request: ServiceRequest) -> ServiceRequest:
        if not self.completed:
            return request
        closer = request.closer.slack_mention()
        self.context.spawn(
            request.notify_reporter(
                f":tada: Another one bites the dust! {closer} completed your request "
                f"<{request.link}|{request.key}>."
            ),
            f"complete DM {request.key}",
        )
        self.context.spawn(
            request.notify_notification_channel(f"{closer} completed <{request.link}|{request.key}>."),
            f"complete notice {request.key}",
        )
        return request
