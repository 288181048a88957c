"""
Cancel Action
"""

import logging
from typing import Optional

from servicebot.models.request import FlowAction
from servicebot.services.actions.base import Action
from servicebot.services.request import ServiceRequest

logger = logging.getLogger(__name__)


class CancelAction(Action):
    action = FlowAction.CANCEL

    async def execute(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        closer = self.context.triggering_actor()
        await request.cancel(closer)
        logger.info(f"{request.key} cancelled by {closer}")
        return request

    def post_run(self, request: ServiceRequest) -> ServiceRequest:
        if not self.completed:
            return request
        closer = request.closer.slack_mention()
        self.context.spawn(
            request.notify_reporter(
                f":face_with_hand_over_mouth: Hmmm... {closer} cancelled your request "
                f"<{request.link}|{request.key}>."
            ),
            f"cancel DM {request.key}",
        )
        self.context.spawn(
            request.notify_notification_channel(f"{closer} cancelled <{request.link}|{request.key}>."),
            f"cancel notice {request.key}",
        )
        return request
