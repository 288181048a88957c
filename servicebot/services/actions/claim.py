"""
Claim Action

Assigns the ticket to whoever pressed "Claim" and starts it.
"""

import logging
from typing import Optional

from servicebot.models.request import FlowAction
from servicebot.services.actions.base import Action
from servicebot.services.request import ServiceRequest

logger = logging.getLogger(__name__)


class ClaimAction(Action):
    action = FlowAction.CLAIM

    async def execute(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        claimer = self.context.triggering_actor()
        await request.claim(claimer)
        logger.info(f"{request.key} claimed by {claimer}")
        return request

    def post_run(self, request: ServiceRequest) -> ServiceRequest:
        if not self.completed:
            return request
        claimer = request.claimer.slack_mention()
        self.context.spawn(
            request.notify_reporter(
                f":rocket: Guess what? {claimer} just claimed your request <{request.link}|{request.key}>."
            ),
            f"claim DM {request.key}",
        )
        self.context.spawn(
            request.notify_notification_channel(f"{claimer} claimed <{request.link}|{request.key}>."),
            f"claim notice {request.key}",
        )
        return request
