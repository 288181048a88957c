"""
Comment Action

Relays comments in both directions: thread replies become Jira comments, and Jira
comments are posted back into the thread.
"""

import logging
from typing import Optional

from servicebot.models.request import FlowAction, FlowSource
from servicebot.services.actions.base import Action
from servicebot.services.request import ServiceRequest

logger = logging.getLogger(__name__)


class CommentAction(Action):
    action = FlowAction.COMMENT

    async def execute(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        poster = self.context.triggering_actor()
        if self.context.source == FlowSource.JIRA:
            await request.relay_jira_comment(self.context.trigger.text, poster)
            logger.info(f"Relayed Jira comment on {request.key} to Slack")
        else:
            event = self.context.payload
            await request.relay_slack_comment(event.text, poster, event.ts)
            logger.info(f"Relayed Slack reply to {request.key}")
        return request
