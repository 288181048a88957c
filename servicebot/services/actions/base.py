"""
Action Handler Base

Every action handler follows the same lifecycle:
- pre_run: synchronous, no blocking I/O; may schedule optimistic UI feedback
- run: the ticket mutation; never raises, failures become an error reply and error state
- post_run: fire-and-forget notifications, spawned as background tasks
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Coroutine, Optional

from servicebot.config import Settings
from servicebot.exceptions import UserError
from servicebot.models.request import FlowAction, FlowSource
from servicebot.models.trigger import Trigger
from servicebot.services.actors import Actor, ActorResolver
from servicebot.services.catalog import ServiceCatalog
from servicebot.services.request import ServiceRequest
from servicebot.utils.tasks import TaskSpawner

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong while updating the ticket. Please try again or check Jira."


@dataclass(frozen=True)
class ActionContext:
    """Read-only capabilities handed to flows and action handlers for one trigger."""

    trigger: Trigger
    settings: Settings
    jira: Any
    slack: Any
    pagerduty: Any
    resolver: ActorResolver
    catalog: ServiceCatalog
    spawner: TaskSpawner

    @property
    def source(self) -> FlowSource:
        return self.trigger.source

    @property
    def payload(self):
        return self.trigger.payload

    def triggering_actor(self) -> Actor:
        if self.trigger.user_id:
            return self.resolver.resolve(slack_user_id=self.trigger.user_id)
        tracker_user = self.trigger.tracker_user
        return self.resolver.resolve(
            jira_user_id=tracker_user.account_id if tracker_user else None,
            jira_user=tracker_user,
        )

    def new_request(self, identity, notification_channel_id: Optional[str] = None) -> ServiceRequest:
        return ServiceRequest(
            identity,
            jira=self.jira,
            slack=self.slack,
            resolver=self.resolver,
            settings=self.settings,
            notification_channel_id=notification_channel_id,
        )

    def spawn(self, coro: Coroutine, description: str) -> None:
        self.spawner.spawn(coro, description)


class Action(ABC):
    """Handler for one FlowAction."""

    action: ClassVar[FlowAction]

    def __init__(self, context: ActionContext):
        self.context = context
        self.settings = context.settings
        self.completed = False

    def pre_run(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        return request

    async def run(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        """Run the mutation, turning failures into an error reply on the thread."""
        try:
            result = await self.execute(request)
            self.completed = True
            return result
        except UserError as e:
            logger.info(f"{self.action.value} rejected for {request}: {e}")
            await self._reply_error(request, str(e), user_id=self.context.trigger.user_id or None)
        except Exception as e:
            logger.error(f"{self.action.value} failed for {request}: {e}", exc_info=True)
            if request is not None:
                request.mark_error(GENERIC_ERROR_MESSAGE)
            await self._reply_error(request, GENERIC_ERROR_MESSAGE)
        return request

    @abstractmethod
    async def execute(self, request: Optional[ServiceRequest]) -> Optional[ServiceRequest]:
        """Perform the action; may raise, run() does the catching."""

    def post_run(self, request: ServiceRequest) -> ServiceRequest:
        return request

    async def _reply_error(
        self, request: Optional[ServiceRequest], message: str, user_id: Optional[str] = None
    ) -> None:
        if request is None:
            return
        try:
            await request.post_error_reply(message, user_id=user_id)
        except Exception as e:
            logger.error(f"Could not post error reply for {request}: {e}")
