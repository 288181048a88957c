"""
Request Flows

A flow owns a fixed set of actions and contributes part of the thread rendering:
- ClaimFlow: claim, complete, cancel and comment relay (the working lifecycle)
- IntakeFlow: the request modal, creation, paging and Jira-side changes

Flows answer a trigger twice. immediate_response() runs synchronously while the
platform waits for an acknowledgement and decides whether later flows run; handle()
runs the action handler in the background.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar, Mapping, Optional, Type

from servicebot.integrations.slack.blocks import page_completed_blocks, request_modal
from servicebot.integrations.slack.models import BlockActionPayload
from servicebot.models.identity import RequestIdentity
from servicebot.models.request import FlowAction, IssueAction, RenderedState, RequestState
from servicebot.services.actions import (
    Action,
    ActionContext,
    CancelAction,
    ChangeAction,
    ClaimAction,
    CommentAction,
    CompleteAction,
    CreateAction,
    PageAction,
)
from servicebot.services.request import ServiceRequest

logger = logging.getLogger(__name__)


class FlowBehavior(Enum):
    """What the orchestrator does after a flow's immediate response."""

    CONTINUE = "continue"  # schedule this flow, then ask the next one
    HALT = "halt"  # schedule nothing more, including this flow
    LAST_STEP = "last_step"  # schedule this flow, skip the rest


class Flow(ABC):
    """Base class for request flows."""

    name: ClassVar[str]
    priority: ClassVar[int]
    handlers: ClassVar[Mapping[FlowAction, Type[Action]]] = {}
    immediate_actions: ClassVar[frozenset] = frozenset()

    @classmethod
    def actions(cls) -> frozenset:
        return frozenset(cls.handlers) | cls.immediate_actions

    def handles(self, action: FlowAction) -> bool:
        return action in self.actions()

    def immediate_response(self, context: ActionContext) -> FlowBehavior:
        return FlowBehavior.CONTINUE

    async def handle(self, request: Optional[ServiceRequest], context: ActionContext) -> Optional[ServiceRequest]:
        """Run the handler registered for the trigger's action through its lifecycle."""
        handler_cls = self.handlers.get(context.trigger.action)
        if handler_cls is None:
            return request

        handler = handler_cls(context)
        request = handler.pre_run(request)
        result = await handler.run(request)
        if result is not None:
            handler.post_run(result)
        return result

    @abstractmethod
    def compute_state(self, request: ServiceRequest) -> RenderedState:
        """This flow's contribution to the thread rendering."""


class ClaimFlow(Flow):
    name = "claim"
    priority = 10
    handlers = {
        FlowAction.CLAIM: ClaimAction,
        FlowAction.COMPLETE: CompleteAction,
        FlowAction.CANCEL: CancelAction,
        FlowAction.COMMENT: CommentAction,
    }

    def compute_state(self, request: ServiceRequest) -> RenderedState:
        if not request.has_ticket:
            return RenderedState()

        settings = request.settings
        state = request.ticket_state
        if state == RequestState.TODO:
            return RenderedState(actions=[IssueAction.CLAIM, IssueAction.CANCEL])

        if state == RequestState.CLAIMED:
            return RenderedState(
                state=RequestState.CLAIMED,
                icon=settings.emoji_claimed,
                actions=[IssueAction.COMPLETE, IssueAction.CANCEL],
                fields=[{"title": "Claimed By", "value": self._claimer_name(request)}],
            )

        if state == RequestState.COMPLETE:
            return RenderedState(
                state=RequestState.COMPLETE,
                icon=settings.emoji_complete,
                fields=[{"title": "Completed By", "value": self._closer_name(request)}],
            )

        if state == RequestState.CANCELLED:
            return RenderedState(
                state=RequestState.CANCELLED,
                icon=settings.emoji_cancelled,
                fields=[{"title": "Cancelled By", "value": self._closer_name(request)}],
            )
        return RenderedState()

    @staticmethod
    def _claimer_name(request: ServiceRequest) -> str:
        if request.claimer:
            return request.claimer.slack_mention()
        assignee = request.ticket.fields.assignee
        return assignee.display_name if assignee and assignee.display_name else "Unknown"

    @staticmethod
    def _closer_name(request: ServiceRequest) -> str:
        return request.closer.slack_mention() if request.closer else "Unknown"


class IntakeFlow(Flow):
    name = "intake"
    priority = 20
    handlers = {
        FlowAction.CREATE: CreateAction,
        FlowAction.PAGE: PageAction,
        FlowAction.TICKET_CHANGED: ChangeAction,
    }
    immediate_actions = frozenset({FlowAction.MODAL_REQUEST})

    def immediate_response(self, context: ActionContext) -> FlowBehavior:
        action = context.trigger.action
        if action == FlowAction.MODAL_REQUEST:
            context.spawn(self._open_modal(context), "open request modal")
            return FlowBehavior.HALT

        if action == FlowAction.PAGE:
            self._remove_page_button(context)
        return FlowBehavior.CONTINUE

    async def _open_modal(self, context: ActionContext) -> None:
        trigger = context.trigger
        await context.catalog.ensure_loaded()
        metadata = RequestIdentity(channel=trigger.channel_id, ts=trigger.thread_ts).encode()
        view = request_modal(
            metadata,
            context.catalog.modal_priorities(),
            context.catalog.modal_components(),
            title=trigger.text,
        )
        await context.slack.open_view(trigger.trigger_id, view)

    def _remove_page_button(self, context: ActionContext) -> None:
        payload = context.payload
        if not isinstance(payload, BlockActionPayload) or not payload.response_url or not payload.message:
            return
        blocks = page_completed_blocks(payload.message.blocks, context.settings.on_call_button_pressed_text)
        context.spawn(
            context.slack.send_response(
                payload.response_url,
                replace_original=True,
                text=context.settings.on_call_button_pressed_text,
                blocks=blocks,
            ),
            "remove page button",
        )

    def compute_state(self, request: ServiceRequest) -> RenderedState:
        if not request.has_ticket:
            return RenderedState()

        contribution = RenderedState(
            actions=[IssueAction.VIEW],
            fields=[{"title": "Reported By", "value": self._reporter_name(request)}],
        )
        if request.ticket_state == RequestState.TODO:
            contribution.state = RequestState.TODO
            contribution.icon = request.settings.emoji_todo
        return contribution

    @staticmethod
    def _reporter_name(request: ServiceRequest) -> str:
        if request.reporter:
            return request.reporter.slack_mention()
        reporter = request.ticket.fields.reporter
        return reporter.display_name if reporter and reporter.display_name else "Unknown"


DEFAULT_FLOWS: tuple[Type[Flow], ...] = (ClaimFlow, IntakeFlow)
