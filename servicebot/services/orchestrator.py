"""
Request Orchestrator

Single entry point for every Slack and Jira trigger:
1. Ask each flow that owns the action for its immediate response (synchronous)
2. In the background, rebuild the ServiceRequest from Slack or Jira data
3. Hold the control-flow gate for (ticket, action) while the flows run
4. Merge every flow's rendering contribution and update the thread once
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from servicebot.config import Settings
from servicebot.exceptions import IntegrationFailure, MalformedIdentity, SidecarMismatch
from servicebot.models.identity import RequestIdentity
from servicebot.models.request import FlowAction, FlowSource, RenderedState, SidecarProperties
from servicebot.models.trigger import Trigger
from servicebot.services.actions import ActionContext
from servicebot.services.actors import ActorResolver
from servicebot.services.catalog import ServiceCatalog
from servicebot.services.flow_control import ControlFlowGate
from servicebot.services.flows import Flow, FlowBehavior
from servicebot.services.request import ServiceRequest
from servicebot.utils.tasks import TaskSpawner

logger = logging.getLogger(__name__)

FLOW_FAILURE_MESSAGE = "Something went wrong while handling that. The ticket in Jira has not been changed by this step."

# Actions that start without an existing ticket
_TICKETLESS_ACTIONS = {FlowAction.CREATE, FlowAction.MODAL_REQUEST}


class Orchestrator:
    """Routes triggers through the registered flows."""

    def __init__(
        self,
        flows: Iterable[Flow],
        settings: Settings,
        jira,
        slack,
        pagerduty,
        resolver: ActorResolver,
        catalog: ServiceCatalog,
        gate: ControlFlowGate,
        spawner: TaskSpawner,
    ):
        self.flows: List[Flow] = sorted(flows, key=lambda flow: flow.priority)
        self.settings = settings
        self.jira = jira
        self.slack = slack
        self.pagerduty = pagerduty
        self.resolver = resolver
        self.catalog = catalog
        self.gate = gate
        self.spawner = spawner

    def _context(self, trigger: Trigger) -> ActionContext:
        return ActionContext(
            trigger=trigger,
            settings=self.settings,
            jira=self.jira,
            slack=self.slack,
            pagerduty=self.pagerduty,
            resolver=self.resolver,
            catalog=self.catalog,
            spawner=self.spawner,
        )

    def entry_point(self, trigger: Trigger) -> Optional[asyncio.Task]:
        """
        Handle a trigger. Returns before any network I/O happens.

        Returns:
            The background task running the asynchronous phase, or None if nothing was scheduled
        """
        context = self._context(trigger)
        scheduled: List[Flow] = []

        for flow in self.flows:
            if not flow.handles(trigger.action):
                continue
            behavior = flow.immediate_response(context)
            if behavior != FlowBehavior.HALT:
                scheduled.append(flow)
            if behavior != FlowBehavior.CONTINUE:
                logger.debug(f"Flow {flow.name} stopped {trigger.action.value} with {behavior.value}")
                break

        if not scheduled:
            return None

        return self.spawner.spawn(
            self._handle_async(context, scheduled),
            f"{trigger.action.value} from {trigger.source.value}",
        )

    async def _handle_async(self, context: ActionContext, flows: List[Flow]) -> Optional[ServiceRequest]:
        trigger = context.trigger
        try:
            request = await self.build_request(trigger)
        except MalformedIdentity as e:
            logger.warning(f"Unresolved {trigger.action.value}: {e}")
            return None
        except SidecarMismatch as e:
            logger.error(f"Refusing {trigger.action.value}: {e}")
            return None
        except IntegrationFailure as e:
            logger.error(f"Could not load request for {trigger.action.value}: {e}")
            return None

        if request is None and trigger.action not in _TICKETLESS_ACTIONS:
            logger.debug(f"No request ticket for {trigger.action.value}; ignoring")
            return None

        gate_key = request.key if request else None
        action = trigger.action.value
        if gate_key and not self.gate.try_acquire(gate_key, action):
            logger.info(f"Dropping {action} for {gate_key}: already in progress")
            return None

        try:
            if request is not None and request.has_ticket:
                # Lookup happened before the gate; another action may have moved the ticket since
                try:
                    await request.reload()
                except (IntegrationFailure, SidecarMismatch) as e:
                    logger.error(f"Could not refresh {gate_key} for {action}: {e}")
                    return None
            for flow in flows:
                request = await self._run_flow(flow, request, context)
            if request is not None:
                await self._render(request)
        finally:
            if gate_key:
                self.gate.release(gate_key, action)
        return request

    async def _run_flow(
        self, flow: Flow, request: Optional[ServiceRequest], context: ActionContext
    ) -> Optional[ServiceRequest]:
        try:
            result = await flow.handle(request, context)
        except Exception as e:
            logger.error(f"Flow {flow.name} failed on {context.trigger.action.value}: {e}", exc_info=True)
            if request is not None:
                await self._report_failure(request)
            return request
        return result if result is not None else request

    async def _report_failure(self, request: ServiceRequest) -> None:
        try:
            await request.post_error_reply(FLOW_FAILURE_MESSAGE)
        except Exception as e:
            logger.error(f"Could not report flow failure for {request}: {e}")

    def compute_rendered_state(self, request: ServiceRequest) -> RenderedState:
        """Merge every registered flow's contribution in priority order."""
        return RenderedState.merge([flow.compute_state(request) for flow in self.flows])

    async def _render(self, request: ServiceRequest) -> None:
        try:
            await request.render(self.compute_rendered_state(request))
        except IntegrationFailure as e:
            logger.error(f"Failed to render thread for {request}: {e}")

    # Request reconstruction

    async def build_request(self, trigger: Trigger) -> Optional[ServiceRequest]:
        """
        Rebuild the ServiceRequest a trigger refers to.

        Returns:
            The request, or None when the trigger does not belong to a request thread
        """
        if trigger.action in _TICKETLESS_ACTIONS:
            return None
        if trigger.source == FlowSource.JIRA:
            return await self._request_from_jira(trigger)
        return await self._request_from_slack(trigger)

    def _new_request(self, identity: RequestIdentity) -> ServiceRequest:
        return ServiceRequest(identity, jira=self.jira, slack=self.slack, resolver=self.resolver, settings=self.settings)

    async def _request_from_jira(self, trigger: Trigger) -> Optional[ServiceRequest]:
        payload = trigger.payload
        issue = payload.issue
        if issue is None:
            logger.debug("Jira webhook without an issue; ignoring")
            return None

        label = self.settings.jira_service_label
        raw = issue.properties.get(label)
        if raw is None:
            raw = await self.jira.get_issue_property(issue.key, label)
        if not raw:
            logger.debug(f"{issue.key} is not a request ticket; ignoring")
            return None

        sidecar = SidecarProperties.model_validate(raw)
        identity = RequestIdentity(channel=sidecar.channel_id, ts=sidecar.thread_id)
        if not identity.valid:
            logger.warning(f"{issue.key} has incomplete thread properties: {raw}")
            return None

        request = self._new_request(identity)
        await request.set_ticket(issue, sidecar=sidecar)
        return request

    async def _request_from_slack(self, trigger: Trigger) -> Optional[ServiceRequest]:
        identity = RequestIdentity(channel=trigger.channel_id, ts=trigger.thread_ts)
        if not identity.valid:
            logger.debug(f"Trigger {trigger.action.value} has no thread identity")
            return None

        request = self._new_request(identity)
        if not await request.find_ticket():
            return None
        return request
