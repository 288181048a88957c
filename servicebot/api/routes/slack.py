"""
Slack API Routes

- /events: Events API (url_verification, threaded replies, app_home_opened)
- /interactions: button presses, message shortcuts and the request modal submission
- /commands: slash command that opens the request modal

Every handler acknowledges immediately; the work runs in background tasks.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import ValidationError
from slack_sdk.signature import SignatureVerifier
from typing import Dict
from urllib.parse import parse_qs
import json
import logging

from servicebot.api.dependencies import get_container
from servicebot.integrations.slack.blocks import REQUEST_MODAL_CALLBACK_ID, SUBMIT_REQUEST_CALLBACK_ID
from servicebot.integrations.slack.client import SlackClient
from servicebot.integrations.slack.models import (
    BlockActionPayload,
    EventCallback,
    ShortcutPayload,
    SlashCommandPayload,
    ViewSubmissionPayload,
)
from servicebot.models.request import FlowAction
from servicebot.models.trigger import Trigger
from servicebot.services.container import ServiceContainer

logger = logging.getLogger(__name__)
router = APIRouter()

BUTTON_ACTIONS = {FlowAction.CLAIM, FlowAction.COMPLETE, FlowAction.CANCEL, FlowAction.PAGE}


async def _verified_body(request: Request, container: ServiceContainer) -> bytes:
    """Read the raw body, checking the Slack signature when a signing secret is configured."""
    body = await request.body()
    secret = container.settings.slack_signing_secret
    if secret and not SignatureVerifier(secret).is_valid_request(body, dict(request.headers)):
        logger.warning("Rejected Slack request with an invalid signature")
        raise HTTPException(status_code=401, detail="Invalid Slack signature")
    return body


def _form_fields(body: bytes) -> Dict[str, str]:
    return {key: values[0] for key, values in parse_qs(body.decode("utf-8")).items()}


def validate_request_submission(payload: ViewSubmissionPayload) -> Dict[str, str]:
    """Modal validation errors keyed by block id (empty when the submission is valid)."""
    errors = {}
    if not payload.title.strip():
        errors["title_input"] = "You must provide a summary for the request"
    if "category_input" in payload.view.state.values and not payload.category:
        errors["category_input"] = "You must specify a category"
    return errors


@router.post("/events")
async def slack_events(request: Request, container: ServiceContainer = Depends(get_container)):
    """Slack Events API endpoint."""
    body = await _verified_body(request, container)
    try:
        envelope = EventCallback.model_validate_json(body)
    except ValidationError as e:
        logger.warning(f"Unparsable Slack event: {e}")
        raise HTTPException(status_code=400, detail="Invalid event payload")

    if envelope.type == "url_verification":
        return {"challenge": envelope.challenge}

    # Slack re-delivers events it thinks timed out; the first delivery is already being handled
    if request.headers.get("x-slack-retry-num"):
        return {"ok": True}

    event = envelope.event
    if event is None:
        return {"ok": True}

    if event.type == "message":
        if event.is_thread_reply and not event.is_from_bot and event.user and not event.subtype:
            container.orchestrator.entry_point(Trigger.from_message_event(event))
    elif event.type == "app_home_opened" and event.user and event.tab in (None, "home"):
        container.spawner.spawn(container.home.publish(event.user), f"publish home for {event.user}")

    return {"ok": True}


@router.post("/interactions")
async def slack_interactions(request: Request, container: ServiceContainer = Depends(get_container)):
    """Slack interactivity endpoint (form-encoded ``payload`` field)."""
    body = await _verified_body(request, container)
    raw = _form_fields(body).get("payload")
    if not raw:
        raise HTTPException(status_code=400, detail="Missing payload")

    try:
        data = json.loads(raw)
        kind = data.get("type")

        if kind == "block_actions":
            payload = BlockActionPayload.model_validate(data)
            for item in payload.actions:
                try:
                    action = FlowAction(item.action_id)
                except ValueError:
                    logger.debug(f"Ignoring unknown action {item.action_id}")
                    continue
                if action in BUTTON_ACTIONS:
                    container.orchestrator.entry_point(Trigger.from_block_action(payload, action))
            return Response(status_code=200)

        if kind in ("message_action", "shortcut"):
            payload = ShortcutPayload.model_validate(data)
            if payload.callback_id == SUBMIT_REQUEST_CALLBACK_ID:
                trigger = Trigger.from_shortcut(payload)
                # Messages made only of blocks carry no top-level text
                trigger.text = trigger.text or SlackClient.extract_text(data)
                container.orchestrator.entry_point(trigger)
            return Response(status_code=200)

        if kind == "view_submission":
            payload = ViewSubmissionPayload.model_validate(data)
            if payload.view.callback_id != REQUEST_MODAL_CALLBACK_ID:
                return Response(status_code=200)
            errors = validate_request_submission(payload)
            if errors:
                return {"response_action": "errors", "errors": errors}
            container.orchestrator.entry_point(Trigger.from_view_submission(payload))
            return {"response_action": "clear"}

    except (ValueError, ValidationError) as e:
        logger.warning(f"Unparsable Slack interaction: {e}")
        raise HTTPException(status_code=400, detail="Invalid interaction payload")

    logger.debug(f"Ignoring Slack interaction type {kind}")
    return Response(status_code=200)


@router.post("/commands")
async def slack_commands(request: Request, container: ServiceContainer = Depends(get_container)):
    """Slash command: opens the request modal pre-filled with the command text."""
    body = await _verified_body(request, container)
    try:
        payload = SlashCommandPayload.model_validate(_form_fields(body))
    except ValidationError as e:
        logger.warning(f"Unparsable slash command: {e}")
        raise HTTPException(status_code=400, detail="Invalid command payload")

    container.orchestrator.entry_point(Trigger.from_command(payload))
    return Response(status_code=200)
