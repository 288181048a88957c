"""
Jira API Routes

Receives Jira webhooks and turns the relevant ones into triggers:
- comment_created: relay the comment into the request thread
- jira:issue_updated: re-render when status, summary, description or assignee changed

Changes made by the bot's own Jira account are ignored.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from typing import Optional
import logging

from servicebot.api.dependencies import get_container
from servicebot.exceptions import IntegrationFailure
from servicebot.integrations.jira.models import JiraWebhookPayload
from servicebot.models.request import FlowAction
from servicebot.models.trigger import Trigger
from servicebot.services.container import ServiceContainer

logger = logging.getLogger(__name__)
router = APIRouter()

RELEVANT_FIELDS = {"status", "summary", "description", "assignee"}


async def classify_webhook(payload: JiraWebhookPayload, jira) -> Optional[FlowAction]:
    """Map a webhook delivery to the action it triggers, or None to ignore it."""
    if payload.issue is None:
        return None

    try:
        own_account_id = (await jira.get_myself()).account_id
    except IntegrationFailure as e:
        logger.warning(f"Could not determine the bot's Jira account: {e}")
        own_account_id = None

    if payload.webhook_event == "comment_created":
        author = payload.comment.author if payload.comment else None
        if author and own_account_id and author.account_id == own_account_id:
            return None
        return FlowAction.COMMENT

    if payload.webhook_event == "jira:issue_updated":
        if payload.user and own_account_id and payload.user.account_id == own_account_id:
            return None
        if payload.changed_fields & RELEVANT_FIELDS:
            return FlowAction.TICKET_CHANGED

    return None


@router.post("/webhook")
async def jira_webhook(request: Request, container: ServiceContainer = Depends(get_container)):
    """
    Jira webhook receiver.

    Register with events "Issue updated" and "Comment created", e.g.
    POST https://<host>/api/jira/webhook
    """
    try:
        payload = JiraWebhookPayload.model_validate_json(await request.body())
    except ValidationError as e:
        logger.warning(f"Unparsable Jira webhook: {e}")
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    action = await classify_webhook(payload, container.jira)
    if action is None:
        logger.debug(f"Ignoring Jira webhook {payload.webhook_event}")
        return {"ok": True, "handled": False}

    logger.info(f"Jira webhook {payload.webhook_event} on {payload.issue.key} -> {action.value}")
    container.orchestrator.entry_point(Trigger.from_jira_webhook(payload, action))
    return {"ok": True, "handled": True}
