# Jira integration module
from servicebot.integrations.jira.client import JiraClient
from servicebot.integrations.jira.models import (
    JiraIssue,
    JiraUser,
    JiraNamedValue,
    JiraWebhookPayload,
)

__all__ = ["JiraClient", "JiraIssue", "JiraUser", "JiraNamedValue", "JiraWebhookPayload"]
