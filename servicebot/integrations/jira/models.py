"""
Jira Data Models

Typed views over the Jira REST v2 issue, user and webhook payloads. Only the fields the
bot reads are declared; everything else is kept as extra data.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class JiraModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class JiraUser(JiraModel):
    """Jira Cloud user."""

    account_id: str = Field(default="", alias="accountId")
    display_name: str = Field(default="", alias="displayName")
    email_address: str = Field(default="", alias="emailAddress")


class JiraNamedValue(JiraModel):
    """Priority, resolution, component and similar id/name pairs."""

    id: str = ""
    name: str = ""


class JiraStatusCategory(JiraModel):
    key: str = ""
    name: str = ""


class JiraStatus(JiraModel):
    name: str = ""
    status_category: JiraStatusCategory = Field(default_factory=JiraStatusCategory, alias="statusCategory")


class JiraIssueFields(JiraModel):
    summary: str = ""
    description: Optional[str] = None
    status: Optional[JiraStatus] = None
    resolution: Optional[JiraNamedValue] = None
    priority: Optional[JiraNamedValue] = None
    components: list[JiraNamedValue] = []
    assignee: Optional[JiraUser] = None
    reporter: Optional[JiraUser] = None
    labels: list[str] = []


class JiraIssue(JiraModel):
    """A Jira issue, optionally with its issue properties expanded."""

    id: str = ""
    key: str
    fields: JiraIssueFields = Field(default_factory=JiraIssueFields)
    properties: dict[str, Any] = {}

    @property
    def status_category(self) -> str:
        if not self.fields.status:
            return ""
        return self.fields.status.status_category.name

    @property
    def resolution_name(self) -> str:
        return self.fields.resolution.name if self.fields.resolution else ""

    @property
    def priority_id(self) -> str:
        return self.fields.priority.id if self.fields.priority else ""


class JiraChangelogItem(JiraModel):
    field: str = ""
    from_string: Optional[str] = Field(default=None, alias="fromString")
    to_string: Optional[str] = Field(default=None, alias="toString")


class JiraChangelog(JiraModel):
    items: list[JiraChangelogItem] = []


class JiraComment(JiraModel):
    id: str = ""
    body: str = ""
    author: Optional[JiraUser] = None


class JiraWebhookPayload(JiraModel):
    """Body of a Jira webhook delivery (issue updated, comment created)."""

    webhook_event: str = Field(default="", alias="webhookEvent")
    user: Optional[JiraUser] = None
    issue: Optional[JiraIssue] = None
    changelog: Optional[JiraChangelog] = None
    comment: Optional[JiraComment] = None

    @property
    def changed_fields(self) -> set[str]:
        if not self.changelog:
            return set()
        return {item.field for item in self.changelog.items}

    @property
    def triggering_user(self) -> Optional[JiraUser]:
        if self.comment and self.comment.author:
            return self.comment.author
        return self.user
