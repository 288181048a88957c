"""
Shared test fixtures: in-memory Jira, Slack and PagerDuty collaborators.
"""

import asyncio
import copy
import re
from typing import Any, Dict, List, Optional

import pytest

from servicebot.config import Settings
from servicebot.integrations.jira.models import JiraIssue, JiraNamedValue, JiraUser
from servicebot.services.container import build_container

JIRA_HOST = "jira.example.com"
PRIMARY_CHANNEL = "CPRIMARY"

SLACK_USERS = {
    "UREPORTER": {"id": "UREPORTER", "real_name": "Riley Reporter", "profile": {"real_name": "Riley Reporter", "email": "riley@example.com"}},
    "UCLAIMER": {"id": "UCLAIMER", "real_name": "Casey Claimer", "profile": {"real_name": "Casey Claimer", "email": "casey@example.com"}},
    "U123": {"id": "U123", "real_name": "Morgan Mention", "profile": {"real_name": "Morgan Mention", "email": "morgan@example.com"}},
}

JIRA_USERS = {
    "riley@example.com": {"accountId": "acc-riley", "displayName": "Riley Reporter", "emailAddress": "riley@example.com"},
    "casey@example.com": {"accountId": "acc-casey", "displayName": "Casey Claimer", "emailAddress": "casey@example.com"},
}

STATUS_BY_TRANSITION = {
    "11": ("In Progress", "In Progress"),
    "31": ("Done", "Done"),
    "41": ("Done", "Done"),
}

_LABEL_PATTERN = re.compile(r'labels in \("([^"]+)"\)')


class FakeJira:
    """Jira collaborator backed by dicts; records every mutating call."""

    def __init__(self):
        self.issues: Dict[str, Dict[str, Any]] = {}
        self.properties: Dict[str, Dict[str, Any]] = {}
        self.comments: Dict[str, List[str]] = {}
        self.calls: List[tuple] = []
        self.resolutions = [JiraNamedValue(id="10000", name="Done"), JiraNamedValue(id="10001", name="Won't Do")]
        self.priorities = [
            JiraNamedValue(id="2", name="High"),
            JiraNamedValue(id="3", name="Medium"),
            JiraNamedValue(id="4", name="Low"),
        ]
        self.components = [JiraNamedValue(id="100", name="Access"), JiraNamedValue(id="101", name="Hardware")]
        self.myself = JiraUser.model_validate({"accountId": "acc-bot", "displayName": "Service Bot"})
        self.assign_started = asyncio.Event()
        self.assign_release: Optional[asyncio.Event] = None
        self.search_started = asyncio.Event()
        self.search_release: Optional[asyncio.Event] = None
        self._counter = 0

    def seed_issue(
        self,
        channel: str,
        ts: str,
        status: str = "To Do",
        category: str = "To Do",
        resolution: Optional[str] = None,
        priority_id: str = "3",
        reporter_id: str = "UREPORTER",
        claimer_id: str = "",
        summary: str = "Fix the thing",
    ) -> str:
        self._counter += 1
        key = f"REQ-{self._counter}"
        self.issues[key] = {
            "id": str(10000 + self._counter),
            "key": key,
            "fields": {
                "summary": summary,
                "description": "",
                "status": {"name": status, "statusCategory": {"name": category}},
                "resolution": {"id": "x", "name": resolution} if resolution else None,
                "priority": {"id": priority_id, "name": "p"},
                "labels": ["servicebot-request", f"{channel}||{ts}"],
            },
        }
        self.properties[key] = {
            "servicebot": {
                "channelId": channel,
                "threadId": ts,
                "reporterId": reporter_id,
                "claimerId": claimer_id,
            }
        }
        return key

    def _issue(self, key: str, properties: Optional[List[str]] = None) -> JiraIssue:
        raw = copy.deepcopy(self.issues[key])
        if properties:
            raw["properties"] = {
                name: copy.deepcopy(value)
                for name, value in self.properties.get(key, {}).items()
                if name in properties
            }
        return JiraIssue.model_validate(raw)

    async def create_issue(self, fields, properties=None) -> str:
        self.calls.append(("create_issue", fields))
        self._counter += 1
        key = f"REQ-{self._counter}"
        self.issues[key] = {
            "id": str(10000 + self._counter),
            "key": key,
            "fields": {
                "summary": fields["summary"],
                "description": fields.get("description"),
                "status": {"name": "To Do", "statusCategory": {"name": "To Do"}},
                "resolution": None,
                "priority": fields.get("priority"),
                "labels": list(fields.get("labels", [])),
            },
        }
        self.properties[key] = {p["key"]: copy.deepcopy(p["value"]) for p in properties or []}
        return key

    async def get_issue(self, key, properties=None) -> JiraIssue:
        return self._issue(key, properties)

    async def edit_issue(self, key, fields) -> None:
        self.calls.append(("edit_issue", key, fields))

    async def search_issues(self, jql, properties=None, max_results=50) -> List[JiraIssue]:
        labels = _LABEL_PATTERN.findall(jql)
        found = []
        for key, raw in self.issues.items():
            if not all(label in raw["fields"]["labels"] for label in labels):
                continue
            if "statusCategory in" in jql and raw["fields"]["status"]["statusCategory"]["name"] == "Done":
                continue
            found.append(self._issue(key, properties))
        self.search_started.set()
        if self.search_release is not None:
            await self.search_release.wait()
        return found

    async def assign_issue(self, key, account_id) -> None:
        self.calls.append(("assign_issue", key, account_id))
        self.assign_started.set()
        if self.assign_release is not None:
            await self.assign_release.wait()
        self.issues[key]["fields"]["assignee"] = {"accountId": account_id, "displayName": account_id}

    async def transition_issue(self, key, transition_id, resolution_id=None) -> None:
        self.calls.append(("transition_issue", key, transition_id, resolution_id))
        status, category = STATUS_BY_TRANSITION[transition_id]
        fields = self.issues[key]["fields"]
        fields["status"] = {"name": status, "statusCategory": {"name": category}}
        if resolution_id:
            name = next(r.name for r in self.resolutions if r.id == resolution_id)
            fields["resolution"] = {"id": resolution_id, "name": name}

    async def add_comment(self, key, body) -> None:
        self.comments.setdefault(key, []).append(body)

    async def get_issue_property(self, key, property_key):
        return copy.deepcopy(self.properties.get(key, {}).get(property_key))

    async def set_issue_property(self, key, property_key, value) -> None:
        self.calls.append(("set_issue_property", key, value))
        self.properties.setdefault(key, {})[property_key] = copy.deepcopy(value)

    async def get_priorities(self):
        return list(self.priorities)

    async def get_resolutions(self):
        return list(self.resolutions)

    async def get_project_components(self, project):
        return list(self.components)

    async def find_users(self, query):
        user = JIRA_USERS.get(query)
        return [JiraUser.model_validate(user)] if user else []

    async def get_user(self, account_id):
        for user in JIRA_USERS.values():
            if user["accountId"] == account_id:
                return JiraUser.model_validate(user)
        return None

    async def get_myself(self):
        return self.myself

    def key_to_web_link(self, key: str) -> str:
        return f"https://{JIRA_HOST}/browse/{key}"


class FakeSlack:
    """Slack collaborator that records what would have been sent."""

    def __init__(self):
        self.posted: List[Dict[str, Any]] = []
        self.updated: List[Dict[str, Any]] = []
        self.dms: List[Dict[str, Any]] = []
        self.views: List[Dict[str, Any]] = []
        self.homes: List[Dict[str, Any]] = []
        self.responses: List[Dict[str, Any]] = []
        self.ephemerals: List[Dict[str, Any]] = []
        self.users = dict(SLACK_USERS)
        self._counter = 0

    async def post_message(self, channel, text, blocks=None, thread_ts=None):
        self._counter += 1
        ts = f"1700000000.{self._counter:06d}"
        self.posted.append({"channel": channel, "text": text, "blocks": blocks, "thread_ts": thread_ts, "ts": ts})
        return {"ok": True, "channel": channel, "ts": ts}

    async def update_message(self, channel, ts, text, blocks=None):
        self.updated.append({"channel": channel, "ts": ts, "text": text, "blocks": blocks})
        return {"ok": True}

    async def post_ephemeral(self, channel, user, text, thread_ts=None):
        self.ephemerals.append({"channel": channel, "user": user, "text": text, "thread_ts": thread_ts})
        return {"ok": True}

    async def send_direct_message(self, user_id, text):
        self.dms.append({"user": user_id, "text": text})
        return {"ok": True}

    async def open_view(self, trigger_id, view):
        self.views.append({"trigger_id": trigger_id, "view": view})
        return {"ok": True}

    async def publish_home(self, user_id, view):
        self.homes.append({"user": user_id, "view": view})
        return {"ok": True}

    async def get_permalink(self, channel, ts):
        return f"https://example.slack.com/archives/{channel}/p{ts.replace('.', '')}"

    async def get_user_info(self, user_id):
        return self.users.get(user_id)

    async def send_response(self, response_url, **payload):
        self.responses.append({"url": response_url, **payload})

    def thread_replies(self, ts: str) -> List[Dict[str, Any]]:
        return [message for message in self.posted if message["thread_ts"] == ts]


class FakePagerDuty:
    def __init__(self):
        self.incidents: List[Dict[str, Any]] = []

    async def create_incident(self, title, details, service_id=None, escalation_policy_id=None):
        self.incidents.append({"title": title, "details": details})
        return {"id": f"PD{len(self.incidents)}"}


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        jira_hostname=JIRA_HOST,
        jira_project="REQ",
        jira_issue_type_id="10002",
        jira_transition_start="11",
        jira_transition_complete="31",
        jira_transition_cancel="41",
        jira_resolution_done="Done",
        jira_resolution_cancel="Won't Do",
        jira_service_label="servicebot",
        slack_primary_channel=PRIMARY_CHANNEL,
        slack_conversation_restriction="primary",
    )


@pytest.fixture
def fake_jira():
    return FakeJira()


@pytest.fixture
def fake_slack():
    return FakeSlack()


@pytest.fixture
def fake_pagerduty():
    return FakePagerDuty()


@pytest.fixture
def container(settings, fake_jira, fake_slack, fake_pagerduty):
    return build_container(settings, jira=fake_jira, slack=fake_slack, pagerduty=fake_pagerduty)
