"""
Jira API Client

Responsibilities:
- Issue create/get/edit/search over REST v2
- Workflow transitions, assignment and comments
- Issue properties (the bot's sidecar storage)
- Priority, resolution, component and user lookups
- Link building from issue key to browse URL
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from servicebot.config import Settings, get_settings
from servicebot.exceptions import JiraApiError
from servicebot.integrations.jira.models import JiraIssue, JiraNamedValue, JiraUser

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class JiraClient:
    """Thin Jira REST client; blocking calls run in worker threads."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.base_url = f"https://{self.settings.jira_hostname}/rest/api/2"
        self.session = session or requests.Session()
        self.session.auth = (self.settings.jira_username, self.settings.jira_api_token)
        self.session.headers.update({"Accept": "application/json", "Content-Type": "application/json"})
        self._myself: Optional[JiraUser] = None

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=DEFAULT_TIMEOUT, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Jira request failed: {method} {path}: {e}")
            raise JiraApiError(str(e), operation=f"{method} {path}") from e

        if response.status_code >= 400:
            logger.error(f"Jira API error {response.status_code} on {method} {path}: {response.text}")
            raise JiraApiError(
                f"Jira returned {response.status_code}: {response.text}",
                operation=f"{method} {path}",
                status_code=response.status_code,
            )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    # Issues

    async def create_issue(self, fields: Dict[str, Any], properties: Optional[List[Dict[str, Any]]] = None) -> str:
        """
        Create an issue.

        Returns:
            The new issue key
        """
        body: Dict[str, Any] = {"fields": fields}
        if properties:
            body["properties"] = properties
        result = await self._call("POST", "/issue", json=body)
        logger.info(f"Created Jira issue {result['key']}")
        return result["key"]

    async def get_issue(self, key: str, properties: Optional[List[str]] = None) -> JiraIssue:
        params: Dict[str, Any] = {"fields": "*all"}
        if properties:
            params["properties"] = ",".join(properties)
        result = await self._call("GET", f"/issue/{key}", params=params)
        return JiraIssue.model_validate(result)

    async def edit_issue(self, key: str, fields: Dict[str, Any]) -> None:
        await self._call("PUT", f"/issue/{key}", json={"fields": fields})

    async def search_issues(
        self, jql: str, properties: Optional[List[str]] = None, max_results: int = 50
    ) -> List[JiraIssue]:
        params: Dict[str, Any] = {"jql": jql, "maxResults": max_results, "fields": "*all"}
        if properties:
            params["properties"] = ",".join(properties)
        result = await self._call("GET", "/search", params=params)
        return [JiraIssue.model_validate(issue) for issue in result.get("issues", [])]

    async def assign_issue(self, key: str, account_id: str) -> None:
        await self._call("PUT", f"/issue/{key}/assignee", json={"accountId": account_id})

    async def transition_issue(self, key: str, transition_id: str, resolution_id: Optional[str] = None) -> None:
        body: Dict[str, Any] = {"transition": {"id": transition_id}}
        if resolution_id:
            body["fields"] = {"resolution": {"id": resolution_id}}
        await self._call("POST", f"/issue/{key}/transitions", json=body)
        logger.info(f"Transitioned {key} with transition {transition_id}")

    async def add_comment(self, key: str, body: str) -> None:
        await self._call("POST", f"/issue/{key}/comment", json={"body": body})

    # Issue properties

    async def get_issue_property(self, key: str, property_key: str) -> Optional[Dict[str, Any]]:
        """Return the property value, or None when the issue has no such property."""
        try:
            result = await self._call("GET", f"/issue/{key}/properties/{property_key}")
        except JiraApiError as e:
            if e.status_code == 404:
                return None
            raise
        return result.get("value") if result else None

    async def set_issue_property(self, key: str, property_key: str, value: Dict[str, Any]) -> None:
        await self._call("PUT", f"/issue/{key}/properties/{property_key}", json=value)

    # Metadata

    async def get_priorities(self) -> List[JiraNamedValue]:
        result = await self._call("GET", "/priority")
        return [JiraNamedValue.model_validate(p) for p in result or []]

    async def get_resolutions(self) -> List[JiraNamedValue]:
        result = await self._call("GET", "/resolution")
        return [JiraNamedValue.model_validate(r) for r in result or []]

    async def get_project_components(self, project: str) -> List[JiraNamedValue]:
        result = await self._call("GET", f"/project/{project}/components")
        return [JiraNamedValue.model_validate(c) for c in result or []]

    # Users

    async def find_users(self, query: str) -> List[JiraUser]:
        result = await self._call("GET", "/user/search", params={"query": query})
        return [JiraUser.model_validate(u) for u in result or []]

    async def get_user(self, account_id: str) -> Optional[JiraUser]:
        try:
            result = await self._call("GET", "/user", params={"accountId": account_id})
        except JiraApiError as e:
            if e.status_code == 404:
                return None
            raise
        return JiraUser.model_validate(result) if result else None

    async def get_myself(self) -> JiraUser:
        """The account the bot authenticates as (cached)."""
        if self._myself is None:
            result = await self._call("GET", "/myself")
            self._myself = JiraUser.model_validate(result)
        return self._myself

    def key_to_web_link(self, key: str) -> str:
        return f"https://{self.settings.jira_hostname}/browse/{key}"
