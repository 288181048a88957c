"""
PagerDuty API Client

Creates incidents through the REST v2 API on behalf of the configured "from" user.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import requests

from servicebot.config import Settings, get_settings
from servicebot.exceptions import PagerDutyApiError

logger = logging.getLogger(__name__)

INCIDENTS_URL = "https://api.pagerduty.com/incidents"
DEFAULT_TIMEOUT = 30


class PagerDutyClient:
    """Incident creation client."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/vnd.pagerduty+json;version=2",
            "From": self.settings.pagerduty_from_email,
            "Authorization": f"Token token={self.settings.pagerduty_token}",
        }

    def _post_incident(self, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(INCIDENTS_URL, json=body, headers=self._headers(), timeout=DEFAULT_TIMEOUT)
        except requests.exceptions.RequestException as e:
            logger.error(f"PagerDuty request failed: {e}")
            raise PagerDutyApiError(str(e), operation="create_incident") from e

        if response.status_code >= 400:
            logger.error(f"PagerDuty API error {response.status_code}: {response.text}")
            raise PagerDutyApiError(
                f"PagerDuty returned {response.status_code}: {response.text}",
                operation="create_incident",
                status_code=response.status_code,
            )
        return response.json().get("incident", {})

    async def create_incident(
        self,
        title: str,
        details: str,
        service_id: Optional[str] = None,
        escalation_policy_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create an incident.

        Args:
            title: Incident title
            details: Free text body
            service_id: Service reference (defaults to the configured service)
            escalation_policy_id: Escalation policy reference (defaults to configured policy)

        Returns:
            The created incident object
        """
        body = {
            "incident": {
                "type": "incident",
                "title": title,
                "service": {
                    "id": service_id or self.settings.pagerduty_service_default,
                    "type": "service_reference",
                },
                "body": {"type": "incident_body", "details": details},
                "escalation_policy": {
                    "id": escalation_policy_id or self.settings.pagerduty_escalation_policy_default,
                    "type": "escalation_policy_reference",
                },
            }
        }
        incident = await asyncio.to_thread(self._post_incident, body)
        logger.info(f"Created PagerDuty incident {incident.get('id')}: {title}")
        return incident
