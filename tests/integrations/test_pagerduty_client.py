"""
PagerDutyClient tests against a mocked requests session.
"""

from unittest.mock import MagicMock

import pytest
import requests

from servicebot.exceptions import PagerDutyApiError
from servicebot.integrations.pagerduty.client import INCIDENTS_URL, PagerDutyClient


@pytest.fixture
def pd_settings(settings):
    return settings.model_copy(
        update={
            "pagerduty_token": "pd-token",
            "pagerduty_from_email": "bot@example.com",
            "pagerduty_service_default": "PSVC",
            "pagerduty_escalation_policy_default": "PESC",
        }
    )


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.mark.asyncio
async def test_create_incident_uses_defaults(pd_settings, session):
    response = MagicMock(status_code=201)
    response.json.return_value = {"incident": {"id": "PINC1"}}
    session.post.return_value = response

    incident = await PagerDutyClient(pd_settings, session=session).create_incident("REQ-1 - Down", "details")

    assert incident == {"id": "PINC1"}
    args, kwargs = session.post.call_args
    assert args[0] == INCIDENTS_URL
    assert kwargs["headers"]["Authorization"] == "Token token=pd-token"
    assert kwargs["headers"]["From"] == "bot@example.com"
    body = kwargs["json"]["incident"]
    assert body["service"]["id"] == "PSVC"
    assert body["escalation_policy"]["id"] == "PESC"
    assert body["body"]["details"] == "details"


@pytest.mark.asyncio
async def test_create_incident_error(pd_settings, session):
    session.post.return_value = MagicMock(status_code=403, text="forbidden")

    with pytest.raises(PagerDutyApiError) as exc_info:
        await PagerDutyClient(pd_settings, session=session).create_incident("t", "d")

    assert exc_info.value.status_code == 403
