# PagerDuty integration module
from servicebot.integrations.pagerduty.client import PagerDutyClient

__all__ = ["PagerDutyClient"]
