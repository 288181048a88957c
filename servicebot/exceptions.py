"""
Service Bot Exceptions

Error taxonomy shared by the collaborators, handlers and orchestrator:
- UserError: operation not valid for the request's current state; shown to the user
- IntegrationFailure: an external API call failed
- ConfigurationDrift: a configured name could not be found on the external system
- MalformedIdentity: a correlation token could not be decoded
- SidecarMismatch: ticket metadata does not belong to the thread it was looked up by
"""


class ServiceBotError(Exception):
    """Base class for all service bot errors."""


class UserError(ServiceBotError):
    """Invalid operation for the current request state."""


class IntegrationFailure(ServiceBotError):
    """An external service call failed."""

    def __init__(self, message: str, operation: str = "", status_code: int | None = None):
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code


class JiraApiError(IntegrationFailure):
    """Jira REST call failed."""


class SlackIntegrationError(IntegrationFailure):
    """Slack Web API call failed."""


class PagerDutyApiError(IntegrationFailure):
    """PagerDuty REST call failed."""


class ConfigurationDrift(ServiceBotError):
    """A configured resolution, transition or priority name is missing upstream."""


class MalformedIdentity(ServiceBotError, ValueError):
    """Correlation token could not be decoded into a thread identity."""


class SidecarMismatch(ServiceBotError):
    """Sidecar properties are missing or point at a different thread."""
