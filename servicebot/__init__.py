"""servicebot - Jira service requests driven from Slack threads."""

__version__ = "0.1.0"
