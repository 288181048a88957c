from pydantic_settings import BaseSettings
from pydantic import BaseModel, ConfigDict, Field
from functools import lru_cache


class PrioritySettings(BaseModel):
    """One selectable request priority, joined to a Jira priority by name."""

    name: str
    jira_name: str
    triggers_pagerduty: bool = False
    description: str = ""
    slack_emoji: str = ""


def _default_priorities() -> list[PrioritySettings]:
    return [
        PrioritySettings(name="Low", jira_name="Low", description="Whenever you get to it"),
        PrioritySettings(name="Medium", jira_name="Medium", description="Sometime this week"),
        PrioritySettings(
            name="High",
            jira_name="High",
            triggers_pagerduty=True,
            description="Something is on fire",
            slack_emoji=":fire:",
        ),
    ]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Service Bot"
    debug: bool = False
    gate_cooldown_seconds: float = 0.0  # Delay before a finished (ticket, action) is allowed again

    # Slack
    slack_bot_token: str = ""
    slack_signing_secret: str = ""  # Request signature verification is skipped when empty
    slack_primary_channel: str = ""
    slack_conversation_restriction: str = "primary"  # primary | invited
    slack_bot_username: str = "servicebot"

    # Jira
    jira_hostname: str = ""
    jira_username: str = ""
    jira_api_token: str = ""
    jira_project: str = ""
    jira_issue_type_id: str = ""
    jira_epic_key: str = ""
    jira_epic_link_field_id: str = ""  # Empty means the epic is set as the parent
    jira_transition_start: str = ""
    jira_transition_complete: str = ""
    jira_transition_cancel: str = ""  # Falls back to jira_transition_complete
    jira_resolution_done: str = "Done"
    jira_resolution_cancel: str = "Won't Do"
    jira_service_label: str = "servicebot"

    # PagerDuty
    pagerduty_token: str = ""
    pagerduty_from_email: str = ""
    pagerduty_service_default: str = ""
    pagerduty_escalation_policy_default: str = ""

    # Priorities (JSON list in the environment)
    priorities: list[PrioritySettings] = Field(default_factory=_default_priorities)

    # Text
    emoji_todo: str = ":black_circle:"
    emoji_claimed: str = ":large_blue_circle:"
    emoji_complete: str = ":white_circle:"
    emoji_cancelled: str = ":red_circle:"
    emoji_working: str = ":clock1:"
    emoji_error: str = ":x:"
    emoji_unknown: str = ":red_circle:"
    high_priority_reply_text: str = (
        "This request was marked as high priority. If it needs immediate attention, "
        "page the on-call engineer."
    )
    on_call_button_text: str = "Page On-Call"
    on_call_button_pressed_text: str = ":white_check_mark: The on-call engineer has been paged."
    info_reply_text: str = (
        "Your request has been received. You will be notified here and by direct message "
        "as it is worked on."
    )

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def request_label(self) -> str:
        """Label added to every ticket created by the bot."""
        return f"{self.jira_service_label}-request"

    @property
    def cancel_transition(self) -> str:
        return self.jira_transition_cancel or self.jira_transition_complete


@lru_cache
def get_settings() -> Settings:
    return Settings()
