"""
Home Tab

Publishes the list of open requests to a user's App Home.
"""

import logging

from servicebot.config import Settings
from servicebot.integrations.slack.blocks import home_view
from servicebot.services.request import derive_state, icon_for_state

logger = logging.getLogger(__name__)


class HomeTab:
    def __init__(self, jira, slack, settings: Settings):
        self.jira = jira
        self.slack = slack
        self.settings = settings

    def open_requests_jql(self) -> str:
        return (
            f'project = "{self.settings.jira_project}" and labels in ("{self.settings.request_label}") '
            'and statusCategory in ("To Do", "In Progress") order by created DESC'
        )

    async def publish(self, user_id: str) -> None:
        issues = await self.jira.search_issues(self.open_requests_jql())
        entries = []
        for issue in issues:
            state = derive_state(issue.status_category, issue.resolution_name, self.settings.jira_resolution_done)
            entries.append(
                {
                    "icon": icon_for_state(self.settings, state),
                    "key": issue.key,
                    "summary": issue.fields.summary,
                    "link": self.jira.key_to_web_link(issue.key),
                    "status": issue.fields.status.name if issue.fields.status else state.value,
                }
            )
        await self.slack.publish_home(user_id, home_view(entries))
        logger.info(f"Published home tab with {len(entries)} open requests for {user_id}")
