"""
Request Catalog

Joins the configured request priorities with the Jira priorities of the same name and
loads the project components offered as request categories.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from servicebot.config import PrioritySettings, Settings
from servicebot.exceptions import IntegrationFailure
from servicebot.integrations.jira.models import JiraNamedValue

logger = logging.getLogger(__name__)


@dataclass
class PreparedPriority:
    """A configured priority with its Jira id resolved."""

    settings: PrioritySettings
    jira_id: str

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def triggers_pagerduty(self) -> bool:
        return self.settings.triggers_pagerduty


class ServiceCatalog:
    """Priorities and categories available to new requests."""

    def __init__(self, jira, settings: Settings):
        self.jira = jira
        self.settings = settings
        self.priorities: List[PreparedPriority] = []
        self.components: List[JiraNamedValue] = []
        self.loaded = False
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Fetch Jira priorities and components. Configured names Jira doesn't know are skipped."""
        jira_priorities = await self.jira.get_priorities()
        by_name = {p.name.lower(): p for p in jira_priorities}

        prepared = []
        for priority in self.settings.priorities:
            match = by_name.get(priority.jira_name.lower())
            if not match:
                logger.warning(f"Configured priority '{priority.jira_name}' not found in Jira; skipping")
                continue
            prepared.append(PreparedPriority(settings=priority, jira_id=match.id))

        self.priorities = prepared
        self.components = await self.jira.get_project_components(self.settings.jira_project)
        self.loaded = True
        logger.info(f"Loaded {len(self.priorities)} priorities and {len(self.components)} components")

    async def ensure_loaded(self) -> None:
        async with self._lock:
            if self.loaded:
                return
            try:
                await self.load()
            except IntegrationFailure as e:
                logger.error(f"Failed to load request catalog: {e}")

    def find_priority(self, jira_id: str) -> Optional[PreparedPriority]:
        for priority in self.priorities:
            if priority.jira_id == jira_id:
                return priority
        return None

    def triggers_pagerduty(self, jira_id: str) -> bool:
        priority = self.find_priority(jira_id)
        return bool(priority and priority.triggers_pagerduty)

    def modal_priorities(self) -> List[Dict[str, str]]:
        return [
            {"id": p.jira_id, "name": f"{p.settings.slack_emoji} {p.name}".strip(), "description": p.settings.description}
            for p in self.priorities
        ]

    def modal_components(self) -> List[Dict[str, str]]:
        return [{"id": c.id, "name": c.name} for c in self.components]
