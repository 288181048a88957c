"""
Service Container

Builds the collaborators once and wires them together. Shared state (actor caches,
the control-flow gate, background tasks) is created here and injected, never global.
"""

from dataclasses import dataclass
from typing import Optional

from servicebot.config import Settings, get_settings
from servicebot.integrations.jira.client import JiraClient
from servicebot.integrations.pagerduty.client import PagerDutyClient
from servicebot.integrations.slack.client import SlackClient
from servicebot.services.actors import ActorResolver
from servicebot.services.catalog import ServiceCatalog
from servicebot.services.flow_control import ControlFlowGate
from servicebot.services.flows import DEFAULT_FLOWS
from servicebot.services.home import HomeTab
from servicebot.services.orchestrator import Orchestrator
from servicebot.utils.tasks import TaskSpawner


@dataclass
class ServiceContainer:
    settings: Settings
    jira: object
    slack: object
    pagerduty: object
    resolver: ActorResolver
    catalog: ServiceCatalog
    gate: ControlFlowGate
    spawner: TaskSpawner
    orchestrator: Orchestrator
    home: HomeTab


def build_container(
    settings: Optional[Settings] = None,
    jira=None,
    slack=None,
    pagerduty=None,
) -> ServiceContainer:
    """Create the service graph; pass collaborators to replace the real clients."""
    settings = settings or get_settings()
    jira = jira or JiraClient(settings)
    slack = slack or SlackClient(settings)
    pagerduty = pagerduty or PagerDutyClient(settings)

    resolver = ActorResolver(slack, jira)
    catalog = ServiceCatalog(jira, settings)
    gate = ControlFlowGate(cooldown_seconds=settings.gate_cooldown_seconds)
    spawner = TaskSpawner()
    orchestrator = Orchestrator(
        flows=[flow_cls() for flow_cls in DEFAULT_FLOWS],
        settings=settings,
        jira=jira,
        slack=slack,
        pagerduty=pagerduty,
        resolver=resolver,
        catalog=catalog,
        gate=gate,
        spawner=spawner,
    )
    return ServiceContainer(
        settings=settings,
        jira=jira,
        slack=slack,
        pagerduty=pagerduty,
        resolver=resolver,
        catalog=catalog,
        gate=gate,
        spawner=spawner,
        orchestrator=orchestrator,
        home=HomeTab(jira, slack, settings),
    )
