"""
Route Dependencies
"""

from fastapi import Request

from servicebot.services.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    """The service graph built at startup (see servicebot.main.lifespan)."""
    return request.app.state.container
