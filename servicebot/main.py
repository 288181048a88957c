import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from servicebot.config import get_settings
from servicebot.api.routes import jira, slack
from servicebot.services.container import build_container

settings = get_settings()

# Configure application logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Set log level for servicebot modules
logger = logging.getLogger("servicebot")
logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = build_container(settings)
    app.state.container = container
    await container.catalog.ensure_loaded()
    yield
    # Let in-flight handlers finish before shutting down
    await container.spawner.drain()


app = FastAPI(
    title=settings.app_name,
    description="Jira service requests driven from Slack threads",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(slack.router, prefix="/api/slack", tags=["Slack"])
app.include_router(jira.router, prefix="/api/jira", tags=["Jira"])


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.app_name} - Jira service requests from Slack",
        "version": "0.1.0",
        "endpoints": {
            "slack_events": "/api/slack/events",
            "slack_interactions": "/api/slack/interactions",
            "slack_commands": "/api/slack/commands",
            "jira_webhook": "/api/jira/webhook",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.app_name}
