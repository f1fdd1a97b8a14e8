"""FastAPI application with lifespan and health endpoint."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from mention_reminder.callbacks import router as callbacks_router
from mention_reminder.config import get_settings
from mention_reminder.dependencies import build_services
from mention_reminder.logging_config import configure_logging
from mention_reminder.slack.router import router as slack_router
from mention_reminder.store import create_engine, create_tables


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: load config, configure logging, open the store and HTTP client."""
    settings = get_settings()
    configure_logging(settings.log_level)
    app.state.settings = settings

    engine = create_engine(settings.database_url)
    if settings.create_tables:
        await create_tables(engine)
    http = httpx.AsyncClient(timeout=httpx.Timeout(10.0))
    app.state.services = build_services(settings, engine, http)

    yield

    await http.aclose()
    await engine.dispose()


app = FastAPI(
    title="Mention Reminder",
    lifespan=lifespan,
)
app.include_router(slack_router)
app.include_router(callbacks_router)


@app.get("/health")
async def health():
    """Health check endpoint for Cloud Run and local development."""
    return {
        "status": "ok",
        "service": "mention-reminder",
        "version": "0.1.0",
    }
