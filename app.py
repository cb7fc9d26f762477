"""
app.py

Responsibility: Builds the FastAPI application, manages the startup/shutdown
lifespan (settings, logging, DB, shared HTTP client, scheduler), and exposes
the `flaresync` console entry point.
Does NOT: contain DNS logic or route handlers.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from config import Settings
from db.database import init_db
from exceptions import ConfigError
from logger import configure_logging
from routes.api_routes import router as api_router
from scheduler import create_scheduler

logger = logging.getLogger(__name__)

# Upper bound for any single outbound request; IP sources use a tighter one.
_HTTP_TIMEOUT = 30.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Starts the background DDNS job on startup and tears it down on shutdown.

    Settings are taken from app.state.settings when main() already loaded
    them, otherwise from the environment.

    Raises:
        ConfigError: If settings are missing or invalid.
    """
    settings: Settings | None = getattr(app.state, "settings", None)
    if settings is None:
        settings = Settings.from_env()
        configure_logging(settings.log_level, settings.log_dir)
        app.state.settings = settings

    init_db(settings.db_path)

    http_client = httpx.AsyncClient(timeout=_HTTP_TIMEOUT)
    scheduler = create_scheduler(http_client, settings)
    app.state.http_client = http_client
    app.state.scheduler = scheduler

    scheduler.start()
    logger.info("FlareSync started")
    try:
        yield
    finally:
        scheduler.shutdown(wait=False)
        await http_client.aclose()
        logger.info("FlareSync stopped")


app = FastAPI(title="FlareSync", lifespan=lifespan)
app.include_router(api_router)


def main() -> None:
    """Console entry point: validate settings, then serve the status API."""
    configure_logging("INFO", log_dir=None)
    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)

    configure_logging(settings.log_level, settings.log_dir)
    app.state.settings = settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
