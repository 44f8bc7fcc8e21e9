"""Digest read API and pipeline trigger entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from publisher.config import get_settings
from publisher.logging_config import configure_logging
from publisher.routers import digests, pipeline
from publisher.scheduler import start_scheduler, stop_scheduler

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup/shutdown lifecycle."""
    settings = get_settings()

    scheduler_started = False
    if settings.enable_internal_scheduler:
        start_scheduler()
        scheduler_started = True
    else:
        logger.info("Internal scheduler disabled by configuration")

    try:
        yield
    finally:
        if scheduler_started:
            stop_scheduler()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="daily60s publisher",
        description="Daily 60s digest archive and publish trigger",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(digests.router)
    app.include_router(pipeline.router)

    return app


app = create_app()


@app.get("/api/health")
async def health_check() -> dict[str, str]:
    """Return application health status."""
    return {"status": "ok"}
