"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from macroscan.api.daily import router as daily_router
from macroscan.api.profile import router as profile_router
from macroscan.api.scans import router as scans_router
from macroscan.api.settings import router as settings_router
from macroscan.app_logging import configure_logging
from macroscan.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Starting macroscan (%s, timezone %s)",
            container.settings.environment,
            container.settings.timezone,
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="macroscan", lifespan=lifespan)
    app.state.container = container

    app.include_router(scans_router)
    app.include_router(daily_router)
    app.include_router(settings_router)
    app.include_router(profile_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
