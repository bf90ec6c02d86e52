"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from filerelay.api.rate_limiter import LimiterRegistry
from filerelay.api.routes.health import router as health_router
from filerelay.api.routes.transfer import router as transfer_router
from filerelay.config.settings import Settings, get_settings
from filerelay.jobs.sweeper import ExpirySweeper
from filerelay.storage.file_store import FileStore
from filerelay.storage.resource_store import ResourceStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    sweeper: ExpirySweeper = app.state.sweeper
    sweeper.start()
    try:
        yield
    finally:
        # stop() joins the sweep thread; keep that off the event loop
        await asyncio.to_thread(sweeper.stop)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build and return a fully wired FastAPI application.

    Creates the metadata store, file store, limiter registry and sweeper
    once and hangs them off ``app.state`` for the routes. The sweeper
    thread runs for the lifetime of the app.
    """
    settings = settings or get_settings()
    settings.ensure_dirs()

    app = FastAPI(
        title="File Relay API",
        version="0.1.0",
        description="Share a file through a short numeric code",
        lifespan=_lifespan,
    )

    # Shared state, reached via request.app.state in routes
    app.state.settings = settings
    app.state.resource_store = ResourceStore(settings.relay)
    app.state.file_store = FileStore(settings.uploads_dir)
    app.state.limiters = LimiterRegistry(settings.rate_limit)
    app.state.sweeper = ExpirySweeper(
        store=app.state.resource_store,
        file_store=app.state.file_store,
        limiters=app.state.limiters,
        settings=settings.sweeper,
    )

    api = settings.api
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(api.cors_origins),
        allow_methods=list(api.cors_methods),
        allow_headers=list(api.cors_headers),
        expose_headers=["Content-Disposition"],
    )

    app.include_router(health_router)
    app.include_router(transfer_router)

    logger.info("File relay ready, storing uploads under %s", settings.uploads_dir)
    return app
