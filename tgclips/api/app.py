"""Main FastAPI application.

This module creates the FastAPI application with:
- Record store, object store and moderation clients on ``app.state``
- Middleware for error handling and logging
- Rate limiting
- Prometheus metrics
- Video, channel, moderation and health routers
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tgclips.api.middleware import (
    setup_error_handler,
    setup_logging_middleware,
    setup_prometheus,
    setup_rate_limiter,
)
from tgclips.api.models.requests import MessageResponse
from tgclips.api.routers import channels_router, health_router, moderation_router, videos_router
from tgclips.core.config import Settings, get_settings
from tgclips.core.constants import (
    API_PREFIX,
    API_TAGS,
    APP_DESCRIPTION,
    APP_NAME,
    APP_VERSION,
    WELCOME_MESSAGE,
)
from tgclips.core.logging_config import setup_logging
from tgclips.moderation import ModerationClient
from tgclips.storage import ObjectStore, RecordStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds one shared ``httpx.AsyncClient`` and the store/moderation clients
    that were not injected into ``create_app``, and closes the HTTP client on
    shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    settings: Settings = app.state.settings
    logger.info("Starting %s v%s", APP_NAME, APP_VERSION)

    needs_client = (
        app.state.record_store is None
        or app.state.object_store is None
        or (settings.moderation_enabled and app.state.moderator is None)
    )
    http_client: httpx.AsyncClient | None = None
    if needs_client:
        http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    try:
        if app.state.record_store is None:
            app.state.record_store = RecordStore(
                http_client,
                rest_url=settings.rest_url,
                api_key=settings.supabase_key,
                videos_table=settings.videos_table,
                channels_table=settings.channels_table,
            )
        if app.state.object_store is None:
            app.state.object_store = ObjectStore(
                http_client,
                storage_url=settings.storage_url,
                api_key=settings.supabase_key,
                bucket=settings.storage_bucket,
            )
        if settings.moderation_enabled and app.state.moderator is None:
            app.state.moderator = ModerationClient(
                http_client,
                api_user=settings.sightengine_api_user,
                api_secret=settings.sightengine_api_secret,
                endpoint=settings.sightengine_url,
                threshold=settings.moderation_threshold,
                timeout=settings.moderation_timeout_seconds,
            )
        logger.info(
            "Clients ready (bucket=%s, moderation=%s)",
            settings.storage_bucket,
            "on" if settings.moderation_enabled else "off",
        )

        yield

    finally:
        logger.info("Shutting down %s", APP_NAME)
        if http_client is not None:
            await http_client.aclose()
            logger.info("HTTP client closed")


def create_app(
    settings: Settings | None = None,
    *,
    record_store: RecordStore | None = None,
    object_store: ObjectStore | None = None,
    moderator: ModerationClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Clients passed in are used as-is; the rest are built at startup from
    ``settings``.

    Args:
        settings: Settings to use; defaults to ``get_settings()``
        record_store: Record store client
        object_store: Object store client
        moderator: Moderation client

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        openapi_tags=API_TAGS,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.settings = settings
    app.state.record_store = record_store
    app.state.object_store = object_store
    app.state.moderator = moderator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    setup_logging_middleware(app)
    setup_error_handler(app)
    setup_rate_limiter(app, settings)
    setup_prometheus(app, settings)

    @app.get("/", response_model=MessageResponse, include_in_schema=False)
    async def root() -> MessageResponse:
        return MessageResponse(message=WELCOME_MESSAGE)

    app.include_router(videos_router, prefix=API_PREFIX)
    app.include_router(channels_router, prefix=API_PREFIX)
    app.include_router(moderation_router, prefix=API_PREFIX)
    app.include_router(health_router)  # Health endpoints at root level

    logger.info("Application created successfully")
    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    setup_logging(_settings.log_level, _settings.log_file)
    uvicorn.run(
        "tgclips.api.app:create_app",
        factory=True,
        host=_settings.host,
        port=_settings.port,
        log_level="info",
    )
