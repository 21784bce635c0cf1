from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI

from layerconf.api.routes import configuration, health
from layerconf.builder import ConfigurationBuilder
from layerconf.clients.http_store import HttpRowStore
from layerconf.config import Settings, get_settings
from layerconf.db.session import dispose_engine, init_engine
from layerconf.db.store import SqlAlchemyRowStore
from layerconf.logging import configure_logging
from layerconf.root import ConfigurationRoot

logger = structlog.get_logger()


async def build_default_configuration(settings: Settings) -> ConfigurationRoot:
    """Database rows, then remote rows when ``remote_url`` is set.

    Both sources reload every ``reload_interval_seconds`` when configured.
    """
    store = SqlAlchemyRowStore(init_engine(settings))
    await store.ensure_schema()

    builder = ConfigurationBuilder().add_remote(
        store, reload_interval=settings.reload_interval_seconds, name="database"
    )
    if settings.remote_url:
        builder.add_remote(
            HttpRowStore(
                settings.remote_url, token=settings.remote_token, timeout=settings.http_timeout
            ),
            reload_interval=settings.reload_interval_seconds,
            name="remote",
        )
    return await builder.build_async()


def create_app(
    root: ConfigurationRoot | None = None,
    *,
    settings: Settings | None = None,
    close_on_shutdown: bool = False,
) -> FastAPI:
    """Expose a configuration over HTTP.

    With ``root`` the caller owns it unless ``close_on_shutdown`` is set.
    Without it, the app builds the default configuration on startup and
    closes it on shutdown.
    """
    cfg = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(cfg.log_level)
        owned = root is None
        if owned:
            app.state.configuration = await build_default_configuration(cfg)
            logger.info(
                "default_configuration_loaded",
                providers=[p.name for p in app.state.configuration.providers],
            )
        try:
            yield
        finally:
            configured = app.state.configuration
            if configured is not None and (owned or close_on_shutdown):
                await configured.aclose()
            if owned:
                await dispose_engine()

    app = FastAPI(
        title="layerconf API",
        version="0.1.0",
        docs_url=f"{cfg.api_prefix}/docs",
        openapi_url=f"{cfg.api_prefix}/openapi.json",
        lifespan=lifespan,
    )
    app.state.configuration = root

    app.include_router(configuration.router, prefix=cfg.api_prefix, tags=["configuration"])
    app.include_router(health.router, tags=["health"])
    return app
