from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from layerconf.config import Settings, get_settings

_engine: AsyncEngine | None = None


def init_engine(settings: Settings | None = None) -> AsyncEngine:
    """Initialise the shared SQLAlchemy engine lazily."""

    global _engine

    cfg = settings or get_settings()
    if _engine is None:
        _engine = create_async_engine(
            cfg.database_url,
            echo=cfg.debug,
            pool_pre_ping=True,
        )
    return _engine


async def dispose_engine() -> None:
    """Dispose the shared engine, if one was created."""

    global _engine

    if _engine is not None:
        await _engine.dispose()
        _engine = None
