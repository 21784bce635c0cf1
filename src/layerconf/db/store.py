"""
Database-backed row store.

Each ``configuration_settings`` row holds a top-level key and a JSON blob.
``load_configuration()`` flattens every blob under its key; a blob that is not
valid JSON is served verbatim without affecting the other rows.
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from layerconf.core.errors import ProviderError
from layerconf.db.models import Base, ConfigurationSetting
from layerconf.flatten import FlatMapping, flatten_rows


class SqlAlchemyRowStore:
    """RemoteConfigurationStore over the ``configuration_settings`` table."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def ensure_schema(self) -> None:
        """Create the settings table if it does not exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def fetch_rows(self) -> list[tuple[str, str]]:
        stmt = select(ConfigurationSetting.key, ConfigurationSetting.json_value).order_by(
            ConfigurationSetting.id
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [(key, json_value) for key, json_value in result.all()]
        except SQLAlchemyError as e:
            raise ProviderError(
                f"Failed to read configuration rows: {e}",
                details={"store": "sqlalchemy"},
            ) from e

    async def load_configuration(self) -> FlatMapping:
        return flatten_rows(await self.fetch_rows())

    async def upsert(self, key: str, json_value: str) -> None:
        """Insert or replace the blob stored under ``key``."""
        async with self._session_factory() as session:
            stmt = select(ConfigurationSetting).where(ConfigurationSetting.key == key)
            existing = (await session.execute(stmt)).scalar_one_or_none()
            if existing is None:
                session.add(ConfigurationSetting(key=key, json_value=json_value))
            else:
                existing.json_value = json_value
            await session.commit()

    async def remove(self, key: str) -> None:
        async with self._session_factory() as session:
            stmt = delete(ConfigurationSetting).where(ConfigurationSetting.key == key)
            await session.execute(stmt)
            await session.commit()
