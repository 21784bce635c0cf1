import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from layerconf.builder import ConfigurationBuilder
from layerconf.core.errors import ProviderError
from layerconf.db.store import SqlAlchemyRowStore


@pytest.fixture
async def store(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'config.db'}")
    store = SqlAlchemyRowStore(engine)
    await store.ensure_schema()

    yield store

    await engine.dispose()


@pytest.mark.asyncio
async def test_empty_table(store):
    result = await store.load_configuration()

    assert len(result) == 0


@pytest.mark.asyncio
async def test_rows_are_flattened(store):
    await store.upsert("Database", '{"ConnectionString": "Server=db", "Timeout": 30}')
    await store.upsert("Logging", '{"LogLevel": {"Default": "Warning"}}')
    await store.upsert("AllowedHosts", '["a.example.com"]')
    await store.upsert("Ratio", "1.5")
    await store.upsert("Enabled", "false")

    result = await store.load_configuration()

    assert dict(result) == {
        "Database:ConnectionString": "Server=db",
        "Database:Timeout": "30",
        "Logging:LogLevel:Default": "Warning",
        "AllowedHosts:0": "a.example.com",
        "Ratio": "1.5",
        "Enabled": "False",
    }


@pytest.mark.asyncio
async def test_invalid_json_row_is_verbatim(store):
    await store.upsert("Broken", "{not json")
    await store.upsert("Blank", "")
    await store.upsert("Good", '{"A": 1}')

    result = await store.load_configuration()

    assert result["Broken"] == "{not json"
    assert result["Blank"] == ""
    assert result["Good:A"] == "1"


@pytest.mark.asyncio
async def test_upsert_replaces_and_remove_deletes(store):
    await store.upsert("Name", '"first"')
    await store.upsert("Name", '"second"')
    await store.upsert("Other", '"x"')
    await store.remove("Other")

    assert await store.fetch_rows() == [("Name", '"second"')]


@pytest.mark.asyncio
async def test_missing_table_raises_provider_error(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    store = SqlAlchemyRowStore(engine)

    with pytest.raises(ProviderError, match="configuration rows"):
        await store.fetch_rows()

    await engine.dispose()


@pytest.mark.asyncio
async def test_database_layer_overrides_json(store, appsettings_json):
    await store.upsert("Database", '{"Host": "from-db"}')
    root = await (
        ConfigurationBuilder().add_json(appsettings_json).add_remote(store, name="db").build_async()
    )

    assert root["Database:Host"] == "from-db"
    assert root["Database:Port"] == "5432"

    await store.upsert("Database", '{"Host": "updated"}')
    await root.reload_async()

    assert root["Database:Host"] == "updated"
    await root.aclose()
