import pytest

from layerconf import ConfigurationBuilder, ConfigurationError, ProviderError
from layerconf.providers import MemoryProvider, ObjectProvider


def test_registration_order_is_override_order(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("Name: yaml\nOnly: yaml\n")

    root = (
        ConfigurationBuilder()
        .add_in_memory({"Name": "memory", "Base": "memory"})
        .add_json('{"Name": "json"}')
        .add_yaml_file(path)
        .add_environment_variables("X_", environ={"X_Name": "env"})
        .build()
    )

    assert root["Name"] == "env"
    assert root["Only"] == "yaml"
    assert root["Base"] == "memory"
    assert [p.name for p in root.providers] == [
        "MemoryProvider",
        "JsonDocumentProvider",
        f"yaml:{path}",
        "env:X_",
    ]


def test_optional_file(tmp_path):
    root = ConfigurationBuilder().add_json_file(tmp_path / "none.json", optional=True).build()

    assert root.as_dict() == {}


def test_failed_build_disposes_every_provider():
    good = MemoryProvider({"A": "1"})

    def broken():
        raise RuntimeError("cannot load")

    bad = ObjectProvider(broken)
    later = MemoryProvider({"B": "2"})
    builder = ConfigurationBuilder().add(good).add(bad).add(later)

    with pytest.raises(ProviderError):
        builder.build()

    assert good.is_disposed
    assert bad.is_disposed
    assert later.is_disposed


def test_add_requires_a_provider():
    with pytest.raises(ConfigurationError):
        ConfigurationBuilder().add(None)


def test_providers_property_is_a_copy():
    builder = ConfigurationBuilder().add_in_memory({"A": "1"})

    builder.providers.clear()

    assert len(builder.providers) == 1


async def test_build_async_with_async_factory():
    async def factory():
        return {"Loaded": True}

    root = await ConfigurationBuilder().add_object(factory).build_async()

    assert root["Loaded"] == "True"
    await root.aclose()
