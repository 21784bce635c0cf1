"""Tests for the individual configuration providers."""

import pytest

from layerconf.core.errors import ConfigurationError, ParseError, ProviderError
from layerconf.providers import (
    EnvironmentProvider,
    JsonDocumentProvider,
    MemoryProvider,
    ObjectProvider,
    RemoteConfigurationProvider,
    YamlDocumentProvider,
)


class CountingFactory:
    """Returns a fresh settings graph on every call."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return {"General": {"LoadCount": self.calls, "AppName": "demo"}}


class DictStore:
    def __init__(self, data):
        self.data = data

    def load_configuration(self):
        return self.data


class TestMemoryProvider:
    def test_values_are_rendered(self):
        provider = MemoryProvider({"A": 1, "B": True, "C": None, "D": "text"})
        provider.load()

        assert dict(provider.data) == {"A": "1", "B": "True", "C": None, "D": "text"}
        assert provider.is_loaded

    def test_try_get_distinguishes_null_from_absent(self):
        provider = MemoryProvider({"Present": None})
        provider.load()

        assert provider.try_get("present") == (True, None)
        assert provider.try_get("absent") == (False, None)


class TestJsonDocumentProvider:
    def test_inline_text(self, appsettings_json):
        provider = JsonDocumentProvider(text=appsettings_json)
        provider.load()

        assert provider.data["Database:Host"] == "localhost"
        assert provider.data["Database:Port"] == "5432"
        assert provider.data["Database:Timeout"] == "1.5"
        assert provider.data["Logging:LogLevel:Default"] == "Information"
        assert provider.data["AllowedHosts:1"] == "b.example.com"
        assert provider.data["FeatureFlag"] == "True"
        assert provider.try_get("Missing") == (True, None)

    def test_file_is_reread_on_reload(self, tmp_path):
        path = tmp_path / "appsettings.json"
        path.write_text('{"Name": "first"}')
        provider = JsonDocumentProvider(path=path)
        provider.load()
        token = provider.get_reload_token()

        path.write_text('{"Name": "second"}')
        assert provider.reload() is True

        assert provider.data["Name"] == "second"
        assert token.has_changed
        assert provider.name == f"json:{path}"

    def test_optional_missing_file_is_empty(self, tmp_path):
        provider = JsonDocumentProvider(path=tmp_path / "missing.json", optional=True)
        provider.load()

        assert len(provider.data) == 0

    def test_required_missing_file_raises(self, tmp_path):
        provider = JsonDocumentProvider(path=tmp_path / "missing.json")

        with pytest.raises(ConfigurationError, match="not found"):
            provider.load()

    def test_malformed_file_raises_parse_error(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{oops")
        provider = JsonDocumentProvider(path=path)

        with pytest.raises(ParseError) as exc_info:
            provider.load()
        assert exc_info.value.details["path"] == str(path)

    def test_blank_document_is_empty(self):
        provider = JsonDocumentProvider(text="   ")
        provider.load()

        assert len(provider.data) == 0

    def test_requires_exactly_one_source(self, tmp_path):
        with pytest.raises(ConfigurationError):
            JsonDocumentProvider()
        with pytest.raises(ConfigurationError):
            JsonDocumentProvider(text="{}", path=tmp_path / "a.json")


class TestYamlDocumentProvider:
    def test_yaml_document(self):
        provider = YamlDocumentProvider(
            text="Database:\n  Host: db\n  Port: 5432\nFlags: [a, b]\nEnabled: true\n"
        )
        provider.load()

        assert dict(provider.data) == {
            "Database:Host": "db",
            "Database:Port": "5432",
            "Flags:0": "a",
            "Flags:1": "b",
            "Enabled": "True",
        }

    def test_malformed_yaml(self):
        provider = YamlDocumentProvider(text="a: [unclosed")

        with pytest.raises(ParseError, match="Malformed YAML"):
            provider.load()


class TestEnvironmentProvider:
    def test_prefix_is_stripped_and_separator_mapped(self):
        provider = EnvironmentProvider(
            "APP_",
            environ={
                "APP_Database__Host": "db",
                "app_Name": "demo",
                "OTHER": "ignored",
                "APP_": "no-path",
            },
        )
        provider.load()

        assert dict(provider.data) == {"Database:Host": "db", "Name": "demo"}
        assert provider.name == "env:APP_"


class TestObjectProvider:
    def test_load_does_not_fire_change_token(self):
        provider = ObjectProvider(CountingFactory())
        token = provider.get_reload_token()
        provider.load()

        assert provider.data["General:LoadCount"] == "1"
        assert not token.has_changed

    def test_reload_replaces_data_and_fires_once(self):
        factory = CountingFactory()
        provider = ObjectProvider(factory)
        provider.load()
        fired = []
        provider.get_reload_token().register_change_callback(fired.append, "changed")

        provider.reload()

        assert provider.data["General:LoadCount"] == "2"
        assert fired == ["changed"]
        assert not provider.get_reload_token().has_changed

    def test_none_result_installs_empty_mapping(self):
        results = iter([{"A": "1"}, None])
        provider = ObjectProvider(lambda: next(results))
        provider.load()
        provider.reload()

        assert len(provider.data) == 0

    def test_failed_reload_keeps_previous_data(self):
        calls = []

        def factory():
            calls.append(1)
            if len(calls) > 1:
                raise RuntimeError("source offline")
            return {"A": "1"}

        provider = ObjectProvider(factory)
        provider.load()
        token = provider.get_reload_token()

        with pytest.raises(ProviderError, match="source offline"):
            provider.reload()

        assert provider.data["A"] == "1"
        assert not token.has_changed

    def test_async_factory_loads_synchronously_outside_a_loop(self):
        async def factory():
            return {"Async": True}

        provider = ObjectProvider(factory)
        provider.load()

        assert provider.data["Async"] == "True"

    async def test_async_factory_inside_loop(self):
        async def factory():
            return {"Async": True}

        provider = ObjectProvider(factory)
        await provider.load_async()
        assert provider.data["Async"] == "True"

        assert await provider.reload_async() is True

    async def test_sync_load_inside_loop_with_async_factory_raises(self):
        async def factory():
            return {}

        provider = ObjectProvider(factory)

        with pytest.raises(ConfigurationError, match="load_async"):
            provider.load()

    def test_factory_must_be_callable(self):
        with pytest.raises(ConfigurationError):
            ObjectProvider("not callable")

    def test_reload_interval_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            ObjectProvider(CountingFactory(), reload_interval=0)


class TestDispose:
    def test_dispose_is_idempotent(self):
        provider = ObjectProvider(CountingFactory())
        provider.load()

        provider.dispose()
        provider.dispose()

        assert provider.is_disposed

    def test_reload_after_dispose_is_ignored(self):
        factory = CountingFactory()
        provider = ObjectProvider(factory)
        provider.load()
        provider.dispose()

        assert provider.reload() is False
        assert factory.calls == 1
        assert provider.data["General:LoadCount"] == "1"

    def test_load_after_dispose_raises(self):
        provider = MemoryProvider({"A": "1"})
        provider.dispose()

        with pytest.raises(ConfigurationError, match="disposed"):
            provider.load()

    def test_context_manager_disposes(self):
        with MemoryProvider({"A": "1"}) as provider:
            provider.load()

        assert provider.is_disposed


class TestRemoteConfigurationProvider:
    def test_sync_store(self):
        provider = RemoteConfigurationProvider(DictStore({"Remote:Key": "v", "Null": None}))
        provider.load()

        assert provider.data["remote:key"] == "v"
        assert provider.try_get("Null") == (True, None)
        assert provider.name == "DictStore"

    def test_store_returning_none_is_empty(self):
        provider = RemoteConfigurationProvider(DictStore(None))
        provider.load()

        assert len(provider.data) == 0

    def test_store_without_load_configuration_rejected(self):
        with pytest.raises(ConfigurationError):
            RemoteConfigurationProvider(object())
