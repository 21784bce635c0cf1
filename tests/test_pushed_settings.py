"""Tests for push-style settings and the SettingsRegistry."""

from typing import ClassVar

import pytest
from pydantic import ConfigDict

from layerconf.builder import ConfigurationBuilder
from layerconf.core.errors import ConfigurationError
from layerconf.providers.pushed import (
    PushedSettingsProvider,
    SectionSettings,
    SettingsRegistry,
)


class Unnamed(SectionSettings):
    Value: str = "x"


class Aliased(SectionSettings):
    section_name: ClassVar[str] = "Aliased"

    max_items: int = 5

    model_config = ConfigDict(alias_generator=str.upper)


def test_second_live_provider_is_rejected():
    registry = SettingsRegistry()
    first = PushedSettingsProvider(registry)

    with pytest.raises(ConfigurationError, match="Only one"):
        PushedSettingsProvider(registry)

    assert registry.provider is first


def test_disposed_provider_frees_the_registry():
    registry = SettingsRegistry()
    first = PushedSettingsProvider(registry)
    first.dispose()

    second = PushedSettingsProvider(registry)

    assert registry.provider is second


def test_set_data_reloads_the_provider(general_settings, theme_settings):
    registry = SettingsRegistry()
    provider = PushedSettingsProvider(registry)
    provider.load()
    token = provider.get_reload_token()

    registry.set_data([general_settings, theme_settings])

    assert token.has_changed
    assert provider.data["General:AppName"] == "from-push"
    assert provider.data["General:MaxItemsPerPage"] == "30"
    assert provider.data["General:LoadCount"] == "3"
    assert provider.data["User:Theme"] == "dark"
    assert "section_name" not in provider.data
    assert "General:section_name" not in provider.data


def test_clear_data_empties_the_provider(general_settings):
    registry = SettingsRegistry()
    provider = PushedSettingsProvider(registry)
    provider.load()
    registry.set_data([general_settings])

    registry.clear_data()

    assert len(provider.data) == 0
    assert registry.snapshot() is None


def test_data_pushed_before_load_is_served_on_load(general_settings):
    registry = SettingsRegistry()
    registry.set_data([general_settings])
    provider = PushedSettingsProvider(registry)

    provider.load()

    assert provider.data["General:AppName"] == "from-push"


def test_missing_section_name_is_rejected():
    registry = SettingsRegistry()

    with pytest.raises(ConfigurationError, match="section_name"):
        registry.set_data([Unnamed()])

    assert registry.snapshot() is None


def test_field_alias_is_used_as_path_segment():
    registry = SettingsRegistry()
    provider = PushedSettingsProvider(registry)
    provider.load()

    registry.set_data([Aliased()])

    assert provider.data["Aliased:MAX_ITEMS"] == "5"


def test_set_data_after_dispose_leaves_provider_untouched(general_settings):
    registry = SettingsRegistry()
    provider = PushedSettingsProvider(registry)
    provider.load()
    provider.dispose()

    registry.set_data([general_settings])

    assert len(provider.data) == 0
    assert registry.provider is None


def test_pushed_settings_override_earlier_layers(general_settings):
    registry = SettingsRegistry()
    root = (
        ConfigurationBuilder()
        .add_in_memory({"General:AppName": "base", "General:Version": "0.9"})
        .add_environment_variables(
            "APP_", environ={"APP_General__AppName": "env", "APP_Only__Env": "e"}
        )
        .add_pushed_settings(registry)
        .build()
    )
    assert root["General:AppName"] == "env"
    changes = []
    root.get_reload_token().register_change_callback(changes.append, "root")

    registry.set_data([general_settings])

    assert root["General:AppName"] == "from-push"
    assert root["General:Version"] == "1.0"
    assert root["Only:Env"] == "e"
    assert changes == ["root"]
    root.dispose()
