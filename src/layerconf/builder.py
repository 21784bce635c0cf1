"""
Registration surface.

    root = (
        ConfigurationBuilder()
        .add_json_file("appsettings.json")
        .add_environment_variables("APP_")
        .add_object(load_settings, reload_interval=timedelta(minutes=5))
        .build()
    )

Registration order is override order: later providers win. ``build()`` loads
every provider synchronously; ``build_async()`` lets asynchronous sources load
inside a running event loop.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any

import structlog

from layerconf.core.errors import ConfigurationError
from layerconf.providers.base import ConfigurationProvider
from layerconf.providers.documents import JsonDocumentProvider, YamlDocumentProvider
from layerconf.providers.environment import EnvironmentProvider
from layerconf.providers.memory import MemoryProvider
from layerconf.providers.objects import ObjectProvider, SettingsFactory
from layerconf.providers.pushed import PushedSettingsProvider, SettingsRegistry
from layerconf.providers.remote import RemoteConfigurationProvider, RemoteConfigurationStore
from layerconf.root import ConfigurationRoot

logger = structlog.get_logger()

ReloadInterval = float | timedelta | None


class ConfigurationBuilder:
    """Collects providers in override order and builds a ConfigurationRoot."""

    def __init__(self) -> None:
        self._providers: list[ConfigurationProvider] = []

    @property
    def providers(self) -> list[ConfigurationProvider]:
        return list(self._providers)

    def add(self, provider: ConfigurationProvider) -> ConfigurationBuilder:
        if provider is None:
            raise ConfigurationError("provider is required")
        self._providers.append(provider)
        return self

    def add_in_memory(
        self,
        data: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        *,
        name: str | None = None,
    ) -> ConfigurationBuilder:
        return self.add(MemoryProvider(data, name=name))

    def add_json(self, text: str, *, name: str | None = None) -> ConfigurationBuilder:
        return self.add(JsonDocumentProvider(text=text, name=name))

    def add_json_file(self, path: str | Path, *, optional: bool = False) -> ConfigurationBuilder:
        return self.add(JsonDocumentProvider(path=path, optional=optional))

    def add_yaml_file(self, path: str | Path, *, optional: bool = False) -> ConfigurationBuilder:
        return self.add(YamlDocumentProvider(path=path, optional=optional))

    def add_environment_variables(
        self, prefix: str = "", *, environ: Mapping[str, str] | None = None
    ) -> ConfigurationBuilder:
        return self.add(EnvironmentProvider(prefix, environ=environ))

    def add_object(
        self,
        settings_factory: SettingsFactory,
        *,
        reload_interval: ReloadInterval = None,
        name: str | None = None,
    ) -> ConfigurationBuilder:
        return self.add(
            ObjectProvider(settings_factory, reload_interval=reload_interval, name=name)
        )

    def add_pushed_settings(
        self, registry: SettingsRegistry, *, name: str | None = None
    ) -> ConfigurationBuilder:
        return self.add(PushedSettingsProvider(registry, name=name))

    def add_remote(
        self,
        store: RemoteConfigurationStore,
        *,
        reload_interval: ReloadInterval = None,
        name: str | None = None,
    ) -> ConfigurationBuilder:
        return self.add(
            RemoteConfigurationProvider(store, reload_interval=reload_interval, name=name)
        )

    def build(self) -> ConfigurationRoot:
        """Load every provider synchronously and compose them."""
        loaded: list[ConfigurationProvider] = []
        try:
            for provider in self._providers:
                provider.load()
                loaded.append(provider)
        except Exception:
            for provider in self._providers:
                provider.dispose()
            raise
        logger.debug("configuration_built", providers=[p.name for p in loaded])
        return ConfigurationRoot(loaded)

    async def build_async(self) -> ConfigurationRoot:
        """Load every provider, awaiting asynchronous sources."""
        loaded: list[ConfigurationProvider] = []
        try:
            for provider in self._providers:
                await provider.load_async()
                loaded.append(provider)
        except Exception:
            for provider in self._providers:
                await provider.aclose()
            raise
        logger.debug("configuration_built", providers=[p.name for p in loaded])
        return ConfigurationRoot(loaded)
