"""Configuration providers: one flattened mapping per source."""

from layerconf.providers.base import ConfigurationProvider, FetchingProvider
from layerconf.providers.documents import (
    DocumentProvider,
    JsonDocumentProvider,
    YamlDocumentProvider,
)
from layerconf.providers.environment import EnvironmentProvider
from layerconf.providers.memory import MemoryProvider
from layerconf.providers.objects import ObjectProvider
from layerconf.providers.pushed import (
    PushedSettingsProvider,
    SectionSettings,
    SettingsRegistry,
    SettingsUnit,
)
from layerconf.providers.remote import RemoteConfigurationProvider, RemoteConfigurationStore

__all__ = [
    "ConfigurationProvider",
    "FetchingProvider",
    "DocumentProvider",
    "JsonDocumentProvider",
    "YamlDocumentProvider",
    "EnvironmentProvider",
    "MemoryProvider",
    "ObjectProvider",
    "PushedSettingsProvider",
    "SectionSettings",
    "SettingsRegistry",
    "SettingsUnit",
    "RemoteConfigurationProvider",
    "RemoteConfigurationStore",
]
