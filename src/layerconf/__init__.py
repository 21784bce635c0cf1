"""
layerconf: layered, hot-reloadable configuration.

Sources are flattened into colon-delimited paths, composed in registration
order (later sources win) and reloaded individually without rebuilding the
configuration.
"""

from layerconf.builder import ConfigurationBuilder
from layerconf.change_token import ChangeToken, on_change
from layerconf.core.errors import (
    ConfigurationError,
    LayerconfError,
    ParseError,
    ProviderError,
    ReloadError,
)
from layerconf.flatten import FlatMapping, flatten, flatten_rows
from layerconf.providers import (
    ConfigurationProvider,
    ObjectProvider,
    PushedSettingsProvider,
    RemoteConfigurationProvider,
    SectionSettings,
    SettingsRegistry,
)
from layerconf.root import ConfigurationRoot, ConfigurationSection

__version__ = "0.1.0"

__all__ = [
    "ConfigurationBuilder",
    "ConfigurationRoot",
    "ConfigurationSection",
    "ConfigurationProvider",
    "ObjectProvider",
    "PushedSettingsProvider",
    "RemoteConfigurationProvider",
    "SectionSettings",
    "SettingsRegistry",
    "ChangeToken",
    "on_change",
    "FlatMapping",
    "flatten",
    "flatten_rows",
    "LayerconfError",
    "ConfigurationError",
    "ParseError",
    "ProviderError",
    "ReloadError",
]
