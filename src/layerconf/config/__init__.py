"""
layerconf engine settings.

Pydantic-based settings (environment variables, .env files) that configure the
engine's own API, CLI and default row stores.
"""

from layerconf.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
