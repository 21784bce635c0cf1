"""Core modules for layerconf - centralized definitions and utilities."""

from layerconf.core.errors import (
    ConfigurationError,
    ExitCode,
    LayerconfError,
    ParseError,
    ProviderError,
    ReloadError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "LayerconfError",
    "ConfigurationError",
    "ProviderError",
    "ParseError",
    "ReloadError",
    "main_with_error_handling",
    "format_error_message",
]
