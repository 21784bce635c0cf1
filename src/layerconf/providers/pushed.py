"""
Push-style settings provider.

Application code that only has its settings after start-up (for example once
a database session is available) pushes them through a SettingsRegistry:

    registry = SettingsRegistry()
    root = ConfigurationBuilder().add_pushed_settings(registry).build()
    registry.set_data([GeneralSettings(app_name="demo")])
    root["General:app_name"]  # "demo"

A registry serves at most one live PushedSettingsProvider, so ``set_data``
always targets "the" provider without holding a handle to it.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any, ClassVar, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from layerconf.core.errors import ConfigurationError
from layerconf.flatten import EMPTY, FlatMapping, flatten_into
from layerconf.providers.base import ConfigurationProvider


@runtime_checkable
class SettingsUnit(Protocol):
    """A pushable unit of settings, flattened under its section name."""

    section_name: str


class SectionSettings(BaseModel):
    """Base for pushable settings declared as pydantic models.

    Subclasses set ``section_name``; fields are flattened in declaration order,
    using the field alias as the path segment when one is set.
    """

    model_config = ConfigDict(populate_by_name=True)

    section_name: ClassVar[str] = ""


def _section_name(unit: Any) -> str:
    name = getattr(unit, "section_name", None)
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(
            f"Settings unit {type(unit).__name__} has no section_name",
            details={"settings_type": type(unit).__name__},
        )
    return name


class SettingsRegistry:
    """Holds the latest pushed settings and the one provider serving them."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._settings: tuple[Any, ...] | None = None
        self._provider: PushedSettingsProvider | None = None

    @property
    def provider(self) -> PushedSettingsProvider | None:
        return self._provider

    def attach(self, provider: PushedSettingsProvider) -> None:
        with self._lock:
            if self._provider is not None and self._provider is not provider:
                raise ConfigurationError(
                    "Only one PushedSettingsProvider may be attached to a registry at a time",
                    details={"active_provider": self._provider.name},
                )
            self._provider = provider

    def detach(self, provider: PushedSettingsProvider) -> None:
        with self._lock:
            if self._provider is provider:
                self._provider = None

    def snapshot(self) -> tuple[Any, ...] | None:
        with self._lock:
            return self._settings

    def set_data(self, settings: Iterable[SettingsUnit]) -> None:
        """Replace the pushed settings and reload the attached provider."""
        units = tuple(settings)
        for unit in units:
            _section_name(unit)
        self._publish(units)

    def clear_data(self) -> None:
        """Drop the pushed settings; the attached provider becomes empty."""
        self._publish(None)

    def _publish(self, units: tuple[Any, ...] | None) -> None:
        with self._lock:
            self._settings = units
            provider = self._provider
        # Reload outside the registry lock: the provider reads the slot under it.
        if provider is not None:
            provider.reload()


class PushedSettingsProvider(ConfigurationProvider):
    """Serves the settings most recently pushed into its registry."""

    def __init__(self, registry: SettingsRegistry, *, name: str | None = None) -> None:
        if registry is None:
            raise ConfigurationError("registry is required")
        super().__init__(name)
        self._registry = registry
        registry.attach(self)

    @property
    def registry(self) -> SettingsRegistry:
        return self._registry

    def _fetch(self) -> FlatMapping:
        units = self._registry.snapshot()
        if not units:
            return EMPTY
        out: dict[str, str | None] = {}
        for unit in units:
            flatten_into(unit, _section_name(unit), out)
        return FlatMapping(out)

    def _on_dispose(self) -> None:
        self._registry.detach(self)
