from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from typing import Any

from layerconf.core.errors import ConfigurationError
from layerconf.flatten import EMPTY, FlatMapping, flatten
from layerconf.providers.base import FetchingProvider

SettingsFactory = Callable[[], Any]


class ObjectProvider(FetchingProvider):
    """
    Provider over an object graph produced by ``settings_factory``.

    The factory may be synchronous or return an awaitable. It is called once
    per load/reload and its result is flattened; a ``None`` result installs an
    empty mapping.
    """

    def __init__(
        self,
        settings_factory: SettingsFactory,
        *,
        reload_interval: float | timedelta | None = None,
        name: str | None = None,
    ) -> None:
        if settings_factory is None or not callable(settings_factory):
            raise ConfigurationError("settings_factory must be a callable")
        super().__init__(reload_interval=reload_interval, name=name)
        self._settings_factory = settings_factory

    def _fetch_raw(self) -> Any:
        return self._settings_factory()

    def _to_mapping(self, raw: Any) -> FlatMapping:
        if raw is None:
            return EMPTY
        return flatten(raw)
