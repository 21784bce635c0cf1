from __future__ import annotations

from collections.abc import Awaitable, Mapping
from datetime import timedelta
from typing import Any, Protocol, runtime_checkable

from layerconf.core.errors import ConfigurationError
from layerconf.flatten import EMPTY, FlatMapping
from layerconf.providers.base import FetchingProvider


@runtime_checkable
class RemoteConfigurationStore(Protocol):
    """Contract for stores that return already-flattened configuration."""

    def load_configuration(
        self,
    ) -> Mapping[str, str | None] | Awaitable[Mapping[str, str | None]]: ...


class RemoteConfigurationProvider(FetchingProvider):
    """Provider that consumes a RemoteConfigurationStore once per reload."""

    def __init__(
        self,
        store: RemoteConfigurationStore,
        *,
        reload_interval: float | timedelta | None = None,
        name: str | None = None,
    ) -> None:
        if store is None or not callable(getattr(store, "load_configuration", None)):
            raise ConfigurationError("store must provide load_configuration()")
        super().__init__(reload_interval=reload_interval, name=name or type(store).__name__)
        self.store = store

    def _fetch_raw(self) -> Any:
        return self.store.load_configuration()

    def _to_mapping(self, raw: Any) -> FlatMapping:
        if raw is None:
            return EMPTY
        if isinstance(raw, FlatMapping):
            return raw
        return FlatMapping(raw)
