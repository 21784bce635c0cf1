"""
Base classes for configuration providers.

A provider owns exactly one FlatMapping. Every load or reload builds a new
mapping and swaps the reference under the provider lock, then fires the
provider's change token. Readers never take the lock: they read whichever
immutable mapping is installed.

Providers must implement ``_fetch()``. FetchingProvider adds sources whose
fetch may be asynchronous, plus optional periodic reload.
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from collections.abc import Awaitable
from datetime import timedelta
from typing import Any

from layerconf.change_token import ChangeToken
from layerconf.core.errors import ConfigurationError, LayerconfError, ProviderError
from layerconf.flatten import EMPTY, FlatMapping
from layerconf.logging import provider_logger
from layerconf.reloader import AsyncReloadScheduler, ReloadScheduler, interval_seconds


class ConfigurationProvider:
    """Owns one flattened mapping plus reload and change-notification behaviour."""

    def __init__(self, name: str | None = None) -> None:
        self.name = name or type(self).__name__
        self._data: FlatMapping = EMPTY
        self._lock = threading.RLock()
        self._reload_token = ChangeToken()
        self._loaded = False
        self._disposed = False
        self._log = provider_logger(self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, keys={len(self._data)})"

    @property
    def data(self) -> FlatMapping:
        return self._data

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def try_get(self, key: str) -> tuple[bool, str | None]:
        """Return (found, value); a present key with a null value is found."""
        data = self._data
        if key in data:
            return True, data[key]
        return False, None

    def get_reload_token(self) -> ChangeToken:
        return self._reload_token

    def _fetch(self) -> FlatMapping:
        raise NotImplementedError

    def _fetch_or_raise(self) -> FlatMapping:
        try:
            return self._fetch()
        except LayerconfError:
            raise
        except Exception as e:
            raise ProviderError(
                f"Provider '{self.name}' failed to fetch configuration: {e}",
                details={"provider": self.name},
            ) from e

    def _apply(self, mapping: FlatMapping, *, reason: str, notify: bool) -> None:
        # Caller holds self._lock.
        self._data = mapping
        self._loaded = True
        self._log.debug("provider_data_replaced", reason=reason, keys=len(mapping))
        if notify:
            self._on_reload()

    def _on_reload(self) -> None:
        previous, self._reload_token = self._reload_token, ChangeToken()
        previous.fire()

    def load(self) -> None:
        """Fetch the initial mapping; blocks until ``data`` is populated."""
        with self._lock:
            if self._disposed:
                raise ConfigurationError(
                    f"Provider '{self.name}' is disposed", details={"provider": self.name}
                )
            self._apply(self._fetch_or_raise(), reason="load", notify=self._loaded)

    async def load_async(self) -> None:
        self.load()

    def reload(self) -> bool:
        """Replace ``data`` with a fresh snapshot and fire the change token.

        Returns False without reloading once the provider is disposed. Fetch
        failures raise ProviderError and keep the previous data.
        """
        with self._lock:
            if self._disposed:
                self._log.warning("reload_after_dispose_ignored")
                return False
            self._apply(self._fetch_or_raise(), reason="reload", notify=True)
        return True

    async def reload_async(self) -> bool:
        return self.reload()

    def dispose(self) -> None:
        """Stop background work. Idempotent; no reload runs after this returns."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._on_dispose()
        self._log.debug("provider_disposed")

    def _on_dispose(self) -> None:
        pass

    async def aclose(self) -> None:
        self.dispose()

    def __enter__(self) -> ConfigurationProvider:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def run_sync(awaitable: Awaitable[Any], provider_name: str) -> Any:
    """Drive an awaitable to completion from synchronous code.

    Only possible when no event loop is running in this thread; async callers
    must use the ``*_async`` entry points instead.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await(awaitable))

    if inspect.iscoroutine(awaitable):
        awaitable.close()
    raise ConfigurationError(
        f"Provider '{provider_name}' has an asynchronous source; "
        "use load_async()/reload_async() or ConfigurationBuilder.build_async() "
        "inside a running event loop",
        details={"provider": provider_name},
    )


class FetchingProvider(ConfigurationProvider):
    """Provider over a source whose fetch may be async, with optional periodic reload.

    Subclasses implement ``_fetch_raw()`` (returning a value or an awaitable)
    and ``_to_mapping()``.
    """

    def __init__(
        self,
        *,
        reload_interval: float | timedelta | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        self.reload_interval = interval_seconds(reload_interval)
        self._scheduler: ReloadScheduler | AsyncReloadScheduler | None = None
        self._async_lock = asyncio.Lock()

    def _fetch_raw(self) -> Any:
        raise NotImplementedError

    def _to_mapping(self, raw: Any) -> FlatMapping:
        raise NotImplementedError

    def _fetch(self) -> FlatMapping:
        raw = self._fetch_raw()
        if inspect.isawaitable(raw):
            raw = run_sync(raw, self.name)
        return self._to_mapping(raw)

    async def _fetch_async_or_raise(self) -> FlatMapping:
        try:
            raw = self._fetch_raw()
            if inspect.isawaitable(raw):
                raw = await raw
            return self._to_mapping(raw)
        except LayerconfError:
            raise
        except Exception as e:
            raise ProviderError(
                f"Provider '{self.name}' failed to fetch configuration: {e}",
                details={"provider": self.name},
            ) from e

    @property
    def scheduler(self) -> ReloadScheduler | AsyncReloadScheduler | None:
        return self._scheduler

    def _start_scheduler(self, *, on_event_loop: bool) -> None:
        with self._lock:
            if self.reload_interval is None or self._scheduler is not None or self._disposed:
                return
            scheduler: ReloadScheduler | AsyncReloadScheduler
            if on_event_loop:
                scheduler = AsyncReloadScheduler(
                    self.reload_async, self.reload_interval, name=self.name
                )
            else:
                scheduler = ReloadScheduler(self.reload, self.reload_interval, name=self.name)
            self._scheduler = scheduler
            scheduler.start()

    def load(self) -> None:
        super().load()
        self._start_scheduler(on_event_loop=False)

    async def load_async(self) -> None:
        async with self._async_lock:
            if self._disposed:
                raise ConfigurationError(
                    f"Provider '{self.name}' is disposed", details={"provider": self.name}
                )
            mapping = await self._fetch_async_or_raise()
            with self._lock:
                self._apply(mapping, reason="load", notify=self._loaded)
        self._start_scheduler(on_event_loop=True)

    async def reload_async(self) -> bool:
        async with self._async_lock:
            if self._disposed:
                self._log.warning("reload_after_dispose_ignored")
                return False
            mapping = await self._fetch_async_or_raise()
            with self._lock:
                if self._disposed:
                    self._log.debug("reload_discarded_after_dispose")
                    return False
                self._apply(mapping, reason="reload", notify=True)
        return True

    def _on_dispose(self) -> None:
        if self._scheduler is not None:
            self._scheduler.stop()

    async def aclose(self) -> None:
        self.dispose()
        if isinstance(self._scheduler, AsyncReloadScheduler):
            await self._scheduler.wait_closed()
