"""
Composite configuration root.

Providers are consulted from last registered to first; the first provider
that contains a key (even with a null value) answers. Each lookup reads the
providers' currently installed mappings, so a reload in one provider never
blocks readers.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Sequence
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel

from layerconf.binding import bind, is_index, unflatten
from layerconf.change_token import ChangeSubscription, ChangeToken, on_change
from layerconf.core.errors import ReloadError
from layerconf.flatten import KEY_DELIMITER, join_path
from layerconf.providers.base import ConfigurationProvider

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)


def _segment_sort_key(segment: str) -> tuple[int, int, str]:
    if is_index(segment):
        return (0, int(segment), "")
    return (1, 0, segment.casefold())


def _folded_segments(path: str) -> list[str]:
    return [segment.casefold() for segment in path.split(KEY_DELIMITER)] if path else []


def _relative_key(key: str, prefix: list[str]) -> str | None:
    """``key`` below the folded ``prefix`` segments, or None if not under it."""
    if not prefix:
        return key
    segments = key.split(KEY_DELIMITER)
    if len(segments) <= len(prefix):
        return None
    if [segment.casefold() for segment in segments[: len(prefix)]] != prefix:
        return None
    return KEY_DELIMITER.join(segments[len(prefix) :])


class ConfigurationSection:
    """A view of every entry below a path."""

    def __init__(self, root: ConfigurationRoot, path: str) -> None:
        self._root = root
        self.path = path

    def __repr__(self) -> str:
        return f"ConfigurationSection(path={self.path!r})"

    @property
    def key(self) -> str:
        return self.path.rsplit(KEY_DELIMITER, 1)[-1]

    @property
    def value(self) -> str | None:
        return self._root.get(self.path)

    def __getitem__(self, key: str) -> str | None:
        return self._root[join_path(self.path, key)]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and join_path(self.path, key) in self._root

    def get(self, key: str, default: Any = None) -> Any:
        return self._root.get(join_path(self.path, key), default)

    def get_section(self, key: str) -> ConfigurationSection:
        return ConfigurationSection(self._root, join_path(self.path, key))

    def get_children(self) -> list[ConfigurationSection]:
        return [
            ConfigurationSection(self._root, join_path(self.path, segment))
            for segment in self._root._child_segments(self.path)
        ]

    def exists(self) -> bool:
        found, _ = self._root.lookup(self.path) if self.path else (False, None)
        return found or bool(self._root._child_segments(self.path))

    def entries(self) -> dict[str, str | None]:
        """Entries below this section, keyed by path relative to it."""
        return self._root._entries_under(self.path)

    def to_value(self) -> Any:
        """Hydrate the section into nested dicts, lists and strings."""
        entries = self.entries()
        if not entries:
            return self.value
        return unflatten(entries.items())

    def bind(self, model: type[M]) -> M:
        return bind(model, self.entries().items())


class ConfigurationRoot:
    """Ordered set of providers resolved last-registered-wins."""

    def __init__(self, providers: Sequence[ConfigurationProvider]) -> None:
        self._providers = tuple(providers)
        self._token_lock = threading.Lock()
        self._reload_token = ChangeToken()
        self._subscriptions: list[ChangeSubscription] = [
            on_change(provider.get_reload_token, self._raise_changed)
            for provider in self._providers
        ]
        self._disposed = False

    def __repr__(self) -> str:
        names = ", ".join(provider.name for provider in self._providers)
        return f"ConfigurationRoot([{names}])"

    @property
    def providers(self) -> tuple[ConfigurationProvider, ...]:
        return self._providers

    # Lookup

    def lookup(self, key: str) -> tuple[bool, str | None]:
        """Return (found, value); found-but-null is distinct from not found."""
        for provider in reversed(self._providers):
            found, value = provider.try_get(key)
            if found:
                return True, value
        return False, None

    def __getitem__(self, key: str) -> str | None:
        found, value = self.lookup(key)
        if not found:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key)[0]

    def get(self, key: str, default: Any = None) -> Any:
        found, value = self.lookup(key)
        return value if found else default

    def as_dict(self) -> dict[str, str | None]:
        """The merged flat view, sorted by path (a root value appears at ``""``)."""
        return self._entries_under("")

    def __iter__(self) -> Iterator[str]:
        return iter(self.as_dict())

    # Sections

    def get_section(self, path: str) -> ConfigurationSection:
        return ConfigurationSection(self, path)

    def get_children(self) -> list[ConfigurationSection]:
        return ConfigurationSection(self, "").get_children()

    def bind(self, model: type[M], path: str = "") -> M:
        return ConfigurationSection(self, path).bind(model)

    def _entries_under(self, path: str) -> dict[str, str | None]:
        """Merged entries below ``path``; the root view includes the ``""`` key."""
        prefix = _folded_segments(path)
        merged: dict[str, tuple[str, str | None]] = {}
        for provider in self._providers:
            for key, value in provider.data.items():
                relative = _relative_key(key, prefix)
                if relative is None:
                    continue
                folded = relative.casefold()
                existing = merged.get(folded)
                merged[folded] = (existing[0] if existing else relative, value)
        ordered = sorted(
            merged.values(),
            key=lambda item: [_segment_sort_key(s) for s in item[0].split(KEY_DELIMITER)],
        )
        return dict(ordered)

    def _child_segments(self, path: str) -> list[str]:
        prefix = _folded_segments(path)
        segments: dict[str, str] = {}
        for provider in self._providers:
            for key in provider.data:
                relative = _relative_key(key, prefix)
                # the root's own value is not a child
                if relative is None or not (prefix or key):
                    continue
                segment = relative.split(KEY_DELIMITER, 1)[0]
                segments.setdefault(segment.casefold(), segment)
        return sorted(segments.values(), key=_segment_sort_key)

    # Change notification

    def get_reload_token(self) -> ChangeToken:
        return self._reload_token

    def _raise_changed(self) -> None:
        with self._token_lock:
            previous, self._reload_token = self._reload_token, ChangeToken()
        previous.fire()

    # Reload and lifetime

    def reload(self) -> None:
        """Reload every provider; failures are collected and raised together."""
        failures: dict[str, BaseException] = {}
        for index, provider in enumerate(self._providers):
            try:
                provider.reload()
            except Exception as e:
                logger.warning("provider_reload_failed", provider=provider.name, error=str(e))
                failures[f"{index}:{provider.name}"] = e
        if failures:
            raise ReloadError(failures)

    async def reload_async(self) -> None:
        failures: dict[str, BaseException] = {}
        for index, provider in enumerate(self._providers):
            try:
                await provider.reload_async()
            except Exception as e:
                logger.warning("provider_reload_failed", provider=provider.name, error=str(e))
                failures[f"{index}:{provider.name}"] = e
        if failures:
            raise ReloadError(failures)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for subscription in self._subscriptions:
            subscription.dispose()
        for provider in self._providers:
            provider.dispose()

    async def aclose(self) -> None:
        self.dispose()
        for provider in self._providers:
            await provider.aclose()

    def __enter__(self) -> ConfigurationRoot:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()
