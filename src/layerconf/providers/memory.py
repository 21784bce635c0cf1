from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from layerconf.flatten import FlatMapping, render_scalar
from layerconf.providers.base import ConfigurationProvider


class MemoryProvider(ConfigurationProvider):
    """Provider over an already-flat mapping of paths to values."""

    def __init__(
        self,
        data: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        *,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        items = data.items() if isinstance(data, Mapping) else (data or ())
        self._initial = tuple(
            (key, None if value is None else _as_string(value)) for key, value in items
        )

    def _fetch(self) -> FlatMapping:
        return FlatMapping(self._initial)


def _as_string(value: Any) -> str:
    rendered = render_scalar(value)
    return rendered if rendered is not None else str(value)
