from __future__ import annotations

import os
from collections.abc import Mapping

from layerconf.flatten import KEY_DELIMITER, FlatMapping
from layerconf.providers.base import ConfigurationProvider

# Environment variable names cannot contain ":"; a double underscore stands in.
ENV_SEPARATOR = "__"


class EnvironmentProvider(ConfigurationProvider):
    """
    Provider over environment variables.

    Variables not starting with ``prefix`` (case-insensitive) are ignored; the
    prefix is stripped and ``__`` becomes ``:``, so ``APP_Database__Host``
    with prefix ``APP_`` is served as ``Database:Host``.
    """

    def __init__(
        self,
        prefix: str = "",
        *,
        environ: Mapping[str, str] | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(name or (f"env:{prefix}" if prefix else "env"))
        self.prefix = prefix
        self._environ = environ

    def _fetch(self) -> FlatMapping:
        environ = self._environ if self._environ is not None else os.environ
        folded_prefix = self.prefix.casefold()
        entries = []
        for key, value in environ.items():
            if not key.casefold().startswith(folded_prefix):
                continue
            path = key[len(self.prefix) :].replace(ENV_SEPARATOR, KEY_DELIMITER)
            if path:
                entries.append((path, value))
        return FlatMapping(entries)
