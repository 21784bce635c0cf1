"""
JSON and YAML document providers.

A document is parsed into a tree and flattened as a whole. Documents come from
inline text or from a file; file-backed providers re-read the file on every
reload.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from layerconf.core.errors import ConfigurationError, ParseError
from layerconf.flatten import EMPTY, FlatMapping, flatten, parse_json
from layerconf.providers.base import ConfigurationProvider


class DocumentProvider(ConfigurationProvider):
    """Base for providers that parse one text document."""

    format_name = "document"

    def __init__(
        self,
        *,
        text: str | None = None,
        path: str | Path | None = None,
        optional: bool = False,
        name: str | None = None,
    ) -> None:
        if (text is None) == (path is None):
            raise ConfigurationError(
                f"{type(self).__name__} needs exactly one of 'text' or 'path'"
            )
        self.path = Path(path) if path is not None else None
        self.optional = optional
        self._text = text
        super().__init__(name or (f"{self.format_name}:{self.path}" if self.path else None))

    def _read(self) -> str | None:
        if self.path is None:
            return self._text
        if not self.path.exists():
            if self.optional:
                self._log.debug("optional_document_missing", path=str(self.path))
                return None
            raise ConfigurationError(
                f"Configuration file not found: {self.path}",
                details={"path": str(self.path)},
            )
        return self.path.read_text(encoding="utf-8")

    def _parse(self, text: str) -> Any:
        raise NotImplementedError

    def _fetch(self) -> FlatMapping:
        text = self._read()
        if text is None or not text.strip():
            return EMPTY
        return flatten(self._parse(text))


class JsonDocumentProvider(DocumentProvider):
    """Flattens a JSON document."""

    format_name = "json"

    def _parse(self, text: str) -> Any:
        try:
            return parse_json(text)
        except ParseError as e:
            if self.path is not None:
                e.details["path"] = str(self.path)
            raise


class YamlDocumentProvider(DocumentProvider):
    """Flattens a YAML document (``yaml.safe_load``)."""

    format_name = "yaml"

    def _parse(self, text: str) -> Any:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            details = {"path": str(self.path)} if self.path is not None else None
            raise ParseError(f"Malformed YAML: {e}", details=details) from e
