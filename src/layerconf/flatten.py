"""
Path flattening.

Converts nested values (mappings, declared-field objects, sequences and
primitives) into a flat mapping of colon-delimited paths to optional strings:

    {"Notifications": {"Enabled": True}}  ->  {"Notifications:Enabled": "True"}
    ["a", "b"] under "Hosts"              ->  {"Hosts:0": "a", "Hosts:1": "b"}

Objects are only walked through fields they declare (``iter_fields()``,
pydantic ``model_fields`` or dataclass fields); values of any other type are
skipped rather than introspected.
"""

from __future__ import annotations

import dataclasses
import json
import re
import uuid
from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Protocol, runtime_checkable

import pydantic_core
import structlog
from pydantic import AnyUrl, BaseModel

from layerconf.core.errors import ParseError

logger = structlog.get_logger()

KEY_DELIMITER = ":"


@runtime_checkable
class FieldSource(Protocol):
    """Capability of objects that enumerate their own (name, value) pairs."""

    def iter_fields(self) -> Iterable[tuple[str, Any]]: ...


class FlatMapping(Mapping[str, "str | None"]):
    """Immutable path -> value mapping with case-insensitive keys.

    Keys keep the spelling they were first written with; a later write to the
    same path (ignoring case) replaces the value.
    """

    __slots__ = ("_entries",)

    def __init__(
        self,
        entries: Mapping[str, str | None] | Iterable[tuple[str, str | None]] = (),
    ) -> None:
        store: dict[str, tuple[str, str | None]] = {}
        items = entries.items() if isinstance(entries, Mapping) else entries
        for key, value in items:
            folded = key.casefold()
            existing = store.get(folded)
            store[folded] = (existing[0] if existing else key, value)
        self._entries = store

    def __getitem__(self, key: str) -> str | None:
        try:
            return self._entries[key.casefold()][1]
        except (KeyError, AttributeError):
            raise KeyError(key) from None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._entries

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FlatMapping({dict(self.items())!r})"


EMPTY = FlatMapping()


_DURATION = re.compile(
    r"(?P<sign>-)?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{2}):(?P<seconds>\d{2})"
    r"(?:\.(?P<fraction>\d{1,6}))?"
)


def join_path(prefix: str, name: str) -> str:
    """``name`` at the root, otherwise ``prefix:name``."""
    return f"{prefix}{KEY_DELIMITER}{name}" if prefix else name


def parse_duration(text: str) -> timedelta | None:
    """Read back the ``[-][d.]hh:mm:ss[.ffffff]`` form; None if it doesn't match."""
    match = _DURATION.fullmatch(text.strip())
    if match is None:
        return None
    value = timedelta(
        days=int(match["days"] or 0),
        hours=int(match["hours"]),
        minutes=int(match["minutes"]),
        seconds=int(match["seconds"]),
        microseconds=int((match["fraction"] or "").ljust(6, "0")),
    )
    return -value if match["sign"] else value


def _format_timedelta(value: timedelta) -> str:
    micros_total = value // timedelta(microseconds=1)
    sign = "-" if micros_total < 0 else ""
    seconds, micros = divmod(abs(micros_total), 1_000_000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    text = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if days:
        text = f"{days}.{text}"
    if micros:
        text = f"{text}.{micros:06d}"
    return sign + text


def render_scalar(value: Any) -> str | None:
    """Return the canonical string for a primitive, or None if not primitive.

    Booleans render as "True"/"False".
    """
    if isinstance(value, Enum):
        return render_scalar(value.value)
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return _format_timedelta(value)
    if isinstance(value, (uuid.UUID, PurePath, AnyUrl, pydantic_core.Url)):
        return str(value)
    return None


def _declared_fields(value: Any) -> Iterable[tuple[str, Any]] | None:
    if isinstance(value, BaseModel):
        return (
            (field.alias or name, getattr(value, name))
            for name, field in type(value).model_fields.items()
        )
    if isinstance(value, FieldSource):
        return value.iter_fields()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return ((f.name, getattr(value, f.name)) for f in dataclasses.fields(value))
    return None


def _sequence_items(value: Any) -> Iterable[Any] | None:
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    return None


def flatten_into(value: Any, path: str, out: dict[str, str | None]) -> None:
    """Flatten ``value`` under ``path`` into ``out`` (later writes win)."""
    if value is None:
        out[path] = None
        return

    scalar = render_scalar(value)
    if scalar is not None:
        out[path] = scalar
        return

    if isinstance(value, Mapping):
        for key, child in value.items():
            flatten_into(child, join_path(path, str(key)), out)
        return

    members = _declared_fields(value)
    if members is not None:
        for name, child in members:
            flatten_into(child, join_path(path, name), out)
        return

    items = _sequence_items(value)
    if items is not None:
        for index, child in enumerate(items):
            flatten_into(child, join_path(path, str(index)), out)
        return

    logger.debug("flatten_skipped_value", path=path, value_type=type(value).__name__)


def flatten(value: Any, prefix: str = "") -> FlatMapping:
    """Flatten a nested value into a FlatMapping rooted at ``prefix``."""
    out: dict[str, str | None] = {}
    flatten_into(value, prefix, out)
    return FlatMapping(out)


def parse_json(text: str) -> Any:
    """Parse JSON text; fractional numbers become ``Decimal``.

    ``Decimal`` keeps trailing zeros and avoids float rounding (``1.50`` stays
    ``1.50``), but exponents come back normalized (``1e5`` renders ``1E+5``).
    """
    try:
        return json.loads(text, parse_float=Decimal)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Malformed JSON: {e}") from e


def flatten_rows(
    rows: Mapping[str, str | None] | Iterable[tuple[str, str | None]],
) -> FlatMapping:
    """Flatten (key, JSON blob) rows into one mapping.

    Each blob is parsed and flattened under its key. Blank blobs store an empty
    string; blobs that are not valid JSON are stored verbatim.
    """
    out: dict[str, str | None] = {}
    items = rows.items() if isinstance(rows, Mapping) else rows
    for key, blob in items:
        if blob is None:
            out[key] = None
            continue
        if not blob.strip():
            out[key] = ""
            continue
        try:
            tree = parse_json(blob)
        except ParseError as e:
            logger.debug("row_parse_failed", key=key, error=e.message)
            out[key] = blob
            continue
        flatten_into(tree, key, out)
    return FlatMapping(out)
