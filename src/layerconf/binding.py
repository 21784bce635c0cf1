"""
Reverse flattening.

Rebuilds nested values from relative flat entries. A node whose child
segments are exactly ``0..n-1`` becomes a list; any other node with children
becomes a dict; a leaf yields its string (or None). When a path carries both a
value and children, the children win.
"""

from __future__ import annotations

import types
from collections.abc import Iterable, Mapping, Sequence
from datetime import timedelta
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel

from layerconf.flatten import KEY_DELIMITER, parse_duration

M = TypeVar("M", bound=BaseModel)

_SEQUENCE_ORIGINS = (list, set, frozenset, Sequence)


class _Node:
    __slots__ = ("value", "children")

    def __init__(self) -> None:
        self.value: str | None = None
        self.children: dict[str, tuple[str, _Node]] = {}

    def child(self, segment: str) -> _Node:
        folded = segment.casefold()
        entry = self.children.get(folded)
        if entry is None:
            entry = (segment, _Node())
            self.children[folded] = entry
        return entry[1]


def is_index(segment: str) -> bool:
    """True for ASCII digit segments such as ``"0"`` or ``"12"``."""
    return segment.isascii() and segment.isdigit()


def _is_list(names: list[str]) -> bool:
    if not all(is_index(name) for name in names):
        return False
    return sorted(int(name) for name in names) == list(range(len(names)))


def _materialize(node: _Node) -> Any:
    if not node.children:
        return node.value
    names = [name for name, _ in node.children.values()]
    if _is_list(names):
        by_index = {int(name): child for name, child in node.children.values()}
        return [_materialize(by_index[i]) for i in range(len(by_index))]
    return {name: _materialize(child) for name, child in node.children.values()}


def unflatten(entries: Iterable[tuple[str, str | None]]) -> Any:
    """Rebuild a nested value from (relative path, value) pairs."""
    root = _Node()
    for path, value in entries:
        node = root
        if path:
            for segment in path.split(KEY_DELIMITER):
                node = node.child(segment)
        node.value = value
    return _materialize(root)


def _read_durations(annotation: Any, value: Any) -> Any:
    # pydantic does not parse the "d.hh:mm:ss" form, so timedelta fields are
    # converted before validation; everything else is left to pydantic.
    if value is None:
        return value
    origin = get_origin(annotation)
    args = get_args(annotation)
    if origin is Annotated:
        return _read_durations(args[0], value)
    if origin is Union or origin is types.UnionType:
        for arg in args:
            converted = _read_durations(arg, value)
            if converted is not value:
                return converted
        return value
    if annotation is timedelta:
        if isinstance(value, str):
            parsed = parse_duration(value)
            return value if parsed is None else parsed
        return value
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return _read_model_durations(annotation, value) if isinstance(value, dict) else value
    if origin in _SEQUENCE_ORIGINS and args and isinstance(value, list):
        return [_read_durations(args[0], item) for item in value]
    if origin is tuple and args and isinstance(value, list):
        if args[-1] is Ellipsis:
            return [_read_durations(args[0], item) for item in value]
        return [_read_durations(arg, item) for arg, item in zip(args, value)] + value[len(args) :]
    if origin in (dict, Mapping) and len(args) == 2 and isinstance(value, dict):
        return {key: _read_durations(args[1], item) for key, item in value.items()}
    return value


def _read_model_durations(model: type[BaseModel], value: dict[str, Any]) -> dict[str, Any]:
    annotations: dict[str, Any] = {}
    for name, field in model.model_fields.items():
        annotations[(field.alias or name).casefold()] = field.annotation
        annotations.setdefault(name.casefold(), field.annotation)
    converted: dict[str, Any] = {}
    for key, item in value.items():
        annotation = annotations.get(key.casefold())
        converted[key] = item if annotation is None else _read_durations(annotation, item)
    return converted


def bind(model: type[M], entries: Iterable[tuple[str, str | None]]) -> M:
    """Hydrate ``model`` from relative flat entries (pydantic does the coercion)."""
    value = unflatten(entries)
    if not isinstance(value, dict):
        return model.model_validate({})
    return model.model_validate(_read_model_durations(model, value))
