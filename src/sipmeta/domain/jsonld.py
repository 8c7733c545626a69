"""Dataclass-to-JSON-LD serialization shared by every SIP document."""

from __future__ import annotations

import json
import math
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import MISSING, field, fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Final

from sipmeta.domain.dates import W3CDate, format_datetime

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_TERM_KEY: Final[str] = "term"
_OMITEMPTY_KEY: Final[str] = "omitempty"
_FLATTEN_KEY: Final[str] = "flatten"
_OMITNONE_KEY: Final[str] = "omitnone"

__all__ = [
    "JSONLDModel",
    "JSONScalar",
    "JSONValue",
    "dumps",
    "term",
    "to_jsonable",
]


def term(
    name: str,
    *,
    omitempty: bool = False,
    omitnone: bool = False,
    flatten: bool = False,
    default: Any = MISSING,
    default_factory: Any = MISSING,
) -> Any:
    """Declare a dataclass field with its JSON-LD term name.

    ``omitempty`` drops the field when it holds a zero value (``None``, ``""``,
    ``0``, ``False`` or an empty collection). ``omitnone`` drops it only when it
    is ``None``. ``flatten`` serializes a one-element list as its only element.
    """

    metadata = {
        _TERM_KEY: name,
        _OMITEMPTY_KEY: omitempty,
        _OMITNONE_KEY: omitnone,
        _FLATTEN_KEY: flatten,
    }
    if default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


class JSONLDModel:
    """Mixin for dataclasses that serialize to JSON-LD objects in field order."""

    def to_dict(self) -> dict[str, JSONValue]:
        return _model_to_dict(self, self.__class__.__name__, set())

    def to_json(self) -> str:
        return dumps(self)


def dumps(value: object) -> str:
    """Serialize ``value`` with two-space indentation and a trailing newline."""

    return json.dumps(to_jsonable(value), indent=2, ensure_ascii=False) + "\n"


def to_jsonable(value: object, path: str = "$") -> JSONValue:
    """Convert models, dates and containers into plain JSON values."""

    return _to_jsonable(value, path, set())


def _to_jsonable(value: object, path: str, active: set[int]) -> JSONValue:
    if isinstance(value, Enum):
        return _to_jsonable(value.value, path, active)
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"{path}: float values must be finite")
        return value
    if isinstance(value, W3CDate):
        return value.isoformat()
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, JSONLDModel) and is_dataclass(value):
        return _model_to_dict(value, path, active)
    if isinstance(value, Mapping):
        with _tracking(value, path, active):
            out: dict[str, JSONValue] = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise TypeError(f"{path}: object keys must be strings, got {type(key).__name__}")
                out[key] = _to_jsonable(item, f"{path}.{key}", active)
            return out
    if isinstance(value, (list, tuple)):
        with _tracking(value, path, active):
            return [_to_jsonable(item, f"{path}[{i}]", active) for i, item in enumerate(value)]

    raise TypeError(f"{path}: object of type {type(value).__name__} is not JSON serializable")


def _model_to_dict(model: object, path: str, active: set[int]) -> dict[str, JSONValue]:
    with _tracking(model, path, active):
        out: dict[str, JSONValue] = {}
        for model_field in fields(model):  # type: ignore[arg-type]
            name = model_field.metadata.get(_TERM_KEY, model_field.name)
            raw = getattr(model, model_field.name)
            if model_field.metadata.get(_FLATTEN_KEY):
                raw = _flatten(raw)
            if model_field.metadata.get(_OMITEMPTY_KEY) and _is_empty(raw):
                continue
            if model_field.metadata.get(_OMITNONE_KEY) and raw is None:
                continue
            out[name] = _to_jsonable(raw, f"{path}.{name}", active)
        return out


def _flatten(value: object) -> object:
    if not isinstance(value, (list, tuple)):
        return value
    if not value:
        return None
    if len(value) == 1:
        return _flatten(value[0])
    return [_flatten(item) for item in value]


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (str, int, float)):
        return not value
    if isinstance(value, (list, tuple, Mapping)):
        return len(value) == 0
    return False


@contextmanager
def _tracking(value: object, path: str, active: set[int]) -> Iterator[None]:
    marker = id(value)
    if marker in active:
        raise ValueError(f"{path}: circular reference detected")
    active.add(marker)
    try:
        yield
    finally:
        active.discard(marker)
