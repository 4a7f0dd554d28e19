"""JSON codec for dataclass records.

Keys are camelCase (``account_id`` is written as ``accountId``); a field can
name its key explicitly with ``metadata={"wire": ...}``. Decoding is forward
compatible: unknown keys are ignored, missing keys take the field default and
the snake_case field name is accepted in place of the key. Encoding writes
every field, defaults included.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import lru_cache
import json
import types
from typing import Any, TypeVar, Union, get_args, get_origin, get_type_hints

from moneybook.exceptions import DecodeError

T = TypeVar("T")

EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)
JSON_INDENT = 2


@lru_cache(maxsize=None)
def _field_types(cls: type) -> tuple[tuple[dataclasses.Field, Any], ...]:
    hints = get_type_hints(cls)
    return tuple((f, hints[f.name]) for f in dataclasses.fields(cls) if f.init)


def wire_name(f: dataclasses.Field) -> str:
    """JSON key for a record field."""
    override = f.metadata.get("wire")
    if override:
        return override
    head, *rest = f.name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _is_optional(hint: Any) -> bool:
    return get_origin(hint) in (Union, types.UnionType) and type(None) in get_args(hint)


def encode_value(value: Any) -> Any:
    """Convert a record value into JSON-compatible data."""
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dt.datetime):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return encode_record(value)
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    raise TypeError(f"Cannot encode value of type {type(value).__name__}")


def encode_record(record: Any) -> dict[str, Any]:
    """Encode a dataclass record into a JSON object, defaults included."""
    return {
        wire_name(f): encode_value(getattr(record, f.name))
        for f, _ in _field_types(type(record))
    }


def _decode_datetime(value: Any) -> dt.datetime:
    # Epoch milliseconds, as the mobile app writes instants.
    if isinstance(value, bool):
        raise DecodeError(f"Expected timestamp, got {value!r}")
    if isinstance(value, (int, float)):
        return EPOCH + dt.timedelta(milliseconds=value)
    if isinstance(value, str):
        try:
            parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise DecodeError(f"Invalid timestamp {value!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=dt.timezone.utc)
        return parsed
    raise DecodeError(f"Expected timestamp, got {value!r}")


def _decode_decimal(value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise DecodeError(f"Expected decimal, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise DecodeError(f"Invalid decimal {value!r}") from exc


def decode_value(hint: Any, value: Any) -> Any:
    """Convert JSON data into a value of the annotated type."""
    origin = get_origin(hint)
    if origin in (Union, types.UnionType):
        if value is None and _is_optional(hint):
            return None
        candidates = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(candidates) != 1:
            raise DecodeError(f"Unsupported union type {hint!r}")
        return decode_value(candidates[0], value)
    if origin is list:
        if not isinstance(value, list):
            raise DecodeError(f"Expected list, got {type(value).__name__}")
        (item_hint,) = get_args(hint) or (Any,)
        return [decode_value(item_hint, item) for item in value]
    if hint is Any:
        return value
    if value is None:
        raise DecodeError(f"Unexpected null for {getattr(hint, '__name__', hint)}")
    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        return decode_record(hint, value)
    if isinstance(hint, type) and issubclass(hint, Enum):
        try:
            return hint(value)
        except ValueError as exc:
            raise DecodeError(f"Invalid {hint.__name__} value {value!r}") from exc
    if hint is Decimal:
        return _decode_decimal(value)
    if hint is dt.datetime:
        return _decode_datetime(value)
    if hint is bool:
        if not isinstance(value, bool):
            raise DecodeError(f"Expected boolean, got {value!r}")
        return value
    if hint is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(f"Expected integer, got {value!r}")
        return value
    if hint is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DecodeError(f"Expected number, got {value!r}")
        return float(value)
    if hint is str:
        if not isinstance(value, str):
            raise DecodeError(f"Expected string, got {value!r}")
        return value
    raise DecodeError(f"Unsupported field type {hint!r}")


def decode_record(cls: type[T], payload: Any) -> T:
    """Decode a JSON object into ``cls``.

    Raises:
        DecodeError: If the payload is not an object, a required field is
            missing, a value has the wrong shape, or the record rejects it.
    """
    if not isinstance(payload, dict):
        raise DecodeError(f"Expected object for {cls.__name__}, got {type(payload).__name__}")
    kwargs: dict[str, Any] = {}
    for f, hint in _field_types(cls):
        key = wire_name(f)
        if key not in payload:
            key = f.name
        if key not in payload:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise DecodeError(
                    f"{cls.__name__} is missing required field {wire_name(f)!r}"
                )
            continue
        kwargs[f.name] = decode_value(hint, payload[key])
    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Invalid {cls.__name__}: {exc}") from exc


def dumps(payload: Any) -> str:
    """Serialize JSON data the way collection files are written."""
    return json.dumps(payload, indent=JSON_INDENT, ensure_ascii=False) + "\n"


def loads(text: str) -> Any:
    """Parse collection file text."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Malformed JSON: {exc}") from exc
