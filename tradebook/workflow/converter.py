"""Custom Temporal DataConverter for tradebook frozen-dataclass types.

Handles serialization of: Decimal, date, datetime, Enum, tuples and
nested dataclasses (Trade -> TradeLeg -> Cashflow -> EntityRef) by adding
__type__ tags during encoding.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum, EnumType
from typing import Any, get_type_hints

from temporalio.converter import (
    CompositePayloadConverter,
    DataConverter,
    DefaultPayloadConverter,
    JSONPlainPayloadConverter,
    JSONTypeConverter,
)

# ---------------------------------------------------------------------------
# Recursive serializer (replaces dataclasses.asdict)
# ---------------------------------------------------------------------------


def _to_json(obj: Any) -> Any:
    """Recursively convert tradebook objects to JSON-compatible values.

    Adds ``__type__`` tags to dataclass instances so that optional and
    nested dataclass fields can be round-tripped.
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Decimal):
        return {"__decimal__": str(obj)}
    if isinstance(obj, datetime):
        return {"__datetime__": obj.isoformat()}
    if isinstance(obj, date):
        return {"__date__": obj.isoformat()}
    if isinstance(obj, Enum):
        return obj.value
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        d: dict[str, Any] = {
            "__type__": f"{type(obj).__module__}.{type(obj).__qualname__}",
        }
        for field in dataclasses.fields(obj):
            d[field.name] = _to_json(getattr(obj, field.name))
        return d
    if isinstance(obj, (tuple, list)):
        return [_to_json(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): _to_json(v) for k, v in obj.items()}
    raise TypeError(f"Cannot serialize {type(obj).__name__} for a workflow payload")


class TradebookJSONEncoder(json.JSONEncoder):
    """JSON encoder using _to_json for full tradebook type support."""

    def default(self, o: Any) -> Any:
        return _to_json(o)


# ---------------------------------------------------------------------------
# Recursive deserializer
# ---------------------------------------------------------------------------

# Security: only resolve classes from these modules.
_ALLOWED_MODULES: frozenset[str] = frozenset({
    "tradebook.core.types",
    "tradebook.trade.types",
    "tradebook.workflow.types",
})

_CLASS_CACHE: dict[str, type] = {}


def _resolve_class(fqn: str) -> type | None:
    """Resolve a fully qualified class name to a type.

    Only classes from ``_ALLOWED_MODULES`` are resolved — prevents
    arbitrary class instantiation from crafted payloads.
    """
    if fqn in _CLASS_CACHE:
        return _CLASS_CACHE[fqn]
    module_name, _, class_name = fqn.rpartition(".")
    if module_name not in _ALLOWED_MODULES:
        return None
    cls = getattr(importlib.import_module(module_name), class_name, None)
    if isinstance(cls, type):
        _CLASS_CACHE[fqn] = cls
        return cls
    return None


def _enum_type(hint: Any) -> type[Enum] | None:
    # Optional enum: "X | None"
    for candidate in (hint, *getattr(hint, "__args__", ())):
        if isinstance(candidate, EnumType):
            return candidate
    return None


def _from_json(hint: Any, value: Any) -> Any:
    """Recursively convert JSON values back to tradebook types."""
    if value is None:
        return None

    if isinstance(value, dict):
        if "__type__" in value:
            cls = _resolve_class(value["__type__"])
            if cls is None or not dataclasses.is_dataclass(cls):
                raise TypeError(f"Refusing to decode payload type {value['__type__']!r}")
            hints = get_type_hints(cls)
            kwargs: dict[str, Any] = {}
            for field in dataclasses.fields(cls):
                if field.name in value:
                    kwargs[field.name] = _from_json(hints.get(field.name, Any), value[field.name])
            return cls(**kwargs)
        if "__decimal__" in value:
            return Decimal(value["__decimal__"])
        if "__datetime__" in value:
            return datetime.fromisoformat(value["__datetime__"])
        if "__date__" in value:
            return date.fromisoformat(value["__date__"])
        return value

    if isinstance(value, list):
        return tuple(_from_json(Any, x) for x in value)

    if (enum_type := _enum_type(hint)) is not None:
        return enum_type(value)

    return value


class TradebookJSONTypeConverter(JSONTypeConverter):
    """Deserialize tagged JSON values back to tradebook types."""

    def to_typed_value(self, hint: type, value: Any) -> Any:
        if isinstance(value, dict) and any(
            tag in value for tag in ("__type__", "__decimal__", "__datetime__", "__date__")
        ):
            return _from_json(hint, value)
        return JSONTypeConverter.Unhandled


# ---------------------------------------------------------------------------
# Wire up
# ---------------------------------------------------------------------------


class TradebookPayloadConverter(CompositePayloadConverter):
    """Payload converter with tradebook-aware JSON handling."""

    def __init__(self) -> None:
        json_converter = JSONPlainPayloadConverter(
            encoder=TradebookJSONEncoder,
            custom_type_converters=[TradebookJSONTypeConverter()],
        )
        super().__init__(
            *(
                c
                for c in DefaultPayloadConverter.default_encoding_payload_converters
                if not isinstance(c, JSONPlainPayloadConverter)
            ),
            json_converter,
        )


TRADEBOOK_DATA_CONVERTER = DataConverter(
    payload_converter_class=TradebookPayloadConverter,
)
