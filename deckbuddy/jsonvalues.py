"""Typed extraction of values from decoded JSON objects."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Type, TypeVar

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

E = TypeVar("E", bound=Enum)
_UNDEFINED = object()


@dataclass(frozen=True)
class NullableValue:
    """A field that was present and valid; ``value`` is None for JSON null."""

    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number_to_int(value: Any) -> int:
    """Integer view of a JSON number; 0 when it is not a whole number in range."""
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return 0
    number = int(value)
    return number if INT_MIN <= number <= INT_MAX else 0


def convert_enum(value: Any, enum_type: Type[E]) -> Optional[E]:
    """Map a JSON string onto a member of ``enum_type`` by its key."""
    if not isinstance(value, str):
        return None
    try:
        return enum_type(value)
    except ValueError:
        return None


def convert_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def convert_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def convert_int(value: Any, minimum: int = INT_MIN, maximum: int = INT_MAX) -> Optional[int]:
    if not _is_number(value):
        return None
    number = _number_to_int(value)
    return number if minimum <= number <= maximum else None


def convert_uint(value: Any, minimum: int = 0, maximum: int = INT_MAX) -> Optional[int]:
    if not (0 <= minimum <= INT_MAX and 0 <= maximum <= INT_MAX):
        return None
    return convert_int(value, minimum, maximum)


def get_json_value(obj: Mapping[str, Any], field: str, converter: Callable[..., Any], *args: Any) -> Any:
    """Convert ``obj[field]``; None when missing or of the wrong kind."""
    return converter(obj.get(field, _UNDEFINED), *args)


def get_nullable_json_value(
    obj: Mapping[str, Any], field: str, converter: Callable[..., Any], *args: Any
) -> Optional[NullableValue]:
    """Like :func:`get_json_value`, but a JSON null counts as a valid value."""
    raw = obj.get(field, _UNDEFINED)
    if raw is None:
        return NullableValue(None)
    converted = converter(raw, *args)
    return None if converted is None else NullableValue(converted)