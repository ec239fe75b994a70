"""
Attribute value codec for the Grakn client.

This module is the only place where attribute values cross the wire:
- ValueType: the closed set of attribute value kinds
- encode_value: Python value -> tagged wire value
- decode_value: tagged wire value -> Python value

Wire values carry exactly one tagged field, e.g. ``{"long": 42}`` or
``{"datetime": 1577836800000}``.

Invariants:
    - decode_value(encode_value(v, t), t) == v for every supported kind
      (datetimes are truncated to millisecond precision)
    - Unsupported inputs raise UnsupportedValueError, never coerce silently
    - Datetimes travel as UTC epoch milliseconds and decode to naive UTC

Example:
    >>> encode_value("alice")
    {'string': 'alice'}
    >>> decode_value({"long": 7}, ValueType.LONG)
    7
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from .errors import UnsupportedValueError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
FLOAT32_MAX = 3.4028234663852886e38

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_EPOCH_NAIVE = datetime(1970, 1, 1)


class ValueType(Enum):
    """Supported attribute value kinds.

    The enum value is the name used for the value type on the wire;
    ``tag`` is the field name that carries a value of this kind.
    """

    STRING = "STRING"
    BOOLEAN = "BOOLEAN"
    INTEGER = "INTEGER"
    LONG = "LONG"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DATETIME = "DATETIME"

    @property
    def tag(self) -> str:
        """Wire field name for values of this kind."""
        return self.value.lower()

    @classmethod
    def from_tag(cls, tag: str) -> ValueType:
        """Convert a wire field name to a ValueType."""
        for kind in cls:
            if kind.tag == tag:
                return kind
        raise UnsupportedValueError(f"Unrecognised value tag: {tag!r}", tag)


def value_type_to_wire(value_type: ValueType) -> str:
    """Encode a value type for an attribute type request."""
    if not isinstance(value_type, ValueType):
        raise UnsupportedValueError(f"Unrecognised value type {value_type!r}", value_type)
    return value_type.value


def value_type_from_wire(name: Any) -> ValueType:
    """Decode a wire value type enum.

    Raises:
        UnsupportedValueError: If the enum value is not recognised
    """
    try:
        return ValueType(name)
    except ValueError:
        raise UnsupportedValueError(f"Unrecognised value type {name!r}", name) from None


def infer_value_type(value: Any) -> ValueType:
    """Infer the value kind from a Python value.

    bool maps to BOOLEAN, int to LONG, float to DOUBLE, str to STRING and
    datetime to DATETIME. INTEGER and FLOAT are never inferred; pass them
    explicitly to encode_value.
    """
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return ValueType.BOOLEAN
    if isinstance(value, int):
        return ValueType.LONG
    if isinstance(value, float):
        return ValueType.DOUBLE
    if isinstance(value, str):
        return ValueType.STRING
    if isinstance(value, datetime):
        return ValueType.DATETIME
    raise UnsupportedValueError(
        f"Unrecognised value {value!r} of type {type(value).__name__}", value
    )


def encode_value(value: Any, value_type: ValueType | None = None) -> dict[str, Any]:
    """Encode a Python value as a tagged wire value.

    Args:
        value: The attribute value
        value_type: Kind to encode as; inferred from the value when omitted

    Returns:
        Dictionary with exactly one tagged field

    Raises:
        UnsupportedValueError: If the value does not fit the kind
    """
    if value_type is None:
        value_type = infer_value_type(value)
    return {value_type.tag: _to_wire(value, value_type)}


def _to_wire(value: Any, value_type: ValueType) -> Any:
    if value_type is ValueType.STRING:
        if isinstance(value, str):
            return value
    elif value_type is ValueType.BOOLEAN:
        if isinstance(value, bool):
            return value
    elif value_type in (ValueType.INTEGER, ValueType.LONG):
        if isinstance(value, int) and not isinstance(value, bool):
            low, high = (
                (INT32_MIN, INT32_MAX)
                if value_type is ValueType.INTEGER
                else (INT64_MIN, INT64_MAX)
            )
            if low <= value <= high:
                return value
            raise UnsupportedValueError(
                f"{value} is out of range for {value_type.value}", value
            )
    elif value_type in (ValueType.FLOAT, ValueType.DOUBLE):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            number = float(value)
            if value_type is ValueType.FLOAT and (
                not math.isfinite(number) or abs(number) > FLOAT32_MAX
            ):
                raise UnsupportedValueError(f"{value} is out of range for FLOAT", value)
            return number
    elif value_type is ValueType.DATETIME:
        if isinstance(value, datetime):
            return _datetime_to_millis(value)
    else:
        raise UnsupportedValueError(f"Unrecognised value type {value_type!r}", value_type)

    raise UnsupportedValueError(
        f"Cannot encode {type(value).__name__} value {value!r} as {value_type.value}",
        value,
    )


def decode_value(wire: dict[str, Any], expected: ValueType | None = None) -> Any:
    """Decode a tagged wire value.

    Args:
        wire: Dictionary with exactly one tagged field
        expected: Kind the caller expects; a different tag is rejected

    Returns:
        The Python value

    Raises:
        UnsupportedValueError: If the wire value is malformed, has an
            unknown tag, or does not match ``expected``
    """
    if not isinstance(wire, dict) or len(wire) != 1:
        raise UnsupportedValueError(f"Wire value must have exactly one field: {wire!r}", wire)

    tag, raw = next(iter(wire.items()))
    value_type = ValueType.from_tag(tag)
    if expected is not None and value_type is not expected:
        raise UnsupportedValueError(
            f"Expected a {expected.value} value but received {value_type.value}", wire
        )

    if value_type is ValueType.STRING and isinstance(raw, str):
        return raw
    if value_type is ValueType.BOOLEAN and isinstance(raw, bool):
        return raw
    if value_type in (ValueType.INTEGER, ValueType.LONG, ValueType.DATETIME):
        if isinstance(raw, int) and not isinstance(raw, bool):
            if value_type is ValueType.DATETIME:
                return _millis_to_datetime(raw)
            return raw
    if value_type in (ValueType.FLOAT, ValueType.DOUBLE):
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)

    raise UnsupportedValueError(f"Malformed {value_type.value} wire value: {raw!r}", wire)


def _datetime_to_millis(value: datetime) -> int:
    """UTC epoch milliseconds; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value.astimezone(timezone.utc) - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def _millis_to_datetime(millis: int) -> datetime:
    return _EPOCH_NAIVE + timedelta(milliseconds=millis)
