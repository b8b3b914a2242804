#!/usr/bin/env python3
"""
YAMLTREE SCALARS
----------------
Turns scalar text into Python values: content-based resolution for untagged
plain scalars and inline-flow tokens, explicit `!!tag` coercion, and the
target-kind conversion used by `Node.get_value(kind)`.
"""

import re
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from yamltree.core.errors import TagError
from yamltree.core.models import ValueType

NULL_WORDS = {"null", "Null", "NULL", "~"}
TRUE_WORDS = {"true", "True", "TRUE"}
FALSE_WORDS = {"false", "False", "FALSE"}

INT_PATTERN = re.compile(r"^[-+]?[0-9][0-9_]*$")
BASE_INT_PATTERN = re.compile(r"^[-+]?0(?:x_*[0-9a-fA-F][0-9a-fA-F_]*|o_*[0-7][0-7_]*|b_*[01][01_]*)$")
FLOAT_PATTERN = re.compile(
    r"^[-+]?(?:[0-9][0-9_]*\.[0-9_]*|\.[0-9_]+|[0-9][0-9_]*)(?:[eE][-+]?[0-9]+)?$"
)
SPECIAL_FLOATS = {
    ".inf": float("inf"), ".Inf": float("inf"), ".INF": float("inf"),
    "+.inf": float("inf"), "+.Inf": float("inf"), "+.INF": float("inf"),
    "-.inf": float("-inf"), "-.Inf": float("-inf"), "-.INF": float("-inf"),
    ".nan": float("nan"), ".NaN": float("nan"), ".NAN": float("nan"),
}
TIMESTAMP_PATTERN = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"
    r"(?:(?:[Tt]|[ \t]+)(?P<hour>\d{1,2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d*))?"
    r"[ \t]*(?P<tz>Z|[-+]\d{1,2}(?::?\d{2})?)?)?$"
)


def resolve_plain(text: Optional[str]) -> Any:
    """
    Classifies an untagged plain scalar by content.
    Example: "12" -> 12, "1.5" -> 1.5, "~" -> None, "yes" -> "yes"
    """
    if text is None or text == "" or text in NULL_WORDS:
        return None
    if text in TRUE_WORDS:
        return True
    if text in FALSE_WORDS:
        return False
    if INT_PATTERN.match(text):
        return int(text.replace("_", ""))
    if BASE_INT_PATTERN.match(text):
        return int(text.replace("_", ""), 0)
    if text in SPECIAL_FLOATS:
        return SPECIAL_FLOATS[text]
    if FLOAT_PATTERN.match(text) and any(ch.isdigit() for ch in text):
        return float(text.replace("_", ""))
    return text


def parse_timestamp(text: str) -> Optional[Any]:
    """Returns a date for 'YYYY-MM-DD', a datetime for full timestamps, None if malformed."""
    match = TIMESTAMP_PATTERN.match(text.strip())
    if not match:
        return None
    parts = match.groupdict()
    try:
        if parts["hour"] is None:
            return date(int(parts["year"]), int(parts["month"]), int(parts["day"]))

        fraction = (parts["fraction"] or "")[:6].ljust(6, "0")
        tzinfo = None
        tz = parts["tz"]
        if tz == "Z":
            tzinfo = timezone.utc
        elif tz:
            sign = -1 if tz[0] == "-" else 1
            digits = tz[1:].replace(":", "")
            hours = int(digits[:-2] if len(digits) > 2 else digits)
            minutes = int(digits[-2:]) if len(digits) > 2 else 0
            tzinfo = timezone(sign * timedelta(hours=hours, minutes=minutes))

        return datetime(
            int(parts["year"]), int(parts["month"]), int(parts["day"]),
            int(parts["hour"]), int(parts["minute"]), int(parts["second"]),
            int(fraction), tzinfo=tzinfo,
        )
    except ValueError:
        return None


def _parse_bool(text: str) -> Optional[bool]:
    lowered = text.lower()
    if lowered in ("true", "on", "1"):
        return True
    if lowered in ("false", "off", "0"):
        return False
    return None


def coerce_tagged(text: Optional[str], value_type: ValueType, line: Optional[int] = None) -> Any:
    """
    Applies the explicit tag table to a leaf's raw text.
    Raises TagError when the text cannot represent the tagged type.
    """
    if value_type is ValueType.AUTO:
        return resolve_plain(text)
    if value_type in (ValueType.STR, ValueType.BINARY):
        return "" if text is None else str(text)
    if value_type.is_container:
        raise TagError(f"Tag '!!{value_type.value}' cannot be applied to a scalar value", line)

    if text is None:
        if value_type is ValueType.BOOL:
            return False
        return None

    if value_type is ValueType.INT:
        cleaned = text.replace("_", "")
        try:
            return int(cleaned)
        except ValueError:
            pass
        try:
            return int(cleaned, 0)
        except ValueError:
            raise TagError(f"Value '{text}' cannot be converted to !!int", line)

    if value_type is ValueType.FLOAT:
        if text in SPECIAL_FLOATS:
            return SPECIAL_FLOATS[text]
        try:
            return float(text.replace("_", ""))
        except ValueError:
            raise TagError(f"Value '{text}' cannot be converted to !!float", line)

    if value_type is ValueType.BOOL:
        result = _parse_bool(text)
        if result is None:
            raise TagError(f"Value '{text}' cannot be converted to !!bool", line)
        return result

    # TIMESTAMP
    result = parse_timestamp(text)
    if result is None:
        raise TagError(f"Value '{text}' cannot be converted to !!timestamp", line)
    return result


def convert_value(value: Any, kind: Any = None) -> Any:
    """
    Coerces an already resolved leaf value to a requested target kind.
    Used by binding layers that know the type they want.
    """
    if value is None:
        return None
    if kind is None:
        return value
    if kind is str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
    if kind is bool:
        if isinstance(value, bool):
            return value
        result = _parse_bool(str(value))
        if result is None:
            raise ValueError(f"{value!r} cannot be converted to bool")
        return result
    if kind is int:
        if isinstance(value, (bool, float)):
            return int(value)
        return int(str(value), 0) if BASE_INT_PATTERN.match(str(value)) else int(str(value))
    if kind is float:
        return float(value)
    if kind is Decimal:
        return Decimal(str(value))
    if kind is datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        result = parse_timestamp(str(value))
        if result is None:
            raise ValueError(f"{value!r} cannot be converted to datetime")
        return result if isinstance(result, datetime) else datetime(result.year, result.month, result.day)
    if kind is date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        result = parse_timestamp(str(value))
        if result is None:
            raise ValueError(f"{value!r} cannot be converted to date")
        return result.date() if isinstance(result, datetime) else result
    if isinstance(kind, type) and issubclass(kind, Enum):
        if isinstance(value, kind):
            return value
        return kind[str(value)]
    raise TypeError(f"Unsupported target kind: {kind!r}")
