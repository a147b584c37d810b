"""
Shared value-coercion helpers for the Catapulse logic engine.

Process documents are authored in a browser, so the values in a form-data
snapshot follow JavaScript conventions (booleans render as "true"/"false",
whole floats render without a decimal part). These helpers reproduce that
loose coercion so every host surface evaluates a document the same way.
"""

import math
import re
from datetime import datetime
from typing import Any

from dateutil import parser as dateutil_parser

# Plain decimal or exponent notation; rejects "inf", "nan" and "1_000"
_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def to_text(value: Any) -> str:
    """Coerce a form value to its display string.

    None becomes an empty string, booleans become "true"/"false" and
    whole floats drop their fractional part ("5.0" -> "5").
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_number(value: Any) -> float:
    """Coerce a form value to a float, returning NaN when it is not numeric.

    Missing values, blank strings and containers are NaN, so any ordering
    comparison against them is False.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and _DECIMAL.fullmatch(value.strip()):
        return float(value.strip())
    return math.nan


def is_blank(value: Any) -> bool:
    """True for None, an empty string or an empty list."""
    if value is None or value == "":
        return True
    return isinstance(value, list) and len(value) == 0


def parse_date(value: str) -> datetime | None:
    """Parse a date or datetime string.

    Plain dates (YYYY-MM-DD) come back as datetimes at midnight; strings
    with a time part keep it, including any timezone offset.
    Returns None if the value cannot be parsed.

    Args:
        value: The date string to parse.

    Returns:
        A datetime object, or None if parsing fails.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        return dateutil_parser.parse(value)
    except (ValueError, TypeError, OverflowError):
        return None
