"""Field coercions shared by the track normalizer and the schema models.

Each coercion takes a raw value (usually an attribute string, sometimes an
already typed value) and returns the normalized value, or ``None`` when the
input cannot satisfy the field's bounds. None of them raise.
"""
from __future__ import annotations
import logging
import math
from datetime import date, datetime
from typing import Any, Optional

from .constants import UNKNOWN

logger = logging.getLogger(__name__)


def non_empty_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value)
    return value if value != "" else None


def text_or_unknown(value: Any) -> str:
    return non_empty_str(value) or UNKNOWN


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        try:
            result = float(str(value).strip())
        except ValueError:
            return None
    return result if math.isfinite(result) else None


def to_int(value: Any) -> Optional[int]:
    """Integer value of ``value``; fractional input is truncated toward zero."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
    number = to_float(value)
    return int(number) if number is not None else None


def positive_float(value: Any) -> Optional[float]:
    number = to_float(value)
    return number if number is not None and number > 0 else None


def bounded_int(value: Any, lower: int, upper: int) -> Optional[int]:
    number = to_int(value)
    if number is None or number < lower or number > upper:
        return None
    return number


def positive_int(value: Any) -> Optional[int]:
    number = to_int(value)
    return number if number is not None and number > 0 else None


def non_negative_int(value: Any) -> Optional[int]:
    number = to_int(value)
    return number if number is not None and number >= 0 else None


def parse_date(value: Any) -> Optional[datetime]:
    """Parse ``YYYY-MM-DD`` or an ISO 8601 timestamp; ``None`` if invalid."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable date %r", value)
        return None


def date_or_now(value: Any) -> datetime:
    return parse_date(value) or datetime.now()
