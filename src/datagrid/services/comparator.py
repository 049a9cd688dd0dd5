"""Type-aware value ordering.

``compare_values`` implements the three-way comparison used across the grid;
``sort_key`` produces an equivalent, totally ordered key so the sort engine
can lean on Python's stable ``list.sort``.

Ordering rules
--------------
* ``None`` sorts before every other value; two ``None`` compare equal.
* number / currency / percentage compare numerically.
* date / datetime compare as seconds since the Unix epoch (naive values are
  read as UTC).
* boolean compares false < true.
* everything else uses natural collation: case and accent insensitive, with
  digit runs compared by value so "item2" < "item10".
* A value that cannot be coerced for a typed column sorts after nulls and
  before all coercible values; among themselves such values use natural
  collation.
"""

from __future__ import annotations

import math
import numbers
import re
import unicodedata
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Tuple

from datagrid.models import ColumnType
from .accessor import render_value

__all__ = [
    "coerce_column_type",
    "to_number",
    "to_timestamp",
    "to_datetime",
    "natural_key",
    "sort_key",
    "compare_values",
]

_DIGITS = re.compile(r"(\d+)")

_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%m/%d/%Y", "%Y/%m/%d", "%d.%m.%Y %H:%M")

_TRUE_WORDS = {"true", "yes", "y", "1"}
_FALSE_WORDS = {"false", "no", "n", "0"}


def coerce_column_type(value: Any) -> ColumnType:
    if isinstance(value, ColumnType):
        return value
    try:
        return ColumnType(str(value).lower())
    except ValueError:
        return ColumnType.CUSTOM


def to_number(value: Any) -> Optional[float]:
    """Coerce ``value`` to a float; return None when it is not numeric."""
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (numbers.Real, Decimal)):
        try:
            result = float(value)
        except (OverflowError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(result):
        return None
    return result


def to_datetime(value: Any) -> Optional[datetime]:
    """Parse ``value`` into an aware UTC datetime, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, numbers.Real):
        try:
            stamp = float(value)
        except (OverflowError, ValueError):
            return None
        if not math.isfinite(stamp):
            return None
        try:
            return datetime.fromtimestamp(stamp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        parsed = _parse_date_text(value.strip())
        if parsed is None:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_date_text(text: str) -> Optional[datetime]:
    if not text:
        return None
    iso = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def to_timestamp(value: Any) -> Optional[float]:
    parsed = to_datetime(value)
    return parsed.timestamp() if parsed is not None else None


def _to_boolean_rank(value: Any) -> Optional[float]:
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return 1.0
        if word in _FALSE_WORDS:
            return 0.0
    return to_number(value)


def natural_key(text: str) -> Tuple[Any, ...]:
    """Case/accent-insensitive collation key with numeric digit runs."""
    folded = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch)).casefold()
    parts = _DIGITS.split(folded)
    # split() puts digit runs on odd indices
    return tuple(int(p) if i % 2 else p for i, p in enumerate(parts))


def sort_key(value: Any, column_type: Any = ColumnType.TEXT) -> Tuple[Any, ...]:
    if value is None:
        return (0,)
    ctype = coerce_column_type(column_type)
    if ctype.is_numeric:
        coerced = to_number(value)
    elif ctype.is_temporal:
        coerced = to_timestamp(value)
    elif ctype == ColumnType.BOOLEAN:
        coerced = _to_boolean_rank(value)
    else:
        return (2, natural_key(render_value(value)))
    if coerced is None:
        return (1, natural_key(render_value(value)))
    return (2, coerced)


def compare_values(a: Any, b: Any, column_type: Any = ColumnType.TEXT) -> int:
    ka = sort_key(a, column_type)
    kb = sort_key(b, column_type)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0
