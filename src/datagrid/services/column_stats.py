"""Column statistics.

Computes per-column aggregates for the summary footer / column menu:
 - count, distinct non-null values, null count for every column
 - min / max / avg / sum for number, currency and percentage columns
 - min / max for date and datetime columns

Design:
 - Read-only and stateless; callers may cache results if needed.
 - Values that do not coerce (non-numeric text in a number column, unparseable
   dates) are left out of the aggregates instead of raising.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from datagrid.models import ColumnDefinition, ColumnStats
from .accessor import get_value
from .comparator import coerce_column_type, to_number, to_timestamp

__all__ = ["column_stats", "summarize"]


def _distinct_key(value: Any) -> Any:
    # booleans stay apart from 1 and 0
    try:
        hash(value)
    except TypeError:
        return (None, repr(value))
    return (isinstance(value, bool), value)


def column_stats(rows: Sequence[Any], column: ColumnDefinition) -> ColumnStats:
    values = [get_value(row, column.accessor) for row in rows]
    present = [v for v in values if v is not None]
    stats = ColumnStats(
        count=len(values),
        unique=len({_distinct_key(v) for v in present}),
        nulls=len(values) - len(present),
    )
    ctype = coerce_column_type(column.type)
    if ctype.is_numeric:
        numbers: List[float] = []
        for v in present:
            n = to_number(v)
            if n is not None and math.isfinite(n):
                numbers.append(n)
        if numbers:
            total = sum(numbers)
            stats.min = min(numbers)
            stats.max = max(numbers)
            stats.sum = total
            stats.avg = total / len(numbers)
    elif ctype.is_temporal:
        stamps = [ts for ts in (to_timestamp(v) for v in present) if ts is not None]
        if stamps:
            stats.min = datetime.fromtimestamp(min(stamps), tz=timezone.utc)
            stats.max = datetime.fromtimestamp(max(stamps), tz=timezone.utc)
    return stats


def summarize(rows: Sequence[Any], columns: Sequence[ColumnDefinition]) -> Dict[str, ColumnStats]:
    """Stats for every column keyed by column id."""
    return {column.id: column_stats(rows, column) for column in columns}
