"""Value accessor helpers.

Resolves a field value from a row through a column accessor, which is either
a key (mapping key or attribute name) or a projection callable. Projection
errors are never caught: a throwing projection is a caller bug and surfaces
immediately.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from datagrid.models import Accessor

__all__ = ["get_value", "row_id", "render_value"]


def get_value(row: Any, accessor: Accessor) -> Any:
    if callable(accessor):
        return accessor(row)
    if isinstance(row, Mapping):
        return row.get(accessor)
    return getattr(row, accessor, None)


def row_id(row: Any, id_field: Accessor = "id") -> Optional[str]:
    """Return the stringified identity of ``row`` or None when it has none."""
    value = get_value(row, id_field)
    if value is None:
        return None
    return str(value)


def render_value(value: Any) -> str:
    """Display string used by text operators and global search."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)
