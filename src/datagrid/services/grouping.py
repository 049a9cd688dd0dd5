"""Row grouping by a column value."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, TypeVar

from datagrid.models import ColumnDefinition, find_column
from .accessor import get_value, render_value

T = TypeVar("T")

_logger = logging.getLogger(__name__)

ALL_GROUP = "All"
UNGROUPED = "Ungrouped"

__all__ = ["ALL_GROUP", "UNGROUPED", "group_rows"]


def group_rows(
    rows: Sequence[T], column_id: str, columns: Sequence[ColumnDefinition]
) -> Dict[str, List[T]]:
    """Partition rows by the rendered value of ``column_id``.

    Groups appear in first-seen order and keep their rows' input order.
    """
    column = find_column(columns, column_id)
    if column is None:
        _logger.debug("group skipped, unknown column %r", column_id)
        return {ALL_GROUP: list(rows)}
    groups: Dict[str, List[T]] = {}
    for row in rows:
        value = get_value(row, column.accessor)
        key = UNGROUPED if value is None else render_value(value)
        groups.setdefault(key, []).append(row)
    return groups
