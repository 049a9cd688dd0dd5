"""Multi-column sorting.

Provides a stable multi-key sorting mechanism for grid rows. Keys are applied
from lowest precedence to highest (like chained ``sorted`` calls), which keeps
ties in their input order. ``sort_rows`` is the column-aware entry point;
``MultiColumnSorter`` is the lower-level key-function API it is built on.

The remaining helpers manage a sort configuration (list of ``SortKey``) the
way a header-click UI does: add / remove / toggle a column, renumber
priorities, and round-trip the configuration through a compact
``"col:asc,other:desc"`` parameter string.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

from datagrid.models import ColumnDefinition, SortDirection, SortKey, find_column
from .accessor import get_value
from .comparator import sort_key

T = TypeVar("T")
KeyFunc = Callable[[T], object]

_logger = logging.getLogger(__name__)

__all__ = [
    "RowKey",
    "MultiColumnSorter",
    "sort_rows",
    "ordered_sort_keys",
    "normalize_sort_keys",
    "sort_direction_for",
    "add_sort",
    "remove_sort",
    "toggle_sort",
    "sort_to_param",
    "parse_sort_param",
    "describe_sort",
]


@dataclass(frozen=True)
class RowKey:
    key_func: KeyFunc
    ascending: bool = True


class MultiColumnSorter(Generic[T]):
    """Utility to apply multi-key sorting in a stable manner.

    Usage:
        sorter = MultiColumnSorter(rows)
        rows_sorted = sorter.sort([
            RowKey(lambda r: r["amount"], ascending=False),
            RowKey(lambda r: r["name"], ascending=True),
        ])
    """

    def __init__(self, rows: Iterable[T]):
        self._rows: List[T] = list(rows)

    def sort(self, keys: Sequence[RowKey]) -> List[T]:
        # Apply from lowest precedence to highest for stability
        result = list(self._rows)
        for rk in reversed(keys):
            result.sort(key=rk.key_func, reverse=not rk.ascending)
        return result

    @staticmethod
    def single(rows: Iterable[T], key: KeyFunc, ascending: bool = True) -> List[T]:
        return sorted(rows, key=key, reverse=not ascending)


def ordered_sort_keys(sort_keys: Sequence[SortKey]) -> List[SortKey]:
    return sorted(sort_keys, key=lambda sk: sk.priority)


def _column_key(column: ColumnDefinition) -> KeyFunc:
    def key(row):
        return sort_key(get_value(row, column.accessor), column.type)

    return key


def sort_rows(
    rows: Sequence[T], sort_keys: Sequence[SortKey], columns: Sequence[ColumnDefinition]
) -> List[T]:
    """Return ``rows`` ordered by ``sort_keys`` (ascending priority).

    Unknown column ids are skipped. Rows tied on every key keep their input
    order; ``reverse=True`` in ``list.sort`` preserves that, so descending keys
    put nulls last without disturbing ties.
    """
    row_keys: List[RowKey] = []
    for sk in ordered_sort_keys(sort_keys):
        column = find_column(columns, sk.column_id)
        if column is None:
            _logger.debug("sort key skipped, unknown column %r", sk.column_id)
            continue
        try:
            direction = SortDirection(sk.direction)
        except ValueError:
            _logger.debug("sort key skipped, bad direction %r", sk.direction)
            continue
        row_keys.append(RowKey(_column_key(column), ascending=direction == SortDirection.ASC))
    if not row_keys:
        return list(rows)
    return MultiColumnSorter(rows).sort(row_keys)


# Sort configuration helpers ------------------------------------------------


def _renumber(keys: Iterable[SortKey]) -> List[SortKey]:
    return [
        SortKey(column_id=sk.column_id, direction=SortDirection(sk.direction), priority=i)
        for i, sk in enumerate(keys)
    ]


def _can_sort(columns: Sequence[ColumnDefinition], column_id: str) -> bool:
    column = find_column(columns, column_id)
    return column is not None and column.sortable


def normalize_sort_keys(
    sort_keys: Sequence[SortKey], columns: Sequence[ColumnDefinition]
) -> List[SortKey]:
    """Drop keys for unknown / non-sortable columns and renumber priorities."""
    valid = [sk for sk in ordered_sort_keys(sort_keys) if _can_sort(columns, sk.column_id)]
    return _renumber(valid)


def sort_direction_for(sort_keys: Sequence[SortKey], column_id: str) -> Optional[SortDirection]:
    for sk in sort_keys:
        if sk.column_id == column_id:
            return SortDirection(sk.direction)
    return None


def add_sort(
    sort_keys: Sequence[SortKey],
    column_id: str,
    direction: SortDirection = SortDirection.ASC,
    columns: Sequence[ColumnDefinition] | None = None,
) -> List[SortKey]:
    """Add ``column_id`` as the lowest-priority key, or update its direction in place."""
    if columns is not None and not _can_sort(columns, column_id):
        return list(sort_keys)
    ordered = ordered_sort_keys(sort_keys)
    if any(sk.column_id == column_id for sk in ordered):
        updated = [
            SortKey(sk.column_id, SortDirection(direction), sk.priority)
            if sk.column_id == column_id
            else sk
            for sk in ordered
        ]
    else:
        updated = ordered + [SortKey(column_id, SortDirection(direction), len(ordered))]
    return _renumber(updated)


def remove_sort(sort_keys: Sequence[SortKey], column_id: str) -> List[SortKey]:
    return _renumber(sk for sk in ordered_sort_keys(sort_keys) if sk.column_id != column_id)


def toggle_sort(
    sort_keys: Sequence[SortKey],
    column_id: str,
    columns: Sequence[ColumnDefinition] | None = None,
    *,
    additive: bool = False,
) -> List[SortKey]:
    """Cycle a column through asc -> desc -> unsorted.

    Without ``additive`` the column replaces the current configuration (the
    usual plain header click); with it the column joins a multi-column sort.
    """
    if columns is not None and not _can_sort(columns, column_id):
        return list(sort_keys)
    current = sort_direction_for(sort_keys, column_id)
    base: Sequence[SortKey] = sort_keys if additive else [
        sk for sk in sort_keys if sk.column_id == column_id
    ]
    if current is None:
        return add_sort(base, column_id, SortDirection.ASC)
    if current == SortDirection.ASC:
        return add_sort(base, column_id, SortDirection.DESC)
    return remove_sort(base, column_id)


def sort_to_param(sort_keys: Sequence[SortKey]) -> str:
    return ",".join(
        f"{sk.column_id}:{SortDirection(sk.direction).value}" for sk in ordered_sort_keys(sort_keys)
    )


def parse_sort_param(param: str | None) -> List[SortKey]:
    """Parse ``"col:asc,other:desc"``; malformed directions fall back to asc."""
    if not param:
        return []
    keys: List[SortKey] = []
    for item in param.split(","):
        item = item.strip()
        if not item:
            continue
        column_id, _, direction = item.partition(":")
        try:
            parsed = SortDirection(direction.strip().lower() or "asc")
        except ValueError:
            parsed = SortDirection.ASC
        keys.append(SortKey(column_id.strip(), parsed, len(keys)))
    return keys


def describe_sort(column_label: str, direction: SortDirection | None, priority: int | None = None) -> str:
    """Screen reader friendly description of a column's sort state."""
    if direction is None:
        return f"Sort {column_label}"
    text = "ascending" if SortDirection(direction) == SortDirection.ASC else "descending"
    suffix = f", priority {priority + 1}" if priority is not None and priority > 0 else ""
    return f"Sorted by {column_label} {text}{suffix}"
