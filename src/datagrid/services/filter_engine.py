"""Operator-based row filtering.

Column clauses compose conjunctively; an optional global search text adds
one more conjunctive predicate matching any filterable column. Clauses that
reference an unknown column or operator have no effect. Malformed operator
values (a ``between`` without a 2-element range, an ``in`` without a
collection) reject rows instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from datagrid.models import ColumnDefinition, FilterClause, FilterOperator, find_column
from .accessor import get_value, render_value
from .comparator import to_number

T = TypeVar("T")

_logger = logging.getLogger(__name__)

__all__ = ["coerce_operator", "matches_filter", "matches_search", "filter_rows"]

_COLLECTIONS = (list, tuple, set, frozenset)


def coerce_operator(operator: Any) -> Optional[FilterOperator]:
    if operator is None:
        return FilterOperator.CONTAINS
    if isinstance(operator, FilterOperator):
        return operator
    try:
        return FilterOperator(str(operator))
    except ValueError:
        return None


def _text(value: Any) -> str:
    return render_value(value).lower()


def _numeric(op: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def check(value: Any, target: Any) -> bool:
        left = to_number(value)
        right = to_number(target)
        if left is None or right is None:
            return False
        return op(left, right)

    return check


def _between(value: Any, bounds: Any) -> bool:
    if not isinstance(bounds, (list, tuple)) or len(bounds) != 2:
        return False
    number = to_number(value)
    low = to_number(bounds[0])
    high = to_number(bounds[1])
    if number is None or low is None or high is None:
        return False
    return low <= number <= high


def _member(value: Any, collection: Any) -> bool:
    if isinstance(collection, (set, frozenset)):
        try:
            return value in collection
        except TypeError:
            pass  # unhashable, e.g. a tuple holding a list
    return any(value == item for item in collection)


def _in(value: Any, collection: Any) -> bool:
    return isinstance(collection, _COLLECTIONS) and _member(value, collection)


def _not_in(value: Any, collection: Any) -> bool:
    return isinstance(collection, _COLLECTIONS) and not _member(value, collection)


_PREDICATES: Dict[FilterOperator, Callable[[Any, Any], bool]] = {
    FilterOperator.EQUALS: lambda v, t: _text(v) == _text(t),
    FilterOperator.CONTAINS: lambda v, t: _text(t) in _text(v),
    FilterOperator.STARTS_WITH: lambda v, t: _text(v).startswith(_text(t)),
    FilterOperator.ENDS_WITH: lambda v, t: _text(v).endswith(_text(t)),
    FilterOperator.GT: _numeric(lambda a, b: a > b),
    FilterOperator.LT: _numeric(lambda a, b: a < b),
    FilterOperator.GTE: _numeric(lambda a, b: a >= b),
    FilterOperator.LTE: _numeric(lambda a, b: a <= b),
    FilterOperator.BETWEEN: _between,
    FilterOperator.IN: _in,
    FilterOperator.NOT_IN: _not_in,
}


def matches_filter(value: Any, clause: FilterClause) -> bool:
    """Evaluate a single clause against one cell value.

    Unknown operators match everything (the clause has no effect).
    """
    operator = coerce_operator(clause.operator)
    if operator is None:
        return True
    if value is None:
        if operator in (FilterOperator.EQUALS, FilterOperator.CONTAINS):
            return clause.value is None or clause.value == ""
        return False
    return _PREDICATES[operator](value, clause.value)


def matches_search(row: Any, columns: Sequence[ColumnDefinition], term: str) -> bool:
    needle = term.strip().lower()
    if not needle:
        return True
    for column in columns:
        if not column.filterable:
            continue
        if needle in _text(get_value(row, column.accessor)):
            return True
    return False


def filter_rows(
    rows: Sequence[T],
    clauses: Sequence[FilterClause],
    columns: Sequence[ColumnDefinition],
    global_search: Optional[str] = None,
) -> List[T]:
    result: List[T] = list(rows)
    for clause in clauses:
        column = find_column(columns, clause.column_id)
        if column is None:
            _logger.debug("filter clause skipped, unknown column %r", clause.column_id)
            continue
        if coerce_operator(clause.operator) is None:
            _logger.debug("filter clause skipped, unknown operator %r", clause.operator)
            continue
        result = [row for row in result if matches_filter(get_value(row, column.accessor), clause)]
    if global_search and global_search.strip():
        result = [row for row in result if matches_search(row, columns, global_search)]
    return result
