"""datagrid public API.

Headless data-grid engine: typed column definitions plus pure functions for
sorting, filtering, pagination, grouping and column statistics, with
stateful helpers (selection, keyboard navigation, column layout, debounce /
throttle) layered on top.

Design Principles:
- Pure engine functions never mutate their input rows.
- No Qt import at package level; the Qt table model lives in ``datagrid.views``.
"""

from .models import (  # noqa: F401
    ColumnDefinition,
    ColumnLayout,
    ColumnStats,
    ColumnType,
    FilterClause,
    FilterOperator,
    PageResult,
    PaginationState,
    SortDirection,
    SortKey,
)
from .services.column_stats import column_stats  # noqa: F401
from .services.filter_engine import filter_rows  # noqa: F401
from .services.grouping import group_rows  # noqa: F401
from .services.multi_column_sort import sort_rows  # noqa: F401
from .services.pagination import paginate  # noqa: F401
from .services.rate_limit import debounce, throttle  # noqa: F401

__all__ = [
    "ColumnDefinition",
    "ColumnLayout",
    "ColumnStats",
    "ColumnType",
    "FilterClause",
    "FilterOperator",
    "PageResult",
    "PaginationState",
    "SortDirection",
    "SortKey",
    "column_stats",
    "filter_rows",
    "group_rows",
    "sort_rows",
    "paginate",
    "debounce",
    "throttle",
]

__version__ = "0.1.0"
