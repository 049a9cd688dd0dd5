"""ViewModel for a data grid.

Owns the query state of one grid (rows, columns, sort keys, filter clauses,
global search, group-by, page) and runs the engine pipeline

    filter -> sort -> (group) -> paginate

whenever that state changes. Selection and keyboard focus are tracked by a
``SelectionModel`` / ``KeyboardNavigationController`` pair keyed by row id,
so they survive re-sorting and paging. Views subscribe to ``GridEvent``s on
the EventBus instead of polling.

No Qt imports here so tests can exercise behavior without a QApplication.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from datagrid import settings
from datagrid.app.config_store import GridConfig
from datagrid.models import (
    Accessor,
    ColumnDefinition,
    ColumnStats,
    FilterClause,
    PaginationState,
    SortDirection,
    SortKey,
    find_column,
)
from datagrid.services.column_layout import ColumnLayoutManager, LayoutState
from datagrid.services.column_stats import column_stats, summarize
from datagrid.services.event_bus import EventBus, GridEvent
from datagrid.services.filter_engine import filter_rows
from datagrid.services.grouping import group_rows
from datagrid.services.key_value_store import JsonFileKeyValueStore, KeyValueStore
from datagrid.services.keyboard_navigation import KeyboardNavigationController, NavigationCallbacks
from datagrid.services.logging_service import LoggingService
from datagrid.services.multi_column_sort import (
    add_sort,
    normalize_sort_keys,
    remove_sort,
    sort_direction_for,
    sort_rows,
    toggle_sort,
)
from datagrid.services.pagination import clamp_page, paginate, total_pages
from datagrid.services.rate_limit import Debouncer, debounce
from datagrid.services.selection import SelectionModel
from datagrid.services.table_state_persistence import TableState

__all__ = ["DataGridViewModel"]


class DataGridViewModel:
    def __init__(
        self,
        columns: Sequence[ColumnDefinition],
        rows: Sequence[Any] = (),
        *,
        page_size: int = settings.DEFAULT_PAGE_SIZE,
        id_field: Accessor = "id",
        multi_select: bool = True,
        event_bus: EventBus | None = None,
        layout: ColumnLayoutManager | None = None,
        search_debounce_ms: int = settings.SEARCH_DEBOUNCE_MS,
        on_row_click: Optional[Callable[[Any], None]] = None,
        debounce_factory: Callable[..., Debouncer] = debounce,
        logging_service: LoggingService | None = None,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.event_bus = event_bus or EventBus()
        self.layout = layout
        self.logging_service = logging_service
        self._columns: List[ColumnDefinition] = list(columns)
        self._rows: List[Any] = list(rows)
        self._sort_keys: List[SortKey] = []
        self._filters: List[FilterClause] = []
        self._global_search = ""
        self._group_by: Optional[str] = None
        self._page = 1
        self._page_size = page_size
        self._processed: List[Any] = []
        self._visible: List[Any] = []
        self._total_pages = 0
        self._last_page = 1

        self.selection = SelectionModel(
            id_field, multi_select=multi_select, on_change=self._on_selection_changed
        )
        self.navigation = KeyboardNavigationController(
            NavigationCallbacks(
                on_row_click=on_row_click,
                on_toggle=self.selection.toggle,
                on_toggle_only=self.selection.toggle_only,
                on_select_only=self.selection.select_only,
                on_select_range=self.selection.select_rows,
                on_select_all=lambda: self.selection.select_all(self._visible),
                on_clear_selection=self.selection.deselect_all,
                on_focus_change=self._on_focus_changed,
            ),
            multi_select=multi_select,
        )
        self._search_debouncer = debounce_factory(self.set_global_search, search_debounce_ms)
        if self.layout is not None and self.layout.state == LayoutState.UNINITIALIZED:
            self.layout.load()
        self._refresh()

    @classmethod
    def from_config(
        cls,
        columns: Sequence[ColumnDefinition],
        config: GridConfig,
        *,
        layout_key: str | None = None,
        store: KeyValueStore | None = None,
        **kwargs: Any,
    ) -> "DataGridViewModel":
        """Build a view model from a ``GridConfig``.

        With ``layout_key`` a column layout manager is attached, persisted to
        ``store`` or, by default, to JSON files under ``config.data_dir``.
        A non-zero ``config.log_capacity`` attaches a diagnostics log that
        republishes ``datagrid`` log records on the grid's EventBus.
        """
        kwargs.setdefault("page_size", config.page_size)
        kwargs.setdefault("search_debounce_ms", config.search_debounce_ms)
        bus = kwargs.get("event_bus")
        if bus is None:
            bus = kwargs["event_bus"] = EventBus()
        if config.log_capacity > 0 and kwargs.get("logging_service") is None:
            kwargs["logging_service"] = LoggingService(
                config.log_capacity, event_bus=bus
            ).attach()
        if layout_key is not None and "layout" not in kwargs:
            kwargs["layout"] = ColumnLayoutManager.for_columns(
                layout_key,
                columns,
                store if store is not None else JsonFileKeyValueStore(config.data_dir),
                min_width=config.min_column_width,
                max_width=config.max_column_width,
                default_width=config.default_column_width,
                event_bus=bus,
            )
        return cls(columns, **kwargs)

    # Read access -------------------------------------------------------
    @property
    def columns(self) -> List[ColumnDefinition]:
        return list(self._columns)

    @property
    def sort_keys(self) -> List[SortKey]:
        return list(self._sort_keys)

    @property
    def filters(self) -> List[FilterClause]:
        return list(self._filters)

    @property
    def global_search(self) -> str:
        return self._global_search

    @property
    def group_by(self) -> Optional[str]:
        return self._group_by

    @property
    def page(self) -> int:
        return self._page

    @property
    def page_size(self) -> int:
        return self._page_size

    def page_size_options(self) -> List[int]:
        """Choices for a page size picker; always includes the current size."""
        return sorted(set(settings.PAGE_SIZE_OPTIONS) | {self._page_size})

    def rows(self) -> List[Any]:
        return list(self._rows)

    def processed_rows(self) -> List[Any]:
        """Filtered + sorted rows across all pages."""
        return list(self._processed)

    def visible_rows(self) -> List[Any]:
        return list(self._visible)

    def pagination(self) -> PaginationState:
        return PaginationState(
            page=self._page,
            page_size=self._page_size,
            total_items=len(self._processed),
            total_pages=self._total_pages,
        )

    def visible_columns(self) -> List[ColumnDefinition]:
        if self.layout is None:
            return list(self._columns)
        by_id = {c.id: c for c in self._columns}
        return [by_id[cid] for cid in self.layout.visible_order() if cid in by_id]

    def sort_direction(self, column_id: str) -> Optional[SortDirection]:
        return sort_direction_for(self._sort_keys, column_id)

    def groups(self) -> Dict[str, List[Any]]:
        """Processed rows grouped by the group-by column ({} when not grouping)."""
        if self._group_by is None:
            return {}
        return group_rows(self._processed, self._group_by, self._columns)

    def stats(self, column_id: str) -> Optional[ColumnStats]:
        column = find_column(self._columns, column_id)
        if column is None:
            return None
        return column_stats(self._processed, column)

    def summary(self) -> Dict[str, ColumnStats]:
        return summarize(self._processed, self._columns)

    # Data --------------------------------------------------------------
    def set_rows(self, rows: Sequence[Any]) -> None:
        self._rows = list(rows)
        self._refresh()

    def set_columns(self, columns: Sequence[ColumnDefinition]) -> None:
        self._columns = list(columns)
        self._sort_keys = normalize_sort_keys(self._sort_keys, self._columns)
        self._refresh()

    # Sorting -----------------------------------------------------------
    def set_sort(self, sort_keys: Sequence[SortKey]) -> None:
        self._sort_keys = normalize_sort_keys(sort_keys, self._columns)
        self.event_bus.publish(GridEvent.SORT_CHANGED, list(self._sort_keys))
        self._refresh()

    def add_sort(self, column_id: str, direction: SortDirection = SortDirection.ASC) -> None:
        self.set_sort(add_sort(self._sort_keys, column_id, direction, self._columns))

    def remove_sort(self, column_id: str) -> None:
        self.set_sort(remove_sort(self._sort_keys, column_id))

    def toggle_sort(self, column_id: str, *, additive: bool = False) -> None:
        self.set_sort(toggle_sort(self._sort_keys, column_id, self._columns, additive=additive))

    def clear_sort(self) -> None:
        self.set_sort([])

    # Filtering ---------------------------------------------------------
    def _filters_changed(self) -> None:
        self._page = 1
        self.event_bus.publish(
            GridEvent.FILTER_CHANGED,
            {"filters": list(self._filters), "global_search": self._global_search},
        )
        self._refresh()

    def set_filters(self, clauses: Sequence[FilterClause]) -> None:
        self._filters = list(clauses)
        self._filters_changed()

    def set_filter(self, clause: FilterClause) -> None:
        """Replace any clause on the same column with ``clause``."""
        self._filters = [c for c in self._filters if c.column_id != clause.column_id] + [clause]
        self._filters_changed()

    def remove_filter(self, column_id: str) -> None:
        self._filters = [c for c in self._filters if c.column_id != column_id]
        self._filters_changed()

    def clear_filters(self) -> None:
        self._filters = []
        self._global_search = ""
        self._search_debouncer.cancel()
        self._filters_changed()

    def set_global_search(self, text: str) -> None:
        self._global_search = text or ""
        self._filters_changed()

    def schedule_global_search(self, text: str) -> None:
        """Debounced variant for per-keystroke input."""
        self._search_debouncer(text)

    def flush_search(self) -> bool:
        return self._search_debouncer.flush()

    # Grouping ----------------------------------------------------------
    def set_group_by(self, column_id: Optional[str]) -> None:
        self._group_by = column_id
        self._refresh()

    # Paging ------------------------------------------------------------
    def set_page(self, page: int) -> None:
        target = clamp_page(page, self._total_pages)
        if target == self._page:
            return
        self._page = target
        self._refresh()

    def next_page(self) -> None:
        self.set_page(self._page + 1)

    def previous_page(self) -> None:
        self.set_page(self._page - 1)

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._page_size = page_size
        self._page = 1
        self._refresh()

    # Selection / keyboard ----------------------------------------------
    def is_all_selected(self) -> bool:
        return self.selection.is_all_selected(self._visible)

    def is_partially_selected(self) -> bool:
        return self.selection.is_partially_selected(self._visible)

    def toggle_select_all(self) -> None:
        self.selection.toggle_all(self._visible)

    def selected_rows(self) -> List[Any]:
        """Selected rows across the whole (unfiltered) collection."""
        return self.selection.selected_rows(self._rows)

    def handle_key(self, key: str, **modifiers: bool) -> bool:
        return self.navigation.handle_key(self._visible, key, **modifiers)

    def handle_click(self, index: int, **modifiers: bool) -> None:
        self.navigation.handle_click(self._visible, index, **modifiers)

    def _on_selection_changed(self, ids) -> None:
        self.event_bus.publish(GridEvent.SELECTION_CHANGED, {"selected": sorted(ids)})

    def _on_focus_changed(self, index: int) -> None:
        self.event_bus.publish(GridEvent.FOCUS_CHANGED, {"index": index})

    # Table state -------------------------------------------------------
    def table_state(self) -> TableState:
        return TableState(
            sort_keys=list(self._sort_keys),
            filters=list(self._filters),
            page_size=self._page_size,
            global_search=self._global_search,
            group_by=self._group_by,
        )

    def apply_table_state(self, state: TableState) -> None:
        self._sort_keys = normalize_sort_keys(state.sort_keys, self._columns)
        self._filters = list(state.filters)
        self._global_search = state.global_search
        self._group_by = state.group_by
        self._page_size = state.page_size
        self._page = 1
        self._refresh()

    # Lifecycle ---------------------------------------------------------
    def close(self) -> None:
        """Drop a pending debounced search and detach the diagnostics log."""
        self._search_debouncer.cancel()
        if self.logging_service is not None:
            self.logging_service.detach()

    # Pipeline ----------------------------------------------------------
    def _refresh(self) -> None:
        filtered = filter_rows(self._rows, self._filters, self._columns, self._global_search)
        self._processed = sort_rows(filtered, self._sort_keys, self._columns)
        self._total_pages = total_pages(len(self._processed), self._page_size)
        self._page = clamp_page(self._page, self._total_pages)
        self._visible = paginate(self._processed, self._page, self._page_size).data
        self.navigation.sync(len(self._visible))
        if self._page != self._last_page:
            self._last_page = self._page
            self.event_bus.publish(GridEvent.PAGE_CHANGED, {"page": self._page})
        self.event_bus.publish(
            GridEvent.DATA_REFRESHED,
            {
                "page": self._page,
                "total_pages": self._total_pages,
                "total_items": len(self._processed),
            },
        )
