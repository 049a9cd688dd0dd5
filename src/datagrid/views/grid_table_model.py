"""GridTableModel

QAbstractTableModel adapter over ``DataGridViewModel``: exposes the current
page in column-layout order so any QTableView can render the engine output.

- Header click toggles the sort of that column (Shift = add as secondary key).
- Column 0 carries a check state mirroring row selection.
- Qt key events are translated to the headless keyboard navigation names.
- ``GridTableModel.build`` wires the view model's search debounce to a
  single-shot QTimer, so debounced refreshes run on the GUI thread instead of
  a ``threading.Timer`` thread.

The model listens to the view model's EventBus and resets itself when data or
layout change; selection / focus changes only emit ``dataChanged``.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence

from PyQt6.QtCore import QAbstractTableModel, QModelIndex, QObject, QSize, Qt, QTimer

from datagrid.app.config_store import GridConfig
from datagrid.models import ColumnDefinition, ColumnType, SortDirection
from datagrid.services.accessor import get_value, render_value
from datagrid.services.event_bus import Event, GridEvent, Subscription
from datagrid.services.rate_limit import Debouncer
from datagrid.viewmodels.data_grid_viewmodel import DataGridViewModel

__all__ = ["GridTableModel", "QtTimerFactory", "qt_debounce", "qt_key_name"]

_QT_KEYS = {
    Qt.Key.Key_Up: "ArrowUp",
    Qt.Key.Key_Down: "ArrowDown",
    Qt.Key.Key_Home: "Home",
    Qt.Key.Key_End: "End",
    Qt.Key.Key_PageUp: "PageUp",
    Qt.Key.Key_PageDown: "PageDown",
    Qt.Key.Key_Space: " ",
    Qt.Key.Key_Return: "Enter",
    Qt.Key.Key_Enter: "Enter",
    Qt.Key.Key_Escape: "Escape",
    Qt.Key.Key_A: "a",
}


def qt_key_name(key: Qt.Key | int) -> Optional[str]:
    """Map a Qt key code to the navigation key name (None if unhandled)."""
    try:
        return _QT_KEYS.get(Qt.Key(key))
    except ValueError:
        return None


class QtTimerFactory:
    """Debouncer timer factory backed by one reusable single-shot QTimer.

    The callback fires from the event loop of the thread that created the
    factory. Each call restarts the timer, ``cancel()`` stops it.
    """

    def __init__(self, parent: QObject | None = None):
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)  # type: ignore[attr-defined]
        self._callback: Optional[Callable[[], None]] = None

    def __call__(self, seconds: float, callback: Callable[[], None]) -> "QtTimerFactory":
        self._callback = callback
        self._timer.start(max(0, round(seconds * 1000)))
        return self

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    def is_active(self) -> bool:
        return self._timer.isActive()

    def _on_timeout(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


def qt_debounce(fn: Callable[..., Any], wait_ms: float, **kwargs: Any) -> Debouncer:
    """``debounce`` drop-in for ``DataGridViewModel(debounce_factory=...)``."""
    kwargs.setdefault("timer_factory", QtTimerFactory())
    return Debouncer(fn, wait_ms, **kwargs)


class GridTableModel(QAbstractTableModel):
    def __init__(self, viewmodel: DataGridViewModel, parent=None):
        super().__init__(parent)
        self.viewmodel = viewmodel
        self._columns: List[ColumnDefinition] = viewmodel.visible_columns()
        self._rows: List[Any] = viewmodel.visible_rows()
        bus = viewmodel.event_bus
        self._subscriptions: List[Subscription] = [
            bus.subscribe(GridEvent.DATA_REFRESHED, self._on_reset),
            bus.subscribe(GridEvent.LAYOUT_CHANGED, self._on_reset),
            bus.subscribe(GridEvent.SELECTION_CHANGED, self._on_rows_changed),
            bus.subscribe(GridEvent.FOCUS_CHANGED, self._on_rows_changed),
        ]

    @classmethod
    def build(
        cls,
        columns: Sequence[ColumnDefinition],
        rows: Sequence[Any] = (),
        *,
        config: GridConfig | None = None,
        parent: QObject | None = None,
        **viewmodel_kwargs: Any,
    ) -> "GridTableModel":
        """Create a view model with Qt-timer debouncing plus the model over it.

        With ``config`` the view model comes from ``DataGridViewModel.from_config``
        and ``viewmodel_kwargs`` are passed through to it.
        """
        viewmodel_kwargs.setdefault("debounce_factory", qt_debounce)
        if config is not None:
            vm = DataGridViewModel.from_config(columns, config, rows=rows, **viewmodel_kwargs)
        else:
            vm = DataGridViewModel(columns, rows, **viewmodel_kwargs)
        return cls(vm, parent)

    def detach(self) -> None:
        for sub in self._subscriptions:
            self.viewmodel.event_bus.unsubscribe(sub)
        self._subscriptions.clear()

    # Bus handlers ------------------------------------------------------
    def _on_reset(self, _event: Event) -> None:
        self.beginResetModel()
        self._columns = self.viewmodel.visible_columns()
        self._rows = self.viewmodel.visible_rows()
        self.endResetModel()

    def _on_rows_changed(self, _event: Event) -> None:
        if not self._rows or not self._columns:
            return
        top_left = self.index(0, 0)
        bottom_right = self.index(len(self._rows) - 1, len(self._columns) - 1)
        self.dataChanged.emit(top_left, bottom_right)

    # Helpers -----------------------------------------------------------
    def column_at(self, section: int) -> Optional[ColumnDefinition]:
        if 0 <= section < len(self._columns):
            return self._columns[section]
        return None

    def row_at(self, row: int) -> Any:
        if 0 <= row < len(self._rows):
            return self._rows[row]
        return None

    # Required overrides ------------------------------------------------
    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        return 0 if parent.isValid() else len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        return 0 if parent.isValid() else len(self._columns)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if not index.isValid():
            return None
        row = self.row_at(index.row())
        column = self.column_at(index.column())
        if row is None or column is None:
            return None
        if role == Qt.ItemDataRole.DisplayRole:
            return render_value(get_value(row, column.accessor))
        if role == Qt.ItemDataRole.CheckStateRole and index.column() == 0:
            selected = self.viewmodel.selection.is_selected(row)
            return Qt.CheckState.Checked if selected else Qt.CheckState.Unchecked
        if role == Qt.ItemDataRole.TextAlignmentRole and column.type.is_numeric:
            return int(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
        if role == Qt.ItemDataRole.UserRole:
            return row
        return None

    def setData(self, index: QModelIndex, value: Any, role: int = Qt.ItemDataRole.EditRole) -> bool:  # type: ignore[override]
        if role != Qt.ItemDataRole.CheckStateRole or index.column() != 0:
            return False
        row = self.row_at(index.row())
        if row is None:
            return False
        want = Qt.CheckState(value) == Qt.CheckState.Checked
        if want:
            return self.viewmodel.selection.select(row)
        return self.viewmodel.selection.deselect(row)

    def flags(self, index: QModelIndex):  # type: ignore[override]
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        base = Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable
        if index.column() == 0:
            base |= Qt.ItemFlag.ItemIsUserCheckable
        return base

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if orientation != Qt.Orientation.Horizontal:
            if role == Qt.ItemDataRole.DisplayRole:
                vm = self.viewmodel
                return str((vm.page - 1) * vm.page_size + section + 1)
            return None
        column = self.column_at(section)
        if column is None:
            return None
        if role == Qt.ItemDataRole.DisplayRole:
            direction = self.viewmodel.sort_direction(column.id)
            if direction is None:
                return column.display_label
            arrow = "▲" if direction == SortDirection.ASC else "▼"
            return f"{column.display_label} {arrow}"
        if role == Qt.ItemDataRole.SizeHintRole and self.viewmodel.layout is not None:
            return QSize(self.viewmodel.layout.effective_width(column.id), 24)
        if role == Qt.ItemDataRole.ToolTipRole and column.type != ColumnType.TEXT:
            return column.type.value
        return None

    # Interaction -------------------------------------------------------
    def header_clicked(self, section: int, *, shift: bool = False) -> None:
        column = self.column_at(section)
        if column is None or not column.sortable:
            return
        self.viewmodel.toggle_sort(column.id, additive=shift)

    def key_pressed(self, key: Qt.Key | int, modifiers: Qt.KeyboardModifier) -> bool:
        """Forward a key press to the view model; returns True when consumed."""
        name = qt_key_name(key)
        if name is None:
            return False
        return self.viewmodel.handle_key(
            name,
            shift=bool(modifiers & Qt.KeyboardModifier.ShiftModifier),
            ctrl=bool(modifiers & Qt.KeyboardModifier.ControlModifier),
            meta=bool(modifiers & Qt.KeyboardModifier.MetaModifier),
        )
