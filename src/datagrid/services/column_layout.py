"""Column layout manager.

Tracks column order, pixel widths and hidden columns for one column set and
persists them under a caller-supplied storage key.

Lifecycle
---------
UNINITIALIZED -> LOADED     ``load()`` restores the persisted record; missing,
                            unreadable or malformed data falls back to the
                            default order with no explicit widths.
LOADED/RESET  -> MUTATED    every reorder / resize / visibility change updates
                            memory and writes the record back once.
any           -> RESET      ``reset()`` restores the default order and writes a
                            record without widths.

Mutating an unloaded manager loads it first. Store write failures are logged
and swallowed since the layout is a convenience, not correctness-critical.
Concurrent managers sharing a key are last-write-wins.

Persisted record::

    {"order": ["id", ...], "widths": {"id": 120}, "hidden": ["id"]}
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from datagrid import settings
from datagrid.models import ColumnDefinition, ColumnLayout
from .column_reorder import ReorderActionResult, move_by_command, move_column, move_to
from .event_bus import EventBus, GridEvent
from .key_value_store import KeyValueStore

__all__ = ["LayoutState", "ColumnLayoutManager", "parse_layout"]

_logger = logging.getLogger(__name__)


class LayoutState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    MUTATED = "mutated"
    RESET = "reset"


def _is_width(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def parse_layout(raw: Any) -> Optional[ColumnLayout]:
    """Validate a decoded layout record; None when it is malformed."""
    if not isinstance(raw, dict):
        return None
    order = raw.get("order")
    widths = raw.get("widths", {})
    hidden = raw.get("hidden", [])
    if not isinstance(order, list) or not all(isinstance(c, str) for c in order):
        return None
    if not isinstance(widths, dict) or not all(
        isinstance(k, str) and _is_width(v) for k, v in widths.items()
    ):
        return None
    if not isinstance(hidden, list) or not all(isinstance(c, str) for c in hidden):
        return None
    return ColumnLayout(
        order=list(order), widths={k: int(v) for k, v in widths.items()}, hidden=list(hidden)
    )


class ColumnLayoutManager:
    def __init__(
        self,
        storage_key: str,
        default_order: Sequence[str],
        store: KeyValueStore,
        *,
        min_width: int = settings.MIN_COLUMN_WIDTH,
        max_width: Optional[int] = None,
        default_width: int = settings.DEFAULT_COLUMN_WIDTH,
        default_widths: Mapping[str, int] | None = None,
        event_bus: EventBus | None = None,
    ):
        self.storage_key = storage_key
        self._default_order: List[str] = list(dict.fromkeys(default_order))
        self._store = store
        self.min_width = min_width
        self.max_width = max_width
        self.default_width = default_width
        self._default_widths: Dict[str, int] = dict(default_widths or {})
        self._event_bus = event_bus
        self._layout = ColumnLayout(order=list(self._default_order))
        self.state = LayoutState.UNINITIALIZED

    @classmethod
    def for_columns(
        cls,
        storage_key: str,
        columns: Sequence[ColumnDefinition],
        store: KeyValueStore,
        **kwargs: Any,
    ) -> "ColumnLayoutManager":
        """Build a manager whose defaults come from column definitions."""
        widths = {c.id: c.width for c in columns if c.width}
        return cls(storage_key, [c.id for c in columns], store, default_widths=widths, **kwargs)

    # Accessors ---------------------------------------------------------
    @property
    def layout(self) -> ColumnLayout:
        return ColumnLayout(
            order=list(self._layout.order),
            widths=dict(self._layout.widths),
            hidden=list(self._layout.hidden),
        )

    @property
    def order(self) -> List[str]:
        return list(self._layout.order)

    def visible_order(self) -> List[str]:
        hidden = set(self._layout.hidden)
        return [c for c in self._layout.order if c not in hidden]

    def is_visible(self, column_id: str) -> bool:
        return column_id in self._layout.order and column_id not in self._layout.hidden

    def width(self, column_id: str) -> Optional[int]:
        """Explicit (user-set) width or None."""
        return self._layout.widths.get(column_id)

    def effective_width(self, column_id: str) -> int:
        explicit = self._layout.widths.get(column_id)
        if explicit is not None:
            return explicit
        return self._default_widths.get(column_id, self.default_width)

    # Loading -----------------------------------------------------------
    def _defaults(self) -> ColumnLayout:
        return ColumnLayout(order=list(self._default_order))

    def _reconcile(self, persisted: ColumnLayout) -> ColumnLayout:
        known = set(self._default_order)
        order = [c for c in dict.fromkeys(persisted.order) if c in known]
        order += [c for c in self._default_order if c not in order]
        widths = {k: v for k, v in persisted.widths.items() if k in known}
        hidden = [c for c in dict.fromkeys(persisted.hidden) if c in known]
        if order and len(hidden) >= len(order):
            hidden = []
        return ColumnLayout(order=order, widths=widths, hidden=hidden)

    def load(self) -> ColumnLayout:
        self._layout = self._read() or self._defaults()
        self.state = LayoutState.LOADED
        return self.layout

    def _read(self) -> Optional[ColumnLayout]:
        try:
            text = self._store.get(self.storage_key)
        except Exception as exc:  # noqa: BLE001 - any backend failure means defaults
            _logger.warning("Column layout read failed for %r: %s", self.storage_key, exc)
            return None
        if text is None:
            return None
        try:
            parsed = parse_layout(json.loads(text))
        except (TypeError, ValueError) as exc:
            _logger.warning("Column layout for %r is not valid JSON: %s", self.storage_key, exc)
            return None
        if parsed is None:
            _logger.warning("Column layout for %r is malformed; using defaults", self.storage_key)
            return None
        return self._reconcile(parsed)

    def _ensure_loaded(self) -> None:
        if self.state == LayoutState.UNINITIALIZED:
            self.load()

    # Persistence -------------------------------------------------------
    def _commit(self, reason: str, state: LayoutState = LayoutState.MUTATED) -> None:
        self.state = state
        payload = json.dumps(self._layout.to_json_obj())
        try:
            self._store.set(self.storage_key, payload)
        except Exception as exc:  # noqa: BLE001 - write failures are non-fatal
            _logger.warning("Column layout write failed for %r: %s", self.storage_key, exc)
        if self._event_bus is not None:
            self._event_bus.publish(
                GridEvent.LAYOUT_CHANGED, {"key": self.storage_key, "reason": reason}
            )

    # Reorder -----------------------------------------------------------
    def _apply(self, result: ReorderActionResult) -> ReorderActionResult:
        if result.changed:
            self._layout.order = list(result.order)
            self._commit("reorder")
        return result

    def move_column(self, dragged_id: str, target_id: str) -> ReorderActionResult:
        """Drag ``dragged_id`` onto ``target_id``; dropping onto itself is a no-op."""
        self._ensure_loaded()
        return self._apply(move_column(self._layout.order, dragged_id, target_id))

    def move_column_to(self, column_id: str, index: int) -> ReorderActionResult:
        self._ensure_loaded()
        order = self._layout.order
        source = order.index(column_id) if column_id in order else -1
        return self._apply(move_to(order, source, index))

    def apply_key_command(self, column_id: str, command: str) -> ReorderActionResult:
        """Keyboard fallback for drag & drop (up/down/home/end)."""
        self._ensure_loaded()
        order = self._layout.order
        source = order.index(column_id) if column_id in order else -1
        return self._apply(move_by_command(order, source, command))

    def set_order(self, order: Iterable[str]) -> bool:
        self._ensure_loaded()
        new = self._reconcile(
            ColumnLayout(order=list(order), widths=self._layout.widths, hidden=self._layout.hidden)
        )
        if new.order == self._layout.order:
            return False
        self._layout.order = new.order
        self._commit("reorder")
        return True

    # Resize ------------------------------------------------------------
    def _clamp(self, width: float) -> int:
        result = max(self.min_width, int(round(width)))
        if self.max_width is not None:
            result = min(self.max_width, result)
        return result

    def resize(self, column_id: str, delta: float) -> Optional[int]:
        """Apply a pointer delta; the result never drops below ``min_width``."""
        self._ensure_loaded()
        if column_id not in self._layout.order:
            return None
        return self._store_width(column_id, self._clamp(self.effective_width(column_id) + delta))

    def set_width(self, column_id: str, width: float) -> Optional[int]:
        self._ensure_loaded()
        if column_id not in self._layout.order:
            return None
        return self._store_width(column_id, self._clamp(width))

    def _store_width(self, column_id: str, width: int) -> int:
        if self._layout.widths.get(column_id) != width:
            self._layout.widths[column_id] = width
            self._commit("resize")
        return width

    # Visibility --------------------------------------------------------
    def hide(self, column_id: str) -> bool:
        """Hide a column; the last visible column cannot be hidden."""
        self._ensure_loaded()
        if not self.is_visible(column_id) or len(self.visible_order()) <= 1:
            return False
        self._layout.hidden.append(column_id)
        self._commit("visibility")
        return True

    def show(self, column_id: str) -> bool:
        self._ensure_loaded()
        if column_id not in self._layout.hidden:
            return False
        self._layout.hidden.remove(column_id)
        self._commit("visibility")
        return True

    def toggle_visibility(self, column_id: str) -> bool:
        if column_id in self._layout.hidden:
            return self.show(column_id)
        return self.hide(column_id)

    # Reset -------------------------------------------------------------
    def reset(self) -> ColumnLayout:
        self._layout = self._defaults()
        self._commit("reset", LayoutState.RESET)
        return self.layout
