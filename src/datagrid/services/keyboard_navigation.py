"""Keyboard navigation for grid rows.

Keeps a focused row index (independent of selection) over the rows the
caller currently shows and translates key presses into focus moves plus
caller-supplied callbacks. The controller never touches selection or engine
state itself; everything beyond focus goes through ``NavigationCallbacks``.

Key map
-------
ArrowUp / ArrowDown     move focus by one (Shift extends a range from the anchor)
PageUp / PageDown       move focus by ``page_step``
Home / End              first / last row
Space                   toggle the focused row alone, which becomes the range anchor
Ctrl/Cmd + Space        toggle the focused row, keeping the rest of the selection
Enter                   activate (row click) the focused row
Ctrl/Cmd + A            select all
Escape                  clear selection and focus
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from datagrid import settings

__all__ = ["NavigationCallbacks", "KeyboardNavigationController", "normalize_key"]

_KEY_ALIASES: Dict[str, str] = {
    "arrowdown": "down",
    "down": "down",
    "arrowup": "up",
    "up": "up",
    "home": "home",
    "end": "end",
    "pagedown": "pagedown",
    "pageup": "pageup",
    " ": "space",
    "space": "space",
    "spacebar": "space",
    "enter": "enter",
    "return": "enter",
    "escape": "escape",
    "esc": "escape",
    "a": "a",
}


def normalize_key(key: str) -> str:
    return _KEY_ALIASES.get(key if key == " " else key.lower(), "")


@dataclass
class NavigationCallbacks:
    on_row_click: Optional[Callable[[Any], None]] = None
    on_toggle: Optional[Callable[[Any], None]] = None
    on_toggle_only: Optional[Callable[[Any], None]] = None
    on_select_only: Optional[Callable[[Any], None]] = None
    on_select_range: Optional[Callable[[List[Any]], None]] = None
    on_select_all: Optional[Callable[[], None]] = None
    on_clear_selection: Optional[Callable[[], None]] = None
    on_focus_change: Optional[Callable[[int], None]] = None


class KeyboardNavigationController:
    def __init__(
        self,
        callbacks: NavigationCallbacks | None = None,
        *,
        page_step: int = settings.KEYBOARD_PAGE_STEP,
        multi_select: bool = True,
    ):
        self.callbacks = callbacks or NavigationCallbacks()
        self.page_step = max(1, page_step)
        self.multi_select = multi_select
        self.focused_index = -1
        self.anchor_index = -1

    # Focus -------------------------------------------------------------
    def focus_row(self, index: int, row_count: int | None = None) -> None:
        if row_count is not None:
            index = min(max(index, -1), row_count - 1)
        if index != self.focused_index:
            self.focused_index = index
            if self.callbacks.on_focus_change:
                self.callbacks.on_focus_change(index)

    def clear_focus(self) -> None:
        self.focus_row(-1)
        self.anchor_index = -1

    def focused_row(self, rows: Sequence[Any]) -> Any:
        if 0 <= self.focused_index < len(rows):
            return rows[self.focused_index]
        return None

    def sync(self, row_count: int) -> None:
        """Keep focus / anchor inside ``row_count`` after the visible rows change."""
        if self.focused_index >= row_count:
            self.focus_row(row_count - 1)
        if self.anchor_index >= row_count:
            self.anchor_index = -1

    # Internal ----------------------------------------------------------
    def _move(self, rows: Sequence[Any], target: int, extend: bool) -> None:
        target = min(max(target, 0), len(rows) - 1)
        self.focus_row(target)
        if extend and self.multi_select and self.anchor_index != -1 and self.callbacks.on_select_range:
            lo, hi = sorted((self.anchor_index, target))
            self.callbacks.on_select_range(list(rows[lo : hi + 1]))

    # Events ------------------------------------------------------------
    def handle_key(
        self,
        rows: Sequence[Any],
        key: str,
        *,
        shift: bool = False,
        ctrl: bool = False,
        meta: bool = False,
    ) -> bool:
        """Process one key press; returns True when the key was consumed."""
        if not rows:
            return False
        self.sync(len(rows))
        name = normalize_key(key)
        current = self.focused_index
        cb = self.callbacks
        if name == "down":
            self._move(rows, current + 1, shift)
        elif name == "up":
            self._move(rows, max(current - 1, 0), shift)
        elif name == "home":
            self._move(rows, 0, shift)
        elif name == "end":
            self._move(rows, len(rows) - 1, shift)
        elif name == "pagedown":
            self._move(rows, current + self.page_step, shift)
        elif name == "pageup":
            self._move(rows, max(current - self.page_step, 0), shift)
        elif name in ("space", "enter"):
            row = self.focused_row(rows)
            if row is None:
                return True
            if name == "space":
                self.anchor_index = self.focused_index
                toggle = cb.on_toggle if (ctrl or meta) else cb.on_toggle_only or cb.on_toggle
                if toggle:
                    toggle(row)
            elif cb.on_row_click:
                cb.on_row_click(row)
        elif name == "a":
            if not (ctrl or meta) or not self.multi_select:
                return False
            if cb.on_select_all:
                cb.on_select_all()
        elif name == "escape":
            if cb.on_clear_selection:
                cb.on_clear_selection()
            self.clear_focus()
        else:
            return False
        return True

    def handle_click(
        self,
        rows: Sequence[Any],
        index: int,
        *,
        shift: bool = False,
        ctrl: bool = False,
        meta: bool = False,
    ) -> None:
        """Pointer click with modifiers: Shift = range, Ctrl/Cmd = toggle, plain = select only."""
        if not 0 <= index < len(rows):
            return
        row = rows[index]
        self.focus_row(index)
        cb = self.callbacks
        if shift and self.multi_select and self.anchor_index != -1:
            if cb.on_select_range:
                lo, hi = sorted((self.anchor_index, index))
                cb.on_select_range(list(rows[lo : hi + 1]))
            return
        self.anchor_index = index
        if (ctrl or meta) and self.multi_select:
            if cb.on_toggle:
                cb.on_toggle(row)
            return
        if cb.on_select_only:
            cb.on_select_only(row)
        if cb.on_row_click:
            cb.on_row_click(row)
