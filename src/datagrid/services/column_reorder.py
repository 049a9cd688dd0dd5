"""Column reordering primitives.

Pure functions behind drag & drop and keyboard column moves. Each takes the
current column order, never mutates it, and returns a ``ReorderActionResult``
with the new order, whether anything changed, the index that should receive
focus and a screen reader announcement.

Out-of-range indices and unknown column ids are no-ops.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

__all__ = [
    "ReorderActionResult",
    "move_to",
    "move_column",
    "move_by_command",
    "interpret_key_command",
]


@dataclass(frozen=True)
class ReorderActionResult:
    order: Tuple[str, ...]
    changed: bool
    focus_index: int
    announcement: str


def _unchanged(order: Sequence[str], index: int) -> ReorderActionResult:
    return ReorderActionResult(tuple(order), False, index, "No change")


def move_to(order: Sequence[str], index: int, target_index: int) -> ReorderActionResult:
    """Remove the column at ``index`` and reinsert it at ``target_index``."""
    size = len(order)
    if not (0 <= index < size and 0 <= target_index < size) or index == target_index:
        return _unchanged(order, index)
    items: List[str] = list(order)
    column_id = items.pop(index)
    items.insert(target_index, column_id)
    announcement = f"Moved column {column_id} from position {index + 1} to {target_index + 1}."
    return ReorderActionResult(tuple(items), True, target_index, announcement)


def move_column(order: Sequence[str], dragged_id: str, target_id: str) -> ReorderActionResult:
    """Drop ``dragged_id`` onto ``target_id``; it takes the target's index."""
    if dragged_id not in order or target_id not in order:
        return _unchanged(order, -1)
    return move_to(order, list(order).index(dragged_id), list(order).index(target_id))


def interpret_key_command(command: str) -> str:
    """Map an abstract key command to one of: up, down, top, bottom ('' if unknown).

    Horizontal arrows map to up/down since columns run left to right.
    """
    cmd = command.lower()
    if cmd in {"up", "arrowup", "left", "arrowleft"}:
        return "up"
    if cmd in {"down", "arrowdown", "right", "arrowright"}:
        return "down"
    if cmd in {"home", "ctrl+home", "top"}:
        return "top"
    if cmd in {"end", "ctrl+end", "bottom"}:
        return "bottom"
    return ""


def move_by_command(order: Sequence[str], index: int, command: str) -> ReorderActionResult:
    verb = interpret_key_command(command)
    last = len(order) - 1
    targets = {"up": index - 1, "down": index + 1, "top": 0, "bottom": last}
    if verb not in targets:
        return _unchanged(order, index)
    return move_to(order, index, targets[verb])
