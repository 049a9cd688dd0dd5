"""Row selection keyed by row identity.

Selection stores row ids (via an id accessor, ``"id"`` by default), never
row positions, so a selected row stays selected after re-sorting, filtering
or paging as long as it is still in the underlying collection. Only explicit
calls (``deselect_all``, ``deselect_rows``, ``prune``) remove ids.

"Visible rows" arguments are whatever the caller currently shows (usually
the current page); all-/partially-selected flags compare against those ids.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, Set

from datagrid.models import Accessor
from .accessor import row_id

__all__ = ["SelectionStats", "SelectionModel"]

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionStats:
    total: int
    selected: int
    percentage: float
    all_selected: bool
    partially_selected: bool
    none_selected: bool


class SelectionModel:
    def __init__(
        self,
        id_field: Accessor = "id",
        *,
        multi_select: bool = True,
        on_change: Optional[Callable[[Set[str]], None]] = None,
    ):
        self.id_field = id_field
        self.multi_select = multi_select
        self._on_change = on_change
        self._selected: Set[str] = set()

    # Introspection -----------------------------------------------------
    @property
    def selected_ids(self) -> Set[str]:
        return set(self._selected)

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, rid: object) -> bool:
        return rid in self._selected

    def id_of(self, row: Any) -> Optional[str]:
        return row_id(row, self.id_field)

    def _ids(self, rows: Iterable[Any]) -> List[str]:
        ids: List[str] = []
        for row in rows:
            rid = self.id_of(row)
            if rid is None:
                _logger.debug("row without id ignored by selection")
                continue
            ids.append(rid)
        return ids

    def is_selected(self, row: Any) -> bool:
        rid = self.id_of(row)
        return rid is not None and rid in self._selected

    def selected_rows(self, rows: Iterable[Any]) -> List[Any]:
        """Rows of ``rows`` whose id is selected, in the given order."""
        return [row for row in rows if self.is_selected(row)]

    def selected_visible_count(self, visible_rows: Iterable[Any]) -> int:
        return len(set(self._ids(visible_rows)) & self._selected)

    def is_all_selected(self, visible_rows: Sequence[Any]) -> bool:
        ids = set(self._ids(visible_rows))
        return bool(ids) and ids <= self._selected

    def is_partially_selected(self, visible_rows: Sequence[Any]) -> bool:
        ids = set(self._ids(visible_rows))
        hit = len(ids & self._selected)
        return 0 < hit < len(ids)

    def stats(self, visible_rows: Sequence[Any]) -> SelectionStats:
        ids = set(self._ids(visible_rows))
        selected = len(ids & self._selected)
        total = len(ids)
        return SelectionStats(
            total=total,
            selected=selected,
            percentage=(selected / total) * 100 if total else 0.0,
            all_selected=total > 0 and selected == total,
            partially_selected=0 < selected < total,
            none_selected=selected == 0,
        )

    # Mutation ----------------------------------------------------------
    def _replace(self, new: Set[str]) -> bool:
        if new == self._selected:
            return False
        self._selected = new
        if self._on_change is not None:
            self._on_change(set(new))
        return True

    def select(self, row: Any) -> bool:
        rid = self.id_of(row)
        if rid is None:
            return False
        base = set(self._selected) if self.multi_select else set()
        base.add(rid)
        return self._replace(base)

    def deselect(self, row: Any) -> bool:
        rid = self.id_of(row)
        if rid is None:
            return False
        return self._replace(self._selected - {rid})

    def toggle(self, row: Any) -> bool:
        if self.is_selected(row):
            return self.deselect(row)
        return self.select(row)

    def select_only(self, row: Any) -> bool:
        rid = self.id_of(row)
        return self._replace({rid} if rid is not None else set())

    def toggle_only(self, row: Any) -> bool:
        """Select just ``row``, or clear everything when it was already selected."""
        if self.is_selected(row):
            return self._replace(set())
        return self.select_only(row)

    def select_rows(self, rows: Iterable[Any]) -> bool:
        ids = self._ids(rows)
        if not ids:
            return False
        if not self.multi_select:
            return self._replace({ids[-1]})
        return self._replace(self._selected | set(ids))

    def select_all(self, visible_rows: Iterable[Any]) -> bool:
        """Add every visible row; ids selected on other pages are kept."""
        if not self.multi_select:
            return False
        return self.select_rows(visible_rows)

    def deselect_rows(self, rows: Iterable[Any]) -> bool:
        return self._replace(self._selected - set(self._ids(rows)))

    def deselect_all(self) -> bool:
        return self._replace(set())

    def toggle_all(self, visible_rows: Sequence[Any]) -> bool:
        if self.is_all_selected(visible_rows):
            return self.deselect_rows(visible_rows)
        return self.select_all(visible_rows)

    def select_range(self, rows: Sequence[Any], start: int, end: int) -> bool:
        """Add rows between two indices (inclusive, either order)."""
        if not self.multi_select or not rows:
            return False
        lo, hi = sorted((start, end))
        lo = max(lo, 0)
        hi = min(hi, len(rows) - 1)
        if lo > hi:
            return False
        return self.select_rows(rows[lo : hi + 1])

    def invert(self, visible_rows: Sequence[Any]) -> bool:
        """Flip the selection state of each visible row."""
        if not self.multi_select:
            return False
        ids = set(self._ids(visible_rows))
        return self._replace((self._selected - ids) | (ids - self._selected))

    def prune(self, rows: Iterable[Any]) -> bool:
        """Drop ids that are no longer present in ``rows`` (the full collection)."""
        return self._replace(self._selected & set(self._ids(rows)))
