"""Table State Persistence Service.

Persists the query side of a grid (sort keys, filter clauses, page size,
global search text, group-by column) through a ``KeyValueStore`` under
``table-state-<key>-v<version>``. Column widths / order live in the column
layout manager instead.

Failures are non-fatal: a version mismatch or corrupt record is removed and
defaults are returned; write failures are logged and reported as False.
``export_state`` / ``import_state`` round-trip the same JSON for sharing a
view between users.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from datagrid import settings
from datagrid.models import FilterClause, SortDirection, SortKey
from .key_value_store import KeyValueStore

__all__ = ["TableState", "TableStatePersistenceService"]

_logger = logging.getLogger(__name__)


def _json_value(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, tuple):
        return list(value)
    return value


def _operator_text(operator: Any) -> Optional[str]:
    if operator is None:
        return None
    return getattr(operator, "value", operator)


@dataclass
class TableState:
    version: str = settings.TABLE_STATE_VERSION
    sort_keys: List[SortKey] = field(default_factory=list)
    filters: List[FilterClause] = field(default_factory=list)
    page_size: int = settings.DEFAULT_PAGE_SIZE
    global_search: str = ""
    group_by: Optional[str] = None

    def to_json_obj(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "sortConfig": [
                {
                    "columnId": sk.column_id,
                    "direction": SortDirection(sk.direction).value,
                    "priority": sk.priority,
                }
                for sk in self.sort_keys
            ],
            "filters": [
                {
                    "columnId": fc.column_id,
                    "operator": _operator_text(fc.operator),
                    "value": _json_value(fc.value),
                }
                for fc in self.filters
            ],
            "pageSize": self.page_size,
            "globalSearch": self.global_search,
            "groupBy": self.group_by,
        }

    @classmethod
    def from_json_obj(cls, obj: Dict[str, Any]) -> "TableState":
        """Build a state from a decoded record; raises ValueError/KeyError/TypeError when malformed."""
        if not isinstance(obj, dict) or "version" not in obj:
            raise ValueError("missing version")
        sort_keys = [
            SortKey(
                column_id=str(item["columnId"]),
                direction=SortDirection(item.get("direction", "asc")),
                priority=int(item.get("priority", i)),
            )
            for i, item in enumerate(obj.get("sortConfig") or [])
        ]
        filters = [
            FilterClause(
                column_id=str(item["columnId"]),
                operator=item.get("operator"),
                value=item.get("value"),
            )
            for item in obj.get("filters") or []
        ]
        page_size = int(obj.get("pageSize") or settings.DEFAULT_PAGE_SIZE)
        if page_size < 1:
            raise ValueError("pageSize must be positive")
        group_by = obj.get("groupBy")
        return cls(
            version=str(obj["version"]),
            sort_keys=sort_keys,
            filters=filters,
            page_size=page_size,
            global_search=str(obj.get("globalSearch") or ""),
            group_by=str(group_by) if group_by else None,
        )


class TableStatePersistenceService:
    def __init__(
        self, store: KeyValueStore, key: str, *, version: str = settings.TABLE_STATE_VERSION
    ):
        self._store = store
        self.version = version
        self.storage_key = f"table-state-{key}-v{version}"

    def _discard(self) -> None:
        try:
            self._store.remove(self.storage_key)
        except Exception as exc:  # noqa: BLE001
            _logger.warning("Could not clear table state %r: %s", self.storage_key, exc)

    def load(self) -> TableState:
        try:
            text = self._store.get(self.storage_key)
        except Exception as exc:  # noqa: BLE001 - unreadable backend means defaults
            _logger.warning("Failed to load persisted table state: %s", exc)
            return TableState(version=self.version)
        if text is None:
            return TableState(version=self.version)
        try:
            state = TableState.from_json_obj(json.loads(text))
        except (KeyError, TypeError, ValueError) as exc:
            _logger.warning("Discarding corrupt table state %r: %s", self.storage_key, exc)
            self._discard()
            return TableState(version=self.version)
        if state.version != self.version:
            _logger.info("Discarding table state %r with version %s", self.storage_key, state.version)
            self._discard()
            return TableState(version=self.version)
        return state

    def save(self, state: TableState) -> bool:
        state.version = self.version
        try:
            self._store.set(self.storage_key, json.dumps(state.to_json_obj()))
            return True
        except Exception as exc:  # noqa: BLE001
            _logger.warning("Failed to persist table state: %s", exc)
            return False

    def clear(self) -> None:
        self._discard()

    def export_state(self, state: TableState) -> str:
        return json.dumps(state.to_json_obj(), indent=2)

    @staticmethod
    def import_state(text: str) -> Optional[TableState]:
        try:
            return TableState.from_json_obj(json.loads(text))
        except (KeyError, TypeError, ValueError) as exc:
            _logger.warning("Failed to import table state: %s", exc)
            return None
