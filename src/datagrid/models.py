"""Grid-facing lightweight models shared by the engine services."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar, Union

T = TypeVar("T")

Projection = Callable[[Any], Any]
Accessor = Union[str, Projection]


class ColumnType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    CUSTOM = "custom"

    @property
    def is_numeric(self) -> bool:
        return self in (ColumnType.NUMBER, ColumnType.CURRENCY, ColumnType.PERCENTAGE)

    @property
    def is_temporal(self) -> bool:
        return self in (ColumnType.DATE, ColumnType.DATETIME)


@dataclass(frozen=True)
class ColumnDefinition:
    id: str
    accessor: Accessor
    type: ColumnType = ColumnType.TEXT
    sortable: bool = True
    filterable: bool = True
    label: Optional[str] = None
    width: Optional[int] = None

    @property
    def display_label(self) -> str:
        return self.label or self.id


def find_column(columns: Sequence[ColumnDefinition], column_id: str) -> Optional[ColumnDefinition]:
    for col in columns:
        if col.id == column_id:
            return col
    return None


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortKey:
    column_id: str
    direction: SortDirection = SortDirection.ASC
    priority: int = 0

    @property
    def ascending(self) -> bool:
        return self.direction == SortDirection.ASC


class FilterOperator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"
    BETWEEN = "between"
    IN = "in"
    NOT_IN = "notIn"


@dataclass(frozen=True)
class FilterClause:
    column_id: str
    operator: Union[FilterOperator, str, None] = FilterOperator.CONTAINS
    value: Any = None


@dataclass
class PageResult(Generic[T]):
    data: List[T]
    total_pages: int
    total_items: int


@dataclass
class PaginationState:
    page: int = 1
    page_size: int = 25
    total_items: int = 0
    total_pages: int = 0


@dataclass
class ColumnStats:
    count: int = 0
    unique: int = 0
    nulls: int = 0
    min: Any = None
    max: Any = None
    avg: Optional[float] = None
    sum: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        """Return only the populated aggregates (count/unique/nulls always present)."""
        out: Dict[str, Any] = {"count": self.count, "unique": self.unique, "nulls": self.nulls}
        for name in ("min", "max", "avg", "sum"):
            val = getattr(self, name)
            if val is not None:
                out[name] = val.isoformat() if isinstance(val, datetime) else val
        return out


@dataclass
class ColumnLayout:
    order: List[str] = field(default_factory=list)
    widths: Dict[str, int] = field(default_factory=dict)
    hidden: List[str] = field(default_factory=list)

    def to_json_obj(self) -> Dict[str, Any]:
        return {"order": list(self.order), "widths": dict(self.widths), "hidden": list(self.hidden)}


__all__ = [
    "Accessor",
    "Projection",
    "ColumnType",
    "ColumnDefinition",
    "find_column",
    "SortDirection",
    "SortKey",
    "FilterOperator",
    "FilterClause",
    "PageResult",
    "PaginationState",
    "ColumnStats",
    "ColumnLayout",
]
