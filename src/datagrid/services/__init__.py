"""Service layer exports.

Responsibilities:
 - Pure engine functions (sort, filter, paginate, group, stats)
 - Stateful helpers (selection, keyboard navigation, column layout)
 - EventBus publish/subscribe core and persistence stores
"""

from .event_bus import EventBus, GridEvent  # noqa: F401
from .key_value_store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore  # noqa: F401

__all__ = [
    "EventBus",
    "GridEvent",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]
