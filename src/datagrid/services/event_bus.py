"""EventBus core.

Lightweight synchronous publish/subscribe used by the grid view model and the
column layout manager to notify views of state changes.

Goals:
 - Decouple state owners (view model, layout manager) from views
 - Provide minimal, testable surface (no Qt dependency)
 - Safe error isolation: one failing handler doesn't break the publish cycle
 - Allow one-shot (once) subscriptions
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from time import perf_counter
from typing import Any, Deque, Dict, List, Protocol, Tuple

__all__ = [
    "GridEvent",
    "Event",
    "EventBus",
    "EventHandler",
    "Subscription",
    "TraceEntry",
]


class GridEvent(str, Enum):  # str subclass for easier JSON/UI usage
    DATA_REFRESHED = "data_refreshed"
    SORT_CHANGED = "sort_changed"
    FILTER_CHANGED = "filter_changed"
    PAGE_CHANGED = "page_changed"
    SELECTION_CHANGED = "selection_changed"
    FOCUS_CHANGED = "focus_changed"
    LAYOUT_CHANGED = "layout_changed"
    LOG_RECORD_ADDED = "log_record_added"


@dataclass
class Event:
    name: str  # matches GridEvent value or custom string
    payload: Any
    timestamp: float


class EventHandler(Protocol):  # noqa: D401 - protocol signature docs implicit
    def __call__(self, event: Event) -> None: ...  # pragma: no cover - structural


@dataclass
class Subscription:
    event: str
    handler: EventHandler
    once: bool
    active: bool = True

    def cancel(self) -> None:
        self.active = False


@dataclass(frozen=True)
class TraceEntry:
    name: str
    timestamp: float
    summary: str


def _key(name: str | GridEvent) -> str:
    return name.value if isinstance(name, GridEvent) else name


class EventBus:
    """Synchronous event dispatcher with optional tracing.

    Handlers are invoked while the lock is NOT held (copy-first strategy) so
    handlers can subscribe/unsubscribe recursively without deadlock. Handler
    exceptions are collected in ``errors`` instead of propagating.
    """

    DEFAULT_TRACE_CAPACITY = 50

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: Dict[str, List[Subscription]] = {}
        self._errors: List[tuple[Event, BaseException]] = []
        self._tracing_enabled: bool = False
        self._traces: Deque[Tuple[str, float, str]] = deque(maxlen=self.DEFAULT_TRACE_CAPACITY)

    # Subscription management ----------------------------------------------
    def subscribe(
        self, name: str | GridEvent, handler: EventHandler, *, once: bool = False
    ) -> Subscription:
        sub = Subscription(event=_key(name), handler=handler, once=once)
        with self._lock:
            self._subs.setdefault(sub.event, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            bucket = self._subs.get(sub.event)
            if bucket:
                self._subs[sub.event] = [s for s in bucket if s is not sub]
                if not self._subs[sub.event]:
                    self._subs.pop(sub.event, None)
        sub.active = False

    def clear(self) -> None:
        with self._lock:
            self._subs.clear()
            self._errors.clear()

    # Publishing --------------------------------------------------------------
    def publish(self, name: str | GridEvent, payload: Any = None) -> Event:
        key = _key(name)
        evt = Event(name=key, payload=payload, timestamp=perf_counter())
        with self._lock:
            subs = list(self._subs.get(key, ()))
            if self._tracing_enabled:
                text = "-" if payload is None else str(payload)
                summary = text if len(text) <= 40 else text[:37] + "..."
                self._traces.append((evt.name, evt.timestamp, summary))
        fired_once: List[Subscription] = []
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(evt)
            except Exception as exc:  # noqa: BLE001 - isolate handler failures
                with self._lock:
                    self._errors.append((evt, exc))
            else:
                if sub.once:
                    fired_once.append(sub)
        for sub in fired_once:
            self.unsubscribe(sub)
        return evt

    # Introspection -----------------------------------------------------------
    def subscriber_count(self, name: str | GridEvent) -> int:
        with self._lock:
            return len(self._subs.get(_key(name), ()))

    @property
    def errors(self) -> list[tuple[Event, BaseException]]:
        with self._lock:
            return list(self._errors)

    # Tracing -----------------------------------------------------------------
    def enable_tracing(self, enabled: bool = True, *, capacity: int | None = None) -> None:
        with self._lock:
            self._tracing_enabled = enabled
            if capacity is not None and capacity != self._traces.maxlen:
                self._traces = deque(self._traces, maxlen=capacity)

    def recent_trace_entries(self) -> list[TraceEntry]:
        with self._lock:
            return [TraceEntry(name=n, timestamp=ts, summary=s) for (n, ts, s) in self._traces]
