"""Grid diagnostics log.

Captures records of the ``datagrid`` logger hierarchy into a bounded buffer so
a host application can surface what the engine swallowed or skipped: failed
layout / table-state writes, malformed persisted records, clauses and sort
keys ignored for unknown columns.

Each captured record is republished as ``GridEvent.LOG_RECORD_ADDED`` on the
grid's EventBus when one is given. ``DataGridViewModel.from_config`` attaches
one service per grid; ``close()`` on the view model detaches it again.
"""

from __future__ import annotations

import json
import logging
from collections import Counter, deque
from dataclasses import asdict, dataclass
from pathlib import Path
from threading import RLock
from typing import Deque, Dict, List, Optional

from .event_bus import EventBus, GridEvent

__all__ = ["LogEntry", "LoggingService"]


@dataclass(frozen=True)
class LogEntry:
    level: str
    levelno: int
    name: str
    message: str
    created: float
    exc_text: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class _CaptureHandler(logging.Handler):
    def __init__(self, sink: "LoggingService", level: int) -> None:
        super().__init__(level)
        self._sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        exc_text = None
        if record.exc_info:
            exc_text = logging.Formatter().formatException(record.exc_info)
        self._sink.add(
            LogEntry(
                level=record.levelname,
                levelno=record.levelno,
                name=record.name,
                message=record.getMessage(),
                created=record.created,
                exc_text=exc_text,
            )
        )


class LoggingService:
    def __init__(
        self,
        capacity: int = 500,
        *,
        logger_name: str = "datagrid",
        min_level: int = logging.DEBUG,
        event_bus: EventBus | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._lock = RLock()
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        self._logger = logging.getLogger(logger_name)
        self._handler = _CaptureHandler(self, min_level)
        self._event_bus = event_bus
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self) -> "LoggingService":
        if not self._attached:
            self._logger.addHandler(self._handler)
            # lower the logger threshold only when it would hide our records
            if self._logger.getEffectiveLevel() > self._handler.level:
                self._logger.setLevel(self._handler.level)
            self._attached = True
        return self

    def detach(self) -> None:
        if self._attached:
            self._logger.removeHandler(self._handler)
            self._attached = False

    def __enter__(self) -> "LoggingService":
        return self.attach()

    def __exit__(self, *exc) -> None:
        self.detach()

    # Capture ------------------------------------------------------------
    def add(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)
        if self._event_bus is not None:
            self._event_bus.publish(
                GridEvent.LOG_RECORD_ADDED,
                {"level": entry.level, "name": entry.name, "message": entry.message[:120]},
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    # Query ------------------------------------------------------------
    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        with self._lock:
            data = list(self._entries)
        return data[-limit:] if limit is not None else data

    def filter(
        self, *, min_level: int = logging.NOTSET, name_contains: str | None = None
    ) -> List[LogEntry]:
        return [
            e
            for e in self.recent()
            if e.levelno >= min_level and (not name_contains or name_contains in e.name)
        ]

    def counts(self) -> Dict[str, int]:
        """Number of buffered entries per level name."""
        return dict(Counter(e.level for e in self.recent()))

    def export_jsonl(
        self, path: str | Path, *, min_level: int = logging.NOTSET, append: bool = False
    ) -> int:
        """Write matching entries as JSON Lines; returns the number written."""
        entries = self.filter(min_level=min_level)
        with Path(path).open("a" if append else "w", encoding="utf-8") as fh:
            for e in entries:
                fh.write(json.dumps(e.to_dict(), sort_keys=True) + "\n")
        return len(entries)
