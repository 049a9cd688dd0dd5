"""Debounce / throttle helpers for high-frequency input.

Used to coalesce rapid search typing and pointer-drag resizes into bounded
calls of the pure engine functions.

* ``debounce``: last-call-wins after ``wait_ms`` of inactivity. A later call
  cancels the pending one. ``flush()`` runs the pending call immediately (the
  equivalent of a forced commit), ``cancel()`` drops it.
* ``throttle``: fires immediately on the first call of a window and ignores
  further calls until ``limit_ms`` has elapsed.

Timers default to ``threading.Timer`` so the callback runs on a timer thread.
Qt code passes ``views.grid_table_model.qt_debounce`` instead, which fires on
the GUI thread through a single-shot QTimer.
Both classes accept injectable timer / clock factories for deterministic
tests.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

__all__ = ["Debouncer", "Throttler", "debounce", "throttle"]

TimerFactory = Callable[[float, Callable[[], None]], Any]


def _thread_timer(seconds: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(seconds, callback)
    timer.daemon = True
    timer.start()
    return timer


class Debouncer:
    def __init__(
        self,
        fn: Callable[..., Any],
        wait_ms: float,
        *,
        timer_factory: TimerFactory = _thread_timer,
    ) -> None:
        self._fn = fn
        self._wait_ms = max(0.0, float(wait_ms))
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Any = None
        self._pending: Optional[Tuple[Tuple[Any, ...], Dict[str, Any]]] = None
        self._generation = 0

    @property
    def wait_ms(self) -> float:
        return self._wait_ms

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            generation = self._generation
            self._pending = (args, kwargs)
            self._timer = self._timer_factory(
                self._wait_ms / 1000.0, lambda: self._fire(generation)
            )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _take(self, generation: Optional[int] = None):
        with self._lock:
            if self._pending is None:
                return None
            # A superseded timer that fired anyway must not run the newer call
            if generation is not None and generation != self._generation:
                return None
            call = self._pending
            self._pending = None
            self._timer = None
            return call

    def _fire(self, generation: int) -> None:
        call = self._take(generation)
        if call is not None:
            args, kwargs = call
            self._fn(*args, **kwargs)

    def flush(self) -> bool:
        """Run the pending call now; returns False when nothing was pending."""
        with self._lock:
            self._cancel_timer()
        call = self._take()
        if call is None:
            return False
        args, kwargs = call
        self._fn(*args, **kwargs)
        return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = None


class Throttler:
    def __init__(
        self,
        fn: Callable[..., Any],
        limit_ms: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fn = fn
        self._limit_s = max(0.0, float(limit_ms)) / 1000.0
        self._clock = clock
        self._lock = threading.Lock()
        self._window_start: Optional[float] = None

    def __call__(self, *args: Any, **kwargs: Any) -> bool:
        """Invoke when a new window starts; returns whether ``fn`` ran."""
        with self._lock:
            now = self._clock()
            if self._window_start is not None and now - self._window_start < self._limit_s:
                return False
            self._window_start = now
        self._fn(*args, **kwargs)
        return True

    def reset(self) -> None:
        with self._lock:
            self._window_start = None


def debounce(fn: Callable[..., Any], wait_ms: float, **kwargs: Any) -> Debouncer:
    return Debouncer(fn, wait_ms, **kwargs)


def throttle(fn: Callable[..., Any], limit_ms: float, **kwargs: Any) -> Throttler:
    return Throttler(fn, limit_ms, **kwargs)
