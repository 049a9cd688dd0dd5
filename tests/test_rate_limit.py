"""Debounce / throttle timing tests.

Most cases drive a manual timer so they are deterministic; one test uses the
real thread timer with generous margins.
"""

import threading
import time

from datagrid.services.rate_limit import Debouncer, debounce, throttle


class FakeTimer:
    def __init__(self, clock, seconds, callback):
        self.due = clock.now + seconds
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.timers = []

    def timer(self, seconds, callback):
        t = FakeTimer(self, seconds, callback)
        self.timers.append(t)
        return t

    def advance(self, seconds):
        self.now += seconds
        for t in list(self.timers):
            if not t.cancelled and t.due <= self.now + 1e-9:
                self.timers.remove(t)
                t.callback()

    def __call__(self):
        return self.now


def test_debounce_single_invocation_after_last_call():
    clock = FakeClock()
    hits = []
    fn = debounce(lambda v: hits.append((v, clock.now)), 300, timer_factory=clock.timer)
    for i in range(5):
        fn(i)
        clock.advance(0.15)  # wait / 2 between calls
    assert hits == []
    last_call = clock.now - 0.15
    clock.advance(0.15)
    assert len(hits) == 1
    value, fired_at = hits[0]
    assert value == 4
    assert abs(fired_at - (last_call + 0.3)) < 1e-6


def test_debounce_flush_and_cancel():
    clock = FakeClock()
    hits = []
    fn = Debouncer(hits.append, 100, timer_factory=clock.timer)
    assert fn.flush() is False
    fn("a")
    assert fn.pending
    assert fn.flush() is True
    assert hits == ["a"]
    fn("b")
    fn.cancel()
    clock.advance(1)
    assert hits == ["a"]
    assert not fn.pending


def test_stale_timer_does_not_fire_newer_call():
    clock = FakeClock()
    hits = []
    fn = Debouncer(hits.append, 100, timer_factory=clock.timer)
    fn("old")
    stale = clock.timers[0]
    fn("new")
    stale.callback()  # fires despite cancellation (race on a real timer)
    assert hits == []
    clock.advance(0.1)
    assert hits == ["new"]


def test_debounce_real_timer():
    done = threading.Event()
    hits = []

    def record(v):
        hits.append(v)
        done.set()

    fn = debounce(record, 50)
    for i in range(5):
        fn(i)
        time.sleep(0.01)
    assert done.wait(2.0)
    time.sleep(0.1)
    assert hits == [4]


def test_throttle_window():
    clock = FakeClock()
    hits = []
    fn = throttle(hits.append, 100, clock=clock)
    assert fn(1) is True
    clock.now = 0.05
    assert fn(2) is False
    clock.now = 0.1
    assert fn(3) is True
    fn.reset()
    assert fn(4) is True
    assert hits == [1, 3, 4]
