from datagrid.services.event_bus import EventBus, GridEvent


def test_subscribe_publish_and_payload():
    bus = EventBus()
    seen = []
    bus.subscribe(GridEvent.SORT_CHANGED, lambda evt: seen.append(evt.payload))
    evt = bus.publish(GridEvent.SORT_CHANGED, {"column": "name"})
    assert seen == [{"column": "name"}]
    assert evt.name == "sort_changed"


def test_once_subscription():
    bus = EventBus()
    hits = []
    bus.subscribe("custom", lambda evt: hits.append(1), once=True)
    bus.publish("custom")
    bus.publish("custom")
    assert hits == [1]
    assert bus.subscriber_count("custom") == 0


def test_unsubscribe_and_cancel():
    bus = EventBus()
    hits = []
    sub = bus.subscribe(GridEvent.PAGE_CHANGED, lambda evt: hits.append(evt.payload))
    sub.cancel()
    bus.publish(GridEvent.PAGE_CHANGED, 2)
    bus.unsubscribe(sub)
    assert hits == []
    assert bus.subscriber_count(GridEvent.PAGE_CHANGED) == 0


def test_handler_errors_isolated():
    bus = EventBus()
    hits = []

    def boom(evt):
        raise RuntimeError("handler failed")

    bus.subscribe(GridEvent.DATA_REFRESHED, boom)
    bus.subscribe(GridEvent.DATA_REFRESHED, lambda evt: hits.append(True))
    bus.publish(GridEvent.DATA_REFRESHED)
    assert hits == [True]
    assert len(bus.errors) == 1


def test_tracing():
    bus = EventBus()
    bus.enable_tracing(True, capacity=2)
    for i in range(3):
        bus.publish(GridEvent.FILTER_CHANGED, {"i": i})
    entries = bus.recent_trace_entries()
    assert len(entries) == 2
    assert entries[-1].name == "filter_changed"
