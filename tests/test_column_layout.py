import json

import pytest

from datagrid.models import ColumnDefinition
from datagrid.services.column_layout import ColumnLayoutManager, LayoutState, parse_layout
from datagrid.services.event_bus import EventBus, GridEvent
from datagrid.services.key_value_store import InMemoryKeyValueStore

KEY = "grid:players"


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def manager(store):
    mgr = ColumnLayoutManager(KEY, ["name", "team", "points"], store)
    mgr.load()
    return mgr


def _persisted(store):
    return json.loads(store.get(KEY))


def test_load_defaults_when_missing(manager):
    assert manager.state == LayoutState.LOADED
    assert manager.order == ["name", "team", "points"]
    assert manager.effective_width("team") == 150


def test_resize_never_below_floor(manager, store):
    assert manager.resize("name", -10_000) == 50
    assert _persisted(store)["widths"] == {"name": 50}
    assert manager.resize("name", 30) == 80


def test_resize_respects_optional_max(store):
    mgr = ColumnLayoutManager(KEY, ["a"], store, max_width=800)
    assert mgr.resize("a", 5000) == 800
    assert mgr.state == LayoutState.MUTATED


def test_resize_unknown_column(manager):
    assert manager.resize("ghost", 10) is None


def test_move_and_persist(manager, store):
    result = manager.move_column("points", "name")
    assert result.changed
    assert manager.order == ["points", "name", "team"]
    assert _persisted(store)["order"] == ["points", "name", "team"]


def test_self_drop_is_noop(manager, store):
    assert manager.move_column("team", "team").changed is False
    assert store.get(KEY) is None


def test_key_command_move(manager):
    manager.apply_key_command("points", "home")
    assert manager.order[0] == "points"


def test_reload_restores_state(manager, store):
    manager.move_column("points", "name")
    manager.resize("team", 20)
    other = ColumnLayoutManager(KEY, ["name", "team", "points"], store)
    layout = other.load()
    assert layout.order == ["points", "name", "team"]
    assert layout.widths == {"team": 170}


def test_reconcile_unknown_and_new_columns(store):
    store.set(KEY, json.dumps({"order": ["team", "ghost", "name"], "widths": {"ghost": 90}}))
    mgr = ColumnLayoutManager(KEY, ["name", "team", "points"], store)
    layout = mgr.load()
    assert layout.order == ["team", "name", "points"]
    assert layout.widths == {}


@pytest.mark.parametrize(
    "raw",
    ["{not json", json.dumps({"order": "name"}), json.dumps({"order": ["a"], "widths": {"a": -3}})],
)
def test_corrupt_record_falls_back(store, raw, caplog):
    store.set(KEY, raw)
    mgr = ColumnLayoutManager(KEY, ["name", "team"], store)
    with caplog.at_level("WARNING"):
        layout = mgr.load()
    assert layout.order == ["name", "team"]
    assert caplog.records


def test_hide_show_and_last_visible(manager, store):
    assert manager.hide("team") is True
    assert manager.visible_order() == ["name", "points"]
    assert _persisted(store)["hidden"] == ["team"]
    assert manager.hide("name") is True
    assert manager.hide("points") is False
    assert manager.toggle_visibility("team") is True
    assert manager.is_visible("team")


def test_reset_writes_defaults(manager, store):
    manager.resize("name", 100)
    manager.move_column("points", "name")
    layout = manager.reset()
    assert manager.state == LayoutState.RESET
    assert layout.order == ["name", "team", "points"]
    assert _persisted(store) == {"order": ["name", "team", "points"], "widths": {}, "hidden": []}


def test_mutation_auto_loads(store):
    store.set(KEY, json.dumps({"order": ["team", "name"]}))
    mgr = ColumnLayoutManager(KEY, ["name", "team"], store)
    mgr.resize("name", 10)
    assert mgr.order == ["team", "name"]


def test_write_failure_is_swallowed(caplog):
    class BrokenStore(InMemoryKeyValueStore):
        def set(self, key, value):
            raise OSError("disk full")

    mgr = ColumnLayoutManager(KEY, ["a", "b"], BrokenStore())
    with caplog.at_level("WARNING"):
        assert mgr.resize("a", 10) == 160
    assert "write failed" in caplog.text


def test_for_columns_and_events(store):
    bus = EventBus()
    seen = []
    bus.subscribe(GridEvent.LAYOUT_CHANGED, lambda evt: seen.append(evt.payload["reason"]))
    cols = [ColumnDefinition("a", "a", width=90), ColumnDefinition("b", "b")]
    mgr = ColumnLayoutManager.for_columns(KEY, cols, store, event_bus=bus)
    assert mgr.effective_width("a") == 90
    mgr.resize("a", 10)
    mgr.move_column("b", "a")
    assert seen == ["resize", "reorder"]


def test_parse_layout_validation():
    assert parse_layout({"order": ["a"]}).widths == {}
    assert parse_layout({"order": ["a"], "hidden": "a"}) is None
    assert parse_layout([]) is None
