"""Cross-module behavior of the grid engine on generated data."""

import random

import pytest

from datagrid import (
    ColumnDefinition,
    ColumnType,
    FilterClause,
    SortDirection,
    SortKey,
    debounce,
    filter_rows,
    paginate,
    sort_rows,
)
from datagrid.services.column_layout import ColumnLayoutManager
from datagrid.services.key_value_store import InMemoryKeyValueStore
from datagrid.services.selection import SelectionModel

COLUMNS = [
    ColumnDefinition("id", "id", ColumnType.NUMBER),
    ColumnDefinition("name", "name"),
    ColumnDefinition("amount", "amount", ColumnType.NUMBER),
    ColumnDefinition("group", "group"),
]


@pytest.fixture
def random_rows():
    rng = random.Random(1234)
    rows = []
    for i in range(60):
        rows.append(
            {
                "id": i,
                "name": rng.choice(["alpha", "Beta", "gamma", None, "item2", "item10"]),
                "amount": rng.choice([None, 1, 2, 3, "4", 5.5]),
                "group": rng.choice(["x", "y"]),
            }
        )
    return rows


def test_concrete_scenario(grid_rows):
    by_amount = sort_rows(grid_rows, [SortKey("amount", SortDirection.DESC)], COLUMNS)
    assert [r["id"] for r in by_amount] == [2, 3, 1]
    filtered = filter_rows(by_amount, [FilterClause("amount", "gte", 100)], COLUMNS)
    assert [r["id"] for r in filtered] == [2, 3]
    page = paginate(filtered, 1, 1)
    assert page.data == [grid_rows[1]]
    assert page.total_pages == 2
    assert page.total_items == 2


def test_sort_is_stable_and_repeatable(random_rows):
    keys = [SortKey("group", SortDirection.ASC, 0), SortKey("amount", SortDirection.DESC, 1)]
    once = sort_rows(random_rows, keys, COLUMNS)
    assert sort_rows(once, keys, COLUMNS) == once
    # ties on every key keep ascending id (input) order
    for a, b in zip(once, once[1:]):
        if (a["group"], a["amount"]) == (b["group"], b["amount"]):
            assert a["id"] < b["id"]


def test_filter_idempotent(random_rows):
    clauses = [FilterClause("amount", "gte", 2), FilterClause("group", "equals", "x")]
    once = filter_rows(random_rows, clauses, COLUMNS)
    assert filter_rows(once, clauses, COLUMNS) == once


@pytest.mark.parametrize("page_size", [1, 7, 25, 60, 100])
def test_pages_cover_rows_exactly(random_rows, page_size):
    rows = sort_rows(random_rows, [SortKey("name")], COLUMNS)
    first = paginate(rows, 1, page_size)
    joined = []
    for page in range(1, first.total_pages + 1):
        joined.extend(paginate(rows, page, page_size).data)
    assert joined == rows


def test_null_ordering(random_rows):
    asc = sort_rows(random_rows, [SortKey("amount", SortDirection.ASC)], COLUMNS)
    desc = sort_rows(random_rows, [SortKey("amount", SortDirection.DESC)], COLUMNS)
    nulls = sum(1 for r in random_rows if r["amount"] is None)
    assert nulls > 0
    assert all(r["amount"] is None for r in asc[:nulls])
    assert all(r["amount"] is not None for r in asc[nulls:])
    assert all(r["amount"] is None for r in desc[-nulls:])


def test_numeric_aware_collation():
    rows = [{"name": n} for n in ["item2", "item10", "item1"]]
    out = sort_rows(rows, [SortKey("name")], COLUMNS)
    assert [r["name"] for r in out] == ["item1", "item2", "item10"]


def test_selection_persists_after_resort():
    rows = [{"id": "r1", "name": "b"}, {"id": "r2", "name": "a"}]
    sel = SelectionModel()
    sel.select(rows[0])
    resorted = sort_rows(rows, [SortKey("name")], COLUMNS)
    assert "r1" in sel.selected_ids
    assert sel.selected_rows(resorted) == [rows[0]]


def test_debounce_collapses_calls():
    scheduled = []

    class Timer:
        def __init__(self, seconds, callback):
            self.seconds = seconds
            self.callback = callback
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def factory(seconds, callback):
        timer = Timer(seconds, callback)
        scheduled.append(timer)
        return timer

    hits = []
    fn = debounce(hits.append, 200, timer_factory=factory)
    for i in range(5):
        fn(i)
    live = [t for t in scheduled if not t.cancelled]
    assert len(live) == 1 and live[0].seconds == pytest.approx(0.2)
    live[0].callback()
    assert hits == [4]


def test_resize_floor():
    mgr = ColumnLayoutManager("g", ["a"], InMemoryKeyValueStore(), min_width=50)
    current = mgr.effective_width("a")
    assert mgr.resize("a", -(current + 500)) == 50
