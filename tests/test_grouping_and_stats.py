from datetime import datetime, timezone

import pytest

from datagrid.models import ColumnDefinition, ColumnType
from datagrid.services.column_stats import column_stats, summarize
from datagrid.services.grouping import ALL_GROUP, UNGROUPED, group_rows


COLUMNS = [
    ColumnDefinition("team", "team"),
    ColumnDefinition("score", "score", ColumnType.NUMBER),
    ColumnDefinition("played", "played", ColumnType.DATE),
]

ROWS = [
    {"team": "B", "score": 10, "played": "2024-02-01"},
    {"team": "A", "score": "20", "played": "2024-01-01"},
    {"team": "B", "score": None, "played": None},
    {"team": None, "score": "n/a", "played": "garbage"},
]


def test_group_rows_first_seen_order():
    groups = group_rows(ROWS, "team", COLUMNS)
    assert list(groups) == ["B", "A", UNGROUPED]
    assert len(groups["B"]) == 2


def test_group_unknown_column_single_group():
    assert group_rows(ROWS, "ghost", COLUMNS) == {ALL_GROUP: ROWS}


def test_numeric_stats_skip_uncoercible():
    stats = column_stats(ROWS, COLUMNS[1])
    assert stats.count == 4
    assert stats.nulls == 1
    assert stats.unique == 3
    assert stats.min == 10 and stats.max == 20
    assert stats.sum == 30 and stats.avg == 15


def test_date_stats():
    stats = column_stats(ROWS, COLUMNS[2])
    assert stats.min == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert stats.max == datetime(2024, 2, 1, tzinfo=timezone.utc)
    assert stats.avg is None
    assert stats.as_dict()["min"] == "2024-01-01T00:00:00+00:00"


def test_text_stats_and_summary():
    summary = summarize(ROWS, COLUMNS)
    assert set(summary) == {"team", "score", "played"}
    assert summary["team"].as_dict() == {"count": 4, "unique": 2, "nulls": 1}


def test_numeric_stats_skip_out_of_range_values():
    stats = column_stats([{"score": 10**400}, {"score": 5}], COLUMNS[1])
    assert stats.count == 2 and stats.unique == 2
    assert stats.min == 5 and stats.max == 5 and stats.sum == 5


def test_unique_keeps_booleans_apart_from_numbers():
    col = ColumnDefinition("v", "v")
    data = [{"v": 1}, {"v": 1.0}, {"v": True}, {"v": 0}, {"v": False}, {"v": ("a", ["b"])}]
    assert column_stats(data, col).unique == 5


def test_projection_errors_propagate():
    def boom(_row):
        raise ValueError("broken projection")

    cols = [ColumnDefinition("bad", boom, ColumnType.NUMBER)]
    with pytest.raises(ValueError, match="broken projection"):
        group_rows(ROWS, "bad", cols)
    with pytest.raises(ValueError, match="broken projection"):
        column_stats(ROWS, cols[0])
