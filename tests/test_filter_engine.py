import pytest

from datagrid.models import ColumnDefinition, ColumnType, FilterClause, FilterOperator
from datagrid.services.filter_engine import coerce_operator, filter_rows, matches_filter


@pytest.fixture
def columns():
    return [
        ColumnDefinition("name", "name"),
        ColumnDefinition("amount", "amount", ColumnType.NUMBER),
        ColumnDefinition("secret", "secret", filterable=False),
    ]


@pytest.fixture
def rows():
    return [
        {"id": 1, "name": "Bravo", "amount": 50, "secret": "zulu"},
        {"id": 2, "name": "Alpha", "amount": 150, "secret": "yankee"},
        {"id": 3, "name": "Charlie", "amount": "100", "secret": "xray"},
        {"id": 4, "name": None, "amount": None, "secret": None},
    ]


def _ids(rows):
    return [r["id"] for r in rows]


def test_coerce_operator():
    assert coerce_operator(None) is FilterOperator.CONTAINS
    assert coerce_operator("startsWith") is FilterOperator.STARTS_WITH
    assert coerce_operator("regex") is None


@pytest.mark.parametrize(
    "operator, value, expected",
    [
        ("equals", "alpha", [2]),
        ("contains", "ar", [3]),
        ("startsWith", "b", [1]),
        ("endsWith", "O", [1]),
    ],
)
def test_text_operators_case_insensitive(rows, columns, operator, value, expected):
    clause = FilterClause("name", operator, value)
    assert _ids(filter_rows(rows, [clause], columns)) == expected


def test_numeric_operators_coerce_text(rows, columns):
    assert _ids(filter_rows(rows, [FilterClause("amount", "gte", 100)], columns)) == [2, 3]
    assert _ids(filter_rows(rows, [FilterClause("amount", "lt", "100")], columns)) == [1]
    assert _ids(filter_rows(rows, [FilterClause("amount", "gt", "abc")], columns)) == []


def test_between_inclusive_and_malformed(rows, columns):
    ok = FilterClause("amount", FilterOperator.BETWEEN, [50, 100])
    assert _ids(filter_rows(rows, [ok], columns)) == [1, 3]
    bad = FilterClause("amount", FilterOperator.BETWEEN, 75)
    assert filter_rows(rows, [bad], columns) == []


def test_in_and_not_in(rows, columns):
    assert _ids(filter_rows(rows, [FilterClause("name", "in", ["Alpha", "Bravo"])], columns)) == [1, 2]
    assert _ids(filter_rows(rows, [FilterClause("name", "notIn", {"Alpha"})], columns)) == [1, 3]
    assert filter_rows(rows, [FilterClause("name", "in", "Alpha")], columns) == []


def test_null_values(rows, columns):
    assert matches_filter(None, FilterClause("name", "equals", "")) is True
    assert matches_filter(None, FilterClause("name", "contains", "a")) is False
    assert matches_filter(None, FilterClause("name", "gt", 1)) is False


def test_clauses_are_conjunctive(rows, columns):
    clauses = [FilterClause("amount", "gte", 50), FilterClause("name", "contains", "a")]
    assert _ids(filter_rows(rows, clauses, columns)) == [1, 2, 3]
    clauses.append(FilterClause("name", "startsWith", "c"))
    assert _ids(filter_rows(rows, clauses, columns)) == [3]


def test_unknown_column_or_operator_ignored(rows, columns):
    clauses = [FilterClause("ghost", "equals", "x"), FilterClause("name", "regex", ".*")]
    assert filter_rows(rows, clauses, columns) == rows


def test_global_search_skips_non_filterable(rows, columns):
    assert _ids(filter_rows(rows, [], columns, "150")) == [2]
    assert filter_rows(rows, [], columns, "yankee") == []
    assert filter_rows(rows, [], columns, "   ") == rows


def test_input_not_mutated(rows, columns):
    before = list(rows)
    filter_rows(rows, [FilterClause("name", "equals", "Alpha")], columns)
    assert rows == before


def test_huge_int_is_left_out_of_numeric_filters(columns):
    data = [{"id": 1, "amount": 10**400}, {"id": 2, "amount": 5}]
    clause = FilterClause("amount", FilterOperator.GT, 1)
    assert _ids(filter_rows(data, [clause], columns)) == [2]


def test_in_set_with_unhashable_tuple_value(columns):
    data = [{"id": 1, "name": ("a", ["b"])}, {"id": 2, "name": "x"}]
    clause = FilterClause("name", FilterOperator.IN, {"x"})
    assert _ids(filter_rows(data, [clause], columns)) == [2]
    clause = FilterClause("name", FilterOperator.NOT_IN, frozenset({"x"}))
    assert _ids(filter_rows(data, [clause], columns)) == [1]


def test_projection_errors_propagate(rows):
    def boom(_row):
        raise KeyError("broken projection")

    cols = [ColumnDefinition("bad", boom)]
    with pytest.raises(KeyError, match="broken projection"):
        filter_rows(rows, [FilterClause("bad", FilterOperator.EQUALS, 1)], cols)
    with pytest.raises(KeyError, match="broken projection"):
        filter_rows(rows, [], cols, global_search="a")
