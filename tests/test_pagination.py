import pytest

from datagrid.services.pagination import clamp_page, page_window, paginate, total_pages


def test_total_pages():
    assert total_pages(0, 10) == 0
    assert total_pages(10, 10) == 1
    assert total_pages(11, 10) == 2


def test_paginate_slices():
    rows = list(range(1, 24))
    page = paginate(rows, 3, 10)
    assert page.data == [21, 22, 23]
    assert page.total_pages == 3
    assert page.total_items == 23


def test_out_of_range_pages_empty():
    rows = [1, 2, 3]
    assert paginate(rows, 5, 2).data == []
    assert paginate(rows, 0, 2).data == []
    assert paginate(rows, -1, 2).total_items == 3


def test_empty_rows():
    page = paginate([], 1, 25)
    assert page.data == [] and page.total_pages == 0 and page.total_items == 0


def test_invalid_page_size_rejected():
    with pytest.raises(ValueError):
        paginate([1], 1, 0)


def test_clamp_page():
    assert clamp_page(0, 3) == 1
    assert clamp_page(9, 3) == 3
    assert clamp_page(4, 0) == 1


def test_page_window():
    assert page_window(2, 10, 23) == (11, 20)
    assert page_window(3, 10, 23) == (21, 23)
    assert page_window(4, 10, 23) == (0, 0)
