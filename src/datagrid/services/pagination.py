"""Pagination math.

``paginate`` slices whatever page index it is given; clamping the page into
range is left to the caller (``clamp_page`` helps with that).
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple, TypeVar

from datagrid.models import PageResult

T = TypeVar("T")

__all__ = ["total_pages", "clamp_page", "paginate", "page_window"]


def _check_page_size(page_size: int) -> None:
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")


def total_pages(total_items: int, page_size: int) -> int:
    _check_page_size(page_size)
    return math.ceil(total_items / page_size) if total_items > 0 else 0


def clamp_page(page: int, pages: int) -> int:
    return max(1, min(page, max(pages, 1)))


def paginate(rows: Sequence[T], page: int, page_size: int) -> PageResult[T]:
    """Return the ``page``-th (1-based) slice of ``rows``.

    Pages outside ``[1, total_pages]`` yield empty data rather than an error.
    """
    _check_page_size(page_size)
    items = len(rows)
    start = (page - 1) * page_size
    data: List[T] = list(rows[start : start + page_size]) if start >= 0 else []
    return PageResult(data=data, total_pages=total_pages(items, page_size), total_items=items)


def page_window(page: int, page_size: int, total_items: int) -> Tuple[int, int]:
    """1-based inclusive (first, last) item numbers shown on ``page``; (0, 0) if none."""
    _check_page_size(page_size)
    first = (page - 1) * page_size + 1
    if page < 1 or first > total_items:
        return (0, 0)
    return (first, min(page * page_size, total_items))
