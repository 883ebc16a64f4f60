"""Page slicing shared by all screener tables."""

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

SHOW_ALL = -1
PAGE_LIMITS: tuple[int, ...] = (20, 50, 100, SHOW_ALL)


@dataclass
class Page(Generic[T]):
    """One page of a filtered, sorted table."""

    items: list[T]
    page: int
    total_pages: int
    total: int
    limit: int


def paginate(rows: list[T], page: int = 0, limit: int = 20) -> Page[T]:
    """Slice ``rows`` to the requested zero-based page.

    ``limit == -1`` (SHOW_ALL) returns everything as a single page. The page
    index is clamped into [0, total_pages - 1]; an empty table has one
    (empty) page.
    """
    total = len(rows)
    if limit == SHOW_ALL or limit <= 0:
        return Page(items=list(rows), page=0, total_pages=1, total=total, limit=SHOW_ALL)

    total_pages = max(1, math.ceil(total / limit))
    page = min(max(page, 0), total_pages - 1)
    start = page * limit
    return Page(
        items=rows[start:start + limit],
        page=page,
        total_pages=total_pages,
        total=total,
        limit=limit,
    )
