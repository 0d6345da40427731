"""
In-memory pagination over an already-ordered result set.

Pagination happens after the full result set has been fetched and
formatted, so ``total_pages`` always reflects every record the user owns.
The engine assumes validated positive integers; ``validate_page_params``
is the caller-side gate that turns bad input into ``ValidationError``.

Example:
    >>> page = paginate(list(range(25)), page=3, page_size=10)
    >>> page.items
    [20, 21, 22, 23, 24]
    >>> page.total_pages
    3
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from order_spine.core.errors import ValidationError

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of results plus the page count over the full set.

    Attributes:
        items: Items on the requested page (may be empty)
        total_pages: ``ceil(total / page_size)``; 0 for an empty set
        total: Size of the full result set
        page: Requested page number (1-indexed)
        page_size: Requested page size
    """

    items: list[T] = field(default_factory=list)
    total_pages: int = 0
    total: int = 0
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


def validate_page_params(
    page: int | None,
    page_size: int | None,
) -> tuple[int, int]:
    """Apply defaults and reject non-positive paging parameters.

    Raises:
        ValidationError: If ``page`` or ``page_size`` is less than 1.
    """
    page = DEFAULT_PAGE if page is None else page
    page_size = DEFAULT_PAGE_SIZE if page_size is None else page_size

    if page < 1:
        raise ValidationError("page must be >= 1", field="page", value=page)
    if page_size < 1:
        raise ValidationError("pageSize must be >= 1", field="pageSize", value=page_size)
    return page, page_size


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice ``items`` into the requested page.

    A page past the end yields an empty slice, not an error.
    """
    total = len(items)
    total_pages = math.ceil(total / page_size)

    start = (page - 1) * page_size
    if start >= total:
        return Page(items=[], total_pages=total_pages, total=total, page=page, page_size=page_size)

    end = min(start + page_size, total)
    return Page(
        items=list(items[start:end]),
        total_pages=total_pages,
        total=total,
        page=page,
        page_size=page_size,
    )
