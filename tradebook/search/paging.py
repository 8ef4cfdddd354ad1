"""Pagination and sort specifications for trade search results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from tradebook.search.predicate import TRADE_FIELDS


@final
@dataclass(frozen=True, slots=True)
class Sort:
    """Order by one trade-level field; ties break on trade id then version.

    An unknown field is reported by the engine as INVALID_SORT; the store
    ignores it and keeps the trade id order.
    """

    field: str = "trade_id"
    descending: bool = False

    @property
    def is_valid(self) -> bool:
        return self.field in TRADE_FIELDS


DEFAULT_SORT = Sort()


@final
@dataclass(frozen=True, slots=True)
class Page[T]:
    """One zero-indexed page of results plus the size of the full result set."""

    items: tuple[T, ...]
    page: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total_items // self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages


def paginate[T](items: list[T], page: int, page_size: int) -> Page[T]:
    """Slice an already-ordered, already-deduplicated result list."""
    start = page * page_size
    return Page(
        items=tuple(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_items=len(items),
    )
