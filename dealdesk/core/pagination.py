"""Fixed-size page slicing."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of an ordered sequence."""

    items: list[T]
    current_page: int
    total_pages: int
    total_items: int
    page_size: int

    @property
    def start_index(self) -> int:
        """Return zero-based offset of the first item on the page."""
        return (self.current_page - 1) * self.page_size

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


def total_pages(count: int, page_size: int) -> int:
    """Return ``ceil(count / page_size)`` with a minimum of one page."""
    if page_size < 1:
        raise ValueError(f"page size must be positive, got {page_size}")
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, pages: int) -> int:
    """Clamp *page* into ``[1, pages]``."""
    return min(max(1, page), max(1, pages))


def paginate(items: Sequence[T], page_size: int, current_page: int) -> Page[T]:
    """Return the clamped *current_page* of *items*."""
    pages = total_pages(len(items), page_size)
    page = clamp_page(current_page, pages)
    start = (page - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        current_page=page,
        total_pages=pages,
        total_items=len(items),
        page_size=page_size,
    )
