"""Explicit list view state and its pure transitions.

Every user action maps to a function returning a new :class:`ListState`.
The visible rows are never stored; :func:`derive_view` recomputes them
by composing filtering, sorting and pagination.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from ..core.fields import DealField
from ..core.model import Deal, DealStage
from ..core.pagination import Page, clamp_page, paginate, total_pages
from ..core.search import (
    ALL_OWNERS,
    FilterDimension,
    FilterState,
    active_filter_count,
    apply_filters,
)
from ..core.sorting import SortDirection, SortState, sort_deals, toggle_sort
from ..settings import DEFAULT_PAGE_SIZE, ListSettings

ALL_STAGES = "all"


@dataclass(frozen=True)
class ListState:
    """Everything that determines which deals are shown and in which order."""

    filters: FilterState = field(default_factory=FilterState)
    search_term: str = ""
    owner: str = ALL_OWNERS
    sort: SortState = field(default_factory=SortState)
    page_size: int = DEFAULT_PAGE_SIZE
    current_page: int = 1

    @classmethod
    def from_settings(cls, settings: ListSettings) -> ListState:
        """Return the initial state described by *settings*."""
        return cls(
            sort=SortState(DealField(settings.sort_field), SortDirection(settings.sort_direction)),
            page_size=settings.page_size,
        )


@dataclass(frozen=True)
class ListView:
    """Derived, render-ready projection of a :class:`ListState`."""

    page: Page[Deal]
    matching: list[Deal]
    active_filters: int
    has_active_filters: bool

    @property
    def rows(self) -> list[Deal]:
        return self.page.items

    @property
    def page_ids(self) -> list[str]:
        return [deal.id for deal in self.page.items]

    @property
    def is_empty(self) -> bool:
        return not self.matching


# --- filter transitions ------------------------------------------------------
# Any change of what matches sends the user back to the first page.


def set_search_term(state: ListState, term: str) -> ListState:
    return replace(state, search_term=term, current_page=1)


def set_owner(state: ListState, owner: str | None) -> ListState:
    """Narrow to *owner*; ``None`` or ``"all"`` removes the constraint."""
    return replace(state, owner=owner or ALL_OWNERS, current_page=1)


def set_filters(state: ListState, filters: FilterState) -> ListState:
    return replace(state, filters=filters, current_page=1)


def clear_filters(state: ListState) -> ListState:
    """Drop the advanced filter and the toolbar search term."""
    return replace(state, filters=FilterState(), search_term="", current_page=1)


def apply_initial_stage(state: ListState, stage: DealStage | str | None) -> ListState:
    """Restrict to *stage* unless it is missing or ``"all"``."""
    if not stage or stage == ALL_STAGES:
        return state
    value = DealStage(stage).value
    return set_filters(state, state.filters.with_allowed(FilterDimension.STAGES, [value]))


# --- sort and paging -----------------------------------------------------------


def sort_by(state: ListState, field: DealField | str) -> ListState:
    """Apply a header click on *field* and return to the first page."""
    return replace(state, sort=toggle_sort(state.sort, field), current_page=1)


def set_sort(state: ListState, sort: SortState) -> ListState:
    return replace(state, sort=sort, current_page=1)


def go_to_page(state: ListState, page: int, pages: int) -> ListState:
    """Move to *page*, clamped into ``[1, pages]``."""
    return replace(state, current_page=clamp_page(page, pages))


# --- derivation ----------------------------------------------------------------


def matching_deals(deals: Sequence[Deal], state: ListState) -> list[Deal]:
    """Return filtered and sorted deals for *state*."""
    filtered = apply_filters(
        deals, state.filters, search_term=state.search_term, owner=state.owner
    )
    return sort_deals(filtered, state.sort.field, state.sort.direction)


def derive_view(deals: Sequence[Deal], state: ListState) -> ListView:
    """Compose filter, sort and pagination for *state* over *deals*."""
    ordered = matching_deals(deals, state)
    count = active_filter_count(state.filters)
    return ListView(
        page=paginate(ordered, state.page_size, state.current_page),
        matching=ordered,
        active_filters=count,
        has_active_filters=count > 0 or bool(state.search_term),
    )


def clamp_state(deals: Sequence[Deal], state: ListState) -> ListState:
    """Return *state* with ``current_page`` valid for the current matches."""
    pages = total_pages(len(matching_deals(deals, state)), state.page_size)
    page = clamp_page(state.current_page, pages)
    if page == state.current_page:
        return state
    return replace(state, current_page=page)
