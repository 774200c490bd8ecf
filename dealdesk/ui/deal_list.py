"""Controller composing the deals list view from its parts.

:class:`DealListController` owns the explicit :class:`ListState`, the
column configuration, the selection and the inline edit dispatcher. Record
storage is delegated to the ``update_deal``, ``delete_deals`` and
``import_deals`` collaborators; the controller never mutates deals itself
and receives the new collection through :meth:`DealListController.set_deals`.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from ..config import (
    FILTERS_KEY,
    MemoryPreferenceStore,
    PreferenceStore,
    read_preference,
    write_preference,
)
from ..core.fields import DealField
from ..core.model import Deal, DealStage
from ..core.search import FilterDimension, FilterOptions, FilterState, available_options
from ..i18n import _, ngettext
from ..services.directory import OwnerDirectory, OwnerOption, load_owner_options
from ..settings import ListSettings
from ..telemetry import log_event
from . import list_state as transitions
from .column_config import ColumnConfigStore
from .inline_edit import EditOutcome, InlineEditDispatcher, UpdateDeal
from .list_state import ListState, ListView, derive_view
from .notices import Notice, NoticeLevel, NoticeSink, discard_notice
from .selection import SelectionSet

logger = logging.getLogger(__name__)

DeleteDeals = Callable[[list[str]], Awaitable[Any] | Any]
ImportDeals = Callable[[list[dict[str, Any]]], Awaitable[Any] | Any]

# Key of the toolbar search text inside the persisted filter record.
TOOLBAR_TERM_KEY = "toolbarSearchTerm"


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class DealListController:
    """Drive the deals list: filters, sort, pages, columns, selection, edits."""

    def __init__(
        self,
        deals: Iterable[Deal] = (),
        *,
        update_deal: UpdateDeal,
        delete_deals: DeleteDeals | None = None,
        import_deals: ImportDeals | None = None,
        store: PreferenceStore | None = None,
        owner_directory: OwnerDirectory | None = None,
        notify: NoticeSink | None = None,
        settings: ListSettings | None = None,
        initial_stage: DealStage | str | None = None,
    ) -> None:
        """Wire collaborators; persisted state is merged by :meth:`mount`."""
        self.settings = settings or ListSettings()
        self._store: PreferenceStore = store if store is not None else MemoryPreferenceStore()
        self._deals: list[Deal] = list(deals)
        self._state = ListState.from_settings(self.settings)
        self._delete_deals = delete_deals
        self._import_deals = import_deals
        self._owner_directory = owner_directory
        self._notify = notify or discard_notice
        self._initial_stage = initial_stage
        self.columns = ColumnConfigStore(
            self._store,
            min_width=self.settings.min_column_width,
            default_width=self.settings.default_column_width,
        )
        self.selection = SelectionSet()
        self.editor = InlineEditDispatcher(update_deal, self._notify)
        self.owner_options: list[OwnerOption] = []
        self.mounted = False

    # ------------------------------------------------------------------
    # lifecycle
    async def mount(self) -> None:
        """Load persisted columns and filters, then the owner dropdown."""
        self.columns.load()
        self._state = self._restore_filters(self._state)
        self._state = transitions.apply_initial_stage(self._state, self._initial_stage)
        self._state = transitions.clamp_state(self._deals, self._state)
        self.owner_options = await load_owner_options(self._owner_directory)
        self.mounted = True

    def _restore_filters(self, state: ListState) -> ListState:
        raw = read_preference(self._store, FILTERS_KEY)
        if raw is None:
            return state
        if not isinstance(raw, Mapping):
            logger.warning("Discarding malformed saved filters: %r", raw)
            return state
        try:
            filters = FilterState.from_payload(raw)
        except ValidationError as exc:
            logger.warning("Discarding malformed saved filters: %s", exc)
            return state
        term = raw.get(TOOLBAR_TERM_KEY)
        state = transitions.set_filters(state, filters)
        return transitions.set_search_term(state, term if isinstance(term, str) else "")

    def _persist_filters(self) -> None:
        payload = self._state.filters.to_payload()
        payload[TOOLBAR_TERM_KEY] = self._state.search_term
        write_preference(self._store, FILTERS_KEY, payload)

    # ------------------------------------------------------------------
    # collection and derived view
    @property
    def state(self) -> ListState:
        return self._state

    @property
    def deals(self) -> list[Deal]:
        return list(self._deals)

    def set_deals(self, deals: Iterable[Deal]) -> None:
        """Replace the collection, pruning the selection to the new page."""
        self._deals = list(deals)
        self._state = transitions.clamp_state(self._deals, self._state)
        self._scope_selection()

    def view(self) -> ListView:
        """Return the rows of the current page and derived counters."""
        return derive_view(self._deals, self._state)

    def filter_options(self) -> FilterOptions:
        return available_options(self._deals)

    # ------------------------------------------------------------------
    # filter, sort and paging actions
    def _apply(self, state: ListState, *, persist: bool = False) -> None:
        self._state = transitions.clamp_state(self._deals, state)
        self._scope_selection()
        if persist:
            self._persist_filters()

    def search(self, term: str) -> None:
        self._apply(transitions.set_search_term(self._state, term), persist=True)

    def set_owner(self, owner: str | None) -> None:
        self._apply(transitions.set_owner(self._state, owner))

    def set_filters(self, filters: FilterState) -> None:
        self._apply(transitions.set_filters(self._state, filters), persist=True)

    def set_filter_values(self, dimension: FilterDimension | str, values: Iterable[str]) -> None:
        """Replace the allowed values of one categorical *dimension*."""
        filters = self._state.filters.with_allowed(FilterDimension(dimension), values)
        self.set_filters(filters)

    def clear_filters(self) -> None:
        self._apply(transitions.clear_filters(self._state), persist=True)

    def sort_by(self, field: DealField | str) -> None:
        self._apply(transitions.sort_by(self._state, field))

    def go_to_page(self, page: int) -> None:
        self._state = transitions.go_to_page(self._state, page, self.view().page.total_pages)
        self._scope_selection()

    def next_page(self) -> None:
        self.go_to_page(self._state.current_page + 1)

    def previous_page(self) -> None:
        self.go_to_page(self._state.current_page - 1)

    # ------------------------------------------------------------------
    # selection
    def _scope_selection(self) -> None:
        removed = self.selection.prune(self.view().page_ids)
        if removed:
            logger.debug("Dropped %d ids outside the current page from selection", len(removed))

    def _on_page(self, deal_id: str) -> bool:
        if deal_id in self.view().page_ids:
            return True
        logger.debug("Ignoring selection of %s: not on the current page", deal_id)
        return False

    def toggle_selection(self, deal_id: str) -> bool:
        """Flip *deal_id*; ids not rendered on the current page are ignored."""
        if not self._on_page(deal_id):
            return False
        return self.selection.toggle(deal_id)

    def select(self, deal_id: str, checked: bool) -> None:
        if checked and not self._on_page(deal_id):
            return
        self.selection.select(deal_id, checked)

    def select_all(self, checked: bool = True) -> None:
        """Select exactly the deals of the current page, or clear."""
        if checked:
            self.selection.select_all(self.view().page_ids)
        else:
            self.selection.clear()

    @property
    def page_fully_selected(self) -> bool:
        return self.selection.all_selected(self.view().page_ids)

    def selected_deals(self) -> list[Deal]:
        return [deal for deal in self._deals if deal.id in self.selection]

    # ------------------------------------------------------------------
    # delegated mutations
    async def edit_cell(self, deal_id: str, field: DealField | str, value: Any) -> EditOutcome:
        """Forward an inline edit of one cell."""
        return await self.editor.submit(deal_id, field, value)

    async def delete_selected(self) -> bool:
        """Delete the selected deals; the selection is kept on failure."""
        ids = self.selection.ids()
        if not ids:
            return False
        if not await self._delete(ids):
            self._notify(
                Notice(
                    _("Delete failed"),
                    ngettext(
                        "Failed to delete {count} deal",
                        "Failed to delete {count} deals",
                        len(ids),
                    ).format(count=len(ids)),
                    NoticeLevel.ERROR,
                )
            )
            return False
        self.selection.clear()
        self._notify(
            Notice(
                _("Deals deleted"),
                ngettext(
                    "Successfully deleted {count} deal",
                    "Successfully deleted {count} deals",
                    len(ids),
                ).format(count=len(ids)),
            )
        )
        return True

    async def delete_deal(self, deal_id: str) -> bool:
        """Delete a single deal from its row menu."""
        deal = next((d for d in self._deals if d.id == deal_id), None)
        name = (deal.project_name if deal is not None else None) or _("deal")
        if not await self._delete([deal_id]):
            self._notify(
                Notice(
                    _("Delete failed"),
                    _("Failed to delete {name}").format(name=name),
                    NoticeLevel.ERROR,
                )
            )
            return False
        self.selection.select(deal_id, False)
        self._notify(Notice(_("Deal deleted"), _("Successfully deleted {name}").format(name=name)))
        return True

    async def _delete(self, ids: Sequence[str]) -> bool:
        if self._delete_deals is None:
            raise RuntimeError("no delete_deals collaborator configured")
        start = time.monotonic()
        try:
            await _call(self._delete_deals, list(ids))
        except Exception as exc:
            log_event(
                "DEALS_DELETE_FAILED",
                {"ids": list(ids), "error": str(exc)},
                start_time=start,
                level=logging.WARNING,
            )
            return False
        log_event("DEALS_DELETED", {"ids": list(ids)}, start_time=start)
        return True

    async def import_deals(self, records: Iterable[Mapping[str, Any]]) -> bool:
        """Hand partial deal records to the import collaborator."""
        if self._import_deals is None:
            raise RuntimeError("no import_deals collaborator configured")
        batch = [dict(record) for record in records]
        start = time.monotonic()
        try:
            await _call(self._import_deals, batch)
        except Exception as exc:
            log_event(
                "DEALS_IMPORT_FAILED",
                {"count": len(batch), "error": str(exc)},
                start_time=start,
                level=logging.WARNING,
            )
            self._notify(
                Notice(_("Import failed"), _("Failed to import deals"), NoticeLevel.ERROR)
            )
            return False
        log_event("DEALS_IMPORTED", {"count": len(batch)}, start_time=start)
        self._notify(
            Notice(
                _("Deals imported"),
                ngettext(
                    "Imported {count} deal", "Imported {count} deals", len(batch)
                ).format(count=len(batch)),
            )
        )
        return True
