"""Page-scoped selection of deals for bulk actions."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class SelectionSet:
    """Identifiers of deals chosen for a bulk action.

    ``select_all`` covers only the identifiers of the page the user is
    looking at, so bulk actions act on exactly what was visible.
    """

    def __init__(self, ids: Iterable[str] = ()) -> None:
        """Start with *ids* selected."""
        self._ids: dict[str, None] = dict.fromkeys(ids)

    def __contains__(self, deal_id: object) -> bool:
        return deal_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def contains(self, deal_id: str) -> bool:
        return deal_id in self._ids

    def ids(self) -> list[str]:
        """Return selected identifiers in selection order."""
        return list(self._ids)

    def toggle(self, deal_id: str) -> bool:
        """Flip membership of *deal_id* and return whether it is now selected."""
        if deal_id in self._ids:
            del self._ids[deal_id]
            return False
        self._ids[deal_id] = None
        return True

    def select(self, deal_id: str, checked: bool) -> None:
        """Set membership of *deal_id* explicitly."""
        if checked:
            self._ids[deal_id] = None
        else:
            self._ids.pop(deal_id, None)

    def select_all(self, page_ids: Iterable[str]) -> None:
        """Replace the selection with the identifiers of the current page."""
        self._ids = dict.fromkeys(page_ids)

    def all_selected(self, page_ids: Iterable[str]) -> bool:
        """Return ``True`` when every id of a non-empty page is selected."""
        ids = list(page_ids)
        return bool(ids) and all(i in self._ids for i in ids)

    def clear(self) -> None:
        self._ids.clear()

    def prune(self, valid_ids: Iterable[str]) -> list[str]:
        """Drop identifiers missing from *valid_ids* and return them."""
        valid = set(valid_ids)
        removed = [i for i in self._ids if i not in valid]
        for deal_id in removed:
            del self._ids[deal_id]
        return removed
