"""Column visibility, order and width state for the deals list."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any

from ..columns import DEFAULT_COLUMNS, ColumnDescriptor, default_column_width
from ..config import (
    COLUMN_LAYOUT_KEY,
    COLUMN_WIDTHS_KEY,
    MemoryPreferenceStore,
    PreferenceStore,
    read_preference,
    write_preference,
)
from ..core.fields import DealField, resolve_field
from ..errors import ResizeInProgressError, UnknownFieldError
from ..settings import DEFAULT_COLUMN_WIDTH, MIN_COLUMN_WIDTH

logger = logging.getLogger(__name__)


@dataclass
class _ResizeSession:
    field: DealField
    start_x: float
    start_width: int
    moved: bool = False


class ColumnConfigStore:
    """Own column descriptors and widths and persist them independently.

    Layout (visibility and order) and widths are stored under separate
    keys so a corrupt record of one kind never resets the other.
    """

    def __init__(
        self,
        store: PreferenceStore | None = None,
        *,
        defaults: Sequence[ColumnDescriptor] = DEFAULT_COLUMNS,
        min_width: int = MIN_COLUMN_WIDTH,
        default_width: int = DEFAULT_COLUMN_WIDTH,
    ) -> None:
        """Start from *defaults*; call :meth:`load` to merge persisted state."""
        self._store: PreferenceStore = store if store is not None else MemoryPreferenceStore()
        self._defaults = tuple(defaults)
        self._min_width = min_width
        self._default_width = default_width
        self._columns: list[ColumnDescriptor] = list(self._defaults)
        self._widths: dict[DealField, int] = self._default_widths()
        self._session: _ResizeSession | None = None

    # ------------------------------------------------------------------
    # loading
    def load(self) -> None:
        """Merge persisted layout and widths over the defaults."""
        self._columns = self._merge_layout(read_preference(self._store, COLUMN_LAYOUT_KEY))
        self._widths = self._merge_widths(read_preference(self._store, COLUMN_WIDTHS_KEY))

    def _default_widths(self) -> dict[DealField, int]:
        return {
            column.field: default_column_width(column.field, self._default_width)
            for column in self._defaults
        }

    def _merge_layout(self, raw: Any) -> list[ColumnDescriptor]:
        defaults = {column.field: column for column in self._defaults}
        if raw is None:
            return list(self._defaults)
        if not isinstance(raw, list) or not all(isinstance(e, dict) for e in raw):
            logger.warning("Discarding malformed column layout: %r", raw)
            return list(self._defaults)
        merged = dict(defaults)
        for entry in raw:
            try:
                field = DealField(entry.get("field"))
            except ValueError:
                continue
            if field not in merged:
                continue
            column = merged[field]
            visible = entry.get("visible")
            if isinstance(visible, bool):
                column = replace(column, visible=visible)
            order = entry.get("order")
            if isinstance(order, int) and not isinstance(order, bool):
                column = replace(column, order=order)
            merged[field] = column
        return _renumber(merged.values(), defaults)

    def _merge_widths(self, raw: Any) -> dict[DealField, int]:
        widths = self._default_widths()
        if raw is None:
            return widths
        if not isinstance(raw, dict):
            logger.warning("Discarding malformed column widths: %r", raw)
            return widths
        parsed: dict[DealField, int] = {}
        for name, value in raw.items():
            try:
                field = DealField(name)
            except ValueError:
                continue
            if field not in widths:
                continue
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
            ):
                logger.warning("Discarding malformed column widths: %r", raw)
                return self._default_widths()
            parsed[field] = max(self._min_width, int(value))
        widths.update(parsed)
        return widths

    # ------------------------------------------------------------------
    # queries
    @property
    def min_width(self) -> int:
        return self._min_width

    def columns(self) -> list[ColumnDescriptor]:
        """Return all descriptors sorted by ``order``."""
        return sorted(self._columns, key=lambda c: c.order)

    def visible_columns(self) -> list[ColumnDescriptor]:
        """Return visible descriptors sorted by ``order``."""
        return [c for c in self.columns() if c.visible]

    def width(self, field: DealField | str) -> int:
        """Return current width of *field* with the default as fallback."""
        try:
            resolved = resolve_field(field)
        except UnknownFieldError:
            return self._default_width
        return self._widths.get(resolved, self._default_width)

    def widths(self) -> dict[DealField, int]:
        return dict(self._widths)

    @property
    def resizing(self) -> DealField | None:
        """Return the field whose resize session is active, if any."""
        return self._session.field if self._session is not None else None

    # ------------------------------------------------------------------
    # visibility and order
    def _index(self, field: DealField | str) -> int:
        resolved = resolve_field(field)
        for index, column in enumerate(self._columns):
            if column.field is resolved:
                return index
        raise UnknownFieldError(resolved.value)

    def set_visible(self, field: DealField | str, visible: bool) -> None:
        """Show or hide *field* and persist the layout."""
        index = self._index(field)
        column = self._columns[index]
        if column.visible == visible:
            return
        self._columns[index] = replace(column, visible=visible)
        self._persist_layout()

    def toggle_visibility(self, field: DealField | str) -> bool:
        """Flip visibility of *field* and return the new state."""
        column = self._columns[self._index(field)]
        self.set_visible(column.field, not column.visible)
        return not column.visible

    def reorder(self, fields: Iterable[DealField | str]) -> None:
        """Place *fields* first in the given order, keeping the rest after them."""
        leading = [resolve_field(f) for f in fields]
        if len(set(leading)) != len(leading):
            raise ValueError("duplicate fields in column order")
        by_field = {column.field: column for column in self._columns}
        for field in leading:
            if field not in by_field:
                raise UnknownFieldError(field.value)
        rest = [c.field for c in self.columns() if c.field not in set(leading)]
        self._columns = [
            replace(by_field[field], order=order)
            for order, field in enumerate([*leading, *rest])
        ]
        self._persist_layout()

    def move(self, field: DealField | str, offset: int) -> None:
        """Shift *field* by *offset* positions, clamped to the list bounds."""
        order = [c.field for c in self.columns()]
        resolved = resolve_field(field)
        if resolved not in order:
            raise UnknownFieldError(resolved.value)
        current = order.index(resolved)
        target = min(max(0, current + offset), len(order) - 1)
        if target == current:
            return
        order.insert(target, order.pop(current))
        self.reorder(order)

    def reset(self) -> None:
        """Restore default layout and widths and persist both."""
        self._session = None
        self._columns = list(self._defaults)
        self._widths = self._default_widths()
        self._persist_layout()
        self._persist_widths()

    # ------------------------------------------------------------------
    # resize session
    def begin_resize(self, field: DealField | str, pointer_x: float) -> None:
        """Start resizing *field* from pointer position *pointer_x*."""
        if self._session is not None:
            raise ResizeInProgressError(self._session.field.value)
        resolved = resolve_field(field)
        self._index(resolved)
        self._session = _ResizeSession(resolved, pointer_x, self.width(resolved))

    def update_resize(self, pointer_x: float) -> int | None:
        """Apply the live width for *pointer_x*; ``None`` when not resizing."""
        session = self._session
        if session is None:
            return None
        new_width = max(self._min_width, int(session.start_width + (pointer_x - session.start_x)))
        self._widths[session.field] = new_width
        session.moved = True
        return new_width

    def end_resize(self) -> bool:
        """Finish the session, persisting widths if the column changed."""
        session = self._session
        if session is None:
            return False
        self._session = None
        if not session.moved or self._widths[session.field] == session.start_width:
            self._widths[session.field] = session.start_width
            return False
        return self._persist_widths()

    def cancel_resize(self) -> None:
        """Abort the session and restore the width it started with."""
        session = self._session
        if session is None:
            return
        self._session = None
        self._widths[session.field] = session.start_width

    # ------------------------------------------------------------------
    # persistence
    def _persist_layout(self) -> bool:
        payload = [
            {"field": c.field.value, "visible": c.visible, "order": c.order}
            for c in self.columns()
        ]
        return write_preference(self._store, COLUMN_LAYOUT_KEY, payload)

    def _persist_widths(self) -> bool:
        payload = {field.value: width for field, width in self._widths.items()}
        return write_preference(self._store, COLUMN_WIDTHS_KEY, payload)


def _renumber(
    columns: Iterable[ColumnDescriptor],
    defaults: dict[DealField, ColumnDescriptor],
) -> list[ColumnDescriptor]:
    """Return *columns* with unique consecutive ``order`` values.

    Ties are broken by the default position so duplicated persisted orders
    resolve deterministically.
    """
    ranked = sorted(columns, key=lambda c: (c.order, defaults[c.field].order))
    return [replace(column, order=index) for index, column in enumerate(ranked)]
