"""Type-aware, stable ordering of deals."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from .fields import (
    DateValue,
    DealField,
    EnumValue,
    FieldValue,
    NumericValue,
    TextValue,
    field_spec,
    resolve_field,
)
from .model import Deal

__all__ = ["SortDirection", "SortState", "sort_deals", "sort_key", "toggle_sort"]


class SortDirection(str, Enum):
    """Direction of the active sort."""

    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> SortDirection:
        """Return the opposite direction."""
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class SortState:
    """Single active sort field and its direction."""

    field: DealField = DealField.MODIFIED_AT
    direction: SortDirection = SortDirection.DESC


def sort_key(value: FieldValue) -> float | str:
    """Return the comparison key for a tagged value.

    Missing numbers sort as ``0``, missing or unparsable dates as the epoch
    and missing text as the empty string.
    """
    match value:
        case NumericValue(number=number):
            return number or 0.0
        case DateValue(moment=moment):
            return moment.timestamp() if moment is not None else 0.0
        case TextValue(text=text):
            return (text or "").lower()
        case EnumValue(member=member):
            return str(member.value).lower() if member is not None else ""
    raise TypeError(f"unsupported field value: {value!r}")


def sort_deals(
    deals: Iterable[Deal],
    field: DealField | str,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[Deal]:
    """Return *deals* ordered by *field*.

    The sort is stable in both directions: deals with equal keys keep their
    input order, which makes the result reproducible for the same input.
    """
    spec = field_spec(field)
    descending = SortDirection(direction) is SortDirection.DESC
    # ``reverse=True`` in :func:`sorted` keeps ties in input order.
    return sorted(deals, key=lambda deal: sort_key(spec.read(deal)), reverse=descending)


def toggle_sort(state: SortState, field: DealField | str) -> SortState:
    """Return the sort after a header click on *field*.

    Clicking the active column flips the direction; a new column starts
    descending.
    """
    resolved = resolve_field(field)
    if resolved is state.field:
        return SortState(resolved, state.direction.flipped())
    return SortState(resolved, SortDirection.DESC)
