"""Default column layout for the deals list."""

from __future__ import annotations

from dataclasses import dataclass

from .core.fields import FIELD_REGISTRY, DealField
from .settings import DEFAULT_COLUMN_WIDTH


@dataclass(frozen=True)
class ColumnDescriptor:
    """Visibility and position of one list column."""

    field: DealField
    label: str
    visible: bool
    order: int


# Fields shown on first use, in display order. The remaining columns
# exist but start hidden.
_DEFAULT_LAYOUT: tuple[tuple[DealField, bool], ...] = (
    (DealField.PROJECT_NAME, True),
    (DealField.CUSTOMER_NAME, True),
    (DealField.LEAD_NAME, True),
    (DealField.STAGE, True),
    (DealField.PRIORITY, True),
    (DealField.TOTAL_CONTRACT_VALUE, True),
    (DealField.PROBABILITY, True),
    (DealField.EXPECTED_CLOSING_DATE, True),
    (DealField.REGION, False),
    (DealField.PROJECT_DURATION, False),
    (DealField.START_DATE, False),
    (DealField.END_DATE, False),
    (DealField.PROPOSAL_DUE_DATE, False),
    (DealField.TOTAL_REVENUE, False),
    (DealField.LEAD_OWNER, True),
)

DEFAULT_COLUMNS: tuple[ColumnDescriptor, ...] = tuple(
    ColumnDescriptor(field, FIELD_REGISTRY[field].label, visible, order)
    for order, (field, visible) in enumerate(_DEFAULT_LAYOUT)
)

_DEFAULT_COLUMN_WIDTHS: dict[DealField, int] = {
    DealField.PROJECT_NAME: 200,
    DealField.CUSTOMER_NAME: 150,
    DealField.LEAD_NAME: 150,
    DealField.LEAD_OWNER: 140,
    DealField.STAGE: 120,
    DealField.PRIORITY: 100,
    DealField.TOTAL_CONTRACT_VALUE: 120,
    DealField.PROBABILITY: 120,
    DealField.EXPECTED_CLOSING_DATE: 140,
    DealField.REGION: 120,
    DealField.PROJECT_DURATION: 120,
    DealField.START_DATE: 120,
    DealField.END_DATE: 120,
    DealField.PROPOSAL_DUE_DATE: 140,
    DealField.TOTAL_REVENUE: 120,
}


def default_column_width(field: DealField, fallback: int = DEFAULT_COLUMN_WIDTH) -> int:
    """Return the stock width for *field*."""
    return _DEFAULT_COLUMN_WIDTHS.get(field, fallback)

