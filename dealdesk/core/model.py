"""Domain models for deals."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any


class DealStage(str, Enum):
    """Enumerate pipeline stages in their fixed order."""

    LEAD = "Lead"
    DISCUSSIONS = "Discussions"
    QUALIFIED = "Qualified"
    RFQ = "RFQ"
    OFFERED = "Offered"
    WON = "Won"
    LOST = "Lost"
    DROPPED = "Dropped"

    @property
    def position(self) -> int:
        """Return zero-based index of the stage in the pipeline."""
        return list(DealStage).index(self)


class Currency(str, Enum):
    """Currencies a contract value may be expressed in."""

    USD = "USD"
    EUR = "EUR"
    INR = "INR"


@dataclass
class Deal:
    """Represent a business opportunity tracked in the pipeline."""

    id: str
    stage: DealStage = DealStage.LEAD
    deal_name: str | None = None
    project_name: str | None = None
    lead_name: str | None = None
    customer_name: str | None = None
    region: str | None = None
    lead_owner: str | None = None
    total_contract_value: float | None = None
    currency: Currency = Currency.EUR
    total_revenue: float | None = None
    probability: int | None = None
    project_duration: int | None = None
    priority: int | None = None
    handoff_status: str | None = None
    status: str | None = None
    expected_closing_date: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    proposal_due_date: str | None = None
    created_at: str | None = None
    modified_at: str | None = None


_FLOAT_FIELDS = ("total_contract_value", "total_revenue")
_INT_FIELDS = ("probability", "project_duration", "priority")
_TEXT_FIELDS = tuple(
    f.name
    for f in fields(Deal)
    if f.name not in {"id", "stage", "currency", *_FLOAT_FIELDS, *_INT_FIELDS}
)


def deal_from_dict(data: dict[str, Any]) -> Deal:
    """Create :class:`Deal` from a plain ``dict``.

    Unknown keys are ignored and ``None`` or empty strings become ``None``
    so that missing data stays distinguishable from zero.
    """
    if "id" not in data or data["id"] in (None, ""):
        raise KeyError("missing required field: id")

    def _blank(value: Any) -> bool:
        return value is None or (isinstance(value, str) and not value.strip())

    def _number(field: str, cast: type) -> Any:
        value = data.get(field)
        if _blank(value):
            return None
        if isinstance(value, bool):
            raise TypeError(f"{field} must be a number")
        try:
            return cast(float(value)) if cast is int else cast(value)
        except (TypeError, ValueError) as exc:
            raise TypeError(f"{field} must be a number") from exc

    stage_raw = data.get("stage")
    try:
        stage = DealStage.LEAD if _blank(stage_raw) else DealStage(stage_raw)
    except ValueError as exc:
        raise ValueError(f"invalid stage: {stage_raw}") from exc

    currency_raw = data.get("currency")
    try:
        currency = Currency.EUR if _blank(currency_raw) else Currency(currency_raw)
    except ValueError as exc:
        raise ValueError(f"invalid currency: {currency_raw}") from exc

    values: dict[str, Any] = {"id": str(data["id"]), "stage": stage, "currency": currency}
    for name in _FLOAT_FIELDS:
        values[name] = _number(name, float)
    for name in _INT_FIELDS:
        values[name] = _number(name, int)
    for name in _TEXT_FIELDS:
        value = data.get(name)
        values[name] = None if _blank(value) else str(value)
    return Deal(**values)


def deal_to_dict(deal: Deal) -> dict[str, Any]:
    """Convert *deal* into a plain ``dict`` suitable for JSON storage."""
    data = asdict(deal)
    data["stage"] = deal.stage.value
    data["currency"] = deal.currency.value
    return {key: value for key, value in data.items() if value is not None}
