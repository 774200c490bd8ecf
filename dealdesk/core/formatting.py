"""Display helpers for deal values."""

from __future__ import annotations

from enum import Enum

from ..util.time import format_day_month_year
from .fields import DealField, EditorKind, FieldKind, field_spec
from .model import Currency, Deal

CURRENCY_SYMBOLS: dict[str, str] = {
    Currency.USD.value: "$",
    Currency.EUR.value: "€",
    Currency.INR.value: "₹",
}
_FALLBACK_SYMBOL = "€"


def format_currency(amount: float | None, currency: Currency | str = Currency.EUR) -> str:
    """Return *amount* prefixed with its currency symbol.

    Missing or zero amounts render as ``-``. Thousands are comma separated.
    """
    if not amount:
        return "-"
    code = currency.value if isinstance(currency, Currency) else str(currency)
    symbol = CURRENCY_SYMBOLS.get(code, _FALLBACK_SYMBOL)
    if float(amount).is_integer():
        return f"{symbol}{int(amount):,}"
    return f"{symbol}{amount:,.2f}"


def format_date(value: str | None) -> str:
    """Return *value* as ``dd/mm/yyyy`` or ``-``."""
    return format_day_month_year(value)


def format_field(deal: Deal, field: DealField | str) -> str:
    """Return the display text of *field* on *deal*."""
    spec = field_spec(field)
    value = spec.raw(deal)
    if spec.editor is EditorKind.CURRENCY:
        return format_currency(value, deal.currency or Currency.EUR)
    if spec.kind is FieldKind.DATE:
        return format_date(value)
    if value is None or value == "":
        return "-"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
