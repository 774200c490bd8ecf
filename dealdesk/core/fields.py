"""Typed registry of deal fields.

Every column, sort key and inline edit refers to a :class:`DealField`.
The registry binds each identifier to an accessor and a
:class:`FieldKind` so that filtering, sorting and editing dispatch on the
kind instead of on ad-hoc field-name checks.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, TypeAlias

from ..errors import InvalidFieldValueError, UnknownFieldError
from ..util.time import parse_datetime
from .model import Currency, Deal, DealStage


class FieldKind(str, Enum):
    """Comparison category of a field."""

    NUMERIC = "numeric"
    DATE = "date"
    TEXT = "text"
    ENUM = "enum"


class EditorKind(str, Enum):
    """Widget family the rendering layer should use for inline edits."""

    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    STAGE = "stage"
    PRIORITY = "priority"
    USER_SELECT = "userSelect"


class DealField(str, Enum):
    """Identifiers of deal attributes exposed to the list view."""

    DEAL_NAME = "deal_name"
    PROJECT_NAME = "project_name"
    CUSTOMER_NAME = "customer_name"
    LEAD_NAME = "lead_name"
    LEAD_OWNER = "lead_owner"
    STAGE = "stage"
    PRIORITY = "priority"
    TOTAL_CONTRACT_VALUE = "total_contract_value"
    CURRENCY = "currency"
    TOTAL_REVENUE = "total_revenue"
    PROBABILITY = "probability"
    PROJECT_DURATION = "project_duration"
    REGION = "region"
    HANDOFF_STATUS = "handoff_status"
    STATUS = "status"
    EXPECTED_CLOSING_DATE = "expected_closing_date"
    START_DATE = "start_date"
    END_DATE = "end_date"
    PROPOSAL_DUE_DATE = "proposal_due_date"
    CREATED_AT = "created_at"
    MODIFIED_AT = "modified_at"


# --- tagged values ---------------------------------------------------------


@dataclass(frozen=True)
class NumericValue:
    """Number or ``None`` when the deal has no value."""

    number: float | None


@dataclass(frozen=True)
class DateValue:
    """Parsed moment; ``None`` for missing or unparsable input."""

    moment: datetime | None


@dataclass(frozen=True)
class TextValue:
    """Free text or ``None`` when missing."""

    text: str | None


@dataclass(frozen=True)
class EnumValue:
    """Member of a closed enumeration."""

    member: Enum | None


FieldValue: TypeAlias = NumericValue | DateValue | TextValue | EnumValue

_MIDNIGHT = time(0, 0)


def to_raw(value: FieldValue) -> Any:
    """Return the JSON-compatible payload for *value*."""
    match value:
        case NumericValue(number=number):
            if number is not None and float(number).is_integer():
                return int(number)
            return number
        case DateValue(moment=moment):
            if moment is None:
                return None
            if moment.time() == _MIDNIGHT and moment.utcoffset() == timedelta(0):
                return moment.date().isoformat()
            return moment.isoformat()
        case TextValue(text=text):
            return text
        case EnumValue(member=member):
            return member.value if member is not None else None
    raise TypeError(f"unsupported field value: {value!r}")


# --- registry --------------------------------------------------------------


@dataclass(frozen=True)
class FieldSpec:
    """Static description of one deal field."""

    field: DealField
    label: str
    kind: FieldKind
    editor: EditorKind = EditorKind.TEXT
    enum_type: type[Enum] | None = None
    integer: bool = False
    searchable: bool = False

    def raw(self, deal: Deal) -> Any:
        """Return the attribute value of *deal* as stored."""
        return getattr(deal, self.field.value, None)

    def read(self, deal: Deal) -> FieldValue:
        """Return the tagged value of this field on *deal*."""
        return self.wrap(self.raw(deal))

    def wrap(self, raw: Any) -> FieldValue:
        """Wrap an already-typed attribute value without coercion."""
        match self.kind:
            case FieldKind.NUMERIC:
                return NumericValue(None if raw is None else float(raw))
            case FieldKind.DATE:
                return DateValue(parse_datetime(raw))
            case FieldKind.ENUM:
                return EnumValue(raw)
            case FieldKind.TEXT:
                return TextValue(None if raw is None else str(raw))
        raise TypeError(f"unsupported field kind: {self.kind!r}")

    def coerce(self, raw: Any) -> FieldValue:
        """Convert user input *raw* into a validated tagged value.

        Empty input clears the field. Invalid input raises
        :class:`~dealdesk.errors.InvalidFieldValueError`.
        """
        name = self.field.value
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            if self.kind is FieldKind.ENUM:
                raise InvalidFieldValueError(name, raw, "a value is required")
            return self.wrap(None)
        match self.kind:
            case FieldKind.NUMERIC:
                if isinstance(raw, bool):
                    raise InvalidFieldValueError(name, raw, "expected a number")
                try:
                    number = float(raw)
                except (TypeError, ValueError):
                    raise InvalidFieldValueError(name, raw, "expected a number") from None
                if self.integer:
                    number = float(int(number))
                if self.field is DealField.PROBABILITY and not 0 <= number <= 100:
                    raise InvalidFieldValueError(name, raw, "must be between 0 and 100")
                return NumericValue(number)
            case FieldKind.DATE:
                moment = parse_datetime(raw)
                if moment is None:
                    raise InvalidFieldValueError(name, raw, "expected an ISO date")
                return DateValue(moment)
            case FieldKind.ENUM:
                if self.enum_type is None:
                    raise TypeError(f"{name} has no enum type")
                if isinstance(raw, self.enum_type):
                    return EnumValue(raw)
                try:
                    return EnumValue(self.enum_type(raw))
                except ValueError:
                    raise InvalidFieldValueError(name, raw, "unknown option") from None
            case FieldKind.TEXT:
                return TextValue(str(raw))
        raise TypeError(f"unsupported field kind: {self.kind!r}")


def _spec(field: DealField, label: str, kind: FieldKind, **kwargs: Any) -> FieldSpec:
    return FieldSpec(field=field, label=label, kind=kind, **kwargs)


_F = DealField
_K = FieldKind
_E = EditorKind

_SPECS: tuple[FieldSpec, ...] = (
    _spec(_F.DEAL_NAME, "Deal", _K.TEXT, searchable=True),
    _spec(_F.PROJECT_NAME, "Project", _K.TEXT, searchable=True),
    _spec(_F.CUSTOMER_NAME, "Customer", _K.TEXT, searchable=True),
    _spec(_F.LEAD_NAME, "Lead Name", _K.TEXT, searchable=True),
    _spec(_F.LEAD_OWNER, "Lead Owner", _K.TEXT, editor=_E.USER_SELECT),
    _spec(_F.STAGE, "Stage", _K.ENUM, editor=_E.STAGE, enum_type=DealStage),
    _spec(_F.PRIORITY, "Priority", _K.NUMERIC, editor=_E.PRIORITY, integer=True),
    _spec(_F.TOTAL_CONTRACT_VALUE, "Value", _K.NUMERIC, editor=_E.CURRENCY),
    _spec(_F.CURRENCY, "Currency", _K.ENUM, enum_type=Currency),
    _spec(_F.TOTAL_REVENUE, "Total Revenue", _K.NUMERIC, editor=_E.CURRENCY),
    _spec(_F.PROBABILITY, "Probability", _K.NUMERIC, editor=_E.NUMBER, integer=True),
    _spec(_F.PROJECT_DURATION, "Duration", _K.NUMERIC, editor=_E.NUMBER, integer=True),
    _spec(_F.REGION, "Region", _K.TEXT, searchable=True),
    _spec(_F.HANDOFF_STATUS, "Handoff Status", _K.TEXT),
    _spec(_F.STATUS, "Status", _K.TEXT),
    _spec(_F.EXPECTED_CLOSING_DATE, "Expected Close", _K.DATE, editor=_E.DATE),
    _spec(_F.START_DATE, "Start Date", _K.DATE, editor=_E.DATE),
    _spec(_F.END_DATE, "End Date", _K.DATE, editor=_E.DATE),
    _spec(_F.PROPOSAL_DUE_DATE, "Proposal Due", _K.DATE, editor=_E.DATE),
    _spec(_F.CREATED_AT, "Created", _K.DATE, editor=_E.DATE),
    _spec(_F.MODIFIED_AT, "Modified", _K.DATE, editor=_E.DATE),
)

FIELD_REGISTRY: Mapping[DealField, FieldSpec] = MappingProxyType(
    {spec.field: spec for spec in _SPECS}
)

SEARCHABLE_FIELDS: tuple[DealField, ...] = tuple(
    spec.field for spec in _SPECS if spec.searchable
)


def resolve_field(field: DealField | str) -> DealField:
    """Return the :class:`DealField` for *field* or raise :class:`UnknownFieldError`."""
    if isinstance(field, DealField):
        return field
    try:
        return DealField(field)
    except ValueError:
        raise UnknownFieldError(str(field)) from None


def field_spec(field: DealField | str) -> FieldSpec:
    """Return registry entry for *field*."""
    return FIELD_REGISTRY[resolve_field(field)]


def read_field(deal: Deal, field: DealField | str) -> FieldValue:
    """Return the tagged value of *field* on *deal*."""
    return field_spec(field).read(deal)


def editor_kind(field: DealField | str) -> EditorKind:
    """Return the inline editor family for *field*."""
    return field_spec(field).editor


def coerce_edit(field: DealField | str, raw: Any) -> tuple[DealField, FieldValue]:
    """Resolve *field* and coerce *raw* user input into a tagged value."""
    resolved = resolve_field(field)
    return resolved, FIELD_REGISTRY[resolved].coerce(raw)
