"""In-memory filtering of deals."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .fields import SEARCHABLE_FIELDS, DealField
from .model import Deal

ALL_OWNERS = "all"


class FilterDimension(str, Enum):
    """Categorical dimensions of the advanced filter.

    Values double as the keys of the persisted filter payload.
    """

    STAGES = "stages"
    REGIONS = "regions"
    LEAD_OWNERS = "leadOwners"
    PRIORITIES = "priorities"
    PROBABILITIES = "probabilities"
    HANDOFF_STATUSES = "handoffStatuses"

    @property
    def field(self) -> DealField:
        """Return the deal field the dimension constrains."""
        return _DIMENSION_FIELDS[self]


_DIMENSION_FIELDS: dict[FilterDimension, DealField] = {
    FilterDimension.STAGES: DealField.STAGE,
    FilterDimension.REGIONS: DealField.REGION,
    FilterDimension.LEAD_OWNERS: DealField.LEAD_OWNER,
    FilterDimension.PRIORITIES: DealField.PRIORITY,
    FilterDimension.PROBABILITIES: DealField.PROBABILITY,
    FilterDimension.HANDOFF_STATUSES: DealField.HANDOFF_STATUS,
}


def dimension_value(deal: Deal, dimension: FilterDimension) -> str | None:
    """Return the categorical key of *deal* for *dimension*.

    ``None`` marks a missing value which never matches a non-empty set.
    """
    raw = getattr(deal, dimension.field.value, None)
    if raw is None:
        return None
    if isinstance(raw, Enum):
        return str(raw.value)
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    text = str(raw)
    return text or None


@dataclass(frozen=True)
class FilterState:
    """Immutable advanced filter.

    An empty set for a dimension means the dimension is unconstrained.
    """

    search_term: str = ""
    stages: frozenset[str] = frozenset()
    regions: frozenset[str] = frozenset()
    lead_owners: frozenset[str] = frozenset()
    priorities: frozenset[str] = frozenset()
    probabilities: frozenset[str] = frozenset()
    handoff_statuses: frozenset[str] = frozenset()
    probability_range: tuple[int, int] = (0, 100)

    def allowed(self, dimension: FilterDimension) -> frozenset[str]:
        """Return the allowed values for *dimension*."""
        return getattr(self, _DIMENSION_ATTRS[dimension])

    def with_allowed(
        self, dimension: FilterDimension, values: Iterable[str]
    ) -> FilterState:
        """Return a copy with *values* as the allowed set for *dimension*."""
        cleaned = frozenset(str(v) for v in values if v is not None and str(v) != "")
        return replace(self, **{_DIMENSION_ATTRS[dimension]: cleaned})

    def to_payload(self) -> dict[str, Any]:
        """Return the persisted JSON representation."""
        payload: dict[str, Any] = {"searchTerm": self.search_term}
        for dimension in FilterDimension:
            payload[dimension.value] = sorted(self.allowed(dimension))
        payload["probabilityRange"] = list(self.probability_range)
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> FilterState:
        """Build a filter from persisted *payload*.

        Raises :class:`pydantic.ValidationError` for malformed input.
        """
        parsed = FilterPayload.model_validate(payload)
        return cls(
            search_term=parsed.search_term,
            stages=frozenset(parsed.stages),
            regions=frozenset(parsed.regions),
            lead_owners=frozenset(parsed.lead_owners),
            priorities=frozenset(parsed.priorities),
            probabilities=frozenset(parsed.probabilities),
            handoff_statuses=frozenset(parsed.handoff_statuses),
            probability_range=parsed.probability_range,
        )


_DIMENSION_ATTRS: dict[FilterDimension, str] = {
    FilterDimension.STAGES: "stages",
    FilterDimension.REGIONS: "regions",
    FilterDimension.LEAD_OWNERS: "lead_owners",
    FilterDimension.PRIORITIES: "priorities",
    FilterDimension.PROBABILITIES: "probabilities",
    FilterDimension.HANDOFF_STATUSES: "handoff_statuses",
}


class FilterPayload(BaseModel):
    """Validation schema for the persisted filter record."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    search_term: str = Field("", alias="searchTerm")
    stages: list[str] = Field(default_factory=list)
    regions: list[str] = Field(default_factory=list)
    lead_owners: list[str] = Field(default_factory=list, alias="leadOwners")
    priorities: list[str] = Field(default_factory=list)
    probabilities: list[str] = Field(default_factory=list)
    handoff_statuses: list[str] = Field(default_factory=list, alias="handoffStatuses")
    probability_range: tuple[int, int] = Field((0, 100), alias="probabilityRange")

    @field_validator("search_term", mode="before")
    @classmethod
    def _normalise_term(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("priorities", "probabilities", mode="before")
    @classmethod
    def _stringify_numbers(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [
            str(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else v
            for v in value
        ]

    @model_validator(mode="after")
    def _check_range(self) -> FilterPayload:
        low, high = self.probability_range
        if not 0 <= low <= high <= 100:
            raise ValueError(f"invalid probability range: {low}-{high}")
        return self


def combined_search_term(*terms: str | None) -> str:
    """Join non-empty *terms* with a space and lower-case the result."""
    return " ".join(t for t in terms if t).lower()


def matches_text(deal: Deal, term: str) -> bool:
    """Return ``True`` if lower-cased *term* occurs in a searchable field."""
    if not term:
        return True
    for name in SEARCHABLE_FIELDS:
        value = getattr(deal, name.value, None) or ""
        if term in str(value).lower():
            return True
    return False


def matches_dimensions(deal: Deal, state: FilterState) -> bool:
    """Return ``True`` when *deal* satisfies every categorical constraint."""
    for dimension in FilterDimension:
        allowed = state.allowed(dimension)
        if not allowed:
            continue
        value = dimension_value(deal, dimension)
        if value is None or value not in allowed:
            return False
    return True


def matches_probability(deal: Deal, probability_range: tuple[int, int]) -> bool:
    """Return ``True`` if the deal probability (missing counts as 0) is in range."""
    low, high = probability_range
    probability = deal.probability or 0
    return low <= probability <= high


def apply_filters(
    deals: Iterable[Deal],
    state: FilterState,
    *,
    search_term: str = "",
    owner: str = ALL_OWNERS,
) -> list[Deal]:
    """Return deals passing *state* in their original relative order.

    ``search_term`` is the toolbar text input and is combined with
    ``state.search_term``. ``owner`` narrows to one lead owner unless it is
    :data:`ALL_OWNERS`.
    """
    term = combined_search_term(search_term, state.search_term)
    result: list[Deal] = []
    for deal in deals:
        if owner != ALL_OWNERS and deal.lead_owner != owner:
            continue
        if not matches_text(deal, term):
            continue
        if not matches_dimensions(deal, state):
            continue
        if not matches_probability(deal, state.probability_range):
            continue
        result.append(deal)
    return result


@dataclass(frozen=True)
class FilterOptions:
    """Distinct values available for the categorical filter menus."""

    regions: list[str] = field(default_factory=list)
    lead_owners: list[str] = field(default_factory=list)
    priorities: list[str] = field(default_factory=list)
    probabilities: list[str] = field(default_factory=list)
    handoff_statuses: list[str] = field(default_factory=list)


def available_options(deals: Iterable[Deal]) -> FilterOptions:
    """Collect distinct non-empty values in first-seen order."""
    collected: dict[FilterDimension, dict[str, None]] = {
        dimension: {} for dimension in FilterDimension
    }
    for deal in deals:
        for dimension, seen in collected.items():
            value = dimension_value(deal, dimension)
            if value is not None:
                seen.setdefault(value, None)
    return FilterOptions(
        regions=list(collected[FilterDimension.REGIONS]),
        lead_owners=list(collected[FilterDimension.LEAD_OWNERS]),
        priorities=list(collected[FilterDimension.PRIORITIES]),
        probabilities=list(collected[FilterDimension.PROBABILITIES]),
        handoff_statuses=list(collected[FilterDimension.HANDOFF_STATUSES]),
    )


def active_filter_count(state: FilterState) -> int:
    """Return the number of advanced filter groups currently constraining."""
    count = sum(1 for dimension in FilterDimension if state.allowed(dimension))
    if state.search_term:
        count += 1
    low, high = state.probability_range
    if low > 0 or high < 100:
        count += 1
    return count
