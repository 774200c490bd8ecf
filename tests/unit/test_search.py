"""Tests for deal filtering."""

import pytest
from pydantic import ValidationError

from dealdesk.core.model import Deal, DealStage
from dealdesk.core.search import (
    ALL_OWNERS,
    FilterDimension,
    FilterState,
    active_filter_count,
    apply_filters,
    available_options,
    combined_search_term,
    dimension_value,
)

pytestmark = pytest.mark.unit


def sample_deals():
    return [
        Deal(
            id="1",
            stage=DealStage.LEAD,
            project_name="Solar Farm",
            customer_name="Acme",
            region="EU",
            lead_owner="alice",
            priority=1,
            probability=10,
        ),
        Deal(
            id="2",
            stage=DealStage.LEAD,
            project_name="Wind Park",
            customer_name="Globex",
            region="APAC",
            lead_owner="bob",
            priority=2,
            probability=50,
            handoff_status="Pending",
        ),
        Deal(id="3", stage=DealStage.QUALIFIED, lead_name="Solar lead", probability=90),
        Deal(id="4", stage=DealStage.WON, deal_name="Hydro", region="EU", lead_owner="alice"),
        Deal(id="5", stage=DealStage.LEAD, customer_name="Initech", priority=3),
    ]


def ids(deals):
    return [d.id for d in deals]


def test_empty_filter_keeps_everything_in_order():
    deals = sample_deals()
    assert ids(apply_filters(deals, FilterState())) == ["1", "2", "3", "4", "5"]


def test_stage_filter_preserves_relative_order():
    deals = sample_deals()
    state = FilterState().with_allowed(FilterDimension.STAGES, ["Lead"])
    assert ids(apply_filters(deals, state)) == ["1", "2", "5"]


def test_search_term_matches_any_searchable_field_case_insensitive():
    deals = sample_deals()
    assert ids(apply_filters(deals, FilterState(search_term="SOLAR"))) == ["1", "3"]
    assert ids(apply_filters(deals, FilterState(), search_term="hydro")) == ["4"]
    assert ids(apply_filters(deals, FilterState(), search_term="apac")) == ["2"]


def test_toolbar_and_advanced_terms_are_joined_with_space():
    assert combined_search_term("Solar", "Farm") == "solar farm"
    assert combined_search_term("", "Farm") == "farm"
    assert combined_search_term(None, "") == ""
    deals = sample_deals()
    state = FilterState(search_term="farm")
    assert ids(apply_filters(deals, state, search_term="solar")) == ["1"]
    assert ids(apply_filters(deals, state, search_term="wind")) == []


def test_priority_and_probability_compare_string_forms():
    deals = sample_deals()
    state = FilterState().with_allowed(FilterDimension.PRIORITIES, ["2", "3"])
    assert ids(apply_filters(deals, state)) == ["2", "5"]
    state = FilterState().with_allowed(FilterDimension.PROBABILITIES, ["90"])
    assert ids(apply_filters(deals, state)) == ["3"]


def test_missing_value_never_matches_non_empty_set():
    deals = sample_deals()
    state = FilterState().with_allowed(FilterDimension.HANDOFF_STATUSES, ["Pending"])
    assert ids(apply_filters(deals, state)) == ["2"]
    state = FilterState().with_allowed(FilterDimension.REGIONS, ["EU"])
    assert ids(apply_filters(deals, state)) == ["1", "4"]


def test_probability_range_counts_missing_as_zero():
    deals = sample_deals()
    assert ids(apply_filters(deals, FilterState(probability_range=(0, 10)))) == ["1", "4", "5"]
    assert ids(apply_filters(deals, FilterState(probability_range=(50, 100)))) == ["2", "3"]


def test_dimensions_are_conjunctive():
    deals = sample_deals()
    state = (
        FilterState()
        .with_allowed(FilterDimension.STAGES, ["Lead"])
        .with_allowed(FilterDimension.LEAD_OWNERS, ["alice"])
    )
    assert ids(apply_filters(deals, state)) == ["1"]


def test_owner_dropdown():
    deals = sample_deals()
    assert ids(apply_filters(deals, FilterState(), owner="alice")) == ["1", "4"]
    assert ids(apply_filters(deals, FilterState(), owner=ALL_OWNERS)) == ids(deals)


def test_apply_filters_does_not_mutate_input():
    deals = sample_deals()
    snapshot = list(deals)
    apply_filters(deals, FilterState(search_term="solar"))
    assert deals == snapshot


def test_dimension_value():
    deal = Deal(id="1", stage=DealStage.RFQ, priority=4, region="")
    assert dimension_value(deal, FilterDimension.STAGES) == "RFQ"
    assert dimension_value(deal, FilterDimension.PRIORITIES) == "4"
    assert dimension_value(deal, FilterDimension.REGIONS) is None
    assert dimension_value(deal, FilterDimension.PROBABILITIES) is None


def test_available_options_first_seen_order():
    options = available_options(sample_deals())
    assert options.regions == ["EU", "APAC"]
    assert options.lead_owners == ["alice", "bob"]
    assert options.priorities == ["1", "2", "3"]
    assert options.probabilities == ["10", "50", "90"]
    assert options.handoff_statuses == ["Pending"]


def test_active_filter_count():
    assert active_filter_count(FilterState()) == 0
    state = (
        FilterState(search_term="x", probability_range=(10, 100))
        .with_allowed(FilterDimension.STAGES, ["Won"])
        .with_allowed(FilterDimension.REGIONS, ["EU", "US"])
    )
    assert active_filter_count(state) == 4


def test_payload_round_trip_uses_camel_case_keys():
    state = (
        FilterState(search_term="acme", probability_range=(20, 80))
        .with_allowed(FilterDimension.LEAD_OWNERS, ["bob"])
        .with_allowed(FilterDimension.HANDOFF_STATUSES, ["Done"])
    )
    payload = state.to_payload()
    assert payload["searchTerm"] == "acme"
    assert payload["leadOwners"] == ["bob"]
    assert payload["handoffStatuses"] == ["Done"]
    assert payload["probabilityRange"] == [20, 80]
    assert FilterState.from_payload(payload) == state


def test_from_payload_tolerates_partial_and_numeric_values():
    state = FilterState.from_payload({"priorities": [1, 2], "searchTerm": None, "other": 1})
    assert state.priorities == frozenset({"1", "2"})
    assert state.search_term == ""
    assert state.probability_range == (0, 100)


@pytest.mark.parametrize(
    "payload",
    [
        {"stages": "Lead"},
        {"probabilityRange": [80, 20]},
        {"probabilityRange": [0, 150]},
    ],
)
def test_from_payload_rejects_malformed(payload):
    with pytest.raises(ValidationError):
        FilterState.from_payload(payload)
