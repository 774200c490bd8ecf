"""Tests for deal sorting."""

import pytest

from dealdesk.core.fields import DealField, DateValue, EnumValue, NumericValue, TextValue
from dealdesk.core.model import Deal, DealStage
from dealdesk.core.sorting import SortDirection, SortState, sort_deals, sort_key, toggle_sort
from dealdesk.errors import UnknownFieldError

pytestmark = pytest.mark.unit


def ids(deals):
    return [d.id for d in deals]


def test_missing_numbers_sort_as_zero():
    deals = [
        Deal(id="a", total_contract_value=100),
        Deal(id="b"),
        Deal(id="c", total_contract_value=50),
    ]
    assert ids(sort_deals(deals, "total_contract_value", "asc")) == ["b", "c", "a"]
    assert ids(sort_deals(deals, "total_contract_value", "desc")) == ["a", "c", "b"]


def test_sort_is_stable_in_both_directions():
    deals = [
        Deal(id="1", priority=2),
        Deal(id="2", priority=1),
        Deal(id="3", priority=2),
        Deal(id="4", priority=1),
    ]
    assert ids(sort_deals(deals, DealField.PRIORITY, SortDirection.ASC)) == ["2", "4", "1", "3"]
    assert ids(sort_deals(deals, DealField.PRIORITY, SortDirection.DESC)) == ["1", "3", "2", "4"]


def test_text_sort_is_case_insensitive_and_missing_is_empty():
    deals = [
        Deal(id="1", customer_name="beta"),
        Deal(id="2", customer_name="Alpha"),
        Deal(id="3"),
    ]
    assert ids(sort_deals(deals, "customer_name")) == ["3", "2", "1"]


def test_dates_sort_chronologically_with_invalid_as_epoch():
    deals = [
        Deal(id="1", expected_closing_date="2024-06-01"),
        Deal(id="2", expected_closing_date="garbage"),
        Deal(id="3", expected_closing_date="2023-12-31T23:00:00Z"),
    ]
    assert ids(sort_deals(deals, "expected_closing_date", "asc")) == ["2", "3", "1"]


def test_stage_sorts_by_name():
    deals = [
        Deal(id="1", stage=DealStage.WON),
        Deal(id="2", stage=DealStage.LEAD),
        Deal(id="3", stage=DealStage.DISCUSSIONS),
    ]
    assert ids(sort_deals(deals, "stage")) == ["3", "2", "1"]


def test_sort_does_not_mutate_input():
    deals = [Deal(id="1", priority=3), Deal(id="2", priority=1)]
    sort_deals(deals, "priority")
    assert ids(deals) == ["1", "2"]


def test_sort_unknown_field_raises():
    with pytest.raises(UnknownFieldError):
        sort_deals([], "colour")


def test_sort_key_defaults():
    assert sort_key(NumericValue(None)) == 0.0
    assert sort_key(DateValue(None)) == 0.0
    assert sort_key(TextValue(None)) == ""
    assert sort_key(EnumValue(DealStage.RFQ)) == "rfq"


def test_toggle_sort():
    state = SortState()
    assert state == SortState(DealField.MODIFIED_AT, SortDirection.DESC)
    flipped = toggle_sort(state, "modified_at")
    assert flipped.direction is SortDirection.ASC
    other = toggle_sort(flipped, "priority")
    assert other == SortState(DealField.PRIORITY, SortDirection.DESC)
