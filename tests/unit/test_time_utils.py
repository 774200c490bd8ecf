"""Tests for time utilities."""

import datetime
import re

import pytest

from dealdesk.util.time import (
    format_day_month_year,
    format_long_date,
    parse_datetime,
    timestamp_or_epoch,
    utc_now_iso,
)

pytestmark = pytest.mark.unit


def test_utc_now_iso_format():
    value = utc_now_iso()
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\+00:00", value)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-02", datetime.datetime(2024, 1, 2, tzinfo=datetime.UTC)),
        ("2024-01-02T03:04:05Z", datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.UTC)),
        (datetime.date(2024, 1, 2), datetime.datetime(2024, 1, 2, tzinfo=datetime.UTC)),
    ],
)
def test_parse_datetime_valid(raw, expected):
    assert parse_datetime(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "2024-13-02", "soon", 42])
def test_parse_datetime_invalid(raw):
    assert parse_datetime(raw) is None
    assert timestamp_or_epoch(raw) == 0.0


def test_parse_datetime_keeps_offset():
    value = parse_datetime("2024-01-02T10:00:00+02:00")
    assert value.utcoffset() == datetime.timedelta(hours=2)
    assert timestamp_or_epoch("2024-01-02T10:00:00+02:00") == value.timestamp()


def test_format_day_month_year():
    assert format_day_month_year("2024-07-04") == "04/07/2024"
    assert format_day_month_year("never") == "-"


def test_format_long_date():
    assert format_long_date("2024-01-01") == "Monday, January 1, 2024"
    assert format_long_date(None) is None
