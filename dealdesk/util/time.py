"""Time-related helpers for DealDesk."""

from __future__ import annotations

import datetime


def utc_now_iso() -> str:
    """Return current UTC time in ISO format without sub-second precision."""
    return datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds")


def parse_datetime(value: object) -> datetime.datetime | None:
    """Parse ISO date or datetime *value* into an aware :class:`datetime`.

    Naive values are interpreted as UTC. ``None``, empty strings and
    unparsable input yield ``None``.
    """
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, datetime.date):
        dt = datetime.datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.UTC)
    return dt


def timestamp_or_epoch(value: object) -> float:
    """Return POSIX timestamp for *value* or ``0.0`` when missing or invalid."""
    dt = parse_datetime(value)
    if dt is None:
        return 0.0
    return dt.timestamp()


def format_day_month_year(value: object) -> str:
    """Return *value* formatted as ``dd/mm/yyyy`` or ``-`` when unusable."""
    dt = parse_datetime(value)
    if dt is None:
        return "-"
    return dt.strftime("%d/%m/%Y")


def format_long_date(value: object) -> str | None:
    """Return *value* as ``Monday, January 1, 2024`` or ``None``."""
    dt = parse_datetime(value)
    if dt is None:
        return None
    return f"{dt:%A}, {dt:%B} {dt.day}, {dt.year}"
