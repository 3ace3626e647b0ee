"""
Date normalization for stored records.

Transactions reach the snapshot engine with dates in several shapes: native
datetimes, ISO strings written by the API, raw epoch seconds, or Firestore
style ``{"seconds": ..., "nanoseconds": ...}`` mappings from imported data.
Everything is funnelled through :func:`to_datetime` before bucketing.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

from dateutil.relativedelta import relativedelta


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_epoch(seconds: Any, nanos: Any = 0) -> Optional[datetime]:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return None
    if isinstance(nanos, bool) or not isinstance(nanos, (int, float)):
        nanos = 0
    try:
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _from_iso(text: str) -> Optional[datetime]:
    text = text.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def _from_timestamp_mapping(value: Mapping[str, Any]) -> Optional[datetime]:
    for seconds_key, nanos_key in (("seconds", "nanoseconds"), ("_seconds", "_nanoseconds")):
        if seconds_key in value:
            return _from_epoch(value[seconds_key], value.get(nanos_key, 0))
    return None


def to_datetime(value: Any) -> Optional[datetime]:
    """Normalize a record's date field to an aware UTC datetime, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    if isinstance(value, str):
        return _from_iso(value)
    if isinstance(value, Mapping):
        return _from_timestamp_mapping(value)
    return None


def month_key(value: datetime) -> str:
    return value.strftime("%Y-%m")


def month_label(key: str) -> str:
    """'2025-11' -> 'Nov 25'."""
    return datetime.strptime(key, "%Y-%m").strftime("%b %y")


def _shift_month(key: str, months: int) -> str:
    first_of_month = datetime.strptime(key, "%Y-%m")
    return month_key(first_of_month + relativedelta(months=months))


def previous_month_key(key: str) -> str:
    return _shift_month(key, -1)


def next_month_key(key: str) -> str:
    return _shift_month(key, +1)
