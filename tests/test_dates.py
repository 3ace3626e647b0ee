from datetime import date, datetime, timedelta, timezone

import pytest

from app.utils.dates import month_label, next_month_key, previous_month_key, to_datetime

EXPECTED = datetime(2025, 11, 4, 12, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value",
    [
        EXPECTED,
        datetime(2025, 11, 4, 12, 30),
        datetime(2025, 11, 4, 14, 30, tzinfo=timezone(timedelta(hours=2))),
        "2025-11-04T12:30:00Z",
        "2025-11-04T12:30:00+00:00",
        "2025-11-04T12:30:00",
        EXPECTED.timestamp(),
        int(EXPECTED.timestamp()),
        {"seconds": int(EXPECTED.timestamp()), "nanoseconds": 0},
        {"_seconds": int(EXPECTED.timestamp()), "_nanoseconds": 0},
    ],
)
def test_to_datetime_normalizes_supported_shapes(value):
    assert to_datetime(value) == EXPECTED


def test_to_datetime_date_only():
    assert to_datetime(date(2025, 11, 4)) == datetime(2025, 11, 4, tzinfo=timezone.utc)
    assert to_datetime("2025-11-04") == datetime(2025, 11, 4, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "yesterday", "2025-13-01", True, float("nan"), 1e20, {"foo": 1}, {"seconds": None}, [2025, 11]],
)
def test_to_datetime_rejects_invalid_values(value):
    assert to_datetime(value) is None


def test_month_helpers():
    assert month_label("2025-11") == "Nov 25"
    assert previous_month_key("2025-01") == "2024-12"
    assert previous_month_key("2025-11") == "2025-10"
    assert next_month_key("2025-12") == "2026-01"
    assert next_month_key("2024-01") == "2024-02"
    assert previous_month_key("2024-03") == "2024-02"
