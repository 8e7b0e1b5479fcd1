"""Wall-clock conversion used for permission time conditions."""

from datetime import UTC, datetime

from sqlgate.shared.utils.datetime import in_timezone


def test_in_timezone_shifts_hour_and_weekday() -> None:
    # Sunday 23:30 UTC is Monday 08:30 in Seoul.
    local = in_timezone(datetime(2026, 1, 4, 23, 30, tzinfo=UTC), "Asia/Seoul")
    assert (local.weekday(), local.hour) == (0, 8)


def test_in_timezone_treats_naive_as_utc() -> None:
    local = in_timezone(datetime(2026, 7, 1, 12, 0), "Europe/Berlin")
    assert local.hour == 14


def test_in_timezone_passes_none_through() -> None:
    assert in_timezone(None, "UTC") is None
