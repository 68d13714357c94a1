"""Tests for the shared time helpers."""

from datetime import UTC, datetime

from cmdcatalog.core.utils.time import truncate_to_second, utc_now


def test_utc_now_returns_aware_utc_datetime() -> None:
    """utc_now() must return a timezone-aware datetime in UTC."""
    now = utc_now()
    assert isinstance(now, datetime)
    assert now.tzinfo == UTC


def test_truncate_to_second_drops_microseconds() -> None:
    value = datetime(2024, 1, 1, 12, 0, 0, 999_999, tzinfo=UTC)
    assert truncate_to_second(value) == datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
