"""Unit tests for clock utility."""

from datetime import UTC, datetime, timedelta

from app.utils.clock import hours_since, utc_now


def test_utc_now():
    result = utc_now()
    assert isinstance(result, datetime)
    assert result.tzinfo is not None


def test_hours_since_truncates_to_whole_hours():
    now = datetime(2024, 1, 2, 12, 0, tzinfo=UTC)
    first_tx = now - timedelta(hours=5, minutes=59)
    assert hours_since(int(first_tx.timestamp()), now=now) == 5


def test_hours_since_never_negative():
    now = datetime(2024, 1, 2, 12, 0, tzinfo=UTC)
    future = now + timedelta(hours=3)
    assert hours_since(int(future.timestamp()), now=now) == 0
