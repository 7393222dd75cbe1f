"""Clock utility for testability."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return current UTC time. Override in tests."""
    return datetime.now(UTC)


def hours_since(unix_seconds: int, now: datetime | None = None) -> int:
    """Whole hours elapsed since a unix timestamp, never negative."""
    reference = now or utc_now()
    elapsed = reference - datetime.fromtimestamp(unix_seconds, UTC)
    return max(0, int(elapsed.total_seconds() // 3600))
