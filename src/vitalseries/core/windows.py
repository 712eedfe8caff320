"""Helpers for turning caller-facing instants and windows into timestamps."""

import calendar
from datetime import UTC, datetime

Instant = datetime | float | int


def to_timestamp(instant: Instant) -> float:
    """Normalise an instant to Unix seconds.

    Args:
        instant: A datetime or a Unix timestamp. Naive datetimes are
            interpreted as UTC.

    Returns:
        Unix timestamp in seconds.
    """
    if isinstance(instant, datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        return instant.timestamp()
    if isinstance(instant, bool):
        raise TypeError("instant must be a datetime or a number, not bool")
    return float(instant)


def months_before(moment: datetime, months: int) -> datetime:
    """Step back a number of calendar months from moment.

    The day of month is clamped to the length of the target month, so
    March 31 minus one month is the last day of February.

    Raises:
        ValueError: If months is negative.
    """
    if months < 0:
        raise ValueError(f"months must not be negative, got {months}")
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    _, last_day = calendar.monthrange(year, month)
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def recent_months_window(months: int, now: datetime | None = None) -> tuple[float, float]:
    """Return the [now - months, now) window as Unix timestamps."""
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return to_timestamp(months_before(now, months)), to_timestamp(now)
