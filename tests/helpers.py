"""Shared constants and sample builders for tests."""

from datetime import UTC, datetime

from vitalseries.core.models import RawSample

# 2024-01-01T00:00:00Z .. 2024-01-02T00:00:00Z
DAY_START = datetime(2024, 1, 1, tzinfo=UTC).timestamp()
DAY_END = datetime(2024, 1, 2, tzinfo=UTC).timestamp()
HOUR = 3600.0
MINUTE = 60.0


def at(hours: int = 0, minutes: int = 0) -> float:
    """Timestamp offset from DAY_START by hours and minutes."""
    return DAY_START + hours * HOUR + minutes * MINUTE


def sample(metric: str, timestamp: float, value: float) -> RawSample:
    return RawSample(metric=metric, timestamp=timestamp, value=value)


def heart_rate(timestamp: float, value: float) -> RawSample:
    return sample("heartRate", timestamp, value)
