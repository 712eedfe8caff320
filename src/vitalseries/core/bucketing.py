"""Bucket planning for downsampled time series.

A plan partitions a query range into contiguous, non-overlapping half-open
buckets. Bucket boundaries depend only on the range, the point budget and
the minimum width, so identical queries always produce identical plans.
"""

import math

from vitalseries.core.errors import InvalidRange
from vitalseries.core.models import TimeBucket

DEFAULT_POINT_BUDGET = 200
DEFAULT_MINIMUM_BUCKET_WIDTH = 60.0


def _validate_range(start: float, end: float) -> None:
    if not (math.isfinite(start) and math.isfinite(end)) or start >= end:
        raise InvalidRange(start, end)


def bucket_width(
    start: float,
    end: float,
    point_budget: int = DEFAULT_POINT_BUDGET,
    minimum_bucket_width: float = DEFAULT_MINIMUM_BUCKET_WIDTH,
) -> float:
    """Compute the bucket width (resolution) for a range.

    Args:
        start: Inclusive range start (Unix seconds).
        end: Exclusive range end (Unix seconds).
        point_budget: Maximum number of buckets a chart can render.
        minimum_bucket_width: Floor on the width, in seconds.

    Returns:
        max(minimum_bucket_width, ceil((end - start) / point_budget)).

    Raises:
        InvalidRange: If start >= end or either bound is not finite.
        ValueError: If point_budget < 1 or minimum_bucket_width <= 0.
    """
    _validate_range(start, end)
    if point_budget < 1:
        raise ValueError(f"point_budget must be at least 1, got {point_budget}")
    if not minimum_bucket_width > 0:
        raise ValueError(
            f"minimum_bucket_width must be positive, got {minimum_bucket_width}"
        )
    return float(max(minimum_bucket_width, math.ceil((end - start) / point_budget)))


def plan(
    start: float,
    end: float,
    point_budget: int = DEFAULT_POINT_BUDGET,
    minimum_bucket_width: float = DEFAULT_MINIMUM_BUCKET_WIDTH,
) -> list[TimeBucket]:
    """Partition [start, end) into ordered buckets.

    Buckets are laid out from start in steps of the computed width; the
    last bucket is clipped to end and may be shorter than the others.

    Returns:
        List of exactly ceil((end - start) / width) TimeBucket objects.
    """
    width = bucket_width(start, end, point_budget, minimum_bucket_width)
    count = math.ceil((end - start) / width)
    buckets: list[TimeBucket] = []
    for index in range(count):
        # Multiply rather than accumulate so boundaries do not drift
        bucket_start = start + index * width
        if bucket_start >= end:
            break
        bucket_end = min(start + (index + 1) * width, end)
        buckets.append(TimeBucket(index=index, start=bucket_start, end=bucket_end))
    return buckets
