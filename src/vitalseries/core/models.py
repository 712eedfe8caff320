"""Core domain models for health-metric aggregation."""

import math
from dataclasses import dataclass, field
from enum import Enum


class Reduction(str, Enum):
    """Per-bucket reduction applied to a metric's samples."""

    MEAN = "mean"
    LAST = "last"
    SUM = "sum"
    MIN = "min"
    MAX = "max"


@dataclass(frozen=True)
class RawSample:
    """A single raw health observation.

    Attributes:
        metric: Metric identifier (e.g., heartRate).
        timestamp: Unix timestamp in seconds.
        value: The observed value.
    """

    metric: str
    timestamp: float
    value: float


@dataclass(frozen=True)
class MetricDefinition:
    """Static configuration for one metric.

    Attributes:
        id: Metric identifier.
        display_unit: Unit shown next to the series (e.g., bpm).
        reduction: How samples in one bucket collapse to a single value.
        valid_range: Inclusive (low, high) bounds; samples outside are dropped.
    """

    id: str
    display_unit: str
    reduction: Reduction
    valid_range: tuple[float, float] = (-math.inf, math.inf)

    def __post_init__(self) -> None:
        low, high = self.valid_range
        if math.isnan(low) or math.isnan(high):
            raise ValueError(f"valid_range for {self.id!r} must not contain NaN")
        if low > high:
            raise ValueError(
                f"valid_range for {self.id!r} is empty: {low} > {high}"
            )
        # Accept plain strings such as "mean" from config files
        object.__setattr__(self, "reduction", Reduction(self.reduction))

    def accepts(self, value: float) -> bool:
        """Return True if value lies inside the metric's valid range (never for NaN)."""
        low, high = self.valid_range
        return low <= value <= high


@dataclass(frozen=True)
class TimeBucket:
    """A half-open interval [start, end) with its position in the query."""

    index: int
    start: float
    end: float

    @property
    def width(self) -> float:
        return self.end - self.start

    def contains(self, timestamp: float) -> bool:
        return self.start <= timestamp < self.end


@dataclass(frozen=True)
class AggregatedPoint:
    """One chart point: the reduced value of a single bucket.

    Attributes:
        bucket_start: Start of the bucket the point summarises.
        value: Reduced value, or None when no sample contributed.
        sample_count: Number of in-domain samples reduced into value.
    """

    bucket_start: float
    value: float | None
    sample_count: int

    @property
    def is_gap(self) -> bool:
        return self.sample_count == 0


@dataclass(frozen=True)
class SeriesResult:
    """Ordered points for one metric, one per bucket, ascending in time."""

    metric: str
    unit: str
    reduction: Reduction
    points: tuple[AggregatedPoint, ...] = field(default_factory=tuple)

    def timestamps(self) -> list[float]:
        return [p.bucket_start for p in self.points]

    def values(self) -> list[float | None]:
        return [p.value for p in self.points]

    @property
    def total_samples(self) -> int:
        return sum(p.sample_count for p in self.points)


@dataclass(frozen=True)
class CacheKey:
    """Exact-match key for memoised aggregation results.

    Attributes:
        metric_ids: Resolved metric ids in canonical (sorted) order.
        range_start: Inclusive start of the query range.
        range_end: Exclusive end of the query range.
        resolution: Bucket width in seconds.
    """

    metric_ids: tuple[str, ...]
    range_start: float
    range_end: float
    resolution: float

    def overlaps(self, start: float, end: float) -> bool:
        """Return True if the closed span [start, end] touches [range_start, range_end)."""
        return start < self.range_end and end >= self.range_start


@dataclass(frozen=True)
class IngestionEvent:
    """Notification that a batch of samples for one metric was written.

    Attributes:
        metric: Metric the batch belongs to.
        start: Smallest timestamp in the batch.
        end: Largest timestamp in the batch.
        sample_version: Store sample version after the batch landed.
    """

    metric: str
    start: float
    end: float
    sample_version: int
