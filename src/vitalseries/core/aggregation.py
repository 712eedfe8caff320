"""Single-pass reduction of raw samples into bucketed series."""

from collections.abc import Iterable, Mapping, Sequence

from vitalseries.core.models import (
    AggregatedPoint,
    MetricDefinition,
    RawSample,
    Reduction,
    SeriesResult,
    TimeBucket,
)


class _BucketAccumulator:
    """Running state for one bucket under a given reduction."""

    __slots__ = ("reduction", "count", "total", "current")

    def __init__(self, reduction: Reduction) -> None:
        self.reduction = reduction
        self.count = 0
        self.total = 0.0
        self.current: float | None = None

    def add(self, value: float) -> None:
        self.count += 1
        if self.reduction in (Reduction.MEAN, Reduction.SUM):
            self.total += value
        elif self.reduction is Reduction.LAST:
            # Samples arrive in non-decreasing timestamp order
            self.current = value
        elif self.reduction is Reduction.MIN:
            self.current = value if self.current is None else min(self.current, value)
        elif self.reduction is Reduction.MAX:
            self.current = value if self.current is None else max(self.current, value)

    def finish(self, bucket: TimeBucket) -> AggregatedPoint:
        if self.count == 0:
            return AggregatedPoint(bucket_start=bucket.start, value=None, sample_count=0)
        if self.reduction is Reduction.MEAN:
            value = self.total / self.count
        elif self.reduction is Reduction.SUM:
            value = self.total
        else:
            value = self.current
        return AggregatedPoint(
            bucket_start=bucket.start, value=value, sample_count=self.count
        )


def aggregate(
    buckets: Sequence[TimeBucket],
    samples: Iterable[RawSample],
    definition: MetricDefinition,
) -> SeriesResult:
    """Reduce one metric's samples into one point per bucket.

    Samples are consumed once, in ascending timestamp order, while a cursor
    walks the buckets in lock-step. A sample sitting exactly on a boundary
    belongs to the bucket that starts there. Samples outside the buckets'
    span are ignored. Values outside the metric's valid range, and NaN
    values, are dropped without counting toward sample_count.

    Args:
        buckets: Contiguous buckets from ``plan``.
        samples: Samples of ``definition.id`` sorted by timestamp.
        definition: Metric definition supplying reduction and valid range.

    Returns:
        SeriesResult with exactly one point per bucket.
    """
    points: list[AggregatedPoint] = []
    if not buckets:
        return SeriesResult(definition.id, definition.display_unit, definition.reduction)

    range_start = buckets[0].start
    range_end = buckets[-1].end
    cursor = 0
    acc = _BucketAccumulator(definition.reduction)

    for sample in samples:
        ts = sample.timestamp
        if ts < range_start:
            continue
        if ts >= range_end:
            break
        while ts >= buckets[cursor].end:
            points.append(acc.finish(buckets[cursor]))
            acc = _BucketAccumulator(definition.reduction)
            cursor += 1
        if not definition.accepts(sample.value):
            continue
        acc.add(sample.value)

    # Flush the open bucket and every trailing empty one
    points.append(acc.finish(buckets[cursor]))
    for bucket in buckets[cursor + 1 :]:
        points.append(AggregatedPoint(bucket_start=bucket.start, value=None, sample_count=0))

    return SeriesResult(
        metric=definition.id,
        unit=definition.display_unit,
        reduction=definition.reduction,
        points=tuple(points),
    )


def aggregate_many(
    buckets: Sequence[TimeBucket],
    scans: Mapping[str, Iterable[RawSample]],
    definitions: Mapping[str, MetricDefinition],
) -> dict[str, SeriesResult]:
    """Aggregate several metrics over the same bucket plan.

    All series share ``buckets`` so their points line up on one time axis.
    """
    return {
        metric_id: aggregate(buckets, samples, definitions[metric_id])
        for metric_id, samples in scans.items()
    }
