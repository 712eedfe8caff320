"""Typed errors surfaced by the aggregation engine."""


class AggregationError(Exception):
    """Base class for every error raised to engine callers."""


class UnknownMetric(AggregationError):
    """A requested metric id has no registered definition."""

    def __init__(self, metric_id: str) -> None:
        super().__init__(f"Unknown metric: {metric_id!r}")
        self.metric_id = metric_id


class InvalidRange(AggregationError, ValueError):
    """The requested range is empty, reversed or not finite."""

    def __init__(self, start: float, end: float) -> None:
        super().__init__(f"Invalid range: start={start!r} must be before end={end!r}")
        self.start = start
        self.end = end


class DataSourceUnavailable(AggregationError):
    """The sample store failed or timed out while serving a scan.

    Nothing is cached when this is raised, so the query is safe to retry.
    """

    def __init__(self, cause: BaseException | str) -> None:
        super().__init__(f"Sample store unavailable: {cause}")
        self.cause = cause
