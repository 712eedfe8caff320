"""Query façade for historical health-metric aggregation.

``AggregationEngine`` threads a request through metric resolution, bucket
planning, cache lookup and single-pass aggregation. Engines are constructed
explicitly with their store and configuration; there is no shared instance.

Example:
    ```python
    from vitalseries import AggregationEngine, InMemorySampleStore

    store = InMemorySampleStore()
    engine = AggregationEngine(store)
    series = engine.aggregate_historical_data({"heartRate"}, start, end)
    ```
"""

import asyncio
import logging
import math
import numbers
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from types import TracebackType
from typing import TypeVar

from vitalseries.core.aggregation import aggregate_many
from vitalseries.core.bucketing import (
    DEFAULT_MINIMUM_BUCKET_WIDTH,
    DEFAULT_POINT_BUDGET,
    plan,
)
from vitalseries.core.cache import DEFAULT_CACHE_CAPACITY, CacheStats, ResultCache
from vitalseries.core.catalog import DEFAULT_METRICS, MetricCatalog
from vitalseries.core.errors import DataSourceUnavailable
from vitalseries.core.models import CacheKey, MetricDefinition, RawSample, SeriesResult
from vitalseries.core.ports import SampleStorePort, Unsubscribe
from vitalseries.core.windows import Instant, recent_months_window, to_timestamp

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class EngineConfig:
    """Engine settings, fixed at construction.

    Attributes:
        point_budget: Maximum number of points per series.
        minimum_bucket_width: Smallest bucket width in seconds.
        cache_capacity: Maximum number of cached query results.
        scan_timeout: Seconds a single metric scan may take before the
            query fails with DataSourceUnavailable. None disables the check.
    """

    point_budget: int = DEFAULT_POINT_BUDGET
    minimum_bucket_width: float = DEFAULT_MINIMUM_BUCKET_WIDTH
    cache_capacity: int = DEFAULT_CACHE_CAPACITY
    scan_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.point_budget < 1:
            raise ValueError(f"point_budget must be at least 1, got {self.point_budget}")
        if not self.minimum_bucket_width > 0:
            raise ValueError(
                f"minimum_bucket_width must be positive, got {self.minimum_bucket_width}"
            )
        if self.cache_capacity < 1:
            raise ValueError(
                f"cache_capacity must be at least 1, got {self.cache_capacity}"
            )
        if self.scan_timeout is not None and not self.scan_timeout > 0:
            raise ValueError(f"scan_timeout must be positive, got {self.scan_timeout}")


class AggregationEngine:
    """Serves downsampled, cached series from a sample store.

    Args:
        store: Adapter implementing SampleStorePort.
        metrics: Metric definitions known to this engine.
        config: Engine settings. Defaults to EngineConfig().
    """

    def __init__(
        self,
        store: SampleStorePort,
        metrics: Iterable[MetricDefinition] = DEFAULT_METRICS,
        config: EngineConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or EngineConfig()
        self._catalog = MetricCatalog(metrics)
        self._cache = ResultCache(self._config.cache_capacity)
        self._unsubscribe: Unsubscribe | None = store.subscribe_to_ingestion(
            self._cache.handle_ingestion
        )

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def catalog(self) -> MetricCatalog:
        return self._catalog

    def aggregate_historical_data(
        self,
        metric_ids: Iterable[str] | str,
        range_start: Instant,
        range_end: Instant,
        point_budget: int | None = None,
    ) -> dict[str, SeriesResult]:
        """Aggregate metrics over [range_start, range_end).

        Args:
            metric_ids: Metric ids to aggregate.
            range_start: Inclusive start, as datetime or Unix seconds.
            range_end: Exclusive end, as datetime or Unix seconds.
            point_budget: Overrides the configured point budget.

        Returns:
            Mapping of metric id to SeriesResult. Every series has one point
            per bucket, and all series share the same buckets.

        Raises:
            UnknownMetric: A requested metric is not registered.
            InvalidRange: range_start is not before range_end.
            DataSourceUnavailable: The store failed or timed out.
        """
        resolved = self._catalog.resolve(metric_ids)
        start = to_timestamp(range_start)
        end = to_timestamp(range_end)
        budget = self._config.point_budget if point_budget is None else point_budget
        buckets = plan(start, end, budget, self._config.minimum_bucket_width)
        if not resolved:
            return {}

        version = self._call_store(self._store.current_sample_version)
        key = CacheKey(
            metric_ids=resolved,
            range_start=start,
            range_end=end,
            resolution=buckets[0].width,
        )
        cached = self._cache.get(key, version)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        logger.debug("Cache miss for %s, aggregating %d buckets", key, len(buckets))
        definitions = {metric_id: self._catalog.get(metric_id) for metric_id in resolved}
        scans = {
            metric_id: self._guarded_scan(metric_id, start, end)
            for metric_id in resolved
        }
        result = aggregate_many(buckets, scans, definitions)
        self._cache.put(key, result, version)
        return dict(result)

    def aggregate_recent_months(
        self,
        metric_ids: Iterable[str] | str,
        months: int,
        now: datetime | None = None,
        point_budget: int | None = None,
    ) -> dict[str, SeriesResult]:
        """Aggregate the last ``months`` calendar months, ending at now."""
        start, end = recent_months_window(months, now)
        return self.aggregate_historical_data(metric_ids, start, end, point_budget)

    async def aggregate_historical_data_async(
        self,
        metric_ids: Iterable[str] | str,
        range_start: Instant,
        range_end: Instant,
        point_budget: int | None = None,
    ) -> dict[str, SeriesResult]:
        """Awaitable variant of aggregate_historical_data run in a worker thread."""
        return await asyncio.to_thread(
            self.aggregate_historical_data,
            metric_ids,
            range_start,
            range_end,
            point_budget,
        )

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def invalidate_all(self) -> None:
        self._cache.clear()

    def close(self) -> None:
        """Stop listening to ingestion events and drop cached results."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cache.clear()

    def __enter__(self) -> "AggregationEngine":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # --- Store access ---

    def _call_store(self, func: Callable[..., T], *args: object) -> T:
        try:
            return func(*args)
        except Exception as e:
            logger.warning("Sample store call %s failed: %s", func.__name__, e)
            raise DataSourceUnavailable(e) from e

    def _guarded_scan(
        self, metric_id: str, start: float, end: float
    ) -> Iterator[RawSample]:
        """Iterate a store scan, converting store faults to DataSourceUnavailable.

        Also enforces the scan contract: samples must belong to the metric,
        lie in [start, end), arrive in non-decreasing timestamp order and
        carry a numeric value.

        The scan timeout is checked each time the store hands back control,
        including at the end of the scan. It cannot interrupt a store call
        that is blocked; such a scan fails only once the call returns.
        """
        timeout = self._config.scan_timeout
        deadline = None if timeout is None else time.monotonic() + timeout
        samples = self._call_store(self._open_scan, metric_id, start, end)
        previous = -math.inf
        while True:
            try:
                sample = next(samples)
            except StopIteration:
                self._check_deadline(metric_id, deadline)
                return
            except Exception as e:
                logger.warning("Scan of %s failed: %s", metric_id, e)
                raise DataSourceUnavailable(e) from e
            self._check_deadline(metric_id, deadline)
            try:
                ts = sample.timestamp
                valid = (
                    sample.metric == metric_id
                    and start <= ts < end
                    and ts >= previous
                    and isinstance(sample.value, numbers.Real)
                )
            except (AttributeError, TypeError) as e:
                raise DataSourceUnavailable(
                    _contract_violation(metric_id, sample)
                ) from e
            if not valid:
                raise DataSourceUnavailable(_contract_violation(metric_id, sample))
            previous = ts
            yield sample

    def _open_scan(
        self, metric_id: str, start: float, end: float
    ) -> Iterator[RawSample]:
        return iter(self._store.scan(metric_id, start, end))

    def _check_deadline(self, metric_id: str, deadline: float | None) -> None:
        if deadline is not None and time.monotonic() > deadline:
            timeout = self._config.scan_timeout
            logger.warning("Scan of %s exceeded %ss", metric_id, timeout)
            raise DataSourceUnavailable(
                TimeoutError(f"scan of {metric_id!r} exceeded {timeout}s")
            )


def _contract_violation(metric_id: str, sample: object) -> str:
    return f"scan of {metric_id!r} returned a sample violating its contract: {sample!r}"
