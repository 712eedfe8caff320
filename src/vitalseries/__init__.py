"""vitalseries - downsampled, cached time series for health metrics."""

from vitalseries.adapters.storage import InMemorySampleStore, SQLiteSampleStore
from vitalseries.core.bucketing import bucket_width, plan
from vitalseries.core.cache import CacheStats, ResultCache
from vitalseries.core.catalog import DEFAULT_METRICS, MetricCatalog
from vitalseries.core.engine import AggregationEngine, EngineConfig
from vitalseries.core.errors import (
    AggregationError,
    DataSourceUnavailable,
    InvalidRange,
    UnknownMetric,
)
from vitalseries.core.models import (
    AggregatedPoint,
    IngestionEvent,
    MetricDefinition,
    RawSample,
    Reduction,
    SeriesResult,
    TimeBucket,
)
from vitalseries.core.ports import SampleStorePort

__all__ = [
    "DEFAULT_METRICS",
    "AggregatedPoint",
    "AggregationEngine",
    "AggregationError",
    "CacheStats",
    "DataSourceUnavailable",
    "EngineConfig",
    "InMemorySampleStore",
    "IngestionEvent",
    "InvalidRange",
    "MetricCatalog",
    "MetricDefinition",
    "RawSample",
    "Reduction",
    "ResultCache",
    "SQLiteSampleStore",
    "SampleStorePort",
    "SeriesResult",
    "TimeBucket",
    "UnknownMetric",
    "bucket_width",
    "plan",
]
