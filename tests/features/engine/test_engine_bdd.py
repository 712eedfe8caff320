"""BDD tests for the aggregation engine query façade.

Scenarios live in engine_queries.feature; step definitions follow.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from tests.helpers import DAY_START, at, heart_rate
from vitalseries.adapters.storage.in_memory import InMemorySampleStore
from vitalseries.core.engine import AggregationEngine, EngineConfig
from vitalseries.core.errors import InvalidRange, UnknownMetric
from vitalseries.core.models import RawSample, SeriesResult
from vitalseries.core.windows import to_timestamp

scenarios("engine_queries.feature")

pytestmark = [
    pytest.mark.tier(1),
    pytest.mark.tra("Facade.AggregateHistoricalData"),
]

DAY_SECONDS = 86_400.0


class ScanCountingStore(InMemorySampleStore):
    """In-memory store that counts scans."""

    def __init__(self) -> None:
        super().__init__()
        self.scan_count = 0

    def scan(self, metric: str, start: float, end: float) -> Iterator[RawSample]:
        self.scan_count += 1
        return super().scan(metric, start, end)


@dataclass
class EngineScenarioContext:
    """Shared state between steps in an engine scenario."""

    store: ScanCountingStore = field(default_factory=ScanCountingStore)
    engine: AggregationEngine | None = None
    results: list[dict[str, SeriesResult]] = field(default_factory=list)
    error: Exception | None = None
    metric: str = ""

    @property
    def series(self) -> SeriesResult:
        return self.results[-1][self.metric]


@pytest.fixture
def ctx() -> Iterator[EngineScenarioContext]:
    """Fresh scenario context for each test."""
    context = EngineScenarioContext()
    yield context
    if context.engine is not None:
        context.engine.close()


def _query(ctx: EngineScenarioContext, metric: str, start: float, end: float) -> None:
    ctx.metric = metric
    assert ctx.engine is not None
    try:
        ctx.results.append(ctx.engine.aggregate_historical_data({metric}, start, end))
    except (UnknownMetric, InvalidRange) as e:
        ctx.error = e


# === Given ===


@given("an in-memory sample store")
def given_store(ctx: EngineScenarioContext) -> None:
    ctx.store = ScanCountingStore()


@given(parsers.parse("an engine with a point budget of {budget:d}"))
def given_engine(ctx: EngineScenarioContext, budget: int) -> None:
    ctx.engine = AggregationEngine(ctx.store, config=EngineConfig(point_budget=budget))


@given(
    parsers.parse(
        "heartRate samples at minutes {m1:d}, {m2:d} and {m3:d} "
        "with values {v1:g}, {v2:g} and {v3:g}"
    )
)
def given_heart_rate_samples(
    ctx: EngineScenarioContext,
    m1: int,
    m2: int,
    m3: int,
    v1: float,
    v2: float,
    v3: float,
) -> None:
    ctx.store.extend(
        [
            heart_rate(at(minutes=m1), v1),
            heart_rate(at(minutes=m2), v2),
            heart_rate(at(minutes=m3), v3),
        ]
    )


# === When ===


@when(parsers.re(r"(?P<metric>\w+) is queried for (?P<day>\d{4}-\d{2}-\d{2})( again)?"))
def when_queried_for_day(ctx: EngineScenarioContext, metric: str, day: str) -> None:
    start = to_timestamp(_parse_day(day))
    _query(ctx, metric, start, start + DAY_SECONDS)


@when(parsers.parse("{metric} is queried for an empty range"))
def when_queried_for_empty_range(ctx: EngineScenarioContext, metric: str) -> None:
    _query(ctx, metric, DAY_START, DAY_START)


@when(parsers.parse("a heartRate sample of {value:g} lands at minute {minute:d}"))
def when_sample_lands(ctx: EngineScenarioContext, value: float, minute: int) -> None:
    ctx.store.append(heart_rate(at(minutes=minute), value))


# === Then ===


@then(parsers.parse("the series has {count:d} points"))
def then_point_count(ctx: EngineScenarioContext, count: int) -> None:
    assert len(ctx.series.points) == count


@then(parsers.parse("bucket {index:d} has value {value:g} from {count:d} samples"))
def then_bucket_value(
    ctx: EngineScenarioContext, index: int, value: float, count: int
) -> None:
    point = ctx.series.points[index]
    assert point.value == pytest.approx(value)
    assert point.sample_count == count


@then(parsers.parse("buckets {first:d} to {last:d} have no value"))
def then_buckets_empty(ctx: EngineScenarioContext, first: int, last: int) -> None:
    for point in ctx.series.points[first : last + 1]:
        assert point.value is None
        assert point.sample_count == 0


@then(parsers.parse('the query fails with UnknownMetric for "{metric_id}"'))
def then_unknown_metric(ctx: EngineScenarioContext, metric_id: str) -> None:
    assert isinstance(ctx.error, UnknownMetric)
    assert ctx.error.metric_id == metric_id


@then("the query fails with InvalidRange")
def then_invalid_range(ctx: EngineScenarioContext) -> None:
    assert isinstance(ctx.error, InvalidRange)


@then("the store was never scanned")
def then_never_scanned(ctx: EngineScenarioContext) -> None:
    assert ctx.store.scan_count == 0


@then("both results are identical")
def then_results_identical(ctx: EngineScenarioContext) -> None:
    assert len(ctx.results) == 2
    assert ctx.results[0] == ctx.results[1]


@then(parsers.re(r"the cache reports (?P<hits>\d+) hits?"))
def then_cache_hits(ctx: EngineScenarioContext, hits: str) -> None:
    assert ctx.engine is not None
    assert ctx.engine.cache_stats().hits == int(hits)


def _parse_day(day: str) -> datetime:
    return datetime.strptime(day, "%Y-%m-%d").replace(tzinfo=UTC)
