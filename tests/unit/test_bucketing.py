"""Tests for bucket planning."""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tests.helpers import DAY_END, DAY_START, HOUR
from vitalseries.core.bucketing import bucket_width, plan
from vitalseries.core.errors import InvalidRange

pytestmark = [pytest.mark.core, pytest.mark.tier(0)]


class TestBucketWidth:
    """Tests for bucket_width()."""

    @pytest.mark.tra("Core.Bucketing.Width.Budget")
    def test_day_with_budget_24_is_one_hour(self) -> None:
        """A 24h range with a budget of 24 points yields 1h buckets."""
        assert bucket_width(DAY_START, DAY_END, point_budget=24) == HOUR

    @pytest.mark.tra("Core.Bucketing.Width.Floor")
    def test_short_range_uses_minimum_width(self) -> None:
        """Ranges shorter than budget * floor fall back to the floor."""
        assert bucket_width(0.0, 600.0, point_budget=200) == 60.0

    def test_width_rounds_up_to_whole_seconds(self) -> None:
        """The budget-derived width is the ceiling in whole seconds."""
        assert bucket_width(0.0, 1000.0, point_budget=3, minimum_bucket_width=1) == 334.0

    def test_custom_minimum_width(self) -> None:
        """minimum_bucket_width overrides the default floor."""
        assert bucket_width(0.0, 100.0, point_budget=200, minimum_bucket_width=5) == 5.0

    @pytest.mark.tra("Core.Bucketing.InvalidRange")
    @pytest.mark.parametrize(
        ("start", "end"),
        [(10.0, 10.0), (20.0, 10.0), (math.nan, 10.0), (0.0, math.inf)],
    )
    def test_invalid_range_raises(self, start: float, end: float) -> None:
        """Empty, reversed and non-finite ranges raise InvalidRange."""
        with pytest.raises(InvalidRange):
            bucket_width(start, end)

    def test_invalid_range_is_value_error(self) -> None:
        """InvalidRange can be caught as ValueError."""
        with pytest.raises(ValueError):
            plan(5.0, 5.0)

    def test_zero_point_budget_raises(self) -> None:
        """A point budget below one is rejected."""
        with pytest.raises(ValueError, match="point_budget"):
            bucket_width(0.0, 100.0, point_budget=0)

    def test_non_positive_minimum_width_raises(self) -> None:
        """A zero minimum width is rejected."""
        with pytest.raises(ValueError, match="minimum_bucket_width"):
            bucket_width(0.0, 100.0, minimum_bucket_width=0)


class TestPlan:
    """Tests for plan()."""

    @pytest.mark.tra("Core.Bucketing.Plan.Example")
    def test_day_plan_has_24_hourly_buckets(self) -> None:
        """24h at budget 24 is 24 buckets of one hour each."""
        buckets = plan(DAY_START, DAY_END, point_budget=24)

        assert len(buckets) == 24
        assert buckets[0].start == DAY_START
        assert buckets[1].start == DAY_START + HOUR
        assert buckets[-1].end == DAY_END
        assert all(b.width == HOUR for b in buckets)

    def test_indices_are_sequential(self) -> None:
        """Bucket indices run from 0 in ascending order."""
        buckets = plan(0.0, 1000.0, point_budget=7, minimum_bucket_width=1)

        assert [b.index for b in buckets] == list(range(len(buckets)))

    @pytest.mark.tra("Core.Bucketing.Plan.LastBucketClipped")
    def test_last_bucket_is_clipped_to_end(self) -> None:
        """When the range is not a multiple of the width the last bucket is shorter."""
        buckets = plan(0.0, 150.0, point_budget=200, minimum_bucket_width=60)

        assert [(b.start, b.end) for b in buckets] == [
            (0.0, 60.0),
            (60.0, 120.0),
            (120.0, 150.0),
        ]

    def test_range_shorter_than_floor_is_single_bucket(self) -> None:
        """A range narrower than the floor produces one bucket spanning it."""
        buckets = plan(0.0, 10.0)

        assert len(buckets) == 1
        assert (buckets[0].start, buckets[0].end) == (0.0, 10.0)

    def test_bucket_contains_is_half_open(self) -> None:
        """A bucket contains its start but not its end."""
        bucket = plan(0.0, 120.0, minimum_bucket_width=60)[0]

        assert bucket.contains(0.0)
        assert bucket.contains(59.999)
        assert not bucket.contains(60.0)

    @pytest.mark.tra("Core.Bucketing.Plan.Coverage")
    @given(
        start=st.integers(min_value=0, max_value=2_000_000_000),
        length=st.integers(min_value=1, max_value=400 * 86_400),
        budget=st.integers(min_value=1, max_value=1_000),
        floor=st.integers(min_value=1, max_value=3_600),
    )
    def test_plan_covers_range_without_gaps_or_overlaps(
        self, start: int, length: int, budget: int, floor: int
    ) -> None:
        """Buckets tile [start, end) exactly; only the last may be shorter."""
        end = start + length
        buckets = plan(float(start), float(end), budget, float(floor))
        width = bucket_width(float(start), float(end), budget, float(floor))

        assert len(buckets) == math.ceil(length / width)
        assert len(buckets) <= budget or width == floor
        assert buckets[0].start == start
        assert buckets[-1].end == end
        for previous, current in zip(buckets, buckets[1:]):
            assert previous.end == current.start
            assert previous.width == width
        assert 0 < buckets[-1].width <= width

    @pytest.mark.tra("Core.Bucketing.Plan.Deterministic")
    @given(
        start=st.floats(min_value=0, max_value=2e9, allow_nan=False),
        length=st.floats(min_value=1, max_value=1e8, allow_nan=False),
        budget=st.integers(min_value=1, max_value=500),
    )
    def test_plan_is_deterministic(self, start: float, length: float, budget: int) -> None:
        """Identical inputs always give identical bucket boundaries."""
        end = start + length
        if not end > start:
            return

        assert plan(start, end, budget) == plan(start, end, budget)
