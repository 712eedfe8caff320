"""Shared test fixtures for all test modules."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from tests.helpers import at, heart_rate
from vitalseries.adapters.storage.in_memory import InMemorySampleStore
from vitalseries.core.engine import AggregationEngine, EngineConfig
from vitalseries.core.models import RawSample

try:
    import httpx
except ImportError:
    httpx = None


@pytest.fixture
def samples_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for sample store tests."""
    return str(tmp_path / "samples.db")


@pytest.fixture
def store() -> InMemorySampleStore:
    """Fixture providing an empty in-memory sample store."""
    return InMemorySampleStore()


@pytest.fixture
def engine(store: InMemorySampleStore) -> Iterator[AggregationEngine]:
    """Engine over the in-memory store, planning 24 hourly buckets per day."""
    with AggregationEngine(store, config=EngineConfig(point_budget=24)) as eng:
        yield eng


@pytest.fixture
def example_samples() -> list[RawSample]:
    """Heart-rate samples at 00:05 (60), 00:40 (64) and 01:10 (58)."""
    return [
        heart_rate(at(0, 5), 60.0),
        heart_rate(at(0, 40), 64.0),
        heart_rate(at(1, 10), 58.0),
    ]


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            async with asgi_test_client(app) as client:
                response = await client.get("/series")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
