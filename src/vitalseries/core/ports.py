"""Port interfaces for sample store adapters.

These protocols define the contracts that storage adapters must implement.
The core domain depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Callable, Iterable
from typing import Protocol, runtime_checkable

from vitalseries.core.models import IngestionEvent, RawSample

IngestionCallback = Callable[[IngestionEvent], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class SampleStorePort(Protocol):
    """Port for reading raw samples and observing ingestion.

    Adapters implementing this protocol serve range scans to the engine.
    Examples: InMemorySampleStore, SQLiteSampleStore.
    """

    def scan(self, metric: str, start: float, end: float) -> Iterable[RawSample]:
        """Scan samples of one metric in the half-open range [start, end).

        Returns:
            Iterable of RawSample objects, ordered by timestamp ascending.
        """
        ...

    def current_sample_version(self) -> int:
        """Return the monotonic counter bumped on every write batch."""
        ...

    def subscribe_to_ingestion(self, callback: IngestionCallback) -> Unsubscribe:
        """Register callback for ingestion events.

        Returns:
            A callable that removes the subscription.
        """
        ...
