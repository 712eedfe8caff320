"""Sample versioning and ingestion notifications shared by store adapters."""

import logging
import threading
from collections.abc import Iterable

from vitalseries.core.models import IngestionEvent, RawSample
from vitalseries.core.ports import IngestionCallback, Unsubscribe

logger = logging.getLogger(__name__)


class IngestionPublisher:
    """Tracks the sample version and fans out ingestion events.

    Each write batch bumps the version once and publishes one event per
    metric present in the batch, spanning that metric's timestamps.
    """

    def __init__(self) -> None:
        self._version = 0
        self._lock = threading.Lock()
        self._subscribers: list[IngestionCallback] = []

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def subscribe(self, callback: IngestionCallback) -> Unsubscribe:
        """Register callback; the returned callable removes it again."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, samples: Iterable[RawSample]) -> int:
        """Bump the version for a written batch and notify subscribers.

        Returns:
            The sample version after the batch. Unchanged for an empty batch.
        """
        spans: dict[str, tuple[float, float]] = {}
        for sample in samples:
            low, high = spans.get(sample.metric, (sample.timestamp, sample.timestamp))
            spans[sample.metric] = (min(low, sample.timestamp), max(high, sample.timestamp))

        with self._lock:
            if not spans:
                return self._version
            self._version += 1
            version = self._version
            subscribers = list(self._subscribers)

        for metric, (start, end) in sorted(spans.items()):
            event = IngestionEvent(
                metric=metric, start=start, end=end, sample_version=version
            )
            for callback in subscribers:
                try:
                    callback(event)
                except Exception:
                    logger.exception("Ingestion subscriber failed for %s", event)
        return version
