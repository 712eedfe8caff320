"""In-memory sample store adapter."""

import bisect
import threading
from collections.abc import Iterable, Iterator

from vitalseries.adapters.storage.ingestion import IngestionPublisher
from vitalseries.core.models import RawSample
from vitalseries.core.ports import IngestionCallback, Unsubscribe


def _timestamp(sample: RawSample) -> float:
    return sample.timestamp


class InMemorySampleStore:
    """In-memory implementation of SampleStorePort.

    Keeps one timestamp-sorted list per metric. Suitable for testing and
    low-volume applications where persistence is not required. Scans copy
    the matching slice under the lock, so readers never observe a write
    in progress.
    """

    def __init__(self, samples: Iterable[RawSample] = ()) -> None:
        self._series: dict[str, list[RawSample]] = {}
        self._lock = threading.Lock()
        self._publisher = IngestionPublisher()
        self.extend(samples)

    def append(self, sample: RawSample) -> int:
        """Write a single sample. Returns the new sample version."""
        return self.extend([sample])

    def extend(self, samples: Iterable[RawSample]) -> int:
        """Write a batch of samples. Returns the new sample version."""
        batch = list(samples)
        with self._lock:
            for sample in batch:
                series = self._series.setdefault(sample.metric, [])
                # insort_right keeps equal timestamps in arrival order
                bisect.insort_right(series, sample, key=_timestamp)
        return self._publisher.publish(batch)

    def scan(self, metric: str, start: float, end: float) -> Iterator[RawSample]:
        """Scan samples of one metric in [start, end), ordered by timestamp."""
        with self._lock:
            series = self._series.get(metric, [])
            lo = bisect.bisect_left(series, start, key=_timestamp)
            hi = bisect.bisect_left(series, end, key=_timestamp)
            snapshot = series[lo:hi]
        yield from snapshot

    def count(self, metric: str | None = None) -> int:
        """Return the number of stored samples, optionally for one metric."""
        with self._lock:
            if metric is not None:
                return len(self._series.get(metric, []))
            return sum(len(series) for series in self._series.values())

    def current_sample_version(self) -> int:
        return self._publisher.version

    def subscribe_to_ingestion(self, callback: IngestionCallback) -> Unsubscribe:
        return self._publisher.subscribe(callback)
