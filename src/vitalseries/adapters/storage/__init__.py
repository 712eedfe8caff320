"""Storage adapters implementing core ports."""

from vitalseries.adapters.storage.in_memory import InMemorySampleStore
from vitalseries.adapters.storage.ingestion import IngestionPublisher
from vitalseries.adapters.storage.sqlite_samples import SQLiteSampleStore

__all__ = [
    "InMemorySampleStore",
    "IngestionPublisher",
    "SQLiteSampleStore",
]
