"""Metric catalog: resolves requested metric ids against known definitions."""

from collections.abc import Iterable, Iterator

from vitalseries.core.errors import UnknownMetric
from vitalseries.core.models import MetricDefinition, Reduction

# Sleep stages: 0 unknown, 1 awake, 2 light, 3 deep, 4 rem
DEFAULT_METRICS: tuple[MetricDefinition, ...] = (
    MetricDefinition("heartRate", "bpm", Reduction.MEAN, (20.0, 250.0)),
    MetricDefinition("restingHeartRate", "bpm", Reduction.MEAN, (20.0, 200.0)),
    MetricDefinition("heartRateVariability", "ms", Reduction.MEAN, (0.0, 300.0)),
    MetricDefinition("oxygenSaturation", "%", Reduction.MEAN, (50.0, 100.0)),
    MetricDefinition("respiratoryRate", "breaths/min", Reduction.MEAN, (4.0, 60.0)),
    MetricDefinition("bodyTemperature", "degC", Reduction.MEAN, (30.0, 45.0)),
    MetricDefinition("steps", "count", Reduction.SUM, (0.0, 100_000.0)),
    MetricDefinition("activeEnergy", "kcal", Reduction.SUM, (0.0, 10_000.0)),
    MetricDefinition("sleepStage", "stage", Reduction.LAST, (0.0, 4.0)),
    MetricDefinition("weight", "kg", Reduction.LAST, (1.0, 500.0)),
)


class MetricCatalog:
    """Read-only registry of metric definitions.

    Built once at engine construction. ``resolve`` returns ids in
    lexicographic order so that cache keys do not depend on the order
    in which callers list metrics.
    """

    def __init__(self, definitions: Iterable[MetricDefinition] = DEFAULT_METRICS) -> None:
        self._definitions: dict[str, MetricDefinition] = {}
        for definition in definitions:
            if definition.id in self._definitions:
                raise ValueError(f"Metric {definition.id!r} already registered")
            self._definitions[definition.id] = definition

    def resolve(self, requested_ids: Iterable[str] | str) -> tuple[str, ...]:
        """Validate requested ids and return them deduplicated and sorted.

        Args:
            requested_ids: Metric ids to resolve. A bare string is treated
                as a single id.

        Returns:
            Tuple of known metric ids in canonical order.

        Raises:
            UnknownMetric: If any id has no definition.
        """
        if isinstance(requested_ids, str):
            requested_ids = [requested_ids]
        resolved = sorted(set(requested_ids))
        for metric_id in resolved:
            if metric_id not in self._definitions:
                raise UnknownMetric(metric_id)
        return tuple(resolved)

    def get(self, metric_id: str) -> MetricDefinition:
        try:
            return self._definitions[metric_id]
        except KeyError:
            raise UnknownMetric(metric_id) from None

    def ids(self) -> list[str]:
        return sorted(self._definitions)

    def __contains__(self, metric_id: object) -> bool:
        return metric_id in self._definitions

    def __iter__(self) -> Iterator[MetricDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)
