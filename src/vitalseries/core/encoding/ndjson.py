"""NDJSON encoder for aggregated series."""

import json
from collections.abc import Mapping
from typing import Any

from vitalseries.core.models import SeriesResult


def series_to_dict(series: SeriesResult) -> dict[str, Any]:
    """Convert a SeriesResult to a JSON-serialisable dict."""
    return {
        "metric": series.metric,
        "unit": series.unit,
        "reduction": series.reduction.value,
        "points": [
            {
                "timestamp": point.bucket_start,
                "value": point.value,
                "sample_count": point.sample_count,
            }
            for point in series.points
        ],
    }


def encode_series_ndjson(series_map: Mapping[str, SeriesResult]) -> str:
    """Encode series to newline-delimited JSON, one object per point.

    Metrics are emitted in sorted order; gaps are encoded with a null value.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if there are no points.
    """
    lines = []
    for metric_id in sorted(series_map):
        series = series_map[metric_id]
        for point in series.points:
            obj = {
                "metric": metric_id,
                "timestamp": point.bucket_start,
                "value": point.value,
                "sample_count": point.sample_count,
            }
            lines.append(json.dumps(obj))

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
