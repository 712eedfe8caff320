"""CSV export for aggregated series."""

import csv
import io
from collections.abc import Mapping

from vitalseries.core.models import SeriesResult

CSV_HEADER = ("metric", "timestamp", "value", "unit", "sample_count")


def encode_series_csv(series_map: Mapping[str, SeriesResult]) -> str:
    """Encode series as CSV with a header row.

    Gaps are written with an empty value column so spreadsheets do not
    mistake them for zero.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for metric_id in sorted(series_map):
        series = series_map[metric_id]
        for point in series.points:
            writer.writerow(
                (
                    metric_id,
                    point.bucket_start,
                    "" if point.value is None else point.value,
                    series.unit,
                    point.sample_count,
                )
            )
    return buffer.getvalue()
