"""Encoders for aggregated series."""

from vitalseries.core.encoding.ndjson import encode_series_ndjson, series_to_dict
from vitalseries.core.encoding.tabular import encode_series_csv

__all__ = ["encode_series_csv", "encode_series_ndjson", "series_to_dict"]
