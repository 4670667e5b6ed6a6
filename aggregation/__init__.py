"""Grouping, aggregation and row shaping for normalized records."""

from .aggregations import aggregate, group_by_custom, group_by_field, group_by_fields
from .processing import normalize_series, process_chart_data

__all__ = [
    "aggregate",
    "group_by_custom",
    "group_by_field",
    "group_by_fields",
    "normalize_series",
    "process_chart_data",
]
