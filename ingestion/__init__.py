"""Source adapters and type coercion.

Everything here operates on already-fetched payloads and returns plain
record dicts. No module performs I/O or imports a web framework.
"""

from .adapters import extract_rest_data, parse_csv, process_websocket_data, transform_sql_results
from .coercion import ColumnClassification, extract_columns, makesure_numeric

__all__ = [
    "ColumnClassification",
    "extract_columns",
    "extract_rest_data",
    "makesure_numeric",
    "parse_csv",
    "process_websocket_data",
    "transform_sql_results",
]
