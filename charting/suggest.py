"""Heuristic chart-type and field-binding suggestions for a dataset.

Suggestions look at the first record only: numeric-like fields are values,
everything else is a category, and field names that read like dates or
periods are preferred for the x axis.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Final

from ingestion.coercion import extract_columns

_TIME_MARKERS: Final[tuple[str, ...]] = ("date", "time", "year", "month", "day", "quarter")


def time_like_fields(fields: Sequence[str]) -> list[str]:
    """Return field names that look like dates or periods, in input order."""

    return [name for name in fields if any(marker in name.lower() for marker in _TIME_MARKERS)]


def suggest_chart_type(data: Sequence[Mapping[str, Any]]) -> str:
    """Suggest a chart type for a dataset.

    Args:
        data: Records to chart. Only the first record's fields are inspected.

    Returns:
        One of the mapped chart types; `bar` when nothing more specific fits.
    """

    if not data:
        return "bar"

    columns = extract_columns(data)
    numeric_count = len(columns.numeric)
    categorical_count = len(columns.string)

    if numeric_count >= 2 and categorical_count >= 1:
        return "dual-axes"
    if categorical_count == 1 and numeric_count == 1:
        return "bar"
    if categorical_count > 1 and numeric_count == 1:
        return "column"
    if numeric_count > 0 and time_like_fields(columns.all):
        return "line"
    if 2 <= numeric_count <= 3:
        return "scatter"
    return "bar"


def suggest_field_bindings(data: Sequence[Mapping[str, Any]], chart_type: str) -> dict[str, Any]:
    """Suggest field bindings for a chart type.

    Args:
        data: Records to chart.
        chart_type: Chart type the bindings are for.

    Returns:
        A partial camelCase widget config (`xField`, `yField`, `colorField`,
        `binField`, `children`). Empty for empty data or unmapped types.
    """

    if not data:
        return {}

    fields = list(data[0].keys())
    columns = extract_columns(data)
    numeric = list(columns.numeric)
    categorical = list(columns.string)
    time_fields = time_like_fields(fields)

    first_field = fields[0] if fields else None
    second_field = fields[1] if len(fields) > 1 else first_field
    value_field = _first(numeric) or second_field

    bindings: dict[str, Any]
    if chart_type in ("bar", "column"):
        x_field = _first(time_fields) or _first(categorical) or first_field
        bindings = {
            "xField": x_field,
            "yField": value_field,
            "colorField": _other(categorical, x_field),
        }
    elif chart_type in ("line", "area"):
        x_field = _first(time_fields) or _first(categorical) or first_field
        bindings = {
            "xField": x_field,
            "yField": value_field,
            "colorField": _other(categorical, x_field) if len(numeric) > 1 else None,
        }
    elif chart_type == "pie":
        bindings = {"xField": _first(categorical) or first_field, "yField": value_field}
    elif chart_type == "scatter":
        bindings = {
            "xField": _first(numeric) or first_field,
            "yField": numeric[1] if len(numeric) > 1 else value_field,
            "colorField": _first(categorical),
        }
    elif chart_type == "dual-axes":
        secondary = numeric[1] if len(numeric) > 1 else value_field
        bindings = {
            "xField": _first(time_fields) or _first(categorical) or first_field,
            "yField": value_field,
            "children": [
                {"type": "interval", "yField": value_field},
                {"type": "line", "yField": secondary},
            ],
        }
    elif chart_type == "histogram":
        bindings = {"binField": _first(numeric) or first_field}
    elif chart_type == "word-cloud":
        bindings = {"colorField": _first(categorical) or first_field}
    else:
        return {}

    return {key: value for key, value in bindings.items() if value is not None}


def _first(values: Sequence[str]) -> str | None:
    """First name in `values`, or None when empty."""

    return values[0] if values else None


def _other(values: Sequence[str], taken: str | None) -> str | None:
    """First name in `values` other than `taken`."""

    return next((name for name in values if name != taken), None)
