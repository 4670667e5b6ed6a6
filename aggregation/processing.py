"""Row-level shaping applied before charting: filters, sorting, limits.

These helpers never mutate their inputs. `normalize_series` fills the gaps a
stacked/percentage area chart needs so every x value carries every color.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Literal, TypedDict

from ingestion.coercion import Record, is_numeric_like, to_number

FilterOperator = Literal["equals", "not_equals", "greater_than", "less_than", "contains"]
SortOrder = Literal["asc", "desc", "none"]


class ChartFilter(TypedDict):
    """A single row filter as stored on a widget config."""

    field: str
    operator: FilterOperator
    value: str | int | float | bool


def apply_filters(data: Sequence[Mapping[str, Any]], filters: Iterable[Mapping[str, Any]] | None) -> list[Record]:
    """Keep rows matching every filter.

    Args:
        data: Input rows.
        filters: Filter mappings with `field`, `operator` and `value` keys.

    Returns:
        A new list of the matching rows (row dicts are copied).
    """

    active = list(filters or ())
    return [dict(row) for row in data if all(_matches(row, f) for f in active)]


def _matches(row: Mapping[str, Any], rule: Mapping[str, Any]) -> bool:
    """Evaluate one filter against a row. Unknown operators keep the row."""

    operator = rule.get("operator")
    actual = row.get(str(rule.get("field")))
    expected = rule.get("value")

    if operator == "equals":
        return _loose_equals(actual, expected)
    if operator == "not_equals":
        return not _loose_equals(actual, expected)
    if operator in ("greater_than", "less_than"):
        ordered = _ordered_pair(actual, expected)
        if ordered is None:
            return False
        left, right = ordered
        return left > right if operator == "greater_than" else left < right
    if operator == "contains":
        return str(expected).casefold() in _display(actual).casefold()
    return True


def _loose_equals(actual: object, expected: object) -> bool:
    """Compare numerically when both sides are numeric-like, else as text."""

    if is_numeric_like(actual) and is_numeric_like(expected):
        return to_number(actual) == to_number(expected)
    return _display(actual) == _display(expected)


def _ordered_pair(actual: object, expected: object) -> tuple[Any, Any] | None:
    """Return comparable operands, or None when the values cannot be ordered."""

    if actual is None or expected is None:
        return None
    if is_numeric_like(actual) and is_numeric_like(expected):
        return to_number(actual), to_number(expected)
    if isinstance(actual, str) and isinstance(expected, str):
        return actual, expected
    return None


def _display(value: object) -> str:
    """Render a scalar the way a JSON client would display it."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def sort_records(data: Sequence[Mapping[str, Any]], field: str, *, descending: bool = False) -> list[Record]:
    """Sort rows by a field with None values always last.

    Numbers sort numerically and before text; text sorts case-insensitively.
    """

    present = [dict(row) for row in data if row.get(field) is not None]
    missing = [dict(row) for row in data if row.get(field) is None]
    present.sort(key=lambda row: _sort_key(row[field]), reverse=descending)
    return present + missing


def _sort_key(value: object) -> tuple[int, Any]:
    """Build a total-order key across mixed scalar types."""

    if is_numeric_like(value) and not isinstance(value, str):
        return (0, value)
    return (1, _display(value).casefold())


def apply_sorting(
    data: Sequence[Mapping[str, Any]],
    sort_by: str | None,
    sort_order: SortOrder | str = "none",
) -> list[Record]:
    """Sort rows by `sort_by` unless the order is `none`."""

    if not sort_by or sort_order not in ("asc", "desc"):
        return [dict(row) for row in data]
    return sort_records(data, sort_by, descending=sort_order == "desc")


def apply_limit(data: Sequence[Mapping[str, Any]], limit: int | None) -> list[Record]:
    """Keep the first `limit` rows; non-positive limits are ignored."""

    if not limit or limit <= 0:
        return [dict(row) for row in data]
    return [dict(row) for row in data[:limit]]


def process_chart_data(
    data: Sequence[Mapping[str, Any]],
    *,
    filters: Iterable[Mapping[str, Any]] | None = None,
    sort_by: str | None = None,
    sort_order: SortOrder | str = "none",
    limit: int | None = None,
) -> list[Record]:
    """Apply filters, then sorting, then the row limit."""

    rows = apply_filters(data, filters)
    rows = apply_sorting(rows, sort_by, sort_order)
    return apply_limit(rows, limit)


def normalize_series(
    data: Sequence[Mapping[str, Any]],
    *,
    x_field: str | None,
    y_field: str | None,
    color_field: str | None,
) -> list[Record]:
    """Expand data so every x value carries every color value.

    Args:
        data: Rows with x, y and color fields.
        x_field: Category/time field.
        y_field: Value field.
        color_field: Series field.

    Returns:
        One row per (x, color) pair in first-seen order. Pairs absent from the
        input get a y value of 0. When several input rows share a pair, the
        first one wins. Input is returned (copied) unchanged when any field is
        unset or the data is empty.
    """

    if not data or not x_field or not y_field or not color_field:
        return [dict(row) for row in data]

    x_values = list(dict.fromkeys(row.get(x_field) for row in data))
    color_values = list(dict.fromkeys(row.get(color_field) for row in data))
    first_match: dict[tuple[Any, Any], Any] = {}
    for row in data:
        first_match.setdefault((row.get(x_field), row.get(color_field)), row.get(y_field))

    normalized: list[Record] = []
    for x_value in x_values:
        for color_value in color_values:
            normalized.append(
                {
                    x_field: x_value,
                    color_field: color_value,
                    y_field: first_match.get((x_value, color_value), 0),
                }
            )
    return normalized
