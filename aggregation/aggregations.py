"""Grouping and aggregation over normalized records.

Groups are keyed by tuples (one component per grouping field), so a value
containing any delimiter character can never split or merge groups. Every
reduction is total: an empty group or a group without numeric values reduces
to 0 instead of raising.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any, Final, Literal

from ingestion.coercion import Record, to_number

AggregationMethod = Literal["sum", "avg", "average", "max", "min", "median", "count", "first", "last"]

AGGREGATION_METHODS: Final[frozenset[str]] = frozenset(
    {"sum", "avg", "average", "max", "min", "median", "count", "first", "last"}
)


class _Missing:
    """Group-key component for absent or null values."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final[_Missing] = _Missing()

GroupKey = tuple[str | _Missing, ...]


def aggregate(data: Sequence[Mapping[str, Any]], field: str, method: AggregationMethod | str = "sum") -> Any:
    """Reduce one field of a record group.

    Args:
        data: Records in the group.
        field: Field to reduce (ignored by `count`).
        method: Aggregation method, case-insensitive. Unknown methods sum.

    Returns:
        The reduced value. `max`/`min` return the field value of the extremal
        record; every method returns 0 for an empty group.
    """

    normalized = str(method).lower()

    if normalized == "count":
        return len(data)
    if normalized in ("first", "last"):
        if not data:
            return 0
        row = data[0] if normalized == "first" else data[-1]
        value = to_number(row.get(field))
        return 0 if value is None else value

    pairs = _numeric_pairs(data, field)
    if not pairs:
        return 0
    values = [value for value, _row in pairs]

    if normalized in ("avg", "average"):
        return sum(values) / len(values)
    if normalized in ("max", "min"):
        pick = max if normalized == "max" else min
        _value, row = pick(pairs, key=lambda pair: pair[0])
        return row.get(field)
    if normalized == "median":
        ordered = sorted(values)
        mid = len(ordered) // 2
        if len(ordered) % 2 == 0:
            return (ordered[mid - 1] + ordered[mid]) / 2
        return ordered[mid]
    return sum(values)


def _numeric_pairs(data: Sequence[Mapping[str, Any]], field: str) -> list[tuple[int | float, Mapping[str, Any]]]:
    """Collect (number, record) pairs, skipping non-numeric values."""

    pairs: list[tuple[int | float, Mapping[str, Any]]] = []
    for row in data:
        value = to_number(row.get(field))
        if value is None:
            continue
        pairs.append((value, row))
    return pairs


def group_label(value: object) -> str | _Missing:
    """Stringify a grouping value the way JSON clients display it.

    None maps to MISSING so absent values never collide with literal text.
    """

    if value is None:
        return MISSING
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _emit(component: str | _Missing) -> str | None:
    """Turn a group-key component back into an output value."""

    return None if component is MISSING else component  # type: ignore[return-value]


def partition(data: Sequence[Mapping[str, Any]], keys: Sequence[str]) -> dict[GroupKey, list[Mapping[str, Any]]]:
    """Partition records by the tuple of their grouping labels, first-seen order."""

    groups: dict[GroupKey, list[Mapping[str, Any]]] = {}
    for row in data:
        group_key = tuple(group_label(row.get(key)) for key in keys)
        groups.setdefault(group_key, []).append(row)
    return groups


def group_by_field(
    data: Sequence[Mapping[str, Any]],
    key: str,
    value_field: str,
    method: AggregationMethod | str = "sum",
) -> list[Record]:
    """Aggregate one value field per distinct value of `key`.

    Args:
        data: Input records.
        key: Grouping field.
        value_field: Field reduced within each group.
        method: Aggregation method.

    Returns:
        One `{key: label, value_field: aggregate}` record per group.
    """

    return [
        {key: _emit(group_key[0]), value_field: aggregate(items, value_field, method)}
        for group_key, items in partition(data, (key,)).items()
    ]


def group_by_fields(
    data: Sequence[Mapping[str, Any]],
    keys: Sequence[str],
    method: AggregationMethod | str = "sum",
) -> list[Record]:
    """Group by several fields and aggregate every numeric field.

    Numeric fields are detected on the first member of each group: every
    non-key field holding an int/float is reduced with `method`.

    Args:
        data: Input records.
        keys: Grouping fields, in output order.
        method: Aggregation method applied to every numeric field.

    Returns:
        One record per group. With no keys, a copy of the input rows.
    """

    if not keys:
        return [dict(row) for row in data]

    key_set = set(keys)
    results: list[Record] = []
    for group_key, items in partition(data, keys).items():
        result: Record = {key: _emit(component) for key, component in zip(keys, group_key)}
        numeric_fields = [
            field
            for field, value in items[0].items()
            if field not in key_set and isinstance(value, (int, float)) and not isinstance(value, bool)
        ]
        for field in numeric_fields:
            result[field] = aggregate(items, field, method)
        results.append(result)
    return results


def group_by_custom(
    data: Sequence[Mapping[str, Any]],
    keys: str | Sequence[str],
    aggregations: Mapping[str, AggregationMethod | str | None],
) -> list[Record]:
    """Group by one or more fields with a method per aggregated field.

    Args:
        data: Input records.
        keys: A grouping field or sequence of fields.
        aggregations: Mapping of field -> method. Fields missing from a
            group's first member, and falsy methods, are skipped.

    Returns:
        One record per group.
    """

    key_list = (keys,) if isinstance(keys, str) else tuple(keys)
    results: list[Record] = []
    for group_key, items in partition(data, key_list).items():
        result: Record = {key: _emit(component) for key, component in zip(key_list, group_key)}
        for field, method in aggregations.items():
            if method and field in items[0]:
                result[field] = aggregate(items, field, method)
        results.append(result)
    return results
