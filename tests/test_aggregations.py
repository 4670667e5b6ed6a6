"""Tests for grouping and aggregation over records."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from aggregation.aggregations import (
    MISSING,
    aggregate,
    group_by_custom,
    group_by_field,
    group_by_fields,
    group_label,
    partition,
)

pytestmark = pytest.mark.unit


ROWS = [
    {"region": "East", "product": "A", "sales": 10, "units": 1},
    {"region": "West", "product": "A", "sales": 4, "units": 2},
    {"region": "East", "product": "B", "sales": 6, "units": 3},
    {"region": "East", "product": "A", "sales": 5, "units": 4},
]


def test_aggregate_methods() -> None:
    """Each method reduces the numeric values of a field."""

    data = [{"v": 3}, {"v": "1"}, {"v": 8}, {"v": "x"}]
    assert aggregate(data, "v", "sum") == 12
    assert aggregate(data, "v", "avg") == 4
    assert aggregate(data, "v", "AVERAGE") == 4
    assert aggregate(data, "v", "median") == 3
    assert aggregate(data, "v", "max") == 8
    assert aggregate(data, "v", "min") == "1"
    assert aggregate(data, "v", "count") == 4
    assert aggregate(data, "v", "first") == 3
    assert aggregate(data, "v", "last") == 0
    assert aggregate(data, "v", "unknown") == 12


def test_aggregate_median_even_count_averages_middle_pair() -> None:
    """An even-sized group averages the two middle values."""

    assert aggregate([{"v": 1}, {"v": 4}, {"v": 2}, {"v": 10}], "v", "median") == 3


def test_aggregate_empty_groups_reduce_to_zero() -> None:
    """Empty or non-numeric groups never raise."""

    for method in ("sum", "avg", "max", "min", "median", "first", "last", "count"):
        assert aggregate([], "v", method) == 0
    assert aggregate([{"v": "n/a"}], "v", "avg") == 0


def test_group_by_field_sums_per_category_in_first_seen_order() -> None:
    """One record per distinct key value, in first-seen order."""

    assert group_by_field(ROWS, "region", "sales") == [
        {"region": "East", "sales": 21},
        {"region": "West", "sales": 4},
    ]


def test_group_by_fields_aggregates_every_numeric_field() -> None:
    """Numeric fields come from the group's first member; key order is kept."""

    result = group_by_fields(ROWS, ["region", "product"], "max")
    assert result == [
        {"region": "East", "product": "A", "sales": 10, "units": 4},
        {"region": "West", "product": "A", "sales": 4, "units": 2},
        {"region": "East", "product": "B", "sales": 6, "units": 3},
    ]


def test_group_by_fields_without_keys_copies_rows() -> None:
    """No grouping keys returns the rows unchanged (as copies)."""

    result = group_by_fields(ROWS, [])
    assert result == ROWS
    assert result[0] is not ROWS[0]


def test_group_keys_never_split_on_delimiters() -> None:
    """Values containing `|` stay intact and do not merge with other groups."""

    data = [
        {"a": "x|y", "b": "z", "v": 1},
        {"a": "x", "b": "y|z", "v": 2},
    ]
    result = group_by_fields(data, ["a", "b"])
    assert result == [{"a": "x|y", "b": "z", "v": 1}, {"a": "x", "b": "y|z", "v": 2}]


def test_missing_group_values_are_distinct_from_text() -> None:
    """Absent values group under MISSING and come back as None."""

    data = [{"k": None, "v": 1}, {"v": 2}, {"k": "None", "v": 3}]
    assert list(partition(data, ["k"])) == [(MISSING,), ("None",)]
    assert group_by_field(data, "k", "v") == [{"k": None, "v": 3}, {"k": "None", "v": 3}]


def test_group_label_stringifies_like_json_clients() -> None:
    """Booleans, integral floats and dates get display labels."""

    assert group_label(True) == "true"
    assert group_label(2.0) == "2"
    assert group_label(2.5) == "2.5"
    assert group_label(datetime(2024, 1, 1, tzinfo=UTC)) == "2024-01-01T00:00:00+00:00"


def test_group_by_custom_applies_per_field_methods() -> None:
    """Each aggregated field gets its own method; unknown fields are skipped."""

    result = group_by_custom(ROWS, "region", {"sales": "avg", "units": "count", "ghost": "sum", "product": None})
    assert result == [
        {"region": "East", "sales": 7, "units": 3},
        {"region": "West", "sales": 4, "units": 1},
    ]


def test_group_by_custom_accepts_multiple_keys() -> None:
    """A key sequence groups by the tuple of values."""

    result = group_by_custom(ROWS, ["region", "product"], {"sales": "sum"})
    assert result[0] == {"region": "East", "product": "A", "sales": 15}
    assert len(result) == 3


def test_group_by_field_average_per_category() -> None:
    """Averaging per category yields one record per category value."""

    data = [{"cat": "A", "v": 10}, {"cat": "A", "v": 20}, {"cat": "B", "v": 5}]
    result = group_by_field(data, "cat", "v", "avg")

    assert sorted(result, key=lambda row: row["cat"]) == [{"cat": "A", "v": 15}, {"cat": "B", "v": 5}]
    assert aggregate([{"v": 10}, {"v": 20}], "v", "avg") == 15
    assert aggregate([], "v", "sum") == 0
