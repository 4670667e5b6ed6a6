"""Tests for column classification and numeric coercion."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from ingestion.coercion import (
    ColumnClassification,
    convert_field_value,
    extract_columns,
    is_numeric_like,
    makesure_numeric,
    parse_datetime,
    to_number,
)

pytestmark = pytest.mark.unit


def test_extract_columns_partitions_by_first_record() -> None:
    """Fields are classified from the first record with numeric fields last."""

    data = [{"name": "a", "amount": "12.5", "count": 3, "flag": True}, {"name": "b"}]
    columns = extract_columns(data)

    assert columns.string == ("name", "flag")
    assert columns.numeric == ("amount", "count")
    assert columns.all == ("name", "flag", "amount", "count")


def test_extract_columns_empty_data() -> None:
    """No records means no columns."""

    assert extract_columns([]) == ColumnClassification()


def test_extract_columns_declared_schema_overrides_sample() -> None:
    """A declared schema wins over the sampled first value."""

    data = [{"zip": "02139", "amount": None}]
    columns = extract_columns(data, schema={"zip": "string", "amount": "numeric"})

    assert columns.string == ("zip",)
    assert columns.numeric == ("amount",)


def test_makesure_numeric_returns_new_rows() -> None:
    """Coercion never mutates the caller's records."""

    data = [{"label": "a", "value": "10"}, {"label": "b", "value": "2.5"}]
    coerced = makesure_numeric(data)

    assert coerced == [{"label": "a", "value": 10}, {"label": "b", "value": 2.5}]
    assert data[0]["value"] == "10"
    assert coerced[0] is not data[0]


def test_makesure_numeric_uncoercible_values_become_none() -> None:
    """A later row that disagrees with the sampled kind yields None, never NaN."""

    coerced = makesure_numeric([{"v": "1"}, {"v": "oops"}, {"v": ""}, {}])
    assert coerced == [{"v": 1}, {"v": None}, {"v": None}, {}]


def test_numeric_detection_rules() -> None:
    """Numeric-like means finite numbers or numeric literals, never booleans."""

    assert is_numeric_like("  -1.5e3 ")
    assert is_numeric_like(".5")
    assert is_numeric_like(7)
    assert not is_numeric_like(True)
    assert not is_numeric_like(float("nan"))
    assert not is_numeric_like("1,000")
    assert not is_numeric_like(None)


def test_to_number_keeps_integers_integral() -> None:
    """Integral literals become ints, everything else floats."""

    assert to_number("42") == 42 and isinstance(to_number("42"), int)
    assert to_number("4.0") == 4.0 and isinstance(to_number("4.0"), float)
    assert to_number("abc") is None


def test_convert_field_value_order() -> None:
    """Blank, number, boolean, date, then text."""

    assert convert_field_value("") is None
    assert convert_field_value("007") == 7
    assert convert_field_value("True") is True
    assert convert_field_value("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, tzinfo=UTC)
    assert convert_field_value("20240301") == 20240301
    assert convert_field_value("hello") == "hello"


def test_parse_datetime_normalizes_to_utc() -> None:
    """Offsets are converted to UTC and naive values are assumed UTC."""

    assert parse_datetime("2024-03-01T12:00:00+02:00") == datetime(2024, 3, 1, 10, tzinfo=UTC)
    assert parse_datetime("03/15/2024") == datetime(2024, 3, 15, tzinfo=UTC)
    assert parse_datetime("not a date") is None


def test_makesure_numeric_is_idempotent() -> None:
    """Coercing already-coerced rows changes nothing, overflow literals included."""

    data = [
        {"label": "a", "v": "1", "w": "2.5"},
        {"label": "b", "v": "1e999", "w": "x"},
        {"label": "c", "v": None, "w": "-3"},
    ]
    once = makesure_numeric(data)

    assert once == [
        {"label": "a", "v": 1, "w": 2.5},
        {"label": "b", "v": None, "w": None},
        {"label": "c", "v": None, "w": -3},
    ]
    assert makesure_numeric(once) == once


def test_overflowing_literals_are_not_numbers() -> None:
    """Literals that would read as infinity stay out of numeric results."""

    assert not is_numeric_like("1e999")
    assert to_number("-1e999") is None
    assert convert_field_value("1e999") == "1e999"
    assert to_number("1" * 400) == int("1" * 400)
