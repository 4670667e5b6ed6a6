"""Tests for REST, websocket and SQL payload normalization."""

from __future__ import annotations

import pytest

from ingestion.adapters import extract_rest_data, process_websocket_data, transform_sql_results

pytestmark = pytest.mark.unit


def test_extract_rest_data_passes_lists_through() -> None:
    """A top-level list payload is already the record list."""

    payload = [{"id": 1}, {"id": 2}]
    assert extract_rest_data(payload) is payload


def test_extract_rest_data_follows_result_path() -> None:
    """A dotted result path walks nested mappings and list indices."""

    payload = {"response": {"pages": [{"items": [{"id": 7}]}]}}
    assert extract_rest_data(payload, result_path="response.pages.0.items") == [{"id": 7}]


def test_extract_rest_data_wraps_mapping_at_result_path() -> None:
    """A single object found at the path becomes a one-record list."""

    payload = {"response": {"total": 3}}
    assert extract_rest_data(payload, result_path="response") == [{"total": 3}]


def test_extract_rest_data_missing_path_returns_empty() -> None:
    """Paths that miss or land on a scalar produce no records."""

    payload = {"response": {"total": 3}}
    assert extract_rest_data(payload, result_path="response.rows") == []
    assert extract_rest_data(payload, result_path="response.total") == []


def test_extract_rest_data_prefers_known_container_keys() -> None:
    """`data`, `results`, `items` and friends win over other list values."""

    payload = {"meta": [{"page": 1}], "results": [{"id": 1}]}
    assert extract_rest_data(payload) == [{"id": 1}]


def test_extract_rest_data_falls_back_to_any_list_value() -> None:
    """Without a known key, the first non-empty list value is used."""

    payload = {"count": 2, "rows": [{"id": 1}, {"id": 2}]}
    assert extract_rest_data(payload) == [{"id": 1}, {"id": 2}]


def test_extract_rest_data_empty_container_stops_key_search() -> None:
    """An empty known container ends the key search; other lists still count."""

    assert extract_rest_data({"data": [], "results": [{"id": 1}]}) == [{"id": 1}]
    assert extract_rest_data({"data": []}) == [{"data": []}]


def test_extract_rest_data_wraps_plain_objects_and_rejects_empties() -> None:
    """A plain object is one record; empty and scalar payloads are none."""

    assert extract_rest_data({"status": "ok"}) == [{"status": "ok"}]
    assert extract_rest_data({}) == []
    assert extract_rest_data(None) == []
    assert extract_rest_data(42) == []


def test_process_websocket_data_matches_rest_extraction() -> None:
    """Streamed messages use the REST extraction rules."""

    message = {"type": "update", "data": [{"value": 1}]}
    assert process_websocket_data(message) == [{"value": 1}]
    assert process_websocket_data(message, result_path="data.0") == [{"value": 1}]


def test_transform_sql_results_handles_driver_shapes() -> None:
    """Bare lists, `rows` and `recordset` shapes all normalize to records."""

    rows = [{"id": 1, "name": "a"}]
    assert transform_sql_results(rows) == rows
    assert transform_sql_results({"rows": rows, "rowCount": 1}) == rows
    assert transform_sql_results({"recordset": rows}) == rows


def test_transform_sql_results_write_results_have_no_rows() -> None:
    """Write results and unknown shapes yield no records."""

    assert transform_sql_results({"affectedRows": 3}) == []
    assert transform_sql_results({"unexpected": True}) == []
    assert transform_sql_results(None) == []


def test_transform_sql_results_renames_keys_without_mutating_input() -> None:
    """Key mapping renames mapped fields and keeps the rest."""

    rows = [{"usr_nm": "ada", "age": 36}, "not a row"]
    records = transform_sql_results(rows, key_mapping={"usr_nm": "user"})

    assert records == [{"user": "ada", "age": 36}]
    assert rows[0] == {"usr_nm": "ada", "age": 36}
