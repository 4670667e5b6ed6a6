"""Tests for the declarative transform engine used by custom sources."""

from __future__ import annotations

import logging

import pytest

from ingestion.transforms import (
    TransformError,
    TransformValidationResult,
    compile_expression,
    evaluate_expression,
    execute_transform,
    validate_transform,
)

pytestmark = pytest.mark.unit


ORDERS = [
    {"id": 1, "status": "active", "amount": 2500, "created": "2024-01-02"},
    {"id": 2, "status": "closed", "amount": 900, "created": "2024-01-03"},
    {"id": 3, "status": "active", "amount": 0, "created": "2024-01-04"},
    {"id": 4, "status": "active", "amount": 1200, "created": "2024-01-05"},
]


def test_execute_transform_runs_steps_in_order() -> None:
    """Filter, map, rename, select, sort and limit compose left to right."""

    steps = [
        {"filter": "status == 'active' and amount > 0"},
        {"map": {"amount_k": "amount / 1000"}},
        {"rename": {"created": "date"}},
        {"select": ["date", "amount_k"]},
        {"sort": "amount_k", "order": "desc"},
        {"limit": 1},
    ]
    assert execute_transform(steps, ORDERS) == [{"date": "2024-01-02", "amount_k": 2.5}]


def test_execute_transform_does_not_mutate_input() -> None:
    """Input rows are copied before any step runs."""

    rows = [{"a": 1}]
    execute_transform([{"map": {"a": "a + 1"}}], rows)
    assert rows == [{"a": 1}]


def test_execute_transform_drop_and_membership() -> None:
    """`in` works over literal lists and `drop` removes fields."""

    steps = [{"filter": "id in [2, 4]"}, {"drop": ["created", "status"]}]
    assert execute_transform(steps, ORDERS) == [{"id": 2, "amount": 900}, {"id": 4, "amount": 1200}]


def test_execute_transform_rejects_code_execution(caplog: pytest.LogCaptureFixture) -> None:
    """Calls and attribute access are refused; the result is empty and logged."""

    with caplog.at_level(logging.WARNING, logger="ingestion.transforms"):
        assert execute_transform([{"filter": "__import__('os').system('true')"}], ORDERS) == []
        assert execute_transform([{"map": {"x": "status.upper()"}}], ORDERS) == []
    assert "Transform rejected" in caplog.text


def test_execute_transform_rejects_non_list_input() -> None:
    """Only lists of records are transformed."""

    assert execute_transform([{"limit": 1}], {"id": 1}) == []
    assert execute_transform([{"limit": 1}], None) == []


def test_execute_transform_empty_steps_copy_rows() -> None:
    """No steps means a copy of the mapping rows."""

    assert execute_transform([], [{"a": 1}, "skip"]) == [{"a": 1}]


def test_expression_arithmetic_propagates_missing_values() -> None:
    """Missing fields and division by zero evaluate to None."""

    row = {"a": 4, "b": 0}
    assert evaluate_expression(compile_expression("a / b"), row) is None
    assert evaluate_expression(compile_expression("a + missing"), row) is None
    assert evaluate_expression(compile_expression("-a * 2"), row) == -8
    assert evaluate_expression(compile_expression("'id-' + a"), row) == "id-4"


def test_expression_comparisons_never_raise() -> None:
    """Ordering incomparable values is simply false."""

    row = {"name": "ada", "age": None}
    assert evaluate_expression(compile_expression("age > 3"), row) is False
    assert evaluate_expression(compile_expression("1 < 2 < 3"), row) is True
    assert evaluate_expression(compile_expression("not name == 'bob'"), row) is True


def test_compile_expression_rejects_bad_syntax_and_nodes() -> None:
    """Syntax errors and non-whitelisted constructs raise TransformError."""

    with pytest.raises(TransformError):
        compile_expression("a ==")
    with pytest.raises(TransformError):
        compile_expression("[x for x in y]")
    with pytest.raises(TransformError):
        compile_expression("row['a']")


def test_validate_transform_reports_each_bad_step() -> None:
    """Validation reports one message per rejected step."""

    result = validate_transform(
        [
            {"filter": "amount > 0"},
            {"sort": "amount", "order": "sideways"},
            {"limit": "10"},
            {"filter": "a", "limit": 1},
        ]
    )
    assert isinstance(result, TransformValidationResult)
    assert result.is_valid is False
    assert len(result.errors) == 3
    assert result.errors[0].startswith("steps[1]")
    assert validate_transform([{"limit": 5}]).is_valid is True


def test_execute_transform_single_steps_compile() -> None:
    """Each operation works as the only step of a transform."""

    assert execute_transform([{"limit": 2}], ORDERS) == ORDERS[:2]
    assert execute_transform([{"select": ["id"]}], ORDERS[:1]) == [{"id": 1}]
    assert validate_transform([{"filter": "id > 1"}, {"drop": ["id"]}]).errors == ()


def test_execute_transform_runtime_errors_are_logged_with_traceback(caplog: pytest.LogCaptureFixture) -> None:
    """Failures while evaluating rows return no records and log at error level."""

    with caplog.at_level(logging.WARNING, logger="ingestion.transforms"):
        assert execute_transform([{"map": {"x": "[1] + id"}}], ORDERS) == []

    records = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert records
    assert records[0].exc_info is not None
