"""Declarative, sandboxed row transforms for custom data sources.

A transform is a list of steps, each a mapping with one operation key:

    [
        {"filter": "status == 'active' and amount > 0"},
        {"map": {"amount_k": "amount / 1000"}},
        {"rename": {"created": "date"}},
        {"select": ["date", "amount_k"]},
        {"sort": "date", "order": "desc"},
        {"limit": 50},
    ]

Expressions are a small language evaluated from the Python AST under a strict
whitelist: literals, field names, arithmetic, comparisons, `and`/`or`/`not`
and `in` over literal lists. No attribute access, calls, subscripts or
comprehensions. Any failure yields an empty result and a logged warning.
"""

from __future__ import annotations

import ast
import logging
import operator
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final

from aggregation.processing import apply_limit, sort_records

from .coercion import Record

logger = logging.getLogger(__name__)

Step = Callable[[list[Record]], list[Record]]


class TransformError(ValueError):
    """A transform step or expression is malformed or not allowed."""


@dataclass(frozen=True, slots=True)
class TransformValidationResult:
    """Validation result for a transform definition.

    Args:
        is_valid: True when no errors exist.
        errors: One message per rejected step.
    """

    is_valid: bool
    errors: tuple[str, ...] = ()


_ALLOWED_NODES: Final[tuple[type[ast.AST], ...]] = (
    ast.Expression,
    ast.Constant,
    ast.Name,
    ast.Load,
    ast.List,
    ast.Tuple,
    ast.UnaryOp,
    ast.UAdd,
    ast.USub,
    ast.Not,
    ast.BinOp,
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.Div,
    ast.Mod,
    ast.BoolOp,
    ast.And,
    ast.Or,
    ast.Compare,
    ast.Eq,
    ast.NotEq,
    ast.Lt,
    ast.LtE,
    ast.Gt,
    ast.GtE,
    ast.In,
    ast.NotIn,
)

_COMPARISONS: Final[dict[type[ast.cmpop], Callable[[Any, Any], bool]]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}

_STEP_KEYS: Final[frozenset[str]] = frozenset({"filter", "map", "select", "rename", "drop", "sort", "limit"})


def execute_transform(steps: Sequence[Mapping[str, Any]], data: Any) -> list[Record]:
    """Run a declarative transform over records.

    Args:
        steps: Transform steps (see module docstring).
        data: Input records. Anything other than a list is rejected.

    Returns:
        Transformed records, or `[]` when the input or any step is invalid.
    """

    if not isinstance(data, list):
        logger.warning("Transform input is not a list: %s", type(data).__name__)
        return []

    try:
        compiled = [_compile_step(step) for step in steps]
        rows = [dict(row) for row in data if isinstance(row, Mapping)]
        for step in compiled:
            rows = step(rows)
    except TransformError as exc:
        logger.warning("Transform rejected: %s", exc)
        return []
    except Exception:  # noqa: BLE001 - transform failures must never reach callers
        logger.exception("Transform failed while running")
        return []
    return rows


def validate_transform(steps: Sequence[Mapping[str, Any]]) -> TransformValidationResult:
    """Check every step and expression without running the transform."""

    errors: list[str] = []
    for idx, step in enumerate(steps):
        try:
            _compile_step(step)
        except TransformError as exc:
            errors.append(f"steps[{idx}]: {exc}")
    return TransformValidationResult(is_valid=not errors, errors=tuple(errors))


def compile_expression(source: str) -> ast.expr:
    """Parse an expression and reject anything outside the whitelist.

    Raises:
        TransformError: On syntax errors or disallowed constructs.
    """

    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as exc:
        raise TransformError(f"invalid expression syntax: {source!r}") from exc

    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise TransformError(f"unsupported expression element {type(node).__name__} in {source!r}")
    return tree.body


def evaluate_expression(node: ast.expr, row: Mapping[str, Any]) -> Any:
    """Evaluate a compiled expression against one row.

    Missing fields read as None; arithmetic involving None (or division by
    zero) yields None.
    """

    if isinstance(node, ast.Constant):
        return node.value

    if isinstance(node, ast.Name):
        return row.get(node.id)

    if isinstance(node, (ast.List, ast.Tuple)):
        return [evaluate_expression(elt, row) for elt in node.elts]

    if isinstance(node, ast.UnaryOp):
        operand = evaluate_expression(node.operand, row)
        if isinstance(node.op, ast.Not):
            return not operand
        if not isinstance(operand, (int, float)) or isinstance(operand, bool):
            return None
        return operand if isinstance(node.op, ast.UAdd) else -operand

    if isinstance(node, ast.BoolOp):
        values = (evaluate_expression(value, row) for value in node.values)
        if isinstance(node.op, ast.And):
            return all(values)
        return any(values)

    if isinstance(node, ast.BinOp):
        return _binary(node.op, evaluate_expression(node.left, row), evaluate_expression(node.right, row))

    if isinstance(node, ast.Compare):
        left = evaluate_expression(node.left, row)
        for op, comparator in zip(node.ops, node.comparators):
            right = evaluate_expression(comparator, row)
            if not _compare(op, left, right):
                return False
            left = right
        return True

    raise TransformError(f"unsupported expression element {type(node).__name__}")


def _binary(op: ast.operator, left: Any, right: Any) -> Any:
    """Apply an arithmetic operator with None propagation."""

    if left is None or right is None:
        return None
    if isinstance(op, ast.Add):
        if isinstance(left, str) or isinstance(right, str):
            return f"{left}{right}"
        return left + right
    if not isinstance(left, (int, float)) or not isinstance(right, (int, float)):
        return None
    if isinstance(op, ast.Sub):
        return left - right
    if isinstance(op, ast.Mult):
        return left * right
    if right == 0:
        return None
    if isinstance(op, ast.Div):
        return left / right
    return left % right


def _compare(op: ast.cmpop, left: Any, right: Any) -> bool:
    """Compare two values; incomparable operands never match."""

    if isinstance(op, (ast.In, ast.NotIn)):
        if not isinstance(right, (list, str)):
            return False
        try:
            contained = left in right
        except TypeError:
            return False
        return contained if isinstance(op, ast.In) else not contained

    compare = _COMPARISONS[type(op)]
    if isinstance(op, (ast.Eq, ast.NotEq)):
        return compare(left, right)
    try:
        return bool(compare(left, right))
    except TypeError:
        return False


def _compile_step(step: Mapping[str, Any]) -> Step:
    """Translate one step mapping into a row-list function."""

    if not isinstance(step, Mapping):
        raise TransformError(f"step must be a mapping, got {type(step).__name__}")
    ops = _STEP_KEYS.intersection(step)
    if len(ops) != 1:
        raise TransformError(f"step must have exactly one operation of {sorted(_STEP_KEYS)}, got {sorted(step)}")
    op = next(iter(ops))
    arg = step[op]

    if op == "filter":
        predicate = compile_expression(_require_str(op, arg))
        return lambda rows: [row for row in rows if evaluate_expression(predicate, row)]

    if op == "map":
        if not isinstance(arg, Mapping) or not arg:
            raise TransformError("map expects a non-empty mapping of field -> expression")
        derived = {str(field): compile_expression(_require_str(op, expr)) for field, expr in arg.items()}

        def _map(rows: list[Record]) -> list[Record]:
            mapped: list[Record] = []
            for row in rows:
                new_row = dict(row)
                for field, expr in derived.items():
                    new_row[field] = evaluate_expression(expr, row)
                mapped.append(new_row)
            return mapped

        return _map

    if op in ("select", "drop"):
        fields = _require_fields(op, arg)
        if op == "select":
            return lambda rows: [{field: row.get(field) for field in fields} for row in rows]
        dropped = set(fields)
        return lambda rows: [{k: v for k, v in row.items() if k not in dropped} for row in rows]

    if op == "rename":
        if not isinstance(arg, Mapping):
            raise TransformError("rename expects a mapping of old -> new field names")
        renames = {str(old): str(new) for old, new in arg.items()}
        return lambda rows: [{renames.get(k, k): v for k, v in row.items()} for row in rows]

    if op == "sort":
        field = _require_str(op, arg)
        order = step.get("order", "asc")
        if order not in ("asc", "desc"):
            raise TransformError(f"sort order must be 'asc' or 'desc', got {order!r}")
        return lambda rows: sort_records(rows, field, descending=order == "desc")

    if isinstance(arg, bool) or not isinstance(arg, int):
        raise TransformError(f"limit expects an integer, got {arg!r}")
    return lambda rows: apply_limit(rows, arg)


def _require_str(op: str, value: object) -> str:
    """Ensure a step argument is a non-empty string."""

    if not isinstance(value, str) or not value.strip():
        raise TransformError(f"{op} expects a non-empty string")
    return value


def _require_fields(op: str, value: object) -> tuple[str, ...]:
    """Ensure a step argument is a list of field names."""

    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise TransformError(f"{op} expects a list of field names")
    return tuple(value)
