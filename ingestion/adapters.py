"""Best-effort adapters from source payloads to uniform records.

Every adapter here is total: unknown shapes, malformed lines and missing data
are non-fatal and produce the best record list available, defaulting to `[]`.
Payloads arrive already materialized (text, decoded JSON, driver results);
no adapter performs I/O.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any, Final

from widgetflow.settings import get_settings

from .coercion import Record, convert_field_value

logger = logging.getLogger(__name__)

_LINE_BREAK_RE: Final[re.Pattern[str]] = re.compile(r"\r\n|\n|\r")

REST_CONTAINER_KEYS: Final[tuple[str, ...]] = ("data", "results", "items", "records", "values")


def parse_csv(
    text: str,
    *,
    delimiter: str | None = None,
    has_headers: bool | None = None,
    quote_char: str | None = None,
    trim_fields: bool | None = None,
) -> list[Record]:
    """Parse delimited text into records with per-value type coercion.

    Args:
        text: Raw delimited text.
        delimiter: Field delimiter. Defaults to settings (`,`).
        has_headers: Whether the first line holds headers. When False, headers
            are synthesized as `field_1..field_N` from the first line's width.
        quote_char: Character that toggles quoted mode; delimiters inside
            quotes are literal. Doubled quotes are not treated as escapes.
        trim_fields: Whether to strip whitespace around each field.

    Returns:
        One record per non-empty data line. Values beyond the header width are
        dropped; short lines produce records with fewer keys.

    Raises:
        ValueError: When an option is left unset and the settings it defaults
            from cannot be loaded (see `get_settings`).
    """

    if None in (delimiter, has_headers, quote_char, trim_fields):
        settings = get_settings()
        delimiter = settings.csv_delimiter if delimiter is None else delimiter
        has_headers = settings.csv_has_headers if has_headers is None else has_headers
        quote_char = settings.csv_quote_char if quote_char is None else quote_char
        trim_fields = settings.csv_trim_fields if trim_fields is None else trim_fields

    if not text:
        return []

    lines = _LINE_BREAK_RE.split(text)
    first = split_csv_line(lines[0], delimiter=delimiter, quote_char=quote_char, trim_fields=trim_fields)
    if has_headers:
        headers = first
        start = 1
    else:
        headers = [f"field_{idx + 1}" for idx in range(len(first))]
        start = 0

    records: list[Record] = []
    for line_no, raw_line in enumerate(lines[start:], start=start + 1):
        line = raw_line.strip()
        if not line:
            continue
        try:
            fields = split_csv_line(line, delimiter=delimiter, quote_char=quote_char, trim_fields=trim_fields)
            record: Record = {}
            for header, value in zip(headers, fields):
                record[header] = convert_field_value(value)
        except (TypeError, ValueError) as exc:
            logger.debug("Skipping unparseable CSV line %d: %s", line_no, exc)
            continue
        records.append(record)
    return records


def split_csv_line(line: str, *, delimiter: str, quote_char: str, trim_fields: bool) -> list[str]:
    """Split one delimited line honoring a toggling quote character."""

    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in line:
        if char == quote_char:
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append(_finish_field(current, trim_fields))
            current = []
        else:
            current.append(char)
    fields.append(_finish_field(current, trim_fields))
    return fields


def _finish_field(chars: list[str], trim_fields: bool) -> str:
    """Join accumulated characters into a field value."""

    value = "".join(chars)
    return value.strip() if trim_fields else value


def extract_rest_data(payload: Any, *, result_path: str | None = None) -> list[Any]:
    """Locate the record list inside an arbitrary JSON payload.

    Args:
        payload: Decoded JSON (mapping, list, or scalar).
        result_path: Optional dot-separated path to the records, e.g.
            `"response.items"`.

    Returns:
        The located list. A mapping found at `result_path` is wrapped in a
        singleton list. Without a path, a list payload passes through, then the
        known container keys are tried, then any non-empty list value, and
        finally the whole mapping is wrapped.
    """

    if not payload:
        return []

    if result_path:
        located = _get_path(payload, result_path)
        if isinstance(located, list):
            return located
        if isinstance(located, Mapping):
            return [located]
        return []

    if isinstance(payload, list):
        return payload
    if not isinstance(payload, Mapping):
        return []

    for key in REST_CONTAINER_KEYS:
        candidate = payload.get(key)
        if isinstance(candidate, list):
            if candidate:
                return candidate
            break

    for candidate in payload.values():
        if isinstance(candidate, list) and candidate:
            return candidate

    return [payload]


def _get_path(payload: Any, path: str) -> Any:
    """Walk a dot-separated path through nested mappings (and list indices)."""

    current = payload
    for segment in path.split("."):
        if isinstance(current, list) and segment.isdigit():
            index = int(segment)
            current = current[index] if index < len(current) else None
        elif isinstance(current, Mapping):
            current = current.get(segment)
        else:
            return None
        if current is None:
            return None
    return current


def transform_sql_results(result: Any, *, key_mapping: Mapping[str, str] | None = None) -> list[Record]:
    """Normalize SQL client result shapes into records.

    Supported shapes:

    - a bare list of row mappings,
    - `{"rows": [...]}` (PostgreSQL-style clients),
    - `{"recordset": [...]}` (SQL Server-style clients),
    - `{"affectedRows": n}` write results, which carry no rows.

    Args:
        result: Driver result payload.
        key_mapping: Optional field rename map applied to every row.

    Returns:
        New row dicts with renamed keys, or `[]` for write results and
        unrecognized shapes.
    """

    if not result:
        return []

    rows: Sequence[Any] | None = None
    if isinstance(result, list):
        rows = result
    elif isinstance(result, Mapping):
        if isinstance(result.get("rows"), list):
            rows = result["rows"]
        elif isinstance(result.get("recordset"), list):
            rows = result["recordset"]
        elif "affectedRows" in result:
            return []

    if rows is None:
        logger.debug("Unrecognized SQL result shape: %s", type(result).__name__)
        return []

    mapping = key_mapping or {}
    records: list[Record] = []
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        records.append({mapping.get(key) or key: value for key, value in row.items()})
    return records


def process_websocket_data(payload: Any, *, result_path: str | None = None) -> list[Any]:
    """Extract records from a streamed message (same shapes as REST payloads)."""

    return extract_rest_data(payload, result_path=result_path)
