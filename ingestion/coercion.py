"""Column classification and value coercion for normalized records.

Two entry points matter to callers:

- `convert_field_value` turns one raw text cell into a typed scalar and is
  used while parsing delimited text.
- `makesure_numeric` coerces whole numeric columns before charting.

Column kinds are sampled from the first record unless a schema is declared.
Rows that disagree with the sample never produce NaN: a value in a numeric
column that cannot be read as a number becomes None.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Final, Literal

Record = dict[str, Any]
ColumnKind = Literal["numeric", "string"]

_NUMERIC_RE: Final[re.Pattern[str]] = re.compile(r"^[-+]?[0-9]*\.?[0-9]+([eE][-+]?[0-9]+)?$")
_INTEGRAL_RE: Final[re.Pattern[str]] = re.compile(r"^[-+]?[0-9]+$")
_DATE_MARKERS: Final[tuple[str, ...]] = ("-", "/", ":")

_DATE_FORMATS: Final[tuple[str, ...]] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%d-%b-%Y",
    "%b %d, %Y %H:%M",
    "%B %d, %Y %H:%M",
)


@dataclass(frozen=True, slots=True)
class ColumnClassification:
    """Field names partitioned by kind.

    Args:
        string: Fields whose sampled value is not numeric-like.
        numeric: Fields whose sampled value is numeric-like.
        all: `string` followed by `numeric`.
    """

    string: tuple[str, ...] = ()
    numeric: tuple[str, ...] = ()
    all: tuple[str, ...] = ()


def is_numeric_like(value: object) -> bool:
    """Return True when a value can be read as a finite number."""

    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        text = value.strip()
        if _NUMERIC_RE.match(text) is None:
            return False
        # Overflowing literals such as "1e999" would read as inf.
        return _INTEGRAL_RE.match(text) is not None or math.isfinite(float(text))
    return False


def to_number(value: object) -> int | float | None:
    """Coerce a numeric-like value to int/float.

    Returns:
        An int for integral literals, a float otherwise, or None when the value
        is not numeric-like.
    """

    if not is_numeric_like(value):
        return None
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    if _INTEGRAL_RE.match(text):
        return int(text)
    return float(text)


def extract_columns(
    data: Sequence[Mapping[str, Any]],
    *,
    schema: Mapping[str, ColumnKind] | None = None,
) -> ColumnClassification:
    """Classify the fields of a dataset from its first record.

    Args:
        data: Records sharing the first record's key set.
        schema: Optional declared kinds that override the sampled ones.

    Returns:
        ColumnClassification with numeric fields ordered last in `all`.
    """

    if not data:
        return ColumnClassification()

    sample = data[0]
    string_keys: list[str] = []
    numeric_keys: list[str] = []
    for key, value in sample.items():
        declared = schema.get(key) if schema is not None else None
        if declared == "numeric" or (declared is None and is_numeric_like(value)):
            numeric_keys.append(key)
        else:
            string_keys.append(key)

    return ColumnClassification(
        string=tuple(string_keys),
        numeric=tuple(numeric_keys),
        all=tuple(string_keys + numeric_keys),
    )


def makesure_numeric(
    data: Sequence[Mapping[str, Any]],
    *,
    schema: Mapping[str, ColumnKind] | None = None,
) -> list[Record]:
    """Coerce every numeric column to numbers, returning new rows.

    Args:
        data: Input records. They are never mutated.
        schema: Optional declared column kinds (see `extract_columns`).

    Returns:
        New records where numeric-column values are int/float, or None when a
        later row holds a value that cannot be coerced.
    """

    columns = extract_columns(data, schema=schema)
    coerced: list[Record] = []
    for row in data:
        new_row = dict(row)
        for key in columns.numeric:
            if key in new_row:
                new_row[key] = to_number(new_row[key])
        coerced.append(new_row)
    return coerced


def convert_field_value(value: str) -> Any:
    """Convert one raw text cell into the most specific scalar type.

    Order: empty -> None, numeric literal -> number, `true`/`false` -> bool,
    date-looking text -> UTC datetime, otherwise the text unchanged. Text is
    only tried as a date when it contains `-`, `/` or `:` so plain digit runs
    are never read as dates.
    """

    if value == "":
        return None

    if _NUMERIC_RE.match(value):
        number = to_number(value)
        if number is not None:
            return number

    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if any(marker in value for marker in _DATE_MARKERS):
        parsed = parse_datetime(value)
        if parsed is not None:
            return parsed

    return value


def parse_datetime(value: str) -> datetime | None:
    """Parse a date/datetime string into a timezone-aware UTC datetime.

    Naive values are assumed to be UTC.
    """

    value = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return parsed.replace(tzinfo=timezone.utc)

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
