"""Encoding/decoding helpers for WidgetConfig JSON payloads.

Widget configs cross the library boundary as camelCase JSON objects
(`{"chartType": "bar", "xField": "month", ...}`). Decoding is best-effort:
values of the wrong type are dropped rather than raising, and keys the
schema does not model are preserved in `WidgetConfig.extras`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Final

from .schema import WidgetConfig

_STRING_KEYS: Final[dict[str, str]] = {
    "chartType": "chart_type",
    "xField": "x_field",
    "yField": "y_field",
    "colorField": "color_field",
    "seriesField": "series_field",
    "sizeField": "size_field",
    "shapeField": "shape_field",
    "binField": "bin_field",
    "sortBy": "sort_by",
    "aggregation": "aggregation",
}

_OPTION_KEYS: Final[dict[str, str]] = {
    "stack": "stack",
    "group": "group",
    "legend": "legend",
    "tooltip": "tooltip",
    "label": "label",
    "point": "point",
}

_NUMBER_KEYS: Final[dict[str, str]] = {
    "innerRadius": "inner_radius",
    "binWidth": "bin_width",
    "height": "height",
    "width": "width",
}

_MODELLED_KEYS: Final[frozenset[str]] = frozenset(
    {
        *_STRING_KEYS,
        *_OPTION_KEYS,
        *_NUMBER_KEYS,
        "normalize",
        "autoFit",
        "binNumber",
        "limit",
        "sortOrder",
        "children",
        "filters",
        "groupBy",
        "aggregations",
    }
)


def decode_widget_config(payload: Mapping[str, Any] | None) -> WidgetConfig:
    """Decode a WidgetConfig from a camelCase payload.

    Args:
        payload: Widget config JSON object. None decodes to an empty config.

    Returns:
        WidgetConfig instance; unknown keys land in `extras`.
    """

    if not isinstance(payload, Mapping):
        return WidgetConfig()

    values: dict[str, Any] = {}
    for key, attr in _STRING_KEYS.items():
        values[attr] = _parse_str(payload.get(key))
    for key, attr in _OPTION_KEYS.items():
        values[attr] = _parse_option(payload.get(key))
    for key, attr in _NUMBER_KEYS.items():
        values[attr] = _parse_float(payload.get(key))

    sort_order = _parse_str(payload.get("sortOrder"))
    return WidgetConfig(
        **values,
        normalize=_parse_optional_bool(payload.get("normalize")),
        auto_fit=_parse_optional_bool(payload.get("autoFit")),
        bin_number=_parse_int(payload.get("binNumber")),
        limit=_parse_int(payload.get("limit")),
        sort_order=sort_order.lower() if sort_order else "none",
        children=_parse_mappings(payload.get("children")),
        filters=_parse_mappings(payload.get("filters")),
        group_by=_parse_fields(payload.get("groupBy")),
        aggregations=_parse_aggregations(payload.get("aggregations")),
        extras={key: value for key, value in payload.items() if key not in _MODELLED_KEYS},
    )


def encode_widget_config(config: WidgetConfig) -> dict[str, Any]:
    """Encode a WidgetConfig into a JSON-serializable camelCase dictionary.

    Unset values are omitted; `extras` are emitted unchanged.
    """

    payload: dict[str, Any] = {}
    for key, attr in {**_STRING_KEYS, **_OPTION_KEYS, **_NUMBER_KEYS}.items():
        value = getattr(config, attr)
        if value is not None:
            payload[key] = _plain(value)
    if config.normalize is not None:
        payload["normalize"] = config.normalize
    if config.auto_fit is not None:
        payload["autoFit"] = config.auto_fit
    if config.bin_number is not None:
        payload["binNumber"] = config.bin_number
    if config.limit is not None:
        payload["limit"] = config.limit
    if config.sort_order != "none":
        payload["sortOrder"] = config.sort_order
    if config.children:
        payload["children"] = [_plain(child) for child in config.children]
    if config.filters:
        payload["filters"] = [_plain(rule) for rule in config.filters]
    if config.group_by:
        payload["groupBy"] = list(config.group_by)
    if config.aggregations:
        payload["aggregations"] = dict(config.aggregations)
    payload.update(config.extras)
    return payload


def with_layout(config: WidgetConfig, *, height: float | None = None, width: float | None = None) -> WidgetConfig:
    """Return a copy of `config` with layout values applied when given."""

    changes: dict[str, float] = {}
    if height is not None:
        changes["height"] = height
    if width is not None:
        changes["width"] = width
    return replace(config, **changes) if changes else config


def _plain(value: Any) -> Any:
    """Convert nested mappings/tuples into plain dicts/lists for JSON."""

    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def _parse_str(value: object) -> str | None:
    """Best-effort non-empty string parsing."""

    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _parse_option(value: object) -> bool | Mapping[str, Any] | None:
    """Accept a boolean flag or an options mapping."""

    if isinstance(value, bool):
        return value
    if isinstance(value, Mapping):
        return dict(value)
    return None


def _parse_optional_bool(value: object) -> bool | None:
    """Best-effort bool parsing that keeps "unset" distinct from False."""

    if value is None:
        return None
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().casefold()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return None


def _parse_float(value: object) -> float | None:
    """Best-effort number parsing; numeric values pass through unchanged."""

    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value))
    except ValueError:
        return None


def _parse_int(value: object) -> int | None:
    """Best-effort int parsing."""

    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(str(value))
    except ValueError:
        return None


def _parse_mappings(value: object) -> tuple[Mapping[str, Any], ...]:
    """Keep the mapping entries of a list value."""

    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(dict(item) for item in value if isinstance(item, Mapping))


def _parse_fields(value: object) -> tuple[str, ...]:
    """Accept one field name or a list of field names."""

    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, (list, tuple)):
        return tuple(item for item in value if isinstance(item, str) and item.strip())
    return ()


def _parse_aggregations(value: object) -> dict[str, str]:
    """Keep string-valued field -> method entries."""

    if not isinstance(value, Mapping):
        return {}
    return {str(field): method for field, method in value.items() if isinstance(method, str) and method}
