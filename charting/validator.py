"""Validation for WidgetConfig values.

Missing bindings are not exceptions: the renderer asks the user to finish
configuring the chart. `validate_widget_config` reports everything a config
editor should surface, split into blocking errors and advisory warnings.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from aggregation.aggregations import AGGREGATION_METHODS

from .schema import CHART_TYPES, WidgetConfig

_XY: Final[tuple[str, ...]] = ("xField", "yField")

REQUIRED_FIELDS: Final[Mapping[str, tuple[str, ...]]] = MappingProxyType(
    {
        "bar": _XY,
        "column": _XY,
        "line": _XY,
        "area": _XY,
        "scatter": _XY,
        "dual-axes": _XY,
        "pie": ("yField",),
        "histogram": ("binField",),
        "word-cloud": ("colorField",),
    }
)

_BINDING_ATTRS: Final[dict[str, str]] = {
    "xField": "x_field",
    "yField": "y_field",
    "colorField": "color_field",
    "seriesField": "series_field",
    "sizeField": "size_field",
    "shapeField": "shape_field",
    "binField": "bin_field",
}

_STACKABLE: Final[frozenset[str]] = frozenset({"bar", "column", "area", "histogram"})


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Result of validating a widget config."""

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def missing_required_fields(config: WidgetConfig) -> tuple[str, ...]:
    """Return the camelCase names of required bindings that are unset."""

    required = REQUIRED_FIELDS.get(config.chart_type or "", ())
    return tuple(name for name in required if not getattr(config, _BINDING_ATTRS[name]))


def validate_widget_config(config: WidgetConfig, *, columns: Iterable[str] | None = None) -> ValidationResult:
    """Validate a WidgetConfig, optionally against the dataset's columns.

    Args:
        config: WidgetConfig to validate.
        columns: Optional field names present in the data. Bindings that name
            other fields produce warnings (the data may still be loading).

    Returns:
        ValidationResult containing errors and warnings.
    """

    errors: list[str] = []
    warnings: list[str] = []
    chart_type = config.chart_type

    if chart_type is None:
        errors.append("WidgetConfig.chartType is required.")
    elif chart_type not in CHART_TYPES:
        errors.append(f"WidgetConfig.chartType is not a supported value: {chart_type!r}.")
    else:
        for name in missing_required_fields(config):
            errors.append(f"WidgetConfig[{chart_type}] requires {name}.")

    if chart_type in CHART_TYPES and chart_type not in _STACKABLE:
        if config.stack:
            warnings.append(f"WidgetConfig[{chart_type}] ignores stack.")
        if config.normalize:
            warnings.append(f"WidgetConfig[{chart_type}] ignores normalize.")

    if columns is not None:
        available = set(columns)
        for name, attr in _BINDING_ATTRS.items():
            bound = getattr(config, attr)
            if bound and bound not in available:
                warnings.append(f"WidgetConfig.{name}={bound!r} is not a column of the data.")
        for key in config.group_by:
            if key not in available:
                warnings.append(f"WidgetConfig.groupBy field {key!r} is not a column of the data.")

    if config.aggregation and config.aggregation.lower() not in AGGREGATION_METHODS:
        warnings.append(f"WidgetConfig.aggregation={config.aggregation!r} is unknown and falls back to 'sum'.")
    for field, method in config.aggregations.items():
        if method.lower() not in AGGREGATION_METHODS:
            warnings.append(f"WidgetConfig.aggregations[{field!r}]={method!r} is unknown and falls back to 'sum'.")
    if (config.aggregation or config.aggregations) and not config.group_by:
        warnings.append("WidgetConfig aggregation settings are ignored without groupBy.")

    if config.sort_order not in ("asc", "desc", "none"):
        errors.append(f"WidgetConfig.sortOrder is not a supported value: {config.sort_order!r}.")
    if config.limit is not None and config.limit <= 0:
        warnings.append("WidgetConfig.limit must be positive to take effect.")

    return ValidationResult(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))
