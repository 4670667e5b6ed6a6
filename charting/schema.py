"""Schema types for widget configuration and render results.

A widget render consumes one `WidgetConfig` and produces exactly one result:
`RenderParams` when the chart can be drawn, or a sentinel the UI turns into
a placeholder message (`NeedsConfiguration`, `UnsupportedChartType`,
`NoData`). No result type is ever raised.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final, Literal, Union

ChartType = Literal[
    "bar",
    "column",
    "line",
    "area",
    "pie",
    "scatter",
    "dual-axes",
    "histogram",
    "word-cloud",
]

CHART_TYPES: Final[tuple[str, ...]] = (
    "bar",
    "column",
    "line",
    "area",
    "pie",
    "scatter",
    "dual-axes",
    "histogram",
    "word-cloud",
)

RenderStatus = Literal["ready", "needs_configuration", "unsupported_chart_type", "no_data"]


@dataclass(frozen=True, slots=True)
class WidgetConfig:
    """Per-widget chart configuration.

    Field bindings name record fields; display flags are passed to the
    renderer mostly as-is. Keys the schema does not model are kept in
    `extras` and applied last when render parameters are merged, so the
    caller can override any derived value.

    Args:
        chart_type: One of `CHART_TYPES` (anything else renders as unsupported).
        x_field: Category/time axis field.
        y_field: Value axis field (the angle field for pies).
        color_field: Series color field (the text field for word clouds).
        series_field: Explicit series field for bar/column/line.
        size_field: Point size field for scatter plots.
        shape_field: Point shape field for scatter plots.
        bin_field: Value field binned by histograms.
        stack: Stack flag or stack options.
        group: Group flag or group options.
        normalize: Whether stacked values are normalized to percentages.
        inner_radius: Donut inner radius for pies.
        legend: Legend options; False hides the legend.
        tooltip: Tooltip options; False disables tooltips where supported.
        label: Label options for pies.
        point: Point marker options for line charts.
        bin_width: Optional histogram bin width.
        bin_number: Optional histogram bin count.
        children: Per-axis series definitions for dual-axes charts.
        height: Layout height.
        width: Layout width.
        auto_fit: Optional override of the default `autoFit: True`.
        filters: Row filters applied before mapping.
        sort_by: Optional field used to sort rows.
        sort_order: `asc`, `desc`, or `none`.
        limit: Optional row limit applied after sorting.
        group_by: Optional grouping fields for aggregation.
        aggregation: Method applied to every numeric field when grouping.
        aggregations: Per-field methods when grouping (wins over `aggregation`).
        extras: Unmodelled configuration keys, passed through untouched.
    """

    chart_type: str | None = None
    x_field: str | None = None
    y_field: str | None = None
    color_field: str | None = None
    series_field: str | None = None
    size_field: str | None = None
    shape_field: str | None = None
    bin_field: str | None = None
    stack: bool | Mapping[str, Any] | None = None
    group: bool | Mapping[str, Any] | None = None
    normalize: bool | None = None
    inner_radius: float | None = None
    legend: bool | Mapping[str, Any] | None = None
    tooltip: bool | Mapping[str, Any] | None = None
    label: bool | Mapping[str, Any] | None = None
    point: bool | Mapping[str, Any] | None = None
    bin_width: float | None = None
    bin_number: int | None = None
    children: tuple[Mapping[str, Any], ...] = ()
    height: float | None = None
    width: float | None = None
    auto_fit: bool | None = None
    filters: tuple[Mapping[str, Any], ...] = ()
    sort_by: str | None = None
    sort_order: str = "none"
    limit: int | None = None
    group_by: tuple[str, ...] = ()
    aggregation: str | None = None
    aggregations: Mapping[str, str] = field(default_factory=dict)
    extras: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RenderParams:
    """Chart-library-agnostic render parameters.

    Args:
        chart_type: The mapped chart type.
        params: camelCase parameters, including the prepared `data` rows.
    """

    chart_type: str
    params: dict[str, Any]
    status: RenderStatus = field(default="ready", init=False)


@dataclass(frozen=True, slots=True)
class NeedsConfiguration:
    """Required field bindings are missing for the chart type."""

    chart_type: str
    missing_fields: tuple[str, ...]
    message: str = "Configure chart"
    status: RenderStatus = field(default="needs_configuration", init=False)


@dataclass(frozen=True, slots=True)
class UnsupportedChartType:
    """The configured chart type has no mapper."""

    chart_type: str | None
    message: str = "Unsupported chart type"
    status: RenderStatus = field(default="unsupported_chart_type", init=False)


@dataclass(frozen=True, slots=True)
class NoData:
    """There are no records to render."""

    message: str = "No data available"
    status: RenderStatus = field(default="no_data", init=False)


RenderResult = Union[RenderParams, NeedsConfiguration, UnsupportedChartType, NoData]
