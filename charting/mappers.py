"""Per-chart-type derivation of render parameters.

Each mapper turns a WidgetConfig plus prepared rows into the parameter layer
for one chart type: field bindings and the chart's fixed styling.
`map_chart_config` assembles the final parameters from layers, lowest
precedence first:

1. `COMMON_RENDER_DEFAULTS`,
2. layout values (`height`, `width`, `autoFit`),
3. the chart-type layer,
4. the display options the caller set on the config (`stack`, `legend`,
   `tooltip`, ...),
5. the caller's unmodelled config keys (`WidgetConfig.extras`).

Merging is shallow, so a caller value replaces the derived value for the same
key. No layer is ever mutated, so defaults cannot leak between widgets.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any, Final

from aggregation.processing import normalize_series
from ingestion.coercion import Record
from widgetflow.settings import PipelineSettings, get_settings

from .schema import NeedsConfiguration, RenderParams, UnsupportedChartType, WidgetConfig
from .validator import missing_required_fields

ChartMapper = Callable[[WidgetConfig, list[Record], PipelineSettings], tuple[dict[str, Any], list[Record]]]

COMMON_RENDER_DEFAULTS: Final[Mapping[str, Any]] = MappingProxyType(
    {
        "autoFit": True,
        "legend": {"size": False, "color": {"position": "bottom"}},
    }
)

_SHARED_TOOLTIP: Final[Mapping[str, Any]] = MappingProxyType(
    {"elementHighlight": False, "tooltip": {"shared": True}}
)

_CALLER_OPTIONS: Final[tuple[tuple[str, str], ...]] = (
    ("stack", "stack"),
    ("group", "group"),
    ("normalize", "normalize"),
    ("innerRadius", "inner_radius"),
    ("legend", "legend"),
    ("tooltip", "tooltip"),
    ("label", "label"),
    ("point", "point"),
    ("binWidth", "bin_width"),
    ("binNumber", "bin_number"),
)


def merge_render_params(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Shallow-merge parameter layers into a new dict; later layers win.

    Values are deep-copied so the result shares no nested state with any
    layer.
    """

    merged: dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            merged[key] = copy.deepcopy(value)
    return merged


def map_chart_config(
    config: WidgetConfig,
    data: Sequence[Mapping[str, Any]],
    *,
    settings: PipelineSettings | None = None,
) -> RenderParams | NeedsConfiguration | UnsupportedChartType:
    """Derive render parameters for a widget.

    Args:
        config: Widget configuration.
        data: Rows already coerced/shaped for charting.
        settings: Optional settings; defaults to `get_settings()`.

    Returns:
        RenderParams, or a sentinel when the chart type is unknown or required
        bindings are missing.
    """

    mapper = CHART_MAPPERS.get(config.chart_type or "")
    if mapper is None:
        return UnsupportedChartType(chart_type=config.chart_type)

    missing = missing_required_fields(config)
    if missing:
        return NeedsConfiguration(chart_type=str(config.chart_type), missing_fields=missing)

    layer, rows = mapper(config, [dict(row) for row in data], settings or get_settings())
    params = merge_render_params(
        COMMON_RENDER_DEFAULTS,
        _layout(config),
        layer,
        caller_options(config),
        config.extras,
    )
    params["data"] = rows
    return RenderParams(chart_type=str(config.chart_type), params=params)


def caller_options(config: WidgetConfig) -> dict[str, Any]:
    """Display options the caller set explicitly, keyed by their camelCase names.

    False and empty mappings count as set; only None means "not configured".
    """

    options: dict[str, Any] = {}
    for key, attr in _CALLER_OPTIONS:
        value = getattr(config, attr)
        if value is not None:
            options[key] = dict(value) if isinstance(value, Mapping) else value
    return options


def _layout(config: WidgetConfig) -> dict[str, Any]:
    """Layout layer shared by every chart type."""

    return _compact({"height": config.height, "width": config.width, "autoFit": config.auto_fit})


def _compact(values: Mapping[str, Any]) -> dict[str, Any]:
    """Drop unset (None) entries; False and empty options are kept."""

    return {key: value for key, value in values.items() if value is not None}


def _interval(config: WidgetConfig, settings: PipelineSettings, *, horizontal: bool) -> dict[str, Any]:
    """Shared layer for bar (horizontal) and column (vertical) charts."""

    legend = copy.deepcopy(dict(COMMON_RENDER_DEFAULTS["legend"]))
    legend["position"] = settings.legend_position
    layer = {
        "xField": config.x_field,
        "yField": config.y_field,
        "colorField": config.color_field,
        "seriesField": config.series_field,
        "interaction": dict(_SHARED_TOOLTIP),
        "legend": legend,
        "paddingRight": 80,
    }
    if horizontal:
        layer["sort"] = {"reverse": False}
        layer["axis"] = {
            "x": {"tick": True, "title": True},
            "y": {"grid": True, "tick": True, "label": True, "title": True},
        }
    return _compact(layer)


def map_bar(config: WidgetConfig, data: list[Record], settings: PipelineSettings) -> tuple[dict[str, Any], list[Record]]:
    """Horizontal bar chart with axis directives and unreversed sorting."""

    return _interval(config, settings, horizontal=True), data


def map_column(
    config: WidgetConfig, data: list[Record], settings: PipelineSettings
) -> tuple[dict[str, Any], list[Record]]:
    """Vertical column chart."""

    return _interval(config, settings, horizontal=False), data


def map_line(config: WidgetConfig, data: list[Record], settings: PipelineSettings) -> tuple[dict[str, Any], list[Record]]:
    """Line chart; point markers and tooltip changes come only from the caller."""

    layer = _compact(
        {
            "xField": config.x_field,
            "yField": config.y_field,
            "seriesField": config.series_field,
            "colorField": config.color_field,
        }
    )
    return layer, data


def map_area(config: WidgetConfig, data: list[Record], settings: PipelineSettings) -> tuple[dict[str, Any], list[Record]]:
    """Area chart; colored series are re-bucketed so every x has every color."""

    if config.color_field:
        data = normalize_series(
            data,
            x_field=config.x_field,
            y_field=config.y_field,
            color_field=config.color_field,
        )
    layer = _compact(
        {
            "xField": config.x_field,
            "yField": config.y_field,
            "colorField": config.color_field,
            "shapeField": "smooth",
            "tooltip": {"channel": "y0", "valueFormatter": ".3%"},
        }
    )
    return layer, data


def map_pie(config: WidgetConfig, data: list[Record], settings: PipelineSettings) -> tuple[dict[str, Any], list[Record]]:
    """Pie/donut chart. Slices are colored by `colorField`, else by `xField`."""

    layer = _compact({"angleField": config.y_field, "colorField": config.color_field or config.x_field})
    return layer, data


def map_scatter(
    config: WidgetConfig, data: list[Record], settings: PipelineSettings
) -> tuple[dict[str, Any], list[Record]]:
    """Scatter plot with translucent points."""

    layer = _compact(
        {
            "xField": config.x_field,
            "yField": config.y_field,
            "colorField": config.color_field,
            "sizeField": config.size_field,
            "shapeField": config.shape_field,
            "style": {"fillOpacity": 0.3, "lineWidth": 1},
        }
    )
    return layer, data


def map_dual_axes(
    config: WidgetConfig, data: list[Record], settings: PipelineSettings
) -> tuple[dict[str, Any], list[Record]]:
    """Dual-axes chart: one shared x field, one child definition per axis.

    Children without their own `xField` inherit the widget's. Without
    configured children a single interval series on `yField` is used.
    """

    children = [dict(child) for child in config.children] or [{"type": "interval", "yField": config.y_field}]
    for child in children:
        child.setdefault("xField", config.x_field)
    layer = {
        "xField": config.x_field,
        "children": children,
        "legend": {"color": {"itemMarker": "rect"}},
    }
    return layer, data


def map_histogram(
    config: WidgetConfig, data: list[Record], settings: PipelineSettings
) -> tuple[dict[str, Any], list[Record]]:
    """Histogram counting rows per bin; the bin count defaults from settings."""

    layer = _compact(
        {
            "binField": config.bin_field,
            "binNumber": settings.histogram_bin_number,
            "colorField": config.color_field,
            "channel": "count",
            "stack": {"orderBy": "series"},
            "style": {"inset": 0.5},
            "interaction": dict(_SHARED_TOOLTIP),
        }
    )
    return layer, data


def map_word_cloud(
    config: WidgetConfig, data: list[Record], settings: PipelineSettings
) -> tuple[dict[str, Any], list[Record]]:
    """Word cloud whose words and colors both come from `colorField`."""

    layer = {
        "layout": {"spiral": "rectangular"},
        "textField": config.color_field,
        "colorField": config.color_field,
    }
    return layer, data


CHART_MAPPERS: Final[Mapping[str, ChartMapper]] = MappingProxyType(
    {
        "bar": map_bar,
        "column": map_column,
        "line": map_line,
        "area": map_area,
        "pie": map_pie,
        "scatter": map_scatter,
        "dual-axes": map_dual_axes,
        "histogram": map_histogram,
        "word-cloud": map_word_cloud,
    }
)
