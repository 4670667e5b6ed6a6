"""Widget render orchestration.

`render_widget` is the single entry point a dashboard calls per widget: it
takes the rows produced by an ingestion adapter plus the stored widget
config and returns one `RenderResult`. Data and config problems come back as
sentinel results; nothing here raises for them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from aggregation.aggregations import group_by_custom, group_by_fields
from aggregation.processing import apply_filters, apply_limit, apply_sorting
from ingestion.coercion import ColumnKind, Record, makesure_numeric
from widgetflow.settings import PipelineSettings

from .codec import decode_widget_config, with_layout
from .mappers import CHART_MAPPERS, map_chart_config
from .schema import NoData, RenderResult, UnsupportedChartType, WidgetConfig

logger = logging.getLogger(__name__)


def render_widget(
    widget_data: Sequence[Mapping[str, Any]] | None,
    widget_config: WidgetConfig | Mapping[str, Any] | None,
    *,
    height: float | None = None,
    width: float | None = None,
    settings: PipelineSettings | None = None,
    schema: Mapping[str, ColumnKind] | None = None,
) -> RenderResult:
    """Turn widget rows and config into render parameters.

    Rows are shaped in this order: numeric coercion, filters, grouping and
    aggregation, sorting, row limit.

    Args:
        widget_data: Normalized records for the widget. Rows that are not
            mappings are skipped.
        widget_config: A WidgetConfig or its camelCase JSON payload.
        height: Optional layout height; overrides the configured one.
        width: Optional layout width; overrides the configured one.
        settings: Optional settings; defaults to `get_settings()`.
        schema: Optional declared column kinds for numeric coercion.

    Returns:
        RenderParams when the chart can be drawn, otherwise `NoData`,
        `UnsupportedChartType` or `NeedsConfiguration`.
    """

    records = [row for row in widget_data or () if isinstance(row, Mapping)]
    if not records:
        logger.debug("Widget has no record rows")
        return NoData()

    config = widget_config if isinstance(widget_config, WidgetConfig) else decode_widget_config(widget_config)
    config = with_layout(config, height=height, width=width)

    if config.chart_type not in CHART_MAPPERS:
        logger.debug("Unsupported chart type %r", config.chart_type)
        return UnsupportedChartType(chart_type=config.chart_type)

    rows = shape_rows(makesure_numeric(records, schema=schema), config)
    if not rows:
        logger.debug("No rows left for %s widget after filtering", config.chart_type)
        return NoData()

    result = map_chart_config(config, rows, settings=settings)
    logger.debug("Rendered %s widget from %d rows: %s", config.chart_type, len(rows), result.status)
    return result


def shape_rows(data: Sequence[Mapping[str, Any]], config: WidgetConfig) -> list[Record]:
    """Apply the config's filters, grouping, sorting and limit to rows."""

    rows = apply_filters(data, config.filters)
    if config.group_by:
        if config.aggregations:
            rows = group_by_custom(rows, config.group_by, config.aggregations)
        elif config.aggregation:
            rows = group_by_fields(rows, config.group_by, config.aggregation)
    rows = apply_sorting(rows, config.sort_by, config.sort_order)
    return apply_limit(rows, config.limit)
