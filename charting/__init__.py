"""Widget config schema, validation, chart mapping and rendering."""

from .codec import decode_widget_config, encode_widget_config
from .mappers import COMMON_RENDER_DEFAULTS, map_chart_config, merge_render_params
from .render import render_widget
from .schema import NeedsConfiguration, NoData, RenderParams, UnsupportedChartType, WidgetConfig
from .suggest import suggest_chart_type, suggest_field_bindings
from .validator import ValidationResult, validate_widget_config

__all__ = [
    "COMMON_RENDER_DEFAULTS",
    "NeedsConfiguration",
    "NoData",
    "RenderParams",
    "UnsupportedChartType",
    "ValidationResult",
    "WidgetConfig",
    "decode_widget_config",
    "encode_widget_config",
    "map_chart_config",
    "merge_render_params",
    "render_widget",
    "suggest_chart_type",
    "suggest_field_bindings",
    "validate_widget_config",
]
