"""Shared runtime configuration for the widgetflow packages.

The pipeline packages (`ingestion`, `aggregation`, `charting`) are pure and
take their defaults from `PipelineSettings`. Nothing here configures logging
on import; applications call `configure_logging()` explicitly.
"""

from .log import configure_logging
from .settings import PipelineSettings, get_settings, load_settings

__all__ = ["PipelineSettings", "configure_logging", "get_settings", "load_settings"]
