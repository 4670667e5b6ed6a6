"""Logging setup for applications embedding the pipeline."""

from __future__ import annotations

import logging
from typing import Final

from .settings import get_settings

LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging for the pipeline.

    Args:
        level: Optional level name or number. Defaults to `PipelineSettings.log_level`.
    """

    if level is None:
        level = get_settings().log_level
    logging.basicConfig(level=level, format=LOG_FORMAT)
