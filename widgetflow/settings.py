"""Runtime settings for widgetflow.

Settings are layered, lowest precedence first:

- `PipelineSettings` defaults,
- an optional YAML file (path passed explicitly or via `WIDGETFLOW_CONFIG`),
- `WIDGETFLOW_*` environment variables.

Only parsing and presentation defaults live here; the pipeline has no secrets.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Final

import yaml

CONFIG_PATH_ENV: Final[str] = "WIDGETFLOW_CONFIG"


def _env_bool(name: str, *, default: bool) -> bool:
    """Parse a boolean environment variable.

    Args:
        name: Environment variable name.
        default: Value when the variable is not set.

    Returns:
        Parsed boolean value.
    """

    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _env_int(name: str, *, default: int) -> int:
    """Parse an integer environment variable.

    Args:
        name: Environment variable name.
        default: Value when the variable is not set.

    Returns:
        Parsed integer value.
    """

    raw = os.getenv(name)
    if raw is None:
        return default
    return int(raw.strip())


def _env_str(name: str, *, default: str) -> str:
    """Read a string environment variable without trimming it.

    Delimiters such as a tab must survive untouched, so no whitespace is
    stripped here.
    """

    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw


@dataclass(frozen=True, slots=True)
class PipelineSettings:
    """Defaults used across ingestion and chart mapping.

    Args:
        csv_delimiter: Field delimiter for `parse_csv`.
        csv_quote_char: Quote toggle character for `parse_csv`.
        csv_has_headers: Whether the first CSV line holds headers.
        csv_trim_fields: Whether CSV fields are whitespace-trimmed.
        legend_position: Default legend position for bar/column charts.
        histogram_bin_number: Default bin count for histograms.
        log_level: Level name used by `configure_logging`.
    """

    csv_delimiter: str = ","
    csv_quote_char: str = '"'
    csv_has_headers: bool = True
    csv_trim_fields: bool = True
    legend_position: str = "bottom"
    histogram_bin_number: int = 10
    log_level: str = "INFO"


_LEGEND_POSITIONS: Final[frozenset[str]] = frozenset({"top", "right", "bottom", "left"})


def load_settings(path: str | Path | None = None) -> PipelineSettings:
    """Build settings from defaults, an optional YAML file, and the environment.

    Args:
        path: Optional YAML settings path. Defaults to `$WIDGETFLOW_CONFIG`.

    Returns:
        A validated PipelineSettings instance.

    Raises:
        ValueError: When the file or an environment value is invalid.
    """

    settings = PipelineSettings()
    if path is None:
        env_path = os.getenv(CONFIG_PATH_ENV)
        path = Path(env_path) if env_path else None
    if path is not None:
        settings = replace(settings, **_read_settings_file(Path(path)))

    settings = replace(
        settings,
        csv_delimiter=_env_str("WIDGETFLOW_CSV_DELIMITER", default=settings.csv_delimiter),
        csv_quote_char=_env_str("WIDGETFLOW_CSV_QUOTE_CHAR", default=settings.csv_quote_char),
        csv_has_headers=_env_bool("WIDGETFLOW_CSV_HAS_HEADERS", default=settings.csv_has_headers),
        csv_trim_fields=_env_bool("WIDGETFLOW_CSV_TRIM_FIELDS", default=settings.csv_trim_fields),
        legend_position=_env_str("WIDGETFLOW_LEGEND_POSITION", default=settings.legend_position).strip().lower(),
        histogram_bin_number=_env_int("WIDGETFLOW_HISTOGRAM_BIN_NUMBER", default=settings.histogram_bin_number),
        log_level=_env_str("WIDGETFLOW_LOG_LEVEL", default=settings.log_level).strip().upper(),
    )
    _validate(settings)
    return settings


@lru_cache()
def get_settings() -> PipelineSettings:
    """Return process-wide settings, loaded once."""

    return load_settings()


def _read_settings_file(path: Path) -> dict[str, Any]:
    """Load a YAML settings file into PipelineSettings keyword arguments."""

    raw = path.read_text(encoding="utf-8")
    payload = yaml.safe_load(raw) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    known = {f.name for f in fields(PipelineSettings)}
    unknown = set(payload) - known
    if unknown:
        raise ValueError(f"Unknown settings keys in {path}: {sorted(unknown)}")
    return {str(key): value for key, value in payload.items()}


def _validate(settings: PipelineSettings) -> None:
    """Reject settings the pipeline cannot honor."""

    if len(settings.csv_delimiter) != 1:
        raise ValueError(f"csv_delimiter must be a single character: {settings.csv_delimiter!r}")
    if len(settings.csv_quote_char) != 1:
        raise ValueError(f"csv_quote_char must be a single character: {settings.csv_quote_char!r}")
    if settings.csv_delimiter == settings.csv_quote_char:
        raise ValueError("csv_delimiter and csv_quote_char must differ.")
    if settings.legend_position not in _LEGEND_POSITIONS:
        raise ValueError(f"legend_position must be one of {sorted(_LEGEND_POSITIONS)}: {settings.legend_position!r}")
    if not isinstance(settings.histogram_bin_number, int) or settings.histogram_bin_number < 1:
        raise ValueError(f"histogram_bin_number must be >= 1: {settings.histogram_bin_number!r}")
