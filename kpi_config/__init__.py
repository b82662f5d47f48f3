"""
kpi_config -- single public entrypoint for tracker configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- YAML-driven settings.  This package sits above
    ``kpi_kernel``; the kernel MUST NEVER import from ``kpi_config``.
    ``kpi_config.bridges`` translates settings into kernel collaborators.

Failure modes:
    - ``FileNotFoundError`` -- the settings file does not exist.
    - ``KeyError`` -- a required key is missing.
    - ``ValueError`` -- validation failed; the message lists every error.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``KPI_CONFIG_TRACE`` log entry with the config id and checksum.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from kpi_config.loader import load_yaml_file, parse_settings
from kpi_config.schema import HistoryLimits, HolidayCalendarDef, TrackerSettings
from kpi_config.validator import validate_settings

_logger = logging.getLogger("kpi_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

DATABASE_URL_ENV = "KPI_DATABASE_URL"


def get_active_config(config_path: Path | None = None) -> TrackerSettings:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - The returned settings have passed validation.
        - ``KPI_DATABASE_URL``, when set, replaces ``database_url``.
        - A ``KPI_CONFIG_TRACE`` log entry is emitted on every successful
          call.

    Args:
        config_path: Override path to a settings YAML file.  Defaults to
            kpi_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        ValueError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    settings = parse_settings(load_yaml_file(path))

    env_url = os.environ.get(DATABASE_URL_ENV)
    if env_url:
        settings = replace(settings, database_url=env_url)

    validation = validate_settings(settings)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={"warning": warning})

    _logger.info(
        "KPI_CONFIG_TRACE",
        extra={
            "trace_type": "KPI_CONFIG_TRACE",
            "config_id": settings.config_id,
            "checksum": settings.checksum,
            "timezone": settings.timezone,
            "database_url_from_env": bool(env_url),
            "fixed_holiday_count": len(settings.holidays.fixed_dates),
            "recurring_holiday_count": len(settings.holidays.recurring),
        },
    )
    return settings


__all__ = [
    "DATABASE_URL_ENV",
    "HistoryLimits",
    "HolidayCalendarDef",
    "TrackerSettings",
    "get_active_config",
]
