"""
Configuration Loader (``kpi_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen dataclasses of
``kpi_config.schema``.  The single public entry point for runtime
configuration remains ``kpi_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required keys have no silent defaults.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid date or ``MM-DD`` entry  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from kpi_config.schema import HistoryLimits, HolidayCalendarDef, TrackerSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_month_day(value: Any) -> tuple[int, int]:
    """Parse a recurring holiday written as ``"MM-DD"``."""
    if not isinstance(value, str) or len(value) != 5 or value[2] != "-":
        raise ValueError(f"Recurring holiday must be 'MM-DD', got {value!r}")
    month, day = int(value[:2]), int(value[3:])
    # 2024 is a leap year, so 02-29 is accepted
    date(2024, month, day)
    return month, day


def parse_holidays(data: dict[str, Any]) -> HolidayCalendarDef:
    return HolidayCalendarDef(
        name=data.get("name", "default"),
        fixed_dates=tuple(sorted(parse_date(d) for d in data.get("fixed", []) or [])),
        recurring=tuple(
            sorted(parse_month_day(md) for md in data.get("recurring", []) or [])
        ),
    )


def parse_history_limits(data: dict[str, Any]) -> HistoryLimits:
    return HistoryLimits(
        weekly=int(data.get("weekly", 4)),
        monthly=int(data.get("monthly", 6)),
    )


def parse_settings(data: dict[str, Any]) -> TrackerSettings:
    """
    Parse a settings mapping into ``TrackerSettings``.

    Required keys: ``config_id``, ``timezone``, ``database_url``.
    """
    return TrackerSettings(
        config_id=data["config_id"],
        timezone=data["timezone"],
        database_url=data["database_url"],
        max_holiday_shifts=int(data.get("max_holiday_shifts", 7)),
        history_limits=parse_history_limits(data.get("history_limits", {}) or {}),
        holidays=parse_holidays(data.get("holidays", {}) or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
