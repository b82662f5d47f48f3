"""
Configuration Validator (``kpi_config.validator``).

Responsibility
--------------
Checks parsed ``TrackerSettings`` before they are handed to the kernel:
the time zone must resolve, the holiday shift bound must be positive and
the history limits must be usable.

Failure modes
-------------
* Validation errors (``ValidationResult.errors``)  -> the settings MUST
  NOT be used; ``get_active_config()`` raises ``ValueError``.
* Validation warnings  -> usable, but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from kpi_config.schema import TrackerSettings


@dataclass
class ValidationResult:
    """
    Result of settings validation.

    ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_settings(settings: TrackerSettings) -> ValidationResult:
    """Validate parsed settings; a result with errors MUST NOT be used."""
    result = ValidationResult()

    _validate_timezone(settings, result)
    _validate_holiday_bound(settings, result)
    _validate_history_limits(settings, result)
    _validate_holidays(settings, result)

    if not settings.database_url:
        result.add_error("database_url is empty")

    return result


def _validate_timezone(settings: TrackerSettings, result: ValidationResult) -> None:
    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        result.add_error(f"Unknown time zone {settings.timezone!r}")


def _validate_holiday_bound(settings: TrackerSettings, result: ValidationResult) -> None:
    if settings.max_holiday_shifts < 1:
        result.add_error(
            f"max_holiday_shifts must be at least 1, got {settings.max_holiday_shifts}"
        )


def _validate_history_limits(settings: TrackerSettings, result: ValidationResult) -> None:
    limits = settings.history_limits
    for name, value in (("weekly", limits.weekly), ("monthly", limits.monthly)):
        if value < 1:
            result.add_error(f"history_limits.{name} must be at least 1, got {value}")


def _validate_holidays(settings: TrackerSettings, result: ValidationResult) -> None:
    fixed = settings.holidays.fixed_dates
    if len(set(fixed)) != len(fixed):
        result.add_warning("Duplicate fixed holiday dates")
    recurring = set(settings.holidays.recurring)
    for day in fixed:
        if (day.month, day.day) in recurring:
            result.add_warning(f"Fixed holiday {day.isoformat()} is also recurring")
