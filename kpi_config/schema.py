"""
TrackerSettings schema.

Defines the typed form of a tracker configuration set.  YAML files are
parsed into these frozen dataclasses by the loader and checked by the
validator before ``get_active_config()`` hands them out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

# ---------------------------------------------------------------------------
# Holidays
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HolidayCalendarDef:
    """
    Holidays that push submission due dates forward.

    ``recurring`` holds (month, day) pairs observed every year;
    ``fixed_dates`` holds one-off and movable dates (carnival, Good Friday,
    Corpus Christi) listed per year.
    """

    name: str = "default"
    fixed_dates: tuple[date, ...] = ()
    recurring: tuple[tuple[int, int], ...] = ()


# ---------------------------------------------------------------------------
# Display limits
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HistoryLimits:
    """Default number of past periods shown by the history view."""

    weekly: int = 4
    monthly: int = 6


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrackerSettings:
    """Complete runtime configuration of the tracker."""

    config_id: str
    timezone: str
    database_url: str
    max_holiday_shifts: int = 7
    history_limits: HistoryLimits = field(default_factory=HistoryLimits)
    holidays: HolidayCalendarDef = field(default_factory=HolidayCalendarDef)
    checksum: str = ""
