"""
Config -> Kernel Bridges.

Functions that convert ``TrackerSettings`` into the collaborators the
kernel consumes.  They live in kpi_config (the producer) because the
kernel must never import kpi_config.

Usage:
    from kpi_config import get_active_config
    from kpi_config.bridges import build_period_calculator

    settings = get_active_config()
    periods = build_period_calculator(settings, clock)
"""

from __future__ import annotations

from kpi_config.schema import TrackerSettings
from kpi_kernel.domain.clock import CalendarClock, Clock
from kpi_kernel.domain.holidays import CachedHolidayOracle, CalendarHolidayOracle
from kpi_kernel.domain.periods import PeriodCalculator


def build_holiday_oracle(settings: TrackerSettings) -> CachedHolidayOracle:
    """Holiday lookups for the configured calendar, behind a bounded cache."""
    return CachedHolidayOracle(
        CalendarHolidayOracle(
            fixed_dates=settings.holidays.fixed_dates,
            recurring=settings.holidays.recurring,
        )
    )


def build_calendar_clock(settings: TrackerSettings, clock: Clock | None = None) -> CalendarClock:
    return CalendarClock(clock, zone=settings.timezone)


def build_period_calculator(
    settings: TrackerSettings, clock: Clock | None = None
) -> PeriodCalculator:
    return PeriodCalculator(
        build_calendar_clock(settings, clock),
        build_holiday_oracle(settings),
        settings.max_holiday_shifts,
    )
