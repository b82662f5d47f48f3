"""
Pure domain layer.

This module contains pure data transfer objects and domain logic
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

Time enters only through an injected Clock and holidays only through an
injected HolidayOracle.
"""

from kpi_kernel.domain.aggregation import compute_monthly_rollup, rollup_source
from kpi_kernel.domain.clock import CalendarClock, Clock, DeterministicClock, SystemClock
from kpi_kernel.domain.dtos import (
    EntryWindow,
    HistoryRecord,
    Kpi,
    MonthlyRollup,
    Performance,
    Period,
    Periodicity,
    PeriodType,
    ProgressKey,
    ProgressMap,
    ProgressStatus,
    SemaphoreLevel,
    SubmissionEntryRecord,
    UnitType,
    WindowState,
    YearPerformance,
)
from kpi_kernel.domain.history import build_history, year_performance
from kpi_kernel.domain.holidays import (
    CachedHolidayOracle,
    CalendarHolidayOracle,
    HolidayOracle,
    NoHolidays,
)
from kpi_kernel.domain.ledger import ProgressLedger
from kpi_kernel.domain.performance import evaluate_current, evaluate_historical
from kpi_kernel.domain.periods import PeriodCalculator

__all__ = [
    "CachedHolidayOracle",
    "CalendarClock",
    "CalendarHolidayOracle",
    "Clock",
    "DeterministicClock",
    "EntryWindow",
    "HistoryRecord",
    "HolidayOracle",
    "Kpi",
    "MonthlyRollup",
    "NoHolidays",
    "Performance",
    "Period",
    "PeriodCalculator",
    "PeriodType",
    "Periodicity",
    "ProgressKey",
    "ProgressLedger",
    "ProgressMap",
    "ProgressStatus",
    "SemaphoreLevel",
    "SubmissionEntryRecord",
    "SystemClock",
    "UnitType",
    "WindowState",
    "YearPerformance",
    "build_history",
    "compute_monthly_rollup",
    "evaluate_current",
    "evaluate_historical",
    "rollup_source",
    "year_performance",
]
