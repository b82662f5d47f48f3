"""
PeriodCalculator -- accounting windows and submission deadlines.

Responsibility:
    Derives the current weekly and monthly accounting periods from the
    civil calendar, the window named by any period key, and whether a
    period is still open for submissions.

Architecture position:
    Kernel > Domain.  Reads "today" from an injected ``CalendarClock`` and
    holidays from an injected ``HolidayOracle``; holds no other state.

Rules:
    Weekly   -- Saturday through Friday.  On a Saturday the current period
                is the week that ended yesterday, so a submitter on the due
                Saturday still files for the week that just closed.  The due
                date is the Saturday after the period ends.
    Monthly  -- the calendar month before the current one.  The due date is
                the 1st of the current month, or the 2nd when the 1st is a
                Sunday.
    Both due dates then move forward one day at a time while they fall on
    a holiday, at most ``max_holiday_shifts`` times.  After the last shift
    the date is final even if it is still a holiday.

Invariants enforced:
    - A period is open for a non-privileged caller while today <= due date.
    - Daily periods have no due date and are never closed.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from kpi_kernel.domain.clock import CalendarClock
from kpi_kernel.domain.dtos import EntryWindow, Period, PeriodType
from kpi_kernel.domain.holidays import HolidayOracle, NoHolidays
from kpi_kernel.domain.period_keys import (
    format_daily_key,
    format_month_key,
    format_week_key,
    parse_daily_key,
    parse_month_key,
    parse_week_key,
)
from kpi_kernel.logging_config import get_logger

logger = get_logger("domain.periods")

MAX_HOLIDAY_SHIFTS = 7

_FRIDAY = 4
_SATURDAY = 5
_SUNDAY = 6


def shift_past_holidays(
    day: date,
    holidays: HolidayOracle,
    max_shifts: int = MAX_HOLIDAY_SHIFTS,
) -> date:
    """Advance ``day`` while it is a holiday, at most ``max_shifts`` days."""
    shifted = day
    for _ in range(max_shifts):
        if not holidays.is_holiday(shifted):
            return shifted
        shifted += timedelta(days=1)

    if holidays.is_holiday(shifted):
        logger.warning(
            "holiday_shift_bound_reached",
            extra={
                "original_date": day,
                "final_date": shifted,
                "max_shifts": max_shifts,
            },
        )
    return shifted


def weekly_window_ending(end: date) -> tuple[date, date]:
    return end - timedelta(days=6), end


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


class PeriodCalculator:
    """
    Computes accounting periods relative to the civil calendar.

    Contract:
        Stateless apart from its injected collaborators; every call reads
        today from the calendar clock again.
    """

    def __init__(
        self,
        calendar_clock: CalendarClock,
        holidays: HolidayOracle | None = None,
        max_holiday_shifts: int = MAX_HOLIDAY_SHIFTS,
    ):
        self._calendar = calendar_clock
        self._holidays = holidays if holidays is not None else NoHolidays()
        self._max_shifts = max_holiday_shifts

    def today(self) -> date:
        return self._calendar.today()

    # ------------------------------------------------------------------
    # Due dates
    # ------------------------------------------------------------------

    def weekly_due_date(self, end: date) -> date:
        saturday = end + timedelta(days=(_SATURDAY - end.weekday()) % 7 or 7)
        return shift_past_holidays(saturday, self._holidays, self._max_shifts)

    def monthly_due_date(self, year: int, month: int) -> date:
        """Due date of the accounting month ``year-month``."""
        due_year, due_month = next_month(year, month)
        due = date(due_year, due_month, 1)
        if due.weekday() == _SUNDAY:
            due += timedelta(days=1)
        return shift_past_holidays(due, self._holidays, self._max_shifts)

    # ------------------------------------------------------------------
    # Current periods
    # ------------------------------------------------------------------

    def weekly_period(self) -> Period:
        today = self.today()
        if today.weekday() == _SATURDAY:
            end = today - timedelta(days=1)
        else:
            end = today + timedelta(days=(_FRIDAY - today.weekday()) % 7)
        start, end = weekly_window_ending(end)
        return Period(start_date=start, end_date=end, due_date=self.weekly_due_date(end))

    def monthly_period(self) -> Period:
        today = self.today()
        year, month = previous_month(today.year, today.month)
        return self._month_period(year, month)

    def _month_period(self, year: int, month: int) -> Period:
        last_day = calendar.monthrange(year, month)[1]
        return Period(
            start_date=date(year, month, 1),
            end_date=date(year, month, last_day),
            due_date=self.monthly_due_date(year, month),
        )

    def current_period(self, period_type: PeriodType) -> Period:
        base = period_type.base_type
        if base is PeriodType.WEEKLY:
            return self.weekly_period()
        if base is PeriodType.MONTHLY:
            return self.monthly_period()
        today = self.today()
        return Period(start_date=today, end_date=today, due_date=None)

    def current_key(self, period_type: PeriodType) -> str:
        """
        Key of the current period.

        The weekly key is the ISO week of the period's Friday, i.e. the
        Monday-to-Friday part of the Saturday-to-Friday window.
        """
        base = period_type.base_type
        if base is PeriodType.WEEKLY:
            return format_week_key(self.weekly_period().end_date)
        if base is PeriodType.MONTHLY:
            start = self.monthly_period().start_date
            return format_month_key(start.year, start.month)
        return format_daily_key(self.today())

    # ------------------------------------------------------------------
    # Windows named by a key
    # ------------------------------------------------------------------

    def period_for_key(self, period_type: PeriodType, period_key: str) -> Period | None:
        """Window named by ``period_key``, or None if the key is malformed."""
        base = period_type.base_type
        if base is PeriodType.WEEKLY:
            parsed = parse_week_key(period_key)
            if parsed is None:
                return None
            friday = date.fromisocalendar(parsed[0], parsed[1], 5)
            start, end = weekly_window_ending(friday)
            return Period(start_date=start, end_date=end, due_date=self.weekly_due_date(end))
        if base is PeriodType.MONTHLY:
            parsed_month = parse_month_key(period_key)
            if parsed_month is None:
                return None
            return self._month_period(*parsed_month)
        day = parse_daily_key(period_key)
        if day is None:
            return None
        return Period(start_date=day, end_date=day, due_date=None)

    # ------------------------------------------------------------------
    # Entry windows
    # ------------------------------------------------------------------

    def entry_window(self, period: Period, caller_is_privileged: bool) -> EntryWindow:
        """Open while today <= due date; always open for privileged callers."""
        if caller_is_privileged or period.due_date is None:
            return EntryWindow.open()
        if self.today() > period.due_date:
            return EntryWindow.closed(
                f"The submission deadline passed on {period.due_date.isoformat()}"
            )
        return EntryWindow.open()
