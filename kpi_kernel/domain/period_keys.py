"""
PeriodKeyCodec -- parse and format the persisted period key formats.

Formats (bit-exact, zero-padded, fixed width):
    daily     YYYY-MM-DD
    weekly    YYYY-Www   (ISO year and ISO week number, 01-53)
    monthly   YYYY-MM

Because every format is fixed width, lexicographic order of keys of one
period type equals chronological order.

Parsers return None for malformed input and never raise.
"""

from __future__ import annotations

import re
from datetime import date

from kpi_kernel.domain.dtos import PeriodType

_DAILY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_WEEK_RE = re.compile(r"^(\d{4})-W(\d{2})$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def format_daily_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def format_week_key(day: date) -> str:
    """ISO-week key of the week containing ``day``."""
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def format_month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_daily_key(key: str) -> date | None:
    match = _DAILY_RE.match(key or "")
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_week_key(key: str) -> tuple[int, int] | None:
    """Return ``(iso_year, iso_week)`` or None if the week doesn't exist."""
    match = _WEEK_RE.match(key or "")
    if match is None:
        return None
    year, week = int(match.group(1)), int(match.group(2))
    try:
        date.fromisocalendar(year, week, 1)
    except ValueError:
        return None
    return year, week


def parse_month_key(key: str) -> tuple[int, int] | None:
    match = _MONTH_RE.match(key or "")
    if match is None:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        return None
    return year, month


def week_monday(key: str) -> date | None:
    parsed = parse_week_key(key)
    if parsed is None:
        return None
    return date.fromisocalendar(parsed[0], parsed[1], 1)


def week_key_to_year_month(key: str) -> tuple[int, int] | None:
    """
    Administrative month of an ISO week.

    The month of the week's Monday owns the week for rollups, so
    ``2024-W01`` (Monday 2024-01-01) belongs to January 2024 and
    ``2025-W01`` (Monday 2024-12-30) belongs to December 2024.
    """
    monday = week_monday(key)
    if monday is None:
        return None
    return monday.year, monday.month


def date_key_to_year_month(key: str) -> tuple[int, int] | None:
    day = parse_daily_key(key)
    if day is None:
        return None
    return day.year, day.month


def key_to_year_month(period_type: PeriodType, key: str) -> tuple[int, int] | None:
    """Administrative month of a daily, weekly or monthly key."""
    base = period_type.base_type
    if base is PeriodType.DAILY:
        return date_key_to_year_month(key)
    if base is PeriodType.WEEKLY:
        return week_key_to_year_month(key)
    return parse_month_key(key)


def is_valid_key(period_type: PeriodType, key: str) -> bool:
    base = period_type.base_type
    if base is PeriodType.DAILY:
        return parse_daily_key(key) is not None
    if base is PeriodType.WEEKLY:
        return parse_week_key(key) is not None
    return parse_month_key(key) is not None


def history_label(period_type: PeriodType, key: str) -> str:
    """Display label: weekly ``Week WW / YYYY``, monthly ``MM/YYYY``."""
    base = period_type.base_type
    if base is PeriodType.WEEKLY:
        match = _WEEK_RE.match(key)
        if match:
            return f"Week {match.group(2)} / {match.group(1)}"
    elif base is PeriodType.MONTHLY:
        match = _MONTH_RE.match(key)
        if match:
            return f"{match.group(2)}/{match.group(1)}"
    return key
