"""
HolidayOracle -- answers "is civil date D a holiday?".

Responsibility:
    Defines the oracle interface consumed by the period calculator, a
    configuration-backed implementation, and a bounded caching decorator.

Architecture position:
    Kernel > Domain.  Implementations here are pure; an oracle backed by a
    remote calendar would live outside the kernel and only implement
    ``HolidayOracle``.

Invariants enforced:
    - Lookups are keyed on a plain calendar ``date``; datetimes are reduced
      to their date before the lookup.
    - The cache is explicitly scoped to one oracle instance and bounded by
      ``max_entries`` (least recently used entry evicted first).
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Iterable
from datetime import date, datetime


def _civil_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


class HolidayOracle(ABC):
    """Abstract holiday lookup."""

    @abstractmethod
    def is_holiday(self, civil_date: date) -> bool:
        """Return True if ``civil_date`` is a holiday."""
        ...


class NoHolidays(HolidayOracle):
    """Oracle for calendars without holidays."""

    def is_holiday(self, civil_date: date) -> bool:
        return False


class CalendarHolidayOracle(HolidayOracle):
    """
    Holiday calendar built from explicit dates and recurring month/day pairs.

    Contract:
        ``fixed_dates`` are one-off holidays (e.g. movable feasts for a
        given year); ``recurring`` are ``(month, day)`` pairs observed every
        year (e.g. ``(12, 25)``).
    """

    def __init__(
        self,
        fixed_dates: Iterable[date] = (),
        recurring: Iterable[tuple[int, int]] = (),
    ):
        self._fixed = frozenset(_civil_date(d) for d in fixed_dates)
        self._recurring = frozenset((int(m), int(d)) for m, d in recurring)

    def is_holiday(self, civil_date: date) -> bool:
        day = _civil_date(civil_date)
        return day in self._fixed or (day.month, day.day) in self._recurring


class CachedHolidayOracle(HolidayOracle):
    """Memoizes answers of a slower oracle with LRU eviction."""

    def __init__(self, inner: HolidayOracle, max_entries: int = 512):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._inner = inner
        self._max_entries = max_entries
        self._cache: OrderedDict[date, bool] = OrderedDict()

    def is_holiday(self, civil_date: date) -> bool:
        day = _civil_date(civil_date)
        if day in self._cache:
            self._cache.move_to_end(day)
            return self._cache[day]

        answer = self._inner.is_holiday(day)
        self._cache[day] = answer
        if len(self._cache) > self._max_entries:
            self._cache.popitem(last=False)
        return answer

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
