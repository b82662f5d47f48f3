"""
Clock -- Deterministic time abstraction and the civil calendar.

Responsibility:
    Provides an injectable clock interface so that domain, service and
    selector code never call ``datetime.now()`` or ``date.today()``
    directly, and a ``CalendarClock`` that resolves "today" in one fixed
    civil time zone regardless of the machine's own zone.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).

Failure modes:
    - ``ZoneInfoNotFoundError`` if CalendarClock is given an unknown zone.

Audit relevance:
    Every ``submitted_at`` in the submission log and every due-date
    decision is traceable to an injected Clock instance.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Sao_Paulo"


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        All services that need current time must receive a Clock instance
        via constructor injection.

    Guarantees:
        - ``now()`` returns a timezone-aware ``datetime``.
        - ``now_utc()`` returns a UTC-normalized ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    @abstractmethod
    def now_utc(self) -> datetime:
        """Get the current UTC time."""
        ...


class SystemClock(Clock):
    """
    Production clock that returns actual system time.

    Non-goals:
        Not suitable for deterministic tests.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until
          ``advance()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        """
        Initialize with optional fixed time.

        Args:
            fixed_time: If provided, clock always returns this time.
                       If None, uses a default epoch time.
        """
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )
        self._advance_seconds = 0

    def now(self) -> datetime:
        return self._fixed_time + timedelta(seconds=self._advance_seconds)

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0

    def advance(self, seconds: int = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds

    def advance_days(self, days: int = 1) -> None:
        """Advance the clock by whole days."""
        self.advance(days * 86400)


class CalendarClock:
    """
    Resolves "today" in a fixed civil calendar.

    Contract:
        Wraps an injected ``Clock`` and a single IANA time zone.  The civil
        date is derived from the UTC instant, so the host's local zone never
        matters.

    Guarantees:
        - ``today()`` is the calendar date in ``zone`` at ``clock.now_utc()``.
        - ``now()`` is the same instant expressed in ``zone``.
    """

    def __init__(self, clock: Clock | None = None, zone: str = DEFAULT_TIMEZONE):
        self._clock = clock or SystemClock()
        self._zone = ZoneInfo(zone)

    @property
    def zone(self) -> ZoneInfo:
        return self._zone

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> datetime:
        return self._clock.now_utc().astimezone(self._zone)

    def today(self) -> date:
        return self.now().date()
