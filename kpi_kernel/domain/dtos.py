"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow between the period
    calculator, the ledger, the aggregation engine and the evaluator: KPI
    definitions, current results, submission log records, computed periods,
    entry windows and evaluated performance.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` class methods are boundary converters invoked only
    from the service/selector layer.

Invariants enforced:
    - A KPI's periodicity decides which targets are meaningful;
      ``Kpi.target_for()`` never returns the target of an untracked
      granularity.
    - Progress keys are typed tuples; the ``"kpiId-periodType-periodKey"``
      text form exists only for export.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple
from uuid import UUID

if TYPE_CHECKING:
    from kpi_kernel.models.kpi import KpiModel
    from kpi_kernel.models.progress import ProgressModel
    from kpi_kernel.models.submission_entry import SubmissionEntryModel


class UnitType(str, Enum):
    """Unit a KPI value is measured in."""

    COUNT = "count"
    PERCENTAGE = "percentage"
    CURRENCY = "currency"


class Periodicity(str, Enum):
    """Which granularities a KPI is tracked at."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    WEEKLY_MONTHLY = "weekly+monthly"

    @property
    def includes_weekly(self) -> bool:
        return self in (Periodicity.WEEKLY, Periodicity.WEEKLY_MONTHLY)

    @property
    def includes_monthly(self) -> bool:
        return self in (Periodicity.MONTHLY, Periodicity.WEEKLY_MONTHLY)


class PeriodType(str, Enum):
    """
    Granularity tag of a current-result row.

    The two ``*-target-override`` tags store an admin-set target for one
    concrete period, keyed like the period type they override.
    """

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    WEEKLY_TARGET_OVERRIDE = "weekly-target-override"
    MONTHLY_TARGET_OVERRIDE = "monthly-target-override"

    @property
    def base_type(self) -> PeriodType:
        """The period type whose key format and window this tag uses."""
        if self is PeriodType.WEEKLY_TARGET_OVERRIDE:
            return PeriodType.WEEKLY
        if self is PeriodType.MONTHLY_TARGET_OVERRIDE:
            return PeriodType.MONTHLY
        return self

    @property
    def is_target_override(self) -> bool:
        return self in (
            PeriodType.WEEKLY_TARGET_OVERRIDE,
            PeriodType.MONTHLY_TARGET_OVERRIDE,
        )

    @property
    def is_deadline_gated(self) -> bool:
        return self in (PeriodType.WEEKLY, PeriodType.MONTHLY)


@dataclass(frozen=True)
class Kpi:
    """
    Pure domain representation of a tracked goal.

    Guarantees:
        - Immutable (frozen dataclass).
        - ``target_for()`` only answers for tracked granularities.
    """

    id: UUID
    name: str
    unit_type: UnitType
    periodicity: Periodicity
    target_weekly: Decimal | None = None
    target_monthly: Decimal | None = None
    owner_id: UUID | None = None
    description: str = ""

    def tracks(self, period_type: PeriodType) -> bool:
        """Whether entries of ``period_type`` belong to this KPI."""
        base = period_type.base_type
        if base is PeriodType.WEEKLY:
            return self.periodicity.includes_weekly
        if base is PeriodType.MONTHLY:
            return self.periodicity.includes_monthly
        # Daily entries only feed always-monthly KPIs
        return self.periodicity is Periodicity.MONTHLY

    def target_for(self, period_type: PeriodType) -> Decimal:
        """Static target of a weekly or monthly period (0 when untracked)."""
        base = period_type.base_type
        if base is PeriodType.WEEKLY and self.periodicity.includes_weekly:
            return self.target_weekly or Decimal("0")
        if base is PeriodType.MONTHLY and self.periodicity.includes_monthly:
            return self.target_monthly or Decimal("0")
        return Decimal("0")

    @classmethod
    def from_model(cls, model: KpiModel) -> Kpi:
        return cls(
            id=model.id,
            name=model.name,
            description=model.description or "",
            unit_type=UnitType(model.unit_type),
            periodicity=Periodicity(model.periodicity),
            target_weekly=model.target_weekly,
            target_monthly=model.target_monthly,
            owner_id=model.owner_id,
        )


@dataclass(frozen=True)
class ProgressStatus:
    """The single current result stored for one KPI period."""

    delivered: bool
    value: str = ""
    comment: str = ""

    @property
    def has_activity(self) -> bool:
        """Something was submitted or confirmed for the period."""
        return self.delivered or bool(self.comment)

    def as_dict(self) -> dict[str, object]:
        return {
            "delivered": self.delivered,
            "value": self.value,
            "comment": self.comment,
        }

    @classmethod
    def from_model(cls, model: ProgressModel) -> ProgressStatus:
        return cls(
            delivered=bool(model.delivered),
            value=model.value or "",
            comment=model.comment or "",
        )


class ProgressKey(NamedTuple):
    """Identity of a current result."""

    kpi_id: UUID
    period_type: PeriodType
    period_key: str

    def as_text(self) -> str:
        """Flat ``kpiId-periodType-periodKey`` form used by exports."""
        return f"{self.kpi_id}-{self.period_type.value}-{self.period_key}"


ProgressMap = Mapping[ProgressKey, ProgressStatus]


@dataclass(frozen=True)
class Period:
    """
    A computed accounting window.

    ``due_date`` is None for daily periods, which have no deadline.
    """

    start_date: date
    end_date: date
    due_date: date | None

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class WindowState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class EntryWindow:
    """
    Whether a period currently accepts submissions.

    Contract:
        Two states only: ``Open`` or ``Closed(reason)``.  Callers branch on
        ``is_open`` instead of comparing dates themselves.
    """

    state: WindowState
    reason: str | None = None

    @classmethod
    def open(cls) -> EntryWindow:
        return cls(state=WindowState.OPEN)

    @classmethod
    def closed(cls, reason: str) -> EntryWindow:
        return cls(state=WindowState.CLOSED, reason=reason)

    @property
    def is_open(self) -> bool:
        return self.state is WindowState.OPEN


@dataclass(frozen=True)
class SubmissionEntryRecord:
    """Immutable audit record of one act of submission."""

    kpi_id: UUID
    period_type: PeriodType
    period_key: str
    delivered: bool
    value: str
    comment: str
    start_date: date | None
    end_date: date | None
    due_date: date | None
    submitted_at: datetime
    submitted_by: UUID | None
    id: UUID | None = None

    @classmethod
    def from_model(cls, model: SubmissionEntryModel) -> SubmissionEntryRecord:
        return cls(
            id=model.id,
            kpi_id=model.kpi_id,
            period_type=PeriodType(model.period_type),
            period_key=model.period_key,
            delivered=bool(model.delivered),
            value=model.value or "",
            comment=model.comment or "",
            start_date=model.start_date,
            end_date=model.end_date,
            due_date=model.due_date,
            submitted_at=model.submitted_at,
            submitted_by=model.submitted_by,
        )


class SemaphoreLevel(str, Enum):
    GREEN = "green"
    AMBER = "amber"
    RED = "red"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Performance:
    """
    Evaluated standing of a KPI.

    ``percent`` and ``base`` are None only for NEUTRAL (no activity).
    """

    level: SemaphoreLevel
    percent: int | None
    base: PeriodType | None = None


@dataclass(frozen=True)
class HistoryRecord:
    """One past period with its evaluated performance."""

    period_key: str
    label: str
    status: ProgressStatus
    level: SemaphoreLevel
    percent: int
    display_value: str = ""


@dataclass(frozen=True)
class YearPerformance:
    """Monthly results of one KPI summarized over a calendar year."""

    year: int
    months_with_data: int
    completed_months: int
    average_percent: int


@dataclass(frozen=True)
class MonthlyRollup:
    """Result of recomputing one month from its finer entries."""

    kpi_id: UUID
    source_type: PeriodType
    month_key: str
    delivered: bool
    value: str
    contributing_keys: tuple[str, ...] = ()

    @property
    def status(self) -> ProgressStatus:
        return ProgressStatus(delivered=self.delivered, value=self.value, comment="")
