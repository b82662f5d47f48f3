"""
Module: kpi_kernel.selectors.performance_selector
Responsibility: Read-side queries for KPI standing -- the progress map, the
    current semaphore, per-period history, the yearly summary, daily entries
    and the submission log.
Architecture position: Kernel > Selectors.  Loads rows and delegates every
    score to ``kpi_kernel.domain.performance`` / ``history``; no percent is
    computed here.

Invariants enforced:
    - The current view uses the period keys of the injected PeriodCalculator,
      so "today" comes only from its CalendarClock.

Failure modes:
    - KpiNotFoundError for an unknown kpi_id.
    - InvalidPeriodKeyError for a malformed month key in ``daily_entries``.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from kpi_kernel.domain.dtos import (
    HistoryRecord,
    Kpi,
    Performance,
    PeriodType,
    ProgressKey,
    ProgressStatus,
    SubmissionEntryRecord,
    YearPerformance,
)
from kpi_kernel.domain.history import build_history, year_performance
from kpi_kernel.domain.performance import evaluate_current
from kpi_kernel.domain.period_keys import parse_month_key
from kpi_kernel.domain.periods import PeriodCalculator
from kpi_kernel.exceptions import InvalidPeriodKeyError, KpiNotFoundError
from kpi_kernel.logging_config import get_logger
from kpi_kernel.models.kpi import KpiModel
from kpi_kernel.models.progress import ProgressModel
from kpi_kernel.models.submission_entry import SubmissionEntryModel
from kpi_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.performance")

DEFAULT_WEEKLY_HISTORY = 4
DEFAULT_MONTHLY_HISTORY = 6


class PerformanceSelector(BaseSelector[ProgressModel]):
    """
    Evaluated views over stored current results.

    Contract:
        Read-only; every method returns frozen DTOs or plain dicts.
    """

    def __init__(
        self,
        session: Session,
        periods: PeriodCalculator,
        weekly_history_limit: int = DEFAULT_WEEKLY_HISTORY,
        monthly_history_limit: int = DEFAULT_MONTHLY_HISTORY,
    ):
        super().__init__(session)
        self._periods = periods
        self._limits = {
            PeriodType.WEEKLY: weekly_history_limit,
            PeriodType.MONTHLY: monthly_history_limit,
        }

    # ------------------------------------------------------------------
    # KPIs and raw records
    # ------------------------------------------------------------------

    def get_kpi(self, kpi_id: UUID) -> Kpi:
        model = self.session.get(KpiModel, kpi_id)
        if model is None:
            raise KpiNotFoundError(str(kpi_id))
        return Kpi.from_model(model)

    def list_kpis(self, owner_id: UUID | None = None) -> list[Kpi]:
        stmt = select(KpiModel).order_by(KpiModel.name)
        if owner_id is not None:
            stmt = stmt.where(KpiModel.owner_id == owner_id)
        return [Kpi.from_model(m) for m in self.session.execute(stmt).scalars()]

    def progress_map(self, kpi_id: UUID | None = None) -> dict[ProgressKey, ProgressStatus]:
        """Current results, optionally restricted to one KPI."""
        stmt = select(ProgressModel)
        if kpi_id is not None:
            stmt = stmt.where(ProgressModel.kpi_id == kpi_id)
        progress: dict[ProgressKey, ProgressStatus] = {}
        for row in self.session.execute(stmt).scalars():
            try:
                period_type = PeriodType(row.period_type)
            except ValueError:
                logger.warning(
                    "unknown_period_type_skipped",
                    extra={"period_type": row.period_type, "row_id": str(row.id)},
                )
                continue
            progress[ProgressKey(row.kpi_id, period_type, row.period_key)] = (
                ProgressStatus.from_model(row)
            )
        return progress

    def export_progress_map(self, kpi_id: UUID | None = None) -> dict[str, dict[str, object]]:
        """Flat ``"kpiId-periodType-periodKey" -> {delivered, value, comment}`` view."""
        return {
            key.as_text(): status.as_dict()
            for key, status in sorted(
                self.progress_map(kpi_id).items(), key=lambda item: item[0].as_text()
            )
        }

    # ------------------------------------------------------------------
    # Evaluated views
    # ------------------------------------------------------------------

    def current_performance(self, kpi_id: UUID) -> Performance:
        kpi = self.get_kpi(kpi_id)
        return evaluate_current(
            kpi,
            self.progress_map(kpi.id),
            weekly_key=self._periods.current_key(PeriodType.WEEKLY),
            monthly_key=self._periods.current_key(PeriodType.MONTHLY),
        )

    def overview(self) -> list[tuple[Kpi, Performance]]:
        """Current standing of every KPI, ordered by name."""
        progress = self.progress_map()
        weekly_key = self._periods.current_key(PeriodType.WEEKLY)
        monthly_key = self._periods.current_key(PeriodType.MONTHLY)
        return [
            (kpi, evaluate_current(kpi, progress, weekly_key, monthly_key))
            for kpi in self.list_kpis()
        ]

    def history(
        self,
        kpi_id: UUID,
        period_type: PeriodType,
        limit: int | None = None,
    ) -> list[HistoryRecord]:
        """Newest past periods of ``period_type`` with their evaluation."""
        kpi = self.get_kpi(kpi_id)
        if limit is None:
            limit = self._limits.get(period_type, DEFAULT_MONTHLY_HISTORY)
        return build_history(kpi, period_type, self.progress_map(kpi.id), limit)

    def year_performance(self, kpi_id: UUID, year: int) -> YearPerformance:
        kpi = self.get_kpi(kpi_id)
        return year_performance(kpi, self.progress_map(kpi.id), year)

    def daily_entries(self, kpi_id: UUID, month_key: str) -> list[tuple[str, ProgressStatus]]:
        """Daily records of ``kpi_id`` within ``YYYY-MM``, newest first."""
        if parse_month_key(month_key) is None:
            raise InvalidPeriodKeyError(PeriodType.MONTHLY.value, month_key)
        rows = self.session.execute(
            select(ProgressModel)
            .where(
                ProgressModel.kpi_id == kpi_id,
                ProgressModel.period_type == PeriodType.DAILY.value,
                ProgressModel.period_key.like(f"{month_key}-%"),
            )
            .order_by(ProgressModel.period_key.desc())
        ).scalars()
        return [(row.period_key, ProgressStatus.from_model(row)) for row in rows]

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def submission_log(
        self,
        kpi_id: UUID,
        period_type: PeriodType | None = None,
        period_key: str | None = None,
    ) -> list[SubmissionEntryRecord]:
        """Submission entries of a KPI in submission order."""
        stmt = select(SubmissionEntryModel).where(SubmissionEntryModel.kpi_id == kpi_id)
        if period_type is not None:
            stmt = stmt.where(SubmissionEntryModel.period_type == period_type.value)
        if period_key is not None:
            stmt = stmt.where(SubmissionEntryModel.period_key == period_key)
        stmt = stmt.order_by(SubmissionEntryModel.submitted_at)
        return [
            SubmissionEntryRecord.from_model(m)
            for m in self.session.execute(stmt).scalars()
        ]
