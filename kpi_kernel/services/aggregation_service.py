"""
AggregationService -- keeps monthly totals in step with finer entries.

Responsibility:
    After a weekly or daily write, recomputes the affected month from every
    finer entry of that month and stores the result as the month's current
    monthly record.  The rollup write is also appended to the submission
    log so the audit trail shows where the monthly value came from.

Architecture position:
    Kernel > Services -- imperative shell around the pure
    ``compute_monthly_rollup``.  Flush-only; runs inside the caller's
    transaction so an entry and its rollup commit together.

Invariants enforced:
    - Rollups are full recomputes; rerunning one is idempotent.
    - A KPI without a rollup source (weekly-only) is never touched.
    - A rollup always clears the monthly comment.
"""

from uuid import UUID

from kpi_kernel.domain.aggregation import compute_monthly_rollup, rollup_source
from kpi_kernel.domain.clock import Clock, SystemClock
from kpi_kernel.domain.dtos import (
    Kpi,
    MonthlyRollup,
    PeriodType,
    SubmissionEntryRecord,
)
from kpi_kernel.domain.ledger import ProgressLedger
from kpi_kernel.domain.period_keys import key_to_year_month
from kpi_kernel.domain.periods import PeriodCalculator
from kpi_kernel.logging_config import get_logger

logger = get_logger("services.aggregation")


class AggregationService:
    """
    Recomputes monthly rollups through a ``ProgressLedger``.

    Contract:
        ``recompute_after_write`` is called once per accepted weekly or
        daily submission; ``recompute_month`` may be called at any time to
        repair a month.
    """

    def __init__(
        self,
        ledger: ProgressLedger,
        periods: PeriodCalculator,
        clock: Clock | None = None,
    ):
        self._ledger = ledger
        self._periods = periods
        self._clock = clock or SystemClock()

    def feeds_monthly(self, kpi: Kpi, period_type: PeriodType) -> bool:
        """Whether writes of ``period_type`` change this KPI's monthly total."""
        source = rollup_source(kpi)
        return source is not None and source is period_type

    def recompute_after_write(
        self,
        kpi: Kpi,
        period_type: PeriodType,
        period_key: str,
        actor_id: UUID | None = None,
    ) -> MonthlyRollup | None:
        """
        Refresh the month that ``period_key`` belongs to.

        Returns:
            The stored rollup, or None when ``period_type`` does not feed
            this KPI's monthly total.
        """
        if not self.feeds_monthly(kpi, period_type):
            return None
        year_month = key_to_year_month(period_type, period_key)
        if year_month is None:
            return None
        return self.recompute_month(kpi, *year_month, actor_id=actor_id)

    def recompute_month(
        self,
        kpi: Kpi,
        year: int,
        month: int,
        actor_id: UUID | None = None,
    ) -> MonthlyRollup | None:
        """Recompute and store the monthly record of ``year-month``."""
        source = rollup_source(kpi)
        if source is None:
            return None

        entries = self._ledger.list_by_kpi_and_type(kpi.id, source)
        rollup = compute_monthly_rollup(kpi.id, source, year, month, entries)

        status = rollup.status
        self._ledger.upsert(kpi.id, PeriodType.MONTHLY, rollup.month_key, status)

        period = self._periods.period_for_key(PeriodType.MONTHLY, rollup.month_key)
        self._ledger.append_entry(
            SubmissionEntryRecord(
                kpi_id=kpi.id,
                period_type=PeriodType.MONTHLY,
                period_key=rollup.month_key,
                delivered=status.delivered,
                value=status.value,
                comment=status.comment,
                start_date=period.start_date if period else None,
                end_date=period.end_date if period else None,
                due_date=period.due_date if period else None,
                submitted_at=self._clock.now_utc(),
                submitted_by=actor_id,
            )
        )

        logger.info(
            "monthly_rollup_recomputed",
            extra={
                "month_key": rollup.month_key,
                "source_type": source.value,
                "contributing_count": len(rollup.contributing_keys),
                "delivered": rollup.delivered,
                "value": rollup.value,
            },
        )
        return rollup
