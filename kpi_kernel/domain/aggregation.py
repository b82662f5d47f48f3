"""
Monthly rollup -- pure recompute of a month from its finer entries.

A rollup is always a full recompute over every finer entry of the month,
never an incremental add, so rerunning it after any edit or deletion
converges to the same total.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from kpi_kernel.domain.dtos import Kpi, MonthlyRollup, Periodicity, PeriodType, ProgressStatus
from kpi_kernel.domain.period_keys import format_month_key, key_to_year_month
from kpi_kernel.domain.values import SAFE_CONTEXT, ZERO, format_decimal, parse_numeric
from kpi_kernel.logging_config import get_logger

logger = get_logger("domain.aggregation")


def rollup_source(kpi: Kpi) -> PeriodType | None:
    """Finer period type that feeds this KPI's monthly total, if any."""
    if kpi.periodicity is Periodicity.WEEKLY_MONTHLY:
        return PeriodType.WEEKLY
    if kpi.periodicity is Periodicity.MONTHLY:
        return PeriodType.DAILY
    return None


def compute_monthly_rollup(
    kpi_id: UUID,
    source_type: PeriodType,
    year: int,
    month: int,
    entries: Iterable[tuple[str, ProgressStatus]],
) -> MonthlyRollup:
    """
    Sum the delivered finer entries that belong to ``year-month``.

    Entries whose key maps to another month are skipped.  Values that are
    not finite numbers, or too large to sum safely, count as zero.
    """
    total = Decimal("0")
    contributing: list[str] = []
    for period_key, status in entries:
        if key_to_year_month(source_type, period_key) != (year, month):
            continue
        contributing.append(period_key)
        if not status.delivered:
            continue
        value = parse_numeric(status.value)
        if value is None:
            if status.value:
                logger.debug(
                    "rollup_value_not_numeric",
                    extra={"period_key": period_key, "value": status.value},
                )
            continue
        total = SAFE_CONTEXT.add(total, value)

    delivered = total > ZERO
    return MonthlyRollup(
        kpi_id=kpi_id,
        source_type=source_type,
        month_key=format_month_key(year, month),
        delivered=delivered,
        value=format_decimal(total) if delivered else "",
        contributing_keys=tuple(sorted(contributing)),
    )
