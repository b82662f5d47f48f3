"""
PerformanceEvaluator -- percent-of-target and semaphore scoring.

Responsibility:
    The single implementation of KPI scoring.  The current-period view,
    the history view and the yearly summary all call into this module;
    nothing else computes a percent.

Architecture position:
    Kernel > Domain -- pure functions over DTOs.

Rules:
    percent = round_half_up(delivered / target * 100) when target > 0,
              otherwise 100 if anything positive was delivered, else 0;
              then clamped to [0, 200] (display ceiling).
    level   = green >= 100, amber >= 70, red below.

    Current view: the monthly record wins when the KPI tracks months and
    the current month has activity (delivered or a comment), else the
    weekly record under the same test, else NEUTRAL.  The monthly target
    may be replaced by a positive monthly-target-override for that month.
    Weekly targets have no override path.

    Historical view: same formula against the static KPI target, with no
    override lookup.
"""

from __future__ import annotations

from decimal import Decimal

from kpi_kernel.domain.dtos import (
    Kpi,
    Performance,
    PeriodType,
    ProgressKey,
    ProgressMap,
    ProgressStatus,
    SemaphoreLevel,
)
from kpi_kernel.domain.values import (
    SAFE_CONTEXT,
    ZERO,
    numeric_or_zero,
    parse_numeric,
    round_half_up,
)

PERCENT_CEILING = 200
GREEN_THRESHOLD = 100
AMBER_THRESHOLD = 70

NEUTRAL = Performance(level=SemaphoreLevel.NEUTRAL, percent=None, base=None)


def compute_percent(delivered_value: Decimal, target: Decimal) -> int:
    if target > 0:
        ratio = SAFE_CONTEXT.multiply(SAFE_CONTEXT.divide(delivered_value, target), 100)
        if ratio <= 0:
            return 0
        if ratio >= PERCENT_CEILING:
            return PERCENT_CEILING
        percent = round_half_up(ratio)
    else:
        percent = 100 if delivered_value > 0 else 0
    return max(0, min(percent, PERCENT_CEILING))


def semaphore_level(percent: int) -> SemaphoreLevel:
    if percent >= GREEN_THRESHOLD:
        return SemaphoreLevel.GREEN
    if percent >= AMBER_THRESHOLD:
        return SemaphoreLevel.AMBER
    return SemaphoreLevel.RED


def delivered_value(status: ProgressStatus) -> Decimal:
    """Numeric value of a record; undelivered records count as zero."""
    if not status.delivered:
        return ZERO
    return numeric_or_zero(status.value)


def score(status: ProgressStatus, target: Decimal, base: PeriodType | None = None) -> Performance:
    percent = compute_percent(delivered_value(status), target)
    return Performance(level=semaphore_level(percent), percent=percent, base=base)


def resolve_monthly_target(kpi: Kpi, override: ProgressStatus | None) -> Decimal:
    """KPI monthly target unless a positive override exists for the month."""
    if override is not None:
        value = parse_numeric(override.value)
        if value is not None and value > 0:
            return value
    return kpi.target_for(PeriodType.MONTHLY)


def evaluate_current(
    kpi: Kpi,
    progress: ProgressMap,
    weekly_key: str,
    monthly_key: str,
) -> Performance:
    """
    Score a KPI's current standing.

    Args:
        kpi: The KPI definition.
        progress: Current results, at least those of this KPI.
        weekly_key: Key of the current weekly period.
        monthly_key: Key of the current monthly period.
    """
    monthly = progress.get(ProgressKey(kpi.id, PeriodType.MONTHLY, monthly_key))
    if kpi.periodicity.includes_monthly and monthly is not None and monthly.has_activity:
        override = progress.get(
            ProgressKey(kpi.id, PeriodType.MONTHLY_TARGET_OVERRIDE, monthly_key)
        )
        return score(monthly, resolve_monthly_target(kpi, override), PeriodType.MONTHLY)

    weekly = progress.get(ProgressKey(kpi.id, PeriodType.WEEKLY, weekly_key))
    if kpi.periodicity.includes_weekly and weekly is not None and weekly.has_activity:
        return score(weekly, kpi.target_for(PeriodType.WEEKLY), PeriodType.WEEKLY)

    return NEUTRAL


def evaluate_historical(kpi: Kpi, period_type: PeriodType, status: ProgressStatus) -> Performance:
    """Score a past period against the KPI's static target."""
    return score(status, kpi.target_for(period_type), period_type)
