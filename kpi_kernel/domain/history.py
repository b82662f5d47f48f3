"""
HistoryReconstructor -- past periods with their evaluated performance.

Pure functions over a progress map.  Ordering relies on the fixed-width
key formats: sorting keys as strings, newest first, is chronological.
"""

from __future__ import annotations

from decimal import Decimal

from kpi_kernel.domain.dtos import (
    HistoryRecord,
    Kpi,
    PeriodType,
    ProgressKey,
    ProgressMap,
    YearPerformance,
)
from kpi_kernel.domain.performance import (
    GREEN_THRESHOLD,
    compute_percent,
    evaluate_historical,
    resolve_monthly_target,
)
from kpi_kernel.domain.period_keys import history_label
from kpi_kernel.domain.values import format_value_with_unit, parse_numeric, round_half_up


def build_history(
    kpi: Kpi,
    period_type: PeriodType,
    progress: ProgressMap,
    limit: int,
) -> list[HistoryRecord]:
    """Newest ``limit`` periods of ``period_type`` for ``kpi``."""
    records = []
    for key, status in progress.items():
        if key.kpi_id != kpi.id or key.period_type is not period_type:
            continue
        perf = evaluate_historical(kpi, period_type, status)
        records.append(
            HistoryRecord(
                period_key=key.period_key,
                label=history_label(period_type, key.period_key),
                status=status,
                level=perf.level,
                percent=perf.percent,
                display_value=format_value_with_unit(status.value, kpi.unit_type)
                if status.delivered
                else "",
            )
        )
    records.sort(key=lambda record: record.period_key, reverse=True)
    return records[:max(limit, 0)]


def year_performance(kpi: Kpi, progress: ProgressMap, year: int) -> YearPerformance:
    """
    Summarize delivered monthly results of one calendar year.

    Months count only when delivered with a numeric value.  The target of
    each month honours a positive monthly-target-override.
    """
    prefix = f"{year:04d}-"
    months_with_data = 0
    completed = 0
    percent_sum = 0

    for key, status in progress.items():
        if key.kpi_id != kpi.id or key.period_type is not PeriodType.MONTHLY:
            continue
        if not key.period_key.startswith(prefix) or not status.delivered:
            continue
        value = parse_numeric(status.value)
        if value is None:
            continue
        override = progress.get(
            ProgressKey(kpi.id, PeriodType.MONTHLY_TARGET_OVERRIDE, key.period_key)
        )
        percent = compute_percent(value, resolve_monthly_target(kpi, override))
        months_with_data += 1
        percent_sum += percent
        if percent >= GREEN_THRESHOLD:
            completed += 1

    average = 0
    if months_with_data:
        average = round_half_up(Decimal(percent_sum) / months_with_data)
    return YearPerformance(
        year=year,
        months_with_data=months_with_data,
        completed_months=completed,
        average_percent=average,
    )
