"""
Performance scoring tests.

Verifies:
- percent = half-up rounded delivered/target, clamped to [0, 200]
- green >= 100, amber >= 70, red below
- the monthly record wins over the weekly record when it has activity
- a positive monthly-target-override replaces the monthly target
- weekly overrides are stored but never consulted
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from kpi_kernel.domain.dtos import (
    Kpi,
    Periodicity,
    PeriodType,
    ProgressKey,
    ProgressStatus,
    SemaphoreLevel,
    UnitType,
)
from kpi_kernel.domain.performance import (
    NEUTRAL,
    compute_percent,
    delivered_value,
    evaluate_current,
    evaluate_historical,
    resolve_monthly_target,
    semaphore_level,
)

WEEK = "2024-W11"
MONTH = "2024-02"


def _kpi(periodicity=Periodicity.WEEKLY_MONTHLY, weekly="2", monthly="8") -> Kpi:
    return Kpi(
        id=uuid4(),
        name="Visits",
        unit_type=UnitType.COUNT,
        periodicity=periodicity,
        target_weekly=Decimal(weekly) if weekly is not None else None,
        target_monthly=Decimal(monthly) if monthly is not None else None,
    )


def _done(value: str, comment: str = "") -> ProgressStatus:
    return ProgressStatus(delivered=True, value=value, comment=comment)


class TestComputePercent:
    def test_exact_target(self):
        assert compute_percent(Decimal("8"), Decimal("8")) == 100

    def test_half_up_rounding(self):
        # 1 / 8 = 12.5%
        assert compute_percent(Decimal("1"), Decimal("8")) == 13

    def test_clamped_to_ceiling(self):
        assert compute_percent(Decimal("300"), Decimal("100")) == 200

    def test_negative_clamped_to_zero(self):
        assert compute_percent(Decimal("-5"), Decimal("10")) == 0

    def test_ratio_overflow_hits_ceiling(self):
        assert compute_percent(Decimal("5"), Decimal("1e-999999")) == 200
        assert compute_percent(Decimal("-5"), Decimal("1e-999999")) == 0

    def test_large_ratio_not_rounded_past_precision(self):
        assert compute_percent(Decimal("9e17"), Decimal("1e-17")) == 200

    def test_zero_target(self):
        assert compute_percent(Decimal("5"), Decimal("0")) == 100
        assert compute_percent(Decimal("0"), Decimal("0")) == 0


class TestSemaphoreLevel:
    @pytest.mark.parametrize(
        "percent, level",
        [
            (200, SemaphoreLevel.GREEN),
            (100, SemaphoreLevel.GREEN),
            (99, SemaphoreLevel.AMBER),
            (70, SemaphoreLevel.AMBER),
            (69, SemaphoreLevel.RED),
            (0, SemaphoreLevel.RED),
        ],
    )
    def test_thresholds(self, percent, level):
        assert semaphore_level(percent) is level

    def test_clamped_percent_is_green(self):
        kpi = _kpi(periodicity=Periodicity.WEEKLY, weekly="100", monthly=None)
        perf = evaluate_historical(kpi, PeriodType.WEEKLY, _done("300"))
        assert perf.percent == 200
        assert perf.level is SemaphoreLevel.GREEN


class TestDeliveredValue:
    def test_undelivered_counts_zero(self):
        assert delivered_value(ProgressStatus(delivered=False, value="5")) == Decimal("0")

    def test_non_numeric_counts_zero(self):
        assert delivered_value(_done("lots")) == Decimal("0")


class TestEvaluateCurrent:
    def test_monthly_wins_when_active(self):
        kpi = _kpi()
        progress = {
            ProgressKey(kpi.id, PeriodType.MONTHLY, MONTH): _done("8"),
            ProgressKey(kpi.id, PeriodType.WEEKLY, WEEK): _done("1"),
        }
        perf = evaluate_current(kpi, progress, WEEK, MONTH)
        assert perf.level is SemaphoreLevel.GREEN
        assert perf.percent == 100
        assert perf.base is PeriodType.MONTHLY

    def test_monthly_comment_only_counts_as_activity(self):
        kpi = _kpi()
        progress = {
            ProgressKey(kpi.id, PeriodType.MONTHLY, MONTH): ProgressStatus(
                delivered=False, comment="blocked by supplier"
            ),
            ProgressKey(kpi.id, PeriodType.WEEKLY, WEEK): _done("2"),
        }
        perf = evaluate_current(kpi, progress, WEEK, MONTH)
        assert perf.base is PeriodType.MONTHLY
        assert perf.percent == 0
        assert perf.level is SemaphoreLevel.RED

    def test_inactive_monthly_falls_back_to_weekly(self):
        kpi = _kpi()
        progress = {
            ProgressKey(kpi.id, PeriodType.MONTHLY, MONTH): ProgressStatus(delivered=False),
            ProgressKey(kpi.id, PeriodType.WEEKLY, WEEK): _done("1"),
        }
        perf = evaluate_current(kpi, progress, WEEK, MONTH)
        assert perf.base is PeriodType.WEEKLY
        assert perf.percent == 50
        assert perf.level is SemaphoreLevel.RED

    def test_neutral_without_activity(self):
        kpi = _kpi()
        perf = evaluate_current(kpi, {}, WEEK, MONTH)
        assert perf == NEUTRAL
        assert perf.percent is None
        assert perf.base is None

    def test_other_periods_ignored(self):
        kpi = _kpi()
        progress = {ProgressKey(kpi.id, PeriodType.WEEKLY, "2024-W10"): _done("2")}
        assert evaluate_current(kpi, progress, WEEK, MONTH) == NEUTRAL

    def test_weekly_only_kpi_ignores_monthly_record(self):
        kpi = _kpi(periodicity=Periodicity.WEEKLY, monthly=None)
        progress = {
            ProgressKey(kpi.id, PeriodType.MONTHLY, MONTH): _done("100"),
            ProgressKey(kpi.id, PeriodType.WEEKLY, WEEK): _done("2"),
        }
        perf = evaluate_current(kpi, progress, WEEK, MONTH)
        assert perf.base is PeriodType.WEEKLY
        assert perf.percent == 100

    def test_positive_monthly_override_replaces_target(self):
        kpi = _kpi()
        progress = {
            ProgressKey(kpi.id, PeriodType.MONTHLY, MONTH): _done("4"),
            ProgressKey(kpi.id, PeriodType.MONTHLY_TARGET_OVERRIDE, MONTH): _done("4"),
        }
        perf = evaluate_current(kpi, progress, WEEK, MONTH)
        assert perf.percent == 100
        assert perf.level is SemaphoreLevel.GREEN

    def test_zero_override_ignored(self):
        kpi = _kpi()
        progress = {
            ProgressKey(kpi.id, PeriodType.MONTHLY, MONTH): _done("4"),
            ProgressKey(kpi.id, PeriodType.MONTHLY_TARGET_OVERRIDE, MONTH): _done("0"),
        }
        assert evaluate_current(kpi, progress, WEEK, MONTH).percent == 50

    def test_weekly_override_not_consulted(self):
        kpi = _kpi()
        progress = {
            ProgressKey(kpi.id, PeriodType.WEEKLY, WEEK): _done("1"),
            ProgressKey(kpi.id, PeriodType.WEEKLY_TARGET_OVERRIDE, WEEK): _done("1"),
        }
        assert evaluate_current(kpi, progress, WEEK, MONTH).percent == 50


class TestEvaluateHistorical:
    def test_uses_static_target(self):
        kpi = _kpi()
        perf = evaluate_historical(kpi, PeriodType.MONTHLY, _done("6"))
        assert perf.percent == 75
        assert perf.level is SemaphoreLevel.AMBER
        assert perf.base is PeriodType.MONTHLY

    def test_resolve_monthly_target(self):
        kpi = _kpi()
        assert resolve_monthly_target(kpi, None) == Decimal("8")
        assert resolve_monthly_target(kpi, _done("abc")) == Decimal("8")
        assert resolve_monthly_target(kpi, _done("12")) == Decimal("12")
