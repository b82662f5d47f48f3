"""
Monthly rollup tests.

Verifies:
- The monthly total is the sum of delivered finer entries of that month
- Entries of other months are skipped
- Undelivered and non-numeric entries contribute 0
- Recompute is deterministic for the same inputs
"""

from uuid import uuid4

from kpi_kernel.domain.aggregation import compute_monthly_rollup, rollup_source
from kpi_kernel.domain.dtos import Kpi, Periodicity, PeriodType, ProgressStatus, UnitType


def _entry(key: str, value: str, delivered: bool = True, comment: str = ""):
    return key, ProgressStatus(delivered=delivered, value=value, comment=comment)


def _kpi(periodicity: Periodicity) -> Kpi:
    return Kpi(id=uuid4(), name="k", unit_type=UnitType.COUNT, periodicity=periodicity)


class TestRollupSource:
    def test_sources_by_periodicity(self):
        assert rollup_source(_kpi(Periodicity.WEEKLY_MONTHLY)) is PeriodType.WEEKLY
        assert rollup_source(_kpi(Periodicity.MONTHLY)) is PeriodType.DAILY
        assert rollup_source(_kpi(Periodicity.WEEKLY)) is None


class TestWeeklyRollup:
    def test_march_2024_four_weeks(self):
        kpi_id = uuid4()
        entries = [_entry(f"2024-W{w}", "2") for w in (10, 11, 12, 13)]
        rollup = compute_monthly_rollup(kpi_id, PeriodType.WEEKLY, 2024, 3, entries)
        assert rollup.month_key == "2024-03"
        assert rollup.delivered is True
        assert rollup.value == "8"
        assert rollup.contributing_keys == ("2024-W10", "2024-W11", "2024-W12", "2024-W13")
        assert rollup.status == ProgressStatus(delivered=True, value="8", comment="")

    def test_weeks_of_other_months_skipped(self):
        entries = [
            _entry("2024-W09", "5"),  # Monday 2024-02-26
            _entry("2024-W10", "2"),
            _entry("2024-W14", "7"),  # Monday 2024-04-01
        ]
        rollup = compute_monthly_rollup(uuid4(), PeriodType.WEEKLY, 2024, 3, entries)
        assert rollup.value == "2"
        assert rollup.contributing_keys == ("2024-W10",)

    def test_undelivered_week_with_comment_contributes_zero(self):
        entries = [
            _entry("2024-W10", "2"),
            _entry("2024-W11", "9", delivered=False, comment="sick leave"),
        ]
        rollup = compute_monthly_rollup(uuid4(), PeriodType.WEEKLY, 2024, 3, entries)
        assert rollup.value == "2"
        assert "2024-W11" in rollup.contributing_keys

    def test_non_numeric_values_count_as_zero(self, captured_logs):
        entries = [
            _entry("2024-W10", "abc"),
            _entry("2024-W11", "NaN"),
            _entry("2024-W12", "3"),
        ]
        rollup = compute_monthly_rollup(uuid4(), PeriodType.WEEKLY, 2024, 3, entries)
        assert rollup.value == "3"
        logs = captured_logs()
        assert sum(1 for r in logs if r["message"] == "rollup_value_not_numeric") == 2

    def test_out_of_range_values_do_not_abort(self, captured_logs):
        entries = [
            _entry("2024-W10", "9e999999"),
            _entry("2024-W11", "9e999999"),
            _entry("2024-W12", "3"),
        ]
        rollup = compute_monthly_rollup(uuid4(), PeriodType.WEEKLY, 2024, 3, entries)
        assert rollup.value == "3"
        assert rollup.contributing_keys == ("2024-W10", "2024-W11", "2024-W12")
        logs = captured_logs()
        assert sum(1 for r in logs if r["message"] == "rollup_value_not_numeric") == 2

    def test_largest_accepted_values_sum(self):
        entries = [_entry("2024-W10", "9e17"), _entry("2024-W11", "9e17")]
        rollup = compute_monthly_rollup(uuid4(), PeriodType.WEEKLY, 2024, 3, entries)
        assert rollup.value == "1800000000000000000"

    def test_nothing_delivered(self):
        entries = [_entry("2024-W10", "", delivered=False, comment="holiday")]
        rollup = compute_monthly_rollup(uuid4(), PeriodType.WEEKLY, 2024, 3, entries)
        assert rollup.delivered is False
        assert rollup.value == ""

    def test_recompute_is_deterministic(self):
        kpi_id = uuid4()
        entries = [_entry("2024-W11", "1.5"), _entry("2024-W10", "2.5")]
        first = compute_monthly_rollup(kpi_id, PeriodType.WEEKLY, 2024, 3, entries)
        second = compute_monthly_rollup(kpi_id, PeriodType.WEEKLY, 2024, 3, list(reversed(entries)))
        assert first == second
        assert first.value == "4"


class TestDailyRollup:
    def test_daily_entries_summed_exactly(self):
        entries = [
            _entry("2024-03-01", "100.50"),
            _entry("2024-03-15", "99.50"),
            _entry("2024-03-20", "0.1"),
            _entry("2024-03-21", "0.2"),
            _entry("2024-04-01", "10"),
        ]
        rollup = compute_monthly_rollup(uuid4(), PeriodType.DAILY, 2024, 3, entries)
        assert rollup.value == "200.3"
        assert rollup.source_type is PeriodType.DAILY
