#!/usr/bin/env python3
"""
Print the current standing of every KPI, or the history of one KPI.

Reads the database named by the active configuration (or KPI_DATABASE_URL).

Usage:
    python3 scripts/kpi_overview.py
    python3 scripts/kpi_overview.py --kpi <uuid> --type weekly
    python3 scripts/kpi_overview.py --kpi <uuid> --year 2024
"""

import argparse
import logging
import sys
from pathlib import Path
from uuid import UUID

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 72

_LEVEL_MARK = {"green": "G", "amber": "A", "red": "R", "neutral": "-"}


def _print_overview(selector) -> None:
    print("=" * W)
    print(f"  {'KPI':<44} {'LEVEL':>6} {'%':>6} {'BASE':>10}")
    print("-" * W)
    for kpi, perf in selector.overview():
        pct = "" if perf.percent is None else str(perf.percent)
        base = perf.base.value if perf.base else ""
        print(
            f"  {kpi.name[:44]:<44} {_LEVEL_MARK[perf.level.value]:>6} "
            f"{pct:>6} {base:>10}"
        )
    print("=" * W)


def _print_year(selector, kpi, year: int) -> None:
    summary = selector.year_performance(kpi.id, year)
    print(f"  {kpi.name} -- {summary.year}")
    print(f"    months with data   {summary.months_with_data}")
    print(f"    completed months   {summary.completed_months}")
    print(f"    average percent    {summary.average_percent}")


def _print_history(selector, kpi, period_type, limit: int | None) -> None:
    records = selector.history(kpi.id, period_type, limit)
    print(f"  {kpi.name} -- {period_type.value} history")
    for record in records:
        print(
            f"    {record.label:<18} {_LEVEL_MARK[record.level.value]} "
            f"{record.percent:>4}%  {record.display_value}"
        )


def main() -> int:
    parser = argparse.ArgumentParser(description="Show KPI performance")
    parser.add_argument("--config", type=Path, help="Settings YAML")
    parser.add_argument("--kpi", type=UUID, help="Show history for this KPI id")
    parser.add_argument("--type", choices=["weekly", "monthly"], default="monthly")
    parser.add_argument("--limit", type=int, help="Number of past periods")
    parser.add_argument("--year", type=int, help="Show the yearly summary instead")
    args = parser.parse_args()

    logging.disable(logging.CRITICAL)

    from kpi_config import get_active_config
    from kpi_config.bridges import build_period_calculator
    from kpi_kernel.db.engine import init_engine_from_url, session_scope
    from kpi_kernel.domain.dtos import PeriodType
    from kpi_kernel.exceptions import KpiKernelError
    from kpi_kernel.selectors.performance_selector import PerformanceSelector

    try:
        settings = get_active_config(args.config)
        init_engine_from_url(settings.database_url, echo=False)
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    try:
        with session_scope() as session:
            selector = PerformanceSelector(
                session,
                build_period_calculator(settings),
                weekly_history_limit=settings.history_limits.weekly,
                monthly_history_limit=settings.history_limits.monthly,
            )
            if args.kpi is None:
                _print_overview(selector)
                return 0

            kpi = selector.get_kpi(args.kpi)
            if args.year is not None:
                _print_year(selector, kpi, args.year)
            else:
                _print_history(selector, kpi, PeriodType(args.type), args.limit)
            return 0
    except KpiKernelError as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
