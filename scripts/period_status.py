#!/usr/bin/env python3
"""
Show the current weekly and monthly accounting windows.

Prints each period's key, dates, due date and whether it still accepts
submissions, using the active tracker configuration (time zone and
holidays).

Usage:
    python3 scripts/period_status.py
    python3 scripts/period_status.py --privileged
    python3 scripts/period_status.py --today 2024-03-09 --json
    python3 scripts/period_status.py --config path/to/settings.yaml
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime, time
from pathlib import Path
from zoneinfo import ZoneInfo

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 60


def _render(name: str, view) -> None:
    print(f"  {name.upper()}  {view.period_key}")
    print(f"    period   {view.start_date.isoformat()} .. {view.end_date.isoformat()}")
    due = view.due_date.isoformat() if view.due_date else "-"
    print(f"    due      {due}")
    state = "OPEN" if view.entry_open else f"CLOSED ({view.window.reason})"
    print(f"    entry    {state}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Show current KPI accounting windows")
    parser.add_argument("--config", type=Path, help="Settings YAML (default: kpi_config/sets/default.yaml)")
    parser.add_argument("--today", type=date.fromisoformat, help="Evaluate as of this civil date (YYYY-MM-DD)")
    parser.add_argument("--privileged", action="store_true", help="Evaluate for a privileged caller")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    args = parser.parse_args()

    logging.disable(logging.CRITICAL)

    from kpi_config import get_active_config
    from kpi_config.bridges import build_period_calculator
    from kpi_kernel.domain.clock import DeterministicClock, SystemClock
    from kpi_kernel.services.submission_service import build_period_status

    try:
        settings = get_active_config(args.config)
    except (FileNotFoundError, KeyError, ValueError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    if args.today:
        noon = datetime.combine(args.today, time(12), tzinfo=ZoneInfo(settings.timezone))
        clock = DeterministicClock(noon)
    else:
        clock = SystemClock()

    periods = build_period_calculator(settings, clock)
    status = build_period_status(periods, caller_is_privileged=args.privileged)

    if args.json:
        print(json.dumps(status.as_dict(), indent=2))
        return 0

    today = periods.today()
    print("=" * W)
    print(f"  KPI PERIOD STATUS  {today.isoformat()}  ({settings.timezone})")
    print("=" * W)
    _render("weekly", status.weekly)
    _render("monthly", status.monthly)
    print("=" * W)
    return 0


if __name__ == "__main__":
    sys.exit(main())
