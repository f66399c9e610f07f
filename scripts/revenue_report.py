#!/usr/bin/env python3
"""
Print the revenue report for one year (optionally one month) and
optionally write it to XLSX.

The snapshot comes from a JSON export ({"accounts": [...], "estimates": [...]})
or straight from the database.

Usage:
  python3 scripts/revenue_report.py --snapshot export.json --year 2025
  python3 scripts/revenue_report.py --db-url sqlite:///crm.db --year all --xlsx report.xlsx
  python3 scripts/revenue_report.py --snapshot export.json --year 2025 --segments
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from revenue_config import get_active_config
from revenue_config.bridges import resolve_year
from revenue_kernel.domain.records import Snapshot
from revenue_kernel.domain.values import format_currency
from revenue_kernel.exceptions import RevenueEngineError
from revenue_kernel.logging_config import configure_logging
from revenue_services.report_export import export_year_report_xlsx
from revenue_services.report_service import RevenueReportService, YearReport

DB_URL = os.environ.get("DATABASE_URL")


def load_json_snapshot(path: Path) -> Snapshot:
    with open(path) as f:
        data = json.load(f)
    return Snapshot.from_records(
        accounts=data.get("accounts") or [],
        estimates=data.get("estimates") or [],
    )


def load_db_snapshot(db_url: str) -> Snapshot:
    from revenue_kernel.db.engine import get_session, init_engine_from_url
    from revenue_kernel.selectors.snapshot_selector import SnapshotSelector

    init_engine_from_url(db_url)
    session = get_session()
    try:
        return SnapshotSelector(session).load_snapshot()
    finally:
        session.close()


def _pct(rate) -> str:
    return f"{rate * 100:.1f}%"


def print_report(report: YearReport) -> None:
    s = report.summary
    period = str(report.year) if report.month is None else f"{report.year}-{report.month:02d}"
    print(f"Revenue report: {period}")
    print("=" * 60)
    print(f"  Estimates:        {s.estimate_count} (won {s.won_count}, lost {s.lost_count}, pending {s.pending_count})")
    print(f"  Total value:      {format_currency(s.total_value)}")
    print(f"  Won value:        {format_currency(s.won_value)}")
    print(f"  Win rate:         {_pct(s.win_rate)}")
    print(f"  Dollar win rate:  {_pct(s.dollar_win_rate)}")
    if report.duplicate_count:
        print(f"  Duplicates removed: {report.duplicate_count}")
    if report.price_fallback_count:
        print(f"  Estimates priced from total_price: {report.price_fallback_count}")

    print()
    print("Departments")
    print("-" * 60)
    for d in report.departments:
        print(f"  {d.department:<34} {d.estimate_count:>5}  {format_currency(d.total_value):>9}  {_pct(d.win_rate):>6}")

    print()
    print("Accounts")
    print("-" * 60)
    for a in report.accounts:
        label = a.account_name or a.account_id
        print(f"  {label[:34]:<34} {a.estimate_count:>5}  {format_currency(a.total_value):>9}  {_pct(a.win_rate):>6}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Revenue report for one year selection.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--snapshot", type=Path, help="JSON export with accounts and estimates")
    source.add_argument("--db-url", type=str, default=None, help="SQLAlchemy database URL")
    parser.add_argument("--year", type=str, default=None, help="Calendar year or 'all' (default: configured default_year)")
    parser.add_argument("--month", type=int, default=None, help="Restrict to one month (1-12)")
    parser.add_argument("--config", type=str, default="default", help="Configuration set name")
    parser.add_argument("--xlsx", type=Path, default=None, help="Also write the report to this XLSX file")
    parser.add_argument("--segments", action="store_true", help="Also print account segments")
    parser.add_argument("--log-level", type=str, default="WARNING")
    args = parser.parse_args()

    configure_logging(level=args.log_level.upper())

    db_url = args.db_url or (DB_URL if args.snapshot is None else None)
    if args.snapshot is None and not db_url:
        print("Error: pass --snapshot or --db-url (or set DATABASE_URL)", file=sys.stderr)
        return 1

    try:
        config = get_active_config(args.config)
        snapshot = load_json_snapshot(args.snapshot) if args.snapshot else load_db_snapshot(db_url)
        service = RevenueReportService(config)
        report = service.year_report(snapshot, year=args.year, month=args.month)
        print_report(report)

        if args.segments:
            year = resolve_year(args.year, config, "revenue_report")
            assignments = service.year_segments(snapshot, year)
            names = {acc.id: acc.name for acc in snapshot.accounts}
            print()
            print(f"Segments ({year})")
            print("-" * 60)
            for account_id, a in assignments.items():
                label = names.get(account_id) or account_id
                print(f"  {label[:34]:<34} {a.segment.value}  {format_currency(a.revenue):>9}  {_pct(a.share):>6}")

        if args.xlsx:
            path = export_year_report_xlsx(report, args.xlsx)
            print(f"\nWrote {path}")
    except (RevenueEngineError, FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
