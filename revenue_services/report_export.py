"""
revenue_services.report_export -- XLSX export of a YearReport.

Writes three sheets, matching the on-screen report tabs:
"Overall Stats", "Account Performance" and "Department Breakdown".
Amounts are written as numbers (rounded to cents) so the workbook stays
sortable; rates are written as percentages with one decimal place.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

from openpyxl import Workbook

from revenue_kernel.logging_config import get_logger
from revenue_services.report_service import YearReport

logger = get_logger("services.report_export")

OVERALL_SHEET = "Overall Stats"
ACCOUNTS_SHEET = "Account Performance"
DEPARTMENTS_SHEET = "Department Breakdown"

_CENT = Decimal("0.01")


def _money(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def _percent(rate: Decimal) -> float:
    return float((rate * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def build_workbook(report: YearReport) -> Workbook:
    """Lay the report out in a new workbook."""
    workbook = Workbook()

    overall = workbook.active
    overall.title = OVERALL_SHEET
    summary = report.summary
    period = str(report.year) if report.month is None else f"{report.year}-{report.month:02d}"
    overall.append(["Metric", "Value"])
    for label, value in (
        ("Period", period),
        ("Total Estimates", summary.estimate_count),
        ("Won", summary.won_count),
        ("Lost", summary.lost_count),
        ("Pending", summary.pending_count),
        ("Total Value", _money(summary.total_value)),
        ("Won Value", _money(summary.won_value)),
        ("Lost Value", _money(summary.lost_value)),
        ("Pending Value", _money(summary.pending_value)),
        ("Win Rate (%)", _percent(summary.win_rate)),
        ("Dollar Win Rate (%)", _percent(summary.dollar_win_rate)),
        ("Decided Win Rate (%)", _percent(summary.decided_win_rate)),
        ("Duplicates Removed", report.duplicate_count),
    ):
        overall.append([label, value])

    accounts = workbook.create_sheet(ACCOUNTS_SHEET)
    accounts.append([
        "Account ID", "Account", "Estimates", "Won", "Total Value", "Won Value", "Win Rate (%)",
    ])
    for row in report.accounts:
        accounts.append([
            row.account_id,
            row.account_name or "",
            row.estimate_count,
            row.won_count,
            _money(row.total_value),
            _money(row.won_value),
            _percent(row.win_rate),
        ])

    departments = workbook.create_sheet(DEPARTMENTS_SHEET)
    departments.append([
        "Department", "Estimates", "Won", "Total Value", "Won Value",
        "Win Rate (%)", "Dollar Win Rate (%)",
    ])
    for dept in report.departments:
        departments.append([
            dept.department,
            dept.estimate_count,
            dept.won_count,
            _money(dept.total_value),
            _money(dept.won_value),
            _percent(dept.win_rate),
            _percent(dept.dollar_win_rate),
        ])

    return workbook


def export_year_report_xlsx(report: YearReport, path: str | Path) -> Path:
    """Write ``report`` to ``path`` and return the resolved path."""
    target = Path(path)
    build_workbook(report).save(target)
    logger.info("year_report_exported", extra={
        "path": str(target),
        "year": str(report.year),
        "account_rows": len(report.accounts),
        "department_rows": len(report.departments),
    })
    return target
