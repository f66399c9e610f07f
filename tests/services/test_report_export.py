"""Tests for the XLSX year report export."""

from openpyxl import load_workbook

from revenue_kernel.selectors.snapshot_selector import SnapshotSelector
from revenue_services.report_export import (
    ACCOUNTS_SHEET,
    DEPARTMENTS_SHEET,
    OVERALL_SHEET,
    build_workbook,
    export_year_report_xlsx,
)
from revenue_services.report_service import RevenueReportService


def _report(session, **kwargs):
    snapshot = SnapshotSelector(session).load_snapshot()
    return RevenueReportService().year_report(snapshot, **kwargs)


class TestBuildWorkbook:

    def test_sheet_layout(self, seeded_session):
        workbook = build_workbook(_report(seeded_session, year=2025))
        assert workbook.sheetnames == [OVERALL_SHEET, ACCOUNTS_SHEET, DEPARTMENTS_SHEET]

    def test_overall_values(self, seeded_session):
        sheet = build_workbook(_report(seeded_session, year=2025))[OVERALL_SHEET]
        values = {row[0]: row[1] for row in sheet.iter_rows(min_row=2, values_only=True)}
        assert values["Period"] == "2025"
        assert values["Total Estimates"] == 4
        assert values["Won Value"] == 100000.0
        assert values["Win Rate (%)"] == 75.0
        assert values["Dollar Win Rate (%)"] == 83.3

    def test_month_period_label(self, seeded_session):
        sheet = build_workbook(_report(seeded_session, year=2025, month=5))[OVERALL_SHEET]
        assert sheet["B2"].value == "2025-05"

    def test_account_rows(self, seeded_session):
        sheet = build_workbook(_report(seeded_session, year=2025))[ACCOUNTS_SHEET]
        rows = list(sheet.iter_rows(min_row=2, values_only=True))
        assert rows[0] == ("acct-a", "Alpha Property", 1, 1, 60000.0, 60000.0, 100.0)
        assert len(rows) == 3


class TestExport:

    def test_round_trip_through_file(self, seeded_session, tmp_path, captured_logs):
        path = export_year_report_xlsx(_report(seeded_session, year=2025), tmp_path / "r.xlsx")

        workbook = load_workbook(path)
        departments = workbook[DEPARTMENTS_SHEET]
        assert departments["A2"].value == "LE Maintenance (Summer/Winter)"
        assert departments.max_row == 4
        assert any(r["message"] == "year_report_exported" for r in captured_logs())
