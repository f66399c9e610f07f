"""
Tests for RevenueReportService.

Covers:
- The reference 2024/2025 portfolio read from the database
- De-duplication and the price fallback session
- Month filtering and year resolution
- Segments over the same de-duplicated estimates as the report
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from revenue_config import get_active_config
from revenue_kernel.domain.records import Account, Estimate, Snapshot
from revenue_kernel.domain.values import RevenueSegment
from revenue_kernel.exceptions import InvalidMonthError, MissingYearContextError
from revenue_kernel.selectors.snapshot_selector import SnapshotSelector
from revenue_services.report_service import RevenueReportService


@pytest.fixture
def snapshot(seeded_session) -> Snapshot:
    return SnapshotSelector(seeded_session).load_snapshot()


class TestYearReport:

    def test_summary_2025(self, snapshot):
        report = RevenueReportService().year_report(snapshot, year=2025)
        summary = report.summary
        assert summary.total_value == Decimal("120000")
        assert summary.won_value == Decimal("100000")
        assert summary.lost_value == Decimal("20000")
        assert summary.estimate_count == 4
        assert summary.won_count == 3
        assert summary.win_rate == Decimal("0.75")
        assert report.duplicate_count == 0
        assert report.config_id is None

    def test_multi_year_contract_split_into_2024(self, snapshot):
        report = RevenueReportService().year_report(snapshot, year=2024)
        assert report.summary.total_value == Decimal("60000")
        # Counted in its contract_end year only.
        assert report.summary.estimate_count == 0

    def test_department_breakdown(self, snapshot):
        report = RevenueReportService().year_report(snapshot, year=2025)
        assert [d.department for d in report.departments] == [
            "LE Maintenance (Summer/Winter)", "LE Paving", "Snow",
        ]
        paving = report.departments[1]
        assert paving.estimate_count == 2
        assert paving.total_value == Decimal("30000")
        assert paving.won_value == Decimal("10000")
        assert sum(d.total_value for d in report.departments) == report.summary.total_value

    def test_account_breakdown(self, snapshot):
        report = RevenueReportService().year_report(snapshot, year=2025)
        assert [(r.account_id, r.account_name) for r in report.accounts] == [
            ("acct-a", "Alpha Property"),
            ("acct-b", "Beta Holdings"),
            ("acct-c", "Gamma Retail"),
        ]
        assert report.accounts[2].win_rate == Decimal("0.5")

    def test_all_years(self, snapshot):
        report = RevenueReportService().year_report(snapshot, year="all")
        assert report.summary.total_value == Decimal("180000")
        assert report.summary.estimate_count == 4

    def test_month_filter(self, snapshot):
        report = RevenueReportService().year_report(snapshot, year=2025, month=5)
        assert report.month == 5
        assert report.summary.estimate_count == 1
        assert report.summary.won_value == Decimal("30000")

    def test_invalid_month(self, snapshot):
        with pytest.raises(InvalidMonthError):
            RevenueReportService().year_report(snapshot, year=2025, month=13)

    def test_logs_report_built(self, snapshot, captured_logs):
        RevenueReportService().year_report(snapshot, year=2025)
        built = [r for r in captured_logs() if r["message"] == "year_report_built"]
        assert built[0]["year"] == "2025"
        assert built[0]["estimate_count"] == 4


class TestYearResolution:

    def test_no_year_without_config(self, snapshot):
        with pytest.raises(MissingYearContextError):
            RevenueReportService().year_report(snapshot)

    def test_configured_default_year(self, snapshot):
        config = replace(get_active_config(), default_year=2025)
        report = RevenueReportService(config).year_report(snapshot)
        assert report.year == 2025
        assert report.config_id == "default"


class TestDuplicatesAndFallbacks:

    def test_duplicates_removed_before_totals(self):
        snapshot = Snapshot(estimates=(
            Estimate(id="1", lmn_estimate_id="L1", total_price_with_tax=100,
                     status="won", estimate_date="2025-01-01"),
            Estimate(id="2", lmn_estimate_id="L1 ", total_price_with_tax=100,
                     status="won", estimate_date="2025-01-01"),
        ))
        report = RevenueReportService().year_report(snapshot, year=2025)
        assert report.input_estimate_count == 2
        assert report.duplicate_count == 1
        assert report.summary.total_value == Decimal("100")

    def test_fallback_notified_once_per_service(self):
        seen = []
        snapshot = Snapshot(estimates=(
            Estimate(id="1", total_price=100, status="won", estimate_date="2025-01-01"),
            Estimate(id="2", total_price=200, status="lost", estimate_date="2025-02-01"),
        ))
        service = RevenueReportService(on_price_fallback=seen.append)

        first = service.year_report(snapshot, year=2025)
        second = service.year_report(snapshot, year=2025)

        assert first.summary.total_value == Decimal("300")
        assert first.price_fallback_count == 2
        assert second.price_fallback_count == 2
        assert seen == ["1"]
        assert service.notifier.notified


class TestYearSegments:

    def test_segments_use_deduplicated_estimates(self):
        snapshot = Snapshot(
            accounts=(Account(id="a"), Account(id="b")),
            estimates=(
                Estimate(id="1", account_id="a", lmn_estimate_id="L1", total_price_with_tax=100,
                         status="won", estimate_date="2025-01-01"),
                Estimate(id="2", account_id="a", lmn_estimate_id="L1", total_price_with_tax=100,
                         status="won", estimate_date="2025-01-01"),
                Estimate(id="3", account_id="b", total_price_with_tax=150,
                         status="won", estimate_date="2025-02-01"),
            ),
        )
        service = RevenueReportService()

        report = service.year_report(snapshot, year=2025)
        segments = service.year_segments(snapshot, year=2025)

        assert segments["a"].revenue == Decimal("100")
        assert segments["a"].portfolio_total == report.summary.won_value == Decimal("250")
        assert segments["b"].segment is RevenueSegment.A

    def test_segments_for_seeded_portfolio(self, snapshot):
        segments = RevenueReportService().year_segments(snapshot, year=2025)
        assert {k: v.segment for k, v in segments.items()} == {
            "acct-a": RevenueSegment.A,
            "acct-b": RevenueSegment.A,
            "acct-c": RevenueSegment.D,
        }

    def test_segments_need_a_year(self, snapshot):
        with pytest.raises(MissingYearContextError):
            RevenueReportService().year_segments(snapshot)
