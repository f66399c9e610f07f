"""
revenue_services.report_service -- Year reports over a snapshot.

Responsibility:
    Build the overall / department / account breakdown for one year
    selection (optionally one month) from a snapshot, resolving the year
    from the caller or the active configuration.

Architecture position:
    Services -- orchestration over engines + config. No database access;
    callers pass a Snapshot (from SnapshotSelector or a JSON export).

Invariants enforced:
    - Estimates are de-duplicated by ``lmn_estimate_id`` before any figure
      is computed, segments included.
    - The year is never read from the clock: explicit year, else
      ``default_year`` from config, else MissingYearContextError.
    - One PriceFallbackNotifier per service instance, so the price-field
      warning fires at most once per report session.

Failure modes:
    - MissingYearContextError / InvalidYearError / InvalidMonthError.
    - SnapshotShapeError for malformed snapshot input.

Usage:
    from revenue_config import get_active_config
    from revenue_services.report_service import RevenueReportService

    service = RevenueReportService(get_active_config())
    report = service.year_report(snapshot, year=2025)
    report.summary.dollar_win_rate
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from revenue_config.bridges import build_policy, resolve_year
from revenue_config.schema import RevenueEngineConfig
from revenue_engines.aggregation import (
    DepartmentStats,
    RevenueSummary,
    deduplicate_estimates,
    filter_estimates_by_year,
    group_by_account,
    group_by_department,
    summarize,
)
from revenue_engines.pricing import PriceFallbackNotifier
from revenue_engines.segmentation import SegmentAssignment, classify_portfolio
from revenue_kernel.domain.policy import DEFAULT_POLICY
from revenue_kernel.domain.records import Snapshot
from revenue_kernel.domain.values import YearSelection
from revenue_kernel.logging_config import get_logger

logger = get_logger("services.report")


@dataclass(frozen=True)
class AccountReportRow:
    """One line of the account performance breakdown."""

    account_id: str
    account_name: str | None
    estimate_count: int
    won_count: int
    total_value: Decimal
    won_value: Decimal
    win_rate: Decimal


@dataclass(frozen=True)
class YearReport:
    """
    Everything a year report shows.

    Guarantees:
        - ``sum(d.total_value for d in departments) == summary.total_value``.
        - ``duplicate_count`` estimates were dropped before computing.
    """

    year: YearSelection
    month: int | None
    summary: RevenueSummary
    departments: tuple[DepartmentStats, ...]
    accounts: tuple[AccountReportRow, ...]
    input_estimate_count: int
    duplicate_count: int
    price_fallback_count: int
    config_id: str | None = None


class RevenueReportService:
    """
    Builds YearReports.

    Contract:
        Receives an optional RevenueEngineConfig; without one the default
        policy is used and every call must pass an explicit year.
    Non-goals:
        - Does not persist anything; see PortfolioSegmentationService.
    """

    def __init__(
        self,
        config: RevenueEngineConfig | None = None,
        on_price_fallback: Callable[[str], None] | None = None,
    ):
        self._config = config
        self._policy = build_policy(config) if config is not None else DEFAULT_POLICY
        self._notifier = PriceFallbackNotifier(on_price_fallback)

    @property
    def notifier(self) -> PriceFallbackNotifier:
        return self._notifier

    def year_report(
        self,
        snapshot: Snapshot,
        year: int | str | None = None,
        month: int | None = None,
    ) -> YearReport:
        selected = resolve_year(year, self._config, "year_report")

        unique = deduplicate_estimates(snapshot.estimates)
        scoped = unique
        if month is not None:
            scoped = filter_estimates_by_year(unique, selected, month, policy=self._policy)

        fallbacks_before = self._notifier.fallback_count
        summary = summarize(scoped, selected, self._notifier, self._policy)
        departments = group_by_department(scoped, selected, None, self._policy)

        names = {acc.id: acc.name for acc in snapshot.accounts}
        accounts = tuple(
            AccountReportRow(
                account_id=stats.account_id,
                account_name=names.get(stats.account_id),
                estimate_count=stats.estimate_count,
                won_count=stats.won_count,
                total_value=stats.total_value,
                won_value=stats.won_value,
                win_rate=stats.win_rate,
            )
            for stats in group_by_account(scoped, selected, None, self._policy)
        )

        report = YearReport(
            year=selected,
            month=month,
            summary=summary,
            departments=departments,
            accounts=accounts,
            input_estimate_count=len(snapshot.estimates),
            duplicate_count=len(snapshot.estimates) - len(unique),
            price_fallback_count=self._notifier.fallback_count - fallbacks_before,
            config_id=self._config.config_id if self._config is not None else None,
        )

        logger.info("year_report_built", extra={
            "year": str(selected),
            "month": month,
            "estimate_count": summary.estimate_count,
            "duplicate_count": report.duplicate_count,
            "department_count": len(departments),
            "account_count": len(accounts),
        })
        return report

    def year_segments(
        self,
        snapshot: Snapshot,
        year: int | str | None = None,
    ) -> dict[str, SegmentAssignment]:
        """Account segments over the same de-duplicated estimates a year report uses."""
        selected = resolve_year(year, self._config, "year_segments")
        return classify_portfolio(
            snapshot.accounts,
            deduplicate_estimates(snapshot.estimates),
            selected,
            None,
            self._notifier,
            self._policy,
        )
