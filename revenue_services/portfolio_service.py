"""
revenue_services.portfolio_service -- Portfolio segmentation with cache write-back.

Responsibility:
    Recompute every account's revenue segment for a year, refresh the
    per-year caches stored on accounts, and serve the live segment
    preview shown while an account's annual revenue is being edited.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Reads through SnapshotSelector, classifies with
    revenue_engines.segmentation, writes AccountModel rows.

Invariants enforced:
    - Segments are always computed against the whole portfolio, never a
      single account.
    - The service flushes but never commits; the caller owns the
      transaction (see revenue_kernel.db.engine.session_scope).
    - ``preview`` is read-only.
    - Cached revenue amounts are stored as decimal strings, never floats.

Failure modes:
    - MissingYearContextError when no year is given and none is configured.
    - AccountNotFoundError from ``preview`` for an unknown account.

Usage:
    with session_scope() as session:
        service = PortfolioSegmentationService(session, get_active_config())
        service.recompute(2025)
        service.refresh_caches([2024, 2025])
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from revenue_config.bridges import build_policy, resolve_year
from revenue_config.schema import RevenueEngineConfig
from revenue_engines.aggregation import estimate_counts_by_year
from revenue_engines.pricing import PriceFallbackNotifier
from revenue_engines.segmentation import (
    SegmentAssignment,
    classify_portfolio,
    preview_segment,
    segments_by_year,
)
from revenue_kernel.domain.policy import DEFAULT_POLICY
from revenue_kernel.domain.values import ALL_YEARS, normalize_year
from revenue_kernel.exceptions import AccountNotFoundError, InvalidYearError
from revenue_kernel.logging_config import get_logger
from revenue_kernel.models.account import AccountModel
from revenue_kernel.selectors.snapshot_selector import SnapshotSelector

logger = get_logger("services.portfolio")


class PortfolioSegmentationService:
    """
    Persistence collaborator for segments and per-year caches.

    Contract:
        Receives Session via constructor injection; the caller commits.
    Guarantees:
        - ``recompute`` writes ``revenue_segment`` on every in-scope account.
        - ``refresh_caches`` rewrites ``total_estimates_by_year`` fully and
          merges the requested years into ``revenue_by_year`` and
          ``segment_by_year``.
    """

    def __init__(
        self,
        session: Session,
        config: RevenueEngineConfig | None = None,
        notifier: PriceFallbackNotifier | None = None,
    ):
        self.session = session
        self._config = config
        self._policy = build_policy(config) if config is not None else DEFAULT_POLICY
        self._notifier = notifier or PriceFallbackNotifier()
        self._selector = SnapshotSelector(session)

    def _account_rows(self) -> dict[str, AccountModel]:
        return {row.id: row for row in self.session.scalars(select(AccountModel))}

    def recompute(self, year: int | str | None = None) -> dict[str, SegmentAssignment]:
        """Classify the portfolio for ``year`` and store each account's segment."""
        selected = resolve_year(year, self._config, "recompute")
        snapshot = self._selector.load_snapshot()

        assignments = classify_portfolio(
            snapshot.accounts, snapshot.estimates, selected, None, self._notifier, self._policy
        )

        rows = self._account_rows()
        changed = 0
        for account_id, assignment in assignments.items():
            row = rows[account_id]
            if row.revenue_segment != assignment.segment.value:
                row.revenue_segment = assignment.segment.value
                changed += 1
        self.session.flush()

        logger.info("segments_recomputed", extra={
            "year": str(selected),
            "account_count": len(assignments),
            "changed_count": changed,
        })
        return assignments

    def refresh_caches(self, years: Iterable[Any]) -> dict[str, dict[str, SegmentAssignment]]:
        """Rewrite the per-year caches for every account.

        ``years`` must be calendar years; "all" has no cache slot.
        """
        selected_years = []
        for year in years:
            selected = normalize_year(year, "refresh_caches", self._policy.year_window)
            if selected == ALL_YEARS:
                raise InvalidYearError(year)
            selected_years.append(selected)

        snapshot = self._selector.load_snapshot()
        per_year = segments_by_year(
            snapshot.accounts, snapshot.estimates, selected_years, self._notifier, self._policy
        )
        by_account = snapshot.estimates_by_account()

        for account_id, row in self._account_rows().items():
            row.total_estimates_by_year = estimate_counts_by_year(
                by_account.get(account_id, ()), self._policy
            )

            yearly = per_year.get(account_id, {})
            revenue_cache = dict(row.revenue_by_year or {})
            segment_cache = dict(row.segment_by_year or {})
            for key, assignment in yearly.items():
                revenue_cache[key] = str(assignment.revenue)
                segment_cache[key] = assignment.segment.value
            row.revenue_by_year = revenue_cache
            row.segment_by_year = segment_cache
        self.session.flush()

        logger.info("account_caches_refreshed", extra={
            "years": [str(y) for y in selected_years],
            "account_count": len(snapshot.accounts),
        })
        return per_year

    def preview(
        self,
        account_id: str,
        entered_annual_revenue: Any,
        year: int | str | None = None,
    ) -> SegmentAssignment:
        """Segment the account would get if ``entered_annual_revenue`` were saved."""
        selected = resolve_year(year, self._config, "preview")
        snapshot = self._selector.load_snapshot()
        try:
            assignment = preview_segment(
                account_id,
                entered_annual_revenue,
                snapshot.accounts,
                snapshot.estimates,
                selected,
                self._notifier,
                self._policy,
            )
        except AccountNotFoundError:
            logger.warning("segment_preview_account_missing", extra={
                "account_id": account_id,
                "year": str(selected),
            })
            raise
        logger.info("segment_previewed", extra={
            "account_id": account_id,
            "year": str(selected),
            "segment": assignment.segment.value,
        })
        return assignment
