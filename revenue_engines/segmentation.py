"""
Module: revenue_engines.segmentation
Responsibility:
    Classify each account into a relative revenue tier (A/B/C/D) by its
    share of total portfolio revenue for a year, including the live
    preview used while an account's annual revenue is being edited.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on revenue_engines.aggregation applied portfolio-wide: an
    account's segment is relative, so every classification needs the
    whole portfolio's won revenue for the same year.

Invariants enforced:
    - Thresholds partition [0, inf) without gaps:
        share >= a           -> A
        b <= share < a       -> B
        0 < share < b        -> C
        share <= 0, missing revenue, or non-positive total -> D
    - Project-only accounts (won "Standard" estimates but no won "Service"
      estimates attributed to the year) are D regardless of share.
    - Overrides substitute the entered annual revenue for exactly the named
      accounts; every other account keeps its calculated revenue.
    - Archived accounts are excluded from the portfolio total.

Failure modes:
    - AccountNotFoundError when an override or preview names an account
      that is not in the snapshot.
    - MissingYearContextError / InvalidYearError for a bad year selection.

Usage:
    from revenue_engines.segmentation import classify_portfolio

    assignments = classify_portfolio(snapshot.accounts, snapshot.estimates, 2025)
    assignments["acct-1"].segment  # RevenueSegment.A
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from revenue_engines.aggregation import total_won_value
from revenue_engines.attribution import allocation_schedule
from revenue_engines.pricing import PriceFallbackNotifier
from revenue_engines.status import is_won
from revenue_engines.tracer import traced_engine
from revenue_kernel.domain.policy import DEFAULT_POLICY, RevenuePolicy
from revenue_kernel.domain.records import Account, Estimate, as_accounts, as_estimates
from revenue_kernel.domain.values import (
    ALL_YEARS,
    ZERO,
    RevenueSegment,
    YearSelection,
    normalize_year,
    parse_amount,
)
from revenue_kernel.exceptions import AccountNotFoundError
from revenue_kernel.logging_config import get_logger

logger = get_logger("engines.segmentation")

PROJECT_ESTIMATE_TYPE = "standard"
SERVICE_ESTIMATE_TYPE = "service"


@dataclass(frozen=True)
class SegmentAssignment:
    """
    Segment of one account for one year.

    Guarantees:
        - ``share`` is ``revenue / portfolio_total`` (0 when the total is
          not positive).
        - ``segment`` is D whenever ``project_only`` is True.
    """

    account_id: str
    year: YearSelection
    revenue: Decimal
    portfolio_total: Decimal
    share: Decimal
    segment: RevenueSegment
    project_only: bool = False


def classify(
    account_revenue: Any,
    portfolio_total_revenue: Any,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> RevenueSegment:
    """Tier for an account revenue relative to the portfolio total."""
    revenue = parse_amount(account_revenue)
    total = parse_amount(portfolio_total_revenue)
    if revenue is None or total is None or total <= ZERO:
        return RevenueSegment.D

    share = revenue / total
    if share <= ZERO:
        return RevenueSegment.D
    if share >= policy.segment_a_threshold:
        return RevenueSegment.A
    if share >= policy.segment_b_threshold:
        return RevenueSegment.B
    return RevenueSegment.C


def account_revenue(
    estimates: Iterable[Any],
    year: Any,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> Decimal:
    """Won revenue of one account's estimates for ``year``."""
    return total_won_value(estimates, year, notifier, policy)


def _won_in_year(
    estimates: Iterable[Estimate],
    year: YearSelection,
    policy: RevenuePolicy,
) -> list[Estimate]:
    won = []
    for est in estimates:
        if not is_won(est, policy):
            continue
        schedule = allocation_schedule(est, policy=policy)
        if schedule is None:
            continue
        if year != ALL_YEARS and schedule.share_for(year) is None:
            continue
        won.append(est)
    return won


def is_project_only(
    estimates: Iterable[Any],
    year: Any,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> bool:
    """True if the year's won estimates include "Standard" but no "Service" type."""
    selected = normalize_year(year, "is_project_only", policy.year_window)
    types = {
        str(est.estimate_type).strip().lower()
        for est in _won_in_year(as_estimates(estimates), selected, policy)
        if est.estimate_type is not None
    }
    return PROJECT_ESTIMATE_TYPE in types and SERVICE_ESTIMATE_TYPE not in types


def _entered_amount(value: Any) -> Decimal:
    amount = parse_amount(value)
    if amount is None or amount < ZERO:
        return ZERO
    return amount


def _account_revenues(
    accounts: tuple[Account, ...],
    estimates: tuple[Estimate, ...],
    year: YearSelection,
    overrides: Mapping[str, Any] | None,
    notifier: PriceFallbackNotifier | None,
    policy: RevenuePolicy,
) -> dict[str, Decimal]:
    """Revenue per in-scope account, overrides substituted.

    In scope: every non-archived account, plus any account named in
    ``overrides``.
    """
    overrides = dict(overrides or {})
    known = {acc.id for acc in accounts}
    for account_id in overrides:
        if account_id not in known:
            raise AccountNotFoundError(account_id)

    by_account: dict[str, list[Estimate]] = {}
    for est in estimates:
        if est.account_id is not None:
            by_account.setdefault(est.account_id, []).append(est)

    revenues: dict[str, Decimal] = {}
    for acc in accounts:
        if acc.id in overrides:
            revenues[acc.id] = _entered_amount(overrides[acc.id])
        elif not acc.archived:
            revenues[acc.id] = total_won_value(
                by_account.get(acc.id, ()), year, notifier, policy
            )
    return revenues


def portfolio_total_revenue(
    accounts: Iterable[Any],
    estimates: Iterable[Any],
    year: Any,
    overrides: Mapping[str, Any] | None = None,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> Decimal:
    """Sum of every non-archived account's won revenue for ``year``."""
    selected = normalize_year(year, "portfolio_total_revenue", policy.year_window)
    revenues = _account_revenues(
        as_accounts(accounts), as_estimates(estimates), selected, overrides, notifier, policy
    )
    return sum(revenues.values(), ZERO)


def _assign(
    account_id: str,
    year: YearSelection,
    revenue: Decimal,
    total: Decimal,
    project_only: bool,
    policy: RevenuePolicy,
) -> SegmentAssignment:
    share = revenue / total if total > ZERO else ZERO
    segment = RevenueSegment.D if project_only else classify(revenue, total, policy)
    return SegmentAssignment(
        account_id=account_id,
        year=year,
        revenue=revenue,
        portfolio_total=total,
        share=share,
        segment=segment,
        project_only=project_only,
    )


@traced_engine("segmentation", "1.0", fingerprint_fields=("year", "overrides"))
def classify_portfolio(
    accounts: Iterable[Any],
    estimates: Iterable[Any],
    year: Any,
    overrides: Mapping[str, Any] | None = None,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> dict[str, SegmentAssignment]:
    """
    Segment every in-scope account against the portfolio total for ``year``.

    Returns a mapping of account id to SegmentAssignment, in account order.
    """
    selected = normalize_year(year, "classify_portfolio", policy.year_window)
    account_records = as_accounts(accounts)
    estimate_records = as_estimates(estimates)

    revenues = _account_revenues(
        account_records, estimate_records, selected, overrides, notifier, policy
    )
    total = sum(revenues.values(), ZERO)

    by_account: dict[str, list[Estimate]] = {}
    for est in estimate_records:
        if est.account_id is not None:
            by_account.setdefault(est.account_id, []).append(est)

    assignments = {
        account_id: _assign(
            account_id,
            selected,
            revenue,
            total,
            is_project_only(by_account.get(account_id, ()), selected, policy),
            policy,
        )
        for account_id, revenue in revenues.items()
    }

    logger.info("portfolio_segmented", extra={
        "year": str(selected),
        "account_count": len(assignments),
        "portfolio_total": str(total),
        "segment_counts": {
            seg.value: sum(1 for a in assignments.values() if a.segment == seg)
            for seg in RevenueSegment
        },
    })
    return assignments


def preview_segment(
    account_id: str,
    entered_annual_revenue: Any,
    accounts: Iterable[Any],
    estimates: Iterable[Any],
    year: Any,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> SegmentAssignment:
    """
    Live segment preview for an account under edit.

    ``entered_annual_revenue`` replaces that one account's calculated
    revenue (in the portfolio total too); None previews the calculated
    revenue unchanged.
    """
    account_records = as_accounts(accounts)
    if all(acc.id != account_id for acc in account_records):
        raise AccountNotFoundError(account_id)

    overrides = None
    if entered_annual_revenue is not None:
        overrides = {account_id: entered_annual_revenue}

    assignment = classify_portfolio(
        account_records, estimates, year, overrides, notifier, policy
    ).get(account_id)
    if assignment is None:
        # Archived account previewed without an override.
        selected = normalize_year(year, "preview_segment", policy.year_window)
        assignment = _assign(account_id, selected, ZERO, ZERO, False, policy)
    return assignment


def segments_by_year(
    accounts: Iterable[Any],
    estimates: Iterable[Any],
    years: Iterable[Any],
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> dict[str, dict[str, SegmentAssignment]]:
    """
    Per-year segment of every account, keyed ``{account_id: {year: ...}}``.

    Each year is classified against that year's own portfolio total.
    """
    account_records = as_accounts(accounts)
    estimate_records = as_estimates(estimates)

    result: dict[str, dict[str, SegmentAssignment]] = {}
    for year in years:
        selected = normalize_year(year, "segments_by_year", policy.year_window)
        for account_id, assignment in classify_portfolio(
            account_records, estimate_records, selected, None, notifier, policy
        ).items():
            result.setdefault(account_id, {})[str(selected)] = assignment
    return result
