"""
Module: revenue_engines.aggregation
Responsibility:
    Sum and count estimates for a selected year: portfolio totals, won
    totals, win rates, and the per-department and per-account breakdowns
    used by reports.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Composes revenue_engines.pricing, .status, .attribution and
    .departments. Aggregate entry points are traced via ``@traced_engine``.

Invariants enforced:
    - Archived estimates never contribute to a sum or a count.
    - The year is explicit on every entry point (int or ``ALL_YEARS``);
      ``None`` raises MissingYearContextError.
    - "all" mode sums the positive resolved price of every non-archived
      estimate; year mode sums year-attributed values (annualised shares
      for multi-year contracts).
    - Counts use the driving date only (no annualisation), so a multi-year
      contract is counted once, in its driving year.
    - won <= estimated for every year, since both sums skip non-positive
      prices and won is a subset.
    - Decimal-only arithmetic; rates are Decimal in [0, 1] and 0 on empty
      input.

Failure modes:
    - MissingYearContextError / InvalidYearError for a bad year selection.
    - InvalidMonthError for a month filter outside 1..12.
    - SnapshotShapeError when the estimate collection is malformed.

Usage:
    from revenue_engines.aggregation import summarize, total_won_value

    won = total_won_value(snapshot.estimates, 2025)
    summary = summarize(snapshot.estimates, 2025)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from revenue_engines.attribution import allocation_schedule, driving_date
from revenue_engines.departments import group_estimates_by_department
from revenue_engines.pricing import PriceFallbackNotifier, resolve_price
from revenue_engines.status import classify_outcome, is_won
from revenue_engines.tracer import traced_engine
from revenue_kernel.domain.policy import DEFAULT_POLICY, RevenuePolicy
from revenue_kernel.domain.records import Account, Estimate, as_estimates
from revenue_kernel.domain.values import (
    ALL_YEARS,
    ZERO,
    EstimateOutcome,
    YearSelection,
    normalize_year,
)
from revenue_kernel.exceptions import InvalidMonthError
from revenue_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")


def _ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator <= ZERO:
        return ZERO
    return numerator / denominator


def _contribution(
    estimate: Estimate,
    year: YearSelection,
    notifier: PriceFallbackNotifier | None,
    policy: RevenuePolicy,
) -> Decimal:
    """Value an estimate adds to ``year``; 0 when it adds nothing."""
    if estimate.archived:
        return ZERO
    if year == ALL_YEARS:
        price = resolve_price(estimate, notifier)
        return price if price > ZERO else ZERO
    schedule = allocation_schedule(estimate, notifier, policy)
    if schedule is None:
        return ZERO
    return schedule.share_for(year) or ZERO


def _in_period(
    estimate: Estimate,
    year: YearSelection,
    month: int | None,
    policy: RevenuePolicy,
) -> bool:
    if estimate.archived:
        return False
    driving = driving_date(estimate, policy)
    if driving is None:
        return year == ALL_YEARS and month is None
    if year != ALL_YEARS and driving.year != year:
        return False
    if month is not None and driving.value.month != month:
        return False
    return True


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


@traced_engine("aggregation", "1.0", fingerprint_fields=("year",))
def total_estimated_value(
    estimates: Iterable[Any],
    year: Any,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> Decimal:
    """Sum of every non-archived estimate's value attributed to ``year``."""
    selected = normalize_year(year, "total_estimated_value", policy.year_window)
    return sum(
        (_contribution(e, selected, notifier, policy) for e in as_estimates(estimates)),
        ZERO,
    )


@traced_engine("aggregation", "1.0", fingerprint_fields=("year",))
def total_won_value(
    estimates: Iterable[Any],
    year: Any,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> Decimal:
    """Same as ``total_estimated_value`` restricted to won estimates."""
    selected = normalize_year(year, "total_won_value", policy.year_window)
    return sum(
        (
            _contribution(e, selected, notifier, policy)
            for e in as_estimates(estimates)
            if is_won(e, policy)
        ),
        ZERO,
    )


# ---------------------------------------------------------------------------
# Filtering and counts
# ---------------------------------------------------------------------------


def filter_estimates_by_year(
    estimates: Iterable[Any],
    year: Any,
    month: int | None = None,
    won_only: bool = False,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> tuple[Estimate, ...]:
    """
    Non-archived estimates whose driving date falls in ``year``.

    ``month`` (1..12) further restricts to the driving date's month. In
    "all" mode estimates without a driving date are kept unless a month
    filter is given.
    """
    selected = normalize_year(year, "filter_estimates_by_year", policy.year_window)
    if month is not None and (
        isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12
    ):
        raise InvalidMonthError(month)
    return tuple(
        e
        for e in as_estimates(estimates)
        if _in_period(e, selected, month, policy) and (not won_only or is_won(e, policy))
    )


def count_filtered_estimates(
    estimates: Iterable[Any],
    year: Any,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> int:
    """Number of non-archived estimates whose driving date falls in ``year``."""
    return len(filter_estimates_by_year(estimates, year, policy=policy))


def count_won_estimates(
    estimates: Iterable[Any],
    year: Any,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> int:
    return len(filter_estimates_by_year(estimates, year, won_only=True, policy=policy))


def win_rate(
    estimates: Iterable[Any],
    year: Any,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> Decimal:
    """Count-based win rate: won / all, by driving date. 0 when empty."""
    in_scope = filter_estimates_by_year(estimates, year, policy=policy)
    won = sum(1 for e in in_scope if is_won(e, policy))
    return _ratio(Decimal(won), Decimal(len(in_scope)))


def dollar_win_rate(
    estimates: Iterable[Any],
    year: Any,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> Decimal:
    """Dollar-weighted win rate: won value / estimated value for ``year``."""
    records = as_estimates(estimates)
    return _ratio(
        total_won_value(records, year, notifier, policy),
        total_estimated_value(records, year, notifier, policy),
    )


def deduplicate_estimates(estimates: Iterable[Any]) -> tuple[Estimate, ...]:
    """Keep the first estimate per ``lmn_estimate_id``; estimates without one are all kept."""
    seen: set[str] = set()
    kept: list[Estimate] = []
    for est in as_estimates(estimates):
        key = est.lmn_estimate_id
        if key is not None and str(key).strip():
            key = str(key).strip()
            if key in seen:
                continue
            seen.add(key)
        kept.append(est)
    return tuple(kept)


def estimate_counts_by_year(
    estimates: Iterable[Any],
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> dict[str, int]:
    """Driving-year estimate counts, keyed by year string, for cache refresh."""
    counts: dict[str, int] = {}
    for est in as_estimates(estimates):
        if est.archived:
            continue
        driving = driving_date(est, policy)
        if driving is None:
            continue
        key = str(driving.year)
        counts[key] = counts.get(key, 0) + 1
    return dict(sorted(counts.items()))


def estimate_count_for_account(
    account: Account,
    estimates: Iterable[Any],
    year: Any,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> int:
    """
    Estimate count for one account and year.

    Uses ``account.total_estimates_by_year[str(year)]`` when it is present
    and non-zero; otherwise counts the account's estimates directly.
    """
    selected = normalize_year(year, "estimate_count_for_account", policy.year_window)
    if selected != ALL_YEARS:
        cached = account.total_estimates_by_year.get(str(selected))
        try:
            cached_count = int(cached) if cached is not None else 0
        except (TypeError, ValueError):
            cached_count = 0
        if cached_count > 0:
            return cached_count
    own = [e for e in as_estimates(estimates) if e.account_id == account.id]
    return count_filtered_estimates(own, selected, policy)


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RevenueSummary:
    """
    Portfolio-level figures for one year selection.

    Guarantees:
        - ``won_value + lost_value + pending_value == total_value``.
        - ``won_count + lost_count + pending_count == estimate_count``.
        - All rates are in [0, 1].
    """

    year: YearSelection
    total_value: Decimal
    won_value: Decimal
    lost_value: Decimal
    pending_value: Decimal
    estimate_count: int
    won_count: int
    lost_count: int
    pending_count: int
    win_rate: Decimal
    dollar_win_rate: Decimal
    decided_win_rate: Decimal


@traced_engine("aggregation", "1.0", fingerprint_fields=("year",))
def summarize(
    estimates: Iterable[Any],
    year: Any,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> RevenueSummary:
    """Overall won/lost/pending totals and win rates for ``year``."""
    selected = normalize_year(year, "summarize", policy.year_window)
    records = as_estimates(estimates)

    values = {outcome: ZERO for outcome in EstimateOutcome}
    counts = {outcome: 0 for outcome in EstimateOutcome}
    for est in records:
        if est.archived:
            continue
        outcome = classify_outcome(est, policy)
        values[outcome] += _contribution(est, selected, notifier, policy)
        if _in_period(est, selected, None, policy):
            counts[outcome] += 1

    total_value = sum(values.values(), ZERO)
    estimate_count = sum(counts.values())
    won_count = counts[EstimateOutcome.WON]
    lost_count = counts[EstimateOutcome.LOST]

    summary = RevenueSummary(
        year=selected,
        total_value=total_value,
        won_value=values[EstimateOutcome.WON],
        lost_value=values[EstimateOutcome.LOST],
        pending_value=values[EstimateOutcome.PENDING],
        estimate_count=estimate_count,
        won_count=won_count,
        lost_count=lost_count,
        pending_count=counts[EstimateOutcome.PENDING],
        win_rate=_ratio(Decimal(won_count), Decimal(estimate_count)),
        dollar_win_rate=_ratio(values[EstimateOutcome.WON], total_value),
        decided_win_rate=_ratio(Decimal(won_count), Decimal(won_count + lost_count)),
    )

    logger.info("revenue_summary_computed", extra={
        "year": str(selected),
        "estimate_count": estimate_count,
        "total_value": str(total_value),
        "won_value": str(summary.won_value),
    })
    return summary


@dataclass(frozen=True)
class DepartmentStats:
    """Estimate counts and attributed values for one department."""

    department: str
    estimate_count: int
    won_count: int
    total_value: Decimal
    won_value: Decimal

    @property
    def win_rate(self) -> Decimal:
        return _ratio(Decimal(self.won_count), Decimal(self.estimate_count))

    @property
    def dollar_win_rate(self) -> Decimal:
        return _ratio(self.won_value, self.total_value)


@traced_engine("aggregation", "1.0", fingerprint_fields=("year",))
def group_by_department(
    estimates: Iterable[Any],
    year: Any,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> tuple[DepartmentStats, ...]:
    """
    Per-department breakdown in report order.

    Values are year-attributed, so department ``total_value`` sums to
    ``total_estimated_value`` for the same year. Departments with neither
    a counted estimate nor a contribution are omitted.
    """
    selected = normalize_year(year, "group_by_department", policy.year_window)
    live = [e for e in as_estimates(estimates) if not e.archived]

    stats: list[DepartmentStats] = []
    for department, members in group_estimates_by_department(live, policy).items():
        total = ZERO
        won_value = ZERO
        count = 0
        won_count = 0
        for est in members:
            value = _contribution(est, selected, notifier, policy)
            won = is_won(est, policy)
            total += value
            if won:
                won_value += value
            if _in_period(est, selected, None, policy):
                count += 1
                if won:
                    won_count += 1
        if count == 0 and total == ZERO:
            continue
        stats.append(DepartmentStats(
            department=department,
            estimate_count=count,
            won_count=won_count,
            total_value=total,
            won_value=won_value,
        ))
    return tuple(stats)


@dataclass(frozen=True)
class AccountStats:
    """Estimate counts and attributed values for one account."""

    account_id: str
    estimate_count: int
    won_count: int
    total_value: Decimal
    won_value: Decimal

    @property
    def win_rate(self) -> Decimal:
        return _ratio(Decimal(self.won_count), Decimal(self.estimate_count))


@traced_engine("aggregation", "1.0", fingerprint_fields=("year",))
def group_by_account(
    estimates: Iterable[Any],
    year: Any,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> tuple[AccountStats, ...]:
    """Per-account breakdown sorted by total value (desc), then account id."""
    selected = normalize_year(year, "group_by_account", policy.year_window)

    totals: dict[str, list] = {}
    for est in as_estimates(estimates):
        if est.archived or est.account_id is None:
            continue
        value = _contribution(est, selected, notifier, policy)
        counted = _in_period(est, selected, None, policy)
        if value == ZERO and not counted:
            continue
        won = is_won(est, policy)
        row = totals.setdefault(est.account_id, [0, 0, ZERO, ZERO])
        if counted:
            row[0] += 1
            if won:
                row[1] += 1
        row[2] += value
        if won:
            row[3] += value

    stats = [
        AccountStats(
            account_id=account_id,
            estimate_count=row[0],
            won_count=row[1],
            total_value=row[2],
            won_value=row[3],
        )
        for account_id, row in totals.items()
    ]
    stats.sort(key=lambda s: (-s.total_value, s.account_id))
    return tuple(stats)
