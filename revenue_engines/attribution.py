"""
Module: revenue_engines.attribution
Responsibility:
    Decide which fiscal year(s) an estimate's value belongs to, and how much
    of it each year receives. Multi-year contracts are annualised across
    every calendar year they span.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Uses revenue_engines.pricing for the amount; all callers (aggregation,
    segmentation, services) route year decisions through this module.

Invariants enforced:
    - Driving date priority: contract_end -> contract_start -> estimate_date
      -> created_date. The first *present* field decides; if it cannot be
      parsed the estimate has no driving date (it is not skipped over).
    - Archived estimates, non-positive prices and estimates without a
      driving date are never attributed to any year.
    - Conservation: for a multi-year contract the per-year shares sum
      exactly to the resolved price. Shares are an even split across the
      spanned calendar years, quantised to the policy precision
      (ROUND_HALF_UP) with the rounding remainder assigned to the final
      year.
    - Zero-length and inverted contract ranges degrade to single-year
      attribution in the driving year.
    - Purity: no clock access. The target year is always a parameter.

Failure modes:
    - MissingYearContextError / InvalidYearError from ``attribute_to_year``
      when the target year is absent or not a calendar year.

Usage:
    from revenue_engines.attribution import attribute_to_year

    share = attribute_to_year(estimate, 2025)
    if share is not None:
        total += share.value
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

from revenue_engines.pricing import PriceFallbackNotifier, resolve_price
from revenue_kernel.domain.policy import DEFAULT_POLICY, RevenuePolicy
from revenue_kernel.domain.records import Estimate
from revenue_kernel.domain.values import (
    ALL_YEARS,
    ZERO,
    is_blank,
    normalize_year,
    parse_date_string,
)
from revenue_kernel.exceptions import InvalidYearError
from revenue_kernel.logging_config import get_logger

logger = get_logger("engines.attribution")

DRIVING_DATE_FIELDS: tuple[str, ...] = (
    "contract_end",
    "contract_start",
    "estimate_date",
    "created_date",
)


@dataclass(frozen=True)
class DrivingDate:
    """The single date chosen to represent an estimate's year."""

    field: str
    value: date

    @property
    def year(self) -> int:
        return self.value.year


@dataclass(frozen=True)
class AllocationSchedule:
    """
    Full per-year allocation of one estimate.

    Contract:
        ``shares`` is ordered by ascending year and holds one entry for a
        single-year estimate or one entry per spanned calendar year for a
        multi-year contract.
    Guarantees:
        - ``sum(amount for _, amount in shares) == price`` exactly.
    """

    estimate_id: str
    price: Decimal
    driving: DrivingDate
    shares: tuple[tuple[int, Decimal], ...]

    @property
    def is_multi_year(self) -> bool:
        return len(self.shares) > 1

    @property
    def years(self) -> tuple[int, ...]:
        return tuple(year for year, _ in self.shares)

    def share_for(self, year: int) -> Decimal | None:
        """Amount attributed to ``year``, or None if the year is not covered."""
        for share_year, amount in self.shares:
            if share_year == year:
                return amount
        return None


@dataclass(frozen=True)
class YearAttribution:
    """
    Attribution of one estimate to one target year.

    Guarantees:
        - Only produced for years the estimate covers, so
          ``applies_to_current_year`` is always True on a returned value.
        - ``value`` is the full price for single-year estimates and the
          year's annualised share for multi-year contracts.
    """

    applies_to_current_year: bool
    value: Decimal
    year: int
    is_multi_year: bool


def driving_date(
    estimate: Estimate,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> DrivingDate | None:
    """First present date in the priority chain, or None.

    A present but unparseable first field (including a year outside the
    policy's window) yields None rather than falling through to a
    lower-priority field.
    """
    for name in DRIVING_DATE_FIELDS:
        raw = getattr(estimate, name)
        if is_blank(raw):
            continue
        parsed = parse_date_string(raw, policy.year_window)
        if parsed is None:
            logger.debug("driving_date_unparseable", extra={
                "estimate_id": estimate.id,
                "field": name,
                "raw_value": str(raw),
            })
            return None
        return DrivingDate(field=name, value=parsed)
    return None


def contract_span(
    estimate: Estimate,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> tuple[int, int] | None:
    """(first_year, last_year) when both contract dates parse and cross a year boundary."""
    start = parse_date_string(estimate.contract_start, policy.year_window)
    end = parse_date_string(estimate.contract_end, policy.year_window)
    if start is None or end is None:
        return None
    if end.year <= start.year:
        return None
    return start.year, end.year


def annualize(
    price: Decimal,
    first_year: int,
    last_year: int,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> tuple[tuple[int, Decimal], ...]:
    """
    Split ``price`` evenly across ``first_year..last_year``.

    Every year but the last receives ``price / n`` rounded to the policy
    quantum; the last year receives the remainder so the shares sum
    exactly to ``price``. Rounds down instead of half-up when half-up
    would leave a negative remainder (sub-cent prices over long spans).
    """
    years = list(range(first_year, last_year + 1))
    count = Decimal(len(years))
    quantum = policy.rounding_quantum

    base = (price / count).quantize(quantum, rounding=ROUND_HALF_UP)
    if base * (count - 1) > price:
        base = (price / count).quantize(quantum, rounding=ROUND_DOWN)
    remainder = price - base * (count - 1)

    shares = [(year, base) for year in years[:-1]]
    shares.append((years[-1], remainder))
    return tuple(shares)


def allocation_schedule(
    estimate: Estimate,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> AllocationSchedule | None:
    """
    Per-year allocation of an estimate, independent of any target year.

    Returns None for archived estimates, non-positive prices and estimates
    without a driving date.
    """
    if estimate.archived:
        return None

    price = resolve_price(estimate, notifier)
    if price <= ZERO:
        return None

    driving = driving_date(estimate, policy)
    if driving is None:
        return None

    span = contract_span(estimate, policy)
    if span is not None:
        shares = annualize(price, span[0], span[1], policy)
    else:
        shares = ((driving.year, price),)

    return AllocationSchedule(
        estimate_id=estimate.id,
        price=price,
        driving=driving,
        shares=shares,
    )


def attribute_to_year(
    estimate: Estimate,
    target_year: int,
    notifier: PriceFallbackNotifier | None = None,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> YearAttribution | None:
    """
    Attribute an estimate to ``target_year``.

    Returns None when the estimate contributes nothing to that year
    (archived, no price, no driving date, or the year is outside the
    estimate's single year / contract span).
    """
    year = normalize_year(target_year, "attribute_to_year", policy.year_window)
    if year == ALL_YEARS:
        raise InvalidYearError(target_year)

    schedule = allocation_schedule(estimate, notifier, policy)
    if schedule is None:
        return None

    share = schedule.share_for(year)
    if share is None:
        return None

    return YearAttribution(
        applies_to_current_year=True,
        value=share,
        year=year,
        is_multi_year=schedule.is_multi_year,
    )
