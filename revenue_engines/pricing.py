"""
Module: revenue_engines.pricing
Responsibility:
    Resolve the single monetary amount of an estimate from its two
    possibly-present price fields, and report when the secondary field had
    to be used.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import revenue_kernel domain modules.

Invariants enforced:
    - One precedence, project-wide: ``total_price_with_tax`` when present
      and numeric-coercible, else ``total_price``, else 0. Every caller
      (all-estimates totals, won-only totals, attribution) routes through
      ``resolve_price``.
    - Never raises: absent or invalid prices resolve to ``Decimal("0")``,
      which contributes nothing to any sum.

Failure modes:
    - None. Malformed price fields are absorbed locally.

Usage:
    from revenue_engines.pricing import PriceFallbackNotifier, resolve_price

    notifier = PriceFallbackNotifier()
    amount = resolve_price(estimate, notifier)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from revenue_kernel.domain.records import Estimate
from revenue_kernel.domain.values import ZERO, parse_amount
from revenue_kernel.logging_config import get_logger

logger = get_logger("engines.pricing")


class PriceSource(str, Enum):
    """Which field supplied the resolved price."""

    WITH_TAX = "total_price_with_tax"
    PRE_TAX = "total_price"
    NONE = "none"


@dataclass(frozen=True)
class ResolvedPrice:
    """
    Resolved price of one estimate.

    Guarantees:
        - ``amount`` is ``0`` iff ``source`` is NONE or the chosen field
          held zero.
    """

    amount: Decimal
    source: PriceSource

    @property
    def is_fallback(self) -> bool:
        """True when the authoritative field was unusable and total_price was used."""
        return self.source == PriceSource.PRE_TAX


def resolve_price_detail(estimate: Estimate) -> ResolvedPrice:
    """Resolve the price and report which field it came from."""
    with_tax = parse_amount(estimate.total_price_with_tax)
    if with_tax is not None:
        return ResolvedPrice(with_tax, PriceSource.WITH_TAX)
    pre_tax = parse_amount(estimate.total_price)
    if pre_tax is not None:
        return ResolvedPrice(pre_tax, PriceSource.PRE_TAX)
    return ResolvedPrice(ZERO, PriceSource.NONE)


class PriceFallbackNotifier:
    """
    Once-per-session signal that price data needs attention.

    Contract:
        The first fallback observed emits a single WARNING log record and
        invokes ``on_first_fallback`` (if given) with the estimate id; every
        later fallback only increments ``fallback_count``. The caller owns
        the notifier's lifetime, which defines the "session".
    Non-goals:
        - Not a computation input: resolved prices are identical with or
          without a notifier.
    """

    def __init__(self, on_first_fallback: Callable[[str], None] | None = None):
        self._on_first_fallback = on_first_fallback
        self.notified = False
        self.fallback_count = 0

    def observe(self, estimate: Estimate, resolved: ResolvedPrice) -> None:
        if not resolved.is_fallback:
            return
        self.fallback_count += 1
        if self.notified:
            return
        self.notified = True
        logger.warning("price_field_fallback", extra={
            "estimate_id": estimate.id,
            "used_field": PriceSource.PRE_TAX.value,
            "missing_field": PriceSource.WITH_TAX.value,
        })
        if self._on_first_fallback is not None:
            self._on_first_fallback(estimate.id)

    def reset(self) -> None:
        """Re-arm the notification (start of a new session)."""
        self.notified = False
        self.fallback_count = 0


def resolve_price(
    estimate: Estimate,
    notifier: PriceFallbackNotifier | None = None,
) -> Decimal:
    """
    Resolve an estimate's monetary amount.

    Returns ``total_price_with_tax`` if present and numeric-coercible, else
    ``total_price``, else ``Decimal("0")``. String fields are read through
    ``parse_amount``; NaN resolves to 0.
    """
    resolved = resolve_price_detail(estimate)
    if notifier is not None:
        notifier.observe(estimate, resolved)
    return resolved.amount
