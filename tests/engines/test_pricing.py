"""
Tests for price resolution.

Covers:
- Field precedence (with-tax over pre-tax)
- Tolerant coercion of strings, NaN and garbage
- Once-per-session fallback notification
"""

from decimal import Decimal

from revenue_engines.pricing import (
    PriceFallbackNotifier,
    PriceSource,
    resolve_price,
    resolve_price_detail,
)
from revenue_kernel.domain.records import Estimate


class TestResolvePrice:
    """Precedence and coercion."""

    def test_with_tax_preferred(self):
        est = Estimate(id="e", total_price=900, total_price_with_tax=1000)
        assert resolve_price(est) == Decimal("1000")

    def test_falls_back_to_total_price(self):
        est = Estimate(id="e", total_price="750.50")
        assert resolve_price(est) == Decimal("750.50")

    def test_unparseable_with_tax_uses_total_price(self):
        est = Estimate(id="e", total_price=500, total_price_with_tax="n/a")
        detail = resolve_price_detail(est)
        assert detail.amount == Decimal("500")
        assert detail.source == PriceSource.PRE_TAX
        assert detail.is_fallback

    def test_no_price_is_zero(self):
        detail = resolve_price_detail(Estimate(id="e"))
        assert detail.amount == Decimal("0")
        assert detail.source == PriceSource.NONE
        assert not detail.is_fallback

    def test_currency_string(self):
        est = Estimate(id="e", total_price_with_tax="$12,500.75")
        assert resolve_price(est) == Decimal("12500.75")

    def test_nan_is_ignored(self):
        est = Estimate(id="e", total_price_with_tax=float("nan"), total_price=10)
        assert resolve_price(est) == Decimal("10")

    def test_float_has_no_binary_noise(self):
        est = Estimate(id="e", total_price_with_tax=0.1)
        assert resolve_price(est) == Decimal("0.1")

    def test_zero_with_tax_is_used(self):
        """A present zero is a value, not a missing field."""
        est = Estimate(id="e", total_price_with_tax=0, total_price=100)
        assert resolve_price(est) == Decimal("0")


class TestPriceFallbackNotifier:
    """Notification fires once per notifier lifetime."""

    def test_fires_once(self, captured_logs):
        seen = []
        notifier = PriceFallbackNotifier(on_first_fallback=seen.append)
        resolve_price(Estimate(id="a", total_price=1), notifier)
        resolve_price(Estimate(id="b", total_price=2), notifier)

        assert seen == ["a"]
        assert notifier.notified
        assert notifier.fallback_count == 2
        warnings = [r for r in captured_logs() if r["message"] == "price_field_fallback"]
        assert len(warnings) == 1
        assert warnings[0]["estimate_id"] == "a"
        assert warnings[0]["level"] == "WARNING"

    def test_not_fired_for_primary_field(self):
        notifier = PriceFallbackNotifier()
        resolve_price(Estimate(id="a", total_price_with_tax=5), notifier)
        assert not notifier.notified
        assert notifier.fallback_count == 0

    def test_reset_rearms(self):
        seen = []
        notifier = PriceFallbackNotifier(on_first_fallback=seen.append)
        resolve_price(Estimate(id="a", total_price=1), notifier)
        notifier.reset()
        resolve_price(Estimate(id="b", total_price=1), notifier)
        assert seen == ["a", "b"]

    def test_notifier_does_not_change_result(self):
        est = Estimate(id="a", total_price=42)
        assert resolve_price(est, PriceFallbackNotifier()) == resolve_price(est)
