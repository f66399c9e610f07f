"""Tests for won / lost classification."""

import pytest

from revenue_engines.status import classify_outcome, is_lost, is_won
from revenue_kernel.domain.policy import RevenuePolicy
from revenue_kernel.domain.records import Estimate
from revenue_kernel.domain.values import EstimateOutcome


class TestIsWon:
    """pipeline_status first, legacy status second."""

    @pytest.mark.parametrize("status", [
        "Contract Signed", "work complete", "Billing Complete", "Email Contract Award",
        "Verbal Contract Award", "Contract in Progress", "Contract + Billing Complete",
        "Work In Progress", "Sold", "WON", "  won  ",
    ])
    def test_won_legacy_statuses(self, status):
        assert is_won(Estimate(id="e", status=status))

    @pytest.mark.parametrize("status", ["lost", "pending", "estimate sent", "", None, "won-ish"])
    def test_not_won_legacy_statuses(self, status):
        assert not is_won(Estimate(id="e", status=status))

    def test_pipeline_sold(self):
        assert is_won(Estimate(id="e", pipeline_status="Sold"))

    def test_pipeline_containing_sold(self):
        assert is_won(Estimate(id="e", pipeline_status="Sold - awaiting PO"))

    def test_pipeline_overrides_status(self):
        """A lost pipeline value wins over a won legacy status."""
        est = Estimate(id="e", pipeline_status="Lost", status="Contract Signed")
        assert not is_won(est)

    def test_blank_pipeline_falls_back_to_status(self):
        est = Estimate(id="e", pipeline_status="   ", status="Contract Signed")
        assert is_won(est)

    def test_pending_pipeline_not_won(self):
        assert not is_won(Estimate(id="e", pipeline_status="Pending", status="won"))

    def test_custom_policy(self):
        policy = RevenuePolicy(won_statuses=frozenset({"closed won"}))
        assert is_won(Estimate(id="e", status="Closed Won"), policy)
        assert not is_won(Estimate(id="e", status="won"), policy)

    def test_pipeline_substrings_come_from_policy(self):
        exact_only = RevenuePolicy(pipeline_won_substrings=())
        assert not is_won(Estimate(id="e", pipeline_status="Sold - awaiting PO"), exact_only)
        assert is_won(Estimate(id="e", pipeline_status="Sold"), exact_only)

        booked = RevenuePolicy(pipeline_won_substrings=("booked",))
        assert is_won(Estimate(id="e", pipeline_status="Booked for spring"), booked)
        assert not is_won(Estimate(id="e", pipeline_status="Sold - awaiting PO"), booked)


class TestOutcome:
    """Lost / pending split used by report breakdowns only."""

    def test_lost_from_pipeline(self):
        est = Estimate(id="e", pipeline_status="Lost")
        assert is_lost(est)
        assert classify_outcome(est) == EstimateOutcome.LOST

    def test_lost_from_status(self):
        assert classify_outcome(Estimate(id="e", status="Lost - price")) == EstimateOutcome.LOST

    def test_pending(self):
        assert classify_outcome(Estimate(id="e", status="Estimate Sent")) == EstimateOutcome.PENDING

    def test_no_status_is_pending(self):
        assert classify_outcome(Estimate(id="e")) == EstimateOutcome.PENDING

    def test_won(self):
        assert classify_outcome(Estimate(id="e", status="sold")) == EstimateOutcome.WON
