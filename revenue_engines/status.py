"""
Module: revenue_engines.status
Responsibility:
    Decide whether an estimate is won, respecting the newer
    ``pipeline_status`` field over the legacy free-text ``status``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``pipeline_status`` is authoritative whenever it is present; the
      legacy ``status`` is consulted only when ``pipeline_status`` is absent
      or blank.
    - Pending estimates are not won. There is no pending bucket in any win
      rate.
    - Total function: always returns a bool, never raises.
"""

from __future__ import annotations

from revenue_kernel.domain.policy import DEFAULT_POLICY, RevenuePolicy
from revenue_kernel.domain.records import Estimate
from revenue_kernel.domain.values import EstimateOutcome, is_blank


def _normalized(value: object) -> str:
    return str(value).strip().lower()


def is_won(estimate: Estimate, policy: RevenuePolicy = DEFAULT_POLICY) -> bool:
    """True if the estimate counts as won.

    ``pipeline_status`` wins when present: won iff it is one of the
    policy's pipeline won values or contains one of its pipeline won
    substrings ("sold" by default). Otherwise the legacy ``status`` must
    exactly match one of the policy's won statuses.
    """
    if not is_blank(estimate.pipeline_status):
        pipeline = _normalized(estimate.pipeline_status)
        if pipeline in policy.pipeline_won_values:
            return True
        return any(fragment in pipeline for fragment in policy.pipeline_won_substrings)

    if is_blank(estimate.status):
        return False
    return _normalized(estimate.status) in policy.won_statuses


def is_lost(estimate: Estimate, policy: RevenuePolicy = DEFAULT_POLICY) -> bool:
    """True if the estimate is explicitly lost (reporting only)."""
    if is_won(estimate, policy):
        return False
    source = estimate.pipeline_status
    if is_blank(source):
        source = estimate.status
    if is_blank(source):
        return False
    text = _normalized(source)
    return any(marker in text for marker in policy.lost_markers)


def classify_outcome(
    estimate: Estimate,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> EstimateOutcome:
    """Split estimates into won / lost / pending for report breakdowns."""
    if is_won(estimate, policy):
        return EstimateOutcome.WON
    if is_lost(estimate, policy):
        return EstimateOutcome.LOST
    return EstimateOutcome.PENDING
