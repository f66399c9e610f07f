"""
Module: revenue_engines.departments
Responsibility:
    Map free-text division values onto the canonical department taxonomy
    and order department groups for reporting.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Normalisation is trimmed, case-insensitive exact matching only; no
      fuzzy or prefix matching.
    - Empty-like tokens and unmatched text both land in "Uncategorized".
    - Deterministic ordering: Uncategorized first, then the canonical
      order, then any other names alphabetically.
"""

from __future__ import annotations

from collections.abc import Iterable

from revenue_kernel.domain.policy import DEFAULT_POLICY, UNCATEGORIZED, RevenuePolicy
from revenue_kernel.domain.records import Estimate


def normalize_department(raw: object, policy: RevenuePolicy = DEFAULT_POLICY) -> str:
    """Canonical department name for a raw division value."""
    if raw is None:
        return UNCATEGORIZED
    text = str(raw).strip()
    lowered = text.lower()
    if lowered in policy.empty_division_tokens:
        return UNCATEGORIZED
    for name in policy.departments:
        if name.lower() == lowered:
            return name
    return UNCATEGORIZED


def department_sort_key(
    name: str,
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> tuple[int, int, str]:
    if name == UNCATEGORIZED:
        return (0, 0, "")
    if name in policy.departments:
        return (1, policy.departments.index(name), "")
    return (2, 0, name.lower())


def group_estimates_by_department(
    estimates: Iterable[Estimate],
    policy: RevenuePolicy = DEFAULT_POLICY,
) -> dict[str, list[Estimate]]:
    """Group estimates under their normalised department, in report order.

    Archived estimates are grouped like any other; callers filter first.
    """
    grouped: dict[str, list[Estimate]] = {}
    for est in estimates:
        grouped.setdefault(normalize_department(est.division, policy), []).append(est)
    return {
        name: grouped[name]
        for name in sorted(grouped, key=lambda n: department_sort_key(n, policy))
    }
