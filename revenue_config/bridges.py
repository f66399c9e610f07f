"""
Config -> Kernel Bridges.

Functions that convert a ``RevenueEngineConfig`` into kernel-compatible
inputs. These live in revenue_config (the producer) because the kernel
must never import revenue_config.

Usage:
    from revenue_config import get_active_config
    from revenue_config.bridges import build_policy, resolve_year

    config = get_active_config()
    policy = build_policy(config)
    year = resolve_year(None, config)  # configured default_year
"""

from __future__ import annotations

from typing import Any

from revenue_config.schema import RevenueEngineConfig
from revenue_kernel.domain.policy import RevenuePolicy
from revenue_kernel.domain.values import YearSelection, normalize_year
from revenue_kernel.exceptions import MissingYearContextError


def build_policy(config: RevenueEngineConfig) -> RevenuePolicy:
    """Build the engines' RevenuePolicy from a validated config."""
    return RevenuePolicy(
        departments=tuple(d.strip() for d in config.departments),
        empty_division_tokens=frozenset(t.strip().lower() for t in config.empty_division_tokens),
        won_statuses=frozenset(s.strip().lower() for s in config.won_statuses),
        pipeline_won_values=frozenset(v.strip().lower() for v in config.pipeline_won_values),
        pipeline_won_substrings=tuple(s.strip().lower() for s in config.pipeline_won_substrings),
        lost_markers=tuple(m.strip().lower() for m in config.lost_markers),
        segment_a_threshold=config.segment_thresholds.a,
        segment_b_threshold=config.segment_thresholds.b,
        rounding_places=config.rounding_places,
        min_plausible_year=config.plausible_years.min_year,
        max_plausible_year=config.plausible_years.max_year,
    )


def resolve_year(
    year: Any,
    config: RevenueEngineConfig | None,
    operation: str = "resolve_year",
) -> YearSelection:
    """
    Resolve the year selection for a service call.

    An explicit ``year`` wins; otherwise the config's ``default_year`` is
    used. There is no clock fallback. The year must lie inside the config's
    ``plausible_years`` (the default window without a config).

    Raises:
        MissingYearContextError: if neither is set.
        InvalidYearError: if the chosen value is not a year or "all".
    """
    if year is None and config is not None:
        year = config.default_year
    if year is None:
        raise MissingYearContextError(operation)
    if config is None:
        return normalize_year(year, operation)
    window = config.plausible_years
    return normalize_year(year, operation, (window.min_year, window.max_year))
