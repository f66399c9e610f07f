"""
Module: revenue_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    revenue calculation engines. This is the canonical import surface for
    revenue_services and scripts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import revenue_kernel domain modules (and sibling engines).
    MUST NOT import revenue_services or revenue_config.

Invariants enforced:
    - Purity: engines never read the clock. The fiscal year is always an
      explicit parameter; services resolve it from the caller or config.
    - Decimal-only arithmetic for every monetary amount.
    - Determinism: identical snapshots and years give identical outputs.

Audit relevance:
    Aggregate entry points are traced via ``@traced_engine`` (see
    ``revenue_engines.tracer``), emitting REVENUE_ENGINE_TRACE records.

Usage:
    from revenue_engines import attribute_to_year, classify_portfolio
    from revenue_engines.aggregation import summarize
"""

from revenue_kernel.logging_config import get_logger

logger = get_logger("engines")

from revenue_engines.aggregation import (
    AccountStats,
    DepartmentStats,
    RevenueSummary,
    count_filtered_estimates,
    count_won_estimates,
    deduplicate_estimates,
    dollar_win_rate,
    estimate_count_for_account,
    estimate_counts_by_year,
    filter_estimates_by_year,
    group_by_account,
    group_by_department,
    summarize,
    total_estimated_value,
    total_won_value,
    win_rate,
)
from revenue_engines.attribution import (
    DRIVING_DATE_FIELDS,
    AllocationSchedule,
    DrivingDate,
    YearAttribution,
    allocation_schedule,
    attribute_to_year,
    driving_date,
)
from revenue_engines.departments import (
    department_sort_key,
    group_estimates_by_department,
    normalize_department,
)
from revenue_engines.pricing import (
    PriceFallbackNotifier,
    PriceSource,
    ResolvedPrice,
    resolve_price,
    resolve_price_detail,
)
from revenue_engines.segmentation import (
    SegmentAssignment,
    account_revenue,
    classify,
    classify_portfolio,
    is_project_only,
    portfolio_total_revenue,
    preview_segment,
    segments_by_year,
)
from revenue_engines.status import classify_outcome, is_lost, is_won
from revenue_engines.tracer import traced_engine

__all__ = [
    # Aggregation
    "AccountStats",
    "DepartmentStats",
    "RevenueSummary",
    "count_filtered_estimates",
    "count_won_estimates",
    "deduplicate_estimates",
    "dollar_win_rate",
    "estimate_count_for_account",
    "estimate_counts_by_year",
    "filter_estimates_by_year",
    "group_by_account",
    "group_by_department",
    "summarize",
    "total_estimated_value",
    "total_won_value",
    "win_rate",
    # Attribution
    "DRIVING_DATE_FIELDS",
    "AllocationSchedule",
    "DrivingDate",
    "YearAttribution",
    "allocation_schedule",
    "attribute_to_year",
    "driving_date",
    # Departments
    "department_sort_key",
    "group_estimates_by_department",
    "normalize_department",
    # Pricing
    "PriceFallbackNotifier",
    "PriceSource",
    "ResolvedPrice",
    "resolve_price",
    "resolve_price_detail",
    # Segmentation
    "SegmentAssignment",
    "account_revenue",
    "classify",
    "classify_portfolio",
    "is_project_only",
    "portfolio_total_revenue",
    "preview_segment",
    "segments_by_year",
    # Status
    "classify_outcome",
    "is_lost",
    "is_won",
    # Tracing
    "traced_engine",
]
