"""Pure domain layer: records, values and the engine policy."""

from revenue_kernel.domain.policy import DEFAULT_POLICY, UNCATEGORIZED, RevenuePolicy
from revenue_kernel.domain.records import (
    Account,
    Estimate,
    Snapshot,
    as_accounts,
    as_estimates,
)
from revenue_kernel.domain.values import (
    ALL_YEARS,
    EstimateOutcome,
    IcpStatus,
    RevenueSegment,
    YearSelection,
    format_currency,
    normalize_year,
    parse_amount,
    parse_date_string,
)

__all__ = [
    "ALL_YEARS",
    "DEFAULT_POLICY",
    "UNCATEGORIZED",
    "Account",
    "Estimate",
    "EstimateOutcome",
    "IcpStatus",
    "RevenuePolicy",
    "RevenueSegment",
    "Snapshot",
    "YearSelection",
    "as_accounts",
    "as_estimates",
    "format_currency",
    "normalize_year",
    "parse_amount",
    "parse_date_string",
]
