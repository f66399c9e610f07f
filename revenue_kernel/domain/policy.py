"""
RevenuePolicy -- the classification vocabulary the engines run against.

Responsibility:
    Holds the canonical department taxonomy, the empty-like division tokens,
    the won-equivalent status values, the segment thresholds, the
    annualisation rounding precision and the plausible-year window in one
    frozen object. Engines take a policy argument defaulting to
    ``DEFAULT_POLICY``; the configuration layer builds alternatives from
    YAML (``revenue_config.bridges``).

Architecture position:
    Kernel > Domain -- pure data, zero I/O. The kernel never imports
    revenue_config; config depends on this module, not the reverse.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from revenue_kernel.domain.values import MAX_PLAUSIBLE_YEAR, MIN_PLAUSIBLE_YEAR

UNCATEGORIZED = "Uncategorized"

DEFAULT_DEPARTMENTS: tuple[str, ...] = (
    "LE Irrigation",
    "LE Landscapes",
    "LE Maintenance (Summer/Winter)",
    "LE Maintenance Enchancements",
    "LE Paving",
    "LE Tree Care",
    "Line Painting",
    "Parking Lot Sweeping",
    "Snow",
    "Warranty",
)

DEFAULT_EMPTY_DIVISION_TOKENS: frozenset[str] = frozenset({
    "",
    "unassigned",
    "<unassigned>",
    "[unassigned]",
    "null",
    "undefined",
    "none",
    "n/a",
    "na",
})

DEFAULT_WON_STATUSES: frozenset[str] = frozenset({
    "contract signed",
    "work complete",
    "billing complete",
    "email contract award",
    "verbal contract award",
    "contract in progress",
    "contract + billing complete",
    "work in progress",
    "sold",
    "won",
})

DEFAULT_PIPELINE_WON_VALUES: frozenset[str] = frozenset({"sold", "won"})

# Matched anywhere in pipeline_status, e.g. "Sold - Pending PO".
DEFAULT_PIPELINE_WON_SUBSTRINGS: tuple[str, ...] = ("sold",)

DEFAULT_LOST_MARKERS: tuple[str, ...] = ("lost",)

MAX_ROUNDING_PLACES = 6


@dataclass(frozen=True)
class RevenuePolicy:
    """
    Frozen classification policy consumed by the engines.

    Contract:
        All string sets are stored lower-cased; departments keep their
        canonical display spelling and order.
    Guarantees:
        - ``segment_b_threshold < segment_a_threshold``.
        - ``0 <= rounding_places <= MAX_ROUNDING_PLACES``.
        - ``min_plausible_year <= max_plausible_year``.
    Non-goals:
        - Does not validate that departments are unique; the config
          validator does that before a policy is built.
    """

    departments: tuple[str, ...] = DEFAULT_DEPARTMENTS
    empty_division_tokens: frozenset[str] = DEFAULT_EMPTY_DIVISION_TOKENS
    won_statuses: frozenset[str] = DEFAULT_WON_STATUSES
    pipeline_won_values: frozenset[str] = DEFAULT_PIPELINE_WON_VALUES
    pipeline_won_substrings: tuple[str, ...] = DEFAULT_PIPELINE_WON_SUBSTRINGS
    lost_markers: tuple[str, ...] = DEFAULT_LOST_MARKERS
    segment_a_threshold: Decimal = Decimal("0.15")
    segment_b_threshold: Decimal = Decimal("0.05")
    rounding_places: int = 2
    min_plausible_year: int = MIN_PLAUSIBLE_YEAR
    max_plausible_year: int = MAX_PLAUSIBLE_YEAR

    def __post_init__(self) -> None:
        if self.segment_b_threshold >= self.segment_a_threshold:
            raise ValueError("segment_b_threshold must be below segment_a_threshold")
        if not 0 <= self.rounding_places <= MAX_ROUNDING_PLACES:
            raise ValueError(f"rounding_places must be between 0 and {MAX_ROUNDING_PLACES}")
        if self.min_plausible_year > self.max_plausible_year:
            raise ValueError("min_plausible_year must not exceed max_plausible_year")

    @property
    def rounding_quantum(self) -> Decimal:
        """Smallest representable share, e.g. 0.01 for two places."""
        return Decimal(1).scaleb(-self.rounding_places)

    @property
    def year_window(self) -> tuple[int, int]:
        """Inclusive (min, max) calendar years accepted in dates and year selections."""
        return self.min_plausible_year, self.max_plausible_year


DEFAULT_POLICY = RevenuePolicy()
