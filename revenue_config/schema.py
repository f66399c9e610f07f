"""
RevenueEngineConfig schema.

Defines the typed form of a revenue configuration set. YAML files under
``revenue_config/sets`` are parsed into this type by the loader, checked by
the validator, and turned into the kernel's ``RevenuePolicy`` by
``revenue_config.bridges``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PlausibleYears:
    """Inclusive window of calendar years accepted as real data."""

    min_year: int = 2000
    max_year: int = 2100

    def contains(self, year: int) -> bool:
        return self.min_year <= year <= self.max_year


@dataclass(frozen=True)
class SegmentThresholds:
    """Portfolio-share cut-offs: share >= a is A, b <= share < a is B."""

    a: Decimal = Decimal("0.15")
    b: Decimal = Decimal("0.05")


@dataclass(frozen=True)
class RevenueEngineConfig:
    """
    One parsed configuration set.

    ``checksum`` is the SHA-256 of the canonical JSON of the source
    mapping, so two sets with identical content compare equal by checksum
    regardless of key order or YAML formatting.
    """

    config_id: str
    version: int
    default_year: int | None
    departments: tuple[str, ...]
    empty_division_tokens: tuple[str, ...]
    won_statuses: tuple[str, ...]
    pipeline_won_values: tuple[str, ...]
    pipeline_won_substrings: tuple[str, ...]
    lost_markers: tuple[str, ...]
    segment_thresholds: SegmentThresholds
    rounding_places: int
    plausible_years: PlausibleYears
    checksum: str = ""
