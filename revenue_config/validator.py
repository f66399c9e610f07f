"""
Configuration Validator (``revenue_config.validator``).

Responsibility
--------------
Validates a parsed ``RevenueEngineConfig`` before it is handed to the
engines, so a bad YAML edit fails at load time instead of silently
misclassifying accounts.

Invariants enforced
-------------------
* Segment thresholds lie in (0, 1) with ``b < a``.
* Departments are non-blank, unique (case-insensitive) and never the
  "Uncategorized" bucket itself.
* Won-status and pipeline lists are non-empty; pipeline substrings are
  non-blank.
* ``rounding_places`` is between 0 and 6.
* ``plausible_years`` is ordered, and ``default_year``, when set, lies
  inside it.

Failure modes
-------------
* Errors in ``ConfigValidationResult.errors`` -> the config MUST NOT be
  used; ``get_active_config`` raises ``ConfigValidationError``.
* Warnings do not block use but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from revenue_config.schema import RevenueEngineConfig
from revenue_kernel.domain.policy import MAX_ROUNDING_PLACES, UNCATEGORIZED


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


def validate_config(config: RevenueEngineConfig) -> ConfigValidationResult:
    """Run every structural check and collect errors and warnings."""
    result = ConfigValidationResult()
    _check_thresholds(config, result)
    _check_departments(config, result)
    _check_statuses(config, result)
    _check_years(config, result)
    if not 0 <= config.rounding_places <= MAX_ROUNDING_PLACES:
        result.errors.append(
            f"annualization.rounding_places must be between 0 and {MAX_ROUNDING_PLACES}, "
            f"got {config.rounding_places}"
        )
    return result


def _check_thresholds(config: RevenueEngineConfig, result: ConfigValidationResult) -> None:
    a = config.segment_thresholds.a
    b = config.segment_thresholds.b
    for name, value in (("a", a), ("b", b)):
        if not Decimal("0") < value < Decimal("1"):
            result.errors.append(f"segment_thresholds.{name} must be in (0, 1), got {value}")
    if b >= a:
        result.errors.append(f"segment_thresholds.b ({b}) must be below segment_thresholds.a ({a})")


def _check_departments(config: RevenueEngineConfig, result: ConfigValidationResult) -> None:
    if not config.departments:
        result.warnings.append("No departments declared; every estimate will be Uncategorized")
    seen: set[str] = set()
    for name in config.departments:
        key = name.strip().lower()
        if not key:
            result.errors.append("Department names must not be blank")
            continue
        if key == UNCATEGORIZED.lower():
            result.errors.append(f"'{UNCATEGORIZED}' is reserved and cannot be a department")
        if key in seen:
            result.errors.append(f"Duplicate department: {name!r}")
        if key in {t.strip().lower() for t in config.empty_division_tokens}:
            result.errors.append(f"Department {name!r} is also an empty-division token")
        seen.add(key)


def _check_statuses(config: RevenueEngineConfig, result: ConfigValidationResult) -> None:
    if not config.won_statuses:
        result.errors.append("won_statuses must not be empty")
    if not config.pipeline_won_values:
        result.errors.append("pipeline_won_values must not be empty")
    if any(not s.strip() for s in config.pipeline_won_substrings):
        result.errors.append("pipeline_won_substrings must not contain blank entries")
    overlap = {s.strip().lower() for s in config.won_statuses} & {
        m.strip().lower() for m in config.lost_markers
    }
    if overlap:
        result.warnings.append(f"Statuses listed as both won and lost: {sorted(overlap)}")


def _check_years(config: RevenueEngineConfig, result: ConfigValidationResult) -> None:
    window = config.plausible_years
    if window.min_year > window.max_year:
        result.errors.append(
            f"plausible_years.min ({window.min_year}) exceeds plausible_years.max ({window.max_year})"
        )
    if config.default_year is not None and not window.contains(config.default_year):
        result.errors.append(
            f"default_year {config.default_year} is outside plausible_years "
            f"{window.min_year}..{window.max_year}"
        )
