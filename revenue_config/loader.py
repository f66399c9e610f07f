"""
Configuration Loader (``revenue_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the typed
``revenue_config.schema.RevenueEngineConfig``. This is build/test tooling;
runtime callers go through ``revenue_config.get_active_config()``.

Invariants enforced
-------------------
* Required keys (``config_id``, ``version``) have no silent defaults.
* Thresholds are parsed through ``str`` into ``Decimal``, never float.
* ``compute_checksum`` is deterministic for identical content.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-numeric thresholds or years  -> ``ValueError`` / ``decimal.InvalidOperation``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from revenue_config.schema import PlausibleYears, RevenueEngineConfig, SegmentThresholds
from revenue_kernel.domain.policy import (
    DEFAULT_DEPARTMENTS,
    DEFAULT_EMPTY_DIVISION_TOKENS,
    DEFAULT_LOST_MARKERS,
    DEFAULT_PIPELINE_WON_SUBSTRINGS,
    DEFAULT_PIPELINE_WON_VALUES,
    DEFAULT_WON_STATUSES,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _string_tuple(value: Any, default: tuple[str, ...] | frozenset[str]) -> tuple[str, ...]:
    if value is None:
        return tuple(sorted(default)) if isinstance(default, frozenset) else tuple(default)
    if isinstance(value, str):
        raise ValueError(f"Expected a list of strings, got {value!r}")
    return tuple("" if v is None else str(v) for v in value)


def parse_thresholds(data: dict[str, Any] | None) -> SegmentThresholds:
    """Parse ``segment_thresholds: {a: ..., b: ...}``."""
    data = data or {}
    defaults = SegmentThresholds()
    return SegmentThresholds(
        a=Decimal(str(data["a"])) if data.get("a") is not None else defaults.a,
        b=Decimal(str(data["b"])) if data.get("b") is not None else defaults.b,
    )


def parse_plausible_years(data: dict[str, Any] | None) -> PlausibleYears:
    """Parse ``plausible_years: {min: ..., max: ...}``; either bound may be omitted."""
    data = data or {}
    defaults = PlausibleYears()
    return PlausibleYears(
        min_year=int(data.get("min", defaults.min_year)),
        max_year=int(data.get("max", defaults.max_year)),
    )


def parse_config(data: dict[str, Any]) -> RevenueEngineConfig:
    """
    Parse a ``RevenueEngineConfig`` from a loaded YAML mapping.

    Preconditions:
        - ``data`` contains ``config_id`` and ``version``.
    Postconditions:
        - Returns a frozen config whose ``checksum`` is computed from
          ``data``.
    Raises:
        KeyError: if a required key is missing.
    """
    default_year = data.get("default_year")
    annualization = data.get("annualization") or {}
    return RevenueEngineConfig(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        default_year=int(default_year) if default_year is not None else None,
        departments=_string_tuple(data.get("departments"), DEFAULT_DEPARTMENTS),
        empty_division_tokens=_string_tuple(
            data.get("empty_division_tokens"), DEFAULT_EMPTY_DIVISION_TOKENS
        ),
        won_statuses=_string_tuple(data.get("won_statuses"), DEFAULT_WON_STATUSES),
        pipeline_won_values=_string_tuple(
            data.get("pipeline_won_values"), DEFAULT_PIPELINE_WON_VALUES
        ),
        pipeline_won_substrings=_string_tuple(
            data.get("pipeline_won_substrings"), DEFAULT_PIPELINE_WON_SUBSTRINGS
        ),
        lost_markers=_string_tuple(data.get("lost_markers"), DEFAULT_LOST_MARKERS),
        segment_thresholds=parse_thresholds(data.get("segment_thresholds")),
        rounding_places=int(annualization.get("rounding_places", 2)),
        plausible_years=parse_plausible_years(data.get("plausible_years")),
        checksum=compute_checksum(data),
    )


def load_config_file(path: Path) -> RevenueEngineConfig:
    """Load and parse one configuration set file."""
    return parse_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
