"""
Tests for the YAML configuration layer.

Covers:
- Loading and parsing the shipped default set
- Validation errors and warnings
- get_active_config failure modes and its REVENUE_CONFIG_TRACE record
- Bridges into the kernel (policy building, year resolution)
"""

from dataclasses import replace
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from revenue_config import get_active_config
from revenue_config.bridges import build_policy, resolve_year
from revenue_config.loader import compute_checksum, load_config_file, parse_config
from revenue_config.schema import PlausibleYears, SegmentThresholds
from revenue_config.validator import validate_config
from revenue_engines.aggregation import total_estimated_value
from revenue_kernel.domain.policy import DEFAULT_POLICY
from revenue_kernel.domain.records import Estimate
from revenue_kernel.domain.values import ALL_YEARS
from revenue_kernel.exceptions import (
    ConfigValidationError,
    InvalidYearError,
    MissingYearContextError,
)

SETS_DIR = Path(__file__).resolve().parents[2] / "revenue_config" / "sets"


def _write_set(directory: Path, name: str, data: dict) -> Path:
    path = directory / f"{name}.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


@pytest.fixture
def default_config():
    return load_config_file(SETS_DIR / "default.yaml")


class TestLoader:

    def test_default_set_matches_builtin_policy(self, default_config):
        assert default_config.config_id == "default"
        assert default_config.default_year is None
        assert build_policy(default_config) == DEFAULT_POLICY

    def test_thresholds_are_decimals(self, default_config):
        assert default_config.segment_thresholds == SegmentThresholds(
            a=Decimal("0.15"), b=Decimal("0.05"),
        )

    def test_missing_required_key(self):
        with pytest.raises(KeyError):
            parse_config({"version": 1})

    def test_omitted_lists_fall_back_to_defaults(self):
        config = parse_config({"config_id": "min", "version": 1})
        assert "Snow" in config.departments
        assert config.plausible_years == PlausibleYears()
        assert config.rounding_places == 2

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})


class TestValidator:

    def test_default_set_is_valid(self, default_config):
        result = validate_config(default_config)
        assert result.is_valid
        assert result.warnings == []

    def test_inverted_thresholds(self, default_config):
        bad = replace(default_config, segment_thresholds=SegmentThresholds(
            a=Decimal("0.05"), b=Decimal("0.15"),
        ))
        result = validate_config(bad)
        assert not result.is_valid
        assert any("must be below" in e for e in result.errors)

    def test_threshold_out_of_range(self, default_config):
        bad = replace(default_config, segment_thresholds=SegmentThresholds(
            a=Decimal("1.5"), b=Decimal("0.05"),
        ))
        assert not validate_config(bad).is_valid

    def test_duplicate_and_reserved_departments(self, default_config):
        bad = replace(default_config, departments=("Snow", "snow", "Uncategorized"))
        errors = validate_config(bad).errors
        assert any("Duplicate department" in e for e in errors)
        assert any("reserved" in e for e in errors)

    def test_empty_won_statuses(self, default_config):
        assert not validate_config(replace(default_config, won_statuses=())).is_valid

    def test_default_year_outside_window(self, default_config):
        assert not validate_config(replace(default_config, default_year=1990)).is_valid

    def test_won_lost_overlap_is_a_warning(self, default_config):
        result = validate_config(replace(default_config, lost_markers=("lost", "sold")))
        assert result.is_valid
        assert result.warnings

    def test_rounding_places_range(self, default_config):
        assert not validate_config(replace(default_config, rounding_places=9)).is_valid

    def test_inverted_year_window(self, default_config):
        bad = replace(default_config, plausible_years=PlausibleYears(min_year=2050, max_year=2040))
        assert not validate_config(bad).is_valid

    def test_blank_pipeline_substring(self, default_config):
        bad = replace(default_config, pipeline_won_substrings=("sold", " "))
        assert any("pipeline_won_substrings" in e for e in validate_config(bad).errors)

    def test_empty_pipeline_substrings_allowed(self, default_config):
        assert validate_config(replace(default_config, pipeline_won_substrings=())).is_valid


class TestGetActiveConfig:

    def test_loads_shipped_default(self):
        assert get_active_config().config_id == "default"

    def test_emits_config_trace(self, captured_logs):
        config = get_active_config()
        traces = [r for r in captured_logs() if r["message"] == "REVENUE_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_id"] == "default"
        assert traces[0]["checksum"] == config.checksum

    def test_missing_set(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config("nope", config_dir=tmp_path)

    def test_invalid_set_raises(self, tmp_path):
        _write_set(tmp_path, "broken", {
            "config_id": "broken",
            "version": 1,
            "segment_thresholds": {"a": "0.05", "b": "0.10"},
        })
        with pytest.raises(ConfigValidationError) as exc_info:
            get_active_config("broken", config_dir=tmp_path)
        assert exc_info.value.config_id == "broken"
        assert exc_info.value.code == "CONFIG_INVALID"

    def test_custom_set_drives_policy(self, tmp_path):
        _write_set(tmp_path, "pools", {
            "config_id": "pools",
            "version": 3,
            "default_year": 2025,
            "departments": ["Pools", "Spas"],
            "segment_thresholds": {"a": "0.30", "b": "0.10"},
        })
        config = get_active_config("pools", config_dir=tmp_path)
        policy = build_policy(config)
        assert policy.departments == ("Pools", "Spas")
        assert policy.segment_a_threshold == Decimal("0.30")
        assert resolve_year(None, config) == 2025

    def test_custom_set_drives_year_window_and_substrings(self, tmp_path):
        _write_set(tmp_path, "legacy", {
            "config_id": "legacy",
            "version": 1,
            "default_year": 1995,
            "plausible_years": {"min": 1990, "max": 2100},
            "pipeline_won_substrings": [],
        })
        config = get_active_config("legacy", config_dir=tmp_path)
        policy = build_policy(config)
        assert policy.year_window == (1990, 2100)
        assert policy.pipeline_won_substrings == ()
        assert resolve_year(None, config) == 1995

        est = Estimate(id="e", total_price_with_tax=700, estimate_date="1995-03-01")
        assert total_estimated_value([est], 1995, policy=policy) == Decimal("700")
        assert total_estimated_value([est], "all", policy=policy) == Decimal("700")

    def test_validation_warnings_are_logged(self, tmp_path, captured_logs):
        _write_set(tmp_path, "overlap", {
            "config_id": "overlap",
            "version": 1,
            "lost_markers": ["lost", "won"],
        })
        get_active_config("overlap", config_dir=tmp_path)
        assert any(r["message"] == "config_validation_warning" for r in captured_logs())


class TestResolveYear:

    def test_explicit_year_wins(self, default_config):
        configured = replace(default_config, default_year=2024)
        assert resolve_year(2025, configured) == 2025

    def test_all_sentinel(self, default_config):
        assert resolve_year("all", default_config) == ALL_YEARS

    def test_no_year_and_no_default(self, default_config):
        with pytest.raises(MissingYearContextError) as exc_info:
            resolve_year(None, default_config, operation="year_report")
        assert exc_info.value.operation == "year_report"

    def test_no_config(self):
        with pytest.raises(MissingYearContextError):
            resolve_year(None, None)

    def test_invalid_year(self, default_config):
        with pytest.raises(InvalidYearError):
            resolve_year("last year", default_config)

    def test_year_outside_configured_window(self, default_config):
        narrow = replace(default_config, plausible_years=PlausibleYears(min_year=2020, max_year=2030))
        assert resolve_year(2025, narrow) == 2025
        with pytest.raises(InvalidYearError):
            resolve_year(2031, narrow)
