"""
revenue_config -- single public entrypoint for revenue engine configuration.

Responsibility:
    Provides the only way to obtain configuration at runtime through
    ``get_active_config()``. Services never read YAML files directly; they
    receive a validated ``RevenueEngineConfig`` and turn it into a
    ``RevenuePolicy`` via ``revenue_config.bridges``.

Architecture position:
    Configuration -- YAML-driven policy, load-time validation. Sits above
    ``revenue_kernel`` and below ``revenue_services``. The kernel never
    imports from this package.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the requested name.
    - ``ConfigValidationError`` -- the set failed validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``REVENUE_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying every computed segment to the configuration that
    produced it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from revenue_config.loader import load_config_file
from revenue_config.schema import RevenueEngineConfig
from revenue_config.validator import validate_config
from revenue_kernel.exceptions import ConfigValidationError

_logger = logging.getLogger("revenue_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    name: str = "default",
    config_dir: Path | None = None,
) -> RevenueEngineConfig:
    """The only public configuration entrypoint.

    Guarantees:
        - The returned config has passed ``validate_config``.
        - A ``REVENUE_CONFIG_TRACE`` log entry is emitted on every
          successful call; validation warnings are logged too.

    Non-goals:
        - Does not cache configs across calls.

    Args:
        name: Configuration set name; the file ``<name>.yaml`` is loaded.
        config_dir: Override path to the sets directory. Defaults to
            revenue_config/sets/.

    Raises:
        FileNotFoundError: If no such configuration set exists.
        ConfigValidationError: If validation fails.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"Configuration set '{name}' not found in {sets_dir}")

    config = load_config_file(path)

    validation = validate_config(config)
    if not validation.is_valid:
        raise ConfigValidationError(config.config_id, validation.errors)
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={
            "config_id": config.config_id,
            "warning": warning,
        })

    _logger.info(
        "REVENUE_CONFIG_TRACE",
        extra={
            "trace_type": "REVENUE_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "default_year": config.default_year,
            "department_count": len(config.departments),
        },
    )
    return config


__all__ = ["RevenueEngineConfig", "get_active_config"]
