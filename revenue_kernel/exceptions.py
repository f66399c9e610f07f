"""
Typed Exception Hierarchy for the Revenue Kernel.

===============================================================================
WHAT RAISES AND WHAT DOES NOT
===============================================================================

The engines absorb expected data problems locally and never raise for them:

    - Malformed numeric price fields  -> coerced to 0 (no contribution)
    - Malformed or missing dates      -> estimate excluded from year scope
    - Divide-by-zero in share         -> segment D

Everything else is a caller bug or a configuration error and fails loudly
with a typed exception:

    RevenueEngineError (base)
    |
    +-- ConfigurationError
    |   +-- MissingYearContextError
    |   +-- ConfigValidationError
    |
    +-- SnapshotError
        +-- SnapshotShapeError
        +-- InvalidYearError
        +-- InvalidMonthError
        +-- AccountNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                   | When Raised
----------------|------------------------|------------------------------------
Configuration   | MISSING_YEAR_CONTEXT   | No year passed and no default set
                | CONFIG_INVALID         | YAML config failed validation
----------------|------------------------|------------------------------------
Snapshot        | MALFORMED_SNAPSHOT     | Record is not estimate/account shaped
                | INVALID_YEAR           | Year is neither an int nor "all"
                | INVALID_MONTH          | Month filter outside 1..12
                | ACCOUNT_NOT_FOUND      | Preview/override names unknown account
"""


class RevenueEngineError(Exception):
    """
    Base exception for all revenue engine errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "REVENUE_ENGINE_ERROR"


# Configuration exceptions


class ConfigurationError(RevenueEngineError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class MissingYearContextError(ConfigurationError):
    """
    No fiscal year was supplied and no default year is configured.

    The engine never falls back to the calendar year: the selected year is
    owned by the caller and must be passed explicitly.
    """

    code: str = "MISSING_YEAR_CONTEXT"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"{operation}: a fiscal year (or 'all') is required and no "
            f"default year is configured"
        )


class ConfigValidationError(ConfigurationError):
    """Configuration set failed structural validation."""

    code: str = "CONFIG_INVALID"

    def __init__(self, config_id: str, errors: list[str]):
        self.config_id = config_id
        self.errors = errors
        super().__init__(
            f"Configuration '{config_id}' failed validation:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


# Snapshot exceptions


class SnapshotError(RevenueEngineError):
    """Base exception for malformed caller input."""

    code: str = "SNAPSHOT_ERROR"


class SnapshotShapeError(SnapshotError):
    """A snapshot record does not have the estimate/account shape."""

    code: str = "MALFORMED_SNAPSHOT"

    def __init__(self, record_type: str, detail: str, record_id: str | None = None):
        self.record_type = record_type
        self.detail = detail
        self.record_id = record_id
        where = f" {record_id}" if record_id else ""
        super().__init__(f"Malformed {record_type}{where}: {detail}")


class InvalidYearError(SnapshotError):
    """Year argument is neither a calendar year nor the 'all' sentinel."""

    code: str = "INVALID_YEAR"

    def __init__(self, year: object):
        self.year = repr(year)
        super().__init__(f"Invalid year selection: {year!r} (expected an int or 'all')")


class AccountNotFoundError(SnapshotError):
    """Account referenced by a preview or override is not in the snapshot."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found in snapshot: {account_id}")


class InvalidMonthError(SnapshotError):
    """Month filter is not a calendar month number."""

    code: str = "INVALID_MONTH"

    def __init__(self, month: object):
        self.month = repr(month)
        super().__init__(f"Invalid month filter: {month!r} (expected 1..12)")
