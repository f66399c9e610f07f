"""
Values -- Tolerant coercion of raw CRM fields into domain values.

Responsibility:
    Provides the small value vocabulary shared by every engine: the year
    selection (a calendar year or the ``ALL_YEARS`` sentinel), the segment,
    ICP and outcome enums, and the parsers that turn messy imported price
    and date fields into ``Decimal`` / ``date`` values.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by records, engines and services. No outward dependencies
    except revenue_kernel.exceptions.

Invariants enforced:
    - Monetary amounts are ``Decimal``; floats are converted through ``str``
      so binary representation noise never leaks into sums.
    - Parsers never raise: malformed input yields ``None`` and the caller
      decides what absence means (price -> 0, date -> excluded).
    - Year selection is explicit: ``normalize_year(None)`` raises
      ``MissingYearContextError`` instead of defaulting to the clock.

Failure modes:
    - MissingYearContextError when no year is supplied.
    - InvalidYearError for year arguments that are neither an int nor "all".
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Literal

from revenue_kernel.exceptions import InvalidYearError, MissingYearContextError

ALL_YEARS: Literal["all"] = "all"

YearSelection = int | Literal["all"]

# Default window; years outside it are data-entry noise (e.g. "0202-05-01").
MIN_PLAUSIBLE_YEAR = 2000
MAX_PLAUSIBLE_YEAR = 2100
PLAUSIBLE_YEARS: tuple[int, int] = (MIN_PLAUSIBLE_YEAR, MAX_PLAUSIBLE_YEAR)

# Magnitude a Numeric(18, 2) column cannot hold.
MAX_AMOUNT = Decimal("1e16")

ZERO = Decimal("0")


class RevenueSegment(str, Enum):
    """Relative revenue tier of an account within the portfolio."""

    A = "A"  # >= 15% of portfolio revenue
    B = "B"  # 5% - 15%
    C = "C"  # > 0% - 5%
    D = "D"  # no revenue, or project-only


class IcpStatus(str, Enum):
    """Ideal-customer-profile status carried on an account."""

    REQUIRED = "required"
    NOT_REQUIRED = "not_required"
    NA = "na"


class EstimateOutcome(str, Enum):
    """Reporting outcome of an estimate. Win rates only distinguish WON."""

    WON = "won"
    LOST = "lost"
    PENDING = "pending"


def normalize_year(
    year: Any,
    operation: str = "revenue_engine",
    window: tuple[int, int] = PLAUSIBLE_YEARS,
) -> YearSelection:
    """
    Validate a year selection.

    Preconditions:
        ``year`` is an int, a digit string, or the ``"all"`` sentinel.
    Postconditions:
        Returns an ``int`` calendar year inside the inclusive ``window``,
        or ``ALL_YEARS``.
    Raises:
        MissingYearContextError: if ``year`` is None.
        InvalidYearError: for any other shape or an implausible year.
    """
    if year is None:
        raise MissingYearContextError(operation)
    if isinstance(year, bool):
        raise InvalidYearError(year)
    if isinstance(year, str):
        text = year.strip()
        if text.lower() == ALL_YEARS:
            return ALL_YEARS
        if not (text.isascii() and text.isdigit()):
            raise InvalidYearError(year)
        year = int(text)
    if not isinstance(year, int):
        raise InvalidYearError(year)
    if not window[0] <= year <= window[1]:
        raise InvalidYearError(year)
    return year


_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def parse_amount(value: Any) -> Decimal | None:
    """
    Coerce a raw price field to ``Decimal``.

    Dollar signs, thousands separators and whitespace are dropped, then the
    leading numeric prefix is read, so "$1,200 USD" is 1200. Returns None
    for absent, NaN, infinite, boolean or non-numeric values, and for
    magnitudes of ``MAX_AMOUNT`` or more ("9e99" is an import error, not
    a price).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace("$", "").replace(",", "").replace(" ", "")
        match = _NUMERIC_PREFIX.match(cleaned)
        if not match:
            return None
        try:
            parsed = Decimal(match.group(0))
        except InvalidOperation:
            return None
    else:
        return None

    if not parsed.is_finite() or parsed.copy_abs() >= MAX_AMOUNT:
        return None
    return parsed


_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})", re.ASCII)
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$", re.ASCII)


def parse_date_string(value: Any, window: tuple[int, int] = PLAUSIBLE_YEARS) -> date | None:
    """
    Coerce a raw date field to ``date``.

    Accepts ``date``/``datetime`` objects, ISO ``YYYY-MM-DD`` prefixes (time
    and zone suffixes are ignored, so no timezone shift can move the year)
    and ``MM/DD/YYYY``. Impossible dates and years outside the inclusive
    ``window`` return None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        iso = _ISO_DATE.match(text)
        us = _US_DATE.match(text)
        try:
            if iso:
                parsed = date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
            elif us:
                parsed = date(int(us.group(3)), int(us.group(1)), int(us.group(2)))
            else:
                return None
        except ValueError:
            return None
    else:
        return None

    if not window[0] <= parsed.year <= window[1]:
        return None
    return parsed


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def format_currency(value: Any) -> str:
    """Compact dollar formatting for report cells: ``$1.2M``, ``$52.3K``, ``$950``."""
    amount = parse_amount(value)
    if amount is None or amount == ZERO:
        return "$0"
    if amount < ZERO:
        return "-" + format_currency(-amount)
    if amount >= Decimal("1000000"):
        scaled = (amount / Decimal("1000000")).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"${scaled}M"
    if amount >= Decimal("1000"):
        scaled = (amount / Decimal("1000")).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"${scaled}K"
    return f"${amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP)}"
