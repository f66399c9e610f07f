"""
Shared fixtures for the revenue engine tests.

- JSON logging for the whole run and ``captured_logs`` to inspect records
- Estimate / account factories
- The win-rate and segmentation reference portfolios
- In-memory SQLite sessions, empty or seeded with a 2024/2025 portfolio
"""

import json
import logging
from collections.abc import Callable, Iterator
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from revenue_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from revenue_kernel.domain.records import Account, Estimate
from revenue_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from revenue_kernel.models.account import AccountModel
from revenue_kernel.models.estimate import EstimateModel


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def _json_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _fresh_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs() -> Iterator[Callable[[], list[dict]]]:
    """
    Collect every revenue_kernel record emitted during the test.

    Returns a callable giving the records seen so far, each parsed from
    its JSON line:

        summarize(estimates, 2025)
        assert any(r["message"] == "revenue_summary_computed" for r in captured_logs())
    """
    buffer = StringIO()
    sink = logging.StreamHandler(buffer)
    sink.setFormatter(StructuredFormatter())
    kernel_logger = logging.getLogger("revenue_kernel")
    saved_level = kernel_logger.level
    kernel_logger.setLevel(logging.DEBUG)
    kernel_logger.addHandler(sink)

    yield lambda: [json.loads(line) for line in buffer.getvalue().splitlines() if line]

    kernel_logger.removeHandler(sink)
    kernel_logger.setLevel(saved_level)


# -----------------------------------------------------------------------------
# Record factories
# -----------------------------------------------------------------------------


@pytest.fixture
def make_estimate():
    """Factory for Estimate records with a unique id per call."""
    counter = {"n": 0}

    def _make(**fields) -> Estimate:
        counter["n"] += 1
        fields.setdefault("id", f"est-{counter['n']}")
        return Estimate(**fields)

    return _make


@pytest.fixture
def make_account():
    def _make(account_id: str, **fields) -> Account:
        return Account(id=account_id, **fields)

    return _make


@pytest.fixture
def win_rate_estimates(make_estimate) -> list[Estimate]:
    """Two 2025 estimates: one won at $100,000, one lost at $50,000."""
    return [
        make_estimate(
            account_id="acct-1",
            total_price_with_tax=100000,
            status="won",
            estimate_date="2025-03-01",
            division="LE Landscapes",
        ),
        make_estimate(
            account_id="acct-2",
            total_price_with_tax=50000,
            status="lost",
            estimate_date="2025-04-15",
            division="Snow",
        ),
    ]


@pytest.fixture
def segment_portfolio(make_estimate, make_account) -> tuple[list[Account], list[Estimate]]:
    """
    2025 portfolio totalling $1,000,000 of won revenue:
    big=150,000 (15%), mid=50,000 (5%), small=800,000, zero=0.
    """
    accounts = [
        make_account("big", name="Big Co"),
        make_account("mid", name="Mid Co"),
        make_account("small", name="Rest Co"),
        make_account("zero", name="Zero Co"),
    ]
    estimates = [
        make_estimate(account_id="big", total_price_with_tax=150000, status="won",
                      estimate_date="2025-02-01", estimate_type="Service"),
        make_estimate(account_id="mid", total_price_with_tax=50000, status="won",
                      estimate_date="2025-02-01", estimate_type="Service"),
        make_estimate(account_id="small", total_price_with_tax=800000, status="won",
                      estimate_date="2025-02-01", estimate_type="Service"),
        make_estimate(account_id="zero", total_price_with_tax=40000, status="lost",
                      estimate_date="2025-02-01", estimate_type="Service"),
    ]
    return accounts, estimates


# -----------------------------------------------------------------------------
# Database fixtures (in-memory SQLite)
# -----------------------------------------------------------------------------


@pytest.fixture
def session() -> Iterator[Session]:
    """Fresh in-memory database with all tables, one session per test."""
    init_engine_from_url("sqlite://")
    create_tables()
    db_session = get_session()
    try:
        yield db_session
    finally:
        db_session.rollback()
        db_session.close()
        drop_tables()
        reset_engine()


@pytest.fixture
def seeded_session(session) -> Session:
    """Session holding the 2024/2025 reference portfolio."""
    session.add_all([
        AccountModel(id="acct-a", name="Alpha Property"),
        AccountModel(id="acct-b", name="Beta Holdings"),
        AccountModel(id="acct-c", name="Gamma Retail"),
        AccountModel(id="acct-x", name="Archived Ltd", archived=True),
    ])
    session.flush()
    session.add_all([
        EstimateModel(
            id="e-1", account_id="acct-a", total_price_with_tax=120000,
            status="Contract Signed", contract_start="2024-07-01", contract_end="2025-06-30",
            division="LE Maintenance (Summer/Winter)", estimate_type="Service",
            lmn_estimate_id="LMN-1",
        ),
        EstimateModel(
            id="e-2", account_id="acct-b", total_price_with_tax=30000,
            pipeline_status="Sold", estimate_date="2025-05-10",
            division="Snow", estimate_type="Service", lmn_estimate_id="LMN-2",
        ),
        EstimateModel(
            id="e-3", account_id="acct-c", total_price_with_tax=20000,
            pipeline_status="Lost", estimate_date="2025-08-01",
            division="LE Paving", estimate_type="Standard", lmn_estimate_id="LMN-3",
        ),
        EstimateModel(
            id="e-4", account_id="acct-c", total_price_with_tax=10000,
            status="won", estimate_date="2025-09-01",
            division="LE Paving", estimate_type="Standard", lmn_estimate_id="LMN-4",
        ),
        EstimateModel(
            id="e-5", account_id="acct-x", total_price_with_tax=999999,
            status="won", estimate_date="2025-01-01", archived=True,
        ),
    ])
    session.flush()
    return session
