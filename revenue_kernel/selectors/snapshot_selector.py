"""
Module: revenue_kernel.selectors.snapshot_selector
Responsibility: Read accounts and estimates from the database into a frozen
    ``Snapshot`` the engines can evaluate.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only; the returned snapshot shares no state with the session.
    - Archived rows are included; the engines apply archival exclusion so
      the rule lives in one place.
    - Deterministic ordering by id.
"""

from collections.abc import Iterable

from sqlalchemy import select

from revenue_kernel.domain.records import Account, Estimate, Snapshot
from revenue_kernel.domain.values import IcpStatus, RevenueSegment
from revenue_kernel.models.account import AccountModel
from revenue_kernel.models.estimate import EstimateModel
from revenue_kernel.selectors.base import BaseSelector


class SnapshotSelector(BaseSelector[AccountModel]):
    """Builds engine snapshots from AccountModel and EstimateModel rows."""

    def load_snapshot(self, account_ids: Iterable[str] | None = None) -> Snapshot:
        """
        Load accounts and their estimates.

        Args:
            account_ids: Restrict to these accounts (and their estimates).
                None loads every account and every estimate, including
                estimates with no account.
        """
        account_query = select(AccountModel).order_by(AccountModel.id)
        estimate_query = select(EstimateModel).order_by(EstimateModel.id)
        if account_ids is not None:
            ids = list(account_ids)
            account_query = account_query.where(AccountModel.id.in_(ids))
            estimate_query = estimate_query.where(EstimateModel.account_id.in_(ids))

        accounts = tuple(
            self._account_to_record(row)
            for row in self.session.scalars(account_query)
        )
        estimates = tuple(
            self._estimate_to_record(row)
            for row in self.session.scalars(estimate_query)
        )
        return Snapshot(accounts=accounts, estimates=estimates)

    def load_account(self, account_id: str) -> Account | None:
        row = self.session.get(AccountModel, account_id)
        return self._account_to_record(row) if row is not None else None

    @staticmethod
    def _account_to_record(row: AccountModel) -> Account:
        return Account(
            id=row.id,
            name=row.name,
            annual_revenue=row.annual_revenue,
            revenue_segment=RevenueSegment(row.revenue_segment) if row.revenue_segment else None,
            total_estimates_by_year=dict(row.total_estimates_by_year or {}),
            revenue_by_year=dict(row.revenue_by_year or {}),
            segment_by_year=dict(row.segment_by_year or {}),
            icp_status=IcpStatus(row.icp_status) if row.icp_status else None,
            archived=bool(row.archived),
        )

    @staticmethod
    def _estimate_to_record(row: EstimateModel) -> Estimate:
        return Estimate(
            id=row.id,
            account_id=row.account_id,
            total_price=row.total_price,
            total_price_with_tax=row.total_price_with_tax,
            status=row.status,
            pipeline_status=row.pipeline_status,
            contract_start=row.contract_start,
            contract_end=row.contract_end,
            estimate_date=row.estimate_date,
            created_date=row.created_date,
            division=row.division,
            archived=bool(row.archived),
            salesperson=row.salesperson,
            estimator=row.estimator,
            estimate_type=row.estimate_type,
            lmn_estimate_id=row.lmn_estimate_id,
        )
