"""
Module: revenue_kernel.models.estimate
Responsibility: ORM persistence for sales estimates / contracts.
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants enforced:
    - Date columns hold the stored text (ISO or MM/DD/YYYY) exactly as
      imported; the engines parse them tolerantly.
    - Prices are Numeric, never float.
"""

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from revenue_kernel.db.base import ID_LENGTH, TrackedBase

DATE_TEXT_LENGTH = 40


class EstimateModel(TrackedBase):
    """Estimate row. ``account_id`` may be NULL for unmatched imports."""

    __tablename__ = "estimates"

    __table_args__ = (
        Index("idx_estimate_account", "account_id"),
        Index("idx_estimate_lmn_id", "lmn_estimate_id"),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)

    account_id: Mapped[str | None] = mapped_column(
        String(ID_LENGTH), ForeignKey("accounts.id"), nullable=True
    )

    total_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_price_with_tax: Mapped[Decimal | None] = mapped_column(nullable=True)

    status: Mapped[str | None] = mapped_column(String(100), nullable=True)
    pipeline_status: Mapped[str | None] = mapped_column(String(50), nullable=True)

    contract_start: Mapped[str | None] = mapped_column(String(DATE_TEXT_LENGTH), nullable=True)
    contract_end: Mapped[str | None] = mapped_column(String(DATE_TEXT_LENGTH), nullable=True)
    estimate_date: Mapped[str | None] = mapped_column(String(DATE_TEXT_LENGTH), nullable=True)
    created_date: Mapped[str | None] = mapped_column(String(DATE_TEXT_LENGTH), nullable=True)

    division: Mapped[str | None] = mapped_column(String(100), nullable=True)
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    salesperson: Mapped[str | None] = mapped_column(String(255), nullable=True)
    estimator: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # "Standard" (project) or "Service" (recurring)
    estimate_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    lmn_estimate_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    def __repr__(self) -> str:
        return f"<EstimateModel {self.id} account={self.account_id} status={self.status}>"
