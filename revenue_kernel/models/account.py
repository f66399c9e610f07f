"""
Module: revenue_kernel.models.account
Responsibility: ORM persistence for customer accounts and their cached
    revenue-derived fields.
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants enforced:
    - revenue_segment is one of A/B/C/D or NULL (never computed here; the
      segmentation service writes it).
    - The per-year caches are JSON objects keyed by year string. Writers
      assign a new dict instead of mutating in place so the change is
      flushed.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from revenue_kernel.db.base import ID_LENGTH, TrackedBase


class AccountModel(TrackedBase):
    """
    Customer account row.

    Non-goals:
        - Does not recompute its caches on write; see
          revenue_services.portfolio_service.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        Index("idx_account_segment", "revenue_segment"),
        Index("idx_account_archived", "archived"),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Manually entered revenue; only used as an explicit override
    annual_revenue: Mapped[Decimal | None] = mapped_column(nullable=True)

    revenue_segment: Mapped[str | None] = mapped_column(String(1), nullable=True)

    total_estimates_by_year: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    revenue_by_year: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    segment_by_year: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )

    icp_status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<AccountModel {self.id}: {self.name} ({self.revenue_segment})>"
