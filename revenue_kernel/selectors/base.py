"""
Module: revenue_kernel.selectors.base
Responsibility:
    Common base for selectors, the read side of the CRM database.

Architecture position:
    Kernel > Selectors. Reads revenue_kernel.models through a caller-owned
    Session and hands back frozen domain records.

Invariants enforced:
    - Selectors only query: no add, delete, flush or commit. Writes go
      through revenue_services (e.g. PortfolioSegmentationService).
    - ORM instances never leave a selector.
"""

from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from revenue_kernel.db.base import Base

RowT = TypeVar("RowT", bound=Base)


class BaseSelector(Generic[RowT]):
    """Holds the caller's session; subclasses add the queries."""

    def __init__(self, session: Session):
        self.session = session
