"""
Module: revenue_kernel.db.base
Responsibility:
    Declarative base shared by the CRM models and the timestamp columns
    every table carries.

Architecture position:
    Kernel > DB. Imported by revenue_kernel.models; imports nothing from
    the kernel.

Invariants enforced:
    - ``Decimal`` annotations map to Numeric(18, 2); prices are never
      stored as floats.
    - Ids are opaque CRM strings of at most ``ID_LENGTH`` characters.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import DateTime, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

ID_LENGTH = 64


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
    }


class TrackedBase(Base):
    """Abstract model base with ``created_at`` / ``updated_at`` set by the database."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    # Bumped by segment and cache write-backs too.
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )
