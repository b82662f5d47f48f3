"""
Module: kpi_kernel.models.kpi
Responsibility: ORM persistence for KPI definitions.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - target_weekly is NULL unless periodicity includes weekly, and
      target_monthly is NULL unless it includes monthly (normalized by
      KpiService on every write).
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kpi_kernel.db.base import TrackedBase, UUIDString


class KpiModel(TrackedBase):
    """A tracked goal owned (optionally) by one staff member."""

    __tablename__ = "kpis"

    __table_args__ = (Index("idx_kpi_owner", "owner_id"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    # count | percentage | currency
    unit_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # weekly | monthly | weekly+monthly
    periodicity: Mapped[str] = mapped_column(String(20), nullable=False)

    target_weekly: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    target_monthly: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    owner_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<KpiModel {self.name}: {self.periodicity}>"
