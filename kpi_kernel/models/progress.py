"""
Module: kpi_kernel.models.progress
Responsibility: ORM persistence for current results -- the single latest
    value per (kpi, period type, period key).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - uq_progress_key: at most one row per (kpi_id, period_type, period_key).
      A racing second insert fails at flush instead of creating a duplicate.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from kpi_kernel.db.base import TrackedBase, UUIDString


class ProgressModel(TrackedBase):
    """Current result of one KPI period (overwritten in place)."""

    __tablename__ = "progress"

    __table_args__ = (
        UniqueConstraint("kpi_id", "period_type", "period_key", name="uq_progress_key"),
        Index("idx_progress_kpi_type", "kpi_id", "period_type"),
    )

    kpi_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("kpis.id", ondelete="CASCADE"),
        nullable=False,
    )

    # daily | weekly | monthly | weekly-target-override | monthly-target-override
    period_type: Mapped[str] = mapped_column(String(32), nullable=False)

    # YYYY-MM-DD | YYYY-Www | YYYY-MM
    period_key: Mapped[str] = mapped_column(String(10), nullable=False)

    delivered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Decimal as text; meaning depends on the KPI unit
    value: Mapped[str] = mapped_column(String(64), default="", nullable=False)

    comment: Mapped[str] = mapped_column(Text, default="", nullable=False)

    def __repr__(self) -> str:
        return f"<ProgressModel {self.kpi_id}-{self.period_type}-{self.period_key}>"
