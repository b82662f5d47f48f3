"""
Module: kpi_kernel.models.submission_entry
Responsibility: ORM persistence for the append-only submission log.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Rows are immutable from creation: UPDATE and DELETE are rejected by
      the listeners in db/immutability.py.
    - The log is never read back to rebuild current results.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kpi_kernel.db.base import Base, UUIDString


class SubmissionEntryModel(Base):
    """One act of submission, exactly as it was written."""

    __tablename__ = "submission_entries"

    __table_args__ = (
        Index("idx_submission_kpi", "kpi_id", "submitted_at"),
        Index("idx_submission_period", "kpi_id", "period_type", "period_key"),
    )

    # No FK: the log outlives deleted KPIs
    kpi_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    period_type: Mapped[str] = mapped_column(String(32), nullable=False)

    period_key: Mapped[str] = mapped_column(String(10), nullable=False)

    delivered: Mapped[bool] = mapped_column(Boolean, nullable=False)

    value: Mapped[str] = mapped_column(String(64), default="", nullable=False)

    comment: Mapped[str] = mapped_column(Text, default="", nullable=False)

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    submitted_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<SubmissionEntryModel {self.kpi_id}-{self.period_type}-"
            f"{self.period_key} at {self.submitted_at}>"
        )
