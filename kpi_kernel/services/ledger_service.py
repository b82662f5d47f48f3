"""
ProgressLedgerService -- SQL implementation of the ProgressLedger.

Responsibility:
    Stores the single current result per (kpi, period type, period key)
    and appends to the immutable submission log.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only; the caller owns the
    transaction.

Invariants enforced:
    - One row per key: ``upsert`` updates the existing row when present;
      the uq_progress_key constraint turns a racing duplicate insert into
      ``ConcurrentSubmissionError`` instead of a second row.
    - Log rows are only ever inserted.

Failure modes:
    - ConcurrentSubmissionError: another session inserted the same key
      between our read and our flush.  The session has been rolled back;
      the caller may retry the whole submission.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kpi_kernel.domain.dtos import PeriodType, ProgressStatus, SubmissionEntryRecord
from kpi_kernel.domain.ledger import ProgressLedger
from kpi_kernel.exceptions import ConcurrentSubmissionError
from kpi_kernel.logging_config import get_logger
from kpi_kernel.models.progress import ProgressModel
from kpi_kernel.models.submission_entry import SubmissionEntryModel
from kpi_kernel.services.base import BaseService

logger = get_logger("services.ledger")


class ProgressLedgerService(BaseService[ProgressModel], ProgressLedger):
    """Current results and submission log backed by SQLAlchemy."""

    def __init__(self, session: Session):
        super().__init__(session)

    def _get_row(
        self,
        kpi_id: UUID,
        period_type: PeriodType,
        period_key: str,
        for_update: bool = False,
    ) -> ProgressModel | None:
        stmt = select(ProgressModel).where(
            ProgressModel.kpi_id == kpi_id,
            ProgressModel.period_type == period_type.value,
            ProgressModel.period_key == period_key,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def get(self, kpi_id: UUID, period_type: PeriodType, period_key: str) -> ProgressStatus | None:
        row = self._get_row(kpi_id, period_type, period_key)
        return ProgressStatus.from_model(row) if row else None

    def upsert(
        self,
        kpi_id: UUID,
        period_type: PeriodType,
        period_key: str,
        status: ProgressStatus,
    ) -> None:
        """
        Create or overwrite the current result for a key.

        Postconditions:
            - Exactly one row exists for the key, holding ``status``.

        Raises:
            ConcurrentSubmissionError: If a concurrent insert won the race.
        """
        row = self._get_row(kpi_id, period_type, period_key, for_update=True)
        created = row is None
        if created:
            row = ProgressModel(
                kpi_id=kpi_id,
                period_type=period_type.value,
                period_key=period_key,
            )
            self.session.add(row)

        row.delivered = status.delivered
        row.value = status.value
        row.comment = status.comment

        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            logger.warning(
                "concurrent_progress_insert_conflict",
                extra={
                    "kpi_id": str(kpi_id),
                    "period_type": period_type.value,
                    "period_key": period_key,
                },
            )
            raise ConcurrentSubmissionError(str(kpi_id), period_type.value, period_key)

        logger.debug(
            "progress_created" if created else "progress_updated",
            extra={
                "period_type": period_type.value,
                "period_key": period_key,
                "delivered": status.delivered,
            },
        )

    def list_by_kpi_and_type(
        self, kpi_id: UUID, period_type: PeriodType
    ) -> list[tuple[str, ProgressStatus]]:
        rows = self.session.execute(
            select(ProgressModel)
            .where(
                ProgressModel.kpi_id == kpi_id,
                ProgressModel.period_type == period_type.value,
            )
            .order_by(ProgressModel.period_key)
        ).scalars()
        return [(row.period_key, ProgressStatus.from_model(row)) for row in rows]

    def append_entry(self, entry: SubmissionEntryRecord) -> None:
        self.session.add(
            SubmissionEntryModel(
                kpi_id=entry.kpi_id,
                period_type=entry.period_type.value,
                period_key=entry.period_key,
                delivered=entry.delivered,
                value=entry.value,
                comment=entry.comment,
                start_date=entry.start_date,
                end_date=entry.end_date,
                due_date=entry.due_date,
                submitted_at=entry.submitted_at,
                submitted_by=entry.submitted_by,
            )
        )
        self.session.flush()
