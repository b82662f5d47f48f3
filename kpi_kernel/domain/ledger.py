"""
ProgressLedger -- the persistence interface the engine consumes.

The ledger keeps exactly one current result per
``(kpi_id, period_type, period_key)`` and an append-only submission log.
The engine only computes what to write and interprets what it reads;
implementations own storage (see ``kpi_kernel.services.ledger_service``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from kpi_kernel.domain.dtos import PeriodType, ProgressStatus, SubmissionEntryRecord


class ProgressLedger(ABC):
    """
    Key/value map of current results plus an append-only log.

    Guarantees required of implementations:
        - ``upsert`` overwrites an existing row for the key; it never
          creates a second row.
        - ``append_entry`` never modifies or removes earlier entries.
    """

    @abstractmethod
    def get(self, kpi_id: UUID, period_type: PeriodType, period_key: str) -> ProgressStatus | None:
        ...

    @abstractmethod
    def upsert(
        self,
        kpi_id: UUID,
        period_type: PeriodType,
        period_key: str,
        status: ProgressStatus,
    ) -> None:
        ...

    @abstractmethod
    def list_by_kpi_and_type(
        self, kpi_id: UUID, period_type: PeriodType
    ) -> list[tuple[str, ProgressStatus]]:
        ...

    @abstractmethod
    def append_entry(self, entry: SubmissionEntryRecord) -> None:
        ...
