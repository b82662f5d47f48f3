"""
Kernel services -- the imperative shell around the pure domain.

Every service here flushes and never commits, except
``ProgressSubmissionService``, which owns the transaction of a submission.
"""

from kpi_kernel.services.aggregation_service import AggregationService
from kpi_kernel.services.kpi_service import KpiService
from kpi_kernel.services.ledger_service import ProgressLedgerService
from kpi_kernel.services.submission_service import (
    PeriodStatusView,
    PeriodWindowView,
    ProgressSubmissionService,
    SubmissionResult,
    SubmissionStatus,
    build_period_status,
)

__all__ = [
    "AggregationService",
    "KpiService",
    "PeriodStatusView",
    "PeriodWindowView",
    "ProgressLedgerService",
    "ProgressSubmissionService",
    "SubmissionResult",
    "SubmissionStatus",
    "build_period_status",
]
