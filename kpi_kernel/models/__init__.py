"""ORM models for the KPI kernel."""

from kpi_kernel.models.kpi import KpiModel
from kpi_kernel.models.progress import ProgressModel
from kpi_kernel.models.submission_entry import SubmissionEntryModel

__all__ = [
    "KpiModel",
    "ProgressModel",
    "SubmissionEntryModel",
]
