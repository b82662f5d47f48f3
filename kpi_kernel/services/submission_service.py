"""
ProgressSubmissionService -- caller-facing entry point for progress writes.

Responsibility:
    Validates a submission against the KPI, its period window and the
    caller's rights, then writes the current result, appends the audit
    entry and refreshes the monthly rollup, all in one transaction.  Also
    answers the caller-facing period status read.

Architecture position:
    Kernel > Services -- imperative shell, owns transaction boundaries.
    Delegates to PeriodCalculator (windows), KpiService (definitions),
    ProgressLedgerService (storage) and AggregationService (rollups).

Submission flow:
    submit_progress(kpi_id, period_type, delivered, value, comment, ...)
      1. Required fields present
      2. KPI exists (KpiService)
      3. Period type known and tracked by the KPI
      4. Period key well formed (derived from today when omitted)
      5. Caller may write: owner, or privileged for overrides/unassigned
      6. Period started and deadline not passed (non-privileged only)
      7. Upsert current result + append audit entry (ProgressLedger)
      8. Recompute the month when the entry feeds a rollup
      9. Commit or rollback

Invariants enforced:
    - Reject-then-write: every check in steps 1-6 runs before any write.
    - Transaction boundaries: commit on ACCEPTED, rollback on an
      unexpected exception (when auto_commit=True).  Rejections write
      nothing, so there is nothing to roll back.

Failure modes:
    - VALIDATION_FAILED: unknown KPI, bad key, untracked period type,
      missing field, period not started.
    - PERMISSION_DENIED: not the owner, or a privileged-only operation.
    - DEADLINE_PASSED: non-privileged submission after the due date.
    - ConcurrentSubmissionError is raised, not returned; the session has
      already been rolled back and the caller may retry.

Audit relevance:
    Every invocation is logged with correlation_id, kpi_id, actor_id and
    timing.  Accepted submissions leave one immutable SubmissionEntry,
    plus one for the rollup when a month was recomputed.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from uuid import UUID
from uuid import uuid4 as _uuid4

from sqlalchemy.orm import Session

from kpi_kernel.domain.clock import CalendarClock
from kpi_kernel.domain.dtos import (
    EntryWindow,
    Kpi,
    MonthlyRollup,
    Period,
    PeriodType,
    ProgressKey,
    ProgressStatus,
    SubmissionEntryRecord,
)
from kpi_kernel.domain.holidays import HolidayOracle
from kpi_kernel.domain.period_keys import is_valid_key
from kpi_kernel.domain.periods import MAX_HOLIDAY_SHIFTS, PeriodCalculator
from kpi_kernel.domain.values import normalize_value_input
from kpi_kernel.exceptions import (
    DeadlineError,
    InvalidPeriodKeyError,
    KpiKernelError,
    MissingFieldError,
    NotKpiOwnerError,
    PeriodNotStartedError,
    PermissionDeniedError,
    PrivilegeRequiredError,
    SubmissionValidationError,
    UnsupportedPeriodTypeError,
)
from kpi_kernel.logging_config import LogContext, get_logger
from kpi_kernel.services.aggregation_service import AggregationService
from kpi_kernel.services.kpi_service import KpiService
from kpi_kernel.services.ledger_service import ProgressLedgerService

logger = get_logger("services.submission")


class SubmissionStatus(str, Enum):
    """Status of a progress submission."""

    ACCEPTED = "accepted"
    VALIDATION_FAILED = "validation_failed"
    PERMISSION_DENIED = "permission_denied"
    DEADLINE_PASSED = "deadline_passed"


@dataclass(frozen=True)
class SubmissionResult:
    """Result of a progress submission."""

    status: SubmissionStatus
    kpi_id: UUID | None
    period_type: PeriodType | None = None
    period_key: str | None = None
    progress: ProgressStatus | None = None
    rollup: MonthlyRollup | None = None
    error_code: str | None = None
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status is SubmissionStatus.ACCEPTED

    @property
    def progress_key(self) -> ProgressKey | None:
        if self.kpi_id is None or self.period_type is None or self.period_key is None:
            return None
        return ProgressKey(self.kpi_id, self.period_type, self.period_key)

    @classmethod
    def rejected(
        cls,
        status: SubmissionStatus,
        kpi_id: UUID | None,
        error: KpiKernelError,
        period_type: PeriodType | None = None,
        period_key: str | None = None,
    ) -> SubmissionResult:
        return cls(
            status=status,
            kpi_id=kpi_id,
            period_type=period_type,
            period_key=period_key,
            error_code=error.code,
            message=str(error),
        )


@dataclass(frozen=True)
class PeriodWindowView:
    """Current period of one granularity as shown to a caller."""

    period_key: str
    start_date: date
    end_date: date
    due_date: date | None
    window: EntryWindow

    @property
    def entry_open(self) -> bool:
        return self.window.is_open

    def as_dict(self) -> dict[str, object]:
        return {
            "period_key": self.period_key,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "entry_open": self.entry_open,
            "reason": self.window.reason,
        }


@dataclass(frozen=True)
class PeriodStatusView:
    weekly: PeriodWindowView
    monthly: PeriodWindowView

    def as_dict(self) -> dict[str, object]:
        return {"weekly": self.weekly.as_dict(), "monthly": self.monthly.as_dict()}


@dataclass(frozen=True)
class ValidatedSubmission:
    """A submission that passed every check and may be written."""

    kpi: Kpi
    period_type: PeriodType
    period_key: str
    period: Period


class ProgressSubmissionService:
    """
    Validates and records progress submissions.

    Contract:
        ``submit_progress`` either returns ACCEPTED after writing, or a
        rejected ``SubmissionResult`` after writing nothing.  Unexpected
        exceptions are re-raised after rollback.

    Usage:
        service = ProgressSubmissionService(session, CalendarClock(clock))
        result = service.submit_progress(kpi_id, "weekly", True, "2", "", actor_id)
    """

    def __init__(
        self,
        session: Session,
        calendar_clock: CalendarClock | None = None,
        holidays: HolidayOracle | None = None,
        max_holiday_shifts: int = MAX_HOLIDAY_SHIFTS,
        auto_commit: bool = True,
    ):
        self._session = session
        self._calendar = calendar_clock or CalendarClock()
        self._auto_commit = auto_commit

        self._periods = PeriodCalculator(self._calendar, holidays, max_holiday_shifts)
        self._kpis = KpiService(session)
        self._ledger = ProgressLedgerService(session)
        self._aggregation = AggregationService(
            self._ledger, self._periods, self._calendar.clock
        )

    @property
    def periods(self) -> PeriodCalculator:
        return self._periods

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def submit_progress(
        self,
        kpi_id: UUID | None,
        period_type: PeriodType | str | None,
        delivered: bool | None,
        value: object = "",
        comment: str | None = "",
        actor_id: UUID | None = None,
        caller_is_privileged: bool = False,
        period_key: str | None = None,
    ) -> SubmissionResult:
        """
        Record a result for one KPI period.

        Preconditions:
            - ``period_key`` is None (use the current period) or a key in
              the format of ``period_type``.

        Postconditions:
            - On ACCEPTED the session is committed (when auto_commit=True)
              and exactly one current result exists for the key.
            - On any other status nothing was written.

        Raises:
            ConcurrentSubmissionError: A concurrent insert won the race.
            Exception: Re-raises any unexpected exception after rollback.
        """
        correlation_id = str(_uuid4())
        type_label = period_type.value if isinstance(period_type, PeriodType) else period_type
        with LogContext.bind(
            correlation_id=correlation_id,
            actor_id=str(actor_id) if actor_id else None,
            kpi_id=str(kpi_id) if kpi_id else None,
            period_type=type_label or None,
            period_key=period_key,
        ):
            logger.info(
                "progress_submission_started",
                extra={
                    "delivered": delivered,
                    "privileged": caller_is_privileged,
                    "explicit_key": period_key is not None,
                },
            )
            t0 = time.monotonic()

            try:
                result = self._do_submit(
                    kpi_id=kpi_id,
                    period_type=period_type,
                    delivered=delivered,
                    value=value,
                    comment=comment,
                    actor_id=actor_id,
                    caller_is_privileged=caller_is_privileged,
                    period_key=period_key,
                )

                if self._auto_commit and result.is_success:
                    self._session.commit()

                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                logger.info(
                    "progress_submission_completed",
                    extra={
                        "status": result.status.value,
                        "resolved_period_key": result.period_key,
                        "rolled_up": result.rollup is not None,
                        "duration_ms": duration_ms,
                    },
                )
                return result

            except Exception:
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                if self._auto_commit:
                    self._session.rollback()
                logger.error(
                    "progress_submission_failed",
                    extra={"duration_ms": duration_ms},
                    exc_info=True,
                )
                raise

    def _do_submit(
        self,
        kpi_id: UUID | None,
        period_type: PeriodType | str | None,
        delivered: bool | None,
        value: object,
        comment: str | None,
        actor_id: UUID | None,
        caller_is_privileged: bool,
        period_key: str | None,
    ) -> SubmissionResult:
        """Internal submission logic (without transaction management)."""
        try:
            validated = self.validate_submission(
                kpi_id=kpi_id,
                period_type=period_type,
                delivered=delivered,
                actor_id=actor_id,
                caller_is_privileged=caller_is_privileged,
                period_key=period_key,
            )
        except SubmissionValidationError as e:
            return self._reject(SubmissionStatus.VALIDATION_FAILED, kpi_id, period_key, e)
        except PermissionDeniedError as e:
            return self._reject(SubmissionStatus.PERMISSION_DENIED, kpi_id, period_key, e)
        except DeadlineError as e:
            return self._reject(SubmissionStatus.DEADLINE_PASSED, kpi_id, period_key, e)

        kpi = validated.kpi
        status = ProgressStatus(
            delivered=bool(delivered),
            value=normalize_value_input(value, kpi.unit_type),
            comment=comment or "",
        )

        self._ledger.upsert(kpi.id, validated.period_type, validated.period_key, status)
        self._ledger.append_entry(
            SubmissionEntryRecord(
                kpi_id=kpi.id,
                period_type=validated.period_type,
                period_key=validated.period_key,
                delivered=status.delivered,
                value=status.value,
                comment=status.comment,
                start_date=validated.period.start_date,
                end_date=validated.period.end_date,
                due_date=validated.period.due_date,
                submitted_at=self._calendar.clock.now_utc(),
                submitted_by=actor_id,
            )
        )

        rollup = self._aggregation.recompute_after_write(
            kpi, validated.period_type, validated.period_key, actor_id
        )

        return SubmissionResult(
            status=SubmissionStatus.ACCEPTED,
            kpi_id=kpi.id,
            period_type=validated.period_type,
            period_key=validated.period_key,
            progress=status,
            rollup=rollup,
        )

    def _reject(
        self,
        status: SubmissionStatus,
        kpi_id: UUID | None,
        period_key: str | None,
        error: KpiKernelError,
    ) -> SubmissionResult:
        logger.warning(
            "progress_submission_rejected",
            extra={"status": status.value, "error_code": error.code},
        )
        return SubmissionResult.rejected(status, kpi_id, error, period_key=period_key)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_submission(
        self,
        kpi_id: UUID | None,
        period_type: PeriodType | str | None,
        delivered: bool | None,
        actor_id: UUID | None,
        caller_is_privileged: bool,
        period_key: str | None = None,
    ) -> ValidatedSubmission:
        """
        Run every pre-write check.

        Raises:
            SubmissionValidationError: Malformed or unknown input.
            PermissionDeniedError: The caller may not write this period.
            DeadlineError: The period's due date has passed.
        """
        if kpi_id is None:
            raise MissingFieldError("kpi_id")
        if period_type is None or period_type == "":
            raise MissingFieldError("period_type")
        if delivered is None:
            raise MissingFieldError("delivered")

        kpi = self._kpis.require_kpi(kpi_id)

        try:
            resolved_type = PeriodType(period_type)
        except ValueError:
            raise UnsupportedPeriodTypeError(
                str(kpi.id), str(period_type), kpi.periodicity.value
            )
        if not kpi.tracks(resolved_type):
            raise UnsupportedPeriodTypeError(
                str(kpi.id), resolved_type.value, kpi.periodicity.value
            )

        if period_key is None:
            resolved_key = self._periods.current_key(resolved_type)
        else:
            resolved_key = period_key.strip()
            if not is_valid_key(resolved_type, resolved_key):
                raise InvalidPeriodKeyError(resolved_type.value, period_key)

        period = self._periods.period_for_key(resolved_type, resolved_key)
        if period is None:
            raise InvalidPeriodKeyError(resolved_type.value, resolved_key)

        if resolved_type.is_target_override and not caller_is_privileged:
            raise PrivilegeRequiredError("set a period target override")
        if not caller_is_privileged:
            # Unassigned KPIs are writable by privileged callers only
            if actor_id is None or kpi.owner_id != actor_id:
                raise NotKpiOwnerError(str(kpi.id), str(actor_id))

            if period.start_date > self._periods.today():
                raise PeriodNotStartedError(resolved_key, period.start_date.isoformat())

            if resolved_type.is_deadline_gated:
                window = self._periods.entry_window(period, caller_is_privileged)
                if not window.is_open:
                    raise DeadlineError(
                        resolved_type.value,
                        resolved_key,
                        period.due_date.isoformat() if period.due_date else "",
                    )

        return ValidatedSubmission(
            kpi=kpi,
            period_type=resolved_type,
            period_key=resolved_key,
            period=period,
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_period_status(self, caller_is_privileged: bool = False) -> PeriodStatusView:
        """Current weekly and monthly windows and whether they accept entries."""
        return build_period_status(self._periods, caller_is_privileged)


def _window_view(
    periods: PeriodCalculator, period_type: PeriodType, caller_is_privileged: bool
) -> PeriodWindowView:
    period = periods.current_period(period_type)
    return PeriodWindowView(
        period_key=periods.current_key(period_type),
        start_date=period.start_date,
        end_date=period.end_date,
        due_date=period.due_date,
        window=periods.entry_window(period, caller_is_privileged),
    )


def build_period_status(
    periods: PeriodCalculator, caller_is_privileged: bool = False
) -> PeriodStatusView:
    """Status view of the current periods; needs no database session."""
    return PeriodStatusView(
        weekly=_window_view(periods, PeriodType.WEEKLY, caller_is_privileged),
        monthly=_window_view(periods, PeriodType.MONTHLY, caller_is_privileged),
    )
