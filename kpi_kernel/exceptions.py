"""
Typed Exception Hierarchy for the KPI Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Submission rejections reach an HTTP or CLI layer that must tell a staff
member *why* their result was refused. Parsing message strings for that is
fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        submission_service.validate(...)
    except DeadlineError as e:
        api_response(code=e.code, period=e.period_key, due=e.due_date)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    KpiKernelError (base)
    |
    +-- SubmissionValidationError
    |   +-- KpiNotFoundError
    |   +-- InvalidPeriodKeyError
    |   +-- UnsupportedPeriodTypeError
    |   +-- MissingFieldError
    |   +-- PeriodNotStartedError
    |   +-- InvalidKpiDefinitionError
    |
    +-- PermissionDeniedError
    |   +-- NotKpiOwnerError
    |   +-- PrivilegeRequiredError
    |
    +-- DeadlineError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentSubmissionError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                     | When Raised
-------------|--------------------------|----------------------------------------
Validation   | VALIDATION_ERROR         | Generic submission validation failure
             | KPI_NOT_FOUND            | KPI ID doesn't exist
             | INVALID_PERIOD_KEY       | Key doesn't match the period type format
             | UNSUPPORTED_PERIOD_TYPE  | KPI periodicity doesn't track this type
             | MISSING_FIELD            | Required field absent
             | PERIOD_NOT_STARTED       | Key names a period that hasn't begun
             | INVALID_KPI_DEFINITION   | Bad KPI registration (negative target)
-------------|--------------------------|----------------------------------------
Permission   | PERMISSION_DENIED        | Generic permission failure
             | NOT_KPI_OWNER            | Non-privileged caller doesn't own KPI
             | PRIVILEGE_REQUIRED       | Operation reserved to privileged callers
-------------|--------------------------|----------------------------------------
Deadline     | DEADLINE_PASSED          | today > due date, caller not privileged
-------------|--------------------------|----------------------------------------
Concurrency  | CONCURRENT_SUBMISSION    | Racing insert hit the unique key
-------------|--------------------------|----------------------------------------
Immutability | IMMUTABILITY_VIOLATION   | Update/delete of a submission log row

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY INHERIT FROM Exception (not ValueError, PermissionError, etc.)?
   Domain exceptions should be catchable as a group, and the builtin
   PermissionError is an OSError subclass with filesystem meaning.

2. WHY code CLASS ATTRIBUTE (not instance)?
   Codes are static per exception type, so DeadlineError.code is usable
   without instantiation (API docs, result mapping).

3. WHY STORE ALL CONTEXT AS ATTRIBUTES?
   The structured log formatter copies public exception attributes into
   ``exc_*`` fields; parsed message strings don't survive that.
===============================================================================
"""


class KpiKernelError(Exception):
    """
    Base exception for all KPI kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "KPI_KERNEL_ERROR"


# Validation exceptions


class SubmissionValidationError(KpiKernelError):
    """Base exception for rejected input (checked before any write)."""

    code: str = "VALIDATION_ERROR"


class KpiNotFoundError(SubmissionValidationError):
    """KPI with given ID was not found."""

    code: str = "KPI_NOT_FOUND"

    def __init__(self, kpi_id: str):
        self.kpi_id = kpi_id
        super().__init__(f"KPI not found: {kpi_id}")


class InvalidPeriodKeyError(SubmissionValidationError):
    """Period key does not match the format of its period type."""

    code: str = "INVALID_PERIOD_KEY"

    def __init__(self, period_type: str, period_key: str):
        self.period_type = period_type
        self.period_key = period_key
        super().__init__(
            f"Invalid period key {period_key!r} for period type {period_type}"
        )


class UnsupportedPeriodTypeError(SubmissionValidationError):
    """The KPI's periodicity does not track this period type."""

    code: str = "UNSUPPORTED_PERIOD_TYPE"

    def __init__(self, kpi_id: str, period_type: str, periodicity: str):
        self.kpi_id = kpi_id
        self.period_type = period_type
        self.periodicity = periodicity
        super().__init__(
            f"KPI {kpi_id} with periodicity {periodicity} "
            f"does not accept {period_type} entries"
        )


class MissingFieldError(SubmissionValidationError):
    """A required field was not supplied."""

    code: str = "MISSING_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Missing required field: {field_name}")


class PeriodNotStartedError(SubmissionValidationError):
    """Submission names a period that has not begun yet."""

    code: str = "PERIOD_NOT_STARTED"

    def __init__(self, period_key: str, start_date: str):
        self.period_key = period_key
        self.start_date = start_date
        super().__init__(
            f"Period {period_key} has not started yet (starts {start_date})"
        )


class InvalidKpiDefinitionError(SubmissionValidationError):
    """KPI registration data is inconsistent."""

    code: str = "INVALID_KPI_DEFINITION"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid KPI definition: {reason}")


# Permission exceptions


class PermissionDeniedError(KpiKernelError):
    """Base exception for caller permission failures."""

    code: str = "PERMISSION_DENIED"


class NotKpiOwnerError(PermissionDeniedError):
    """Non-privileged caller tried to submit for a KPI they don't own."""

    code: str = "NOT_KPI_OWNER"

    def __init__(self, kpi_id: str, actor_id: str):
        self.kpi_id = kpi_id
        self.actor_id = actor_id
        super().__init__(f"Actor {actor_id} does not own KPI {kpi_id}")


class PrivilegeRequiredError(PermissionDeniedError):
    """Operation is reserved to privileged callers."""

    code: str = "PRIVILEGE_REQUIRED"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Privileged caller required to {operation}")


# Deadline exceptions


class DeadlineError(KpiKernelError):
    """Non-privileged submission after the period's due date."""

    code: str = "DEADLINE_PASSED"

    def __init__(self, period_type: str, period_key: str, due_date: str):
        self.period_type = period_type
        self.period_key = period_key
        self.due_date = due_date
        super().__init__(
            f"The submission deadline has passed for {period_type} period "
            f"{period_key} (due {due_date})"
        )


# Concurrency exceptions


class ConcurrencyError(KpiKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentSubmissionError(ConcurrencyError):
    """Another caller created the same current-result row first."""

    code: str = "CONCURRENT_SUBMISSION"

    def __init__(self, kpi_id: str, period_type: str, period_key: str):
        self.kpi_id = kpi_id
        self.period_type = period_type
        self.period_key = period_key
        super().__init__(
            f"Concurrent submission for KPI {kpi_id} "
            f"{period_type} {period_key}; retry the request"
        )


# Immutability exceptions


class ImmutabilityViolationError(KpiKernelError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
