"""
ORM-level append-only enforcement.

===============================================================================
WHAT IS PROTECTED
===============================================================================

Entity            | Immutable when         | Why
------------------|------------------------|-----------------------------------
SubmissionEntry   | ALWAYS (from creation) | Audit log of every submission

Current results (ProgressModel) are deliberately NOT protected: they are
overwritten in place by every submission and rollup.

Listeners raise ImmutabilityViolationError from ``before_update`` and
``before_delete`` mapper events, so the offending flush fails and the
caller's transaction must be rolled back.
===============================================================================
"""

from sqlalchemy import event

from kpi_kernel.exceptions import ImmutabilityViolationError
from kpi_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_submission_entry_update(mapper, connection, target):
    """Prevent any updates to SubmissionEntry records."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "SubmissionEntry",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="SubmissionEntry",
        entity_id=str(target.id),
        reason="Submission entries are immutable and cannot be modified",
    )


def _check_submission_entry_delete(mapper, connection, target):
    """Prevent deletion of SubmissionEntry records."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "SubmissionEntry",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="SubmissionEntry",
        entity_id=str(target.id),
        reason="Submission entries cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register all append-only enforcement listeners.

    Call during application initialization, after models are imported and
    before any database operations begin.  Safe to call more than once.
    """
    from kpi_kernel.models.submission_entry import SubmissionEntryModel

    if not event.contains(SubmissionEntryModel, "before_update", _check_submission_entry_update):
        event.listen(SubmissionEntryModel, "before_update", _check_submission_entry_update)
    if not event.contains(SubmissionEntryModel, "before_delete", _check_submission_entry_delete):
        event.listen(SubmissionEntryModel, "before_delete", _check_submission_entry_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove append-only enforcement listeners.

    WARNING: Only use this in tests.
    """
    from kpi_kernel.models.submission_entry import SubmissionEntryModel

    _safe_remove_listener(SubmissionEntryModel, "before_update", _check_submission_entry_update)
    _safe_remove_listener(SubmissionEntryModel, "before_delete", _check_submission_entry_delete)
