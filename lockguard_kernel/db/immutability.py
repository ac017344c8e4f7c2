"""
ORM-Level Immutability Enforcement for the violation log.

===============================================================================
WHY THIS EXISTS
===============================================================================

The violation log is an audit trail.  Once the enforcement gate has recorded
a blocked attempt, nothing in the application may rewrite or erase it.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _check_violation_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_violation_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

If a check fails the flush is aborted and the database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                  | When Immutable          | Why
------------------------|-------------------------|------------------------------
LockedPeriodViolation   | ALWAYS (from creation)  | Audit trail of blocked writes

Usage:
    from lockguard_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup
"""

from sqlalchemy import event

from lockguard_kernel.exceptions import ImmutabilityViolationError
from lockguard_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_violation_immutability(mapper, connection, target):
    """Prevent any updates to LockedPeriodViolation records."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LockedPeriodViolation",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LockedPeriodViolation",
        entity_id=str(target.id),
        reason="Violation records are append-only and cannot be modified",
    )


def _check_violation_delete(mapper, connection, target):
    """Prevent deletion of LockedPeriodViolation records."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LockedPeriodViolation",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LockedPeriodViolation",
        entity_id=str(target.id),
        reason="Violation records cannot be deleted",
    )


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already attached are not attached twice.
    """
    from lockguard_kernel.models.violation import LockedPeriodViolation

    if not event.contains(
        LockedPeriodViolation, "before_update", _check_violation_immutability
    ):
        event.listen(
            LockedPeriodViolation, "before_update", _check_violation_immutability
        )
    if not event.contains(
        LockedPeriodViolation, "before_delete", _check_violation_delete
    ):
        event.listen(LockedPeriodViolation, "before_delete", _check_violation_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests.
    """
    from lockguard_kernel.models.violation import LockedPeriodViolation

    _safe_remove_listener(
        LockedPeriodViolation, "before_update", _check_violation_immutability
    )
    _safe_remove_listener(LockedPeriodViolation, "before_delete", _check_violation_delete)
