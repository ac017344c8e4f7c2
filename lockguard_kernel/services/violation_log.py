"""
ViolationLog -- append-only audit trail of blocked attempts.

Responsibility:
    Persists one ``LockedPeriodViolation`` row per ``ViolationRecord``
    handed over by the enforcement gate.

Architecture position:
    Kernel > Services -- imperative shell.
    ``ViolationLog`` flushes inside the caller's transaction.
    ``IsolatedViolationLog`` commits each append in its own short
    transaction so the audit row survives the caller rolling back the
    mutation it just aborted.  The enforcement gate is normally wired with
    the isolated variant.

Invariants enforced:
    - Append-only: rows are never updated or deleted (ORM listeners are
      registered on construction).
    - blocked=True on every row.

Failure modes:
    - ViolationLogWriteError wraps any persistence failure.  The
      enforcement gate catches it; it never changes a verdict.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from lockguard_kernel.db.immutability import register_immutability_listeners
from lockguard_kernel.domain.dtos import ViolationRecord
from lockguard_kernel.exceptions import ViolationLogWriteError
from lockguard_kernel.logging_config import get_logger
from lockguard_kernel.models.violation import LockedPeriodViolation
from lockguard_kernel.services.base import BaseService

logger = get_logger("services.violation_log")


@runtime_checkable
class ViolationSink(Protocol):
    """Anything the enforcement gate can append violation records to."""

    def append(self, record: ViolationRecord) -> UUID: ...


class ViolationLog(BaseService[LockedPeriodViolation]):
    """Flush-only violation log bound to the caller's session."""

    def __init__(self, session: Session):
        super().__init__(session)
        register_immutability_listeners()

    def append(self, record: ViolationRecord) -> UUID:
        """
        Insert one violation row.

        Returns:
            The new row id.

        Raises:
            ViolationLogWriteError: If the insert cannot be flushed.
        """
        row = LockedPeriodViolation(
            user_id=record.user_id,
            entity_type=record.entity_type,
            entity_id=record.entity_id,
            attempted_date=record.attempted_date,
            locked_period_date=record.locked_period_date,
            action=record.action.value,
            blocked=True,
            details=dict(record.details),
        )
        try:
            self.session.add(row)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise ViolationLogWriteError(
                entity_type=record.entity_type,
                attempted_date=str(record.attempted_date),
                cause=str(exc),
            ) from exc

        logger.info(
            "violation_recorded",
            extra={
                "violation_id": str(row.id),
                "entity_type": record.entity_type,
                "entity_id": record.entity_id,
                "attempted_date": str(record.attempted_date),
                "action": record.action.value,
                "reason": record.details.get("reason"),
            },
        )
        return row.id


class IsolatedViolationLog:
    """Violation log that commits every append in its own transaction."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory
        register_immutability_listeners()

    def append(self, record: ViolationRecord) -> UUID:
        """
        Insert and commit one violation row.

        Raises:
            ViolationLogWriteError: If the insert or commit fails.
        """
        session = self._session_factory()
        try:
            row_id = ViolationLog(session).append(record)
            session.commit()
            return row_id
        except ViolationLogWriteError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            raise ViolationLogWriteError(
                entity_type=record.entity_type,
                attempted_date=str(record.attempted_date),
                cause=str(exc),
            ) from exc
        finally:
            session.close()
