"""
Module: lockguard_kernel.models.violation
Responsibility: ORM persistence for the append-only locked period violation
    log.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: no UPDATE or DELETE (ORM listeners in db/immutability.py).
    - blocked is always True; only blocked attempts are recorded.

Failure modes:
    - ImmutabilityViolationError on any UPDATE/DELETE attempt.

Audit relevance:
    Every attempt to create, edit, or sync a record dated inside a locked
    period leaves exactly one row here.  The log is diagnostic; it is never
    consulted for allow/deny decisions.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from lockguard_kernel.db.base import Base


class LockedPeriodViolation(Base):
    """One blocked attempt to write inside a locked period."""

    __tablename__ = "locked_period_violations"

    __table_args__ = (
        Index("idx_violation_entity", "entity_type", "entity_id"),
        Index("idx_violation_created", "created_at"),
    )

    # External auth subject; not necessarily a UUID
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    entity_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    attempted_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    locked_period_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    # "create" or "update"
    action: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )

    blocked: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # {"source": ..., "reason": ..., "period_name": ...}
    details: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<LockedPeriodViolation {self.entity_type}:{self.entity_id} "
            f"{self.action} {self.attempted_date}>"
        )
