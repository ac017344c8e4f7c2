"""
Module: lockguard_kernel.models.accounting_period
Responsibility: ORM persistence for named, explicitly bounded accounting
    periods that administrators can lock against edits and sync.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - start_date <= end_date (CHECK constraint + PeriodLockAdminService).
    - Both boundaries are inclusive.
    - Overlapping periods are permitted; the gates report the first match.

Audit relevance:
    locked_at / locked_by_id record when and by whom a period was closed.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from lockguard_kernel.db.base import TrackedBase, UUIDString


class AccountingPeriod(TrackedBase):
    """
    A named accounting period (e.g. "Q1 Close", "FY2024").

    Non-goals:
        - Does NOT enforce non-overlapping ranges; overlap is legal.
    """

    __tablename__ = "accounting_periods"

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_period_bounds"),
        Index("idx_accounting_period_lock", "is_locked", "start_date", "end_date"),
    )

    period_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    is_locked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    locked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    locked_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    def __repr__(self) -> str:
        state = "locked" if self.is_locked else "open"
        return (
            f"<AccountingPeriod {self.period_name}: "
            f"{self.start_date}..{self.end_date} {state}>"
        )

    def contains_date(self, check_date: date) -> bool:
        """Check if a date falls within this period (inclusive)."""
        return self.start_date <= check_date <= self.end_date
