"""
Module: lockguard_kernel.models.company_settings
Responsibility: ORM persistence for the company-wide lock settings row --
    the global lock cutoff and the accounting cutover date.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one row is read by the gates (the admin service creates it on
      first write and never deletes it).
    - locked_period_date is an inclusive upper bound: any transaction dated
      on or before it is locked while locked_period_enabled is True.

Audit relevance:
    This row is the single switch that closes every prior period at once.
    Changes are made only by administrators through PeriodLockAdminService,
    and TrackedBase records who made the last change.
"""

from datetime import date

from sqlalchemy import Boolean, Date
from sqlalchemy.orm import Mapped, mapped_column

from lockguard_kernel.db.base import TrackedBase


class CompanySettings(TrackedBase):
    """
    Company-level accounting lock configuration.

    Guarantees:
        - A missing row and a row with locked_period_enabled=False both mean
          "no global lock".  Neither is an error.
    """

    __tablename__ = "company_settings"

    locked_period_enabled: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Inclusive cutoff: dates <= this are locked
    locked_period_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    # Transactions dated before this predate the system of record
    accounting_cutover_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    def __repr__(self) -> str:
        state = "on" if self.locked_period_enabled else "off"
        return f"<CompanySettings lock={state} through {self.locked_period_date}>"
