"""
PeriodLockAdminService -- administrator operations on the Period Store.

Responsibility:
    Backs the company settings form and the accounting-period screens:
    toggling the global lock cutoff, recording the accounting cutover date,
    and creating, editing, locking, and unlocking named periods.

Architecture position:
    Kernel > Services -- imperative shell.
    The ONLY writer of ``company_settings`` and ``accounting_periods``.
    The gates never call this service; they only read.

Invariants enforced:
    - start_date <= end_date on every period write (InvalidPeriodRangeError).
    - Overlapping periods are allowed.
    - The settings row is created on first write and never deleted.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - PeriodNotFoundError: Unknown period id.
    - InvalidPeriodRangeError: start_date > end_date.

Audit relevance:
    Every change is logged at INFO with the acting administrator and the
    new boundary values.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from lockguard_kernel.domain.clock import Clock, SystemClock
from lockguard_kernel.domain.dtos import GlobalLockSetting, LockedPeriod
from lockguard_kernel.exceptions import InvalidPeriodRangeError, PeriodNotFoundError
from lockguard_kernel.logging_config import get_logger
from lockguard_kernel.models.accounting_period import AccountingPeriod
from lockguard_kernel.models.company_settings import CompanySettings
from lockguard_kernel.services.base import BaseService

logger = get_logger("services.period_admin")


class PeriodLockAdminService(BaseService[AccountingPeriod]):
    """
    Administrator-facing lock configuration.

    Contract:
        All methods return frozen DTOs, never ORM rows, and flush within
        the caller's transaction.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    # =========================================================================
    # Global lock settings
    # =========================================================================

    def get_settings(self) -> GlobalLockSetting:
        row = self._settings_row()
        if row is None:
            return GlobalLockSetting.not_configured()
        return _settings_dto(row)

    def set_global_lock(
        self,
        cutoff_date: date,
        actor_id: UUID,
        enabled: bool = True,
    ) -> GlobalLockSetting:
        """
        Lock every date on or before ``cutoff_date``.

        Args:
            cutoff_date: Inclusive cutoff.
            actor_id: Administrator making the change.
            enabled: Store the cutoff but leave it inactive when False.
        """
        row = self._settings_row_for_write(actor_id)
        row.locked_period_date = cutoff_date
        row.locked_period_enabled = enabled
        row.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "global_lock_updated",
            extra={
                "cutoff_date": str(cutoff_date),
                "enabled": enabled,
                "actor_id": str(actor_id),
            },
        )
        return _settings_dto(row)

    def disable_global_lock(self, actor_id: UUID) -> GlobalLockSetting:
        """Turn the global cutoff off.  The stored date is kept."""
        row = self._settings_row_for_write(actor_id)
        row.locked_period_enabled = False
        row.updated_by_id = actor_id
        self.session.flush()

        logger.info("global_lock_disabled", extra={"actor_id": str(actor_id)})
        return _settings_dto(row)

    def set_cutover_date(
        self, cutover_date: date | None, actor_id: UUID
    ) -> GlobalLockSetting:
        """Record (or clear) the accounting cutover date."""
        row = self._settings_row_for_write(actor_id)
        row.accounting_cutover_date = cutover_date
        row.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "accounting_cutover_updated",
            extra={
                "cutover_date": str(cutover_date) if cutover_date else None,
                "actor_id": str(actor_id),
            },
        )
        return _settings_dto(row)

    # =========================================================================
    # Named periods
    # =========================================================================

    def create_period(
        self,
        name: str,
        start_date: date,
        end_date: date,
        actor_id: UUID,
        is_locked: bool = False,
    ) -> LockedPeriod:
        """
        Create a named accounting period.

        Raises:
            InvalidPeriodRangeError: If start_date > end_date.
        """
        _validate_range(name, start_date, end_date)

        period = AccountingPeriod(
            period_name=name,
            start_date=start_date,
            end_date=end_date,
            is_locked=is_locked,
            created_by_id=actor_id,
        )
        if is_locked:
            period.locked_at = self._clock.now()
            period.locked_by_id = actor_id

        self.session.add(period)
        self.session.flush()

        logger.info(
            "period_created",
            extra={
                "period_id": str(period.id),
                "period_name": name,
                "start_date": str(start_date),
                "end_date": str(end_date),
                "is_locked": is_locked,
            },
        )
        return _period_dto(period)

    def update_period(
        self,
        period_id: UUID,
        actor_id: UUID,
        name: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> LockedPeriod:
        """
        Rename or re-bound a period.  Omitted fields keep their values.

        Raises:
            PeriodNotFoundError: If period doesn't exist.
            InvalidPeriodRangeError: If the resulting range is inverted.
        """
        period = self._get_period(period_id)

        new_name = name if name is not None else period.period_name
        new_start = start_date if start_date is not None else period.start_date
        new_end = end_date if end_date is not None else period.end_date
        _validate_range(new_name, new_start, new_end)

        period.period_name = new_name
        period.start_date = new_start
        period.end_date = new_end
        period.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "period_updated",
            extra={
                "period_id": str(period_id),
                "period_name": new_name,
                "start_date": str(new_start),
                "end_date": str(new_end),
            },
        )
        return _period_dto(period)

    def lock_period(self, period_id: UUID, actor_id: UUID) -> LockedPeriod:
        """Close a period to edits and sync.  Re-locking is a no-op."""
        period = self._get_period(period_id)
        if not period.is_locked:
            period.is_locked = True
            period.locked_at = self._clock.now()
            period.locked_by_id = actor_id
            period.updated_by_id = actor_id
            self.session.flush()

        logger.info(
            "period_locked",
            extra={"period_id": str(period_id), "period_name": period.period_name},
        )
        return _period_dto(period)

    def unlock_period(self, period_id: UUID, actor_id: UUID) -> LockedPeriod:
        """Reopen a period."""
        period = self._get_period(period_id)
        if period.is_locked:
            period.is_locked = False
            period.locked_at = None
            period.locked_by_id = None
            period.updated_by_id = actor_id
            self.session.flush()

        logger.info(
            "period_unlocked",
            extra={
                "period_id": str(period_id),
                "period_name": period.period_name,
                "actor_id": str(actor_id),
            },
        )
        return _period_dto(period)

    # =========================================================================
    # Internals
    # =========================================================================

    def _settings_row(self) -> CompanySettings | None:
        return self.session.execute(
            select(CompanySettings).order_by(CompanySettings.created_at).limit(1)
        ).scalar_one_or_none()

    def _settings_row_for_write(self, actor_id: UUID) -> CompanySettings:
        row = self._settings_row()
        if row is None:
            row = CompanySettings(
                locked_period_enabled=False,
                created_by_id=actor_id,
            )
            self.session.add(row)
        return row

    def _get_period(self, period_id: UUID) -> AccountingPeriod:
        period = self.session.get(AccountingPeriod, period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period


def _validate_range(name: str, start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise InvalidPeriodRangeError(name, str(start_date), str(end_date))


def _settings_dto(row: CompanySettings) -> GlobalLockSetting:
    return GlobalLockSetting(
        enabled=row.locked_period_enabled,
        cutoff_date=row.locked_period_date,
        accounting_cutover_date=row.accounting_cutover_date,
    )


def _period_dto(period: AccountingPeriod) -> LockedPeriod:
    return LockedPeriod(
        id=period.id,
        name=period.period_name,
        start_date=period.start_date,
        end_date=period.end_date,
        is_locked=period.is_locked,
    )
