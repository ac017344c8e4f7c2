"""
PeriodLockSelector -- read access to the Period Store.

Responsibility:
    Reads the global lock setting and the locked accounting periods, maps the
    rows into typed DTOs, and reports read failures as
    ``StoreUnreachableError``.

Architecture position:
    Kernel > Selectors -- read-only.
    Implements the ``PeriodStore`` protocol consumed by AdvisoryGate and
    EnforcementGate.  Also serves the admin CLI's listing reads.

Invariants enforced:
    - "Not configured" (no settings row, no periods) is a legitimate empty
      state and is returned as such.
    - Every backend failure -- driver/network/auth errors, schema errors,
      ambiguous settings (more than one row), rows that do not map into
      the typed records -- raises StoreUnreachableError.  Failures are
      NEVER coerced into "no locks".
    - Locked periods are returned ordered by (start_date, end_date, name)
      so that "first match wins" is deterministic.
    - Every read re-populates identity-mapped rows, so a long-lived session
      sees lock changes committed by other sessions.

Failure modes:
    - StoreUnreachableError(operation, cause).  This module does not log the
      failure; the gate that converts it into a verdict does.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Protocol, TypeVar, runtime_checkable

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError

from lockguard_kernel.domain.dtos import (
    GlobalLockSetting,
    LockedPeriod,
    PeriodSnapshot,
    ViolationInfo,
)
from lockguard_kernel.exceptions import StoreUnreachableError
from lockguard_kernel.models.accounting_period import AccountingPeriod
from lockguard_kernel.models.company_settings import CompanySettings
from lockguard_kernel.models.violation import LockedPeriodViolation
from lockguard_kernel.selectors.base import BaseSelector

T = TypeVar("T")


@runtime_checkable
class PeriodStore(Protocol):
    """
    Read contract of the Period Store, as seen by the gates.

    All three methods raise StoreUnreachableError when the backing store
    cannot be read.
    """

    def load_snapshot(self) -> PeriodSnapshot: ...

    def get_global_setting(self) -> GlobalLockSetting: ...

    def find_locked_periods(self, on_date: date) -> tuple[LockedPeriod, ...]: ...


class PeriodLockSelector(BaseSelector[AccountingPeriod]):
    """SQLAlchemy-backed Period Store."""

    # -------------------------------------------------------------------------
    # PeriodStore protocol
    # -------------------------------------------------------------------------

    def get_global_setting(self) -> GlobalLockSetting:
        """
        Read the single company settings row.

        Returns:
            GlobalLockSetting; ``not_configured()`` when no row exists.

        Raises:
            StoreUnreachableError: On read failure or more than one row.
        """
        rows = self._read(
            "get_global_setting",
            lambda: self.session.execute(_fresh(select(CompanySettings).limit(2)))
            .scalars()
            .all(),
        )
        if not rows:
            return GlobalLockSetting.not_configured()
        if len(rows) > 1:
            raise StoreUnreachableError(
                "get_global_setting", "ambiguous lock settings: more than one row"
            )
        return self._map("get_global_setting", _to_setting, rows[0])

    def find_locked_periods(self, on_date: date) -> tuple[LockedPeriod, ...]:
        """
        Locked periods whose [start_date, end_date] contains ``on_date``.

        Raises:
            StoreUnreachableError: On read failure or malformed rows.
        """
        rows = self._read(
            "find_locked_periods",
            lambda: self.session.execute(
                _fresh(
                    select(AccountingPeriod)
                    .where(
                        AccountingPeriod.is_locked.is_(True),
                        AccountingPeriod.start_date <= on_date,
                        AccountingPeriod.end_date >= on_date,
                    )
                    .order_by(*_PERIOD_ORDER)
                )
            )
            .scalars()
            .all(),
        )
        return tuple(self._map("find_locked_periods", _to_period, r) for r in rows)

    def list_locked_periods(self) -> tuple[LockedPeriod, ...]:
        """All locked periods regardless of date."""
        rows = self._read(
            "list_locked_periods",
            lambda: self.session.execute(
                _fresh(
                    select(AccountingPeriod)
                    .where(AccountingPeriod.is_locked.is_(True))
                    .order_by(*_PERIOD_ORDER)
                )
            )
            .scalars()
            .all(),
        )
        return tuple(self._map("list_locked_periods", _to_period, r) for r in rows)

    def load_snapshot(self) -> PeriodSnapshot:
        """Settings plus every locked period, for the advisory cache."""
        return PeriodSnapshot(
            settings=self.get_global_setting(),
            periods=self.list_locked_periods(),
        )

    # -------------------------------------------------------------------------
    # Admin / audit reads
    # -------------------------------------------------------------------------

    def list_periods(self) -> tuple[LockedPeriod, ...]:
        """Every accounting period, locked or not."""
        rows = self._read(
            "list_periods",
            lambda: self.session.execute(
                _fresh(select(AccountingPeriod).order_by(*_PERIOD_ORDER))
            )
            .scalars()
            .all(),
        )
        return tuple(self._map("list_periods", _to_period, r) for r in rows)

    def list_violations(
        self,
        entity_type: str | None = None,
        user_id: str | None = None,
        limit: int = 100,
    ) -> tuple[ViolationInfo, ...]:
        """Most recent violation records first."""
        stmt = select(LockedPeriodViolation)
        if entity_type is not None:
            stmt = stmt.where(LockedPeriodViolation.entity_type == entity_type)
        if user_id is not None:
            stmt = stmt.where(LockedPeriodViolation.user_id == user_id)
        stmt = stmt.order_by(LockedPeriodViolation.created_at.desc()).limit(limit)

        rows = self._read(
            "list_violations",
            lambda: self.session.execute(_fresh(stmt)).scalars().all(),
        )
        return tuple(self._map("list_violations", _to_violation, r) for r in rows)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _read(operation: str, query: Callable[[], T]) -> T:
        try:
            return query()
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            # ValueError/TypeError: the driver could not decode a column
            raise StoreUnreachableError(operation, exc) from exc

    @staticmethod
    def _map(operation: str, mapper: Callable[[object], T], row: object) -> T:
        try:
            return mapper(row)
        except (TypeError, ValueError, AttributeError) as exc:
            raise StoreUnreachableError(
                operation, f"malformed row: {exc}"
            ) from exc


_PERIOD_ORDER = (
    AccountingPeriod.start_date,
    AccountingPeriod.end_date,
    AccountingPeriod.period_name,
)


def _fresh(stmt: Select) -> Select:
    # Overwrite identity-mapped rows so long-lived sessions see admin edits
    return stmt.execution_options(populate_existing=True)


def _require_date(value: object, column: str) -> date:
    if not isinstance(value, date):
        raise TypeError(f"{column} is {value!r}, expected a date")
    return value


def _optional_date(value: object, column: str) -> date | None:
    if value is None:
        return None
    return _require_date(value, column)


def _require_bool(value: object, column: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{column} is {value!r}, expected a bool")
    return value


def _to_setting(row: CompanySettings) -> GlobalLockSetting:
    return GlobalLockSetting(
        enabled=_require_bool(row.locked_period_enabled, "locked_period_enabled"),
        cutoff_date=_optional_date(row.locked_period_date, "locked_period_date"),
        accounting_cutover_date=_optional_date(
            row.accounting_cutover_date, "accounting_cutover_date"
        ),
    )


def _to_period(row: AccountingPeriod) -> LockedPeriod:
    if not row.period_name:
        raise ValueError("period_name is empty")
    return LockedPeriod(
        id=row.id,
        name=row.period_name,
        start_date=_require_date(row.start_date, "start_date"),
        end_date=_require_date(row.end_date, "end_date"),
        is_locked=_require_bool(row.is_locked, "is_locked"),
    )


def _to_violation(row: LockedPeriodViolation) -> ViolationInfo:
    return ViolationInfo(
        id=row.id,
        user_id=row.user_id,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        attempted_date=_require_date(row.attempted_date, "attempted_date"),
        locked_period_date=_optional_date(row.locked_period_date, "locked_period_date"),
        action=row.action,
        blocked=row.blocked,
        details=dict(row.details or {}),
    )
