"""
Domain DTOs -- immutable records that cross the Period Store boundary.

Responsibility:
    Typed, frozen representations of the lock configuration
    (``GlobalLockSetting``, ``LockedPeriod``), the evaluator verdict
    (``LockEvaluationResult``), the two gate verdicts (``DateCheckResult``,
    ``AuthorizationResult``), and the audit record (``ViolationRecord``).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  ORM rows are mapped
    into these records by the Period Store selector; nothing past that
    boundary sees backend row shapes.

Invariants enforced:
    - All DTOs are frozen dataclasses.
    - ``LockedPeriod`` rejects ``start_date > end_date`` at construction.
    - ``ViolationRecord.blocked`` is always True.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID

from lockguard_kernel.exceptions import (
    LockedByGlobalCutoffError,
    LockedByNamedPeriodError,
    LockViolationError,
)


class LockReason(str, Enum):
    """Why a date was classified as locked."""

    GLOBAL_CUTOFF = "global_cutoff"
    ACCOUNTING_PERIOD = "accounting_period"
    STORE_UNREACHABLE = "store_unreachable"


class LockAction(str, Enum):
    """The mutation a caller is attempting."""

    CREATE = "create"
    UPDATE = "update"


class ViolationReason(str, Enum):
    """Reason codes written into ``ViolationRecord.details``."""

    GLOBAL_LOCKED_PERIOD = "global_locked_period"
    ACCOUNTING_PERIOD = "accounting_period"


@dataclass(frozen=True)
class GlobalLockSetting:
    """
    Company-wide lock configuration.

    ``cutoff_date`` is inclusive.  The cutoff only applies while ``enabled``.
    """

    enabled: bool = False
    cutoff_date: date | None = None
    accounting_cutover_date: date | None = None

    @property
    def is_active(self) -> bool:
        return self.enabled and self.cutoff_date is not None

    @classmethod
    def not_configured(cls) -> GlobalLockSetting:
        """The legitimate "no lock configured" state."""
        return cls()


@dataclass(frozen=True)
class LockedPeriod:
    """A named accounting period with inclusive bounds."""

    id: UUID
    name: str
    start_date: date
    end_date: date
    is_locked: bool

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"Period {self.name!r}: start_date ({self.start_date}) "
                f"cannot be after end_date ({self.end_date})"
            )

    def contains_date(self, check_date: date) -> bool:
        """Check if a date falls within this period (inclusive)."""
        return self.start_date <= check_date <= self.end_date


@dataclass(frozen=True)
class PeriodSnapshot:
    """Everything the evaluator needs, read from the Period Store at once."""

    settings: GlobalLockSetting
    periods: tuple[LockedPeriod, ...] = ()

    @property
    def locked_periods(self) -> tuple[LockedPeriod, ...]:
        return tuple(p for p in self.periods if p.is_locked)


@dataclass(frozen=True)
class LockEvaluationResult:
    """
    Verdict of the lock evaluator for one calendar date.

    Computed per call, never persisted.
    """

    allowed: bool
    checked_date: date | None = None
    reason: LockReason | None = None
    period_name: str | None = None
    boundary_date: date | None = None
    period_start: date | None = None

    @classmethod
    def allow(cls, checked_date: date) -> LockEvaluationResult:
        return cls(allowed=True, checked_date=checked_date)

    @property
    def blocked(self) -> bool:
        return not self.allowed

    def to_error(self) -> LockViolationError | None:
        """
        Build the matching LockedBy* exception for callers that raise.

        Returns None for allowed results and for reasons that are not data
        conflicts.
        """
        if self.allowed:
            return None
        if self.reason is LockReason.GLOBAL_CUTOFF:
            return LockedByGlobalCutoffError(
                transaction_date=str(self.checked_date),
                cutoff_date=str(self.boundary_date),
            )
        if self.reason is LockReason.ACCOUNTING_PERIOD:
            return LockedByNamedPeriodError(
                transaction_date=str(self.checked_date),
                period_name=self.period_name or "",
                start_date=str(self.period_start) if self.period_start else None,
                end_date=str(self.boundary_date) if self.boundary_date else None,
            )
        return None


@dataclass(frozen=True)
class DateCheckResult:
    """Advisory verdict for a UI form field."""

    valid: bool
    message: str | None = None

    @classmethod
    def ok(cls) -> DateCheckResult:
        return cls(valid=True)


@dataclass(frozen=True)
class AuthorizationResult:
    """
    Binding verdict of the enforcement gate.

    ``message`` is meant to be shown to the end user or written to the
    sync-failure log verbatim.
    """

    allowed: bool
    message: str | None = None
    reason: LockReason | None = None
    period_name: str | None = None
    boundary_date: date | None = None

    @classmethod
    def allow(cls) -> AuthorizationResult:
        return cls(allowed=True)

    @classmethod
    def deny(
        cls,
        message: str,
        reason: LockReason | None = None,
        period_name: str | None = None,
        boundary_date: date | None = None,
    ) -> AuthorizationResult:
        return cls(
            allowed=False,
            message=message,
            reason=reason,
            period_name=period_name,
            boundary_date=boundary_date,
        )


@dataclass(frozen=True)
class ViolationRecord:
    """One blocked attempt, as handed to the violation log."""

    user_id: str
    entity_type: str
    entity_id: str | None
    attempted_date: date
    locked_period_date: date | None
    action: LockAction
    details: dict[str, Any] = field(default_factory=dict)
    blocked: bool = True

    def __post_init__(self) -> None:
        if not self.blocked:
            raise ValueError("Only blocked attempts are recorded as violations")


@dataclass(frozen=True)
class ViolationInfo:
    """A persisted violation record, as read back for audit."""

    id: UUID
    user_id: str
    entity_type: str
    entity_id: str | None
    attempted_date: date
    locked_period_date: date | None
    action: str
    blocked: bool
    details: dict[str, Any]
