"""
Lock Evaluator -- the single date-boundary algorithm shared by both gates.

Responsibility:
    Decides, for one transaction date and one Period Store snapshot, whether
    the date is inside a locked boundary and, if so, which one.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by AdvisoryGate (fail-open wrapper) and EnforcementGate
    (fail-closed wrapper).  Neither gate carries its own copy of the
    comparison logic.

Algorithm (first hit wins):
    1. Normalize the date to a calendar day.
    2. Global cutoff: enabled and date <= cutoff_date -> GLOBAL_CUTOFF.
    3. Locked periods: first is_locked period with
       start_date <= date <= end_date -> ACCOUNTING_PERIOD.
    4. Otherwise allowed.

Invariants enforced:
    - Deterministic and side-effect free.  The transaction's own date is the
      only temporal input; no clock is consulted.
    - Boundaries are inclusive on both ends.
    - Locked is a return value, never an exception.

Failure modes:
    - InvalidTransactionDateError if the date cannot be normalized.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from lockguard_kernel.domain.dates import DateInput, to_calendar_date
from lockguard_kernel.domain.dtos import (
    GlobalLockSetting,
    LockedPeriod,
    LockEvaluationResult,
    LockReason,
)


def check_global_cutoff(
    check_date: date, settings: GlobalLockSetting
) -> LockEvaluationResult | None:
    """
    Apply the global cutoff rule.

    Returns:
        A blocked result if the cutoff locks ``check_date``, else None.
    """
    if settings.is_active and check_date <= settings.cutoff_date:
        return LockEvaluationResult(
            allowed=False,
            checked_date=check_date,
            reason=LockReason.GLOBAL_CUTOFF,
            boundary_date=settings.cutoff_date,
        )
    return None


def matching_periods(
    check_date: date, periods: Iterable[LockedPeriod]
) -> tuple[LockedPeriod, ...]:
    """All locked periods containing ``check_date``, in the given order."""
    return tuple(p for p in periods if p.is_locked and p.contains_date(check_date))


def check_locked_periods(
    check_date: date, periods: Iterable[LockedPeriod]
) -> LockEvaluationResult | None:
    """
    Apply the named-period rule.

    Overlapping periods are not deduplicated; the first match in the
    supplied order is reported.

    Returns:
        A blocked result naming the first matching period, else None.
    """
    for period in periods:
        if period.is_locked and period.contains_date(check_date):
            return LockEvaluationResult(
                allowed=False,
                checked_date=check_date,
                reason=LockReason.ACCOUNTING_PERIOD,
                period_name=period.name,
                boundary_date=period.end_date,
                period_start=period.start_date,
            )
    return None


def evaluate(
    value: DateInput,
    settings: GlobalLockSetting,
    periods: Iterable[LockedPeriod],
) -> LockEvaluationResult:
    """
    Classify a transaction date against the lock configuration.

    Args:
        value: Transaction date (date, datetime, or ISO string).
        settings: The global lock setting.
        periods: Candidate periods; unlocked ones are ignored.

    Returns:
        LockEvaluationResult.  ``allowed`` is False with reason
        GLOBAL_CUTOFF or ACCOUNTING_PERIOD when the date is locked.
    """
    check_date = to_calendar_date(value)

    cutoff_hit = check_global_cutoff(check_date, settings)
    if cutoff_hit is not None:
        return cutoff_hit

    period_hit = check_locked_periods(check_date, periods)
    if period_hit is not None:
        return period_hit

    return LockEvaluationResult.allow(check_date)


def is_locked(
    value: DateInput,
    settings: GlobalLockSetting,
    periods: Iterable[LockedPeriod],
) -> bool:
    """Boolean form of :func:`evaluate`."""
    return not evaluate(value, settings, periods).allowed


def min_allowed_date(settings: GlobalLockSetting) -> date | None:
    """First date not covered by the global cutoff, or None if it is off."""
    if not settings.is_active:
        return None
    return settings.cutoff_date + timedelta(days=1)
