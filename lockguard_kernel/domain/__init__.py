"""Pure domain core: DTOs, date normalization, and the lock evaluator."""

from lockguard_kernel.domain.cutover import is_legacy
from lockguard_kernel.domain.dates import to_calendar_date
from lockguard_kernel.domain.dtos import (
    AuthorizationResult,
    DateCheckResult,
    GlobalLockSetting,
    LockAction,
    LockedPeriod,
    LockEvaluationResult,
    LockReason,
    PeriodSnapshot,
    ViolationInfo,
    ViolationReason,
    ViolationRecord,
)
from lockguard_kernel.domain.evaluator import (
    check_global_cutoff,
    check_locked_periods,
    evaluate,
    is_locked,
    matching_periods,
    min_allowed_date,
)

__all__ = [
    "AuthorizationResult",
    "DateCheckResult",
    "GlobalLockSetting",
    "LockAction",
    "LockedPeriod",
    "LockEvaluationResult",
    "LockReason",
    "PeriodSnapshot",
    "ViolationInfo",
    "ViolationReason",
    "ViolationRecord",
    "check_global_cutoff",
    "check_locked_periods",
    "evaluate",
    "is_legacy",
    "is_locked",
    "matching_periods",
    "min_allowed_date",
    "to_calendar_date",
]
