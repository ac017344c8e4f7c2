"""Read-only query selectors."""

from lockguard_kernel.selectors.period_lock_selector import (
    PeriodLockSelector,
    PeriodStore,
)

__all__ = ["PeriodLockSelector", "PeriodStore"]
