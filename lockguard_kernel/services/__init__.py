"""Services for the lock guard (gates, violation log, admin writes)."""

from lockguard_kernel.services.advisory_gate import AdvisoryGate
from lockguard_kernel.services.enforcement_gate import EnforcementGate
from lockguard_kernel.services.guarded_mutation import (
    FinancialEntityType,
    SkippedTransaction,
    SyncBatchGuard,
    SyncBatchReport,
    SyncTransaction,
    require_unlocked,
)
from lockguard_kernel.services.period_admin_service import PeriodLockAdminService
from lockguard_kernel.services.violation_log import (
    IsolatedViolationLog,
    ViolationLog,
    ViolationSink,
)

__all__ = [
    "AdvisoryGate",
    "EnforcementGate",
    "FinancialEntityType",
    "IsolatedViolationLog",
    "PeriodLockAdminService",
    "SkippedTransaction",
    "SyncBatchGuard",
    "SyncBatchReport",
    "SyncTransaction",
    "ViolationLog",
    "ViolationSink",
    "require_unlocked",
]
