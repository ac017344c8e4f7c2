"""
Typed Exception Hierarchy for the LockGuard Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The lock gates turn infrastructure failures into verdicts, and the two gates
turn the SAME failure into OPPOSITE verdicts (advisory: allow, enforcement:
block). That only works if failures are caught by type, never by message:

Example - WRONG way:
    try:
        snapshot = store.load_snapshot()
    except Exception as e:
        if "timeout" in str(e):       # FRAGILE - driver wording changes
            return allow()

Example - RIGHT way:
    try:
        snapshot = store.load_snapshot()
    except StoreUnreachableError as e:  # Typed catch
        log.error("store_unreachable", extra={"operation": e.operation})
        return block_for_safety()

Every exception has:
  1. A typed class (catch by type, not message)
  2. A ``code`` class attribute (machine-readable, API-safe)
  3. Structured attributes (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LockGuardError (base)
    |
    +-- PeriodStoreError
    |   +-- StoreUnreachableError
    |
    +-- LockViolationError
    |   +-- LockedByGlobalCutoffError
    |   +-- LockedByNamedPeriodError
    |   +-- TransactionLockedError
    |
    +-- ViolationLogError
    |   +-- ViolationLogWriteError
    |
    +-- PeriodAdminError
    |   +-- PeriodNotFoundError
    |   +-- InvalidPeriodRangeError
    |
    +-- InvalidTransactionDateError
    |
    +-- ImmutabilityViolationError
    |
    +-- ConfigError
        +-- ConfigValidationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Store           | STORE_UNREACHABLE           | Period Store read failed (network,
                |                             | auth, schema, malformed row)
----------------|-----------------------------|-----------------------------------------
Lock            | LOCKED_BY_GLOBAL_CUTOFF     | Date <= configured cutoff
                | LOCKED_BY_NAMED_PERIOD      | Date inside a locked named period
                | TRANSACTION_LOCKED          | Enforcement verdict was "blocked"
----------------|-----------------------------|-----------------------------------------
Violation log   | VIOLATION_LOG_WRITE_FAILED  | Audit insert failed (never surfaced
                |                             | by the enforcement gate)
----------------|-----------------------------|-----------------------------------------
Admin           | PERIOD_NOT_FOUND            | Period id doesn't exist
                | INVALID_PERIOD_RANGE        | start_date > end_date
----------------|-----------------------------|-----------------------------------------
Input           | INVALID_TRANSACTION_DATE    | Value is not a calendar date
----------------|-----------------------------|-----------------------------------------
Audit           | IMMUTABILITY_VIOLATION      | Update/delete of a violation record
----------------|-----------------------------|-----------------------------------------
Config          | CONFIG_INVALID              | YAML config failed validation

===============================================================================
DESIGN DECISIONS
===============================================================================

1. LOCKED IS NOT EXCEPTIONAL.
   The evaluator and both gates RETURN locked verdicts.  The LockedBy*
   exceptions exist for callers that prefer raising (``to_error()`` on an
   evaluation result, ``require_unlocked()`` for mutation handlers).

2. ONLY I/O IS EXCEPTIONAL.
   StoreUnreachableError is the single error the gates convert into a
   default verdict.  ViolationLogWriteError is swallowed by the enforcement
   gate and logged.

===============================================================================
"""


class LockGuardError(Exception):
    """
    Base exception for all lockguard errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "LOCKGUARD_ERROR"


# Period Store exceptions


class PeriodStoreError(LockGuardError):
    """Base exception for Period Store access errors."""

    code: str = "PERIOD_STORE_ERROR"


class StoreUnreachableError(PeriodStoreError):
    """
    The Period Store could not be read.

    Distinct from "no lock configured": an empty settings table or an empty
    period list is a legitimate state and never raises this.
    """

    code: str = "STORE_UNREACHABLE"

    def __init__(self, operation: str, cause: BaseException | str | None = None):
        self.operation = operation
        self.cause = str(cause) if cause is not None else None
        detail = f": {self.cause}" if self.cause else ""
        super().__init__(f"Period store unreachable during {operation}{detail}")


# Lock violation exceptions


class LockViolationError(LockGuardError):
    """Base exception for locked-date outcomes raised on request."""

    code: str = "LOCK_VIOLATION"


class LockedByGlobalCutoffError(LockViolationError):
    """Transaction date is on or before the global lock cutoff."""

    code: str = "LOCKED_BY_GLOBAL_CUTOFF"

    def __init__(self, transaction_date: str, cutoff_date: str):
        self.transaction_date = transaction_date
        self.cutoff_date = cutoff_date
        super().__init__(
            f"Transaction date {transaction_date} is locked "
            f"(locked through {cutoff_date})"
        )


class LockedByNamedPeriodError(LockViolationError):
    """Transaction date falls inside a locked accounting period."""

    code: str = "LOCKED_BY_NAMED_PERIOD"

    def __init__(
        self,
        transaction_date: str,
        period_name: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ):
        self.transaction_date = transaction_date
        self.period_name = period_name
        self.start_date = start_date
        self.end_date = end_date
        bounds = f" ({start_date} to {end_date})" if start_date and end_date else ""
        super().__init__(
            f"Transaction date {transaction_date} falls within locked "
            f'accounting period "{period_name}"{bounds}'
        )


class TransactionLockedError(LockViolationError):
    """
    The enforcement gate refused a mutation or sync.

    Carries the gate's message verbatim so handlers can surface it to the
    end user or the sync-failure log unchanged.
    """

    code: str = "TRANSACTION_LOCKED"
    http_status: int = 422

    def __init__(
        self,
        message: str,
        entity_type: str,
        entity_id: str | None = None,
        reason: str | None = None,
    ):
        self.message = message
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(message)


# Violation log exceptions


class ViolationLogError(LockGuardError):
    """Base exception for violation log errors."""

    code: str = "VIOLATION_LOG_ERROR"


class ViolationLogWriteError(ViolationLogError):
    """Appending a violation record failed."""

    code: str = "VIOLATION_LOG_WRITE_FAILED"

    def __init__(self, entity_type: str, attempted_date: str, cause: str):
        self.entity_type = entity_type
        self.attempted_date = attempted_date
        self.cause = cause
        super().__init__(
            f"Failed to record lock violation for {entity_type} "
            f"dated {attempted_date}: {cause}"
        )


# Period administration exceptions


class PeriodAdminError(LockGuardError):
    """Base exception for period administration errors."""

    code: str = "PERIOD_ADMIN_ERROR"


class PeriodNotFoundError(PeriodAdminError):
    """Accounting period with the given id was not found."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Accounting period not found: {period_id}")


class InvalidPeriodRangeError(PeriodAdminError):
    """Period start_date is after its end_date."""

    code: str = "INVALID_PERIOD_RANGE"

    def __init__(self, period_name: str, start_date: str, end_date: str):
        self.period_name = period_name
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Period {period_name!r}: start_date ({start_date}) "
            f"cannot be after end_date ({end_date})"
        )


# Input exceptions


class InvalidTransactionDateError(LockGuardError):
    """Value cannot be interpreted as a calendar date."""

    code: str = "INVALID_TRANSACTION_DATE"

    def __init__(self, value: object):
        self.value = repr(value)
        super().__init__(f"Not a valid calendar date: {value!r}")


# Immutability exceptions


class ImmutabilityViolationError(LockGuardError):
    """
    Attempted to modify or delete an append-only record.

    Violation records are immutable from creation.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Configuration exceptions


class ConfigError(LockGuardError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class ConfigValidationError(ConfigError):
    """Configuration failed validation."""

    code: str = "CONFIG_INVALID"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            "Invalid lockguard configuration: " + "; ".join(self.errors)
        )
