"""
AdvisoryGate -- fail-open lock checks for interactive forms.

Responsibility:
    Gives UI forms fast feedback about locked dates: per-field validation
    messages, a minimum selectable date for date pickers, and a predicate
    for styling calendar cells.

Architecture position:
    Kernel > Services -- thin wrapper over the shared lock evaluator.
    Read-only: never writes to the Period Store or the violation log.

Invariants enforced:
    - FAIL-OPEN.  If the Period Store cannot be read, every date is reported
      valid.  A transient read failure must never block a user who is
      typing.  The enforcement gate makes the binding decision later, and it
      fails closed.  The two behaviours are intentionally opposite.
    - The snapshot cache never outlives ``MAX_CACHE_TTL_SECONDS``.
      Failed reads are not cached.

Failure modes:
    - None surface to the caller.  Store failures are logged at WARNING.
"""

from __future__ import annotations

from datetime import date, timedelta

from lockguard_kernel.domain.clock import Clock, SystemClock
from lockguard_kernel.domain.cutover import is_legacy
from lockguard_kernel.domain.dates import DateInput, to_calendar_date
from lockguard_kernel.domain.dtos import (
    DateCheckResult,
    LockedPeriod,
    LockReason,
    PeriodSnapshot,
)
from lockguard_kernel.domain.evaluator import evaluate, min_allowed_date
from lockguard_kernel.exceptions import InvalidTransactionDateError, StoreUnreachableError
from lockguard_kernel.logging_config import get_logger
from lockguard_kernel.selectors.period_lock_selector import PeriodStore

logger = get_logger("services.advisory_gate")

MAX_CACHE_TTL_SECONDS = 30
DEFAULT_CACHE_TTL_SECONDS = 15


class AdvisoryGate:
    """
    Fail-open lock checks backed by a short-lived snapshot cache.

    Contract:
        Every public method returns a usable answer even when the Period
        Store is down: ``check_date`` -> valid, ``is_date_locked`` -> False,
        ``min_allowed_date`` -> None.

    Non-goals:
        - Not a security boundary.  Mutation and sync paths must call
          EnforcementGate.authorize().
    """

    def __init__(
        self,
        store: PeriodStore,
        clock: Clock | None = None,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
    ):
        if cache_ttl_seconds < 0:
            raise ValueError("cache_ttl_seconds cannot be negative")
        self._store = store
        self._clock = clock or SystemClock()
        self._ttl = timedelta(seconds=min(cache_ttl_seconds, MAX_CACHE_TTL_SECONDS))
        self._snapshot: PeriodSnapshot | None = None
        self._loaded_at = None

    @property
    def cache_ttl_seconds(self) -> float:
        return self._ttl.total_seconds()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def check_date(
        self, value: DateInput | None, entity_type_label: str
    ) -> DateCheckResult:
        """
        Validate a form date for the given record type.

        Args:
            value: The date typed into the form.  Empty means "not yet
                entered" and is valid.
            entity_type_label: Human label used in the message ("invoice").

        Returns:
            DateCheckResult(valid=True) or DateCheckResult(valid=False,
            message=...) naming the cutoff date or the period.
        """
        if value is None or value == "":
            return DateCheckResult.ok()

        snapshot = self._current_snapshot()
        if snapshot is None:
            return DateCheckResult.ok()

        try:
            result = evaluate(value, snapshot.settings, snapshot.locked_periods)
        except InvalidTransactionDateError:
            # Malformed input is the form's own field validation concern
            return DateCheckResult.ok()

        if result.allowed:
            return DateCheckResult.ok()

        label = _display_date(value, result.checked_date)
        if result.reason is LockReason.GLOBAL_CUTOFF:
            message = (
                f"Cannot create/edit {entity_type_label} dated {label}. "
                f"Accounting period is locked through {result.boundary_date}."
            )
        else:
            message = (
                f"Cannot create/edit {entity_type_label} dated {label}. "
                f'Accounting period "{result.period_name}" is locked.'
            )
        return DateCheckResult(valid=False, message=message)

    def is_date_locked(self, value: DateInput) -> bool:
        """Predicate for calendar-cell styling.  False when unknown."""
        snapshot = self._current_snapshot()
        if snapshot is None:
            return False
        try:
            return not evaluate(
                value, snapshot.settings, snapshot.locked_periods
            ).allowed
        except InvalidTransactionDateError:
            return False

    def min_allowed_date(self) -> date | None:
        """Earliest date a picker should offer (cutoff + 1 day)."""
        snapshot = self._current_snapshot()
        if snapshot is None:
            return None
        return min_allowed_date(snapshot.settings)

    # -------------------------------------------------------------------------
    # Read-through accessors
    # -------------------------------------------------------------------------

    def is_enabled(self) -> bool:
        snapshot = self._current_snapshot()
        return snapshot is not None and snapshot.settings.enabled

    def cutoff_date(self) -> date | None:
        snapshot = self._current_snapshot()
        return snapshot.settings.cutoff_date if snapshot is not None else None

    def locked_periods(self) -> tuple[LockedPeriod, ...]:
        snapshot = self._current_snapshot()
        return snapshot.locked_periods if snapshot is not None else ()

    def is_legacy(self, value: DateInput) -> bool:
        """True if ``value`` predates the accounting cutover."""
        snapshot = self._current_snapshot()
        if snapshot is None:
            return False
        try:
            return is_legacy(value, snapshot.settings.accounting_cutover_date)
        except InvalidTransactionDateError:
            return False

    def invalidate(self) -> None:
        """Drop the cached snapshot (e.g. right after an admin edit)."""
        self._snapshot = None
        self._loaded_at = None

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _current_snapshot(self) -> PeriodSnapshot | None:
        now = self._clock.now()
        if (
            self._snapshot is not None
            and self._loaded_at is not None
            and now - self._loaded_at < self._ttl
        ):
            return self._snapshot

        try:
            snapshot = self._store.load_snapshot()
        except StoreUnreachableError as exc:
            self._fail_open(exc)
            return None
        except Exception as exc:
            # Any read failure degrades to "unknown"; advisory checks fail open
            self._fail_open(StoreUnreachableError("load_snapshot", exc))
            return None

        self._snapshot = snapshot
        self._loaded_at = now
        return snapshot

    def _fail_open(self, exc: StoreUnreachableError) -> None:
        self.invalidate()
        logger.warning(
            "advisory_check_fail_open",
            extra={"operation": exc.operation, "cause": exc.cause},
        )


def _display_date(value: DateInput, checked: date | None) -> str:
    if isinstance(value, str):
        return value.strip()
    return str(checked if checked is not None else to_calendar_date(value))
