"""
EnforcementGate -- fail-closed authorization for mutation and sync paths.

Responsibility:
    The only place a create/update handler or an outbound accounting sync
    may decide whether a financially-dated record proceeds.  Returns a
    binding verdict and records every data-conflict block in the
    violation log.

Architecture position:
    Kernel > Services -- thin fail-closed wrapper over the shared lock
    evaluator (``check_global_cutoff`` / ``check_locked_periods``).

Procedure:
    1. Read the global lock setting.  Read error -> BLOCK.
    2. Global cutoff check.  Hit -> violation record, BLOCK.
    3. Read locked periods containing the date.  Read error -> BLOCK.
    4. Named period check.  Hit -> violation record, BLOCK.
    5. Otherwise ALLOW.
    Any unexpected exception anywhere -> BLOCK.

Invariants enforced:
    - FAIL-CLOSED.  No path returns allowed=True without both reads having
      succeeded and both checks having passed.
    - No exception escapes ``authorize()``.
    - At most one violation record per call; none for infrastructure
      blocks.  A failed violation write is logged and never changes the
      verdict.
    - No retries.  A blocked verdict is final for the call.

Audit relevance:
    Store-unreachable blocks emit exactly one ERROR log line.  Data-conflict
    blocks emit a WARNING and append a violation record.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session, sessionmaker

from lockguard_kernel.domain.dates import DateInput, to_calendar_date
from lockguard_kernel.domain.dtos import (
    AuthorizationResult,
    GlobalLockSetting,
    LockAction,
    LockEvaluationResult,
    LockReason,
    ViolationReason,
    ViolationRecord,
)
from lockguard_kernel.domain.evaluator import check_global_cutoff, check_locked_periods
from lockguard_kernel.exceptions import InvalidTransactionDateError, StoreUnreachableError
from lockguard_kernel.logging_config import LogContext, get_logger
from lockguard_kernel.selectors.period_lock_selector import PeriodLockSelector, PeriodStore
from lockguard_kernel.services.violation_log import IsolatedViolationLog, ViolationSink

logger = get_logger("services.enforcement_gate")

DEFAULT_SOURCE = "server_gate"

FAIL_CLOSED_MESSAGE = (
    "Cannot verify accounting period status. Transaction blocked for safety. "
    "Please contact an administrator."
)
UNEXPECTED_ERROR_MESSAGE = (
    "Cannot verify accounting period status due to an unexpected error. "
    "Transaction blocked for safety. Please contact an administrator."
)


class EnforcementGate:
    """
    Binding, fail-closed lock authorization.

    Contract:
        ``authorize()`` always returns an AuthorizationResult.  Callers must
        abort the write or sync when ``allowed`` is False and surface
        ``message`` verbatim.

    Non-goals:
        - Does NOT retry store reads; the caller decides whether to retry
          the whole operation later.
        - Does NOT mutate the Period Store.
    """

    def __init__(
        self,
        store: PeriodStore,
        violation_log: ViolationSink,
        source: str = DEFAULT_SOURCE,
    ):
        self._store = store
        self._violation_log = violation_log
        self._source = source

    @classmethod
    def for_session(
        cls,
        session: Session,
        session_factory: sessionmaker[Session],
        source: str = DEFAULT_SOURCE,
    ) -> EnforcementGate:
        """
        Standard wiring: reads through ``session``, violation records
        committed independently through ``session_factory``.
        """
        return cls(
            store=PeriodLockSelector(session),
            violation_log=IsolatedViolationLog(session_factory),
            source=source,
        )

    def authorize(
        self,
        txn_date: DateInput,
        entity_type: str,
        entity_id: str | None,
        user_id: str,
        action: LockAction | str,
        *,
        source: str | None = None,
    ) -> AuthorizationResult:
        """
        Decide whether a dated record may be persisted or synced.

        Args:
            txn_date: The record's transaction date.
            entity_type: Record type ("invoice", "bill", ...).
            entity_id: Record id, or None for a record not yet created.
            user_id: Acting user.
            action: "create" or "update".
            source: Label stored in the violation details; defaults to the
                gate's configured source.

        Returns:
            AuthorizationResult.  Never raises.
        """
        origin = source or self._source
        with LogContext.bind(
            user_id=str(user_id),
            entity_type=entity_type,
            entity_id=entity_id,
            source=origin,
        ):
            try:
                return self._authorize(
                    txn_date, entity_type, entity_id, str(user_id), action, origin
                )
            except Exception:
                logger.error(
                    "fail_closed_unexpected_error",
                    extra={"txn_date": str(txn_date)},
                    exc_info=True,
                )
                return AuthorizationResult.deny(UNEXPECTED_ERROR_MESSAGE)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _authorize(
        self,
        txn_date: DateInput,
        entity_type: str,
        entity_id: str | None,
        user_id: str,
        action: LockAction | str,
        origin: str,
    ) -> AuthorizationResult:
        lock_action = LockAction(action)

        try:
            check_date = to_calendar_date(txn_date)
        except InvalidTransactionDateError:
            logger.warning(
                "authorization_invalid_date",
                extra={"txn_date": repr(txn_date)},
            )
            return AuthorizationResult.deny(
                f"Transaction date {txn_date!r} is not a valid calendar date."
            )

        # 1. Global setting -- FAIL CLOSED if unreachable
        try:
            settings = self._store.get_global_setting()
        except StoreUnreachableError as exc:
            return self._fail_closed(exc, check_date)

        # 2. Global cutoff
        cutoff_hit = check_global_cutoff(check_date, settings)
        if cutoff_hit is not None:
            logger.warning(
                "locked_period_violation",
                extra={
                    "txn_date": str(check_date),
                    "cutoff_date": str(settings.cutoff_date),
                    "reason": ViolationReason.GLOBAL_LOCKED_PERIOD.value,
                },
            )
            self._record_violation(
                cutoff_hit,
                settings,
                entity_type,
                entity_id,
                user_id,
                lock_action,
                origin,
                ViolationReason.GLOBAL_LOCKED_PERIOD,
            )
            return AuthorizationResult.deny(
                f"Transaction date {check_date} is in a locked accounting period "
                f"(locked through {settings.cutoff_date}). "
                "This change will not be synced.",
                reason=LockReason.GLOBAL_CUTOFF,
                boundary_date=settings.cutoff_date,
            )

        # 3. Locked periods containing the date -- FAIL CLOSED if unreachable
        try:
            periods = self._store.find_locked_periods(check_date)
        except StoreUnreachableError as exc:
            return self._fail_closed(exc, check_date)

        # 4. Named period
        period_hit = check_locked_periods(check_date, periods)
        if period_hit is not None:
            logger.warning(
                "locked_period_violation",
                extra={
                    "txn_date": str(check_date),
                    "period_name": period_hit.period_name,
                    "reason": ViolationReason.ACCOUNTING_PERIOD.value,
                },
            )
            self._record_violation(
                period_hit,
                settings,
                entity_type,
                entity_id,
                user_id,
                lock_action,
                origin,
                ViolationReason.ACCOUNTING_PERIOD,
            )
            return AuthorizationResult.deny(
                f"Transaction date {check_date} falls within locked accounting "
                f'period "{period_hit.period_name}" '
                f"({period_hit.period_start} to {period_hit.boundary_date}). "
                "This change will not be synced.",
                reason=LockReason.ACCOUNTING_PERIOD,
                period_name=period_hit.period_name,
                boundary_date=period_hit.boundary_date,
            )

        logger.debug("authorization_allowed", extra={"txn_date": str(check_date)})
        return AuthorizationResult.allow()

    def _fail_closed(
        self, exc: StoreUnreachableError, check_date: date
    ) -> AuthorizationResult:
        logger.error(
            "fail_closed_store_unreachable",
            extra={
                "operation": exc.operation,
                "cause": exc.cause,
                "txn_date": str(check_date),
            },
        )
        return AuthorizationResult.deny(
            FAIL_CLOSED_MESSAGE, reason=LockReason.STORE_UNREACHABLE
        )

    def _record_violation(
        self,
        hit: LockEvaluationResult,
        settings: GlobalLockSetting,
        entity_type: str,
        entity_id: str | None,
        user_id: str,
        action: LockAction,
        origin: str,
        reason: ViolationReason,
    ) -> None:
        record = ViolationRecord(
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            attempted_date=hit.checked_date,
            locked_period_date=settings.cutoff_date,
            action=action,
            details={
                "source": origin,
                "reason": reason.value,
                "period_name": hit.period_name,
            },
        )
        try:
            self._violation_log.append(record)
        except Exception:
            # Best-effort audit: the verdict is already decided
            logger.error(
                "violation_log_write_failed",
                extra={"attempted_date": str(hit.checked_date)},
                exc_info=True,
            )
