"""
Guarded mutations and bulk accounting sync.

Responsibility:
    Glue between the enforcement gate and its callers: the create/update
    handlers for financially-dated records and the outbound accounting
    (QuickBooks) sync job.

Architecture position:
    Kernel > Services -- imperative shell over EnforcementGate.

Invariants enforced:
    - ``require_unlocked`` raises before the handler persists anything.
    - A sync transaction is only reported as allowed when its worker
      returned an allowed verdict.  A worker that raised or never returned
      is reported as skipped (no verdict means not allowed).
    - Workers share no session: each builds its own gate.

Failure modes:
    - TransactionLockedError from ``require_unlocked`` (HTTP 422 by
      convention).
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.orm import Session, sessionmaker

from lockguard_kernel.domain.dates import DateInput
from lockguard_kernel.domain.dtos import AuthorizationResult, LockAction
from lockguard_kernel.exceptions import TransactionLockedError
from lockguard_kernel.logging_config import get_logger
from lockguard_kernel.services.enforcement_gate import EnforcementGate

logger = get_logger("services.guarded_mutation")

SYNC_SOURCE = "accounting_sync"

NO_VERDICT_MESSAGE = (
    "Accounting period status could not be verified for this transaction. "
    "It was not synced."
)


class FinancialEntityType(str, Enum):
    """Record types whose dates are subject to period locks."""

    INVOICE = "invoice"
    BILL = "bill"
    PAYROLL = "payroll"
    PURCHASE_ORDER = "purchase_order"
    CHANGE_ORDER = "change_order"
    SOV_LINE = "sov_line"


def require_unlocked(
    gate: EnforcementGate,
    txn_date: DateInput,
    entity_type: FinancialEntityType | str,
    entity_id: str | None,
    user_id: str,
    action: LockAction | str,
) -> AuthorizationResult:
    """
    Authorize a mutation or raise.

    Call at the top of every create/update handler, before any write.

    Raises:
        TransactionLockedError: When the gate does not allow the write.
            ``message`` is the gate's message, unchanged.
    """
    entity = FinancialEntityType(entity_type).value
    result = gate.authorize(txn_date, entity, entity_id, user_id, action)
    if not result.allowed:
        raise TransactionLockedError(
            message=result.message or NO_VERDICT_MESSAGE,
            entity_type=entity,
            entity_id=entity_id,
            reason=result.reason.value if result.reason else None,
        )
    return result


@dataclass(frozen=True)
class SyncTransaction:
    """One record queued for outbound accounting sync."""

    entity_type: FinancialEntityType
    entity_id: str
    txn_date: DateInput
    action: LockAction = LockAction.CREATE


@dataclass(frozen=True)
class SkippedTransaction:
    """A transaction the sync job must not transmit, with the reason."""

    transaction: SyncTransaction
    message: str


@dataclass(frozen=True)
class SyncBatchReport:
    """Outcome of authorizing a sync batch, in input order."""

    allowed: tuple[SyncTransaction, ...]
    skipped: tuple[SkippedTransaction, ...]

    @property
    def all_allowed(self) -> bool:
        return not self.skipped


class SyncBatchGuard:
    """
    Authorizes a batch of sync transactions in parallel.

    Each worker opens its own session, reads the Period Store through it,
    and appends violations through the shared session factory.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        max_workers: int = 4,
        source: str = SYNC_SOURCE,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._session_factory = session_factory
        self._max_workers = max_workers
        self._source = source

    def authorize_batch(
        self,
        transactions: Sequence[SyncTransaction],
        user_id: str,
    ) -> SyncBatchReport:
        """
        Authorize every transaction; partition into allowed and skipped.

        Never raises for per-transaction failures.
        """
        if not transactions:
            return SyncBatchReport(allowed=(), skipped=())

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [
                executor.submit(self._authorize_one, txn, user_id)
                for txn in transactions
            ]

        allowed: list[SyncTransaction] = []
        skipped: list[SkippedTransaction] = []
        for txn, future in zip(transactions, futures):
            try:
                result = future.result()
            except Exception:
                logger.error(
                    "sync_authorization_no_verdict",
                    extra={
                        "entity_type": _entity_label(txn.entity_type),
                        "entity_id": txn.entity_id,
                    },
                    exc_info=True,
                )
                result = None

            if result is not None and result.allowed:
                allowed.append(txn)
            else:
                message = result.message if result is not None else None
                skipped.append(SkippedTransaction(txn, message or NO_VERDICT_MESSAGE))

        logger.info(
            "sync_batch_authorized",
            extra={
                "batch_size": len(transactions),
                "allowed_count": len(allowed),
                "skipped_count": len(skipped),
            },
        )
        return SyncBatchReport(allowed=tuple(allowed), skipped=tuple(skipped))

    def _authorize_one(
        self, txn: SyncTransaction, user_id: str
    ) -> AuthorizationResult:
        with self._session_factory() as session:
            gate = EnforcementGate.for_session(
                session, self._session_factory, source=self._source
            )
            return gate.authorize(
                txn.txn_date,
                FinancialEntityType(txn.entity_type).value,
                txn.entity_id,
                user_id,
                txn.action,
            )


def _entity_label(entity_type: FinancialEntityType | str) -> str:
    # Raw value; unknown entity types must still be loggable.
    return str(getattr(entity_type, "value", entity_type))
