"""
Tests for require_unlocked() and the bulk sync guard.
"""

from datetime import date

import pytest

from lockguard_kernel.domain.dtos import GlobalLockSetting, LockAction
from lockguard_kernel.exceptions import TransactionLockedError
from lockguard_kernel.selectors.period_lock_selector import PeriodLockSelector
from lockguard_kernel.services.enforcement_gate import EnforcementGate
from lockguard_kernel.services.guarded_mutation import (
    NO_VERDICT_MESSAGE,
    FinancialEntityType,
    SyncBatchGuard,
    SyncTransaction,
    require_unlocked,
)
from tests.conftest import FailingPeriodStore, RecordingViolationSink, StaticPeriodStore, network_timeout

CUTOFF_JUNE = GlobalLockSetting(enabled=True, cutoff_date=date(2025, 6, 30))


class TestRequireUnlocked:
    def test_allowed_returns_result(self):
        gate = EnforcementGate(StaticPeriodStore(CUTOFF_JUNE), RecordingViolationSink())
        result = require_unlocked(gate, "2025-07-01", "invoice", "INV-1", "u1", "create")
        assert result.allowed

    def test_blocked_raises_with_gate_message(self):
        gate = EnforcementGate(StaticPeriodStore(CUTOFF_JUNE), RecordingViolationSink())
        with pytest.raises(TransactionLockedError) as exc_info:
            require_unlocked(
                gate, "2025-06-30", FinancialEntityType.BILL, "B-1", "u1", LockAction.UPDATE
            )

        error = exc_info.value
        assert error.code == "TRANSACTION_LOCKED"
        assert error.http_status == 422
        assert error.entity_type == "bill"
        assert error.entity_id == "B-1"
        assert error.reason == "global_cutoff"
        assert "locked through 2025-06-30" in error.message
        assert str(error) == error.message

    def test_store_outage_raises(self):
        gate = EnforcementGate(FailingPeriodStore(network_timeout()), RecordingViolationSink())
        with pytest.raises(TransactionLockedError) as exc_info:
            require_unlocked(gate, "2025-07-01", "payroll", None, "u1", "create")
        assert exc_info.value.reason == "store_unreachable"

    def test_unknown_entity_type_rejected(self):
        gate = EnforcementGate(StaticPeriodStore(), RecordingViolationSink())
        with pytest.raises(ValueError):
            require_unlocked(gate, "2025-07-01", "timesheet", None, "u1", "create")

    @pytest.mark.parametrize("entity_type", list(FinancialEntityType))
    def test_every_financial_entity_guarded(self, entity_type):
        sink = RecordingViolationSink()
        gate = EnforcementGate(StaticPeriodStore(CUTOFF_JUNE), sink)
        with pytest.raises(TransactionLockedError):
            require_unlocked(gate, "2025-01-15", entity_type, "X-1", "u1", "create")
        assert sink.records[0].entity_type == entity_type.value


def _txn(entity_id, txn_date, entity_type=FinancialEntityType.INVOICE):
    return SyncTransaction(entity_type=entity_type, entity_id=entity_id, txn_date=txn_date)


class TestSyncBatchGuard:
    def test_empty_batch(self, session_factory):
        report = SyncBatchGuard(session_factory).authorize_batch([], "sync-bot")
        assert report.allowed == ()
        assert report.skipped == ()
        assert report.all_allowed

    def test_partition_preserves_order(self, session, session_factory, set_cutoff, add_period):
        set_cutoff(date(2025, 3, 31))
        add_period("Q3 Close", date(2025, 7, 1), date(2025, 9, 30))

        batch = [
            _txn("INV-1", "2025-04-15"),
            _txn("INV-2", "2025-03-31"),
            _txn("INV-3", "2025-05-01"),
            _txn("INV-4", "2025-08-08", FinancialEntityType.BILL),
            _txn("INV-5", "2025-10-01"),
        ]
        report = SyncBatchGuard(session_factory, max_workers=3).authorize_batch(batch, "sync-bot")

        assert [t.entity_id for t in report.allowed] == ["INV-1", "INV-3", "INV-5"]
        assert [s.transaction.entity_id for s in report.skipped] == ["INV-2", "INV-4"]
        assert "locked through 2025-03-31" in report.skipped[0].message
        assert '"Q3 Close"' in report.skipped[1].message
        assert not report.all_allowed

    def test_blocked_transactions_logged_as_sync_violations(
        self, session, session_factory, set_cutoff
    ):
        set_cutoff(date(2025, 6, 30))
        SyncBatchGuard(session_factory).authorize_batch(
            [_txn("INV-1", "2025-06-01"), _txn("INV-2", "2025-06-02")], "sync-bot"
        )

        violations = PeriodLockSelector(session).list_violations()
        assert len(violations) == 2
        assert {v.details["source"] for v in violations} == {"accounting_sync"}
        assert {v.user_id for v in violations} == {"sync-bot"}

    def test_worker_without_verdict_is_skipped(self, session_factory, monkeypatch):
        def _explode(self, txn, user_id):
            raise RuntimeError("worker died")

        monkeypatch.setattr(SyncBatchGuard, "_authorize_one", _explode)
        report = SyncBatchGuard(session_factory).authorize_batch(
            [_txn("INV-1", "2025-07-01")], "sync-bot"
        )
        assert report.allowed == ()
        assert report.skipped[0].message == NO_VERDICT_MESSAGE

    def test_unknown_entity_type_skipped_rest_of_batch_reported(
        self, session, session_factory, set_cutoff, captured_logs
    ):
        set_cutoff(date(2025, 6, 30))
        batch = [
            SyncTransaction(entity_type="estimate", entity_id="E-1", txn_date="2025-07-01"),
            _txn("INV-1", "2025-07-01"),
            _txn("INV-2", "2025-06-15"),
        ]

        report = SyncBatchGuard(session_factory).authorize_batch(batch, "sync-bot")

        assert [t.entity_id for t in report.allowed] == ["INV-1"]
        assert [s.transaction.entity_id for s in report.skipped] == ["E-1", "INV-2"]
        assert report.skipped[0].message == NO_VERDICT_MESSAGE
        assert "locked through 2025-06-30" in report.skipped[1].message

        no_verdict = [
            r for r in captured_logs() if r["message"] == "sync_authorization_no_verdict"
        ]
        assert len(no_verdict) == 1
        assert no_verdict[0]["entity_type"] == "estimate"
        assert no_verdict[0]["entity_id"] == "E-1"

    def test_invalid_worker_count(self, session_factory):
        with pytest.raises(ValueError):
            SyncBatchGuard(session_factory, max_workers=0)

    def test_summary_logged(self, session_factory, captured_logs):
        SyncBatchGuard(session_factory).authorize_batch([_txn("INV-1", "2025-07-01")], "bot")
        summary = next(
            r for r in captured_logs() if r["message"] == "sync_batch_authorized"
        )
        assert summary["allowed_count"] == 1
        assert summary["skipped_count"] == 0
