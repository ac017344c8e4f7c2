"""
Tests for the append-only violation log.
"""

from datetime import date

import pytest
from sqlalchemy.orm import sessionmaker

from lockguard_kernel.domain.dtos import LockAction, ViolationRecord
from lockguard_kernel.exceptions import ImmutabilityViolationError, ViolationLogWriteError
from lockguard_kernel.models.violation import LockedPeriodViolation
from lockguard_kernel.selectors.period_lock_selector import PeriodLockSelector
from lockguard_kernel.services.violation_log import (
    IsolatedViolationLog,
    ViolationLog,
    ViolationSink,
)


def _record(**overrides) -> ViolationRecord:
    values = dict(
        user_id="u1",
        entity_type="invoice",
        entity_id="INV-1",
        attempted_date=date(2025, 6, 1),
        locked_period_date=date(2025, 6, 30),
        action=LockAction.CREATE,
        details={"source": "server_gate", "reason": "global_locked_period"},
    )
    values.update(overrides)
    return ViolationRecord(**values)


class TestViolationRecord:
    def test_blocked_is_always_true(self):
        with pytest.raises(ValueError):
            _record(blocked=False)


class TestAppend:
    def test_append_persists_row(self, session):
        row_id = ViolationLog(session).append(_record())
        session.commit()

        row = session.get(LockedPeriodViolation, row_id)
        assert row.blocked is True
        assert row.action == "create"
        assert row.details["reason"] == "global_locked_period"
        assert row.created_at is not None

    def test_append_without_entity_id(self, session):
        ViolationLog(session).append(_record(entity_id=None))
        session.commit()
        assert PeriodLockSelector(session).list_violations()[0].entity_id is None

    def test_both_logs_are_sinks(self, session, session_factory):
        assert isinstance(ViolationLog(session), ViolationSink)
        assert isinstance(IsolatedViolationLog(session_factory), ViolationSink)

    def test_logged(self, session, captured_logs):
        ViolationLog(session).append(_record())
        assert any(r["message"] == "violation_recorded" for r in captured_logs())


class TestAppendOnly:
    def test_update_rejected(self, session):
        row_id = ViolationLog(session).append(_record())
        session.commit()

        row = session.get(LockedPeriodViolation, row_id)
        row.action = "update"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_delete_rejected(self, session):
        row_id = ViolationLog(session).append(_record())
        session.commit()

        session.delete(session.get(LockedPeriodViolation, row_id))
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()


class TestIsolatedViolationLog:
    def test_commits_independently(self, session, session_factory):
        IsolatedViolationLog(session_factory).append(_record())
        session.rollback()
        assert len(PeriodLockSelector(session).list_violations()) == 1

    def test_write_failure_wrapped(self, tmp_path):
        from sqlalchemy import create_engine

        # Engine with no tables: every insert fails
        empty = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
        log = IsolatedViolationLog(sessionmaker(bind=empty))
        with pytest.raises(ViolationLogWriteError) as exc_info:
            log.append(_record())
        assert exc_info.value.entity_type == "invoice"
        assert exc_info.value.code == "VIOLATION_LOG_WRITE_FAILED"
        empty.dispose()


class TestListViolations:
    def test_filters(self, session):
        log = ViolationLog(session)
        log.append(_record(entity_type="bill", user_id="a"))
        log.append(_record(entity_type="invoice", user_id="a"))
        log.append(_record(entity_type="invoice", user_id="b"))
        session.commit()

        selector = PeriodLockSelector(session)
        assert len(selector.list_violations()) == 3
        assert len(selector.list_violations(entity_type="invoice")) == 2
        assert len(selector.list_violations(entity_type="invoice", user_id="b")) == 1
        assert len(selector.list_violations(limit=1)) == 1
