"""
Tests for AdvisoryGate -- fail-open checks for interactive forms.
"""

from datetime import date
from uuid import uuid4

import pytest

from lockguard_kernel.domain.dtos import DateCheckResult, GlobalLockSetting, LockedPeriod
from lockguard_kernel.selectors.period_lock_selector import PeriodLockSelector
from lockguard_kernel.services.advisory_gate import (
    MAX_CACHE_TTL_SECONDS,
    AdvisoryGate,
)
from lockguard_kernel.services.enforcement_gate import EnforcementGate
from tests.conftest import (
    FailingPeriodStore,
    RecordingViolationSink,
    StaticPeriodStore,
    network_timeout,
)

CUTOFF_JUNE = GlobalLockSetting(
    enabled=True,
    cutoff_date=date(2025, 6, 30),
    accounting_cutover_date=date(2024, 1, 1),
)
Q3_CLOSE = LockedPeriod(uuid4(), "Q3 Close", date(2025, 7, 1), date(2025, 9, 30), True)


class TestCheckDate:
    def test_open_date_valid(self, clock):
        gate = AdvisoryGate(StaticPeriodStore(CUTOFF_JUNE), clock=clock)
        assert gate.check_date("2025-07-01", "invoice") == DateCheckResult.ok()

    def test_cutoff_message(self, clock):
        gate = AdvisoryGate(StaticPeriodStore(CUTOFF_JUNE), clock=clock)
        result = gate.check_date("2025-06-30", "invoice")
        assert not result.valid
        assert result.message == (
            "Cannot create/edit invoice dated 2025-06-30. "
            "Accounting period is locked through 2025-06-30."
        )

    def test_named_period_message(self, clock):
        gate = AdvisoryGate(StaticPeriodStore(CUTOFF_JUNE, (Q3_CLOSE,)), clock=clock)
        result = gate.check_date(date(2025, 8, 15), "bill")
        assert not result.valid
        assert result.message == (
            'Cannot create/edit bill dated 2025-08-15. '
            'Accounting period "Q3 Close" is locked.'
        )

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_value_valid(self, value, clock):
        store = StaticPeriodStore(CUTOFF_JUNE)
        gate = AdvisoryGate(store, clock=clock)
        assert gate.check_date(value, "invoice").valid
        assert store.reads == 0

    def test_malformed_value_left_to_form_validation(self, clock):
        gate = AdvisoryGate(StaticPeriodStore(CUTOFF_JUNE), clock=clock)
        assert gate.check_date("2025-02-30", "invoice").valid

    def test_agrees_with_enforcement_on_locked_dates(self, clock):
        store = StaticPeriodStore(CUTOFF_JUNE, (Q3_CLOSE,))
        advisory = AdvisoryGate(store, clock=clock)
        enforcement = EnforcementGate(store, RecordingViolationSink())

        for d in ("2025-06-30", "2025-07-01", "2025-09-30", "2025-10-01"):
            advised = advisory.check_date(d, "invoice").valid
            enforced = enforcement.authorize(d, "invoice", None, "u", "create").allowed
            assert advised == enforced, d


class TestFailOpen:
    def test_unreachable_store_reports_valid(self, clock, store_failure):
        gate = AdvisoryGate(FailingPeriodStore(store_failure), clock=clock)
        assert gate.check_date("2020-01-01", "invoice").valid
        assert not gate.is_date_locked("2020-01-01")
        assert gate.min_allowed_date() is None
        assert gate.locked_periods() == ()
        assert not gate.is_enabled()
        assert gate.cutoff_date() is None
        assert not gate.is_legacy("2020-01-01")

    def test_unexpected_exception_fails_open(self, clock):
        gate = AdvisoryGate(FailingPeriodStore(RuntimeError("boom")), clock=clock)
        assert gate.check_date("2020-01-01", "invoice").valid

    def test_failure_logged_as_warning(self, clock, captured_logs):
        AdvisoryGate(FailingPeriodStore(network_timeout()), clock=clock).check_date(
            "2020-01-01", "invoice"
        )
        logs = [r for r in captured_logs() if r["message"] == "advisory_check_fail_open"]
        assert len(logs) == 1
        assert logs[0]["level"] == "WARNING"

    def test_scenario_c_same_outage_opposite_verdicts(self, clock, captured_logs):
        """Advisory reports valid, enforcement blocks, nothing raises."""
        store = FailingPeriodStore(network_timeout())

        assert AdvisoryGate(store, clock=clock).check_date("2025-07-01", "bill").valid

        before = len(captured_logs())
        result = EnforcementGate(store, RecordingViolationSink()).authorize(
            "2025-07-01", "bill", "B-1", "u1", "create"
        )
        assert not result.allowed
        assert len(captured_logs()) - before == 1


class TestCache:
    def test_snapshot_reused_within_ttl(self, clock):
        store = StaticPeriodStore(CUTOFF_JUNE)
        gate = AdvisoryGate(store, clock=clock, cache_ttl_seconds=15)

        gate.check_date("2025-06-01", "invoice")
        clock.advance(14)
        gate.check_date("2025-06-02", "invoice")
        assert store.reads == 1

    def test_snapshot_reloaded_after_ttl(self, clock):
        store = StaticPeriodStore(CUTOFF_JUNE)
        gate = AdvisoryGate(store, clock=clock, cache_ttl_seconds=15)

        gate.check_date("2025-06-01", "invoice")
        clock.advance(15)
        gate.check_date("2025-06-01", "invoice")
        assert store.reads == 2

    def test_lock_change_visible_after_ttl(self, clock):
        store = StaticPeriodStore()
        gate = AdvisoryGate(store, clock=clock)
        assert gate.check_date("2025-06-01", "invoice").valid

        store.settings = CUTOFF_JUNE
        clock.advance(gate.cache_ttl_seconds)
        assert not gate.check_date("2025-06-01", "invoice").valid

    def test_ttl_capped(self, clock):
        gate = AdvisoryGate(StaticPeriodStore(), clock=clock, cache_ttl_seconds=600)
        assert gate.cache_ttl_seconds == MAX_CACHE_TTL_SECONDS

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            AdvisoryGate(StaticPeriodStore(), cache_ttl_seconds=-1)

    def test_zero_ttl_reads_every_time(self, clock):
        store = StaticPeriodStore()
        gate = AdvisoryGate(store, clock=clock, cache_ttl_seconds=0)
        gate.is_enabled()
        gate.is_enabled()
        assert store.reads == 2

    def test_invalidate(self, clock):
        store = StaticPeriodStore()
        gate = AdvisoryGate(store, clock=clock)
        gate.is_enabled()
        gate.invalidate()
        gate.is_enabled()
        assert store.reads == 2

    def test_failures_not_cached(self, clock):
        store = FailingPeriodStore(network_timeout(), settings=CUTOFF_JUNE)
        gate = AdvisoryGate(store, clock=clock)
        assert gate.check_date("2025-06-01", "invoice").valid

        store.fail_on = ()
        assert not gate.check_date("2025-06-01", "invoice").valid


class TestAccessors:
    def test_min_allowed_date(self, clock):
        gate = AdvisoryGate(StaticPeriodStore(CUTOFF_JUNE), clock=clock)
        assert gate.min_allowed_date() == date(2025, 7, 1)

    def test_is_date_locked(self, clock):
        gate = AdvisoryGate(StaticPeriodStore(CUTOFF_JUNE, (Q3_CLOSE,)), clock=clock)
        assert gate.is_date_locked("2025-06-30")
        assert gate.is_date_locked("2025-08-01")
        assert not gate.is_date_locked("2025-10-01")
        assert not gate.is_date_locked("nonsense")

    def test_settings_accessors(self, clock):
        gate = AdvisoryGate(StaticPeriodStore(CUTOFF_JUNE, (Q3_CLOSE,)), clock=clock)
        assert gate.is_enabled()
        assert gate.cutoff_date() == date(2025, 6, 30)
        assert [p.name for p in gate.locked_periods()] == ["Q3 Close"]

    def test_is_legacy(self, clock):
        gate = AdvisoryGate(StaticPeriodStore(CUTOFF_JUNE), clock=clock)
        assert gate.is_legacy("2023-12-31")
        assert not gate.is_legacy("2024-01-01")


class TestOnRealStore:
    def test_reads_through_selector(self, session, clock, set_cutoff, add_period):
        set_cutoff(date(2025, 6, 30))
        add_period("Q3 Close", date(2025, 7, 1), date(2025, 9, 30))

        gate = AdvisoryGate(PeriodLockSelector(session), clock=clock)
        assert not gate.check_date("2025-06-30", "invoice").valid
        assert 'Accounting period "Q3 Close" is locked.' in gate.check_date(
            "2025-07-04", "invoice"
        ).message
        assert gate.check_date("2025-10-01", "invoice").valid
