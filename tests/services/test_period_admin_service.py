"""
Tests for PeriodLockAdminService -- administrator writes to the Period Store.
"""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from lockguard_kernel.domain.dtos import GlobalLockSetting
from lockguard_kernel.exceptions import InvalidPeriodRangeError, PeriodNotFoundError
from lockguard_kernel.models.accounting_period import AccountingPeriod
from lockguard_kernel.selectors.period_lock_selector import PeriodLockSelector


class TestGlobalLock:
    def test_initially_not_configured(self, admin):
        assert admin.get_settings() == GlobalLockSetting.not_configured()

    def test_set_creates_settings_row(self, admin, session, test_actor_id):
        result = admin.set_global_lock(date(2025, 6, 30), test_actor_id)
        session.commit()

        assert result.enabled
        assert result.cutoff_date == date(2025, 6, 30)
        assert PeriodLockSelector(session).get_global_setting() == result

    def test_move_cutoff_keeps_single_row(self, admin, session, test_actor_id):
        admin.set_global_lock(date(2025, 3, 31), test_actor_id)
        admin.set_global_lock(date(2025, 6, 30), test_actor_id)
        session.commit()

        assert PeriodLockSelector(session).get_global_setting().cutoff_date == date(2025, 6, 30)

    def test_disable_keeps_date(self, admin, session, test_actor_id):
        admin.set_global_lock(date(2025, 6, 30), test_actor_id)
        result = admin.disable_global_lock(test_actor_id)

        assert not result.enabled
        assert result.cutoff_date == date(2025, 6, 30)
        assert not result.is_active

    def test_store_without_enabling(self, admin, test_actor_id):
        result = admin.set_global_lock(date(2025, 6, 30), test_actor_id, enabled=False)
        assert not result.is_active

    def test_cutover_date(self, admin, test_actor_id):
        admin.set_global_lock(date(2025, 6, 30), test_actor_id)
        result = admin.set_cutover_date(date(2024, 1, 1), test_actor_id)
        assert result.accounting_cutover_date == date(2024, 1, 1)
        assert result.cutoff_date == date(2025, 6, 30)

        assert admin.set_cutover_date(None, test_actor_id).accounting_cutover_date is None

    def test_change_logged(self, admin, test_actor_id, captured_logs):
        admin.set_global_lock(date(2025, 6, 30), test_actor_id)
        record = next(r for r in captured_logs() if r["message"] == "global_lock_updated")
        assert record["cutoff_date"] == "2025-06-30"
        assert record["actor_id"] == str(test_actor_id)


class TestPeriods:
    def test_create(self, admin, test_actor_id):
        period = admin.create_period(
            "Q1 Close", date(2025, 1, 1), date(2025, 3, 31), test_actor_id
        )
        assert period.name == "Q1 Close"
        assert not period.is_locked

    def test_create_locked_stamps_lock(self, admin, session, clock, test_actor_id):
        period = admin.create_period(
            "Q1 Close", date(2025, 1, 1), date(2025, 3, 31), test_actor_id, is_locked=True
        )
        row = session.get(AccountingPeriod, period.id)
        assert row.locked_by_id == test_actor_id
        assert row.locked_at == clock.now()

    def test_inverted_range_rejected(self, admin, test_actor_id):
        with pytest.raises(InvalidPeriodRangeError) as exc_info:
            admin.create_period("Backwards", date(2025, 3, 31), date(2025, 1, 1), test_actor_id)
        assert exc_info.value.code == "INVALID_PERIOD_RANGE"

    def test_single_day_allowed(self, admin, test_actor_id):
        period = admin.create_period("Day", date(2025, 5, 5), date(2025, 5, 5), test_actor_id)
        assert period.start_date == period.end_date

    def test_overlaps_allowed(self, admin, session, test_actor_id):
        admin.create_period("H1", date(2025, 1, 1), date(2025, 6, 30), test_actor_id, is_locked=True)
        admin.create_period("Q2", date(2025, 4, 1), date(2025, 6, 30), test_actor_id, is_locked=True)
        session.commit()
        assert len(PeriodLockSelector(session).find_locked_periods(date(2025, 5, 1))) == 2

    def test_lock_and_unlock(self, admin, session, clock, test_actor_id):
        period = admin.create_period("Q2", date(2025, 4, 1), date(2025, 6, 30), test_actor_id)

        clock.set_time(datetime(2025, 7, 5, 9, 0, tzinfo=timezone.utc))
        locked = admin.lock_period(period.id, test_actor_id)
        assert locked.is_locked
        assert session.get(AccountingPeriod, period.id).locked_at == clock.now()

        unlocked = admin.unlock_period(period.id, test_actor_id)
        assert not unlocked.is_locked
        row = session.get(AccountingPeriod, period.id)
        assert row.locked_at is None
        assert row.locked_by_id is None

    def test_relock_is_noop(self, admin, session, clock, test_actor_id):
        period = admin.create_period(
            "Q2", date(2025, 4, 1), date(2025, 6, 30), test_actor_id, is_locked=True
        )
        first_locked_at = session.get(AccountingPeriod, period.id).locked_at
        clock.advance(3600)
        admin.lock_period(period.id, test_actor_id)
        assert session.get(AccountingPeriod, period.id).locked_at == first_locked_at

    def test_update_period(self, admin, test_actor_id):
        period = admin.create_period("Q2", date(2025, 4, 1), date(2025, 6, 30), test_actor_id)
        updated = admin.update_period(period.id, test_actor_id, name="Q2 Close", end_date=date(2025, 7, 15))
        assert updated.name == "Q2 Close"
        assert updated.start_date == date(2025, 4, 1)
        assert updated.end_date == date(2025, 7, 15)

    def test_update_cannot_invert(self, admin, test_actor_id):
        period = admin.create_period("Q2", date(2025, 4, 1), date(2025, 6, 30), test_actor_id)
        with pytest.raises(InvalidPeriodRangeError):
            admin.update_period(period.id, test_actor_id, start_date=date(2025, 8, 1))

    def test_unknown_period(self, admin, test_actor_id):
        with pytest.raises(PeriodNotFoundError):
            admin.lock_period(uuid4(), test_actor_id)


class TestDatabaseConstraint:
    def test_check_constraint_rejects_inverted_row(self, session, test_actor_id):
        session.add(
            AccountingPeriod(
                period_name="Raw",
                start_date=date(2025, 3, 31),
                end_date=date(2025, 1, 1),
                is_locked=True,
                created_by_id=test_actor_id,
            )
        )
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()
