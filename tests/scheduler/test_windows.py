"""Tests for aura/scheduler/windows.py"""
from __future__ import annotations

from datetime import datetime

import pytest

from aura.scheduler.windows import is_due, next_window_start, satisfied_until, window_start
from aura.tasks.task import Schedule

# 2025-01-01 is a Wednesday
CREATED = datetime(2025, 1, 1, 8, 0)


# ── window_start ─────────────────────────────────────────────────────────────

class TestWindowStart:
    def test_daily_after_time_is_today(self, make_task):
        task = make_task(time="09:00")
        assert window_start(task, datetime(2025, 1, 10, 9, 1)) == datetime(2025, 1, 10, 9, 0)

    def test_daily_before_time_is_yesterday(self, make_task):
        task = make_task(time="09:00")
        assert window_start(task, datetime(2025, 1, 10, 8, 59)) == datetime(2025, 1, 9, 9, 0)

    def test_daily_exactly_at_time(self, make_task):
        task = make_task(time="09:00")
        assert window_start(task, datetime(2025, 1, 10, 9, 0)) == datetime(2025, 1, 10, 9, 0)

    def test_weekly_anchored_on_creation_weekday(self, make_task):
        task = make_task(schedule=Schedule.WEEKLY, time="09:00")
        # Monday 13 Jan → previous Wednesday 8 Jan
        assert window_start(task, datetime(2025, 1, 13, 12, 0)) == datetime(2025, 1, 8, 9, 0)

    def test_weekly_same_weekday_before_time_goes_back_a_week(self, make_task):
        task = make_task(schedule=Schedule.WEEKLY, time="09:00")
        assert window_start(task, datetime(2025, 1, 15, 8, 0)) == datetime(2025, 1, 8, 9, 0)

    def test_weekly_same_weekday_after_time(self, make_task):
        task = make_task(schedule=Schedule.WEEKLY, time="09:00")
        assert window_start(task, datetime(2025, 1, 15, 10, 0)) == datetime(2025, 1, 15, 9, 0)

    def test_monthly_anchored_on_creation_day(self, make_task):
        task = make_task(schedule=Schedule.MONTHLY, time="09:00", created_at=datetime(2025, 1, 15, 8, 0))
        assert window_start(task, datetime(2025, 3, 20, 0, 0)) == datetime(2025, 3, 15, 9, 0)
        assert window_start(task, datetime(2025, 3, 10, 0, 0)) == datetime(2025, 2, 15, 9, 0)

    def test_monthly_clamps_to_last_day(self, make_task):
        task = make_task(schedule=Schedule.MONTHLY, time="09:00", created_at=datetime(2025, 1, 31, 8, 0))
        assert window_start(task, datetime(2025, 3, 1, 0, 0)) == datetime(2025, 2, 28, 9, 0)
        assert window_start(task, datetime(2024, 3, 1, 0, 0)) == datetime(2024, 2, 29, 9, 0)
        assert window_start(task, datetime(2025, 4, 30, 10, 0)) == datetime(2025, 4, 30, 9, 0)

    def test_monthly_wraps_year(self, make_task):
        task = make_task(schedule=Schedule.MONTHLY, time="09:00", created_at=datetime(2024, 12, 20, 8, 0))
        assert window_start(task, datetime(2025, 1, 5, 0, 0)) == datetime(2024, 12, 20, 9, 0)


class TestNextWindowStart:
    def test_daily(self, make_task):
        task = make_task(time="09:00")
        assert next_window_start(task, datetime(2025, 1, 10, 9, 30)) == datetime(2025, 1, 11, 9, 0)
        assert next_window_start(task, datetime(2025, 1, 10, 8, 30)) == datetime(2025, 1, 10, 9, 0)

    def test_weekly(self, make_task):
        task = make_task(schedule=Schedule.WEEKLY, time="09:00")
        assert next_window_start(task, datetime(2025, 1, 13, 12, 0)) == datetime(2025, 1, 15, 9, 0)

    def test_monthly_keeps_anchor_after_short_month(self, make_task):
        task = make_task(schedule=Schedule.MONTHLY, time="09:00", created_at=datetime(2025, 1, 31, 8, 0))
        assert next_window_start(task, datetime(2025, 3, 1, 0, 0)) == datetime(2025, 3, 31, 9, 0)

    def test_monthly_december_to_january(self, make_task):
        task = make_task(schedule=Schedule.MONTHLY, time="09:00", created_at=datetime(2024, 1, 5, 8, 0))
        assert next_window_start(task, datetime(2024, 12, 10, 0, 0)) == datetime(2025, 1, 5, 9, 0)


# ── is_due ───────────────────────────────────────────────────────────────────

class TestIsDue:
    def test_scenario_daily_after_yesterdays_run(self, make_task):
        task = make_task(time="09:00", last_run=datetime(2025, 1, 9, 9, 5))
        now = datetime(2025, 1, 10, 9, 1)
        assert is_due(task, now) is True

        task.last_run = now
        assert is_due(task, now) is False
        assert is_due(task, datetime(2025, 1, 10, 23, 59)) is False

    def test_is_pure(self, make_task):
        task = make_task(last_run=datetime(2025, 1, 9, 9, 5))
        now = datetime(2025, 1, 10, 9, 1)
        before = task.to_dict()
        assert is_due(task, now) == is_due(task, now)
        assert task.to_dict() == before

    @pytest.mark.parametrize("schedule", list(Schedule))
    @pytest.mark.parametrize("last_run", [None, datetime(2024, 6, 1, 9, 0)])
    def test_disabled_never_due(self, make_task, schedule, last_run):
        task = make_task(schedule=schedule, enabled=False, last_run=last_run)
        for now in (datetime(2025, 1, 1, 9, 0), datetime(2025, 2, 3, 12, 0), datetime(2026, 7, 1, 0, 0)):
            assert is_due(task, now) is False

    def test_never_run_created_before_window_is_due(self, make_task):
        task = make_task(time="09:00", created_at=datetime(2025, 1, 1, 8, 0))
        assert is_due(task, datetime(2025, 1, 1, 9, 0)) is True

    def test_created_mid_window_waits_for_next_boundary(self, make_task):
        task = make_task(time="09:00", created_at=datetime(2025, 1, 1, 10, 0))
        assert is_due(task, datetime(2025, 1, 1, 10, 1)) is False
        assert is_due(task, datetime(2025, 1, 2, 8, 59)) is False
        assert is_due(task, datetime(2025, 1, 2, 9, 0)) is True

    def test_created_exactly_at_boundary_is_not_retroactive(self, make_task):
        task = make_task(time="09:00", created_at=datetime(2025, 1, 1, 9, 0))
        assert is_due(task, datetime(2025, 1, 1, 9, 30)) is False

    def test_catch_up_after_missed_windows(self, make_task):
        # Last ran a week ago; several windows were missed while closed
        task = make_task(time="09:00", last_run=datetime(2025, 1, 3, 9, 0))
        now = datetime(2025, 1, 10, 14, 0)
        assert is_due(task, now) is True
        task.last_run = now
        assert is_due(task, datetime(2025, 1, 10, 14, 1)) is False

    def test_weekly_not_due_midweek_after_run(self, make_task):
        task = make_task(schedule=Schedule.WEEKLY, last_run=datetime(2025, 1, 8, 9, 2))
        assert is_due(task, datetime(2025, 1, 13, 9, 0)) is False
        assert is_due(task, datetime(2025, 1, 15, 9, 0)) is True

    def test_monthly_due_on_clamped_day(self, make_task):
        task = make_task(
            schedule=Schedule.MONTHLY,
            created_at=datetime(2025, 1, 31, 8, 0),
            last_run=datetime(2025, 1, 31, 9, 1),
        )
        assert is_due(task, datetime(2025, 2, 27, 12, 0)) is False
        assert is_due(task, datetime(2025, 2, 28, 9, 0)) is True

    def test_reenabled_after_window_waits_for_next(self, make_task):
        task = make_task(
            time="09:00",
            last_run=datetime(2025, 1, 9, 9, 0),
            enabled_at=datetime(2025, 1, 10, 11, 0),
        )
        assert is_due(task, datetime(2025, 1, 10, 11, 1)) is False
        assert is_due(task, datetime(2025, 1, 11, 9, 0)) is True

    def test_reenabled_before_window_fires_in_it(self, make_task):
        task = make_task(
            time="09:00",
            last_run=datetime(2025, 1, 9, 9, 0),
            enabled_at=datetime(2025, 1, 10, 8, 30),
        )
        assert is_due(task, datetime(2025, 1, 10, 9, 0)) is True


class TestSatisfiedUntil:
    def test_uses_creation_when_never_run(self, make_task):
        task = make_task()
        assert satisfied_until(task) == CREATED

    def test_uses_last_run(self, make_task):
        task = make_task(last_run=datetime(2025, 1, 5, 9, 0))
        assert satisfied_until(task) == datetime(2025, 1, 5, 9, 0)

    def test_later_enable_wins(self, make_task):
        task = make_task(last_run=datetime(2025, 1, 5, 9, 0), enabled_at=datetime(2025, 1, 6, 9, 0))
        assert satisfied_until(task) == datetime(2025, 1, 6, 9, 0)
