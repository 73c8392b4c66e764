"""
Due-detection — decides whether an agent task should fire now.

Every task owns a sequence of eligibility windows. A window opens at a
scheduled occurrence and lasts until the next one:

    daily    every day at task.time
    weekly   every week on the weekday the task was created, at task.time
    monthly  every month on the day-of-month the task was created, at
             task.time; clamped to the last day in shorter months
             (created on the 31st → Feb 28/29, Apr 30, ...)

A task is due when the window containing `now` has not been satisfied
yet: its last run (or, if it never ran, its creation) lies strictly before
the window start. Missed windows collapse into a single catch-up run
because only the latest last_run is kept.

All functions here are pure and work on naive device-local datetimes.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

from aura.tasks.task import AgentTask, Schedule


def _at(day: date, task: AgentTask) -> datetime:
    return datetime(day.year, day.month, day.day, task.hour, task.minute)


def _monthly_occurrence(year: int, month: int, anchor_day: int, task: AgentTask) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return _at(date(year, month, min(anchor_day, last_day)), task)


def _previous_month(year: int, month: int) -> tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def _following_month(year: int, month: int) -> tuple[int, int]:
    return (year + 1, 1) if month == 12 else (year, month + 1)


def window_start(task: AgentTask, now: datetime) -> datetime:
    """The most recent scheduled occurrence at or before `now`."""
    schedule = task.schedule

    if schedule is Schedule.DAILY:
        candidate = _at(now.date(), task)
        if candidate > now:
            candidate -= timedelta(days=1)
        return candidate

    if schedule is Schedule.WEEKLY:
        days_back = (now.weekday() - task.created_at.weekday()) % 7
        candidate = _at(now.date() - timedelta(days=days_back), task)
        if candidate > now:
            candidate -= timedelta(days=7)
        return candidate

    if schedule is Schedule.MONTHLY:
        anchor_day = task.created_at.day
        candidate = _monthly_occurrence(now.year, now.month, anchor_day, task)
        if candidate > now:
            year, month = _previous_month(now.year, now.month)
            candidate = _monthly_occurrence(year, month, anchor_day, task)
        return candidate

    raise ValueError(f"Unknown schedule: {schedule!r}")


def next_window_start(task: AgentTask, now: datetime) -> datetime:
    """The first scheduled occurrence strictly after `now`."""
    current = window_start(task, now)

    if task.schedule is Schedule.DAILY:
        return current + timedelta(days=1)
    if task.schedule is Schedule.WEEKLY:
        return current + timedelta(days=7)

    year, month = _following_month(current.year, current.month)
    return _monthly_occurrence(year, month, task.created_at.day, task)


def satisfied_until(task: AgentTask) -> datetime:
    """
    The instant up to which the task counts as already handled.

    A task that never ran is handled up to its creation, so it does not
    fire retroactively for the window it was created in. Re-enabling a
    task counts the same way: windows that passed while it was disabled
    are not made up.
    """
    reference = task.last_run if task.last_run is not None else task.created_at
    if task.enabled_at is not None and task.enabled_at > reference:
        reference = task.enabled_at
    return reference


def is_due(task: AgentTask, now: datetime) -> bool:
    """Whether `task` should be dispatched at `now`."""
    if not task.enabled:
        return False
    return satisfied_until(task) < window_start(task, now)
