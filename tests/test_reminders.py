"""Tests for derived reminder state."""

from __future__ import annotations

from datetime import date

from nesha.models import ConfessionState, Task
from nesha.reminders import (
    days_since_last_confession,
    days_until_confession,
    due_reminder_tasks,
    has_notification,
    is_confession_overdue,
    overdue_tasks,
)

TODAY = date(2024, 5, 15)


class TestConfession:
    def test_nothing_recorded(self) -> None:
        empty = ConfessionState()
        assert days_since_last_confession(empty, TODAY) is None
        assert days_until_confession(empty, TODAY) is None
        assert not is_confession_overdue(empty, TODAY)

    def test_overdue_after_thirty_days(self) -> None:
        assert not is_confession_overdue(ConfessionState(last_confession_date=date(2024, 4, 15)), TODAY)
        assert is_confession_overdue(ConfessionState(last_confession_date=date(2024, 4, 14)), TODAY)

    def test_days_until(self) -> None:
        assert days_until_confession(ConfessionState(confession_date=date(2024, 5, 20)), TODAY) == 5
        assert days_until_confession(ConfessionState(confession_date=date(2024, 5, 10)), TODAY) == -5


class TestTasks:
    def test_due_reminders(self) -> None:
        tasks = [
            Task(title="due", due_date=TODAY, reminder=True),
            Task(title="past", due_date=date(2024, 5, 1), reminder=True),
            Task(title="future", due_date=date(2024, 6, 1), reminder=True),
            Task(title="no reminder", due_date=TODAY),
            Task(title="done", due_date=TODAY, reminder=True, completed=True),
            Task(title="undated", reminder=True),
        ]
        assert [t.title for t in due_reminder_tasks(tasks, TODAY)] == ["due", "past"]

    def test_overdue(self) -> None:
        tasks = [Task(title="late", due_date=date(2024, 5, 14)), Task(title="today", due_date=TODAY)]
        assert [t.title for t in overdue_tasks(tasks, TODAY)] == ["late"]


class TestHasNotification:
    def test_quiet(self) -> None:
        confession = ConfessionState(
            confession_date=date(2024, 6, 15), last_confession_date=date(2024, 5, 1)
        )
        assert not has_notification(confession, [], TODAY)

    def test_confession_tomorrow(self) -> None:
        assert has_notification(ConfessionState(confession_date=date(2024, 5, 16)), [], TODAY)

    def test_overdue_confession(self) -> None:
        assert has_notification(ConfessionState(last_confession_date=date(2024, 1, 1)), [], TODAY)

    def test_due_task(self) -> None:
        tasks = [Task(title="x", due_date=TODAY, reminder=True)]
        assert has_notification(ConfessionState(), tasks, TODAY)
