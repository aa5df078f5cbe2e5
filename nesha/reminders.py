"""Derived reminder state: confession schedule and due tasks."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Optional

from nesha.models import ConfessionState, Task

CONFESSION_OVERDUE_DAYS = 30


def days_since_last_confession(confession: ConfessionState, today: Optional[date] = None) -> Optional[int]:
    if confession.last_confession_date is None:
        return None
    return ((today or date.today()) - confession.last_confession_date).days


def is_confession_overdue(confession: ConfessionState, today: Optional[date] = None) -> bool:
    """More than 30 days since the last recorded confession."""
    days = days_since_last_confession(confession, today)
    return days is not None and days > CONFESSION_OVERDUE_DAYS


def days_until_confession(confession: ConfessionState, today: Optional[date] = None) -> Optional[int]:
    """Days left until the scheduled confession; negative once it has passed."""
    if confession.confession_date is None:
        return None
    return (confession.confession_date - (today or date.today())).days


def due_reminder_tasks(tasks: Iterable[Task], today: Optional[date] = None) -> list[Task]:
    """Incomplete tasks with a reminder whose due date is today or earlier."""
    today = today or date.today()
    return [
        t
        for t in tasks
        if not t.completed and t.reminder and t.due_date is not None and t.due_date <= today
    ]


def overdue_tasks(tasks: Iterable[Task], today: Optional[date] = None) -> list[Task]:
    return [t for t in tasks if t.is_overdue(today)]


def has_notification(confession: ConfessionState, tasks: Iterable[Task], today: Optional[date] = None) -> bool:
    """Whether anything needs the user's attention today."""
    today = today or date.today()
    if is_confession_overdue(confession, today):
        return True
    days_left = days_until_confession(confession, today)
    # today, tomorrow, or already passed
    if days_left is not None and days_left <= 1:
        return True
    return bool(due_reminder_tasks(tasks, today))
