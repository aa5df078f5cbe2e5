"""In-memory application state and the actions that mutate it.

``AppState`` is the single owner of every collection. Each action computes
the next value of one collection, swaps it in, then persists that
collection only. Readers get tuples, never the live lists.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Any, Optional, TypeVar

from pydantic import ValidationError

from nesha import db
from nesha.models import (
    AppSettings,
    ConfessionState,
    Frequency,
    Habit,
    Language,
    Note,
    Priority,
    Task,
    TaskSortKey,
)

log = logging.getLogger(__name__)

T = TypeVar("T")

_PRIORITY_WEIGHT: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def _blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


def sort_tasks(tasks: Iterable[Task], key: TaskSortKey | str = TaskSortKey.CREATION) -> list[Task]:
    """Order tasks for display.

    Incomplete tasks always come first. Within each group the secondary key
    applies (priority high to low, or due date ascending with undated tasks
    last), and ties fall back to newest-created first.
    """
    key = TaskSortKey(key)
    # Stable sorts applied from least to most significant key
    ordered = sorted(tasks, key=lambda t: t.created_at, reverse=True)
    if key is TaskSortKey.PRIORITY:
        ordered.sort(key=lambda t: -_PRIORITY_WEIGHT[t.priority])
    elif key is TaskSortKey.DUE_DATE:
        ordered.sort(key=lambda t: (t.due_date is None, t.due_date or date.min))
    ordered.sort(key=lambda t: t.completed)
    return ordered


class AppState:
    """Owner of habits, tasks, notes, settings and confession dates."""

    def __init__(
        self,
        conn: Optional[sqlite3.Connection] = None,
        settings: Optional[AppSettings] = None,
        habits: Iterable[Habit] = (),
        tasks: Iterable[Task] = (),
        notes: Iterable[Note] = (),
        confession: Optional[ConfessionState] = None,
    ) -> None:
        self._conn = conn
        self._settings = settings or AppSettings()
        self._habits: list[Habit] = list(habits)
        self._tasks: list[Task] = list(tasks)
        self._notes: list[Note] = list(notes)
        self._confession = confession or ConfessionState()

        self._settings_lock = threading.Lock()
        self._habits_lock = threading.Lock()
        self._tasks_lock = threading.Lock()
        self._notes_lock = threading.Lock()
        self._confession_lock = threading.Lock()

    @classmethod
    def load(cls, conn: sqlite3.Connection) -> AppState:
        """Read every collection from the store once."""
        return cls(
            conn,
            settings=db.load_settings(conn),
            habits=db.load_habits(conn),
            tasks=db.load_tasks(conn),
            notes=db.load_notes(conn),
            confession=db.load_confession(conn),
        )

    # -- snapshots ---------------------------------------------------------

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def habits(self) -> tuple[Habit, ...]:
        return tuple(self._habits)

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def notes(self) -> tuple[Note, ...]:
        return tuple(self._notes)

    @property
    def confession(self) -> ConfessionState:
        return self._confession

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        return next((h for h in self._habits if h.id == habit_id), None)

    def get_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self._tasks if t.id == task_id), None)

    def get_note(self, note_id: str) -> Optional[Note]:
        return next((n for n in self._notes if n.id == note_id), None)

    def sorted_tasks(self, key: TaskSortKey | str = TaskSortKey.CREATION) -> list[Task]:
        return sort_tasks(self._tasks, key)

    # -- persistence -------------------------------------------------------

    def _persist(self, what: str, save: Callable[[sqlite3.Connection, T], None], value: T) -> None:
        """Write one collection. Failures are logged; memory stays authoritative."""
        if self._conn is None:
            return
        try:
            save(self._conn, value)
        except (sqlite3.Error, OSError) as exc:
            log.error("Could not save %s: %s", what, exc)

    @staticmethod
    def _replace(items: list[T], item_id: str, build: Callable[[T], Optional[T]]) -> tuple[list[T], Optional[T]]:
        """Return a copy of ``items`` with the matching record rebuilt."""
        updated: Optional[T] = None
        result: list[T] = []
        for item in items:
            if updated is None and item.id == item_id:  # type: ignore[attr-defined]
                new = build(item)
                if new is not None:
                    updated = new
                    result.append(new)
                    continue
            result.append(item)
        return result, updated

    # -- habits ------------------------------------------------------------

    def add_habit(
        self,
        title: str,
        frequency: Frequency | str = Frequency.DAILY,
        description: str = "",
    ) -> Optional[Habit]:
        """Append a new habit. Blank titles are ignored."""
        if _blank(title):
            return None
        habit = Habit(title=title.strip(), frequency=Frequency(frequency), description=description or "")
        with self._habits_lock:
            self._habits = [*self._habits, habit]
            self._persist("habits", db.save_habits, self._habits)
        log.debug("Added habit %s", habit.id)
        return habit

    def update_habit(self, habit_id: str, **updates: Any) -> Optional[Habit]:
        """Shallow-merge ``updates`` into a habit and replace it.

        Returns None, leaving the habit as it was, when the id is unknown or
        the merged record does not validate.
        """
        updates.pop("id", None)
        if "title" in updates and _blank(updates["title"]):
            return None

        def build(habit: Habit) -> Optional[Habit]:
            try:
                return Habit.model_validate({**habit.model_dump(), **updates})
            except ValidationError as exc:
                log.warning("Ignoring invalid update to habit %s: %s", habit_id, exc)
                return None

        with self._habits_lock:
            self._habits, updated = self._replace(self._habits, habit_id, build)
            if updated is not None:
                self._persist("habits", db.save_habits, self._habits)
        return updated

    def delete_habit(self, habit_id: str) -> bool:
        with self._habits_lock:
            remaining = [h for h in self._habits if h.id != habit_id]
            if len(remaining) == len(self._habits):
                return False
            self._habits = remaining
            self._persist("habits", db.save_habits, self._habits)
        return True

    def toggle_habit_completion(self, habit_id: str, day: Optional[date] = None) -> Optional[Habit]:
        """Check or uncheck ``day`` (default today) for a habit.

        Checking increments the streak and unchecking decrements it (never
        below zero). The counter is not recomputed from consecutive dates,
        so toggling an old date can make it disagree with the history.
        """
        day = day or date.today()

        def build(habit: Habit) -> Habit:
            if day in habit.completed_dates:
                return habit.model_copy(
                    update={
                        "completed_dates": [d for d in habit.completed_dates if d != day],
                        "streak": max(0, habit.streak - 1),
                    }
                )
            return habit.model_copy(
                update={
                    "completed_dates": [*habit.completed_dates, day],
                    "streak": habit.streak + 1,
                }
            )

        with self._habits_lock:
            self._habits, updated = self._replace(self._habits, habit_id, build)
            if updated is not None:
                self._persist("habits", db.save_habits, self._habits)
        return updated

    # -- tasks -------------------------------------------------------------

    def add_task(
        self,
        title: str,
        priority: Priority | str = Priority.MEDIUM,
        due_date: Optional[date] = None,
        reminder: Optional[bool] = None,
    ) -> Optional[Task]:
        """Append a new, incomplete task. Blank titles are ignored."""
        if _blank(title):
            return None
        task = Task(title=title.strip(), priority=Priority(priority), due_date=due_date, reminder=reminder)
        with self._tasks_lock:
            self._tasks = [*self._tasks, task]
            self._persist("tasks", db.save_tasks, self._tasks)
        log.debug("Added task %s", task.id)
        return task

    def toggle_task(self, task_id: str) -> Optional[Task]:
        with self._tasks_lock:
            self._tasks, updated = self._replace(
                self._tasks, task_id, lambda t: t.model_copy(update={"completed": not t.completed})
            )
            if updated is not None:
                self._persist("tasks", db.save_tasks, self._tasks)
        return updated

    def update_task(self, task_id: str, **updates: Any) -> Optional[Task]:
        updates.pop("id", None)
        if "title" in updates and _blank(updates["title"]):
            return None

        def build(task: Task) -> Optional[Task]:
            try:
                return Task.model_validate({**task.model_dump(), **updates})
            except ValidationError as exc:
                log.warning("Ignoring invalid update to task %s: %s", task_id, exc)
                return None

        with self._tasks_lock:
            self._tasks, updated = self._replace(self._tasks, task_id, build)
            if updated is not None:
                self._persist("tasks", db.save_tasks, self._tasks)
        return updated

    def delete_task(self, task_id: str) -> bool:
        with self._tasks_lock:
            remaining = [t for t in self._tasks if t.id != task_id]
            if len(remaining) == len(self._tasks):
                return False
            self._tasks = remaining
            self._persist("tasks", db.save_tasks, self._tasks)
        return True

    # -- notes -------------------------------------------------------------

    def add_note(self, content: str, tags: Iterable[str] = ()) -> Optional[Note]:
        """Prepend a note (newest first). Blank content is ignored."""
        if _blank(content):
            return None
        now = datetime.now()
        note = Note(content=content, created_at=now, updated_at=now, tags=list(tags))
        with self._notes_lock:
            self._notes = [note, *self._notes]
            self._persist("notes", db.save_notes, self._notes)
        return note

    def update_note(self, note_id: str, content: str) -> Optional[Note]:
        if _blank(content):
            return None

        def build(note: Note) -> Note:
            return note.model_copy(
                update={"content": content, "updated_at": max(datetime.now(), note.created_at)}
            )

        with self._notes_lock:
            self._notes, updated = self._replace(self._notes, note_id, build)
            if updated is not None:
                self._persist("notes", db.save_notes, self._notes)
        return updated

    def delete_note(self, note_id: str) -> bool:
        with self._notes_lock:
            remaining = [n for n in self._notes if n.id != note_id]
            if len(remaining) == len(self._notes):
                return False
            self._notes = remaining
            self._persist("notes", db.save_notes, self._notes)
        return True

    # -- settings ----------------------------------------------------------

    def _update_settings(self, **updates: Any) -> AppSettings:
        with self._settings_lock:
            self._settings = self._settings.model_copy(update=updates)
            self._persist("settings", db.save_settings, self._settings)
        return self._settings

    def set_language(self, language: Language | str) -> AppSettings:
        return self._update_settings(language=Language(language))

    def toggle_dark_mode(self) -> AppSettings:
        with self._settings_lock:
            self._settings = self._settings.model_copy(update={"dark_mode": not self._settings.dark_mode})
            self._persist("settings", db.save_settings, self._settings)
        return self._settings

    def set_name(self, name: Optional[str]) -> AppSettings:
        return self._update_settings(name=None if _blank(name) else name.strip())

    # -- confession --------------------------------------------------------

    def schedule_confession(self, day: date) -> ConfessionState:
        with self._confession_lock:
            self._confession = self._confession.model_copy(update={"confession_date": day})
            self._persist("confession date", db.save_confession_date, day)
        return self._confession

    def clear_confession(self) -> ConfessionState:
        """Drop the scheduled date. The last confession date is untouched."""
        with self._confession_lock:
            self._confession = self._confession.model_copy(update={"confession_date": None})
            self._persist("confession date", db.save_confession_date, None)
        return self._confession

    def mark_confession_done(self, today: Optional[date] = None) -> ConfessionState:
        """Record a confession on ``today`` and clear any scheduled one."""
        today = today or date.today()
        with self._confession_lock:
            self._confession = ConfessionState(confession_date=None, last_confession_date=today)
            self._persist("last confession date", db.save_last_confession_date, today)
            self._persist("confession date", db.save_confession_date, None)
        return self._confession
