"""Nesha CLI -- habits, tasks and notes with an Ethiopian daily companion."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Sequence
from contextlib import closing, contextmanager
from datetime import date
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from nesha import db, display, reminders
from nesha.advice import load_daily_advice, prune_advice_cache
from nesha.chat import Conversation
from nesha.companion import Companion
from nesha.models import Frequency, Language, Priority, TaskSortKey
from nesha.state import AppState

app = typer.Typer(
    name="nesha",
    help="Habits, tasks and notes with a calm daily companion.",
    no_args_is_help=True,
)
habit_app = typer.Typer(help="Track recurring habits.", no_args_is_help=True)
task_app = typer.Typer(help="Manage one-off tasks.", no_args_is_help=True)
note_app = typer.Typer(help="Write short notes.", no_args_is_help=True)
confession_app = typer.Typer(help="Schedule and record confession.", no_args_is_help=True)
settings_app = typer.Typer(help="Language, theme and name.", no_args_is_help=True)

app.add_typer(habit_app, name="habit")
app.add_typer(task_app, name="task")
app.add_typer(note_app, name="note")
app.add_typer(confession_app, name="confession")
app.add_typer(settings_app, name="settings")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@contextmanager
def _state() -> Iterator[AppState]:
    """Load application state from the configured store and close it afterwards."""
    conn = db.get_connection()
    try:
        yield AppState.load(conn)
    finally:
        conn.close()


def _parse_day(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        display.print_warning(f"Not a date (expected YYYY-MM-DD): {value}")
        raise typer.Exit(1)


def _resolve(records: Sequence, prefix: str, kind: str) -> str:
    """Resolve an id or unique id prefix to a full id."""
    matches = [r.id for r in records if r.id.startswith(prefix)]
    if len(matches) != 1:
        reason = "not found" if not matches else "is ambiguous"
        display.print_warning(f"{kind} {prefix} {reason}.")
        raise typer.Exit(1)
    return matches[0]


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------


@habit_app.command("add")
def habit_add(
    title: str = typer.Argument(..., help="What do you want to do regularly?"),
    frequency: Frequency = typer.Option(Frequency.DAILY, "--frequency", "-f"),
    description: str = typer.Option("", "--description", "-d"),
) -> None:
    """Add a new habit."""
    with _state() as state:
        habit = state.add_habit(title, frequency, description)
    if habit is None:
        display.print_warning("A habit needs a title.")
        raise typer.Exit(1)
    display.print_success(f"Added habit {habit.id[:8]}: {habit.title}")


@habit_app.command("list")
def habit_list() -> None:
    """List habits with today's progress."""
    with _state() as state:
        display.print_habit_list(list(state.habits))


@habit_app.command("show")
def habit_show(habit_id: str = typer.Argument(..., help="Habit id (or prefix)")) -> None:
    """Show a habit's totals and the last five weeks."""
    with _state() as state:
        habit = state.get_habit(_resolve(state.habits, habit_id, "Habit"))
    display.print_habit_detail(habit)


@habit_app.command("edit")
def habit_edit(
    habit_id: str = typer.Argument(..., help="Habit id (or prefix)"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    frequency: Optional[Frequency] = typer.Option(None, "--frequency", "-f"),
) -> None:
    """Change a habit's title, description or frequency."""
    updates = {"title": title, "description": description, "frequency": frequency}
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        display.print_info("Nothing to change. Use --title, --description or --frequency.")
        return
    with _state() as state:
        habit = state.update_habit(_resolve(state.habits, habit_id, "Habit"), **updates)
    if habit is None:
        display.print_warning("Habit not updated: a habit needs a title.")
        raise typer.Exit(1)
    display.print_success(f"Updated habit {habit.id[:8]}: {habit.title}")


@habit_app.command("check")
def habit_check(
    habit_id: str = typer.Argument(..., help="Habit id (or prefix)"),
    on: Optional[str] = typer.Option(None, "--on", help="Date to toggle (YYYY-MM-DD), default today"),
) -> None:
    """Check or uncheck a habit for a day."""
    day = _parse_day(on) or date.today()
    with _state() as state:
        habit = state.toggle_habit_completion(_resolve(state.habits, habit_id, "Habit"), day)
    if habit is None:
        raise typer.Exit(1)
    verb = "Checked" if habit.is_done_on(day) else "Unchecked"
    display.print_success(f"{verb} {habit.title} (streak {habit.streak})")


@habit_app.command("delete")
def habit_delete(habit_id: str = typer.Argument(..., help="Habit id (or prefix)")) -> None:
    """Delete a habit."""
    with _state() as state:
        state.delete_habit(_resolve(state.habits, habit_id, "Habit"))
    display.print_success("Habit deleted.")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@task_app.command("add")
def task_add(
    title: str = typer.Argument(..., help="What do you need to do?"),
    priority: Priority = typer.Option(Priority.MEDIUM, "--priority", "-p"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    remind: bool = typer.Option(False, "--remind", help="Remind me when it is due"),
) -> None:
    """Add a new task."""
    due_date = _parse_day(due)
    with _state() as state:
        task = state.add_task(title, priority, due_date, remind or None)
    if task is None:
        display.print_warning("A task needs a title.")
        raise typer.Exit(1)
    display.print_success(f"Added task {task.id[:8]}: {task.title}")


@task_app.command("list")
def task_list(
    sort: TaskSortKey = typer.Option(TaskSortKey.CREATION, "--sort", "-s", help="Secondary sort key"),
) -> None:
    """List tasks, incomplete first."""
    with _state() as state:
        display.print_task_list(state.sorted_tasks(sort))


@task_app.command("done")
def task_done(task_id: str = typer.Argument(..., help="Task id (or prefix)")) -> None:
    """Toggle a task between done and not done."""
    with _state() as state:
        task = state.toggle_task(_resolve(state.tasks, task_id, "Task"))
    if task is None:
        raise typer.Exit(1)
    display.print_success(f"{'Completed' if task.completed else 'Reopened'}: {task.title}")


@task_app.command("delete")
def task_delete(task_id: str = typer.Argument(..., help="Task id (or prefix)")) -> None:
    """Delete a task."""
    with _state() as state:
        state.delete_task(_resolve(state.tasks, task_id, "Task"))
    display.print_success("Task deleted.")


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


@note_app.command("add")
def note_add(
    content: str = typer.Argument(..., help="Note text"),
    tag: Optional[list[str]] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
) -> None:
    """Write a new note."""
    with _state() as state:
        note = state.add_note(content, tag or ())
    if note is None:
        display.print_warning("Nothing to save.")
        raise typer.Exit(1)
    display.print_success(f"Saved note {note.id[:8]}.")


@note_app.command("list")
def note_list() -> None:
    """Show notes, newest first."""
    with _state() as state:
        display.print_note_list(list(state.notes))


@note_app.command("edit")
def note_edit(
    note_id: str = typer.Argument(..., help="Note id (or prefix)"),
    content: str = typer.Argument(..., help="New text"),
) -> None:
    """Replace the text of a note."""
    with _state() as state:
        note = state.update_note(_resolve(state.notes, note_id, "Note"), content)
    if note is None:
        display.print_warning("Nothing to save.")
        raise typer.Exit(1)
    display.print_success("Note updated.")


@note_app.command("delete")
def note_delete(note_id: str = typer.Argument(..., help="Note id (or prefix)")) -> None:
    """Delete a note."""
    with _state() as state:
        state.delete_note(_resolve(state.notes, note_id, "Note"))
    display.print_success("Note deleted.")


# ---------------------------------------------------------------------------
# Confession
# ---------------------------------------------------------------------------


@confession_app.command("status")
def confession_status() -> None:
    """Show the scheduled and last confession."""
    with _state() as state:
        display.print_confession(state.confession, state.settings.language)


@confession_app.command("schedule")
def confession_schedule(on: str = typer.Argument(..., help="Date (YYYY-MM-DD)")) -> None:
    """Schedule a confession."""
    day = _parse_day(on)
    with _state() as state:
        state.schedule_confession(day)
        display.print_confession(state.confession, state.settings.language)


@confession_app.command("clear")
def confession_clear() -> None:
    """Clear the scheduled confession."""
    with _state() as state:
        state.clear_confession()
    display.print_success("Schedule cleared.")


@confession_app.command("done")
def confession_done() -> None:
    """Record a confession today."""
    with _state() as state:
        state.mark_confession_done()
    display.print_success("Recorded. Peace be with you.")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@settings_app.command("show")
def settings_show() -> None:
    """Show current settings."""
    with _state() as state:
        s = state.settings
    display.print_info(f"Language: {s.language.value}")
    display.print_info(f"Dark mode: {'on' if s.dark_mode else 'off'}")
    display.print_info(f"Name: {s.name or '-'}")


@settings_app.command("language")
def settings_language(language: Language = typer.Argument(..., help="am or en")) -> None:
    """Switch the display language."""
    with _state() as state:
        state.set_language(language)
    display.print_success(f"Language set to {language.value}.")


@settings_app.command("dark-mode")
def settings_dark_mode() -> None:
    """Toggle dark mode."""
    with _state() as state:
        s = state.toggle_dark_mode()
    display.print_success(f"Dark mode {'on' if s.dark_mode else 'off'}.")


@settings_app.command("name")
def settings_name(name: str = typer.Argument("", help="Your name (empty to clear)")) -> None:
    """Set the name used in greetings."""
    with _state() as state:
        state.set_name(name)
    display.print_success("Name updated.")


# ---------------------------------------------------------------------------
# Today, companion
# ---------------------------------------------------------------------------


@app.command()
def today(refresh: bool = typer.Option(False, "--refresh", help="Ask for new advice")) -> None:
    """Ethiopian date, daily advice and what needs attention."""
    with closing(db.get_connection()) as conn:
        state = AppState.load(conn)
        advice = asyncio.run(
            load_daily_advice(conn, Companion.from_config(), state.settings.language, refresh=refresh)
        )
        prune_advice_cache(conn)
    display.print_today(state.settings, advice)

    due = reminders.due_reminder_tasks(state.tasks)
    if due:
        display.print_task_list(due, title="Due")
    if reminders.has_notification(state.confession, state.tasks):
        display.print_confession(state.confession, state.settings.language)


@app.command()
def chat() -> None:
    """Talk with Nesha. Empty line or 'exit' to leave, '/clear' to start over."""
    with _state() as state:
        language = state.settings.language
    conversation = Conversation(Companion.from_config(), language)

    async def _loop() -> None:
        while True:
            text = await asyncio.to_thread(typer.prompt, "You", default="", show_default=False)
            if not text.strip() or text.strip().lower() in {"exit", "quit"}:
                return
            if text.strip() == "/clear":
                conversation.clear()
                display.print_info("Conversation cleared.")
                continue
            reply = await conversation.send(text)
            if reply is not None:
                display.print_message(reply)

    asyncio.run(_loop())


@app.command()
def analyze(
    struggle: str = typer.Argument(..., help="What do you want to overcome?"),
    add_all: bool = typer.Option(False, "--add-all", help="Add every suggestion as a habit"),
) -> None:
    """Ask Nesha for habits that help with a struggle."""
    with _state() as state:
        suggestions = asyncio.run(Companion.from_config().analyze(struggle, state.settings.language))
        display.print_suggestions(suggestions)
        if add_all:
            for s in suggestions:
                state.add_habit(s.title, s.frequency, s.advice)
    if add_all and suggestions:
        display.print_success(f"Added {len(suggestions)} habit(s).")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@app.command()
def config(
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Set a custom store file path"),
    model: Optional[str] = typer.Option(None, "--model", help="Gemini model name"),
    reset: bool = typer.Option(False, "--reset", help="Reset to default local store"),
    show: bool = typer.Option(False, "--show", help="Show current config"),
) -> None:
    """Configure where data is stored and which model answers."""
    from nesha import config as cfg

    if db_path:
        result = cfg.set_db_path(db_path)
        display.print_success(f"Store path set to: {result.db_path}")
    elif model:
        cfg.set_model(model)
        display.print_success(f"Model set to: {model}")
    elif reset:
        cfg.reset_db_path()
        display.print_success("Reset to default local store.")
    elif show:
        current = cfg.load_config()
        resolved = cfg.get_db_path()
        if current.db_path:
            display.print_info(f"Store: {current.db_path}")
        else:
            display.print_info(f"Store: {resolved} (default)")
        display.print_info(f"Model: {current.model}")
        display.print_info(f"API key: {'set' if cfg.get_api_key(current) else 'missing'}")
    else:
        display.print_info("Use --db-path, --model, --reset, or --show.")


if __name__ == "__main__":
    app()
