"""Rich terminal formatting helpers."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from nesha.ethiopian import format_ethiopian, to_ethiopian
from nesha.models import (
    AppSettings,
    ChatMessage,
    ConfessionState,
    Habit,
    HabitSuggestion,
    Language,
    Note,
    Priority,
    Role,
    Task,
)
from nesha.reminders import days_since_last_confession, days_until_confession, is_confession_overdue

console = Console()

_PRIORITY_STYLE: dict[Priority, str] = {
    Priority.HIGH: "bold red",
    Priority.MEDIUM: "yellow",
    Priority.LOW: "dim",
}


def _short(record_id: str) -> str:
    return record_id[:8]


def print_habit_list(habits: list[Habit], today: Optional[date] = None, title: str = "Habits") -> None:
    """Print habits with today's check state and streak."""
    if not habits:
        console.print(Panel("No habits.", title=title, border_style="dim"))
        return

    today = today or date.today()
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("done", width=3)
    table.add_column("id", width=9)
    table.add_column("title")
    table.add_column("frequency", style="dim")
    table.add_column("streak", justify="right")

    for habit in habits:
        done = habit.is_done_on(today)
        table.add_row(
            escape("[x]") if done else "[ ]",
            _short(habit.id),
            escape(habit.title),
            habit.frequency.value,
            f"{habit.streak}",
            style="green" if done else None,
        )

    console.print(Panel(table, title=title, border_style="blue"))


def print_habit_detail(habit: Habit, today: Optional[date] = None, weeks: int = 5) -> None:
    """Print one habit with its totals and a week-by-week completion grid.

    The grid runs Sunday to Saturday and ends on the Saturday of the current
    week, so the last row can contain days that have not happened yet.
    """
    today = today or date.today()
    info = Table(show_header=False, box=None, pad_edge=False)
    info.add_column("field", style="dim")
    info.add_column("value")
    info.add_row("id", habit.id)
    if habit.description:
        info.add_row("description", escape(habit.description))
    info.add_row("frequency", habit.frequency.value)
    info.add_row("streak", str(habit.streak))
    info.add_row("completions", str(len(habit.completed_dates)))

    grid = Table(box=None, pad_edge=False, show_edge=False)
    for name in ("Su", "Mo", "Tu", "We", "Th", "Fr", "Sa"):
        grid.add_column(name, justify="center")
    end = today + timedelta(days=(5 - today.weekday()) % 7)
    start = end - timedelta(days=weeks * 7 - 1)
    done = set(habit.completed_dates)
    for week in range(weeks):
        cells = []
        for offset in range(7):
            day = start + timedelta(days=week * 7 + offset)
            if day in done:
                cells.append(Text("■", style="green"))
            elif day > today:
                cells.append(Text("·", style="dim"))
            else:
                cells.append(Text("□", style="bold" if day == today else "dim"))
        grid.add_row(*cells)

    console.print(Panel(Group(info, Text(""), grid), title=escape(habit.title), border_style="blue"))


def print_task_list(tasks: list[Task], today: Optional[date] = None, title: str = "Tasks") -> None:
    """Print tasks in the order given."""
    if not tasks:
        console.print(Panel("No tasks.", title=title, border_style="dim"))
        return

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("status", width=3)
    table.add_column("id", width=9)
    table.add_column("title")
    table.add_column("priority", width=6)
    table.add_column("due")

    for task in tasks:
        due = task.due_date.isoformat() if task.due_date else ""
        if task.is_overdue(today):
            due = f"[red]{due} (overdue)[/red]"
        if task.reminder:
            due = f"{due} *"
        table.add_row(
            escape("[x]") if task.completed else "[ ]",
            _short(task.id),
            escape(task.title),
            Text(task.priority.value, style=_PRIORITY_STYLE[task.priority]),
            due,
            style="dim" if task.completed else None,
        )

    console.print(Panel(table, title=title, border_style="blue"))


def print_note_list(notes: list[Note], title: str = "Notes") -> None:
    if not notes:
        console.print(Panel("No notes.", title=title, border_style="dim"))
        return
    for note in notes:
        stamp = note.updated_at.strftime("%Y-%m-%d %H:%M")
        console.print(
            Panel(Text(note.content), title=f"{_short(note.id)}  {stamp}", title_align="left", border_style="blue")
        )


def print_today(settings: AppSettings, advice: str, today: Optional[date] = None) -> None:
    """Print the Ethiopian date header and the daily advice."""
    today = today or date.today()
    eth = to_ethiopian(today)
    lines = [
        f"[bold]{format_ethiopian(eth, settings.language)}[/bold]  ({eth.day_name})",
        f"[dim]{today.isoformat()}[/dim]",
    ]
    if settings.name:
        greeting = "ሰላም" if settings.language is Language.AMHARIC else "Hello"
        lines.insert(0, f"{greeting}, {escape(settings.name)}")
    console.print(Panel("\n".join(lines), title="Today", border_style="green"))
    print_advice(advice)


def print_advice(message: str) -> None:
    """Print advice in a styled panel."""
    text = Text(message, justify="center")
    console.print(Panel(text, border_style="magenta", padding=(1, 4)))


def print_confession(confession: ConfessionState, language: Language, today: Optional[date] = None) -> None:
    lines: list[str] = []
    days_left = days_until_confession(confession, today)
    if confession.confession_date is not None and days_left is not None:
        eth = format_ethiopian(to_ethiopian(confession.confession_date), language)
        if days_left > 0:
            when = f"{days_left} day(s) left"
        elif days_left == 0:
            when = "today"
        else:
            when = f"[red]passed {-days_left} day(s) ago[/red]"
        lines.append(f"Scheduled: {eth} ({confession.confession_date.isoformat()}), {when}")
    else:
        lines.append("Nothing scheduled.")

    since = days_since_last_confession(confession, today)
    if since is not None:
        line = f"Last confession: {since} day(s) ago"
        if is_confession_overdue(confession, today):
            line = f"[red]{line}[/red]"
        lines.append(line)
    console.print(Panel("\n".join(lines), title="Confession", border_style="yellow"))


def print_suggestions(suggestions: list[HabitSuggestion]) -> None:
    if not suggestions:
        console.print(Panel("No suggestions.", title="Suggestions", border_style="dim"))
        return
    table = Table(show_header=True, box=None, pad_edge=False)
    table.add_column("#", width=2)
    table.add_column("habit", style="bold")
    table.add_column("frequency", style="dim")
    table.add_column("why")
    for i, s in enumerate(suggestions, 1):
        table.add_row(str(i), escape(s.title), s.frequency.value, escape(s.advice))
    console.print(Panel(table, title="Suggestions", border_style="blue"))


def print_message(message: ChatMessage) -> None:
    if message.role is Role.USER:
        console.print(f"[bold]You:[/bold] {escape(message.text)}")
    elif message.is_error:
        console.print(f"[red]Nesha:[/red] {escape(message.text)}")
    else:
        console.print(f"[magenta]Nesha:[/magenta] {escape(message.text)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(Text(message, style="green"))


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(Text(message, style="blue"))


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(Text(message, style="yellow"))
