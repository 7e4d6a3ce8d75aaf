"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of live and finished sessions.
"""

from typing import Any, Iterable

from rich.console import Console
from rich.table import Table

from ..core.engine import WorkoutEngine
from ..core.metrics import completed_sets, session_summary, total_sets, total_volume
from ..core.models import Exercise, ExerciseProgress, WorkoutSession
from ..io.serializers import format_prescription

console = Console()


def format_duration(seconds: int) -> str:
    """Format seconds as MM:SS (or H:MM:SS past one hour)."""
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def _format_target(reps: int, weight: float) -> str:
    if reps == 0 and weight == 0:
        return "-"
    w = f" @ {weight:g} kg" if weight > 0 else ""
    return f"{reps}{w}"


def format_sets_table(progress: ExerciseProgress, current_index: int | None = None) -> Table:
    """
    Build a table of one exercise's sets.

    Args:
        progress: Exercise whose sets are listed
        current_index: Set index to highlight as the current one (None: no cursor)

    Returns:
        Rich Table
    """
    table = Table(show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Set", justify="right")
    table.add_column("Target")
    table.add_column("Done")
    table.add_column("RPE", justify="right")

    for i, s in enumerate(progress.sets):
        marker = "▶" if i == current_index else ""
        if s.actual is not None:
            done = f"[green]✓ {_format_target(s.actual.reps, s.actual.weight)}[/green]"
            rpe = str(s.actual.effort_rating) if s.actual.effort_rating is not None else "-"
        else:
            done = "[dim]not started[/dim]"
            rpe = ""
        table.add_row(marker, str(s.set_number), _format_target(s.reps, s.weight), done, rpe)

    return table


def print_live_status(engine: WorkoutEngine) -> None:
    """Print the live view: clock, cursor, current exercise and rest timer."""
    s = engine.session
    progress = engine.current_exercise
    paused = "" if s.is_active else "  [yellow](paused)[/yellow]"

    console.print()
    console.print(f"[bold cyan]{s.name}[/bold cyan]  ⏱ {format_duration(s.total_duration)}{paused}")
    console.print(
        f"Exercise {s.current_exercise_index + 1} of {len(s.exercises)}  ·  "
        f"Set {s.current_set_index + 1} of {len(progress.sets)}"
    )
    muscles = ", ".join(progress.exercise.muscles)
    console.print(f"[bold]{progress.exercise.name}[/bold]" + (f"  [dim]{muscles}[/dim]" if muscles else ""))
    console.print(format_sets_table(progress, s.current_set_index))

    rest = engine.rest_timer
    if rest.is_active:
        state = " (paused)" if rest.is_paused else ""
        console.print(f"[magenta]Rest {format_duration(rest.remaining_seconds)}{state}[/magenta]")


def print_live_help() -> None:
    console.print()
    console.print("[bold]Commands[/bold]")
    rows = [
        ("done [W R [RPE]]", "complete the current set (no values: as prescribed)"),
        ("next / prev", "move the cursor"),
        ("add ID [SETS]", "append an exercise from the catalog"),
        ("rest [S]", "start a rest countdown"),
        ("skip", "skip the rest"),
        ("extend [S]", "add time to the rest"),
        ("rest-pause / rest-resume", "freeze or continue the rest countdown"),
        ("pause / resume", "stop or restart the workout clock"),
        ("status", "show the current state"),
        ("end", "finish and save the workout"),
    ]
    for cmd, desc in rows:
        console.print(f"  [cyan]{cmd:<26}[/cyan] {desc}")


def format_plan_table(session: WorkoutSession) -> Table:
    """Build a table of a session's prescription."""
    table = Table(title=session.name, show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Exercise", style="cyan")
    table.add_column("Muscles")
    table.add_column("Sets")
    table.add_column("Rest", justify="right")

    for i, progress in enumerate(session.exercises, 1):
        rest = f"{progress.rest_seconds}s" if progress.rest_seconds else "default"
        table.add_row(
            str(i),
            progress.exercise.name,
            ", ".join(progress.exercise.muscles),
            format_prescription(progress.sets),
            rest,
        )
    return table


def print_plan(session: WorkoutSession) -> None:
    console.print(format_plan_table(session))


def format_history_table(sessions: list[WorkoutSession]) -> Table:
    """Build the finished-session history table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Started", style="cyan")
    table.add_column("Session")
    table.add_column("Name")
    table.add_column("Status", style="magenta")
    table.add_column("Sets", justify="right")
    table.add_column("Volume", justify="right")
    table.add_column("Time", justify="right")

    for i, s in enumerate(sessions, 1):
        status = s.status if s.status == "completed" else f"[yellow]{s.status}[/yellow]"
        table.add_row(
            str(i),
            (s.started_at or "-")[:16].replace("T", " "),
            s.session_id,
            s.name,
            status,
            f"{completed_sets(s)}/{total_sets(s)}",
            f"{total_volume(s):g} kg",
            format_duration(s.total_duration),
        )
    return table


def print_history(sessions: list[WorkoutSession]) -> None:
    """
    Print finished-session history to console.

    Args:
        sessions: Sessions to display
    """
    if not sessions:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return
    console.print(format_history_table(sessions))


def print_session_detail(session: WorkoutSession) -> None:
    """Print every exercise and set of one session plus its summary."""
    console.print()
    console.print(f"[bold cyan]{session.name}[/bold cyan]  [dim]{session.session_id}[/dim]")
    console.print(f"Started {session.started_at or '-'}  ·  ended {session.ended_at or '-'}  ·  {session.status}")
    for progress in session.exercises:
        console.print()
        console.print(f"[bold]{progress.exercise.name}[/bold]")
        console.print(format_sets_table(progress))
    print_summary(session_summary(session))


def print_summary(summary: dict[str, Any]) -> None:
    """Print the end-of-workout summary."""
    console.print()
    console.print("[bold]Summary[/bold]")
    console.print(
        f"  Sets: {summary['completed_sets']}/{summary['total_sets']} "
        f"({summary['completion_rate']:g}%)"
    )
    console.print(f"  Reps: {summary['total_reps']}")
    console.print(f"  Volume: {summary['total_volume']:g} kg")
    if summary.get("average_effort") is not None:
        console.print(f"  Avg RPE: {summary['average_effort']:g}")
    console.print(f"  Duration: {summary['duration_minutes']} min")


def print_catalog(exercises: Iterable[Exercise]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Muscles")
    table.add_column("Equipment")
    table.add_column("Category", style="dim")
    for ex in exercises:
        table.add_row(ex.exercise_id, ex.name, ", ".join(ex.muscles), ex.equipment, ex.category)
    console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
