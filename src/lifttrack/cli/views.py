"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of training data.
"""

from datetime import datetime

from rich.console import Console
from rich.table import Table

from ..core.ascii_plot import create_exercise_chart, create_level_bars, create_xp_progress_chart
from ..core.models import (
    ConsistencyMetrics,
    ExerciseProgress,
    MuscleXp,
    Plan,
    ProgressPoint,
    Session,
    SessionSet,
    XpTransaction,
)
from ..core.status import (
    NoPlan,
    ReadyToTrain,
    RecoveryDay,
    SessionInProgress,
    TrainedToday,
    TrainingStatus,
    WeekComplete,
)

console = Console()


def _fmt_duration(start: datetime, end: datetime | None) -> str:
    if end is None:
        return "in progress"
    minutes = int((end - start).total_seconds() // 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h{minutes:02d}m" if hours else f"{minutes}m"


def _fmt_weight(weight: float) -> str:
    return f"{weight:g}"


# =============================================================================
# Status
# =============================================================================


def format_status_display(status: TrainingStatus, now: datetime) -> str:
    """
    Format a training status as a text block.

    Args:
        status: Resolved status
        now: Reference time, used for elapsed time of a running session

    Returns:
        Rich-markup string
    """
    if isinstance(status, NoPlan):
        return "[yellow]No active plan.[/yellow] Pick one with 'list-plans' and 'select-plan'."

    if isinstance(status, SessionInProgress):
        return "\n".join(
            [
                f"[bold cyan]Session in progress[/bold cyan]: {status.plan_day_name} (#{status.session_id})",
                f"- Elapsed: {_fmt_duration(status.started_at, now)}",
                f"- Sets logged: {status.sets_logged}",
            ]
        )

    if isinstance(status, TrainedToday):
        lines = [f"[bold green]Trained today[/bold green]: {status.total_sets} sets"]
        for ex in status.exercises:
            done = "  ✓ marked done" if ex.marked_complete else ""
            lines.append(f"- {ex.name}: {ex.sets} sets{done}")
        return "\n".join(lines)

    if isinstance(status, RecoveryDay):
        return (
            "[bold magenta]Recovery day[/bold magenta]: you trained yesterday "
            f"(session #{status.last_session_id}). Rest up."
        )

    if isinstance(status, WeekComplete):
        return (
            f"[bold green]Week complete[/bold green]: {status.sessions_this_week}/"
            f"{status.days_per_week} sessions done this week."
        )

    if isinstance(status, ReadyToTrain):
        lines = [
            f"[bold cyan]Ready to train[/bold cyan]: Week {status.program_week}, "
            f"Day {status.day_in_week} - {status.plan_day.name}",
        ]
        for planned in status.exercises:
            rx = planned.prescription
            rpe = f" @RPE {rx.rpe_target:g}" if rx.rpe_target is not None else ""
            lines.append(f"- {planned.name}: {rx.target_sets} x {rx.target_reps}{rpe}")
        return "\n".join(lines)

    raise TypeError(f"Unknown status: {status!r}")


# =============================================================================
# Plans and sessions
# =============================================================================


def print_plans(plans: list[Plan], current_plan_id: int | None = None) -> None:
    if not plans:
        console.print("[yellow]No plans available. Import one with 'import-plan'.[/yellow]")
        return

    table = Table(title="Training Plans")
    table.add_column("ID", justify="right", style="dim", width=3)
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Days/wk", justify="right")
    table.add_column("Weeks", justify="right")
    table.add_column("Description")

    for plan in plans:
        marker = " *" if plan.id == current_plan_id else ""
        table.add_row(
            str(plan.id),
            plan.name + marker,
            plan.plan_type,
            str(plan.days_per_week),
            str(plan.total_weeks) if plan.total_weeks else "-",
            plan.description,
        )
    console.print(table)


def format_session_table(rows: list[tuple[Session, str, int, int]]) -> Table:
    """
    Create a Rich table displaying session history.

    Args:
        rows: (session, plan day name, working sets, XP gained) per session

    Returns:
        Rich Table object
    """
    table = Table(title="Training History")

    table.add_column("#", justify="right", style="dim", width=4)
    table.add_column("Date", style="cyan")
    table.add_column("Day", style="magenta")
    table.add_column("Wk/Day", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("XP", justify="right", style="bold")
    table.add_column("Notes")

    for session, day_name, sets, xp in rows:
        table.add_row(
            str(session.id),
            f"{session.started_at:%Y-%m-%d %H:%M}",
            day_name,
            f"{session.week_number}/{session.day_in_week}",
            _fmt_duration(session.started_at, session.ended_at),
            str(sets),
            str(xp) if xp else "-",
            session.notes or "",
        )

    return table


def print_history(rows: list[tuple[Session, str, int, int]]) -> None:
    if not rows:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return
    console.print(format_session_table(rows))


def print_session_detail(
    session: Session,
    day_name: str,
    sets: list[tuple[SessionSet, str]],
    marked: list[str],
    transactions: list[XpTransaction],
) -> None:
    """Print one session with its sets, completion markers and XP."""
    console.print(
        f"[bold]Session #{session.id}[/bold]  {day_name}  "
        f"{session.started_at:%Y-%m-%d %H:%M}  ({_fmt_duration(session.started_at, session.ended_at)})"
    )
    if session.notes:
        console.print(f"[dim]{session.notes}[/dim]")

    if sets:
        table = Table()
        table.add_column("Set ID", justify="right", style="dim")
        table.add_column("Exercise", style="cyan")
        table.add_column("#", justify="right")
        table.add_column("Weight", justify="right")
        table.add_column("Reps", justify="right")
        table.add_column("Volume", justify="right")
        for s, name in sets:
            label = f"{s.set_number}" + (" (w)" if s.is_warmup else "")
            table.add_row(str(s.id), name, label, _fmt_weight(s.weight), str(s.reps), f"{s.volume:g}")
        console.print(table)
    else:
        console.print("[yellow]No sets logged.[/yellow]")

    for name in marked:
        console.print(f"  ✓ {name} marked done")

    for tx in transactions:
        bonus = f" (+{tx.progression_bonus} progression)" if tx.progression_bonus else ""
        console.print(f"  [green]+{tx.total_xp} XP[/green] {tx.muscle_group}{bonus}")


# =============================================================================
# Analysis
# =============================================================================


def print_consistency(metrics: ConsistencyMetrics) -> None:
    if not metrics.has_enough_data:
        console.print("[yellow]Not enough data yet. Complete a session first.[/yellow]")
    table = Table(title="Consistency")
    table.add_column("Metric", style="cyan")
    table.add_column("Rate", justify="right", style="bold")
    table.add_row("Sets completed (recent sessions)", f"{metrics.session}%")
    table.add_row("This week", f"{metrics.weekly}%")
    table.add_row("This month", f"{metrics.monthly}%")
    console.print(table)


def print_levels(levels: list[MuscleXp], character_level: int) -> None:
    console.print(f"[bold]Character level {character_level}[/bold]")
    console.print(create_level_bars(levels))


def print_progress_chart(points: list[ProgressPoint]) -> None:
    console.print(create_xp_progress_chart(points))


def print_exercise_progress(progress: ExerciseProgress) -> None:
    console.print(create_exercise_chart(progress))
    if progress.points:
        console.print()
        console.print(
            f"PR weight: [bold]{_fmt_weight(progress.max_weight)}[/bold]   "
            f"PR volume: [bold]{progress.max_volume:g}[/bold]   "
            f"Total sets: {progress.total_sets}"
        )


# =============================================================================
# Messages
# =============================================================================


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


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")
