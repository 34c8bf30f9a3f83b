"""Analysis commands: status, consistency, levels, progress, exercise-progress."""

import json
from dataclasses import asdict
from datetime import datetime
from typing import Annotated

import typer

from ...core.config import PROGRESS_CHART_LIMIT
from ...core.consistency import get_consistency_metrics
from ...core.errors import LifttrackError, NotFoundError
from ...core.stats import character_level, exercise_progress, muscle_group_levels, progress_data
from ...core.status import (
    ReadyToTrain,
    RecoveryDay,
    SessionInProgress,
    TrainedToday,
    TrainingStatus,
    WeekComplete,
    resolve_training_status,
)
from ...io.serializers import format_timestamp
from .. import views
from ..app import DbPathOption, JsonOption, UserOption, app, consistency_settings, open_store


def status_to_dict(status: TrainingStatus) -> dict:
    """JSON-ready representation of a training status."""
    data: dict = {"status": status.kind}
    if isinstance(status, SessionInProgress):
        data.update(
            session_id=status.session_id,
            plan_day=status.plan_day_name,
            started_at=format_timestamp(status.started_at),
            sets_logged=status.sets_logged,
        )
    elif isinstance(status, TrainedToday):
        data.update(
            session_ids=list(status.session_ids),
            total_sets=status.total_sets,
            exercises=[asdict(ex) for ex in status.exercises],
        )
    elif isinstance(status, RecoveryDay):
        data.update(
            last_session_id=status.last_session_id,
            last_session_ended_at=format_timestamp(status.last_session_ended_at),
        )
    elif isinstance(status, WeekComplete):
        data.update(sessions_this_week=status.sessions_this_week, days_per_week=status.days_per_week)
    elif isinstance(status, ReadyToTrain):
        data.update(
            program_week=status.program_week,
            day_in_week=status.day_in_week,
            plan_day_id=status.plan_day.id,
            plan_day=status.plan_day.name,
            sessions_this_week=status.sessions_this_week,
            exercises=[
                {
                    "exercise_id": p.exercise.id,
                    "name": p.name,
                    "muscle_group": p.exercise.muscle_group,
                    "target_sets": p.target_sets,
                    "target_reps": p.prescription.target_reps,
                    "default_reps": p.prescription.default_reps,
                    "rpe_target": p.prescription.rpe_target,
                }
                for p in status.exercises
            ],
        )
    return data


def show_status(db_path, user_id: int, json_out: bool) -> None:
    store = open_store(db_path)
    now = datetime.now()
    try:
        status_info = resolve_training_status(store, user_id, now)
    except LifttrackError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(status_to_dict(status_info), indent=2))
        return

    views.console.print()
    views.console.print(views.format_status_display(status_info, now))
    views.console.print()


@app.command()
def status(
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Show what to do today.
    """
    show_status(db_path, user_id, json_out)


@app.command()
def consistency(
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Show set-completion, weekly and monthly adherence.
    """
    store = open_store(db_path)
    recent_sessions, weeks_per_month = consistency_settings()
    try:
        metrics = get_consistency_metrics(
            store,
            user_id,
            datetime.now(),
            recent_sessions=recent_sessions,
            weeks_per_month=weeks_per_month,
        )
    except LifttrackError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(asdict(metrics), indent=2))
        return
    views.print_consistency(metrics)


@app.command()
def levels(
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Show muscle-group levels and the overall character level.
    """
    store = open_store(db_path)
    rows = muscle_group_levels(store, user_id)
    overall = character_level(store, user_id)

    if json_out:
        print(json.dumps({
            "character_level": overall,
            "muscle_groups": [asdict(r) for r in rows],
        }, indent=2))
        return
    views.print_levels(rows, overall)


@app.command()
def progress(
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Number of recent sessions to show"),
    ] = PROGRESS_CHART_LIMIT,
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Show an ASCII chart of XP earned per session.
    """
    store = open_store(db_path)
    points = progress_data(store, user_id, limit)

    if json_out:
        print(json.dumps([
            {
                "session_id": p.session_id,
                "date": format_timestamp(p.date),
                "total_volume": p.total_volume,
                "xp_gained": p.xp_gained,
            }
            for p in points
        ], indent=2))
        return
    views.print_progress_chart(points)


@app.command("exercise-progress")
def exercise_progress_cmd(
    exercise: Annotated[str, typer.Argument(help="Exercise name or ID")],
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Show every working set of one exercise and its personal records.
    """
    store = open_store(db_path)
    try:
        ex = store.get_exercise(int(exercise)) if exercise.isdigit() else store.get_exercise_by_name(exercise)
        if ex is None:
            raise NotFoundError(f"Exercise {exercise!r} not found")
        result = exercise_progress(store, user_id, ex.id)
    except LifttrackError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "exercise": result.exercise.name,
            "max_weight": result.max_weight,
            "max_volume": result.max_volume,
            "total_sets": result.total_sets,
            "sets": [
                {"date": format_timestamp(p.date), "weight": p.weight, "reps": p.reps, "volume": p.volume}
                for p in result.points
            ],
        }, indent=2))
        return
    views.print_exercise_progress(result)
