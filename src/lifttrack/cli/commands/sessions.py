"""Session commands: start, log-set, toggle-complete, end, history and editing."""

import json
from datetime import datetime
from typing import Annotated, NoReturn, Optional

import typer

from ...core import session as lifecycle
from ...core.errors import LifttrackError, NotFoundError
from ...core.models import Exercise, Session
from ...io.serializers import format_timestamp, parse_datetime_input, parse_sets_string
from .. import views
from ..app import DbPathOption, JsonOption, UserOption, app, open_store

SessionOption = Annotated[
    Optional[int],
    typer.Option("--session", "-s", help="Session ID (default: the session in progress)"),
]
ExerciseOption = Annotated[
    str,
    typer.Option("--exercise", "-e", help="Exercise name or ID"),
]


def _fail(e: Exception) -> NoReturn:
    views.print_error(str(e))
    raise typer.Exit(1)


def _resolve_session_id(store, user_id: int, session_id: int | None) -> int:
    if session_id is not None:
        return session_id
    open_sessions = store.in_progress_sessions(user_id)
    if not open_sessions:
        raise NotFoundError("No session in progress. Start one with 'start' or pass --session.")
    return open_sessions[-1].id


def _resolve_exercise(store, ref: str) -> Exercise:
    exercise = store.get_exercise(int(ref)) if ref.isdigit() else store.get_exercise_by_name(ref)
    if exercise is None:
        raise NotFoundError(f"Exercise {ref!r} not found")
    return exercise


def _day_name(store, session: Session) -> str:
    plan_day = store.get_plan_day(session.plan_day_id)
    return plan_day.name if plan_day else "?"


@app.command()
def start(
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Start the next workout of the active plan.

    Refused while another session is in progress.
    """
    store = open_store(db_path)
    try:
        session = lifecycle.start_next_session(store, user_id, datetime.now())
    except LifttrackError as e:
        _fail(e)

    if json_out:
        print(json.dumps({"session_id": session.id, "started_at": format_timestamp(session.started_at)}))
        return
    views.print_success(
        f"Started session #{session.id}: {_day_name(store, session)} "
        f"(week {session.week_number}, day {session.day_in_week})"
    )


@app.command("log-set")
def log_set(
    exercise: ExerciseOption,
    sets: Annotated[
        str,
        typer.Option("--sets", help='Sets as WEIGHTxREPS, e.g. "100x10, 100x8" or "100x8x3"'),
    ],
    warmup: Annotated[bool, typer.Option("--warmup", help="Log as warm-up sets (no XP)")] = False,
    session_id: SessionOption = None,
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
) -> None:
    """
    Log one or more sets of an exercise.

      lifttrack log-set -e "Bench Press" --sets "100x10, 100x8, 95x8"
    """
    store = open_store(db_path)
    try:
        parsed = parse_sets_string(sets)
        sid = _resolve_session_id(store, user_id, session_id)
        ex = _resolve_exercise(store, exercise)
        logged = lifecycle.log_sets(store, sid, ex.id, parsed, datetime.now(), is_warmup=warmup)
    except LifttrackError as e:
        _fail(e)

    kind = "warm-up set" if warmup else "set"
    views.print_success(f"Logged {len(logged)} {kind}(s) of {ex.name} in session #{sid}")


@app.command("toggle-complete")
def toggle_complete(
    exercise: ExerciseOption,
    done: Annotated[
        bool,
        typer.Option("--done/--undo", help="Mark or unmark the exercise as done"),
    ] = True,
    session_id: SessionOption = None,
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
) -> None:
    """
    Mark an exercise as done without logging its sets.
    """
    store = open_store(db_path)
    try:
        sid = _resolve_session_id(store, user_id, session_id)
        ex = _resolve_exercise(store, exercise)
        lifecycle.toggle_exercise_complete(store, sid, ex.id, done, datetime.now())
    except LifttrackError as e:
        _fail(e)

    state = "done" if done else "not done"
    views.print_success(f"{ex.name} marked {state} in session #{sid}")


@app.command()
def end(
    notes: Annotated[Optional[str], typer.Option("--notes", "-n", help="Session notes")] = None,
    session_id: SessionOption = None,
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Finish the session in progress and collect XP.
    """
    store = open_store(db_path)
    try:
        sid = _resolve_session_id(store, user_id, session_id)
        result = lifecycle.end_session(store, sid, datetime.now(), notes)
    except LifttrackError as e:
        _fail(e)

    if json_out:
        print(json.dumps({
            "session_id": sid,
            "ended_at": format_timestamp(result.session.ended_at),
            "xp_failed": result.xp_failed,
            "xp": [
                {
                    "muscle_group": tx.muscle_group,
                    "base_xp": tx.base_xp,
                    "progression_bonus": tx.progression_bonus,
                    "total_xp": tx.total_xp,
                }
                for tx in result.transactions
            ],
        }, indent=2))
        return

    views.print_success(f"Session #{sid} finished")
    if result.xp_failed:
        views.print_warning("XP could not be calculated for this session; see the log for details.")
        return
    if not result.transactions:
        views.print_info("No working sets logged, no XP this time.")
    for tx in result.transactions:
        bonus = f" (+{tx.progression_bonus} progression bonus)" if tx.progression_bonus else ""
        views.console.print(f"  [green]+{tx.total_xp} XP[/green] {tx.muscle_group}{bonus}")


@app.command("show-session")
def show_session(
    session_id: Annotated[int, typer.Argument(help="Session ID")],
    db_path: DbPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the sets, completion marks and XP of one session.
    """
    store = open_store(db_path)
    session = store.get_session(session_id)
    if session is None:
        _fail(NotFoundError(f"Session {session_id} not found"))

    names: dict[int, str] = {}

    def name_of(exercise_id: int) -> str:
        if exercise_id not in names:
            ex = store.get_exercise(exercise_id)
            names[exercise_id] = ex.name if ex else f"#{exercise_id}"
        return names[exercise_id]

    sets = store.sets_for_session(session_id)
    marked = sorted(name_of(eid) for eid in store.completed_exercise_ids(session_id))
    transactions = store.xp_transactions_for_session(session_id)

    if json_out:
        print(json.dumps({
            "id": session.id,
            "plan_day": _day_name(store, session),
            "started_at": format_timestamp(session.started_at),
            "ended_at": format_timestamp(session.ended_at) if session.ended_at else None,
            "notes": session.notes,
            "sets": [
                {
                    "id": s.id,
                    "exercise": name_of(s.exercise_id),
                    "set_number": s.set_number,
                    "weight": s.weight,
                    "reps": s.reps,
                    "is_warmup": s.is_warmup,
                }
                for s in sets
            ],
            "marked_done": marked,
            "xp": {tx.muscle_group: tx.total_xp for tx in transactions},
        }, indent=2))
        return

    views.print_session_detail(
        session,
        _day_name(store, session),
        [(s, name_of(s.exercise_id)) for s in sets],
        marked,
        transactions,
    )


@app.command()
def history(
    limit: Annotated[Optional[int], typer.Option("--limit", "-l", help="Show only the latest N")] = None,
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Show past sessions, newest first.
    """
    store = open_store(db_path)
    rows = []
    for session in store.list_sessions(user_id, limit):
        xp = sum(tx.total_xp for tx in store.xp_transactions_for_session(session.id))
        rows.append((session, _day_name(store, session), store.count_sets(session.id), xp))

    if json_out:
        print(json.dumps([
            {
                "id": session.id,
                "plan_day": day,
                "started_at": format_timestamp(session.started_at),
                "ended_at": format_timestamp(session.ended_at) if session.ended_at else None,
                "week_number": session.week_number,
                "day_in_week": session.day_in_week,
                "sets": sets,
                "xp": xp,
                "notes": session.notes,
            }
            for session, day, sets, xp in rows
        ], indent=2))
        return

    views.print_history(rows)


@app.command("edit-times")
def edit_times(
    session_id: Annotated[int, typer.Argument(help="Session ID")],
    started: Annotated[str, typer.Option("--start", help="New start, e.g. 2026-03-02 18:00")],
    ended: Annotated[str, typer.Option("--end", help="New end, e.g. 2026-03-02 19:10")],
    db_path: DbPathOption = None,
) -> None:
    """
    Correct the start and end time of a finished session.
    """
    store = open_store(db_path)
    try:
        session = lifecycle.update_session_times(
            store, session_id, parse_datetime_input(started), parse_datetime_input(ended)
        )
    except LifttrackError as e:
        _fail(e)
    views.print_success(
        f"Session #{session.id}: {session.started_at:%Y-%m-%d %H:%M} → {session.ended_at:%H:%M}"
    )


@app.command("edit-notes")
def edit_notes(
    session_id: Annotated[int, typer.Argument(help="Session ID")],
    notes: Annotated[str, typer.Option("--notes", "-n", help="New notes (empty to clear)")],
    db_path: DbPathOption = None,
) -> None:
    """
    Replace the notes of a session.
    """
    store = open_store(db_path)
    try:
        lifecycle.update_session_notes(store, session_id, notes)
    except LifttrackError as e:
        _fail(e)
    views.print_success(f"Notes updated for session #{session_id}")


@app.command("edit-set")
def edit_set(
    set_id: Annotated[int, typer.Argument(help="Set ID (see show-session)")],
    weight: Annotated[float, typer.Option("--weight", "-w", help="Weight")],
    reps: Annotated[int, typer.Option("--reps", "-r", help="Reps")],
    db_path: DbPathOption = None,
) -> None:
    """
    Correct the weight and reps of a logged set.
    """
    store = open_store(db_path)
    try:
        updated = lifecycle.update_set(store, set_id, weight, reps)
    except LifttrackError as e:
        _fail(e)
    views.print_success(f"Set #{updated.id}: {updated.weight:g} x {updated.reps}")


@app.command("delete-set")
def delete_set(
    set_id: Annotated[int, typer.Argument(help="Set ID (see show-session)")],
    db_path: DbPathOption = None,
) -> None:
    """
    Remove a logged set.
    """
    store = open_store(db_path)
    try:
        lifecycle.delete_set(store, set_id)
    except LifttrackError as e:
        _fail(e)
    views.print_success(f"Deleted set #{set_id}")


@app.command("delete-session")
def delete_session(
    session_id: Annotated[int, typer.Argument(help="Session ID (see history)")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
    db_path: DbPathOption = None,
) -> None:
    """
    Delete a session with its sets and XP records.

    Muscle-group XP already earned is kept.
    """
    store = open_store(db_path)
    session = store.get_session(session_id)
    if session is None:
        _fail(NotFoundError(f"Session {session_id} not found"))

    views.console.print(
        f"Session to delete: [bold]#{session.id}[/bold] {_day_name(store, session)} "
        f"{session.started_at:%Y-%m-%d}"
    )
    if not force and not views.confirm_action("Delete this session?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        lifecycle.delete_session(store, session_id)
    except LifttrackError as e:
        _fail(e)
    views.print_success(f"Deleted session #{session_id}")
