"""
Session lifecycle: start, log sets, mark exercises done, end, edit.

Ending a session is the only path to XP.  The in-progress → completed
transition is a conditional update, so XP processing runs at most once
per session even if ``end_session`` is called twice.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .errors import NotFoundError, SessionStateError, ValidationError
from .models import Session, SessionSet, XpTransaction
from .progression import process_session_xp
from .status import ReadyToTrain, resolve_training_status
from .windows import day_window

logger = logging.getLogger(__name__)


@dataclass
class EndSessionResult:
    """Outcome of ending a session."""

    session: Session
    transactions: list[XpTransaction] = field(default_factory=list)
    xp_failed: bool = False

    @property
    def xp_gained(self) -> int:
        return sum(tx.total_xp for tx in self.transactions)


def _require_session(store, session_id: int) -> Session:
    session = store.get_session(session_id)
    if session is None:
        raise NotFoundError(f"Session {session_id} not found")
    return session


def _validate_set_values(weight: float, reps: int, rpe: float | None = None) -> None:
    """
    Raises:
        ValidationError: On negative weight, non-positive reps or RPE outside 1-10
    """
    if weight < 0:
        raise ValidationError(f"weight must be non-negative, got {weight}")
    if reps <= 0:
        raise ValidationError(f"reps must be positive, got {reps}")
    if rpe is not None and not 1 <= rpe <= 10:
        raise ValidationError(f"rpe must be between 1 and 10, got {rpe}")


# =============================================================================
# Start / end
# =============================================================================


def start_session(
    store,
    user_id: int,
    plan_day_id: int,
    week_number: int,
    day_in_week: int,
    now: datetime,
) -> Session:
    """
    Open a new session.

    The plan day is not checked against the user's active plan; that is
    the caller's choice.

    Raises:
        NotFoundError: If the user or plan day does not exist
        ValidationError: If week_number or day_in_week is not positive
        SessionStateError: If a session the user started today is still in progress
    """
    if store.get_user(user_id) is None:
        raise NotFoundError(f"User {user_id} not found")
    if store.get_plan_day(plan_day_id) is None:
        raise NotFoundError(f"Plan day {plan_day_id} not found")
    if week_number <= 0 or day_in_week <= 0:
        raise ValidationError("week_number and day_in_week must be positive")

    today_start, today_end = day_window(now.date())
    with store.transaction():
        open_today = store.sessions_started_between(user_id, today_start, today_end, completed=False)
        if open_today:
            raise SessionStateError(f"Session {open_today[-1].id} is still in progress")
        session = store.add_session(user_id, plan_day_id, now, week_number, day_in_week)
    logger.info("Started session %s for user %s (plan day %s)", session.id, user_id, plan_day_id)
    return session


def start_next_session(store, user_id: int, now: datetime) -> Session:
    """
    Start the plan day the resolver reports as ready.

    Raises:
        SessionStateError: If the user is not in the ReadyToTrain state
    """
    status = resolve_training_status(store, user_id, now)
    if not isinstance(status, ReadyToTrain):
        raise SessionStateError(f"Cannot start a session: status is {status.kind}")
    return start_session(
        store,
        user_id,
        status.plan_day.id,
        status.program_week,
        status.day_in_week,
        now,
    )


def end_session(store, session_id: int, now: datetime, notes: str | None = None) -> EndSessionResult:
    """
    Finish a session and grant its XP.

    ``ended_at`` is committed before XP processing starts.  If processing
    fails, the failure is logged and reported through ``xp_failed``; the
    session stays ended and processing is not retried.

    Raises:
        NotFoundError: If the session does not exist
        ValidationError: If ``now`` is before the session start
        SessionStateError: If the session has already ended
    """
    session = _require_session(store, session_id)
    if session.is_completed:
        raise SessionStateError(f"Session {session_id} has already ended")
    if now < session.started_at:
        raise ValidationError("end time must not be before the session start")

    if not store.mark_session_ended(session_id, now, notes):
        raise SessionStateError(f"Session {session_id} has already ended")
    ended = _require_session(store, session_id)

    try:
        transactions = process_session_xp(store, session_id, now)
    except Exception:
        logger.exception("XP processing failed for session %s", session_id)
        return EndSessionResult(session=ended, xp_failed=True)

    return EndSessionResult(session=ended, transactions=transactions)


# =============================================================================
# Sets
# =============================================================================


def log_set(
    store,
    session_id: int,
    exercise_id: int,
    set_number: int,
    weight: float,
    reps: int,
    now: datetime,
    is_warmup: bool = False,
    rpe: float | None = None,
) -> SessionSet:
    """
    Append one set to a session.

    ``set_number`` is caller-supplied; gaps and repeats are allowed.

    Raises:
        NotFoundError: If the session or exercise does not exist
        ValidationError: On invalid set values
    """
    _require_session(store, session_id)
    if store.get_exercise(exercise_id) is None:
        raise NotFoundError(f"Exercise {exercise_id} not found")
    if set_number < 1:
        raise ValidationError(f"set_number must be at least 1, got {set_number}")
    _validate_set_values(weight, reps, rpe)

    return store.add_set(
        session_id,
        exercise_id,
        set_number,
        weight,
        reps,
        now,
        is_warmup=is_warmup,
        rpe=rpe,
    )


def log_sets(
    store,
    session_id: int,
    exercise_id: int,
    sets: list[tuple[float, int]],
    now: datetime,
    is_warmup: bool = False,
) -> list[SessionSet]:
    """
    Log several sets of one exercise, numbering them after any already logged.

    All sets are validated before the first one is written.
    """
    for weight, reps in sets:
        _validate_set_values(weight, reps)

    existing = [
        s for s in store.sets_for_session(session_id) if s.exercise_id == exercise_id
    ]
    next_number = max((s.set_number for s in existing), default=0) + 1

    logged = []
    with store.transaction():
        for offset, (weight, reps) in enumerate(sets):
            logged.append(
                log_set(store, session_id, exercise_id, next_number + offset, weight, reps, now, is_warmup)
            )
    return logged


def update_set(store, set_id: int, weight: float, reps: int) -> SessionSet:
    """
    Correct the weight and reps of a logged set.

    Raises:
        NotFoundError: If the set does not exist
        ValidationError: On invalid set values
    """
    if store.get_set(set_id) is None:
        raise NotFoundError(f"Set {set_id} not found")
    _validate_set_values(weight, reps)
    store.update_set(set_id, weight, reps)
    return store.get_set(set_id)


def delete_set(store, set_id: int) -> None:
    if not store.delete_set(set_id):
        raise NotFoundError(f"Set {set_id} not found")


# =============================================================================
# Completion markers
# =============================================================================


def toggle_exercise_complete(
    store,
    session_id: int,
    exercise_id: int,
    completed: bool,
    now: datetime,
) -> bool:
    """
    Mark or unmark an exercise as done without detailed logging.

    Reads the current marker before writing: marking twice leaves one
    marker, unmarking with no marker does nothing.

    Returns:
        The resulting completion state

    Raises:
        NotFoundError: If the session or exercise does not exist
    """
    _require_session(store, session_id)
    if store.get_exercise(exercise_id) is None:
        raise NotFoundError(f"Exercise {exercise_id} not found")

    with store.transaction():
        existing = store.get_completion(session_id, exercise_id)
        if completed and existing is None:
            store.add_completion(session_id, exercise_id, now)
        elif not completed and existing is not None:
            store.delete_completion(session_id, exercise_id)
    return completed


# =============================================================================
# History editing
# =============================================================================


def update_session_times(store, session_id: int, started_at: datetime, ended_at: datetime) -> Session:
    """
    Correct the start and end time of a completed session.

    XP already granted is left untouched.

    Raises:
        NotFoundError: If the session does not exist
        SessionStateError: If the session is still in progress
        ValidationError: If ended_at is not after started_at
    """
    session = _require_session(store, session_id)
    if not session.is_completed:
        raise SessionStateError(f"Session {session_id} is still in progress; end it first")
    if ended_at <= started_at:
        raise ValidationError("end time must be after start time")

    store.update_session_times(session_id, started_at, ended_at)
    return _require_session(store, session_id)


def update_session_notes(store, session_id: int, notes: str | None) -> Session:
    _require_session(store, session_id)
    store.update_session_notes(session_id, notes or None)
    return _require_session(store, session_id)


def delete_session(store, session_id: int) -> None:
    """
    Delete a session with its sets, markers and XP transactions.

    Cumulative muscle-group XP is not reduced.

    Raises:
        NotFoundError: If the session does not exist
    """
    if not store.delete_session(session_id):
        raise NotFoundError(f"Session {session_id} not found")
    logger.info("Deleted session %s", session_id)
