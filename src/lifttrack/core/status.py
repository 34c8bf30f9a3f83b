"""
Training status resolver.

Decides which of six states a user is in for a given moment.  The states
are checked in a fixed priority order and the first match wins:

    1. NoPlan             no active plan or no plan start date
    2. SessionInProgress  a session started today has not ended
    3. TrainedToday       a session started today has ended
    4. RecoveryDay        a session started yesterday has ended
    5. WeekComplete       completed sessions this week >= days per week
    6. ReadyToTrain       otherwise; the next plan day is attached

The order is a contract: a user who finished a workout this morning and
started another one this afternoon is SessionInProgress, never
TrainedToday.  Status is recomputed on every request and never stored.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import ClassVar, Union

from .consistency import days_per_week
from .errors import NotFoundError
from .models import PlanDay, PlannedExercise, Session, User
from .windows import day_window, program_week, week_window

logger = logging.getLogger(__name__)


# =============================================================================
# States
# =============================================================================


@dataclass(frozen=True)
class NoPlan:
    kind: ClassVar[str] = "no_plan"


@dataclass(frozen=True)
class SessionInProgress:
    """A workout is running; elapsed time is measured from ``started_at``."""

    kind: ClassVar[str] = "session_in_progress"

    session_id: int
    plan_day_name: str
    started_at: datetime
    sets_logged: int


@dataclass(frozen=True)
class ExerciseSummary:
    """Working sets logged today for one exercise."""

    exercise_id: int
    name: str
    sets: int
    marked_complete: bool = False


@dataclass(frozen=True)
class TrainedToday:
    kind: ClassVar[str] = "trained_today"

    session_ids: tuple[int, ...]
    exercises: tuple[ExerciseSummary, ...]
    total_sets: int


@dataclass(frozen=True)
class RecoveryDay:
    kind: ClassVar[str] = "recovery_day"

    last_session_id: int
    last_session_ended_at: datetime


@dataclass(frozen=True)
class WeekComplete:
    kind: ClassVar[str] = "week_complete"

    sessions_this_week: int
    days_per_week: int


@dataclass(frozen=True)
class ReadyToTrain:
    """
    The next workout to perform.

    ``program_week`` is a label only; the plan day is chosen by
    ``day_in_week`` = completed sessions this week + 1.
    """

    kind: ClassVar[str] = "ready_to_train"

    program_week: int
    day_in_week: int
    plan_day: PlanDay
    exercises: tuple[PlannedExercise, ...]
    sessions_this_week: int


TrainingStatus = Union[NoPlan, SessionInProgress, TrainedToday, RecoveryDay, WeekComplete, ReadyToTrain]


# =============================================================================
# Facts
# =============================================================================


@dataclass
class StatusFacts:
    """Everything the state predicates look at, loaded once per evaluation."""

    user: User
    now: datetime
    has_plan: bool
    open_today: list[Session] = field(default_factory=list)
    completed_today: list[Session] = field(default_factory=list)
    completed_yesterday: list[Session] = field(default_factory=list)
    sessions_this_week: int = 0
    days_per_week: int = 0


def load_status_facts(store, user_id: int, now: datetime) -> StatusFacts:
    """
    Read the session and plan history the resolver needs.

    Raises:
        NotFoundError: If the user does not exist
    """
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")

    plan = store.get_plan(user.current_plan_id) if user.has_active_plan else None
    if plan is None:
        return StatusFacts(user=user, now=now, has_plan=False)

    today = now.date()
    today_start, today_end = day_window(today)
    yesterday_start, yesterday_end = day_window(today - timedelta(days=1))
    week_start, week_end = week_window(now)

    todays = store.sessions_started_between(user_id, today_start, today_end)

    return StatusFacts(
        user=user,
        now=now,
        has_plan=True,
        open_today=[s for s in todays if not s.is_completed],
        completed_today=[s for s in todays if s.is_completed],
        completed_yesterday=store.sessions_started_between(
            user_id, yesterday_start, yesterday_end, completed=True
        ),
        sessions_this_week=store.count_completed_sessions(user_id, week_start, week_end),
        days_per_week=days_per_week(store, plan),
    )


# =============================================================================
# Rules
# =============================================================================


def _lacks_plan(facts: StatusFacts) -> bool:
    return not facts.has_plan


def _has_open_session(facts: StatusFacts) -> bool:
    return bool(facts.open_today)


def _trained_today(facts: StatusFacts) -> bool:
    return bool(facts.completed_today)


def _trained_yesterday(facts: StatusFacts) -> bool:
    return bool(facts.completed_yesterday)


def _week_done(facts: StatusFacts) -> bool:
    return facts.sessions_this_week >= facts.days_per_week


def _otherwise(facts: StatusFacts) -> bool:
    return True


def _build_no_plan(store, facts: StatusFacts) -> TrainingStatus:
    return NoPlan()


def _build_in_progress(store, facts: StatusFacts) -> TrainingStatus:
    session = max(facts.open_today, key=lambda s: (s.started_at, s.id))
    plan_day = store.get_plan_day(session.plan_day_id)
    return SessionInProgress(
        session_id=session.id,
        plan_day_name=plan_day.name if plan_day else "",
        started_at=session.started_at,
        sets_logged=store.count_sets(session.id),
    )


def _build_trained_today(store, facts: StatusFacts) -> TrainingStatus:
    counts: dict[int, int] = {}
    marked: set[int] = set()
    for session in facts.completed_today:
        for s in store.sets_for_session(session.id):
            if not s.is_warmup:
                counts[s.exercise_id] = counts.get(s.exercise_id, 0) + 1
            else:
                counts.setdefault(s.exercise_id, 0)
        for exercise_id in store.completed_exercise_ids(session.id):
            marked.add(exercise_id)
            counts.setdefault(exercise_id, 0)

    summaries = []
    for exercise_id, sets in counts.items():
        exercise = store.get_exercise(exercise_id)
        summaries.append(
            ExerciseSummary(
                exercise_id=exercise_id,
                name=exercise.name if exercise else f"#{exercise_id}",
                sets=sets,
                marked_complete=exercise_id in marked,
            )
        )

    return TrainedToday(
        session_ids=tuple(s.id for s in facts.completed_today),
        exercises=tuple(summaries),
        total_sets=sum(counts.values()),
    )


def _build_recovery(store, facts: StatusFacts) -> TrainingStatus:
    last = max(facts.completed_yesterday, key=lambda s: (s.ended_at, s.id))
    return RecoveryDay(last_session_id=last.id, last_session_ended_at=last.ended_at)


def _build_week_complete(store, facts: StatusFacts) -> TrainingStatus:
    return WeekComplete(sessions_this_week=facts.sessions_this_week, days_per_week=facts.days_per_week)


def _build_ready(store, facts: StatusFacts) -> TrainingStatus:
    user = facts.user
    day_in_week = facts.sessions_this_week + 1
    plan_day = store.find_plan_day(user.current_plan_id, day_in_week)
    if plan_day is None:
        logger.warning(
            "Plan %s has no day %d for user %s; reporting no plan",
            user.current_plan_id,
            day_in_week,
            user.id,
        )
        return NoPlan()

    return ReadyToTrain(
        program_week=program_week(user.plan_start_date, facts.now.date()),
        day_in_week=day_in_week,
        plan_day=plan_day,
        exercises=tuple(store.planned_exercises(plan_day.id)),
        sessions_this_week=facts.sessions_this_week,
    )


Predicate = Callable[[StatusFacts], bool]
Builder = Callable[..., TrainingStatus]

# Evaluated top to bottom; the first matching predicate picks the state.
# The last rule is the catch-all.
STATUS_RULES: tuple[tuple[str, Predicate, Builder], ...] = (
    (NoPlan.kind, _lacks_plan, _build_no_plan),
    (SessionInProgress.kind, _has_open_session, _build_in_progress),
    (TrainedToday.kind, _trained_today, _build_trained_today),
    (RecoveryDay.kind, _trained_yesterday, _build_recovery),
    (WeekComplete.kind, _week_done, _build_week_complete),
    (ReadyToTrain.kind, _otherwise, _build_ready),
)


def _select_rule(facts: StatusFacts) -> tuple[str, Predicate, Builder]:
    for rule in STATUS_RULES[:-1]:
        if rule[1](facts):
            return rule
    return STATUS_RULES[-1]


def matching_rule(facts: StatusFacts) -> str:
    """Kind of the first rule whose predicate holds."""
    return _select_rule(facts)[0]


def evaluate_status(store, facts: StatusFacts) -> TrainingStatus:
    """Build the state selected by the first matching rule."""
    _, _, build = _select_rule(facts)
    return build(store, facts)


def resolve_training_status(store, user_id: int, now: datetime) -> TrainingStatus:
    """
    Determine the user's training state at ``now``.

    Args:
        store: TrainingStore
        user_id: User to evaluate
        now: Reference time; "today", "yesterday" and "this week" derive from it

    Returns:
        Exactly one TrainingStatus variant

    Raises:
        NotFoundError: If the user does not exist
    """
    return evaluate_status(store, load_status_facts(store, user_id, now))
