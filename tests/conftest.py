"""
Shared fixtures: a temporary SQLite store seeded with a three-day plan.

All reference times are explicit.  PLAN_START is a Monday.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

import pytest

from lifttrack.core.models import Exercise, Plan, PlanDay, Session, User
from lifttrack.core.users import create_user, select_plan
from lifttrack.io.store import TrainingStore

PLAN_START = date(2026, 3, 2)  # Monday
MONDAY_10AM = datetime(2026, 3, 2, 10, 0)


@dataclass
class SeededPlan:
    plan: Plan
    push: PlanDay
    pull: PlanDay
    legs: PlanDay
    bench: Exercise  # Chest, weighted
    push_up: Exercise  # Chest, bodyweight
    row: Exercise  # Back, weighted
    squat: Exercise  # Quads, weighted


@pytest.fixture
def store(tmp_path):
    """Fresh initialized store backed by a temp file."""
    s = TrainingStore(tmp_path / "lifttrack.db")
    s.init()
    yield s
    s.close()


@pytest.fixture
def user(store) -> User:
    return create_user(store, "Alex")


@pytest.fixture
def plan(store) -> SeededPlan:
    """
    Push / Pull / Legs:
      Day 1 Push: Bench Press 3 x 8-12, Push-Up 2 x 10
      Day 2 Pull: Barbell Row 3 x 8
      Day 3 Legs: Back Squat 3 x 5
    """
    p = store.add_plan("PPL Test", days_per_week=3)
    push = store.add_plan_day(p.id, 1, "Push")
    pull = store.add_plan_day(p.id, 2, "Pull")
    legs = store.add_plan_day(p.id, 3, "Legs")

    bench = store.add_exercise("Bench Press", "Chest", is_compound=True)
    push_up = store.add_exercise("Push-Up", "Chest", is_bodyweight=True, difficulty_multiplier=1.0)
    row = store.add_exercise("Barbell Row", "Back", is_compound=True)
    squat = store.add_exercise("Back Squat", "Quads", is_compound=True)

    store.add_plan_day_exercise(push.id, bench.id, 0, 3, "8-12")
    store.add_plan_day_exercise(push.id, push_up.id, 1, 2, "10")
    store.add_plan_day_exercise(pull.id, row.id, 0, 3, "8")
    store.add_plan_day_exercise(legs.id, squat.id, 0, 3, "5")

    return SeededPlan(p, push, pull, legs, bench, push_up, row, squat)


@pytest.fixture
def active_user(store, user, plan) -> User:
    """User following the seeded plan since PLAN_START."""
    return select_plan(store, user.id, plan.plan.id, PLAN_START)


@pytest.fixture
def add_session(store):
    """
    Insert a session directly, bypassing the lifecycle checks.

    Usage: add_session(user_id, plan_day_id, started_at, sets=[(exercise_id, weight, reps)],
                       ended=True)
    """

    def _add(
        user_id: int,
        plan_day_id: int,
        started_at: datetime,
        sets: list[tuple[int, float, int]] = (),
        ended: bool = True,
        week_number: int = 1,
        day_in_week: int = 1,
    ) -> Session:
        session = store.add_session(user_id, plan_day_id, started_at, week_number, day_in_week)
        numbers: dict[int, int] = {}
        for i, (exercise_id, weight, reps) in enumerate(sets):
            numbers[exercise_id] = numbers.get(exercise_id, 0) + 1
            store.add_set(
                session.id,
                exercise_id,
                numbers[exercise_id],
                weight,
                reps,
                started_at + timedelta(minutes=i + 1),
            )
        if ended:
            store.mark_session_ended(session.id, started_at + timedelta(hours=1), None)
        return store.get_session(session.id)

    return _add
