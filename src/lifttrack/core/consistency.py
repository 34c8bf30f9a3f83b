"""
Consistency metrics: how closely a user follows their plan.

Three independent adherence percentages:

    session  average share of prescribed sets actually logged, over the
             most recent completed sessions
    weekly   completed sessions this ISO week / days per week
    monthly  completed sessions this month / (days per week * 4)

Rates are computed with exact fractions and rounded half-up.
"""

import math
from datetime import datetime
from fractions import Fraction

from .config import COMPLETION_WINDOW_SESSIONS, FALLBACK_DAYS_PER_WEEK, WEEKS_PER_MONTH
from .errors import NotFoundError
from .models import ConsistencyMetrics, Plan
from .windows import month_window, week_window


def round_half_up(value: Fraction | float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(Fraction(value) + Fraction(1, 2))


def frequency_rate(completed: int, expected: int) -> int:
    """
    Completed / expected sessions as a percentage, capped at 100.

    Returns 0 when nothing is expected.
    """
    if expected <= 0:
        return 0
    return min(100, round_half_up(Fraction(completed * 100, expected)))


def weekly_rate(completed_this_week: int, days_per_week: int) -> int:
    return frequency_rate(completed_this_week, days_per_week)


def monthly_rate(completed_this_month: int, days_per_week: int, weeks_per_month: int = WEEKS_PER_MONTH) -> int:
    return frequency_rate(completed_this_month, days_per_week * weeks_per_month)


def session_set_ratio(targets: list[tuple[int, int]], logged: dict[int, int]) -> Fraction | None:
    """
    Share of prescribed sets logged in one session, as a percentage.

    Sets beyond the target of an exercise do not count.

    Args:
        targets: (exercise id, target sets) per plan-day prescription
        logged: Working-set count per exercise id from the session

    Returns:
        Percentage as a Fraction, or None if the plan day prescribes no sets
    """
    total_target = 0
    total_actual = 0
    for exercise_id, target in targets:
        total_target += target
        total_actual += min(logged.get(exercise_id, 0), target)

    if total_target == 0:
        return None
    return Fraction(total_actual * 100, total_target)


def session_completion_rate(ratios: list[Fraction | None]) -> int:
    """Average of per-session percentages, skipping sessions with no target."""
    counted = [r for r in ratios if r is not None]
    if not counted:
        return 0
    return round_half_up(sum(counted, Fraction(0)) / len(counted))


def days_per_week(store, plan: Plan) -> int:
    """
    Sessions per week a plan expects.

    Distinct configured day numbers; the plan's declared value if it has
    no days; FALLBACK_DAYS_PER_WEEK as a last resort.
    """
    configured = store.count_plan_day_numbers(plan.id)
    if configured > 0:
        return configured
    return plan.days_per_week or FALLBACK_DAYS_PER_WEEK


def get_consistency_metrics(
    store,
    user_id: int,
    now: datetime,
    recent_sessions: int = COMPLETION_WINDOW_SESSIONS,
    weeks_per_month: int = WEEKS_PER_MONTH,
) -> ConsistencyMetrics:
    """
    Compute all three adherence rates for a user.

    Args:
        store: TrainingStore
        user_id: User to evaluate
        now: Reference time for the current week and month
        recent_sessions: Completed sessions averaged for the session rate
        weeks_per_month: Weeks assumed per month for the monthly rate

    Returns:
        ConsistencyMetrics (all zero when the user has no active plan)

    Raises:
        NotFoundError: If the user does not exist
    """
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")

    plan = store.get_plan(user.current_plan_id) if user.has_active_plan else None
    if plan is None:
        return ConsistencyMetrics(session=0, weekly=0, monthly=0, has_enough_data=False)

    per_week = days_per_week(store, plan)

    week_start, week_end = week_window(now)
    month_start, month_end = month_window(now)
    week_count = store.count_completed_sessions(user_id, week_start, week_end)
    month_count = store.count_completed_sessions(user_id, month_start, month_end)

    ratios: list[Fraction | None] = []
    for session in store.recent_completed_sessions(user_id, recent_sessions):
        targets = [
            (planned.exercise.id, planned.target_sets)
            for planned in store.planned_exercises(session.plan_day_id)
        ]
        ratios.append(session_set_ratio(targets, store.working_set_counts(session.id)))

    return ConsistencyMetrics(
        session=session_completion_rate(ratios),
        weekly=weekly_rate(week_count, per_week),
        monthly=monthly_rate(month_count, per_week, weeks_per_month),
        has_enough_data=store.count_completed_sessions(user_id) >= 1,
    )
