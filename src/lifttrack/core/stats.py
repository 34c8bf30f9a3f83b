"""
Read-only progress views: muscle-group levels, character level, XP
history and per-exercise records.
"""

from fractions import Fraction

from .config import MUSCLE_GROUP_ORDER, PROGRESS_CHART_LIMIT
from .consistency import round_half_up
from .errors import NotFoundError
from .leveling import xp_progress
from .models import ExercisePoint, ExerciseProgress, MuscleXp, ProgressPoint


def muscle_group_sort_key(muscle_group: str) -> tuple[int, str]:
    """Canonical position; unknown groups sort last, alphabetically."""
    try:
        return MUSCLE_GROUP_ORDER.index(muscle_group), ""
    except ValueError:
        return len(MUSCLE_GROUP_ORDER), muscle_group


def muscle_group_levels(store, user_id: int) -> list[MuscleXp]:
    """Level and intra-level progress for every muscle group the user has trained."""
    rows = []
    for record in store.list_muscle_group_xp(user_id):
        progress = xp_progress(record.total_xp)
        rows.append(
            MuscleXp(
                muscle_group=record.muscle_group,
                total_xp=record.total_xp,
                level=progress.level,
                xp_into_level=progress.xp_into_level,
                xp_to_next_level=progress.xp_to_next_level,
                percent_to_next=progress.percent_to_next,
            )
        )
    return sorted(rows, key=lambda r: muscle_group_sort_key(r.muscle_group))


def character_level(store, user_id: int) -> int:
    """Rounded mean of all muscle-group levels; 1 for a user with no XP."""
    levels = [m.level for m in muscle_group_levels(store, user_id)]
    if not levels:
        return 1
    return round_half_up(Fraction(sum(levels), len(levels)))


def progress_data(store, user_id: int, limit: int = PROGRESS_CHART_LIMIT) -> list[ProgressPoint]:
    """Per-session volume and XP for the last ``limit`` sessions, oldest first."""
    return list(reversed(store.xp_by_session(user_id, limit)))


def exercise_progress(store, user_id: int, exercise_id: int) -> ExerciseProgress:
    """
    Every working set of one exercise with its session date.

    Raises:
        NotFoundError: If the exercise does not exist
    """
    exercise = store.get_exercise(exercise_id)
    if exercise is None:
        raise NotFoundError(f"Exercise {exercise_id} not found")

    points = [
        ExercisePoint(date=started_at, weight=s.weight, reps=s.reps, volume=s.volume)
        for started_at, s in store.exercise_working_sets(user_id, exercise_id)
    ]
    return ExerciseProgress(exercise=exercise, points=points)
