"""
Serialization between database rows, text input and domain dataclasses.

Timestamps are stored as ISO-8601 text, dates as YYYY-MM-DD.
"""

import re
import sqlite3
from datetime import date, datetime

from ..core.errors import ValidationError
from ..core.models import (
    Exercise,
    ExerciseCompletion,
    MuscleGroupXp,
    Plan,
    PlanDay,
    PlanDayExercise,
    Session,
    SessionSet,
    User,
    XpTransaction,
)


def format_timestamp(value: datetime) -> str:
    """Render a datetime for storage (microsecond precision keeps ordering stable)."""
    return value.isoformat(timespec="microseconds")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored timestamp; None passes through."""
    if value is None:
        return None
    return datetime.fromisoformat(value)


def parse_date(value: str | None) -> date | None:
    """
    Parse an ISO date string.

    Raises:
        ValidationError: If the string is not YYYY-MM-DD
    """
    if value is None:
        return None
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", value):
        raise ValidationError(f"Invalid date format: {value}. Expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value}") from e


def parse_datetime_input(value: str) -> datetime:
    """
    Parse a user-entered timestamp such as "2026-03-02 18:30".

    Raises:
        ValidationError: If the value is not an ISO date/time
    """
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value!r}. Expected YYYY-MM-DD HH:MM") from e


def validate_positive(value: int | float, name: str) -> int | float:
    """
    Validate that a value is positive.

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


# =============================================================================
# Rows → dataclasses
# =============================================================================


def row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        current_plan_id=row["current_plan_id"],
        plan_start_date=parse_date(row["plan_start_date"]),
        weight_unit=row["weight_unit"],
        track_later_enabled=bool(row["track_later_enabled"]),
        default_rest_seconds=row["default_rest_seconds"],
    )


def row_to_plan(row: sqlite3.Row) -> Plan:
    return Plan(
        id=row["id"],
        name=row["name"],
        description=row["description"] or "",
        plan_type=row["plan_type"],
        total_weeks=row["total_weeks"],
        days_per_week=row["days_per_week"],
    )


def row_to_plan_day(row: sqlite3.Row) -> PlanDay:
    return PlanDay(
        id=row["id"],
        plan_id=row["plan_id"],
        day_number=row["day_number"],
        name=row["name"],
        week_variant=row["week_variant"],
    )


def row_to_exercise(row: sqlite3.Row, prefix: str = "") -> Exercise:
    """Build an Exercise; ``prefix`` selects aliased columns from a join."""
    return Exercise(
        id=row[f"{prefix}id"],
        name=row[f"{prefix}name"],
        muscle_group=row[f"{prefix}muscle_group"],
        is_compound=bool(row[f"{prefix}is_compound"]),
        is_bodyweight=bool(row[f"{prefix}is_bodyweight"]),
        difficulty_multiplier=row[f"{prefix}difficulty_multiplier"],
        next_progression_id=row[f"{prefix}next_progression_id"],
    )


def row_to_plan_day_exercise(row: sqlite3.Row) -> PlanDayExercise:
    return PlanDayExercise(
        id=row["id"],
        plan_day_id=row["plan_day_id"],
        exercise_id=row["exercise_id"],
        order=row["sort_order"],
        target_sets=row["target_sets"],
        target_reps=row["target_reps"],
        default_reps=row["default_reps"],
        rpe_target=row["rpe_target"],
    )


def row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        id=row["id"],
        user_id=row["user_id"],
        plan_day_id=row["plan_day_id"],
        started_at=parse_timestamp(row["started_at"]),  # type: ignore[arg-type]
        ended_at=parse_timestamp(row["ended_at"]),
        week_number=row["week_number"],
        day_in_week=row["day_in_week"],
        notes=row["notes"],
    )


def row_to_set(row: sqlite3.Row) -> SessionSet:
    return SessionSet(
        id=row["id"],
        session_id=row["session_id"],
        exercise_id=row["exercise_id"],
        set_number=row["set_number"],
        weight=row["weight"],
        reps=row["reps"],
        is_warmup=bool(row["is_warmup"]),
        rpe=row["rpe"],
        created_at=parse_timestamp(row["created_at"]),  # type: ignore[arg-type]
    )


def row_to_completion(row: sqlite3.Row) -> ExerciseCompletion:
    return ExerciseCompletion(
        id=row["id"],
        session_id=row["session_id"],
        exercise_id=row["exercise_id"],
        created_at=parse_timestamp(row["created_at"]),  # type: ignore[arg-type]
    )


def row_to_muscle_group_xp(row: sqlite3.Row) -> MuscleGroupXp:
    return MuscleGroupXp(
        user_id=row["user_id"],
        muscle_group=row["muscle_group"],
        total_xp=row["total_xp"],
        current_level=row["current_level"],
        updated_at=parse_timestamp(row["updated_at"]),
    )


def row_to_xp_transaction(row: sqlite3.Row) -> XpTransaction:
    return XpTransaction(
        id=row["id"],
        user_id=row["user_id"],
        session_id=row["session_id"],
        muscle_group=row["muscle_group"],
        base_xp=row["base_xp"],
        progression_bonus=row["progression_bonus"],
        total_xp=row["total_xp"],
        created_at=parse_timestamp(row["created_at"]),  # type: ignore[arg-type]
    )


# =============================================================================
# Text input
# =============================================================================

_SET_PATTERN = re.compile(
    r"^(?:(?P<weight>\d+(?:\.\d+)?)\s*[x×]\s*)?(?P<reps>\d+)(?:\s*[x×]\s*(?P<count>\d+))?$"
)


def parse_set_token(token: str) -> list[tuple[float, int]]:
    """
    Parse one set token into (weight, reps) pairs.

    Accepted forms:
        100x10      one set, 100 weight units × 10 reps
        100x10x3    three identical sets
        12          bodyweight set of 12 reps

    Raises:
        ValidationError: If the token is malformed
    """
    raw = token.strip().lower()
    match = _SET_PATTERN.match(raw)
    if not match:
        raise ValidationError(
            f"Invalid set: {token!r}. Use WEIGHTxREPS, WEIGHTxREPSxSETS or REPS"
        )

    weight = float(match.group("weight") or 0.0)
    reps = int(match.group("reps"))
    count = int(match.group("count") or 1)

    validate_positive(reps, "reps")
    validate_positive(count, "set count")

    return [(weight, reps)] * count


def parse_sets_string(sets_str: str) -> list[tuple[float, int]]:
    """
    Parse a comma-separated set list, e.g. "100x10, 100x8, 95x8".

    Returns:
        List of (weight, reps) in entry order

    Raises:
        ValidationError: If any token is malformed or the list is empty
    """
    tokens = [t for t in sets_str.split(",") if t.strip()]
    if not tokens:
        raise ValidationError("At least one set is required")

    result: list[tuple[float, int]] = []
    for token in tokens:
        result.extend(parse_set_token(token))
    return result


def default_reps_from_target(target_reps: str, fallback: int) -> int:
    """
    Derive logging default reps from a rep prescription.

    "5" → 5, "8-12" → 8 (lower bound); anything unparseable → fallback.
    """
    match = re.match(r"^\s*(\d+)", str(target_reps))
    if not match:
        return fallback
    return int(match.group(1))
