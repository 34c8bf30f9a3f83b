"""
Data models for lifttrack.

Core dataclasses representing users, plans, exercises, logged sessions
and the XP bookkeeping derived from them.  Identity, plan templates and
session history are stored entities; the remaining classes are read-only
views computed by the engine.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from .config import DEFAULT_DIFFICULTY_MULTIPLIER, DEFAULT_REPS, DEFAULT_REST_SECONDS, PLAN_TYPES, WEIGHT_UNITS


@dataclass
class User:
    """
    A lifter.

    Only ``current_plan_id`` and ``plan_start_date`` are read by the engine;
    the remaining fields are preferences owned by the identity layer.
    """

    id: int
    name: str
    current_plan_id: int | None = None
    plan_start_date: date | None = None
    weight_unit: str = "kg"
    track_later_enabled: bool = False
    default_rest_seconds: int = DEFAULT_REST_SECONDS

    def __post_init__(self) -> None:
        """Validate user preferences."""
        if self.weight_unit not in WEIGHT_UNITS:
            raise ValueError(f"Invalid weight_unit: {self.weight_unit!r}. Must be one of {WEIGHT_UNITS}")
        if self.default_rest_seconds < 0:
            raise ValueError("default_rest_seconds must be non-negative")

    @property
    def has_active_plan(self) -> bool:
        """True when a plan is assigned and its start date is known."""
        return self.current_plan_id is not None and self.plan_start_date is not None


@dataclass
class Plan:
    """A named training template."""

    id: int
    name: str
    description: str = ""
    plan_type: str = "weightlifting"
    total_weeks: int | None = None  # None = indefinite
    days_per_week: int = 3

    def __post_init__(self) -> None:
        if self.plan_type not in PLAN_TYPES:
            raise ValueError(f"Invalid plan_type: {self.plan_type!r}")
        if self.days_per_week <= 0:
            raise ValueError("days_per_week must be positive")


@dataclass
class PlanDay:
    """One training day of a plan, e.g. "Push"."""

    id: int
    plan_id: int
    day_number: int
    name: str
    week_variant: int = 1

    def __post_init__(self) -> None:
        if self.day_number <= 0:
            raise ValueError("day_number must be positive")


@dataclass
class Exercise:
    """
    A movement from the exercise catalog.

    ``difficulty_multiplier`` scales bodyweight XP; ``next_progression_id``
    points at a harder variation (e.g. push-up → archer push-up).
    """

    id: int
    name: str
    muscle_group: str
    is_compound: bool = False
    is_bodyweight: bool = False
    difficulty_multiplier: float = DEFAULT_DIFFICULTY_MULTIPLIER
    next_progression_id: int | None = None

    def __post_init__(self) -> None:
        if not self.muscle_group:
            raise ValueError("muscle_group must be a non-empty string")
        if self.difficulty_multiplier < 0:
            raise ValueError("difficulty_multiplier must be non-negative")


@dataclass
class PlanDayExercise:
    """Prescription for one exercise on a plan day."""

    id: int
    plan_day_id: int
    exercise_id: int
    order: int
    target_sets: int
    target_reps: str  # "5" or "8-12"
    default_reps: int = DEFAULT_REPS
    rpe_target: float | None = None

    def __post_init__(self) -> None:
        if self.target_sets < 0:
            raise ValueError("target_sets must be non-negative")
        if self.default_reps < 0:
            raise ValueError("default_reps must be non-negative")


@dataclass
class PlannedExercise:
    """A plan-day prescription joined with its exercise."""

    prescription: PlanDayExercise
    exercise: Exercise

    @property
    def name(self) -> str:
        return self.exercise.name

    @property
    def target_sets(self) -> int:
        return self.prescription.target_sets


@dataclass
class Session:
    """
    One workout instance.

    A session is completed iff ``ended_at`` is set.  ``ended_at`` is written
    exactly once, on the in-progress → completed transition.
    """

    id: int
    user_id: int
    plan_day_id: int
    started_at: datetime
    week_number: int
    day_in_week: int
    ended_at: datetime | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate session timing."""
        if self.ended_at is not None and self.ended_at < self.started_at:
            raise ValueError("ended_at must not be before started_at")
        if self.week_number <= 0:
            raise ValueError("week_number must be positive")
        if self.day_in_week <= 0:
            raise ValueError("day_in_week must be positive")

    @property
    def is_completed(self) -> bool:
        return self.ended_at is not None


@dataclass
class SessionSet:
    """A single logged set."""

    id: int
    session_id: int
    exercise_id: int
    set_number: int
    weight: float
    reps: int
    created_at: datetime
    is_warmup: bool = False
    rpe: float | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.set_number < 0:
            raise ValueError("set_number must be non-negative")
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")

    @property
    def volume(self) -> float:
        return self.weight * self.reps


@dataclass
class WorkingSet:
    """A non-warmup set joined with the exercise metadata XP depends on."""

    set: SessionSet
    exercise: Exercise


@dataclass
class ExerciseCompletion:
    """
    Marker for an exercise ticked off without detailed logging.

    Never contributes to XP or set counts; counts as "exercise touched".
    """

    id: int
    session_id: int
    exercise_id: int
    created_at: datetime


@dataclass
class MuscleGroupXp:
    """Cumulative XP per user and muscle group.  Only ever increases."""

    user_id: int
    muscle_group: str
    total_xp: int = 0
    current_level: int = 1
    updated_at: datetime | None = None


@dataclass
class XpTransaction:
    """Immutable audit record of XP granted for one muscle group in one session."""

    id: int
    user_id: int
    session_id: int
    muscle_group: str
    base_xp: int
    progression_bonus: int
    total_xp: int
    created_at: datetime

    def __post_init__(self) -> None:
        if self.total_xp != self.base_xp + self.progression_bonus:
            raise ValueError("total_xp must equal base_xp + progression_bonus")


# =============================================================================
# Computed views
# =============================================================================


@dataclass(frozen=True)
class XpProgress:
    """Position of a cumulative XP total on the leveling curve."""

    level: int
    xp_into_level: int
    xp_to_next_level: int
    percent_to_next: int  # 0-100


@dataclass(frozen=True)
class SetXp:
    """XP earned by one set."""

    base_xp: int
    progression_bonus: int
    total_xp: int


@dataclass(frozen=True)
class ConsistencyMetrics:
    """
    Adherence percentages (0-100).

    The three rates are independent and may disagree, e.g. every set
    logged but only one session this week.
    """

    session: int
    weekly: int
    monthly: int
    has_enough_data: bool


@dataclass(frozen=True)
class MuscleXp:
    """Muscle-group level row for display."""

    muscle_group: str
    total_xp: int
    level: int
    xp_into_level: int
    xp_to_next_level: int
    percent_to_next: int


@dataclass(frozen=True)
class ProgressPoint:
    """XP gained in one session, for charting."""

    session_id: int
    date: datetime
    total_volume: int  # summed base XP
    xp_gained: int


@dataclass(frozen=True)
class ExercisePoint:
    """One working set of an exercise over time."""

    date: datetime
    weight: float
    reps: int
    volume: float


@dataclass
class ExerciseProgress:
    """History and personal records for one exercise."""

    exercise: Exercise
    points: list[ExercisePoint] = field(default_factory=list)

    @property
    def max_weight(self) -> float:
        return max((p.weight for p in self.points), default=0.0)

    @property
    def max_volume(self) -> float:
        return max((p.volume for p in self.points), default=0.0)

    @property
    def total_sets(self) -> int:
        return len(self.points)
