"""
Pure XP computation functions.

Base XP is training volume:

    weighted set:             floor(weight * reps)
    bodyweight / zero weight: floor(reps * difficulty_multiplier * 10)

A progression bonus of floor(base * 0.2) is granted when the set beats
the previous performance of the same exercise (heavier, or same weight
for more reps).  Arithmetic is done in Decimal so that logged weights
such as 102.5 kg floor exactly.
"""

import math
from dataclasses import dataclass
from decimal import Decimal

from .config import BODYWEIGHT_BASE_FACTOR, PROGRESSION_BONUS_MULTIPLIER
from .models import SetXp, WorkingSet


@dataclass(frozen=True)
class SetVolume:
    """The inputs base XP depends on."""

    weight: float
    reps: int
    is_bodyweight: bool = False
    difficulty_multiplier: float = 1.0

    @classmethod
    def from_working_set(cls, working: WorkingSet) -> "SetVolume":
        return cls(
            weight=working.set.weight,
            reps=working.set.reps,
            is_bodyweight=working.exercise.is_bodyweight,
            difficulty_multiplier=working.exercise.difficulty_multiplier,
        )


@dataclass(frozen=True)
class SetPerformance:
    """Weight × reps of one set, used for progression comparison."""

    weight: float
    reps: int


def _dec(value: float | int | str) -> Decimal:
    return Decimal(str(value))


def base_xp(volume: SetVolume) -> int:
    """
    Calculate base XP (volume) for a single set.

    Args:
        volume: Set weight, reps and exercise metadata

    Returns:
        Non-negative integer XP
    """
    reps = max(0, volume.reps)
    if volume.is_bodyweight or _dec(volume.weight) == 0:
        raw = reps * _dec(volume.difficulty_multiplier) * BODYWEIGHT_BASE_FACTOR
    else:
        raw = _dec(volume.weight) * reps
    return max(0, math.floor(raw))


def has_progressed(current: SetPerformance, previous: SetPerformance) -> bool:
    """
    Single-axis progressive overload check.

    True if weight went up, or weight is unchanged and reps went up.
    Improving both axes earns nothing extra.
    """
    current_weight = _dec(current.weight)
    previous_weight = _dec(previous.weight)

    if current_weight > previous_weight:
        return True
    return current_weight == previous_weight and current.reps > previous.reps


def progression_bonus(
    base: int,
    current: SetPerformance,
    previous: SetPerformance | None,
) -> int:
    """
    Calculate the progression bonus for a set.

    Args:
        base: Base XP of the current set
        current: Current weight/reps
        previous: Most recent earlier performance, or None if the exercise
            was never done before

    Returns:
        floor(base * 0.2) if progressed, else 0
    """
    if previous is None:
        return 0
    if not has_progressed(current, previous):
        return 0
    return math.floor(base * _dec(PROGRESSION_BONUS_MULTIPLIER))


def set_xp(volume: SetVolume, previous: SetPerformance | None) -> SetXp:
    """
    Calculate total XP for a set including the progression bonus.

    Args:
        volume: The set being scored
        previous: Previous performance of the same exercise, if any

    Returns:
        SetXp with base, bonus and total
    """
    base = base_xp(volume)
    bonus = progression_bonus(
        base,
        SetPerformance(weight=volume.weight, reps=volume.reps),
        previous,
    )
    return SetXp(base_xp=base, progression_bonus=bonus, total_xp=base + bonus)
