"""
YAML → plan template loader.

Plan templates are YAML files, one plan per file.  Bundled templates live
in ``src/lifttrack/plans/``; any other file can be imported by path.

File layout::

    name: Push Pull Legs
    description: Three-day split
    type: weightlifting
    total_weeks: 12
    days_per_week: 3
    days:
      - day_number: 1
        name: Push
        exercises:
          - name: Bench Press
            muscle_group: Chest
            is_compound: true
            target_sets: 4
            target_reps: "6-8"
            rpe_target: 8
          - name: Push-Up
            muscle_group: Chest
            is_bodyweight: true
            difficulty_multiplier: 1.0
            next_progression: Archer Push-Up
            target_sets: 3
            target_reps: "10-15"

Importing deduplicates exercises by name and resolves ``next_progression``
links after every day is in place.  A plan whose name already exists is
skipped.
"""

from __future__ import annotations

import importlib.resources
import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from ..core.config import DEFAULT_DIFFICULTY_MULTIPLIER, DEFAULT_REPS, PLAN_TYPES
from ..core.errors import ValidationError
from ..core.models import Plan
from .serializers import default_reps_from_target

logger = logging.getLogger(__name__)

_REQUIRED_PLAN_FIELDS: frozenset[str] = frozenset({"name", "days"})
_REQUIRED_DAY_FIELDS: frozenset[str] = frozenset({"day_number", "name", "exercises"})
_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {"name", "muscle_group", "target_sets", "target_reps"}
)


@dataclass
class ExerciseTemplate:
    name: str
    muscle_group: str
    target_sets: int
    target_reps: str
    default_reps: int = DEFAULT_REPS
    is_compound: bool = False
    is_bodyweight: bool = False
    difficulty_multiplier: float = DEFAULT_DIFFICULTY_MULTIPLIER
    next_progression: str | None = None
    rpe_target: float | None = None


@dataclass
class DayTemplate:
    day_number: int
    name: str
    exercises: list[ExerciseTemplate] = field(default_factory=list)


@dataclass
class PlanTemplate:
    name: str
    days: list[DayTemplate]
    description: str = ""
    plan_type: str = "weightlifting"
    total_weeks: int | None = None
    days_per_week: int | None = None


def _check_fields(d: dict, required: frozenset[str], what: str) -> None:
    missing = required - set(d)
    if missing:
        raise ValidationError(f"{what} missing fields: {sorted(missing)}")


def exercise_from_dict(d: dict) -> ExerciseTemplate:
    """Convert a raw exercise entry to an ExerciseTemplate."""
    _check_fields(d, _REQUIRED_EXERCISE_FIELDS, f"Exercise {d.get('name', '?')!r}")
    target_reps = str(d["target_reps"])
    default_reps = d.get("default_reps")
    return ExerciseTemplate(
        name=str(d["name"]),
        muscle_group=str(d["muscle_group"]),
        target_sets=int(d["target_sets"]),
        target_reps=target_reps,
        default_reps=(
            int(default_reps)
            if default_reps is not None
            else default_reps_from_target(target_reps, DEFAULT_REPS)
        ),
        is_compound=bool(d.get("is_compound", False)),
        is_bodyweight=bool(d.get("is_bodyweight", False)),
        difficulty_multiplier=float(d.get("difficulty_multiplier", DEFAULT_DIFFICULTY_MULTIPLIER)),
        next_progression=d.get("next_progression"),
        rpe_target=float(d["rpe_target"]) if d.get("rpe_target") is not None else None,
    )


def plan_from_dict(d: dict) -> PlanTemplate:
    """
    Convert a raw YAML mapping to a PlanTemplate.

    Raises:
        ValidationError: If a required field is absent or a value is invalid
    """
    _check_fields(d, _REQUIRED_PLAN_FIELDS, "Plan")

    plan_type = str(d.get("type", "weightlifting"))
    if plan_type not in PLAN_TYPES:
        raise ValidationError(f"Unknown plan type {plan_type!r}; expected one of {PLAN_TYPES}")

    days = []
    for raw_day in d["days"] or []:
        _check_fields(raw_day, _REQUIRED_DAY_FIELDS, f"Day {raw_day.get('name', '?')!r}")
        day_number = int(raw_day["day_number"])
        if day_number <= 0:
            raise ValidationError(f"day_number must be positive, got {day_number}")
        days.append(
            DayTemplate(
                day_number=day_number,
                name=str(raw_day["name"]),
                exercises=[exercise_from_dict(e) for e in raw_day["exercises"] or []],
            )
        )
    if not days:
        raise ValidationError(f"Plan {d['name']!r} has no days")

    total_weeks = d.get("total_weeks")
    days_per_week = d.get("days_per_week")
    return PlanTemplate(
        name=str(d["name"]),
        description=str(d.get("description") or ""),
        plan_type=plan_type,
        total_weeks=int(total_weeks) if total_weeks is not None else None,
        days_per_week=int(days_per_week) if days_per_week is not None else None,
        days=days,
    )


def load_plan_file(path: Path) -> PlanTemplate:
    """
    Read and validate one plan file.

    Raises:
        ValidationError: If the file is not valid YAML or not a valid plan
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ValidationError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"{path}: expected a mapping at the top level")
    return plan_from_dict(data)


def get_bundled_plans_dir() -> Path:
    return Path(str(importlib.resources.files("lifttrack").joinpath("plans")))


def bundled_plan_paths() -> list[Path]:
    return sorted(get_bundled_plans_dir().glob("*.yaml"))


def _get_or_create_exercise(store, template: ExerciseTemplate):
    existing = store.get_exercise_by_name(template.name)
    if existing is not None:
        return existing
    return store.add_exercise(
        template.name,
        template.muscle_group,
        is_compound=template.is_compound,
        is_bodyweight=template.is_bodyweight,
        difficulty_multiplier=template.difficulty_multiplier,
    )


def import_plan(store, template: PlanTemplate) -> Plan | None:
    """
    Write a plan template to the store.

    Returns:
        The new Plan, or None if a plan with the same name already exists
    """
    if store.get_plan_by_name(template.name) is not None:
        logger.info("Plan %r already exists, skipping", template.name)
        return None

    day_numbers = {day.day_number for day in template.days}
    links: list[tuple[ExerciseTemplate, str]] = []

    with store.transaction():
        plan = store.add_plan(
            template.name,
            description=template.description,
            plan_type=template.plan_type,
            total_weeks=template.total_weeks,
            days_per_week=template.days_per_week or len(day_numbers),
        )

        for day in template.days:
            plan_day = store.add_plan_day(plan.id, day.day_number, day.name)
            for order, ex in enumerate(day.exercises):
                exercise = _get_or_create_exercise(store, ex)
                store.add_plan_day_exercise(
                    plan_day.id,
                    exercise.id,
                    order,
                    ex.target_sets,
                    ex.target_reps,
                    default_reps=ex.default_reps,
                    rpe_target=ex.rpe_target,
                )
                if ex.next_progression:
                    links.append((ex, ex.next_progression))

        for ex, next_name in links:
            source = store.get_exercise_by_name(ex.name)
            target = store.get_exercise_by_name(next_name)
            if target is None:
                target = store.add_exercise(
                    next_name,
                    source.muscle_group,
                    is_compound=source.is_compound,
                    is_bodyweight=source.is_bodyweight,
                )
                logger.debug("Created progression exercise %r", next_name)
            store.set_next_progression(source.id, target.id)

    logger.info("Imported plan %r (%d days)", plan.name, len(template.days))
    return plan


def import_bundled_plans(store) -> list[Plan]:
    """Import every bundled template not yet in the store."""
    imported = []
    for path in bundled_plan_paths():
        plan = import_plan(store, load_plan_file(path))
        if plan is not None:
            imported.append(plan)
    return imported
