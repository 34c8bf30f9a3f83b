"""User creation and plan assignment."""

from datetime import date

from .config import DEFAULT_REST_SECONDS, WEIGHT_UNITS
from .errors import NotFoundError, ValidationError
from .models import User


def create_user(
    store,
    name: str,
    weight_unit: str = "kg",
    track_later_enabled: bool = False,
    default_rest_seconds: int = DEFAULT_REST_SECONDS,
) -> User:
    """
    Register a lifter.

    Raises:
        ValidationError: On an empty name, unknown weight unit or negative rest time
    """
    name = name.strip()
    if not name:
        raise ValidationError("name must not be empty")
    if weight_unit not in WEIGHT_UNITS:
        raise ValidationError(f"weight_unit must be one of {WEIGHT_UNITS}, got {weight_unit!r}")
    if default_rest_seconds < 0:
        raise ValidationError("default_rest_seconds must be non-negative")
    return store.add_user(name, weight_unit, track_later_enabled, default_rest_seconds)


def select_plan(store, user_id: int, plan_id: int, today: date) -> User:
    """
    Make a plan the user's active plan, starting today.

    Raises:
        NotFoundError: If the user or plan does not exist
    """
    if store.get_user(user_id) is None:
        raise NotFoundError(f"User {user_id} not found")
    if store.get_plan(plan_id) is None:
        raise NotFoundError(f"Plan {plan_id} not found")
    store.set_user_plan(user_id, plan_id, today)
    return store.get_user(user_id)
