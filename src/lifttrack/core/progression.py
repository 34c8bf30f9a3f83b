"""
XP processing for completed sessions.

Turns the working sets of one session into one XpTransaction per muscle
group and adds each total to the user's cumulative MuscleGroupXp.  The
whole pass runs in a single store transaction: either every transaction
row and cumulative update lands, or none does.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .errors import NotFoundError
from .leveling import level_for_xp
from .models import WorkingSet, XpTransaction
from .xp import SetPerformance, SetVolume, base_xp, progression_bonus

logger = logging.getLogger(__name__)


@dataclass
class MuscleGroupTally:
    """Running XP totals for one muscle group within a session."""

    muscle_group: str
    base_xp: int = 0
    progression_bonus: int = 0
    exercise_ids: list[int] = field(default_factory=list)

    @property
    def total_xp(self) -> int:
        return self.base_xp + self.progression_bonus


def tally_session_xp(
    working_sets: list[WorkingSet],
    previous_for: dict[int, SetPerformance | None],
) -> dict[str, MuscleGroupTally]:
    """
    Group working sets by muscle group and sum their XP.

    Every set contributes its base XP.  The progression bonus is granted
    once per exercise, computed from the first set of that exercise in
    logging order against its previous performance.

    Args:
        working_sets: Non-warmup sets of the session in logging order
        previous_for: Previous performance per exercise id (None if the
            exercise was never done in another completed session)

    Returns:
        Tallies keyed by muscle group, in first-seen order
    """
    tallies: dict[str, MuscleGroupTally] = {}

    for working in working_sets:
        group = working.exercise.muscle_group
        tally = tallies.setdefault(group, MuscleGroupTally(muscle_group=group))

        base = base_xp(SetVolume.from_working_set(working))
        tally.base_xp += base

        exercise_id = working.exercise.id
        if exercise_id in tally.exercise_ids:
            continue
        tally.exercise_ids.append(exercise_id)
        tally.progression_bonus += progression_bonus(
            base,
            SetPerformance(weight=working.set.weight, reps=working.set.reps),
            previous_for.get(exercise_id),
        )

    return tallies


def process_session_xp(store, session_id: int, now: datetime) -> list[XpTransaction]:
    """
    Grant XP for a completed session.

    Must only be called once per session, on the in-progress → completed
    transition.  A session without working sets is a no-op.

    Args:
        store: TrainingStore
        session_id: The session that just ended
        now: Timestamp recorded on the transactions

    Returns:
        The XpTransaction rows written, one per muscle group with XP

    Raises:
        NotFoundError: If the session does not exist
    """
    session = store.get_session(session_id)
    if session is None:
        raise NotFoundError(f"Session {session_id} not found")

    working_sets = store.working_sets(session_id)
    if not working_sets:
        logger.debug("Session %s has no working sets, no XP granted", session_id)
        return []

    previous_for: dict[int, SetPerformance | None] = {}
    for working in working_sets:
        exercise_id = working.exercise.id
        if exercise_id in previous_for:
            continue
        previous = store.previous_working_set(session.user_id, exercise_id, session_id)
        previous_for[exercise_id] = (
            SetPerformance(weight=previous.weight, reps=previous.reps) if previous else None
        )

    tallies = tally_session_xp(working_sets, previous_for)

    transactions: list[XpTransaction] = []
    with store.transaction():
        for tally in tallies.values():
            if tally.total_xp <= 0:
                continue
            tx = store.add_xp_transaction(
                user_id=session.user_id,
                session_id=session_id,
                muscle_group=tally.muscle_group,
                base_xp=tally.base_xp,
                progression_bonus=tally.progression_bonus,
                created_at=now,
            )
            new_total = store.increment_muscle_group_xp(
                session.user_id, tally.muscle_group, tally.total_xp, now
            )
            store.set_muscle_group_level(session.user_id, tally.muscle_group, level_for_xp(new_total))
            transactions.append(tx)

    for tx in transactions:
        logger.info(
            "Session %s: +%d XP %s (base %d, bonus %d)",
            session_id,
            tx.total_xp,
            tx.muscle_group,
            tx.base_xp,
            tx.progression_bonus,
        )
    return transactions
