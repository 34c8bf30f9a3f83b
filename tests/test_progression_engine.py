"""
Store-backed tests for XP processing of completed sessions.

Each scenario builds session history through the store, runs
process_session_xp and checks the transaction rows and cumulative
muscle-group totals.  Expected values are hand-computed in comments.
"""

import sqlite3
from datetime import datetime, timedelta

import pytest

from lifttrack.core.errors import NotFoundError
from lifttrack.core.progression import process_session_xp, tally_session_xp
from lifttrack.core.xp import SetPerformance

MON = datetime(2026, 3, 2, 10, 0)
WED = datetime(2026, 3, 4, 10, 0)
FRI = datetime(2026, 3, 6, 10, 0)


def _process(store, session):
    return process_session_xp(store, session.id, session.ended_at or session.started_at)


class TestSingleSession:

    def test_three_sets_no_history(self, store, active_user, plan, add_session):
        # 3 x floor(100 * 10) = 3000, no previous data → no bonus
        session = add_session(active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 100, 10)] * 3)

        txs = _process(store, session)

        assert len(txs) == 1
        tx = txs[0]
        assert (tx.muscle_group, tx.base_xp, tx.progression_bonus, tx.total_xp) == ("Chest", 3000, 0, 3000)

        mg = store.get_muscle_group_xp(active_user.id, "Chest")
        assert mg.total_xp == 3000
        # 2650 (level 8) <= 3000 < 3550
        assert mg.current_level == 8

    def test_groups_by_muscle(self, store, active_user, plan, add_session):
        # Chest: bench 60x10 = 600 + push-up 10 reps * 1.0 * 10 = 100 → 700
        # Back:  row 80x8 = 640
        session = add_session(
            active_user.id,
            plan.push.id,
            MON,
            sets=[(plan.bench.id, 60, 10), (plan.push_up.id, 0, 10), (plan.row.id, 80, 8)],
        )

        txs = {tx.muscle_group: tx for tx in _process(store, session)}

        assert set(txs) == {"Chest", "Back"}
        assert txs["Chest"].base_xp == 700
        assert txs["Back"].base_xp == 640
        assert store.get_muscle_group_xp(active_user.id, "Back").total_xp == 640

    def test_transactions_are_stored(self, store, active_user, plan, add_session):
        session = add_session(active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 50, 10)])
        _process(store, session)

        stored = store.xp_transactions_for_session(session.id)
        assert [(t.muscle_group, t.total_xp) for t in stored] == [("Chest", 500)]


class TestNoQualifyingSets:

    def test_warmups_only_is_noop(self, store, active_user, plan, add_session):
        session = add_session(active_user.id, plan.push.id, MON)
        store.add_set(session.id, plan.bench.id, 1, 40, 10, MON + timedelta(minutes=1), is_warmup=True)

        assert _process(store, session) == []
        assert store.xp_transactions_for_session(session.id) == []
        assert store.list_muscle_group_xp(active_user.id) == []

    def test_completion_markers_earn_nothing(self, store, active_user, plan, add_session):
        session = add_session(active_user.id, plan.push.id, MON)
        store.add_completion(session.id, plan.bench.id, MON)

        assert _process(store, session) == []
        assert store.list_muscle_group_xp(active_user.id) == []

    def test_missing_session(self, store):
        with pytest.raises(NotFoundError):
            process_session_xp(store, 999, MON)


class TestProgressionBonus:

    def test_heavier_than_last_time(self, store, active_user, plan, add_session):
        # Previous completed session: 90 x 10 → 900 XP
        earlier = add_session(active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 90, 10)])
        _process(store, earlier)

        # Now 3 x 100 x 10: base 3000, bonus floor(1000 * 0.2) = 200 applied once
        session = add_session(active_user.id, plan.push.id, WED, sets=[(plan.bench.id, 100, 10)] * 3)
        tx = _process(store, session)[0]

        assert (tx.base_xp, tx.progression_bonus, tx.total_xp) == (3000, 200, 3200)
        # 900 + 3200 = 4100 → level 9 (3550 <= 4100 < 4600)
        mg = store.get_muscle_group_xp(active_user.id, "Chest")
        assert (mg.total_xp, mg.current_level) == (4100, 9)

    def test_bonus_judged_on_first_set_only(self, store, active_user, plan, add_session):
        add_session(active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 90, 10)])
        # First set repeats last time's 90 x 10; the heavier second set earns nothing extra
        session = add_session(
            active_user.id, plan.push.id, WED, sets=[(plan.bench.id, 90, 10), (plan.bench.id, 100, 10)]
        )

        tx = _process(store, session)[0]
        assert (tx.base_xp, tx.progression_bonus) == (1900, 0)

    def test_one_bonus_per_exercise(self, store, active_user, plan, add_session):
        # Both chest exercises progressed: bench floor(1000*0.2)=200, push-up 12 reps vs 10 → floor(120*0.2)=24
        add_session(active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 90, 10), (plan.push_up.id, 0, 10)])
        session = add_session(
            active_user.id,
            plan.push.id,
            WED,
            sets=[(plan.bench.id, 100, 10), (plan.bench.id, 100, 10), (plan.push_up.id, 0, 12)],
        )

        tx = _process(store, session)[0]
        assert tx.base_xp == 2120
        assert tx.progression_bonus == 224

    def test_in_progress_sessions_are_not_history(self, store, active_user, plan, add_session):
        add_session(active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 90, 10)], ended=False)
        session = add_session(active_user.id, plan.push.id, WED, sets=[(plan.bench.id, 100, 10)])

        assert _process(store, session)[0].progression_bonus == 0

    def test_most_recent_previous_set_wins(self, store, active_user, plan, add_session):
        # Monday 110 x 10, Wednesday 90 x 10; Friday 100 x 10 beats Wednesday
        add_session(active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 110, 10)])
        add_session(active_user.id, plan.push.id, WED, sets=[(plan.bench.id, 90, 10)])
        session = add_session(active_user.id, plan.push.id, FRI, sets=[(plan.bench.id, 100, 10)])

        assert _process(store, session)[0].progression_bonus == 200

    def test_previous_warmups_ignored(self, store, active_user, plan, add_session):
        earlier = add_session(active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 90, 10)])
        store.add_set(earlier.id, plan.bench.id, 2, 120, 3, MON + timedelta(minutes=30), is_warmup=True)
        session = add_session(active_user.id, plan.push.id, WED, sets=[(plan.bench.id, 100, 10)])

        assert _process(store, session)[0].progression_bonus == 200

    def test_other_users_history_ignored(self, store, active_user, plan, add_session):
        other = store.add_user("Sam")
        add_session(other.id, plan.push.id, MON, sets=[(plan.bench.id, 90, 10)])
        session = add_session(active_user.id, plan.push.id, WED, sets=[(plan.bench.id, 100, 10)])

        assert _process(store, session)[0].progression_bonus == 0


class TestAtomicity:

    def test_reprocessing_is_rejected_and_rolled_back(self, store, active_user, plan, add_session):
        session = add_session(
            active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 100, 10), (plan.row.id, 50, 10)]
        )
        _process(store, session)

        with pytest.raises(sqlite3.IntegrityError):
            _process(store, session)

        assert store.get_muscle_group_xp(active_user.id, "Chest").total_xp == 1000
        assert store.get_muscle_group_xp(active_user.id, "Back").total_xp == 500
        assert len(store.xp_transactions_for_session(session.id)) == 2

    def test_cumulative_total_accumulates(self, store, active_user, plan, add_session):
        for day in (MON, WED, FRI):
            session = add_session(active_user.id, plan.pull.id, day, sets=[(plan.row.id, 50, 10)])
            _process(store, session)

        # 50x10 = 500 each; same weight and reps → no bonus; 3 x 500 = 1500 → level 6
        mg = store.get_muscle_group_xp(active_user.id, "Back")
        assert (mg.total_xp, mg.current_level) == (1500, 6)


class TestTally:
    """tally_session_xp works on plain data, without a store."""

    def test_empty(self):
        assert tally_session_xp([], {}) == {}

    def test_previous_lookup_by_exercise(self, store, active_user, plan, add_session):
        session = add_session(active_user.id, plan.push.id, MON, sets=[(plan.bench.id, 100, 10)])
        working = store.working_sets(session.id)

        tallies = tally_session_xp(working, {plan.bench.id: SetPerformance(100, 9)})

        # Same weight, more reps → floor(1000 * 0.2) = 200
        assert tallies["Chest"].total_xp == 1200
        assert tallies["Chest"].exercise_ids == [plan.bench.id]
