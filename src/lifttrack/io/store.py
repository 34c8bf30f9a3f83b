"""
SQLite-backed storage for plans, sessions, sets and XP.

Handles reading, writing and aggregating training data.  The engine in
lifttrack.core only talks to the database through this class.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path

from ..core.engine.config_loader import load_settings
from ..core.models import (
    Exercise,
    ExerciseCompletion,
    MuscleGroupXp,
    Plan,
    PlanDay,
    PlannedExercise,
    ProgressPoint,
    Session,
    SessionSet,
    User,
    WorkingSet,
    XpTransaction,
)
from .schema import INDEX_DEFINITIONS, TABLE_DEFINITIONS
from .serializers import (
    format_timestamp,
    parse_timestamp,
    row_to_completion,
    row_to_exercise,
    row_to_muscle_group_xp,
    row_to_plan,
    row_to_plan_day,
    row_to_plan_day_exercise,
    row_to_session,
    row_to_set,
    row_to_user,
    row_to_xp_transaction,
)

logger = logging.getLogger(__name__)

_EXERCISE_COLUMNS = (
    "e.id AS ex_id, e.name AS ex_name, e.muscle_group AS ex_muscle_group, "
    "e.is_compound AS ex_is_compound, e.is_bodyweight AS ex_is_bodyweight, "
    "e.difficulty_multiplier AS ex_difficulty_multiplier, "
    "e.next_progression_id AS ex_next_progression_id"
)


class TrainingStore:
    """
    Manages the training database.

    One connection per store.  Writes outside ``transaction()`` commit
    immediately; writes inside it commit or roll back together.
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite file, or ":memory:"
        """
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._tx_depth = 0

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
        return self._conn

    def exists(self) -> bool:
        """Check if the database file exists."""
        if self.db_path == ":memory:":
            return self._conn is not None
        return Path(self.db_path).exists()

    def init(self) -> None:
        """
        Create the database and schema if missing.

        Creates parent directories if needed.
        """
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with self.transaction():
            for ddl in TABLE_DEFINITIONS.values():
                self.conn.execute(ddl)
            for ddl in INDEX_DEFINITIONS:
                self.conn.execute(ddl)
        logger.debug("Initialized schema at %s", self.db_path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "TrainingStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run a block as one atomic unit.

        Nested calls join the outermost transaction.
        """
        if self._tx_depth > 0:
            self._tx_depth += 1
            try:
                yield self.conn
            finally:
                self._tx_depth -= 1
            return

        self.conn.execute("BEGIN IMMEDIATE")
        self._tx_depth = 1
        try:
            yield self.conn
        except BaseException:
            self.conn.execute("ROLLBACK")
            raise
        else:
            self.conn.execute("COMMIT")
        finally:
            self._tx_depth = 0

    def _one(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        return self.conn.execute(sql, params).fetchone()

    def _all(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        return self.conn.execute(sql, params).fetchall()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def add_user(
        self,
        name: str,
        weight_unit: str = "kg",
        track_later_enabled: bool = False,
        default_rest_seconds: int = 90,
    ) -> User:
        cur = self.conn.execute(
            "INSERT INTO users (name, weight_unit, track_later_enabled, default_rest_seconds) "
            "VALUES (?, ?, ?, ?)",
            (name, weight_unit, int(track_later_enabled), default_rest_seconds),
        )
        return self.get_user(cur.lastrowid)  # type: ignore[return-value]

    def get_user(self, user_id: int) -> User | None:
        row = self._one("SELECT * FROM users WHERE id = ?", (user_id,))
        return row_to_user(row) if row else None

    def list_users(self) -> list[User]:
        return [row_to_user(r) for r in self._all("SELECT * FROM users ORDER BY id")]

    def set_user_plan(self, user_id: int, plan_id: int | None, start_date: date | None) -> None:
        """Assign (or clear) the user's active plan."""
        self.conn.execute(
            "UPDATE users SET current_plan_id = ?, plan_start_date = ? WHERE id = ?",
            (plan_id, start_date.isoformat() if start_date else None, user_id),
        )

    # ------------------------------------------------------------------
    # Plans and exercises
    # ------------------------------------------------------------------

    def add_plan(
        self,
        name: str,
        description: str = "",
        plan_type: str = "weightlifting",
        total_weeks: int | None = None,
        days_per_week: int = 3,
    ) -> Plan:
        cur = self.conn.execute(
            "INSERT INTO plans (name, description, plan_type, total_weeks, days_per_week) "
            "VALUES (?, ?, ?, ?, ?)",
            (name, description, plan_type, total_weeks, days_per_week),
        )
        return self.get_plan(cur.lastrowid)  # type: ignore[return-value]

    def get_plan(self, plan_id: int) -> Plan | None:
        row = self._one("SELECT * FROM plans WHERE id = ?", (plan_id,))
        return row_to_plan(row) if row else None

    def get_plan_by_name(self, name: str) -> Plan | None:
        row = self._one("SELECT * FROM plans WHERE name = ?", (name,))
        return row_to_plan(row) if row else None

    def list_plans(self) -> list[Plan]:
        return [row_to_plan(r) for r in self._all("SELECT * FROM plans ORDER BY name")]

    def add_plan_day(self, plan_id: int, day_number: int, name: str, week_variant: int = 1) -> PlanDay:
        cur = self.conn.execute(
            "INSERT INTO plan_days (plan_id, day_number, name, week_variant) VALUES (?, ?, ?, ?)",
            (plan_id, day_number, name, week_variant),
        )
        return self.get_plan_day(cur.lastrowid)  # type: ignore[return-value]

    def get_plan_day(self, plan_day_id: int) -> PlanDay | None:
        row = self._one("SELECT * FROM plan_days WHERE id = ?", (plan_day_id,))
        return row_to_plan_day(row) if row else None

    def find_plan_day(self, plan_id: int, day_number: int) -> PlanDay | None:
        """First configured plan day with the given number, or None."""
        row = self._one(
            "SELECT * FROM plan_days WHERE plan_id = ? AND day_number = ? "
            "ORDER BY week_variant, id LIMIT 1",
            (plan_id, day_number),
        )
        return row_to_plan_day(row) if row else None

    def list_plan_days(self, plan_id: int) -> list[PlanDay]:
        rows = self._all(
            "SELECT * FROM plan_days WHERE plan_id = ? ORDER BY day_number, week_variant, id",
            (plan_id,),
        )
        return [row_to_plan_day(r) for r in rows]

    def count_plan_day_numbers(self, plan_id: int) -> int:
        """Number of distinct day numbers configured for a plan."""
        row = self._one(
            "SELECT COUNT(DISTINCT day_number) AS n FROM plan_days WHERE plan_id = ?",
            (plan_id,),
        )
        return row["n"] if row else 0

    def add_exercise(
        self,
        name: str,
        muscle_group: str,
        is_compound: bool = False,
        is_bodyweight: bool = False,
        difficulty_multiplier: float = 1.0,
    ) -> Exercise:
        cur = self.conn.execute(
            "INSERT INTO exercises (name, muscle_group, is_compound, is_bodyweight, difficulty_multiplier) "
            "VALUES (?, ?, ?, ?, ?)",
            (name, muscle_group, int(is_compound), int(is_bodyweight), difficulty_multiplier),
        )
        return self.get_exercise(cur.lastrowid)  # type: ignore[return-value]

    def get_exercise(self, exercise_id: int) -> Exercise | None:
        row = self._one("SELECT * FROM exercises WHERE id = ?", (exercise_id,))
        return row_to_exercise(row) if row else None

    def get_exercise_by_name(self, name: str) -> Exercise | None:
        row = self._one("SELECT * FROM exercises WHERE name = ?", (name,))
        return row_to_exercise(row) if row else None

    def set_next_progression(self, exercise_id: int, next_exercise_id: int | None) -> None:
        self.conn.execute(
            "UPDATE exercises SET next_progression_id = ? WHERE id = ?",
            (next_exercise_id, exercise_id),
        )

    def add_plan_day_exercise(
        self,
        plan_day_id: int,
        exercise_id: int,
        order: int,
        target_sets: int,
        target_reps: str,
        default_reps: int = 8,
        rpe_target: float | None = None,
    ) -> None:
        self.conn.execute(
            "INSERT INTO plan_day_exercises "
            "(plan_day_id, exercise_id, sort_order, target_sets, target_reps, default_reps, rpe_target) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (plan_day_id, exercise_id, order, target_sets, target_reps, default_reps, rpe_target),
        )

    def planned_exercises(self, plan_day_id: int) -> list[PlannedExercise]:
        """Exercises of a plan day in prescribed order."""
        rows = self._all(
            f"SELECT pde.*, {_EXERCISE_COLUMNS} FROM plan_day_exercises pde "
            "JOIN exercises e ON e.id = pde.exercise_id "
            "WHERE pde.plan_day_id = ? ORDER BY pde.sort_order, pde.id",
            (plan_day_id,),
        )
        return [
            PlannedExercise(prescription=row_to_plan_day_exercise(r), exercise=row_to_exercise(r, "ex_"))
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def add_session(
        self,
        user_id: int,
        plan_day_id: int,
        started_at: datetime,
        week_number: int,
        day_in_week: int,
    ) -> Session:
        cur = self.conn.execute(
            "INSERT INTO sessions (user_id, plan_day_id, started_at, week_number, day_in_week) "
            "VALUES (?, ?, ?, ?, ?)",
            (user_id, plan_day_id, format_timestamp(started_at), week_number, day_in_week),
        )
        return self.get_session(cur.lastrowid)  # type: ignore[return-value]

    def get_session(self, session_id: int) -> Session | None:
        row = self._one("SELECT * FROM sessions WHERE id = ?", (session_id,))
        return row_to_session(row) if row else None

    def sessions_started_between(
        self,
        user_id: int,
        start: datetime,
        end: datetime,
        completed: bool | None = None,
    ) -> list[Session]:
        """
        Sessions whose start falls in [start, end), oldest first.

        Args:
            completed: True for ended sessions only, False for in-progress
                only, None for both
        """
        sql = "SELECT * FROM sessions WHERE user_id = ? AND started_at >= ? AND started_at < ?"
        if completed is True:
            sql += " AND ended_at IS NOT NULL"
        elif completed is False:
            sql += " AND ended_at IS NULL"
        sql += " ORDER BY started_at, id"
        rows = self._all(sql, (user_id, format_timestamp(start), format_timestamp(end)))
        return [row_to_session(r) for r in rows]

    def in_progress_sessions(self, user_id: int) -> list[Session]:
        rows = self._all(
            "SELECT * FROM sessions WHERE user_id = ? AND ended_at IS NULL ORDER BY started_at, id",
            (user_id,),
        )
        return [row_to_session(r) for r in rows]

    def count_completed_sessions(
        self,
        user_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        """Completed sessions, optionally restricted to a [start, end) window on started_at."""
        sql = "SELECT COUNT(*) AS n FROM sessions WHERE user_id = ? AND ended_at IS NOT NULL"
        params: list = [user_id]
        if start is not None:
            sql += " AND started_at >= ?"
            params.append(format_timestamp(start))
        if end is not None:
            sql += " AND started_at < ?"
            params.append(format_timestamp(end))
        row = self._one(sql, tuple(params))
        return row["n"] if row else 0

    def recent_completed_sessions(self, user_id: int, limit: int) -> list[Session]:
        """Most recently started completed sessions, newest first."""
        rows = self._all(
            "SELECT * FROM sessions WHERE user_id = ? AND ended_at IS NOT NULL "
            "ORDER BY started_at DESC, id DESC LIMIT ?",
            (user_id, limit),
        )
        return [row_to_session(r) for r in rows]

    def list_sessions(self, user_id: int, limit: int | None = None) -> list[Session]:
        """All sessions of a user, newest first."""
        sql = "SELECT * FROM sessions WHERE user_id = ? ORDER BY started_at DESC, id DESC"
        params: tuple = (user_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (user_id, limit)
        return [row_to_session(r) for r in self._all(sql, params)]

    def mark_session_ended(self, session_id: int, ended_at: datetime, notes: str | None) -> bool:
        """
        Set ended_at if the session is still in progress.

        Returns:
            True if this call performed the in-progress → completed transition
        """
        cur = self.conn.execute(
            "UPDATE sessions SET ended_at = ?, notes = ? WHERE id = ? AND ended_at IS NULL",
            (format_timestamp(ended_at), notes, session_id),
        )
        return cur.rowcount == 1

    def update_session_times(self, session_id: int, started_at: datetime, ended_at: datetime) -> None:
        self.conn.execute(
            "UPDATE sessions SET started_at = ?, ended_at = ? WHERE id = ?",
            (format_timestamp(started_at), format_timestamp(ended_at), session_id),
        )

    def update_session_notes(self, session_id: int, notes: str | None) -> None:
        self.conn.execute("UPDATE sessions SET notes = ? WHERE id = ?", (notes, session_id))

    def delete_session(self, session_id: int) -> bool:
        cur = self.conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
        return cur.rowcount == 1

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    def add_set(
        self,
        session_id: int,
        exercise_id: int,
        set_number: int,
        weight: float,
        reps: int,
        created_at: datetime,
        is_warmup: bool = False,
        rpe: float | None = None,
    ) -> SessionSet:
        cur = self.conn.execute(
            "INSERT INTO session_sets "
            "(session_id, exercise_id, set_number, weight, reps, rpe, is_warmup, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (session_id, exercise_id, set_number, weight, reps, rpe, int(is_warmup), format_timestamp(created_at)),
        )
        return self.get_set(cur.lastrowid)  # type: ignore[return-value]

    def get_set(self, set_id: int) -> SessionSet | None:
        row = self._one("SELECT * FROM session_sets WHERE id = ?", (set_id,))
        return row_to_set(row) if row else None

    def sets_for_session(self, session_id: int) -> list[SessionSet]:
        """All sets of a session, in logging order."""
        rows = self._all(
            "SELECT * FROM session_sets WHERE session_id = ? ORDER BY created_at, id",
            (session_id,),
        )
        return [row_to_set(r) for r in rows]

    def working_sets(self, session_id: int) -> list[WorkingSet]:
        """Non-warmup sets of a session joined with exercise metadata, in logging order."""
        rows = self._all(
            f"SELECT s.*, {_EXERCISE_COLUMNS} FROM session_sets s "
            "JOIN exercises e ON e.id = s.exercise_id "
            "WHERE s.session_id = ? AND s.is_warmup = 0 "
            "ORDER BY s.created_at, s.id",
            (session_id,),
        )
        return [WorkingSet(set=row_to_set(r), exercise=row_to_exercise(r, "ex_")) for r in rows]

    def working_set_counts(self, session_id: int) -> dict[int, int]:
        """Non-warmup set count per exercise id."""
        rows = self._all(
            "SELECT exercise_id, COUNT(*) AS n FROM session_sets "
            "WHERE session_id = ? AND is_warmup = 0 GROUP BY exercise_id",
            (session_id,),
        )
        return {r["exercise_id"]: r["n"] for r in rows}

    def count_sets(self, session_id: int, include_warmup: bool = False) -> int:
        sql = "SELECT COUNT(*) AS n FROM session_sets WHERE session_id = ?"
        if not include_warmup:
            sql += " AND is_warmup = 0"
        row = self._one(sql, (session_id,))
        return row["n"] if row else 0

    def previous_working_set(
        self,
        user_id: int,
        exercise_id: int,
        exclude_session_id: int,
    ) -> SessionSet | None:
        """
        Most recently logged non-warmup set of an exercise by the user,
        taken from any other completed session.
        """
        row = self._one(
            "SELECT s.* FROM session_sets s JOIN sessions ses ON ses.id = s.session_id "
            "WHERE ses.user_id = ? AND s.exercise_id = ? AND s.is_warmup = 0 "
            "AND ses.ended_at IS NOT NULL AND s.session_id != ? "
            "ORDER BY s.created_at DESC, s.id DESC LIMIT 1",
            (user_id, exercise_id, exclude_session_id),
        )
        return row_to_set(row) if row else None

    def update_set(self, set_id: int, weight: float, reps: int) -> None:
        self.conn.execute(
            "UPDATE session_sets SET weight = ?, reps = ? WHERE id = ?",
            (weight, reps, set_id),
        )

    def delete_set(self, set_id: int) -> bool:
        cur = self.conn.execute("DELETE FROM session_sets WHERE id = ?", (set_id,))
        return cur.rowcount == 1

    def exercise_working_sets(self, user_id: int, exercise_id: int) -> list[tuple[datetime, SessionSet]]:
        """(session start, set) for every non-warmup set of an exercise, oldest first."""
        rows = self._all(
            "SELECT s.*, ses.started_at AS session_started_at FROM session_sets s "
            "JOIN sessions ses ON ses.id = s.session_id "
            "WHERE ses.user_id = ? AND s.exercise_id = ? AND s.is_warmup = 0 "
            "ORDER BY ses.started_at, s.created_at, s.id",
            (user_id, exercise_id),
        )
        return [(parse_timestamp(r["session_started_at"]), row_to_set(r)) for r in rows]  # type: ignore[misc]

    # ------------------------------------------------------------------
    # Completion markers
    # ------------------------------------------------------------------

    def get_completion(self, session_id: int, exercise_id: int) -> ExerciseCompletion | None:
        row = self._one(
            "SELECT * FROM exercise_completions WHERE session_id = ? AND exercise_id = ?",
            (session_id, exercise_id),
        )
        return row_to_completion(row) if row else None

    def add_completion(self, session_id: int, exercise_id: int, created_at: datetime) -> ExerciseCompletion:
        self.conn.execute(
            "INSERT INTO exercise_completions (session_id, exercise_id, created_at) VALUES (?, ?, ?)",
            (session_id, exercise_id, format_timestamp(created_at)),
        )
        return self.get_completion(session_id, exercise_id)  # type: ignore[return-value]

    def delete_completion(self, session_id: int, exercise_id: int) -> bool:
        cur = self.conn.execute(
            "DELETE FROM exercise_completions WHERE session_id = ? AND exercise_id = ?",
            (session_id, exercise_id),
        )
        return cur.rowcount == 1

    def completed_exercise_ids(self, session_id: int) -> set[int]:
        rows = self._all(
            "SELECT exercise_id FROM exercise_completions WHERE session_id = ?",
            (session_id,),
        )
        return {r["exercise_id"] for r in rows}

    # ------------------------------------------------------------------
    # XP
    # ------------------------------------------------------------------

    def add_xp_transaction(
        self,
        user_id: int,
        session_id: int,
        muscle_group: str,
        base_xp: int,
        progression_bonus: int,
        created_at: datetime,
    ) -> XpTransaction:
        cur = self.conn.execute(
            "INSERT INTO xp_transactions "
            "(user_id, session_id, muscle_group, base_xp, progression_bonus, total_xp, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                user_id,
                session_id,
                muscle_group,
                base_xp,
                progression_bonus,
                base_xp + progression_bonus,
                format_timestamp(created_at),
            ),
        )
        row = self._one("SELECT * FROM xp_transactions WHERE id = ?", (cur.lastrowid,))
        return row_to_xp_transaction(row)  # type: ignore[arg-type]

    def increment_muscle_group_xp(
        self,
        user_id: int,
        muscle_group: str,
        amount: int,
        updated_at: datetime,
    ) -> int:
        """
        Atomically add XP to a user's muscle group, creating the row if needed.

        Returns:
            The new cumulative total
        """
        stamp = format_timestamp(updated_at)
        self.conn.execute(
            "INSERT INTO muscle_group_xp (user_id, muscle_group, total_xp, current_level, updated_at) "
            "VALUES (?, ?, ?, 1, ?) "
            "ON CONFLICT (user_id, muscle_group) DO UPDATE SET "
            "total_xp = total_xp + excluded.total_xp, updated_at = excluded.updated_at",
            (user_id, muscle_group, amount, stamp),
        )
        row = self._one(
            "SELECT total_xp FROM muscle_group_xp WHERE user_id = ? AND muscle_group = ?",
            (user_id, muscle_group),
        )
        return row["total_xp"]  # type: ignore[index]

    def set_muscle_group_level(self, user_id: int, muscle_group: str, level: int) -> None:
        self.conn.execute(
            "UPDATE muscle_group_xp SET current_level = ? WHERE user_id = ? AND muscle_group = ?",
            (level, user_id, muscle_group),
        )

    def get_muscle_group_xp(self, user_id: int, muscle_group: str) -> MuscleGroupXp | None:
        row = self._one(
            "SELECT * FROM muscle_group_xp WHERE user_id = ? AND muscle_group = ?",
            (user_id, muscle_group),
        )
        return row_to_muscle_group_xp(row) if row else None

    def list_muscle_group_xp(self, user_id: int) -> list[MuscleGroupXp]:
        rows = self._all("SELECT * FROM muscle_group_xp WHERE user_id = ?", (user_id,))
        return [row_to_muscle_group_xp(r) for r in rows]

    def xp_transactions_for_session(self, session_id: int) -> list[XpTransaction]:
        rows = self._all(
            "SELECT * FROM xp_transactions WHERE session_id = ? ORDER BY id",
            (session_id,),
        )
        return [row_to_xp_transaction(r) for r in rows]

    def xp_by_session(self, user_id: int, limit: int) -> list[ProgressPoint]:
        """Summed XP per session for the most recent ``limit`` sessions, newest first."""
        rows = self._all(
            "SELECT session_id, SUM(base_xp) AS base_xp, SUM(total_xp) AS total_xp, "
            "MIN(created_at) AS created_at FROM xp_transactions "
            "WHERE user_id = ? GROUP BY session_id "
            "ORDER BY MIN(created_at) DESC, session_id DESC LIMIT ?",
            (user_id, limit),
        )
        return [
            ProgressPoint(
                session_id=r["session_id"],
                date=parse_timestamp(r["created_at"]),  # type: ignore[arg-type]
                total_volume=r["base_xp"],
                xp_gained=r["total_xp"],
            )
            for r in rows
        ]


def get_default_db_path() -> Path:
    """
    Resolve the database location.

    Order: LIFTTRACK_DB environment variable, ``database.path`` from the
    settings files, then ~/.lifttrack/lifttrack.db.
    """
    settings = load_settings()
    configured = settings.get("database", {}).get("path")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".lifttrack" / "lifttrack.db"
