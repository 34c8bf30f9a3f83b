"""SQLite schema for the training store."""

TABLE_DEFINITIONS: dict[str, str] = {
    "plans": """CREATE TABLE IF NOT EXISTS plans (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            plan_type TEXT NOT NULL DEFAULT 'weightlifting',
            total_weeks INTEGER,
            days_per_week INTEGER NOT NULL DEFAULT 3
        );""",
    "users": """CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            current_plan_id INTEGER REFERENCES plans(id) ON DELETE SET NULL,
            plan_start_date TEXT,
            weight_unit TEXT NOT NULL DEFAULT 'kg',
            track_later_enabled INTEGER NOT NULL DEFAULT 0,
            default_rest_seconds INTEGER NOT NULL DEFAULT 90
        );""",
    "plan_days": """CREATE TABLE IF NOT EXISTS plan_days (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            plan_id INTEGER NOT NULL REFERENCES plans(id) ON DELETE CASCADE,
            day_number INTEGER NOT NULL,
            name TEXT NOT NULL,
            week_variant INTEGER NOT NULL DEFAULT 1
        );""",
    "exercises": """CREATE TABLE IF NOT EXISTS exercises (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            muscle_group TEXT NOT NULL,
            is_compound INTEGER NOT NULL DEFAULT 0,
            is_bodyweight INTEGER NOT NULL DEFAULT 0,
            difficulty_multiplier REAL NOT NULL DEFAULT 1.0,
            next_progression_id INTEGER REFERENCES exercises(id) ON DELETE SET NULL
        );""",
    "plan_day_exercises": """CREATE TABLE IF NOT EXISTS plan_day_exercises (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            plan_day_id INTEGER NOT NULL REFERENCES plan_days(id) ON DELETE CASCADE,
            exercise_id INTEGER NOT NULL REFERENCES exercises(id) ON DELETE CASCADE,
            sort_order INTEGER NOT NULL,
            target_sets INTEGER NOT NULL,
            target_reps TEXT NOT NULL,
            default_reps INTEGER NOT NULL DEFAULT 8,
            rpe_target REAL
        );""",
    "sessions": """CREATE TABLE IF NOT EXISTS sessions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            plan_day_id INTEGER NOT NULL REFERENCES plan_days(id),
            started_at TEXT NOT NULL,
            ended_at TEXT,
            week_number INTEGER NOT NULL,
            day_in_week INTEGER NOT NULL,
            notes TEXT
        );""",
    "session_sets": """CREATE TABLE IF NOT EXISTS session_sets (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id INTEGER NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
            exercise_id INTEGER NOT NULL REFERENCES exercises(id),
            set_number INTEGER NOT NULL,
            weight REAL NOT NULL,
            reps INTEGER NOT NULL,
            rpe REAL,
            is_warmup INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );""",
    "exercise_completions": """CREATE TABLE IF NOT EXISTS exercise_completions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id INTEGER NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
            exercise_id INTEGER NOT NULL REFERENCES exercises(id),
            created_at TEXT NOT NULL,
            UNIQUE (session_id, exercise_id)
        );""",
    "muscle_group_xp": """CREATE TABLE IF NOT EXISTS muscle_group_xp (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            muscle_group TEXT NOT NULL,
            total_xp INTEGER NOT NULL DEFAULT 0,
            current_level INTEGER NOT NULL DEFAULT 1,
            updated_at TEXT NOT NULL,
            UNIQUE (user_id, muscle_group)
        );""",
    "xp_transactions": """CREATE TABLE IF NOT EXISTS xp_transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            session_id INTEGER NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
            muscle_group TEXT NOT NULL,
            base_xp INTEGER NOT NULL,
            progression_bonus INTEGER NOT NULL DEFAULT 0,
            total_xp INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            UNIQUE (session_id, muscle_group)
        );""",
}

INDEX_DEFINITIONS: tuple[str, ...] = (
    "CREATE INDEX IF NOT EXISTS idx_sessions_user_started ON sessions (user_id, started_at)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_user_ended ON sessions (user_id, ended_at)",
    "CREATE INDEX IF NOT EXISTS idx_sets_session ON session_sets (session_id)",
    "CREATE INDEX IF NOT EXISTS idx_sets_exercise ON session_sets (exercise_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_plan_days_plan ON plan_days (plan_id, day_number)",
    "CREATE INDEX IF NOT EXISTS idx_xp_tx_user ON xp_transactions (user_id, created_at)",
)
