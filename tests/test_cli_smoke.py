"""
Minimal smoke tests for the lifttrack CLI.

Tests basic functionality:
- App runs without errors
- Database and first user are created
- A workout can be started, logged and ended
- Status, history and progress views render
"""

import json

import pytest
from typer.testing import CliRunner

from lifttrack.cli.main import app
from lifttrack.io.store import TrainingStore

runner = CliRunner()

# Bundled templates are imported in file-name order
BODYWEIGHT_PLAN_ID = 1
PPL_PLAN_ID = 2


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep the user's own ~/.lifttrack out of the tests."""
    monkeypatch.setenv("LIFTTRACK_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("LIFTTRACK_DB", raising=False)


@pytest.fixture
def db(tmp_path):
    path = tmp_path / "lifttrack.db"
    result = runner.invoke(app, ["init", "--db-path", str(path), "--name", "Alex"])
    assert result.exit_code == 0, result.output
    return str(path)


@pytest.fixture
def active_db(db):
    result = runner.invoke(app, ["select-plan", str(PPL_PLAN_ID), "--db-path", db])
    assert result.exit_code == 0, result.output
    return db


def _json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "lifttrack" in result.output.lower() or "workout" in result.output.lower()

    def test_init_creates_database(self, tmp_path, db):
        assert (tmp_path / "lifttrack.db").exists()

    def test_init_is_rerunnable(self, db):
        result = runner.invoke(app, ["init", "--db-path", db])
        assert result.exit_code == 0
        plans = _json(runner.invoke(app, ["list-plans", "--db-path", db, "--json"]))
        assert len(plans) == 2

    def test_missing_database_hint(self, tmp_path):
        result = runner.invoke(app, ["status", "--db-path", str(tmp_path / "nope.db")])
        assert result.exit_code == 1
        assert "init" in result.output

    def test_list_plans_marks_active(self, active_db):
        plans = _json(runner.invoke(app, ["list-plans", "--db-path", active_db, "--json"]))
        active = [p["name"] for p in plans if p["active"]]
        assert active == ["Push Pull Legs"]

    def test_status_without_plan(self, db):
        data = _json(runner.invoke(app, ["status", "--db-path", db, "--json"]))
        assert data["status"] == "no_plan"

    def test_status_ready(self, active_db):
        data = _json(runner.invoke(app, ["status", "--db-path", active_db, "--json"]))
        assert data["status"] == "ready_to_train"
        assert data["plan_day"] == "Push"
        assert data["day_in_week"] == 1
        assert data["exercises"][0]["name"] == "Bench Press"

    def test_bare_invocation_shows_status(self, active_db):
        result = runner.invoke(app, ["--db-path", active_db])
        assert result.exit_code == 0
        assert "Push" in result.output

    def test_select_unknown_plan(self, db):
        result = runner.invoke(app, ["select-plan", "99", "--db-path", db])
        assert result.exit_code == 1


class TestWorkoutFlow:

    def test_full_session(self, active_db):
        started = _json(runner.invoke(app, ["start", "--db-path", active_db, "--json"]))
        session_id = started["session_id"]

        data = _json(runner.invoke(app, ["status", "--db-path", active_db, "--json"]))
        assert data["status"] == "session_in_progress"
        assert data["session_id"] == session_id

        result = runner.invoke(app, ["log-set", "-e", "Bench Press", "--sets", "100x10x3", "--db-path", active_db])
        assert result.exit_code == 0, result.output
        result = runner.invoke(app, ["log-set", "-e", "Bench Press", "--sets", "40x10", "--warmup", "--db-path", active_db])
        assert result.exit_code == 0, result.output
        result = runner.invoke(app, ["toggle-complete", "-e", "Triceps Pushdown", "--db-path", active_db])
        assert result.exit_code == 0, result.output

        ended = _json(runner.invoke(app, ["end", "--notes", "good", "--db-path", active_db, "--json"]))
        assert ended["session_id"] == session_id
        assert not ended["xp_failed"]
        assert ended["xp"] == [
            {"muscle_group": "Chest", "base_xp": 3000, "progression_bonus": 0, "total_xp": 3000}
        ]

        data = _json(runner.invoke(app, ["status", "--db-path", active_db, "--json"]))
        assert data["status"] == "trained_today"
        assert data["total_sets"] == 3

        levels = _json(runner.invoke(app, ["levels", "--db-path", active_db, "--json"]))
        assert levels["muscle_groups"][0]["muscle_group"] == "Chest"
        assert levels["muscle_groups"][0]["level"] == 8

        history = _json(runner.invoke(app, ["history", "--db-path", active_db, "--json"]))
        assert history[0]["id"] == session_id
        assert history[0]["xp"] == 3000
        assert history[0]["notes"] == "good"

        progress = _json(runner.invoke(app, ["progress", "--db-path", active_db, "--json"]))
        assert [p["xp_gained"] for p in progress] == [3000]

        consistency = _json(runner.invoke(app, ["consistency", "--db-path", active_db, "--json"]))
        assert consistency["has_enough_data"] is True

    def test_second_start_refused(self, active_db):
        runner.invoke(app, ["start", "--db-path", active_db])
        result = runner.invoke(app, ["start", "--db-path", active_db])
        assert result.exit_code == 1

    def test_log_without_session(self, active_db):
        result = runner.invoke(app, ["log-set", "-e", "Bench Press", "--sets", "100x10", "--db-path", active_db])
        assert result.exit_code == 1
        assert "No session in progress" in result.output

    def test_bad_sets_string(self, active_db):
        runner.invoke(app, ["start", "--db-path", active_db])
        result = runner.invoke(app, ["log-set", "-e", "Bench Press", "--sets", "heavy", "--db-path", active_db])
        assert result.exit_code == 1

    def test_show_and_delete_session(self, active_db):
        session_id = _json(runner.invoke(app, ["start", "--db-path", active_db, "--json"]))["session_id"]
        runner.invoke(app, ["log-set", "-e", "Bench Press", "--sets", "60x10", "--db-path", active_db])
        runner.invoke(app, ["end", "--db-path", active_db])

        result = runner.invoke(app, ["show-session", str(session_id), "--db-path", active_db])
        assert result.exit_code == 0
        assert "Bench Press" in result.output

        result = runner.invoke(app, ["delete-session", str(session_id), "--force", "--db-path", active_db])
        assert result.exit_code == 0
        history = _json(runner.invoke(app, ["history", "--db-path", active_db, "--json"]))
        assert history == []

    def test_exercise_progress(self, active_db):
        runner.invoke(app, ["start", "--db-path", active_db])
        runner.invoke(app, ["log-set", "-e", "Bench Press", "--sets", "60x10, 65x8", "--db-path", active_db])
        runner.invoke(app, ["end", "--db-path", active_db])

        data = _json(runner.invoke(app, ["exercise-progress", "Bench Press", "--db-path", active_db, "--json"]))
        assert data["max_weight"] == 65
        assert data["total_sets"] == 2


class TestStoreLifecycle:

    def test_store_closes_as_context_manager(self, tmp_path):
        with TrainingStore(tmp_path / "ctx.db") as store:
            store.init()
            assert store.list_users() == []
        assert store._conn is None

    def test_commands_close_their_store(self, active_db, monkeypatch):
        closed = []
        original_close = TrainingStore.close

        def tracking_close(self):
            closed.append(self.db_path)
            original_close(self)

        monkeypatch.setattr(TrainingStore, "close", tracking_close)

        result = runner.invoke(app, ["status", "--db-path", active_db])

        assert result.exit_code == 0, result.output
        assert [str(p) for p in closed] == [active_db]
