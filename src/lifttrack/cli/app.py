"""Shared Typer app object, shared option types, store and logging utilities."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler

from ..core.config import COMPLETION_WINDOW_SESSIONS, WEEKS_PER_MONTH
from ..core.engine.config_loader import load_settings
from ..io.store import TrainingStore, get_default_db_path
from . import views

# Shared options used across commands
DbPathOption = Annotated[
    Optional[Path],
    typer.Option("--db-path", "-p", help="Path to the SQLite database"),
]
UserOption = Annotated[
    int,
    typer.Option("--user", "-u", help="User ID"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="lifttrack",
    help="Workout tracker with XP, muscle-group levels and consistency metrics.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def setup_logging(verbose: bool = False) -> None:
    """Route library logs through Rich on stderr; level from settings unless verbose."""
    level = "DEBUG"
    if not verbose:
        level = str(load_settings().get("logging", {}).get("level") or "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def get_store(db_path: Path | None) -> TrainingStore:
    """
    Get store from path or default location.

    Inside a command the store is closed when the command finishes.
    """
    if db_path is None:
        db_path = get_default_db_path()
    store = TrainingStore(db_path)
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        ctx.call_on_close(store.close)
    return store


def open_store(db_path: Path | None) -> TrainingStore:
    """Get an existing store, exiting with a hint if it was never initialized."""
    store = get_store(db_path)
    if not store.exists():
        views.print_error(f"Database not found: {store.db_path}")
        views.print_info("Run 'init' first to create the database.")
        raise typer.Exit(1)
    return store


def consistency_settings() -> tuple[int, int]:
    """(recent_sessions, weeks_per_month) from the settings files."""
    section = load_settings().get("consistency", {})
    return (
        int(section.get("recent_sessions", COMPLETION_WINDOW_SESSIONS)),
        int(section.get("weeks_per_month", WEEKS_PER_MONTH)),
    )
