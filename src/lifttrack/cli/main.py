"""
CLI entry point using Typer.

Provides commands for workout tracking:
- init: Create the database, first user and bundled plans
- status: Show what to do today
- start / log-set / toggle-complete / end: Run a workout
- history / show-session: Review past sessions
- consistency / levels / progress: Track adherence and XP
"""

from typing import Annotated

import typer

from . import commands  # noqa: F401  (registers commands on the app)
from .app import DbPathOption, JsonOption, UserOption, app, setup_logging
from .commands.analysis import show_status


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    Workout tracker. Run without a command to see today's status.
    """
    setup_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return

    show_status(db_path, user_id, json_out)


if __name__ == "__main__":
    app()
