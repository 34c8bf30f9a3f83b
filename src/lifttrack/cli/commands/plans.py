"""Setup and plan commands: init, list-plans, import-plan, select-plan."""

import json
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.errors import LifttrackError
from ...core.users import create_user, select_plan as assign_plan
from ...io.plan_loader import import_bundled_plans, import_plan as import_template, load_plan_file
from .. import views
from ..app import DbPathOption, JsonOption, UserOption, app, get_store, open_store


@app.command()
def init(
    db_path: DbPathOption = None,
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Name of the first user (default: Lifter)"),
    ] = None,
    weight_unit: Annotated[
        str,
        typer.Option("--unit", help="Weight unit: kg | lbs"),
    ] = "kg",
    with_plans: Annotated[
        bool,
        typer.Option("--plans/--no-plans", help="Import the bundled plan templates"),
    ] = True,
) -> None:
    """
    Create the database, the first user and the bundled plans.

    Safe to re-run: existing users and plans are kept.
    """
    store = get_store(db_path)
    store.init()

    try:
        if not store.list_users():
            user = create_user(store, name or "Lifter", weight_unit=weight_unit)
            views.print_success(f"Created user #{user.id}: {user.name}")
        imported = import_bundled_plans(store) if with_plans else []
    except LifttrackError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    for plan in imported:
        views.print_info(f"Imported plan #{plan.id}: {plan.name}")
    views.print_success(f"Database ready at {store.db_path}")


@app.command("list-plans")
def list_plans(
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
    json_out: JsonOption = False,
) -> None:
    """
    List available training plans (* marks the active one).
    """
    store = open_store(db_path)
    plans = store.list_plans()
    user = store.get_user(user_id)
    current = user.current_plan_id if user else None

    if json_out:
        print(json.dumps([dict(asdict(p), active=p.id == current) for p in plans], indent=2))
        return

    views.print_plans(plans, current)


@app.command("import-plan")
def import_plan(
    path: Annotated[Path, typer.Argument(help="Plan YAML file")],
    db_path: DbPathOption = None,
) -> None:
    """
    Import a plan template from a YAML file.
    """
    store = open_store(db_path)
    try:
        plan = import_template(store, load_plan_file(path))
    except (LifttrackError, OSError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if plan is None:
        views.print_warning("A plan with this name already exists; nothing imported.")
        return
    views.print_success(f"Imported plan #{plan.id}: {plan.name}")


@app.command("select-plan")
def select_plan(
    plan_id: Annotated[int, typer.Argument(help="Plan ID (see list-plans)")],
    db_path: DbPathOption = None,
    user_id: UserOption = 1,
) -> None:
    """
    Make a plan active, starting today.
    """
    store = open_store(db_path)
    try:
        user = assign_plan(store, user_id, plan_id, date.today())
    except LifttrackError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    plan = store.get_plan(plan_id)
    views.print_success(f"Active plan: {plan.name} (from {user.plan_start_date})")
