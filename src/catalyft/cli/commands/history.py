"""History commands: history, show, exercises."""

import json
from typing import Annotated

import typer

from ...core.exercises import EXERCISE_CATALOG
from ...core.metrics import session_summary
from ...io.serializers import ValidationError, exercise_to_dict, session_to_dict
from .. import views
from ..app import JsonOption, StoreDirOption, app, get_store


@app.command()
def history(
    store_dir: StoreDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """List finished workouts, oldest first."""
    store = get_store(store_dir)
    try:
        sessions = store.load_history()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        out = []
        for s in sessions:
            d = session_to_dict(s)
            d["summary"] = session_summary(s)
            out.append(d)
        print(json.dumps(out, indent=2))
        return

    views.print_history(sessions)
    active = store.list_active()
    if active:
        views.print_warning(
            f"{len(active)} unfinished session(s): {', '.join(active)}. "
            "Continue with 'catalyft live --resume ID'."
        )


@app.command()
def show(
    session_id: Annotated[str, typer.Argument(help="Session id (a unique prefix is enough)")],
    store_dir: StoreDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show every set of one finished workout."""
    store = get_store(store_dir)
    try:
        session = store.get_session(session_id)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if session is None:
        views.print_error(f"No finished session '{session_id}'")
        raise typer.Exit(1)

    if json_out:
        d = session_to_dict(session)
        d["summary"] = session_summary(session)
        print(json.dumps(d, indent=2))
        return

    views.print_session_detail(session)


@app.command()
def exercises(json_out: JsonOption = False) -> None:
    """List the exercise catalog."""
    catalog = sorted(EXERCISE_CATALOG.values(), key=lambda e: e.exercise_id)
    if json_out:
        print(json.dumps([exercise_to_dict(e) for e in catalog], indent=2))
        return
    views.print_catalog(catalog)
