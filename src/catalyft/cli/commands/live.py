"""Live session commands: live, preview, and the interactive command loop."""

import asyncio
import dataclasses
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.engine import SessionSettings, WorkoutEngine, load_session_settings
from ...core.exercises import get_exercise
from ...core.errors import PersistenceError, SessionError
from ...core.metrics import session_summary
from ...core.models import Performance, WorkoutSession
from ...core.scheduling import AsyncioScheduler
from ...io.plan_loader import load_plan
from ...io.serializers import ValidationError
from ...io.session_store import SessionStore
from .. import views
from ..app import StoreDirOption, app, get_store


def _read_command() -> str:
    return views.console.input("[bold]>[/bold] ")


def _parse_performance(args: list[str], engine: WorkoutEngine) -> Performance:
    """
    Build a Performance from ``done`` arguments.

    No arguments means "as prescribed".  Otherwise: weight reps [rpe].
    """
    target = engine.current_set
    if not args:
        return Performance(weight=target.weight, reps=target.reps)
    if len(args) < 2 or len(args) > 3:
        raise ValueError("Use: done WEIGHT REPS [RPE], e.g. done 60 8 7")
    weight = float(args[0])
    reps = int(args[1])
    rpe = int(args[2]) if len(args) == 3 else None
    return Performance(weight=weight, reps=reps, effort_rating=rpe)


async def _let_auto_advance_run(delay: float) -> None:
    # The advance timer was armed before this sleep, so it fires first
    await asyncio.sleep(max(delay, 0.001))


async def _handle(engine: WorkoutEngine, raw: str) -> bool:
    """
    Run one command line against the engine.

    Returns:
        False when the session should end, True otherwise
    """
    parts = raw.strip().split()
    if not parts:
        return True
    cmd, args = parts[0].lower(), parts[1:]

    if cmd in ("end", "quit", "q"):
        return False

    if cmd in ("done", "d"):
        perf = _parse_performance(args, engine)
        progress = engine.current_exercise
        set_number = engine.current_set.set_number
        result = engine.complete_set(
            progress.exercise.exercise_id, engine.session.current_set_index, perf
        )
        views.print_success(
            f"Set {set_number} of {progress.exercise.name}: {perf.reps} reps @ {perf.weight:g} kg"
        )
        if result.is_final_set:
            views.print_info("That was the last set. Type 'end' to finish.")
        elif result.rest_started:
            views.print_info(f"Rest {views.format_duration(engine.rest_timer.remaining_seconds)}")
        await _let_auto_advance_run(engine.settings.auto_advance_delay_seconds)
    elif cmd in ("next", "n"):
        engine.move_to_next_set()
    elif cmd in ("prev", "p"):
        engine.move_to_previous_set()
    elif cmd == "add":
        if not args or len(args) > 2:
            raise ValueError("Use: add EXERCISE_ID [SETS], e.g. add plank 2")
        progress = engine.add_exercise(
            get_exercise(args[0]), int(args[1]) if len(args) == 2 else None
        )
        views.print_success(f"Added {progress.exercise.name} ({len(progress.sets)} sets)")
    elif cmd == "rest":
        engine.start_rest_timer(int(args[0]) if args else None)
    elif cmd == "skip":
        engine.skip_rest()
    elif cmd in ("extend", "+"):
        engine.extend_rest(int(args[0]) if args else None)
    elif cmd == "rest-pause":
        engine.pause_rest()
    elif cmd == "rest-resume":
        engine.resume_rest()
    elif cmd == "pause":
        engine.pause_workout()
    elif cmd == "resume":
        engine.resume_workout()
    elif cmd in ("status", "s"):
        pass
    elif cmd in ("help", "h", "?"):
        views.print_live_help()
        return True
    else:
        views.print_error(f"Unknown command: {cmd} (type 'help')")
        return True

    views.print_live_status(engine)
    return True


async def run_live_session(
    session: WorkoutSession,
    store: SessionStore,
    settings: SessionSettings,
) -> WorkoutSession:
    """
    Drive ``session`` interactively until the user ends it.

    Engine operations, ticks and persistence callbacks all run on this
    coroutine's event loop; only the blocking ``input()`` and the store
    writes run in worker threads.
    """
    loop = asyncio.get_running_loop()
    scheduler = AsyncioScheduler(loop)

    def _persistence_failed(err: PersistenceError) -> None:
        views.print_error(f"{err} (your sets are kept in memory)")

    engine = WorkoutEngine(
        session,
        scheduler,
        store,
        settings,
        on_rest_complete=lambda: views.print_success("Rest complete. Next set!"),
        on_persistence_failure=_persistence_failed,
        on_sequence_complete=lambda: views.print_info("No more sets. Type 'end' to finish."),
    )
    engine.start()
    views.print_live_status(engine)
    views.print_info("Type 'help' for commands.")

    try:
        while True:
            try:
                raw = await loop.run_in_executor(None, _read_command)
            except EOFError:
                raw = "end"
            try:
                if not await _handle(engine, raw):
                    break
            except (ValueError, SessionError) as e:
                views.print_error(str(e))
    finally:
        if not engine.is_ended:
            ending = engine.end_workout()
            await asyncio.wait([ending])
        scheduler.shutdown()

    return session


@app.command()
def live(
    plan: Annotated[
        Optional[Path],
        typer.Argument(help="Workout plan YAML file"),
    ] = None,
    resume: Annotated[
        Optional[str],
        typer.Option("--resume", "-r", help="Continue an unfinished session by id"),
    ] = None,
    rest_seconds: Annotated[
        Optional[int],
        typer.Option("--rest-seconds", help="Default rest after each set"),
    ] = None,
    advance_delay: Annotated[
        Optional[float],
        typer.Option("--advance-delay", help="Seconds before the cursor moves to the next set"),
    ] = None,
    store_dir: StoreDirOption = None,
) -> None:
    """
    Run a live workout in the terminal.

      catalyft live push_day.yaml

    Log each set with 'done WEIGHT REPS [RPE]'; the rest timer starts on its
    own.  Sets are saved as you go and the workout is added to the history
    when you type 'end'.
    """
    store = get_store(store_dir)

    try:
        settings = load_session_settings()
        overrides = {}
        if rest_seconds is not None:
            overrides["default_rest_seconds"] = rest_seconds
        if advance_delay is not None:
            overrides["auto_advance_delay_seconds"] = advance_delay
        if overrides:
            settings = dataclasses.replace(settings, **overrides)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if resume is not None:
        try:
            session = store.load_active(resume)
        except (FileNotFoundError, ValidationError, ValueError) as e:
            views.print_error(str(e))
            active = store.list_active()
            if active:
                views.print_info("Unfinished sessions: " + ", ".join(active))
            raise typer.Exit(1)
    elif plan is not None:
        try:
            session = load_plan(plan, default_sets=settings.default_sets_per_exercise)
        except (FileNotFoundError, ValidationError) as e:
            views.print_error(str(e))
            raise typer.Exit(1)
    else:
        views.print_error("Give a plan file or --resume SESSION_ID")
        raise typer.Exit(1)

    store.init()
    finished = asyncio.run(run_live_session(session, store, settings))

    views.print_summary(session_summary(finished))
    views.print_success(f"Saved session {finished.session_id} ({finished.status})")


@app.command()
def preview(
    plan: Annotated[Path, typer.Argument(help="Workout plan YAML file")],
) -> None:
    """Show the prescription of a plan file without starting it."""
    try:
        session = load_plan(plan, default_sets=load_session_settings().default_sets_per_exercise)
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_plan(session)
