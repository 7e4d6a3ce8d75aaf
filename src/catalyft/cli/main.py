"""
CLI entry point using Typer.

Provides commands for live workouts:
- live: Run a workout from a plan file (or resume an unfinished one)
- preview: Show a plan's prescription
- history: List finished workouts
- show: Show every set of one workout
- exercises: List the exercise catalog
"""

import logging
from typing import Annotated

import typer

from .app import app
from .commands import history, live  # noqa: F401  (registers commands)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log engine and storage activity to stderr"),
    ] = False,
) -> None:
    """
    Live workout tracker. Start with 'catalyft live PLAN.yaml'.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
