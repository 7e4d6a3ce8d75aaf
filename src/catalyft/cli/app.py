"""Shared Typer app object, shared option types, and store utility."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..io.session_store import SessionStore, get_default_store_dir

# Shared --store-dir option type used across all commands
StoreDirOption = Annotated[
    Optional[Path],
    typer.Option("--store-dir", "-s", help="Directory for session files (default: ~/.catalyft/sessions)"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="catalyft",
    help="Live workout tracker: log sets, run rest timers, keep a session history.",
    no_args_is_help=True,
)


def get_store(store_dir: Path | None) -> SessionStore:
    """Get a session store from a directory or the default location."""
    if store_dir is None:
        store_dir = get_default_store_dir()
    return SessionStore(store_dir)
