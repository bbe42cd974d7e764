"""Shared Typer app object, shared option types, and store utilities."""

from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Iterator, Optional

import typer

from ..core.config_loader import load_app_config
from ..core.lifecycle import SessionLifecycle
from ..errors import BoulderBodyError, SessionNotFoundError, StorageError
from ..io.session_store import SessionStore, get_default_data_dir, get_default_store
from ..logging_config import setup_logging
from . import views

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--data-dir",
        "-D",
        help="Directory for session data (default: $BOULDERBODY_HOME or ~/.boulderbody)",
    ),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="boulderbody",
    help="Bouldering volume and strength training tracker with next-session recommendations.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Track volume and training sessions. Start with 'boulderbody recommend'.
    """
    setup_logging("DEBUG" if verbose else "WARNING")


def get_store(data_dir: Path | None) -> SessionStore:
    """Get session store from a data directory or the default location."""
    return get_default_store(data_dir)


def get_lifecycle(data_dir: Path | None) -> SessionLifecycle:
    """Get a lifecycle bound to the store and user config of a data directory."""
    resolved = data_dir or get_default_data_dir()
    with handle_errors():
        config = load_app_config(resolved)
    return SessionLifecycle(get_store(resolved), config=config)


@contextmanager
def handle_errors() -> Iterator[None]:
    """
    Turn domain errors into a readable message and exit code 1.

    Write failures name the remedy (delete old sessions vs. storage
    unavailable); a missing session asks for a reload.
    """
    try:
        yield
    except SessionNotFoundError as e:
        views.print_error(str(e))
        views.print_info(e.user_message)
        raise typer.Exit(1)
    except StorageError as e:
        views.print_error(e.user_message)
        views.print_info(str(e))
        raise typer.Exit(1)
    except BoulderBodyError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
