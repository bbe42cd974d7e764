"""History commands: recommend, history, delete, theme."""

import json
from dataclasses import asdict
from typing import Annotated, Optional

import typer

from ...io.serializers import session_to_dict
from ...io.session_store import THEMES
from .. import views
from ..app import DataDirOption, JsonOption, app, get_lifecycle, get_store, handle_errors


@app.command()
def recommend(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show recommendations for the next volume and training sessions.
    """
    lifecycle = get_lifecycle(data_dir)
    with handle_errors():
        volume = lifecycle.recommend_volume()
        training = lifecycle.recommend_training()

    if json_out:
        print(json.dumps({"volume": asdict(volume), "training": asdict(training)}, indent=2))
        return

    views.print_volume_recommendation(volume)
    views.console.print()
    views.print_training_recommendation(training)


@app.command()
def history(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show all stored sessions, newest first.
    """
    store = get_store(data_dir)
    with handle_errors():
        sessions = store.get_all_sessions()

    if json_out:
        ordered = sorted(sessions, key=lambda s: s.date, reverse=True)
        print(json.dumps([session_to_dict(s) for s in ordered], indent=2))
        return

    views.print_history(sessions)


@app.command("delete")
def delete_session(
    session_id: Annotated[
        str,
        typer.Argument(help="Session ID or unique ID prefix (see 'history')"),
    ],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Delete without confirmation"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Delete a stored session by its ID.
    """
    store = get_store(data_dir)
    with handle_errors():
        sessions = store.get_all_sessions()

    matches = [s for s in sessions if s.id == session_id] or [
        s for s in sessions if s.id.startswith(session_id)
    ]
    if not matches:
        views.print_error(f"Session with ID {session_id} not found")
        raise typer.Exit(1)
    if len(matches) > 1:
        views.print_error(f"ID prefix {session_id!r} matches {len(matches)} sessions; use more characters.")
        raise typer.Exit(1)

    target = matches[0]
    views.console.print(
        f"Session to delete: [bold]{views.format_date(target)}[/bold] ({target.session_type})"
    )
    if not force and not views.confirm_action("Delete this session?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    with handle_errors():
        store.delete_session(target.id)

    views.print_success(f"Deleted session {target.id[:8]} ({target.session_type})")


@app.command()
def theme(
    value: Annotated[
        Optional[str],
        typer.Argument(help="light | dark (omit to show the current theme)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Show or set the theme preference.
    """
    store = get_store(data_dir)
    if value is None:
        with handle_errors():
            views.console.print(store.get_theme())
        return

    if value not in THEMES:
        views.print_error(f"Invalid theme: {value}. Must be 'light' or 'dark'")
        raise typer.Exit(1)

    with handle_errors():
        store.set_theme(value)
    views.print_success(f"Theme set to {value}.")
