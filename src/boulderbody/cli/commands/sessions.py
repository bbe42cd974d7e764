"""Session commands: start, status, log, finish, abandon."""

import json
from typing import Annotated, Optional

import typer

from ...core.models import ATTEMPT_RESULTS, TrainingSession, VolumeSession
from ...core.recommendation import TrainingRecommendation
from ...io.serializers import session_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_lifecycle, handle_errors


def _require_active(lifecycle, expected: type | None = None):
    """Return the active session or exit with a hint."""
    with handle_errors():
        session = lifecycle.active_session()
    if session is None:
        views.print_error("No active session.")
        views.print_info("Start one with 'boulderbody start volume' or 'boulderbody start training'.")
        raise typer.Exit(1)
    if expected is not None and not isinstance(session, expected):
        views.print_error(f"The active session is a {session.session_type} session.")
        raise typer.Exit(1)
    return session


@app.command()
def start(
    session_type: Annotated[
        str,
        typer.Argument(help="Session type: volume | training"),
    ],
    level: Annotated[
        Optional[int],
        typer.Option("--level", "-l", help="Target level (volume; default: recommended)"),
    ] = None,
    boulders: Annotated[
        Optional[int],
        typer.Option("--boulders", "-b", help="Number of boulders (volume; default: recommended)"),
    ] = None,
    hang_weight: Annotated[
        Optional[float],
        typer.Option("--hang-weight", help="Added kg for hangs (training; default: recommended)"),
    ] = None,
    pullup_weight: Annotated[
        Optional[float],
        typer.Option("--pullup-weight", help="Added kg for pull-ups (training)"),
    ] = None,
    bench_weight: Annotated[
        Optional[float],
        typer.Option("--bench-weight", help="Bench weight kg (training)"),
    ] = None,
    trapbar_weight: Annotated[
        Optional[float],
        typer.Option("--trapbar-weight", help="Trap bar weight kg (training)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Start a new session. Only one session can be active at a time.

      boulderbody start volume --level 6 --boulders 20
      boulderbody start training --hang-weight 5
    """
    lifecycle = get_lifecycle(data_dir)

    with handle_errors():
        active = lifecycle.active_session()
    if active is not None:
        views.print_error(f"A {active.session_type} session is already active ({active.id[:8]}).")
        views.print_info("Finish it with 'boulderbody finish' or discard it with 'boulderbody abandon'.")
        raise typer.Exit(1)

    with handle_errors():
        if session_type == "volume":
            rec = lifecycle.recommend_volume()
            session = lifecycle.start_volume(
                target_level=level if level is not None else rec.level,
                boulder_count=boulders if boulders is not None else rec.boulder_count,
            )
            views.print_success(
                f"Started volume session at level {session.target_level} "
                f"with {session.boulder_count} boulders."
            )
        elif session_type == "training":
            rec = lifecycle.recommend_training()
            weights = TrainingRecommendation(
                hang_weight=hang_weight if hang_weight is not None else rec.hang_weight,
                pullup_weight=pullup_weight if pullup_weight is not None else rec.pullup_weight,
                bench_weight=bench_weight if bench_weight is not None else rec.bench_weight,
                trapbar_weight=trapbar_weight if trapbar_weight is not None else rec.trapbar_weight,
                reason=rec.reason,
            )
            session = lifecycle.start_training(weights)
            views.print_success("Started training session.")
        else:
            views.print_error(f"Unknown session type: {session_type}. Use 'volume' or 'training'.")
            raise typer.Exit(1)

    views.print_session(session)


@app.command()
def status(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the active session.
    """
    lifecycle = get_lifecycle(data_dir)
    with handle_errors():
        session = lifecycle.active_session()

    if json_out:
        print(json.dumps(session_to_dict(session) if session else None, indent=2))
        return

    if session is None:
        views.print_info("No active session.")
        return
    views.print_session(session)


@app.command("log")
def log_attempt(
    order: Annotated[int, typer.Argument(help="Boulder number (1-based)")],
    result: Annotated[str, typer.Argument(help="Result: flash | done | fail")],
    comment: Annotated[
        Optional[str],
        typer.Option("--comment", "-c", help="Note about this boulder"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Log the result of one boulder in the active volume session.

    Logging the same boulder again overwrites its result and comment.
    """
    if result not in ATTEMPT_RESULTS:
        views.print_error(f"Invalid result: {result}. Must be one of {', '.join(ATTEMPT_RESULTS)}")
        raise typer.Exit(1)

    lifecycle = get_lifecycle(data_dir)
    session: VolumeSession = _require_active(lifecycle, VolumeSession)

    attempt = session.attempt_by_order(order)
    if attempt is None:
        views.print_error(f"Boulder # must be between 1 and {session.boulder_count}")
        raise typer.Exit(1)

    with handle_errors():
        lifecycle.log_attempt(session, attempt.id, result, comment)  # type: ignore[arg-type]

    views.print_success(f"Boulder #{order}: {result}")


@app.command()
def finish(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Finish without confirmation"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Finish the active session and show the next recommendation.
    """
    lifecycle = get_lifecycle(data_dir)
    session = _require_active(lifecycle)

    gate = lifecycle.completion_gate(session)
    if gate.fires and not yes:
        views.print_warning(gate.message)
        if not views.confirm_action("Finish session anyway?"):
            views.print_info("Cancelled.")
            raise typer.Exit(0)

    with handle_errors():
        lifecycle.finish(session)

    views.print_success("Session finished.")
    views.print_session(session)
    views.console.print()

    with handle_errors():
        if isinstance(session, VolumeSession):
            views.print_volume_recommendation(lifecycle.recommend_volume())
        elif isinstance(session, TrainingSession):
            views.print_training_recommendation(lifecycle.recommend_training())


@app.command()
def abandon(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Abandon without confirmation"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Discard the active session. It is deleted and cannot be recovered.
    """
    lifecycle = get_lifecycle(data_dir)
    session = _require_active(lifecycle)

    if not yes and not views.confirm_action(
        f"End this {session.session_type} session? Progress will not be saved."
    ):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    with handle_errors():
        lifecycle.abandon(session)

    views.print_success("Session abandoned.")
