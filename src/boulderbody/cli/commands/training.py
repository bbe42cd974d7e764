"""Training commands: toggle, hang, and the wall-clock timer driver."""

import time
from typing import Annotated, Callable, Optional

import typer

from ...core.lifecycle import SessionLifecycle
from ...core.models import EXERCISES, TrainingSession, TrainingSet
from ...core.timer import Phase, TrainingTimer
from .. import views
from ..app import DataDirOption, app, get_lifecycle, handle_errors
from .sessions import _require_active

TICK_SECONDS = 1.0


def _interrupt_menu(timer: TrainingTimer) -> bool:
    """
    Handle Ctrl-C during a countdown.

    Returns:
        False when the user chose to quit, True to keep driving
    """
    if timer.phase is Phase.REST:
        timer.pause()
        choice = views.console.input("\n  Rest paused: (r)esume, (s)kip, (q)uit [r]: ").strip().lower()
        if choice in ("s", "skip"):
            timer.skip()
        elif choice in ("q", "quit"):
            timer.cancel()
            return False
        else:
            timer.resume()
        return True

    choice = views.console.input(f"\n  {timer.phase.value}: (s)kip, (q)uit, (c)ontinue [c]: ").strip().lower()
    if choice in ("s", "skip"):
        timer.skip()
    elif choice in ("q", "quit"):
        timer.cancel()
        return False
    return True


def run_realtime(
    timer: TrainingTimer,
    sleep: Optional[Callable[[float], None]] = None,
    stop_after_rest: bool = False,
) -> None:
    """
    Drive a timer from the wall clock until it goes idle.

    Args:
        timer: Timer with a phase already started
        sleep: Sleep function, one call per tick (default: time.sleep)
        stop_after_rest: Cancel instead of rolling into the next hang
    """
    sleep = sleep or time.sleep
    last_phase = timer.phase
    shown_phase = None
    while timer.phase is not Phase.IDLE:
        if stop_after_rest and last_phase is Phase.REST and timer.phase is Phase.HANG:
            timer.cancel()
            break
        last_phase = timer.phase

        second = int(timer.remaining)
        if timer.phase is not shown_phase or second % 30 == 0 or second <= 3:
            views.print_phase(timer.phase, timer.remaining, timer.is_paused)
            shown_phase = timer.phase

        try:
            sleep(TICK_SECONDS)
            timer.tick(TICK_SECONDS)
        except KeyboardInterrupt:
            if not _interrupt_menu(timer):
                views.print_info("Timer stopped.")
                return


def _find_set(session: TrainingSession, exercise: str, order: int) -> TrainingSet:
    for s in session.training_data.sets_for(exercise):  # type: ignore[arg-type]
        if s.order == order:
            return s
    views.print_error(f"No {exercise} set #{order} in this session.")
    raise typer.Exit(1)


def _timer(lifecycle: SessionLifecycle, session: TrainingSession) -> TrainingTimer:
    def announce(phase: Phase, set_id: Optional[str]) -> None:
        if phase is Phase.HANG and set_id is not None:
            s = session.training_data.find_set(set_id)
            views.console.print(f"[bold]Hang set {s.order if s else '?'}[/bold]")
        elif phase is Phase.REST:
            views.console.print("[bold]Rest[/bold]")

    return TrainingTimer(lifecycle, session, on_phase_change=announce)


@app.command()
def toggle(
    exercise: Annotated[
        str,
        typer.Argument(help="Exercise: pullup | bench | trapBar | hang (un-complete only)"),
    ],
    order: Annotated[int, typer.Argument(help="Set number (1-5)")],
    rest: Annotated[
        bool,
        typer.Option("--rest/--no-rest", help="Run the rest timer after completing a set"),
    ] = True,
    data_dir: DataDirOption = None,
) -> None:
    """
    Mark a set complete (or incomplete again) in the active training session.

    Hang sets are completed with 'boulderbody hang', which runs the hang timer.
    """
    if exercise not in EXERCISES:
        views.print_error(f"Invalid exercise: {exercise}. Must be one of {', '.join(EXERCISES)}")
        raise typer.Exit(1)

    lifecycle = get_lifecycle(data_dir)
    session: TrainingSession = _require_active(lifecycle, TrainingSession)
    training_set = _find_set(session, exercise, order)
    set_id = training_set.id

    if exercise == "hang" and not training_set.completed:
        views.print_error("Hang sets are completed by the hang timer.")
        views.print_info(f"Run 'boulderbody hang {order}'.")
        raise typer.Exit(1)

    timer = _timer(lifecycle, session)
    with handle_errors():
        timer.toggle_set(set_id)

    state = "complete" if training_set.completed else "incomplete"
    views.print_success(f"{exercise} set {order} marked {state}.")

    if timer.phase is Phase.REST:
        if rest:
            run_realtime(timer, stop_after_rest=True)
        else:
            timer.cancel()


@app.command()
def hang(
    order: Annotated[
        Optional[int],
        typer.Argument(help="Hang set number (default: next incomplete)"),
    ] = None,
    once: Annotated[
        bool,
        typer.Option("--once", help="Stop after this set's rest instead of continuing"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Run the hang timer: prep (first hang only), 7 s hang, then rest.

    After each rest the next incomplete hang starts automatically.
    Press Ctrl-C to pause the rest, skip a phase, or quit.
    """
    lifecycle = get_lifecycle(data_dir)
    session: TrainingSession = _require_active(lifecycle, TrainingSession)
    set_id = _find_set(session, "hang", order).id if order is not None else None

    timer = _timer(lifecycle, session)
    with handle_errors():
        timer.start_hang(set_id)
        run_realtime(timer, stop_after_rest=once)

    done = sum(1 for s in session.training_data.hang_sets if s.completed)
    views.print_success(f"Hang sets complete: {done}/{len(session.training_data.hang_sets)}")
