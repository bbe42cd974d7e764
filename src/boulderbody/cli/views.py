"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of sessions and recommendations.
"""

from rich.console import Console
from rich.table import Table

from ..core.metrics import (
    attempt_counts,
    completed_set_count,
    exercise_progress,
    fail_rate,
    session_duration,
    session_summary,
    total_set_count,
)
from ..core.models import EXERCISES, Session, TrainingSession, VolumeSession
from ..core.recommendation import EXERCISE_LABELS, TrainingRecommendation, VolumeRecommendation
from ..core.timer import Phase

console = Console()

RESULT_STYLES = {
    "flash": "[bold green]flash[/bold green]",
    "done": "[cyan]done[/cyan]",
    "fail": "[red]fail[/red]",
    None: "[dim]-[/dim]",
}

PHASE_TITLES = {
    Phase.PREP: "Get ready",
    Phase.HANG: "Hang!",
    Phase.REST: "Rest",
    Phase.IDLE: "Idle",
}


def format_date(session: Session) -> str:
    return session.date.astimezone().strftime("%Y-%m-%d %H:%M")


def format_weight(kg: float) -> str:
    """Format added weight; 0 kg reads as bodyweight."""
    if kg == 0:
        return "bodyweight"
    return f"{kg:g} kg"


def format_clock(seconds: float) -> str:
    """Format remaining seconds as M:SS."""
    whole = int(round(seconds))
    return f"{whole // 60}:{whole % 60:02d}"


def print_volume_session(session: VolumeSession) -> None:
    """
    Print a volume session with every attempt.

    Args:
        session: Volume session to display
    """
    counts = attempt_counts(session)
    state = "finished" if session.is_finished else "active"
    console.print(
        f"[bold]Volume session[/bold] ({state}): level [bold]{session.target_level}[/bold], "
        f"{session.boulder_count} boulders, {session_duration(session)}"
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Result")
    table.add_column("Comment")

    for attempt in sorted(session.attempts, key=lambda a: a.order):
        table.add_row(str(attempt.order), RESULT_STYLES[attempt.result], attempt.comment or "")

    console.print(table)
    console.print(
        f"Flash {counts.flash} · Done {counts.done} · Fail {counts.fail} · "
        f"Unlogged {counts.unlogged} · Fail rate {fail_rate(session):.0f}%"
    )


def print_training_session(session: TrainingSession) -> None:
    """
    Print a training session with per-exercise set progress.

    Args:
        session: Training session to display
    """
    state = "finished" if session.is_finished else "active"
    console.print(
        f"[bold]Training session[/bold] ({state}): "
        f"{completed_set_count(session)}/{total_set_count(session)} sets, "
        f"{session_duration(session)}"
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("Exercise")
    table.add_column("Weight", justify="right")
    table.add_column("Sets")
    table.add_column("Done", justify="right")

    data = session.training_data
    for exercise in EXERCISES:
        sets = data.sets_for(exercise)
        if not sets:
            continue
        marks = " ".join(
            f"[green]{s.order}✓[/green]" if s.completed else f"[dim]{s.order}·[/dim]" for s in sets
        )
        done, total = exercise_progress(session, exercise)
        table.add_row(
            EXERCISE_LABELS[exercise],
            format_weight(data.weight_for(exercise)),
            marks,
            f"{done}/{total}",
        )

    console.print(table)


def print_session(session: Session) -> None:
    if isinstance(session, VolumeSession):
        print_volume_session(session)
    elif isinstance(session, TrainingSession):
        print_training_session(session)
    else:
        raise TypeError(f"Unknown session variant: {type(session).__name__}")


def print_history(sessions: list[Session]) -> None:
    """
    Print session history, newest first.

    Args:
        sessions: Sessions to display
    """
    if not sessions:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return

    table = Table(title="Session History", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Summary")
    table.add_column("Duration", justify="right")

    for s in sorted(sessions, key=lambda s: s.date, reverse=True):
        table.add_row(
            s.id[:8],
            format_date(s),
            s.session_type,
            session_summary(s),
            session_duration(s),
        )

    console.print(table)


def print_volume_recommendation(rec: VolumeRecommendation) -> None:
    console.print(
        f"[bold]Next volume session:[/bold] level [bold cyan]{rec.level}[/bold cyan], "
        f"{rec.boulder_count} boulders"
    )
    console.print(f"  [dim]{rec.reason}[/dim]")


def print_training_recommendation(rec: TrainingRecommendation) -> None:
    console.print("[bold]Next training session:[/bold]")
    for exercise in EXERCISES:
        console.print(f"  {EXERCISE_LABELS[exercise]:<9} {format_weight(rec.weight_for(exercise))}")
    console.print(f"  [dim]{rec.reason}[/dim]")


def print_phase(phase: Phase, remaining: float, paused: bool = False) -> None:
    """Print one countdown line."""
    suffix = " [yellow](paused)[/yellow]" if paused else ""
    console.print(f"  {PHASE_TITLES[phase]:<10} {format_clock(remaining)}{suffix}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
