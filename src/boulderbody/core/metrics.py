"""
Read accessors over sessions.

Counts, fail rate, set progress and duration formatting used by the
recommenders, the lifecycle completion gate and the CLI views.
"""

from dataclasses import dataclass

from .models import EXERCISES, Exercise, Session, TrainingSession, TrainingSet, VolumeSession


@dataclass(frozen=True)
class AttemptCounts:
    """Attempt tally for a volume session."""

    flash: int
    done: int
    fail: int
    unlogged: int

    @property
    def logged(self) -> int:
        return self.flash + self.done + self.fail


def attempt_counts(session: VolumeSession) -> AttemptCounts:
    """Count attempts by result; unlogged attempts are counted separately."""
    results = [a.result for a in session.attempts]
    return AttemptCounts(
        flash=results.count("flash"),
        done=results.count("done"),
        fail=results.count("fail"),
        unlogged=results.count(None),
    )


def unlogged_count(session: VolumeSession) -> int:
    return attempt_counts(session).unlogged


def fail_rate(session: VolumeSession) -> float:
    """
    Fail rate of a volume session as a percentage (0-100).

    Unlogged attempts count as fails. A session with no boulders has a
    fail rate of 0.

    Args:
        session: Volume session to evaluate

    Returns:
        Percentage of attempts counted as failures
    """
    if session.boulder_count == 0:
        return 0.0
    counts = attempt_counts(session)
    return (counts.fail + counts.unlogged) / session.boulder_count * 100


def is_exercise_complete(sets: list[TrainingSet]) -> bool:
    """True iff the set list is non-empty and every set is completed."""
    return len(sets) > 0 and all(s.completed for s in sets)


def exercise_progress(session: TrainingSession, exercise: Exercise) -> tuple[int, int]:
    """Return (completed, total) sets for one exercise."""
    sets = session.training_data.sets_for(exercise)
    return sum(1 for s in sets if s.completed), len(sets)


def completed_set_count(session: TrainingSession) -> int:
    return sum(exercise_progress(session, e)[0] for e in EXERCISES)


def total_set_count(session: TrainingSession) -> int:
    return sum(exercise_progress(session, e)[1] for e in EXERCISES)


def session_duration(session: Session) -> str:
    """
    Format how long a session took.

    Returns "in progress" while the session is active, otherwise
    "{h}h {m}m" for an hour or more and "{m}m" below that.
    """
    if session.end_time is None:
        return "in progress"

    total_minutes = int((session.end_time - session.start_time).total_seconds() // 60)
    hours, minutes = divmod(max(total_minutes, 0), 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def session_summary(session: Session) -> str:
    """One-line description of a session's content."""
    if isinstance(session, VolumeSession):
        counts = attempt_counts(session)
        return (
            f"Level {session.target_level}, {session.boulder_count} boulders "
            f"({counts.flash} flash / {counts.done} done / {counts.fail} fail / "
            f"{counts.unlogged} unlogged)"
        )
    if isinstance(session, TrainingSession):
        return f"{completed_set_count(session)}/{total_set_count(session)} sets completed"
    raise TypeError(f"Unknown session variant: {type(session).__name__}")
