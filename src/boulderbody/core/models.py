"""
Data models for boulderbody.

A session is either a VolumeSession (boulder attempts at a target level)
or a TrainingSession (structured strength sets). ``Session`` is the union
of the two; each variant carries its ``session_type`` discriminant.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, ClassVar, Literal, Union

from .config import (
    DEFAULT_BENCH_WEIGHT_KG,
    DEFAULT_HANG_WEIGHT_KG,
    DEFAULT_PULLUP_WEIGHT_KG,
    DEFAULT_TRAPBAR_WEIGHT_KG,
    SETS_PER_EXERCISE,
)

AttemptResult = Literal["flash", "done", "fail"]
Exercise = Literal["hang", "pullup", "bench", "trapBar"]
SessionType = Literal["volume", "training"]

ATTEMPT_RESULTS: tuple[str, ...] = ("flash", "done", "fail")
EXERCISES: tuple[str, ...] = ("hang", "pullup", "bench", "trapBar")

Clock = Callable[[], datetime]
IdGenerator = Callable[[], str]


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Default id generator: random UUID4 string."""
    return str(uuid.uuid4())


def _require_aware(value: datetime | None, name: str) -> None:
    if value is not None and value.tzinfo is None:
        raise ValueError(f"{name} must be timezone-aware, got naive {value.isoformat()}")


@dataclass
class BoulderAttempt:
    """
    One boulder within a volume session.

    ``result`` and ``timestamp`` are either both set (logged) or both
    None (not yet logged).
    """

    id: str
    order: int  # 1-indexed, fixed at creation
    result: AttemptResult | None = None
    comment: str | None = None
    timestamp: datetime | None = None

    def __post_init__(self) -> None:
        """Validate attempt data."""
        if self.order < 1:
            raise ValueError(f"order must be positive, got {self.order}")
        if self.result is not None and self.result not in ATTEMPT_RESULTS:
            raise ValueError(f"Invalid result: {self.result!r}")
        if (self.result is None) != (self.timestamp is None):
            raise ValueError("result and timestamp must be set together")
        _require_aware(self.timestamp, "timestamp")


@dataclass
class TrainingSet:
    """
    A single set of one exercise within a training session.

    ``timestamp`` is set exactly when ``completed`` is True.
    """

    id: str
    order: int  # 1..SETS_PER_EXERCISE, per exercise
    exercise: Exercise
    completed: bool = False
    timestamp: datetime | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if not 1 <= self.order <= SETS_PER_EXERCISE:
            raise ValueError(
                f"order must be between 1 and {SETS_PER_EXERCISE}, got {self.order}"
            )
        if self.exercise not in EXERCISES:
            raise ValueError(f"Invalid exercise: {self.exercise!r}")
        if self.completed != (self.timestamp is not None):
            raise ValueError("completed must be True exactly when timestamp is set")
        _require_aware(self.timestamp, "timestamp")


@dataclass
class TrainingData:
    """
    Weights and sets for the four training exercises.

    Weights are added kg (0 = bodyweight only for hangs and pull-ups).
    Sessions created before bench/trap bar existed have empty lists for
    those exercises.
    """

    hang_weight: float = DEFAULT_HANG_WEIGHT_KG
    pullup_weight: float = DEFAULT_PULLUP_WEIGHT_KG
    bench_weight: float = DEFAULT_BENCH_WEIGHT_KG
    trapbar_weight: float = DEFAULT_TRAPBAR_WEIGHT_KG
    hang_sets: list[TrainingSet] = field(default_factory=list)
    pullup_sets: list[TrainingSet] = field(default_factory=list)
    bench_sets: list[TrainingSet] = field(default_factory=list)
    trapbar_sets: list[TrainingSet] = field(default_factory=list)
    all_sets_completed: bool = False

    def __post_init__(self) -> None:
        """Validate weights and set lists."""
        for exercise in EXERCISES:
            weight = self.weight_for(exercise)
            if weight < 0:
                raise ValueError(f"{exercise} weight must be non-negative, got {weight}")
            sets = self.sets_for(exercise)
            if len(sets) > SETS_PER_EXERCISE:
                raise ValueError(
                    f"{exercise} has {len(sets)} sets, at most {SETS_PER_EXERCISE} allowed"
                )
            for s in sets:
                if s.exercise != exercise:
                    raise ValueError(f"{s.exercise} set stored under {exercise}")

    def sets_for(self, exercise: Exercise) -> list[TrainingSet]:
        """Return the set list for an exercise."""
        if exercise == "hang":
            return self.hang_sets
        if exercise == "pullup":
            return self.pullup_sets
        if exercise == "bench":
            return self.bench_sets
        if exercise == "trapBar":
            return self.trapbar_sets
        raise ValueError(f"Invalid exercise: {exercise!r}")

    def weight_for(self, exercise: Exercise) -> float:
        """Return the working weight for an exercise."""
        if exercise == "hang":
            return self.hang_weight
        if exercise == "pullup":
            return self.pullup_weight
        if exercise == "bench":
            return self.bench_weight
        if exercise == "trapBar":
            return self.trapbar_weight
        raise ValueError(f"Invalid exercise: {exercise!r}")

    def all_sets(self) -> list[TrainingSet]:
        """All sets in exercise order: hang, pullup, bench, trapBar."""
        return [s for exercise in EXERCISES for s in self.sets_for(exercise)]

    def find_set(self, set_id: str) -> TrainingSet | None:
        for s in self.all_sets():
            if s.id == set_id:
                return s
        return None


def _check_times(
    date: datetime, start_time: datetime, is_finished: bool, end_time: datetime | None
) -> None:
    _require_aware(date, "date")
    _require_aware(start_time, "start_time")
    _require_aware(end_time, "end_time")
    if is_finished != (end_time is not None):
        raise ValueError("end_time must be set exactly when the session is finished")


@dataclass
class VolumeSession:
    """
    Bouldering volume session at a fixed target level.

    ``attempts`` always holds exactly ``boulder_count`` entries ordered
    1..boulder_count.
    """

    session_type: ClassVar[SessionType] = "volume"

    id: str
    date: datetime
    start_time: datetime
    target_level: int
    boulder_count: int
    attempts: list[BoulderAttempt] = field(default_factory=list)
    end_time: datetime | None = None
    is_finished: bool = False

    def __post_init__(self) -> None:
        """Validate session data."""
        if self.target_level < 1:
            raise ValueError(f"target_level must be at least 1, got {self.target_level}")
        if self.boulder_count < 0:
            raise ValueError(f"boulder_count must be non-negative, got {self.boulder_count}")
        if len(self.attempts) != self.boulder_count:
            raise ValueError(
                f"Expected {self.boulder_count} attempts, got {len(self.attempts)}"
            )
        orders = sorted(a.order for a in self.attempts)
        if orders != list(range(1, self.boulder_count + 1)):
            raise ValueError("attempt orders must be 1..boulder_count")
        _check_times(self.date, self.start_time, self.is_finished, self.end_time)

    def find_attempt(self, attempt_id: str) -> BoulderAttempt | None:
        for attempt in self.attempts:
            if attempt.id == attempt_id:
                return attempt
        return None

    def attempt_by_order(self, order: int) -> BoulderAttempt | None:
        for attempt in self.attempts:
            if attempt.order == order:
                return attempt
        return None


@dataclass
class TrainingSession:
    """Structured strength session (hangs, pull-ups, bench, trap bar)."""

    session_type: ClassVar[SessionType] = "training"

    id: str
    date: datetime
    start_time: datetime
    training_data: TrainingData = field(default_factory=TrainingData)
    end_time: datetime | None = None
    is_finished: bool = False

    def __post_init__(self) -> None:
        """Validate session data."""
        _check_times(self.date, self.start_time, self.is_finished, self.end_time)


Session = Union[VolumeSession, TrainingSession]


def build_attempts(boulder_count: int, id_factory: IdGenerator = new_id) -> list[BoulderAttempt]:
    """Create ``boulder_count`` unlogged attempts ordered 1..boulder_count."""
    if boulder_count < 0:
        raise ValueError(f"boulder_count must be non-negative, got {boulder_count}")
    return [BoulderAttempt(id=id_factory(), order=i) for i in range(1, boulder_count + 1)]


def build_sets(exercise: Exercise, id_factory: IdGenerator = new_id) -> list[TrainingSet]:
    """Create the fixed set list for one exercise, all incomplete."""
    return [
        TrainingSet(id=id_factory(), order=i, exercise=exercise)
        for i in range(1, SETS_PER_EXERCISE + 1)
    ]
