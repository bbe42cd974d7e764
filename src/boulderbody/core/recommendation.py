"""
Recommendation engines for the next session.

Both recommenders are pure: they only look at their explicit inputs.

Volume algorithm:
1. Start from the last session's target level
2. Performance: fail rate < 25% → +1, fail rate > 75% → -1
3. Time decay: 8-14 days since the session → -1, more than 14 → -2
4. Clamp to the minimum level (and to ``max_level`` when given)

Training algorithm (per exercise, independently):
- All sets completed → weight + 2.5 kg
- Otherwise → keep the weight
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from .config import (
    DECAY_LONG_BREAK_DAYS,
    DECAY_SHORT_BREAK_DAYS,
    DEFAULT_BENCH_WEIGHT_KG,
    DEFAULT_BOULDER_COUNT,
    DEFAULT_HANG_WEIGHT_KG,
    DEFAULT_LEVEL,
    DEFAULT_PULLUP_WEIGHT_KG,
    DEFAULT_TRAPBAR_WEIGHT_KG,
    HIGH_FAIL_RATE_PCT,
    LOW_FAIL_RATE_PCT,
    MIN_LEVEL,
    WEIGHT_INCREMENT_KG,
)
from .metrics import fail_rate, is_exercise_complete
from .models import EXERCISES, TrainingSession, VolumeSession

EXERCISE_LABELS: dict[str, str] = {
    "hang": "hangs",
    "pullup": "pull-ups",
    "bench": "bench",
    "trapBar": "trap bar",
}


@dataclass(frozen=True)
class VolumeRecommendation:
    """Recommended level and boulder count for the next volume session."""

    level: int
    boulder_count: int
    reason: str


@dataclass(frozen=True)
class TrainingRecommendation:
    """Recommended working weights (kg) for the next training session."""

    hang_weight: float
    pullup_weight: float
    bench_weight: float
    trapbar_weight: float
    reason: str

    def weight_for(self, exercise: str) -> float:
        return {
            "hang": self.hang_weight,
            "pullup": self.pullup_weight,
            "bench": self.bench_weight,
            "trapBar": self.trapbar_weight,
        }[exercise]


DEFAULT_VOLUME_RECOMMENDATION = VolumeRecommendation(
    level=DEFAULT_LEVEL,
    boulder_count=DEFAULT_BOULDER_COUNT,
    reason="default: no previous volume session",
)

DEFAULT_TRAINING_RECOMMENDATION = TrainingRecommendation(
    hang_weight=DEFAULT_HANG_WEIGHT_KG,
    pullup_weight=DEFAULT_PULLUP_WEIGHT_KG,
    bench_weight=DEFAULT_BENCH_WEIGHT_KG,
    trapbar_weight=DEFAULT_TRAPBAR_WEIGHT_KG,
    reason="first session: starting with default weights",
)


def days_since(then: datetime, now: datetime) -> int:
    """Whole days elapsed between two instants (floored)."""
    return (now - then) // timedelta(days=1)


def recommend_volume(
    last_session: VolumeSession | None,
    now: datetime,
    max_level: int | None = None,
) -> VolumeRecommendation:
    """
    Calculate the recommended level and boulder count for the next volume session.

    Args:
        last_session: Most recent finished volume session, or None
        now: Current instant (time decay is measured against it)
        max_level: Optional upper clamp for the level; None means unbounded

    Returns:
        VolumeRecommendation with a step-by-step reason
    """
    if last_session is None:
        return DEFAULT_VOLUME_RECOMMENDATION

    level = last_session.target_level
    reasons: list[str] = []

    rate = fail_rate(last_session)
    if rate < LOW_FAIL_RATE_PCT:
        level += 1
        reasons.append(f"Strong performance with {rate:.0f}% fail rate (+1 level)")
    elif rate > HIGH_FAIL_RATE_PCT:
        level -= 1
        reasons.append(f"High fail rate of {rate:.0f}% (-1 level)")
    else:
        reasons.append(f"Consistent performance with {rate:.0f}% fail rate (same level)")

    days = days_since(last_session.date, now)
    if days > DECAY_LONG_BREAK_DAYS:
        level -= 2
        reasons.append(f"{days} days since last session (-2 levels)")
    elif days >= DECAY_SHORT_BREAK_DAYS:
        level -= 1
        reasons.append(f"{days} days since last session (-1 level)")

    if level < MIN_LEVEL:
        level = MIN_LEVEL
        reasons.append(f"clamped to minimum level {MIN_LEVEL}")
    elif max_level is not None and level > max_level:
        level = max_level
        reasons.append(f"clamped to maximum level {max_level}")

    return VolumeRecommendation(
        level=level,
        boulder_count=last_session.boulder_count,
        reason=", ".join(reasons),
    )


def recommend_training(last_session: TrainingSession | None) -> TrainingRecommendation:
    """
    Calculate recommended weights for the next training session.

    Args:
        last_session: Most recent finished training session, or None

    Returns:
        TrainingRecommendation naming which exercises progressed
    """
    if last_session is None:
        return DEFAULT_TRAINING_RECOMMENDATION

    data = last_session.training_data
    weights: dict[str, float] = {}
    progressed: list[str] = []

    for exercise in EXERCISES:
        weight = data.weight_for(exercise)
        if is_exercise_complete(data.sets_for(exercise)):
            weight += WEIGHT_INCREMENT_KG
            progressed.append(exercise)
        weights[exercise] = weight

    if len(progressed) == len(EXERCISES):
        reason = f"All exercises complete (+{WEIGHT_INCREMENT_KG}kg each)"
    elif not progressed:
        reason = f"0 of {len(EXERCISES)} exercises completed, maintain weights"
    else:
        names = ", ".join(EXERCISE_LABELS[e] for e in progressed)
        reason = (
            f"{len(progressed)} of {len(EXERCISES)} exercises complete: "
            f"{names} +{WEIGHT_INCREMENT_KG}kg, others same"
        )

    return TrainingRecommendation(
        hang_weight=weights["hang"],
        pullup_weight=weights["pullup"],
        bench_weight=weights["bench"],
        trapbar_weight=weights["trapBar"],
        reason=reason,
    )
