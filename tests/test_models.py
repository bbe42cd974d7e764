"""
Tests for the session models and read accessors.

Covers dataclass invariants, fail rate, counts and duration formatting.
"""

from datetime import timedelta

import pytest

from boulderbody.core.metrics import (
    attempt_counts,
    completed_set_count,
    fail_rate,
    is_exercise_complete,
    session_duration,
    total_set_count,
)
from boulderbody.core.models import (
    BoulderAttempt,
    TrainingData,
    TrainingSession,
    TrainingSet,
    VolumeSession,
    build_attempts,
    build_sets,
)

from conftest import T0, SequentialIds


def _volume(results: list, level: int = 5) -> VolumeSession:
    ids = SequentialIds("a")
    attempts = build_attempts(len(results), ids)
    for attempt, result in zip(attempts, results):
        if result is not None:
            attempt.result = result
            attempt.timestamp = T0
    return VolumeSession(
        id="s1",
        date=T0,
        start_time=T0,
        target_level=level,
        boulder_count=len(results),
        attempts=attempts,
    )


class TestBoulderAttempt:
    def test_result_and_timestamp_go_together(self):
        with pytest.raises(ValueError):
            BoulderAttempt(id="a", order=1, result="flash")
        with pytest.raises(ValueError):
            BoulderAttempt(id="a", order=1, timestamp=T0)

    def test_order_is_one_indexed(self):
        with pytest.raises(ValueError):
            BoulderAttempt(id="a", order=0)

    def test_invalid_result_rejected(self):
        with pytest.raises(ValueError):
            BoulderAttempt(id="a", order=1, result="sent", timestamp=T0)


class TestTrainingSet:
    def test_completed_requires_timestamp(self):
        with pytest.raises(ValueError):
            TrainingSet(id="t", order=1, exercise="pullup", completed=True)
        with pytest.raises(ValueError):
            TrainingSet(id="t", order=1, exercise="pullup", timestamp=T0)

    def test_order_range(self):
        with pytest.raises(ValueError):
            TrainingSet(id="t", order=6, exercise="hang")

    def test_unknown_exercise(self):
        with pytest.raises(ValueError):
            TrainingSet(id="t", order=1, exercise="deadlift")


class TestSessions:
    @pytest.mark.parametrize("count", [0, 1, 7, 20])
    def test_build_attempts_orders(self, count):
        attempts = build_attempts(count, SequentialIds())
        assert [a.order for a in attempts] == list(range(1, count + 1))
        assert all(a.result is None for a in attempts)
        assert len({a.id for a in attempts}) == count

    def test_attempt_count_must_match(self):
        with pytest.raises(ValueError):
            VolumeSession(
                id="s", date=T0, start_time=T0, target_level=3, boulder_count=2,
                attempts=build_attempts(3, SequentialIds()),
            )

    def test_end_time_iff_finished(self):
        with pytest.raises(ValueError):
            TrainingSession(id="s", date=T0, start_time=T0, is_finished=True)
        with pytest.raises(ValueError):
            TrainingSession(id="s", date=T0, start_time=T0, end_time=T0)

    def test_level_at_least_one(self):
        with pytest.raises(ValueError):
            VolumeSession(id="s", date=T0, start_time=T0, target_level=0, boulder_count=0)

    def test_default_weights(self):
        data = TrainingData()
        assert data.hang_weight == 0
        assert data.pullup_weight == 0
        assert data.bench_weight == 10
        assert data.trapbar_weight == 20

    def test_variants_are_distinguished(self):
        assert VolumeSession.session_type == "volume"
        assert TrainingSession.session_type == "training"

    def test_naive_datetimes_rejected(self):
        naive = T0.replace(tzinfo=None)
        with pytest.raises(ValueError, match="timezone-aware"):
            VolumeSession(id="s", date=naive, start_time=T0, target_level=3, boulder_count=0)
        with pytest.raises(ValueError, match="timezone-aware"):
            TrainingSession(id="s", date=T0, start_time=T0, end_time=naive, is_finished=True)
        with pytest.raises(ValueError, match="timezone-aware"):
            BoulderAttempt(id="a", order=1, result="done", timestamp=naive)
        with pytest.raises(ValueError, match="timezone-aware"):
            TrainingSet(id="t", order=1, exercise="bench", completed=True, timestamp=naive)


class TestMetrics:
    def test_fail_rate_counts_unlogged_as_fail(self):
        session = _volume(["flash"] * 5 + ["done"] * 5 + ["fail"] * 5 + [None] * 5)
        assert fail_rate(session) == 50.0

    def test_fail_rate_empty_session(self):
        assert fail_rate(_volume([])) == 0.0

    def test_attempt_counts(self):
        counts = attempt_counts(_volume(["flash", "flash", "done", "fail", None]))
        assert (counts.flash, counts.done, counts.fail, counts.unlogged) == (2, 1, 1, 1)
        assert counts.logged == 4

    def test_exercise_complete_needs_sets(self):
        assert not is_exercise_complete([])
        sets = build_sets("bench", SequentialIds())
        assert not is_exercise_complete(sets)
        for s in sets:
            s.completed, s.timestamp = True, T0
        assert is_exercise_complete(sets)

    def test_set_counts_skip_absent_exercises(self):
        ids = SequentialIds()
        session = TrainingSession(
            id="s", date=T0, start_time=T0,
            training_data=TrainingData(hang_sets=build_sets("hang", ids), pullup_sets=build_sets("pullup", ids)),
        )
        session.training_data.hang_sets[0].completed = True
        session.training_data.hang_sets[0].timestamp = T0
        assert total_set_count(session) == 10
        assert completed_set_count(session) == 1


class TestDuration:
    def test_in_progress(self):
        assert session_duration(_volume([])) == "in progress"

    def test_minutes_only(self):
        session = _volume([])
        session.end_time, session.is_finished = T0 + timedelta(minutes=45, seconds=59), True
        assert session_duration(session) == "45m"

    def test_hours_and_minutes(self):
        session = _volume([])
        session.end_time, session.is_finished = T0 + timedelta(hours=1, minutes=23), True
        assert session_duration(session) == "1h 23m"
