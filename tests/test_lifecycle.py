"""
Tests for SessionLifecycle: start, mutate, gate, finish and abandon.
"""

import pytest

from boulderbody.core.config_loader import AppConfig
from boulderbody.core.lifecycle import SessionLifecycle
from boulderbody.core.models import TrainingSession, VolumeSession
from boulderbody.core.recommendation import TrainingRecommendation
from boulderbody.errors import (
    ItemNotFoundError,
    PreconditionViolatedError,
    SessionNotFoundError,
    StorageUnavailableError,
)
from boulderbody.io.kv_store import MemoryKeyValueStore
from boulderbody.io.session_store import SessionStore

from conftest import T0, FlakyWrites


@pytest.fixture
def flaky() -> FlakyWrites:
    return FlakyWrites()


@pytest.fixture
def flaky_lifecycle(flaky, clock, ids) -> SessionLifecycle:
    return SessionLifecycle(SessionStore(flaky), clock=clock, id_factory=ids)


def _complete_all(lifecycle, session: TrainingSession) -> None:
    """Complete every set, hangs through the hang-set path."""
    for s in session.training_data.all_sets():
        if s.exercise == "hang":
            lifecycle.complete_hang_set(session, s.id)
        else:
            lifecycle.toggle_set(session, s.id)


class TestStart:
    def test_start_volume_creates_unlogged_attempts(self, lifecycle, store):
        session = lifecycle.start_volume(target_level=6, boulder_count=20)

        assert isinstance(session, VolumeSession)
        assert session.date == T0
        assert session.start_time == T0
        assert not session.is_finished
        assert session.end_time is None
        assert [a.order for a in session.attempts] == list(range(1, 21))
        assert all(a.result is None for a in session.attempts)
        assert store.get_current_session() == session

    def test_start_training_creates_sets(self, lifecycle):
        session = lifecycle.start_training()

        data = session.training_data
        for exercise in ("hang", "pullup", "bench", "trapBar"):
            sets = data.sets_for(exercise)
            assert [s.order for s in sets] == [1, 2, 3, 4, 5]
            assert not any(s.completed for s in sets)
        assert (data.hang_weight, data.pullup_weight, data.bench_weight, data.trapbar_weight) == (0, 0, 10, 20)
        assert not data.all_sets_completed

    def test_start_training_with_weights(self, lifecycle):
        weights = TrainingRecommendation(5, 2.5, 40, 60, reason="manual")
        data = lifecycle.start_training(weights).training_data
        assert (data.hang_weight, data.pullup_weight, data.bench_weight, data.trapbar_weight) == (5, 2.5, 40, 60)

    def test_second_start_rejected(self, lifecycle, store):
        lifecycle.start_volume(5, 10)
        with pytest.raises(PreconditionViolatedError):
            lifecycle.start_training()
        with pytest.raises(PreconditionViolatedError):
            lifecycle.start_volume(5, 10)
        assert len(store.get_all_sessions()) == 1

    def test_start_after_finish(self, lifecycle, store):
        first = lifecycle.start_volume(5, 2)
        lifecycle.finish(first)
        second = lifecycle.start_training()
        assert lifecycle.active_session().id == second.id
        assert len(store.get_all_sessions()) == 2

    def test_start_by_type(self, lifecycle):
        assert isinstance(lifecycle.start("volume", target_level=3, boulder_count=4), VolumeSession)
        with pytest.raises(ValueError):
            lifecycle.start("campus")

    def test_invalid_level(self, lifecycle):
        with pytest.raises(ValueError):
            lifecycle.start_volume(target_level=0, boulder_count=5)


class TestVolumeMutations:
    def test_log_attempt(self, lifecycle, store, clock):
        session = lifecycle.start_volume(5, 3)
        clock.advance(minutes=4)

        lifecycle.log_attempt(session, session.attempts[1].id, "flash", "crimpy")

        stored = store.get_session(session.id)
        assert stored.attempts[1].result == "flash"
        assert stored.attempts[1].comment == "crimpy"
        assert stored.attempts[1].timestamp == clock.now

    def test_relog_overwrites_result_and_comment(self, lifecycle, store):
        session = lifecycle.start_volume(5, 3)
        attempt_id = session.attempts[0].id
        lifecycle.log_attempt(session, attempt_id, "fail", "pumped")
        lifecycle.log_attempt(session, attempt_id, "done")

        stored = store.get_session(session.id).attempts[0]
        assert stored.result == "done"
        assert stored.comment is None

    def test_unknown_attempt(self, lifecycle):
        session = lifecycle.start_volume(5, 3)
        with pytest.raises(ItemNotFoundError):
            lifecycle.log_attempt(session, "nope", "done")

    def test_invalid_result(self, lifecycle):
        session = lifecycle.start_volume(5, 3)
        with pytest.raises(ValueError):
            lifecycle.log_attempt(session, session.attempts[0].id, "sent")

    def test_stale_session_reports_not_found(self, lifecycle, store):
        session = lifecycle.start_volume(5, 3)
        store.delete_session(session.id)
        with pytest.raises(SessionNotFoundError):
            lifecycle.log_attempt(session, session.attempts[0].id, "done")

    def test_finished_session_is_frozen(self, lifecycle):
        session = lifecycle.start_volume(5, 3)
        lifecycle.finish(session)
        with pytest.raises(PreconditionViolatedError):
            lifecycle.log_attempt(session, session.attempts[0].id, "done")

    def test_stale_copy_cannot_reopen_finished_session(self, lifecycle, store):
        first = lifecycle.start_volume(5, 3)
        stale = store.get_session(first.id)
        lifecycle.finish(first)
        second = lifecycle.start_volume(6, 2)

        with pytest.raises(PreconditionViolatedError):
            lifecycle.log_attempt(stale, stale.attempts[0].id, "flash")

        assert store.get_session(first.id).is_finished
        assert [s.id for s in store.get_all_sessions() if not s.is_finished] == [second.id]
        assert lifecycle.active_session().id == second.id

    def test_failed_write_restores_attempt(self, flaky_lifecycle, flaky):
        session = flaky_lifecycle.start_volume(5, 3)
        attempt = session.attempts[0]
        flaky_lifecycle.log_attempt(session, attempt.id, "fail", "pumped")
        logged_at = attempt.timestamp

        flaky.broken = True
        with pytest.raises(StorageUnavailableError):
            flaky_lifecycle.log_attempt(session, attempt.id, "flash")

        assert (attempt.result, attempt.comment, attempt.timestamp) == ("fail", "pumped", logged_at)
        assert session.attempts[1].result is None


class TestTrainingMutations:
    def test_toggle_twice_restores_state(self, lifecycle, store):
        session = lifecycle.start_training()
        set_id = session.training_data.bench_sets[0].id

        lifecycle.toggle_set(session, set_id)
        assert store.get_session(session.id).training_data.bench_sets[0].completed

        lifecycle.toggle_set(session, set_id)
        stored = store.get_session(session.id).training_data.bench_sets[0]
        assert not stored.completed
        assert stored.timestamp is None

    def test_hang_cannot_be_toggled_complete(self, lifecycle):
        session = lifecycle.start_training()
        with pytest.raises(PreconditionViolatedError):
            lifecycle.toggle_set(session, session.training_data.hang_sets[0].id)

    def test_completed_hang_can_be_uncompleted(self, lifecycle):
        session = lifecycle.start_training()
        set_id = session.training_data.hang_sets[0].id
        lifecycle.complete_hang_set(session, set_id)
        lifecycle.toggle_set(session, set_id)
        assert not session.training_data.hang_sets[0].completed

    def test_complete_hang_set_only_for_hangs(self, lifecycle):
        session = lifecycle.start_training()
        with pytest.raises(PreconditionViolatedError):
            lifecycle.complete_hang_set(session, session.training_data.pullup_sets[0].id)

    def test_unknown_set(self, lifecycle):
        session = lifecycle.start_training()
        with pytest.raises(ItemNotFoundError):
            lifecycle.toggle_set(session, "nope")

    def test_set_notes(self, lifecycle, store):
        session = lifecycle.start_training()
        set_id = session.training_data.trapbar_sets[4].id
        lifecycle.set_notes(session, set_id, "grip gave out")
        assert store.get_session(session.id).training_data.trapbar_sets[4].notes == "grip gave out"

    def test_stale_copy_cannot_toggle_finished_session(self, lifecycle, store):
        session = lifecycle.start_training()
        stale = store.get_session(session.id)
        lifecycle.finish(session)

        with pytest.raises(PreconditionViolatedError):
            lifecycle.toggle_set(stale, stale.training_data.bench_sets[0].id)

        stored = store.get_session(session.id)
        assert stored.is_finished
        assert not stored.training_data.bench_sets[0].completed

    def test_failed_write_restores_set(self, flaky_lifecycle, flaky):
        session = flaky_lifecycle.start_training()
        bench = session.training_data.bench_sets[0]

        flaky.broken = True
        with pytest.raises(StorageUnavailableError):
            flaky_lifecycle.toggle_set(session, bench.id)
        assert not bench.completed
        assert bench.timestamp is None

        flaky.broken = False
        flaky_lifecycle.toggle_set(session, bench.id)
        assert bench.completed


class TestCompletionGate:
    def test_volume_gate_threshold(self, lifecycle):
        session = lifecycle.start_volume(5, 10)
        for attempt in session.attempts[:4]:
            lifecycle.log_attempt(session, attempt.id, "done")
        gate = lifecycle.completion_gate(session)
        assert gate.fires
        assert "6 unlogged" in gate.message

        lifecycle.log_attempt(session, session.attempts[4].id, "fail")
        assert not lifecycle.completion_gate(session).fires

    def test_training_gate_until_all_sets_done(self, lifecycle):
        session = lifecycle.start_training()
        gate = lifecycle.completion_gate(session)
        assert gate.fires
        assert "0 of 20" in gate.message

        _complete_all(lifecycle, session)
        assert not lifecycle.completion_gate(session).fires


class TestFinishAndAbandon:
    def test_finish_volume(self, lifecycle, store, clock):
        session = lifecycle.start_volume(5, 3)
        clock.advance(hours=1, minutes=5)

        lifecycle.finish(session)

        stored = store.get_session(session.id)
        assert stored.is_finished
        assert stored.end_time == clock.now
        assert lifecycle.active_session() is None
        assert store.get_last_volume_session().id == session.id

    def test_finish_training_records_all_sets_completed(self, lifecycle, store):
        session = lifecycle.start_training()
        _complete_all(lifecycle, session)
        lifecycle.finish(session)
        assert store.get_session(session.id).training_data.all_sets_completed

    def test_partial_training_not_all_completed(self, lifecycle, store):
        session = lifecycle.start_training()
        lifecycle.toggle_set(session, session.training_data.pullup_sets[0].id)
        lifecycle.finish(session)
        assert not store.get_session(session.id).training_data.all_sets_completed

    def test_finish_twice_rejected(self, lifecycle):
        session = lifecycle.start_volume(5, 3)
        lifecycle.finish(session)
        with pytest.raises(PreconditionViolatedError):
            lifecycle.finish(session)

    def test_finish_stale_session_rolls_back(self, lifecycle, store):
        session = lifecycle.start_volume(5, 3)
        store.delete_session(session.id)
        with pytest.raises(SessionNotFoundError):
            lifecycle.finish(session)
        assert not session.is_finished
        assert session.end_time is None

    def test_abandon_deletes(self, lifecycle, store):
        kept = lifecycle.start_volume(5, 3)
        lifecycle.finish(kept)
        session = lifecycle.start_training()

        lifecycle.abandon(session)

        assert [s.id for s in store.get_all_sessions()] == [kept.id]
        assert lifecycle.active_session() is None

    def test_abandon_finished_rejected(self, lifecycle):
        session = lifecycle.start_volume(5, 3)
        lifecycle.finish(session)
        with pytest.raises(PreconditionViolatedError):
            lifecycle.abandon(session)


class TestRecommendationsFromHistory:
    def test_volume_recommendation_uses_last_finished(self, lifecycle, clock):
        session = lifecycle.start_volume(8, 4)
        for attempt in session.attempts:
            lifecycle.log_attempt(session, attempt.id, "flash")
        lifecycle.finish(session)
        clock.advance(days=2)

        rec = lifecycle.recommend_volume()
        assert (rec.level, rec.boulder_count) == (9, 4)

    def test_max_level_from_config(self, clock, ids):
        lifecycle = SessionLifecycle(
            SessionStore(MemoryKeyValueStore()), clock=clock, id_factory=ids,
            config=AppConfig(max_level=8),
        )
        session = lifecycle.start_volume(8, 1)
        lifecycle.log_attempt(session, session.attempts[0].id, "flash")
        lifecycle.finish(session)
        assert lifecycle.recommend_volume().level == 8

    def test_training_recommendation_after_full_session(self, lifecycle):
        session = lifecycle.start_training()
        _complete_all(lifecycle, session)
        lifecycle.finish(session)

        rec = lifecycle.recommend_training()
        assert (rec.hang_weight, rec.bench_weight) == (2.5, 12.5)

        next_session = lifecycle.start_training()
        assert next_session.training_data.trapbar_weight == 22.5
