"""
Session lifecycle: start, mutate, finish or abandon a session.

States:
    Active   → created by start_volume/start_training
    Finished → terminal, via finish()
    Broken   → terminal, via abandon() (the session is deleted)

At most one Active session exists at a time. The lifecycle checks this
when starting; the store itself never decides transitions.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import UNLOGGED_GATE_THRESHOLD
from .config_loader import AppConfig
from .metrics import completed_set_count, is_exercise_complete, total_set_count, unlogged_count
from .models import (
    ATTEMPT_RESULTS,
    EXERCISES,
    AttemptResult,
    Clock,
    IdGenerator,
    Session,
    TrainingData,
    TrainingSession,
    TrainingSet,
    VolumeSession,
    build_attempts,
    build_sets,
    new_id,
    utc_now,
)
from .recommendation import (
    TrainingRecommendation,
    VolumeRecommendation,
    recommend_training,
    recommend_volume,
)
from ..errors import ItemNotFoundError, PreconditionViolatedError

if TYPE_CHECKING:
    from ..io.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionGate:
    """
    Result of the pre-finish check.

    When ``fires`` is True the caller should ask for confirmation before
    calling finish().
    """

    fires: bool
    message: str


class SessionLifecycle:
    """
    Owns every state transition of a session.

    Each mutation updates the in-memory session and then persists the
    whole session through the store.
    """

    def __init__(
        self,
        store: SessionStore,
        clock: Clock = utc_now,
        id_factory: IdGenerator = new_id,
        config: AppConfig | None = None,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.config = config or AppConfig()
        self._start_lock = threading.Lock()

    # ── Queries ──────────────────────────────────────────────────────────────

    def active_session(self) -> Session | None:
        """The unfinished session, derived from storage on every call."""
        return self.store.get_current_session()

    def recommend_volume(self) -> VolumeRecommendation:
        return recommend_volume(
            self.store.get_last_volume_session(),
            self.clock(),
            max_level=self.config.max_level,
        )

    def recommend_training(self) -> TrainingRecommendation:
        return recommend_training(self.store.get_last_training_session())

    # ── Start ────────────────────────────────────────────────────────────────

    def start_volume(self, target_level: int, boulder_count: int) -> VolumeSession:
        """
        Start a volume session with ``boulder_count`` unlogged attempts.

        Raises:
            PreconditionViolatedError: If a session is already active
            ValueError: If level or boulder count is invalid
        """
        with self._start_lock:
            self._require_no_active()
            now = self.clock()
            session = VolumeSession(
                id=self.id_factory(),
                date=now,
                start_time=now,
                target_level=target_level,
                boulder_count=boulder_count,
                attempts=build_attempts(boulder_count, self.id_factory),
            )
            self.store.save_session(session)
        logger.info("Started volume session %s at level %d", session.id, target_level)
        return session

    def start_training(self, weights: TrainingRecommendation | None = None) -> TrainingSession:
        """
        Start a training session with 5 incomplete sets per exercise.

        Args:
            weights: Working weights; defaults to the current recommendation

        Raises:
            PreconditionViolatedError: If a session is already active
        """
        with self._start_lock:
            self._require_no_active()
            if weights is None:
                weights = self.recommend_training()
            now = self.clock()
            training_data = TrainingData(
                hang_weight=weights.hang_weight,
                pullup_weight=weights.pullup_weight,
                bench_weight=weights.bench_weight,
                trapbar_weight=weights.trapbar_weight,
                hang_sets=build_sets("hang", self.id_factory),
                pullup_sets=build_sets("pullup", self.id_factory),
                bench_sets=build_sets("bench", self.id_factory),
                trapbar_sets=build_sets("trapBar", self.id_factory),
            )
            session = TrainingSession(
                id=self.id_factory(),
                date=now,
                start_time=now,
                training_data=training_data,
            )
            self.store.save_session(session)
        logger.info("Started training session %s", session.id)
        return session

    def start(self, session_type: str, **params) -> Session:
        """Start a session of the given type ("volume" or "training")."""
        if session_type == "volume":
            return self.start_volume(**params)
        if session_type == "training":
            return self.start_training(**params)
        raise ValueError(f"Invalid session type: {session_type!r}")

    # ── Volume mutations ─────────────────────────────────────────────────────

    def log_attempt(
        self,
        session: VolumeSession,
        attempt_id: str,
        result: AttemptResult,
        comment: str | None = None,
    ) -> VolumeSession:
        """
        Record the result of one attempt, overwriting any earlier result.

        The comment is replaced too; pass it again to keep it. If the write
        fails the attempt is restored to its previous state.

        Raises:
            PreconditionViolatedError: If the session is finished
            ItemNotFoundError: If the attempt id is not in the session
            SessionNotFoundError: If the session is no longer stored
        """
        self._require_active(session)
        if result not in ATTEMPT_RESULTS:
            raise ValueError(f"Invalid result: {result!r}")
        attempt = session.find_attempt(attempt_id)
        if attempt is None:
            raise ItemNotFoundError(f"Attempt {attempt_id} not found in session {session.id}")

        previous = (attempt.result, attempt.comment, attempt.timestamp)
        attempt.result = result
        attempt.comment = comment or None
        attempt.timestamp = self.clock()
        try:
            self.store.update_session(session)
        except Exception:
            attempt.result, attempt.comment, attempt.timestamp = previous
            raise
        return session

    # ── Training mutations ───────────────────────────────────────────────────

    def toggle_set(self, session: TrainingSession, set_id: str) -> TrainingSet:
        """
        Flip a set between completed and incomplete.

        Hang sets cannot be completed here; the training timer completes
        them after the hang phase. Un-completing a hang set is allowed.

        Raises:
            PreconditionViolatedError: If the session is finished, or on an
                attempt to complete a hang set directly
            ItemNotFoundError: If the set id is not in the session
            SessionNotFoundError: If the session is no longer stored
        """
        self._require_active(session)
        training_set = self._find_set(session, set_id)

        if not training_set.completed and training_set.exercise == "hang":
            raise PreconditionViolatedError(
                "Hang sets are completed by the hang timer, not toggled directly"
            )

        if training_set.completed:
            self._persist_set(session, training_set, completed=False, timestamp=None)
        else:
            self._persist_set(session, training_set, completed=True, timestamp=self.clock())
        return training_set

    def complete_hang_set(self, session: TrainingSession, set_id: str) -> TrainingSet:
        """
        Mark a hang set complete once its hang phase elapsed or was skipped.

        Raises:
            PreconditionViolatedError: If the session is finished or the set
                is not a hang set
            ItemNotFoundError: If the set id is not in the session
            SessionNotFoundError: If the session is no longer stored
        """
        self._require_active(session)
        training_set = self._find_set(session, set_id)
        if training_set.exercise != "hang":
            raise PreconditionViolatedError(f"Set {set_id} is not a hang set")
        if not training_set.completed:
            self._persist_set(session, training_set, completed=True, timestamp=self.clock())
        return training_set

    def set_notes(self, session: TrainingSession, set_id: str, notes: str | None) -> TrainingSet:
        """Replace the notes of one set."""
        self._require_active(session)
        training_set = self._find_set(session, set_id)
        self._persist_set(session, training_set, notes=notes or None)
        return training_set

    # ── Finish / abandon ─────────────────────────────────────────────────────

    def completion_gate(self, session: Session) -> CompletionGate:
        """
        Check whether finishing now needs the user's confirmation.

        Volume: more than 5 unlogged attempts. Training: any incomplete set.
        """
        if isinstance(session, VolumeSession):
            unlogged = unlogged_count(session)
            if unlogged > UNLOGGED_GATE_THRESHOLD:
                return CompletionGate(
                    True,
                    f"You have {unlogged} unlogged boulders. They will count as fails.",
                )
            return CompletionGate(False, "")
        if isinstance(session, TrainingSession):
            done, total = completed_set_count(session), total_set_count(session)
            if done < total:
                return CompletionGate(True, f"Only {done} of {total} sets completed.")
            return CompletionGate(False, "")
        raise TypeError(f"Unknown session variant: {type(session).__name__}")

    def finish(self, session: Session) -> Session:
        """
        Finish an active session unconditionally.

        Callers check completion_gate() first and confirm with the user
        when it fires.

        Raises:
            PreconditionViolatedError: If the session is already finished
            SessionNotFoundError: If the session is no longer stored
        """
        self._require_active(session)
        if isinstance(session, TrainingSession):
            data = session.training_data
            previous_all_done = data.all_sets_completed
            data.all_sets_completed = all(is_exercise_complete(data.sets_for(e)) for e in EXERCISES)
        elif not isinstance(session, VolumeSession):
            raise TypeError(f"Unknown session variant: {type(session).__name__}")

        session.end_time = self.clock()
        session.is_finished = True
        try:
            self.store.update_session(session)
        except Exception:
            session.end_time = None
            session.is_finished = False
            if isinstance(session, TrainingSession):
                session.training_data.all_sets_completed = previous_all_done
            raise
        logger.info("Finished session %s", session.id)
        return session

    def abandon(self, session: Session) -> None:
        """
        Delete an active session outright. Irreversible.

        Raises:
            PreconditionViolatedError: If the session is already finished
            SessionNotFoundError: If the session is no longer stored
        """
        self._require_active(session)
        self.store.delete_session(session.id)
        logger.info("Abandoned session %s", session.id)

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _require_no_active(self) -> None:
        active = self.store.get_current_session()
        if active is not None:
            raise PreconditionViolatedError(
                f"Session {active.id} is still active; finish or abandon it first"
            )

    def _require_active(self, session: Session) -> None:
        """
        Check both the given copy and the stored session are still active.

        A stale copy of a session finished elsewhere must never be written
        back over the finished one.
        """
        if session.is_finished:
            raise PreconditionViolatedError(f"Session {session.id} is already finished")
        if self.store.get_session(session.id).is_finished:
            raise PreconditionViolatedError(
                f"Session {session.id} was finished elsewhere; reload it"
            )

    @staticmethod
    def _find_set(session: TrainingSession, set_id: str) -> TrainingSet:
        training_set = session.training_data.find_set(set_id)
        if training_set is None:
            raise ItemNotFoundError(f"Set {set_id} not found in session {session.id}")
        return training_set

    def _persist_set(self, session: TrainingSession, training_set: TrainingSet, **changes) -> None:
        """Apply field changes to a set and persist; restore the set if the write fails."""
        previous = {name: getattr(training_set, name) for name in changes}
        for name, value in changes.items():
            setattr(training_set, name, value)
        try:
            self.store.update_session(session)
        except Exception:
            for name, value in previous.items():
                setattr(training_set, name, value)
            raise
