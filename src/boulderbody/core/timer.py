"""
Training timer protocol: prep, hang and rest phases for a training session.

Time only moves when the caller feeds ``tick(seconds)``; the CLI drives
it from the wall clock and tests drive it with synthetic ticks.

Sequencing:
- First hang set of a session: PREP (5 s) → HANG (7 s) → REST (180 s)
- Later hang sets: HANG → REST
- Pull-up, bench and trap bar sets: completed on toggle → REST
- When a REST that followed a hang ends, the next incomplete hang set
  starts its HANG phase directly.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from .config_loader import AppConfig
from .lifecycle import SessionLifecycle
from .models import Exercise, TrainingSession
from ..errors import ItemNotFoundError, PreconditionViolatedError

logger = logging.getLogger(__name__)


class CountdownState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class Countdown:
    """
    A single countdown: Stopped → Running ⇄ Paused → Stopped.

    ``on_complete`` fires exactly once, on natural expiry or skip.
    cancel() stops without firing.
    """

    def __init__(self, duration: float, on_complete: Callable[[], None]):
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        self.duration = float(duration)
        self.remaining = float(duration)
        self.state = CountdownState.STOPPED
        self._on_complete = on_complete
        self._fired = False

    @property
    def elapsed(self) -> float:
        return self.duration - self.remaining

    @property
    def is_paused(self) -> bool:
        return self.state is CountdownState.PAUSED

    def start(self) -> None:
        if self._fired:
            raise PreconditionViolatedError("Countdown already completed")
        if self.state is CountdownState.STOPPED:
            self.state = CountdownState.RUNNING

    def tick(self, seconds: float) -> None:
        """Advance a running countdown; no effect while paused or stopped."""
        if seconds < 0:
            raise ValueError(f"tick must be non-negative, got {seconds}")
        if self.state is not CountdownState.RUNNING:
            return
        self.remaining = max(0.0, self.remaining - seconds)
        if self.remaining == 0.0:
            self._complete()

    def pause(self) -> None:
        if self.state is CountdownState.RUNNING:
            self.state = CountdownState.PAUSED

    def resume(self) -> None:
        if self.state is CountdownState.PAUSED:
            self.state = CountdownState.RUNNING

    def skip(self) -> None:
        """Finish now, with the same effect as natural expiry."""
        if self.state is not CountdownState.STOPPED:
            self.remaining = 0.0
            self._complete()

    def cancel(self) -> None:
        self.state = CountdownState.STOPPED
        self._fired = True

    def _complete(self) -> None:
        self.state = CountdownState.STOPPED
        if not self._fired:
            self._fired = True
            self._on_complete()


class Phase(str, Enum):
    IDLE = "idle"
    PREP = "prep"
    HANG = "hang"
    REST = "rest"


PhaseListener = Callable[[Phase, Optional[str]], None]


class TrainingTimer:
    """
    Sequences prep/hang/rest countdowns for one training session.

    Hang sets are completed through complete_hang_set() once their hang
    phase ends; every other set is completed by a plain toggle.
    """

    def __init__(
        self,
        lifecycle: SessionLifecycle,
        session: TrainingSession,
        config: AppConfig | None = None,
        on_phase_change: PhaseListener | None = None,
    ):
        if not isinstance(session, TrainingSession):
            raise TypeError("TrainingTimer needs a training session")
        self.lifecycle = lifecycle
        self.session = session
        self.config = config or lifecycle.config
        self.on_phase_change = on_phase_change

        self.phase = Phase.IDLE
        self.current_set_id: str | None = None
        self._countdown: Countdown | None = None
        self._rest_after: Exercise | None = None
        # Prep is owed only before the first hang of the session
        self._prep_done = any(s.completed for s in session.training_data.hang_sets)

    # ── State ────────────────────────────────────────────────────────────────

    @property
    def remaining(self) -> float:
        return self._countdown.remaining if self._countdown else 0.0

    @property
    def is_paused(self) -> bool:
        return self._countdown is not None and self._countdown.is_paused

    def next_incomplete_hang(self) -> str | None:
        for s in self.session.training_data.hang_sets:
            if not s.completed:
                return s.id
        return None

    # ── Commands ─────────────────────────────────────────────────────────────

    def start_hang(self, set_id: str | None = None) -> None:
        """
        Begin the hang protocol for a set (default: next incomplete hang).

        Raises:
            PreconditionViolatedError: If another phase is running, the set
                is already complete, or no hang set is left
            ItemNotFoundError: If the set id is unknown
        """
        self._require_idle()
        if set_id is None:
            set_id = self.next_incomplete_hang()
            if set_id is None:
                raise PreconditionViolatedError("All hang sets are already complete")

        training_set = self.session.training_data.find_set(set_id)
        if training_set is None:
            raise ItemNotFoundError(f"Set {set_id} not found in session {self.session.id}")
        if training_set.exercise != "hang":
            raise PreconditionViolatedError(f"Set {set_id} is not a hang set")
        if training_set.completed:
            raise PreconditionViolatedError(f"Hang set {training_set.order} is already complete")

        self.current_set_id = set_id
        if not self._prep_done:
            self._enter(Phase.PREP, self.config.prep_seconds, self._prep_finished)
        else:
            self._enter(Phase.HANG, self.config.hang_seconds, self._hang_finished)

    def toggle_set(self, set_id: str) -> None:
        """
        Toggle a set, routing hang completion through the hang protocol.

        Completing a pull-up, bench or trap bar set starts a rest phase.
        """
        training_set = self.session.training_data.find_set(set_id)
        if training_set is None:
            raise ItemNotFoundError(f"Set {set_id} not found in session {self.session.id}")

        if training_set.exercise == "hang" and not training_set.completed:
            self.start_hang(set_id)
            return

        if not training_set.completed:
            self._require_idle()
        self.lifecycle.toggle_set(self.session, set_id)
        if training_set.completed:
            self._start_rest(training_set.exercise)

    def tick(self, seconds: float) -> None:
        """Feed elapsed time to the running countdown."""
        if self._countdown is not None:
            self._countdown.tick(seconds)

    def pause(self) -> None:
        """Pause the rest countdown; elapsed time is kept."""
        if self.phase is not Phase.REST:
            raise PreconditionViolatedError("Only the rest phase can be paused")
        self._countdown.pause()  # type: ignore[union-attr]
        self._notify()

    def resume(self) -> None:
        if self.phase is not Phase.REST:
            raise PreconditionViolatedError("Only the rest phase can be resumed")
        self._countdown.resume()  # type: ignore[union-attr]
        self._notify()

    def skip(self) -> None:
        """Skip the current phase with the same effect as natural expiry."""
        if self._countdown is None:
            raise PreconditionViolatedError("No phase is running")
        self._countdown.skip()

    def cancel(self) -> None:
        """Tear down any running countdown without side effects."""
        if self._countdown is not None:
            self._countdown.cancel()
        self._countdown = None
        self._rest_after = None
        self.current_set_id = None
        if self.phase is not Phase.IDLE:
            self.phase = Phase.IDLE
            self._notify()

    # ── Phase transitions ────────────────────────────────────────────────────

    def _enter(self, phase: Phase, duration: float, on_complete: Callable[[], None]) -> None:
        self.phase = phase
        self._countdown = Countdown(duration, on_complete)
        self._countdown.start()
        logger.debug("Timer phase %s (%.0fs) for set %s", phase.value, duration, self.current_set_id)
        self._notify()

    def _prep_finished(self) -> None:
        self._prep_done = True
        self._enter(Phase.HANG, self.config.hang_seconds, self._hang_finished)

    def _hang_finished(self) -> None:
        set_id = self.current_set_id
        if set_id is None:
            self.cancel()
            raise PreconditionViolatedError("Hang phase ended without a hang set")
        try:
            self.lifecycle.complete_hang_set(self.session, set_id)
        except Exception:
            # back to idle with the set still incomplete
            self.cancel()
            raise
        self._start_rest("hang")

    def _start_rest(self, after: Exercise) -> None:
        self._rest_after = after
        self._enter(Phase.REST, self.config.rest_seconds, self._rest_finished)

    def _rest_finished(self) -> None:
        after = self._rest_after
        self._countdown = None
        self._rest_after = None
        self.current_set_id = None
        self.phase = Phase.IDLE

        next_hang = self.next_incomplete_hang() if after == "hang" else None
        if next_hang is not None:
            self.current_set_id = next_hang
            self._enter(Phase.HANG, self.config.hang_seconds, self._hang_finished)
        else:
            self._notify()

    def _require_idle(self) -> None:
        if self.phase is not Phase.IDLE:
            raise PreconditionViolatedError(f"Timer is busy ({self.phase.value} phase)")

    def _notify(self) -> None:
        if self.on_phase_change is not None:
            self.on_phase_change(self.phase, self.current_set_id)
