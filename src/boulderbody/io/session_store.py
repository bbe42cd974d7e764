"""
Versioned session storage on top of a key-value byte store.

Handles reading, migrating, writing and querying the session collection,
plus the theme preference.
"""

import logging
import os
from pathlib import Path

from ..core.config import CURRENT_SCHEMA_VERSION, DEFAULT_THEME, SESSIONS_KEY, THEME_KEY
from ..core.models import Session, TrainingSession, VolumeSession
from ..errors import CorruptDataError, SessionNotFoundError, StorageError
from .kv_store import FileKeyValueStore, KeyValueStore
from .migrations import migrate_payload
from .serializers import (
    decode_payload,
    encode_payload,
    payload_to_sessions,
    sessions_to_payload,
)

logger = logging.getLogger(__name__)

THEMES = ("light", "dark")


class SessionStore:
    """
    Manages the session collection stored under a single key.

    The stored value is ``{"version": int, "sessions": [...]}``. Every
    write replaces the whole collection. The store persists whatever it
    is given; lifecycle rules live in SessionLifecycle.
    """

    def __init__(self, kv: KeyValueStore):
        """
        Initialize the session store.

        Args:
            kv: Backing byte store
        """
        self.kv = kv

    # ── Reads ────────────────────────────────────────────────────────────────

    def get_all_sessions(self) -> list[Session]:
        """
        Load all sessions, migrating old payloads.

        Missing data reads as an empty list. Corrupt data is logged and
        also reads as an empty list. A migrated payload is written back
        immediately; if that write fails the migrated sessions are still
        returned.

        Returns:
            Sessions in stored order
        """
        raw = self.kv.get(SESSIONS_KEY)
        if raw is None:
            return []

        try:
            payload, migrated = migrate_payload(decode_payload(raw))
            sessions = payload_to_sessions(payload)
        except CorruptDataError:
            logger.exception("Error loading sessions from storage; treating as empty")
            return []

        if migrated:
            try:
                self.kv.set(SESSIONS_KEY, encode_payload(payload))
                logger.info("Migration to v%d complete", CURRENT_SCHEMA_VERSION)
            except StorageError as e:
                logger.warning("Failed to save migrated data: %s", e)

        return sessions

    def get_session(self, session_id: str) -> Session:
        """
        Load one session by id.

        Raises:
            SessionNotFoundError: If no stored session has this id
        """
        for s in self.get_all_sessions():
            if s.id == session_id:
                return s
        raise SessionNotFoundError(session_id)

    def get_current_session(self) -> Session | None:
        """Return the first unfinished session, or None."""
        for s in self.get_all_sessions():
            if not s.is_finished:
                return s
        return None

    def get_last_volume_session(self) -> VolumeSession | None:
        """Most recent finished volume session by date (first stored wins ties)."""
        finished = [
            s for s in self.get_all_sessions() if isinstance(s, VolumeSession) and s.is_finished
        ]
        return _latest(finished)

    def get_last_training_session(self) -> TrainingSession | None:
        """Most recent finished training session by date (first stored wins ties)."""
        finished = [
            s for s in self.get_all_sessions() if isinstance(s, TrainingSession) and s.is_finished
        ]
        return _latest(finished)

    # ── Writes ───────────────────────────────────────────────────────────────

    def save_all_sessions(self, sessions: list[Session]) -> None:
        """
        Replace the stored collection.

        Raises:
            QuotaExceededError: If the store rejects the write for size
            StorageUnavailableError: If the store rejects the write otherwise
        """
        self.kv.set(SESSIONS_KEY, encode_payload(sessions_to_payload(sessions)))

    def save_session(self, session: Session) -> None:
        """Append a new session to the collection."""
        sessions = self.get_all_sessions()
        sessions.append(session)
        self.save_all_sessions(sessions)

    def update_session(self, session: Session) -> None:
        """
        Replace the stored session with the same id.

        Raises:
            SessionNotFoundError: If no stored session has this id
        """
        sessions = self.get_all_sessions()
        for i, existing in enumerate(sessions):
            if existing.id == session.id:
                sessions[i] = session
                self.save_all_sessions(sessions)
                return
        raise SessionNotFoundError(session.id)

    def delete_session(self, session_id: str) -> None:
        """
        Remove the stored session with this id.

        Raises:
            SessionNotFoundError: If no stored session has this id
        """
        sessions = self.get_all_sessions()
        remaining = [s for s in sessions if s.id != session_id]
        if len(remaining) == len(sessions):
            raise SessionNotFoundError(session_id)
        self.save_all_sessions(remaining)

    # ── Theme ────────────────────────────────────────────────────────────────

    def get_theme(self) -> str:
        """Return "light" or "dark"; defaults to dark when unset or unknown."""
        raw = self.kv.get(THEME_KEY)
        if raw is None:
            return DEFAULT_THEME
        theme = raw.decode("utf-8", errors="replace").strip()
        return theme if theme in THEMES else DEFAULT_THEME

    def set_theme(self, theme: str) -> None:
        """Persist the theme preference."""
        if theme not in THEMES:
            raise ValueError(f"Invalid theme: {theme!r}. Must be 'light' or 'dark'")
        self.kv.set(THEME_KEY, theme.encode("utf-8"))


def _latest(sessions: list) -> Session | None:
    if not sessions:
        return None
    # max() keeps the first maximal element, so ties resolve by stored order
    return max(sessions, key=lambda s: s.date)


def get_default_data_dir() -> Path:
    """
    Get the default data directory.

    ``BOULDERBODY_HOME`` overrides ``~/.boulderbody``.
    """
    env = os.environ.get("BOULDERBODY_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".boulderbody"


def get_default_store(data_dir: Path | None = None) -> SessionStore:
    """
    Get a file-backed SessionStore.

    Args:
        data_dir: Directory for storage files (default: get_default_data_dir())

    Returns:
        SessionStore instance
    """
    return SessionStore(FileKeyValueStore(data_dir or get_default_data_dir()))
