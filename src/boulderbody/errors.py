"""
Error taxonomy for boulderbody.

Every error carries a ``user_message`` suitable for showing in the CLI.
CorruptDataError never leaves the session store; it is recovered there.
"""


class BoulderBodyError(Exception):
    """Base class for all boulderbody errors."""

    user_message = "Something went wrong."


class SessionNotFoundError(BoulderBodyError):
    """A session id referenced by an operation is no longer stored."""

    user_message = "Session no longer exists. Reload your sessions and try again."

    def __init__(self, session_id: str):
        super().__init__(f"Session with ID {session_id} not found")
        self.session_id = session_id


class ItemNotFoundError(BoulderBodyError, KeyError):
    """An attempt or set id does not exist inside the given session."""

    user_message = "No such attempt or set in this session."

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class StorageError(BoulderBodyError):
    """A write to the key-value store was rejected."""


class QuotaExceededError(StorageError):
    """The store rejected a write because it is full."""

    user_message = "Storage quota exceeded. Please delete old sessions to free up space."


class StorageUnavailableError(StorageError):
    """The store rejected a write for any reason other than size."""

    user_message = "Failed to save session data. Storage may be unavailable."


class CorruptDataError(BoulderBodyError):
    """Stored payload is unparsable or structurally invalid."""

    user_message = "Stored session data is corrupt."


class PreconditionViolatedError(BoulderBodyError):
    """The caller broke a lifecycle contract (e.g. starting a second active session)."""

    user_message = "That action is not allowed in the current session state."
