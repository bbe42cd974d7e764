"""
Key-value byte stores backing the session store.

Any object with ``get``/``set``/``remove`` works as a store. ``set``
raises QuotaExceededError when the write is rejected for size and
StorageUnavailableError for any other failure.
"""

import errno
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..errors import QuotaExceededError, StorageUnavailableError

logger = logging.getLogger(__name__)

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC), errno.EFBIG}
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class KeyValueStore(Protocol):
    """Byte store with get/set/remove semantics."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """
    In-memory store with an optional total size quota.

    Useful for tests and for running the engine without touching disk.
    """

    def __init__(self, quota_bytes: int | None = None):
        self.quota_bytes = quota_bytes
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        if self.quota_bytes is not None:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(value) > self.quota_bytes:
                raise QuotaExceededError(
                    f"Writing {len(value)} bytes to {key!r} exceeds quota of {self.quota_bytes}"
                )
        self._data[key] = bytes(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore:
    """
    Directory-backed store: one file per key.

    Writes go to a temporary file in the same directory and are moved
    into place with os.replace, so a reader sees either the old or the
    new value.
    """

    def __init__(self, root: str | Path):
        """
        Initialize the file store.

        Args:
            root: Directory that holds one file per key
        """
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        tmp_name: str | None = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            if e.errno in _QUOTA_ERRNOS:
                raise QuotaExceededError(f"No space left writing {path}: {e}") from e
            raise StorageUnavailableError(f"Cannot write {path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Could not remove temp file %s", tmp_name)

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageUnavailableError(f"Cannot remove {path}: {e}") from e
