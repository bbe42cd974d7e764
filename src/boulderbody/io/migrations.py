"""
Schema migrations for the stored session payload.

Each step upgrades a raw payload dict from one version to the next.
New schema changes append a step to MIGRATIONS; nothing else changes.
A payload without a ``version`` field is read as version 1.
"""

import logging
from typing import Any, Callable

from ..core.config import CURRENT_SCHEMA_VERSION
from .serializers import ValidationError

logger = logging.getLogger(__name__)

RawPayload = dict[str, Any]
Migration = Callable[[RawPayload], RawPayload]

LEGACY_VERSION = 1


def migrate_v1_to_v2(payload: RawPayload) -> RawPayload:
    """
    v1 predates training sessions: every session is a volume session.

    Sessions lacking a ``sessionType`` are tagged "volume".
    """
    sessions = payload.get("sessions")
    if not isinstance(sessions, list):
        raise ValidationError("v1 payload has no sessions list")

    migrated = []
    for s in sessions:
        if not isinstance(s, dict):
            raise ValidationError(f"v1 session must be an object, got {type(s).__name__}")
        migrated.append({**s, "sessionType": s.get("sessionType") or "volume"})

    return {**payload, "version": 2, "sessions": migrated}


# (from_version, step) in ascending order
MIGRATIONS: list[tuple[int, Migration]] = [
    (1, migrate_v1_to_v2),
]


def stored_version(payload: RawPayload) -> int:
    """
    Read the schema version of a raw payload.

    Raises:
        ValidationError: If the version field is present but not a positive int
    """
    version = payload.get("version")
    if version is None or version == 0:
        return LEGACY_VERSION
    if isinstance(version, bool) or not isinstance(version, int) or version < 0:
        raise ValidationError(f"Invalid schema version: {version!r}")
    return version


def migrate_payload(payload: RawPayload) -> tuple[RawPayload, bool]:
    """
    Apply migration steps until the payload reaches the current version.

    Already-current payloads are returned untouched, so running this on
    migrated data is a no-op. The decision is made from the stored
    version only.

    Args:
        payload: Raw decoded payload

    Returns:
        (payload at current version, whether any step was applied)

    Raises:
        ValidationError: If a step cannot upgrade the payload
    """
    version = stored_version(payload)
    if version > CURRENT_SCHEMA_VERSION:
        logger.warning(
            "Stored schema version %d is newer than supported version %d; reading as-is",
            version,
            CURRENT_SCHEMA_VERSION,
        )
        return payload, False

    migrated = False
    for from_version, step in MIGRATIONS:
        if version == from_version and version < CURRENT_SCHEMA_VERSION:
            logger.info("Migrating session storage from v%d to v%d", from_version, from_version + 1)
            payload = step(payload)
            version = stored_version(payload)
            migrated = True

    if version != CURRENT_SCHEMA_VERSION:
        raise ValidationError(f"No migration path from schema version {version}")

    return payload, migrated
