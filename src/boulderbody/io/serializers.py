"""
JSON serialization for session models.

Handles conversion between dataclasses and JSON-compatible dicts using
the camelCase wire format of the stored schema. Optional fields are
omitted when absent; on read both omission and explicit null are accepted.
"""

import json
from datetime import datetime, timezone
from typing import Any

from ..core.config import (
    CURRENT_SCHEMA_VERSION,
    DEFAULT_BENCH_WEIGHT_KG,
    DEFAULT_HANG_WEIGHT_KG,
    DEFAULT_PULLUP_WEIGHT_KG,
    DEFAULT_TRAPBAR_WEIGHT_KG,
)
from ..core.models import (
    ATTEMPT_RESULTS,
    EXERCISES,
    BoulderAttempt,
    Session,
    TrainingData,
    TrainingSession,
    TrainingSet,
    VolumeSession,
)
from ..errors import CorruptDataError

# Wire keys for each exercise: (weight key, sets key)
_EXERCISE_KEYS: dict[str, tuple[str, str]] = {
    "hang": ("hangWeight", "hangSets"),
    "pullup": ("pullupWeight", "pullupSets"),
    "bench": ("benchWeight", "benchSets"),
    "trapBar": ("trapBarWeight", "trapBarSets"),
}

_DEFAULT_WEIGHTS: dict[str, float] = {
    "hang": DEFAULT_HANG_WEIGHT_KG,
    "pullup": DEFAULT_PULLUP_WEIGHT_KG,
    "bench": DEFAULT_BENCH_WEIGHT_KG,
    "trapBar": DEFAULT_TRAPBAR_WEIGHT_KG,
}


class ValidationError(CorruptDataError):
    """Raised when stored data fails validation."""

    pass


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def format_instant(value: datetime) -> str:
    """Serialize an instant as an ISO-8601 string (UTC offset kept)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_instant(value: Any, name: str) -> datetime:
    """
    Parse an ISO-8601 instant.

    Accepts a trailing "Z" and naive strings (read as UTC).

    Raises:
        ValidationError: If the value is not a valid ISO-8601 string
    """
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO-8601 string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_instant(data: dict[str, Any], key: str) -> datetime | None:
    value = data.get(key)
    return parse_instant(value, key) if value is not None else None


def _optional_text(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string, got {value!r}")
    return value


def _require_dict(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _require_list(data: Any, what: str) -> list:
    if not isinstance(data, list):
        raise ValidationError(f"{what} must be a list, got {type(data).__name__}")
    return data


def _require_int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{key} must be an integer, got {value!r}")
    return int(value)


def _weight(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{key} must be a number, got {value!r}")
    return float(value)


def _drop_none(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


# ---------------------------------------------------------------------------
# Attempts and sets
# ---------------------------------------------------------------------------


def attempt_to_dict(attempt: BoulderAttempt) -> dict[str, Any]:
    """Convert BoulderAttempt to JSON-compatible dict."""
    return _drop_none({
        "id": attempt.id,
        "order": attempt.order,
        "result": attempt.result,
        "comment": attempt.comment,
        "timestamp": format_instant(attempt.timestamp) if attempt.timestamp else None,
    })


def dict_to_attempt(data: dict[str, Any]) -> BoulderAttempt:
    """
    Convert dict to BoulderAttempt.

    Raises:
        ValidationError: If data is invalid
    """
    data = _require_dict(data, "attempt")
    result = data.get("result")
    if result is not None and result not in ATTEMPT_RESULTS:
        raise ValidationError(f"Invalid attempt result: {result!r}")
    try:
        return BoulderAttempt(
            id=str(data["id"]),
            order=_require_int(data, "order"),
            result=result,
            comment=_optional_text(data, "comment"),
            timestamp=_optional_instant(data, "timestamp"),
        )
    except (KeyError, ValueError) as e:
        raise ValidationError(f"Invalid attempt {data.get('id')!r}: {e}") from e


def set_to_dict(training_set: TrainingSet) -> dict[str, Any]:
    """Convert TrainingSet to JSON-compatible dict."""
    return _drop_none({
        "id": training_set.id,
        "order": training_set.order,
        "exercise": training_set.exercise,
        "completed": training_set.completed,
        "timestamp": format_instant(training_set.timestamp) if training_set.timestamp else None,
        "notes": training_set.notes,
    })


def dict_to_set(data: dict[str, Any], exercise: str) -> TrainingSet:
    """
    Convert dict to TrainingSet.

    Args:
        data: Dict representation
        exercise: Exercise of the list the set was stored under

    Raises:
        ValidationError: If data is invalid
    """
    data = _require_dict(data, "set")
    stored_exercise = data.get("exercise", exercise)
    if stored_exercise != exercise:
        raise ValidationError(f"{stored_exercise!r} set stored under {exercise!r}")
    try:
        return TrainingSet(
            id=str(data["id"]),
            order=_require_int(data, "order"),
            exercise=exercise,  # type: ignore[arg-type]
            completed=bool(data.get("completed", False)),
            timestamp=_optional_instant(data, "timestamp"),
            notes=_optional_text(data, "notes"),
        )
    except (KeyError, ValueError) as e:
        raise ValidationError(f"Invalid set {data.get('id')!r}: {e}") from e


def training_data_to_dict(training_data: TrainingData) -> dict[str, Any]:
    """Convert TrainingData to JSON-compatible dict."""
    d: dict[str, Any] = {}
    for exercise in EXERCISES:
        weight_key, sets_key = _EXERCISE_KEYS[exercise]
        d[weight_key] = training_data.weight_for(exercise)  # type: ignore[arg-type]
        d[sets_key] = [set_to_dict(s) for s in training_data.sets_for(exercise)]  # type: ignore[arg-type]
    d["allSetsCompleted"] = training_data.all_sets_completed
    return d


def dict_to_training_data(data: dict[str, Any]) -> TrainingData:
    """
    Convert dict to TrainingData.

    Bench and trap bar were added later: missing weights fall back to
    their defaults and missing set lists are read as empty.

    Raises:
        ValidationError: If data is invalid
    """
    data = _require_dict(data, "trainingData")
    weights: dict[str, float] = {}
    sets: dict[str, list[TrainingSet]] = {}
    for exercise in EXERCISES:
        weight_key, sets_key = _EXERCISE_KEYS[exercise]
        weights[exercise] = _weight(data, weight_key, _DEFAULT_WEIGHTS[exercise])
        raw_sets = data.get(sets_key)
        raw_sets = [] if raw_sets is None else _require_list(raw_sets, sets_key)
        sets[exercise] = [dict_to_set(s, exercise) for s in raw_sets]

    try:
        return TrainingData(
            hang_weight=weights["hang"],
            pullup_weight=weights["pullup"],
            bench_weight=weights["bench"],
            trapbar_weight=weights["trapBar"],
            hang_sets=sets["hang"],
            pullup_sets=sets["pullup"],
            bench_sets=sets["bench"],
            trapbar_sets=sets["trapBar"],
            all_sets_completed=bool(data.get("allSetsCompleted", False)),
        )
    except ValueError as e:
        raise ValidationError(f"Invalid trainingData: {e}") from e


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def _common_to_dict(session: Session) -> dict[str, Any]:
    return _drop_none({
        "id": session.id,
        "sessionType": session.session_type,
        "date": format_instant(session.date),
        "startTime": format_instant(session.start_time),
        "endTime": format_instant(session.end_time) if session.end_time else None,
        "isFinished": session.is_finished,
    })


def session_to_dict(session: Session) -> dict[str, Any]:
    """
    Convert a session of either variant to JSON-compatible dict.

    Args:
        session: VolumeSession or TrainingSession

    Returns:
        Dict representation with a ``sessionType`` discriminator
    """
    d = _common_to_dict(session)
    if isinstance(session, VolumeSession):
        d["targetLevel"] = session.target_level
        d["boulderCount"] = session.boulder_count
        d["attempts"] = [attempt_to_dict(a) for a in session.attempts]
    elif isinstance(session, TrainingSession):
        d["trainingData"] = training_data_to_dict(session.training_data)
    else:
        raise TypeError(f"Unknown session variant: {type(session).__name__}")
    return d


def dict_to_session(data: dict[str, Any]) -> Session:
    """
    Convert dict to a VolumeSession or TrainingSession.

    Raises:
        ValidationError: If data is invalid or the discriminator is unknown
    """
    data = _require_dict(data, "session")
    session_type = data.get("sessionType")
    if "id" not in data:
        raise ValidationError("session is missing 'id'")

    session_id = str(data["id"])
    try:
        date = parse_instant(data.get("date"), "date")
        start_time = parse_instant(data.get("startTime", data.get("date")), "startTime")
        end_time = _optional_instant(data, "endTime")
        is_finished = bool(data.get("isFinished", False))

        if session_type == "volume":
            attempts = [dict_to_attempt(a) for a in _require_list(data.get("attempts"), "attempts")]
            return VolumeSession(
                id=session_id,
                date=date,
                start_time=start_time,
                target_level=_require_int(data, "targetLevel"),
                boulder_count=_require_int(data, "boulderCount"),
                attempts=attempts,
                end_time=end_time,
                is_finished=is_finished,
            )
        if session_type == "training":
            return TrainingSession(
                id=session_id,
                date=date,
                start_time=start_time,
                training_data=dict_to_training_data(data.get("trainingData")),
                end_time=end_time,
                is_finished=is_finished,
            )
    except ValueError as e:
        raise ValidationError(f"Invalid session {session_id!r}: {e}") from e

    raise ValidationError(f"Invalid sessionType: {session_type!r}. Must be 'volume' or 'training'")


def sessions_to_payload(sessions: list[Session]) -> dict[str, Any]:
    """Build the versioned storage payload for a session collection."""
    return {
        "version": CURRENT_SCHEMA_VERSION,
        "sessions": [session_to_dict(s) for s in sessions],
    }


def payload_to_sessions(payload: dict[str, Any]) -> list[Session]:
    """
    Deserialize every session in a (current-version) payload.

    Raises:
        ValidationError: If the payload or any session is invalid
    """
    payload = _require_dict(payload, "payload")
    raw_sessions = _require_list(payload.get("sessions"), "sessions")
    sessions = [dict_to_session(s) for s in raw_sessions]

    seen: set[str] = set()
    for s in sessions:
        if s.id in seen:
            raise ValidationError(f"Duplicate session id: {s.id}")
        seen.add(s.id)
    return sessions


def encode_payload(payload: dict[str, Any]) -> bytes:
    """Encode a payload as compact UTF-8 JSON."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_payload(raw: bytes) -> dict[str, Any]:
    """
    Decode stored bytes into a payload dict.

    Raises:
        ValidationError: If the bytes are not a JSON object
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    return _require_dict(data, "payload")


def session_to_json(session: Session) -> str:
    """Serialize one session to a JSON string."""
    return json.dumps(session_to_dict(session), separators=(",", ":"), ensure_ascii=False)


def json_to_session(text: str) -> Session:
    """
    Deserialize one session from a JSON string.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    return dict_to_session(data)
