"""
Configuration constants for the session model and recommendation rules.

All adjustable parameters are centralized here. Values that users may
override live in defaults.yaml and are loaded by config_loader.
"""

from typing import Final

# =============================================================================
# VOLUME SESSIONS
# =============================================================================

DEFAULT_LEVEL: Final[int] = 5  # Recommended level when there is no history
DEFAULT_BOULDER_COUNT: Final[int] = 20  # Recommended boulders when there is no history
MIN_LEVEL: Final[int] = 1  # Recommended level never drops below this

LOW_FAIL_RATE_PCT: Final[float] = 25.0  # Fail rate below this → +1 level
HIGH_FAIL_RATE_PCT: Final[float] = 75.0  # Fail rate above this → -1 level

DECAY_SHORT_BREAK_DAYS: Final[int] = 8  # 8..14 days off → -1 level
DECAY_LONG_BREAK_DAYS: Final[int] = 14  # more than 14 days off → -2 levels

UNLOGGED_GATE_THRESHOLD: Final[int] = 5  # More unlogged attempts than this needs confirmation

# =============================================================================
# TRAINING SESSIONS
# =============================================================================

SETS_PER_EXERCISE: Final[int] = 5
WEIGHT_INCREMENT_KG: Final[float] = 2.5

DEFAULT_HANG_WEIGHT_KG: Final[float] = 0.0  # bodyweight only
DEFAULT_PULLUP_WEIGHT_KG: Final[float] = 0.0  # bodyweight only
DEFAULT_BENCH_WEIGHT_KG: Final[float] = 10.0
DEFAULT_TRAPBAR_WEIGHT_KG: Final[float] = 20.0

# =============================================================================
# TRAINING TIMER (seconds)
# =============================================================================

PREP_SECONDS: Final[float] = 5.0
HANG_SECONDS: Final[float] = 7.0
REST_SECONDS: Final[float] = 180.0

# =============================================================================
# STORAGE
# =============================================================================

CURRENT_SCHEMA_VERSION: Final[int] = 2
SESSIONS_KEY: Final[str] = "boulderbody_sessions"
THEME_KEY: Final[str] = "boulderbody_theme"
DEFAULT_THEME: Final[str] = "dark"
