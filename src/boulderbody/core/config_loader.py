"""
YAML → typed config loader.

Loads user-adjustable settings from defaults.yaml (bundled with the
package) and optionally merges overrides from <data dir>/config.yaml.

Usage:
    from boulderbody.core.config_loader import load_app_config
    cfg = load_app_config(data_dir)
    cfg.max_level  # None = no upper clamp

If the user override file has parse errors, a warning is logged and the
file is ignored.
"""

from __future__ import annotations

import importlib.resources
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .config import HANG_SECONDS, PREP_SECONDS, REST_SECONDS

logger = logging.getLogger(__name__)

USER_CONFIG_NAME = "config.yaml"


@dataclass(frozen=True)
class AppConfig:
    """Settings that users may override."""

    max_level: int | None = None
    prep_seconds: float = PREP_SECONDS
    hang_seconds: float = HANG_SECONDS
    rest_seconds: float = REST_SECONDS

    def __post_init__(self) -> None:
        if self.max_level is not None and self.max_level < 1:
            raise ValueError(f"max_level must be at least 1, got {self.max_level}")
        for name in ("prep_seconds", "hang_seconds", "rest_seconds"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_text(text: str, source: str) -> dict[str, Any]:
    """Parse YAML text; a non-mapping document is treated as empty."""
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{source}: top level must be a mapping")
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return value


def _to_app_config(raw: dict[str, Any]) -> AppConfig:
    volume = _section(raw, "volume")
    timer = _section(raw, "timer")
    max_level = volume.get("max_level")
    return AppConfig(
        max_level=int(max_level) if max_level is not None else None,
        prep_seconds=float(timer.get("prep_seconds", PREP_SECONDS)),
        hang_seconds=float(timer.get("hang_seconds", HANG_SECONDS)),
        rest_seconds=float(timer.get("rest_seconds", REST_SECONDS)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_bundled_config() -> dict[str, Any]:
    """Return the parsed bundled defaults.yaml."""
    text = importlib.resources.files("boulderbody").joinpath("defaults.yaml").read_text(
        encoding="utf-8"
    )
    return _load_yaml_text(text, "defaults.yaml")


def load_app_config(data_dir: Path | None = None) -> AppConfig:
    """
    Load and merge configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/boulderbody/defaults.yaml
    2. User override at <data_dir>/config.yaml

    Args:
        data_dir: Directory holding the user's config.yaml, or None

    Returns:
        AppConfig built from the merged settings
    """
    config = load_bundled_config()

    if data_dir is not None:
        user_path = Path(data_dir) / USER_CONFIG_NAME
        if user_path.exists():
            try:
                user_cfg = _load_yaml_text(user_path.read_text(encoding="utf-8"), str(user_path))
                candidate = _deep_merge(config, user_cfg)
                _to_app_config(candidate)
            except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
                logger.warning("Ignoring invalid config file %s: %s", user_path, e)
            else:
                config = candidate

    return _to_app_config(config)
