"""
YAML → settings loader.

Loads application settings from lifttrack.yaml (bundled with the package)
and optionally merges user overrides from ~/.lifttrack/config.yaml.

Usage:
    from lifttrack.core.engine.config_loader import load_settings
    settings = load_settings()
    window = settings.get("consistency", {}).get("recent_sessions", 10)

If the user override file exists but has parse errors, a warning is logged
and the file is ignored.  The LIFTTRACK_DB environment variable always
wins over ``database.path``.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML mapping.

    Raises:
        yaml.YAMLError: If the file is not valid YAML
    """
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path:
    """Return the path to the bundled lifttrack.yaml."""
    ref = importlib.resources.files("lifttrack").joinpath("lifttrack.yaml")
    return Path(str(ref))


def get_user_home() -> Path:
    """Settings directory: $LIFTTRACK_HOME, else ~/.lifttrack."""
    override = os.environ.get("LIFTTRACK_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".lifttrack"


def get_user_yaml_path() -> Path | None:
    """Return the user config.yaml if it exists, else None."""
    p = get_user_home() / "config.yaml"
    return p if p.exists() else None


def load_settings() -> dict[str, Any]:
    """
    Load and merge settings from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/lifttrack/lifttrack.yaml
    2. User override at ~/.lifttrack/config.yaml
    3. LIFTTRACK_DB environment variable for ``database.path``

    Returns:
        Merged dict of settings sections
    """
    settings = _load_yaml_file(get_bundled_yaml_path())

    user = get_user_yaml_path()
    if user is not None:
        try:
            user_cfg = _load_yaml_file(user)
        except yaml.YAMLError as e:
            logger.warning("Ignoring unreadable settings file %s: %s", user, e)
            user_cfg = {}
        if user_cfg:
            settings = _deep_merge(settings, user_cfg)

    db_override = os.environ.get("LIFTTRACK_DB")
    if db_override:
        settings = _deep_merge(settings, {"database": {"path": db_override}})

    return settings
