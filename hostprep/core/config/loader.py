"""
Settings loader — reads hostprep.yml into InstallerSettings.

This is the primary entry point for loading configuration.  It reads
YAML, layers ``HOSTPREP_*`` environment variables and CLI overrides on
top, validates against the Pydantic schema and returns the typed
settings object that every component receives.

Precedence (highest first):
    CLI overrides  >  HOSTPREP_* env vars  >  settings file  >  defaults
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from hostprep.core.errors import ConfigError
from hostprep.core.models.settings import InstallerSettings

logger = logging.getLogger(__name__)

# Default settings filename
SETTINGS_FILE = "hostprep.yml"

# System-wide fallback when nothing is found walking up from cwd
SYSTEM_SETTINGS_PATH = Path("/etc/hostprep.yml")

ENV_PREFIX = "HOSTPREP_"

# Fields whose env value is a list of paths (os.pathsep separated)
_LIST_FIELDS = ("discovery_roots", "discovery_exclude")


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for hostprep.yml starting from the given directory, walking up.

    Falls back to ``/etc/hostprep.yml`` when present.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the settings file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    if SYSTEM_SETTINGS_PATH.is_file():
        return SYSTEM_SETTINGS_PATH
    return None


def read_settings_file(path: Path) -> dict[str, Any]:
    """Parse a settings file into a raw mapping.

    Raises:
        ConfigError: If the file is unreadable or not a YAML mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "hostprep" key or be flat
    section = data.get("hostprep", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected 'hostprep' to be a mapping in {path}")
    return dict(section)


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect ``HOSTPREP_<FIELD>`` variables that name a settings field."""
    env = os.environ if environ is None else environ
    fields = InstallerSettings.model_fields
    overrides: dict[str, Any] = {}

    for key, value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name not in fields:
            continue
        if name in _LIST_FIELDS:
            overrides[name] = [p for p in value.split(os.pathsep) if p]
        else:
            overrides[name] = value

    return overrides


def load_settings(
    path: Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> InstallerSettings:
    """Build the settings object from file, environment and overrides.

    Args:
        path: Explicit settings file. If None, searches upward; a
            missing file is not an error (defaults apply).
        overrides: Values from CLI flags; ``None`` values are ignored.
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        Validated InstallerSettings.

    Raises:
        ConfigError: If the file or the merged values are invalid.
    """
    data: dict[str, Any] = {}

    source = path if path is not None else find_settings_file()
    if source is not None:
        data.update(read_settings_file(source))

    data.update(env_overrides(environ))
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        settings = InstallerSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    logger.info(
        "Settings loaded (source=%s, main_dir=%s)",
        source or "defaults", settings.main_dir,
    )
    return settings
