"""Persisted trace defaults stored as a small JSON file."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from ..trace.models import ProbeOptions
from .logging import get_logger

logger = get_logger("config")

CONFIG_DIR = Path.home() / ".config" / "hoptrace"
CONFIG_ENV = "HOPTRACE_CONFIG"


def config_file() -> Path:
    """Location of the config file, ``$HOPTRACE_CONFIG`` wins when set."""
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override)
    return CONFIG_DIR / "config.json"


def _read_raw() -> dict:
    path = config_file()
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(raw, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return {}
    return raw


def load_options(**overrides: Any) -> ProbeOptions:
    """Build probe options from stored defaults plus non-None overrides.

    Stored values that no longer validate are dropped with a warning so a
    stale config file never blocks a trace.
    """
    stored = {k: v for k, v in _read_raw().items() if k in ProbeOptions.model_fields}
    try:
        base = ProbeOptions(**stored)
    except ValidationError as e:
        logger.warning("Stored defaults are invalid, using built-ins: %s", e)
        base = ProbeOptions()
    updates = {k: v for k, v in overrides.items() if v is not None}
    return ProbeOptions(**{**base.model_dump(), **updates})


def set_default(key: str, value: Any) -> ProbeOptions:
    """Validate and persist one default. Raises ValueError on bad input."""
    if key not in ProbeOptions.model_fields:
        known = ", ".join(sorted(ProbeOptions.model_fields))
        raise ValueError(f"Unknown setting: {key}. Known settings: {known}")
    raw = _read_raw()
    raw[key] = value
    try:
        options = ProbeOptions(
            **{k: v for k, v in raw.items() if k in ProbeOptions.model_fields}
        )
    except ValidationError as e:
        raise ValueError(str(e)) from e

    path = config_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    raw[key] = getattr(options, key)
    path.write_text(json.dumps(raw, indent=2))
    logger.debug("Saved %s=%s to %s", key, raw[key], path)
    return options


def reset_defaults() -> Optional[Path]:
    """Remove the config file, returning its path if one existed."""
    path = config_file()
    if path.exists():
        path.unlink()
        return path
    return None
