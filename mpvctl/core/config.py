from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from mpvctl.core.paths import config_dir, default_socket

logger = logging.getLogger(__name__)

ENV_PREFIX = "MPVCTL_"


def defaults() -> dict[str, Any]:
    return {
        "socket": str(default_socket()),
        "timeout": 5.0,
        "max_lines": 1000,
        "log_level": "WARNING",
    }


def config_path() -> Path:
    return config_dir() / "mpvctl.json"


def ensure_exists():
    d = config_dir()
    d.mkdir(parents=True, exist_ok=True)
    p = config_path()

    if not p.exists():
        p.write_text(json.dumps(defaults(), indent=2))


def load() -> dict:
    ensure_exists()
    try:
        data = json.loads(config_path().read_text())
    except (OSError, ValueError) as e:
        logger.warning("ignoring unreadable config %s: %s", config_path(), e)
        return defaults()
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: not a JSON object", config_path())
        return defaults()
    return {**defaults(), **data}


def save(data: dict):
    ensure_exists()
    config_path().write_text(json.dumps(data, indent=2))


# ------------------------------------------------------------
# Effective settings
# ------------------------------------------------------------

def _optional_number(value: Any, kind: type) -> Any:
    if value is None or value == "" or str(value).lower() == "none":
        return None
    return kind(value)


def _from_env() -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in defaults():
        raw = os.environ.get(ENV_PREFIX + key.upper())
        if raw is not None:
            out[key] = raw
    return out


def settings(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    defaults < config file < MPVCTL_* environment < explicit overrides.

    ``timeout`` and ``max_lines`` may be null/"none" to disable the bound.
    """
    merged = load()
    merged.update(_from_env())
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        merged["timeout"] = _optional_number(merged.get("timeout"), float)
        merged["max_lines"] = _optional_number(merged.get("max_lines"), int)
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid timeout/max_lines setting: {e}") from e
    for key in ("timeout", "max_lines"):
        if merged[key] is not None and not merged[key] > 0:
            raise ValueError(f"{key} must be positive, got {merged[key]}")
    merged["socket"] = str(merged.get("socket") or default_socket())
    merged["log_level"] = str(merged.get("log_level") or "WARNING").upper()
    return merged
