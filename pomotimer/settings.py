"""
User-tunable timer settings — persisted to data/settings.json.

Import get_settings() anywhere in the engine to read current values.
Import update_settings(patch) to mutate and save.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .config import config

logger = logging.getLogger(__name__)

_FILE: Path = config.data_dir / "settings.json"

DEFAULTS: dict[str, Any] = {
    # interval lengths, minutes
    "pomo":                  25,
    "short_break":           5,
    "long_break":            15,
    "long_break_interval":   4,     # every Nth work interval → long break
    # auto-advance
    "autostart_timer":       True,
    "num_auto_cycles":       1,     # cycles before auto-stop when autostart is off
    # logging
    "logging":               False,
    "log_file":              "Pomodoro Log.md",
    "log_to_daily":          False,
    "log_text":              "[🍅] %A, %B %d %Y, %I:%M %p",
    "log_active_note":       False,
    "daily_folder":          "",
    "daily_format":          "%Y-%m-%d",
    # checklist note
    "checklist_file":        "",
    "checklist_action":      "none",     # none | log | complete
    # custom timer input
    "custom_timer_fallback": "default",  # default | ignore
    "max_custom_minutes":    600,
    "ribbon_icon":           True,
    "notifications":         False,
}

# Inclusive ranges and allowed values, shared with the /settings PUT model.
BOUNDS: dict[str, tuple[int, int]] = {
    "pomo":                (1, 180),
    "short_break":         (1, 60),
    "long_break":          (1, 120),
    "long_break_interval": (1, 12),
    "num_auto_cycles":     (0, 20),
    "max_custom_minutes":  (1, 1440),
}

CHOICES: dict[str, tuple[str, ...]] = {
    "checklist_action":      ("none", "log", "complete"),
    "custom_timer_fallback": ("default", "ignore"),
}

# must not be blank
REQUIRED_TEXT = ("log_file", "log_text", "daily_format")

_current: dict[str, Any] = {}


def _coerce(key: str, value: Any) -> Any:
    """Coerce *value* to the type of the default for *key*; ValueError when out of range."""
    default = DEFAULTS[key]
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    value = type(default)(value)
    if key in BOUNDS:
        low, high = BOUNDS[key]
        if not low <= value <= high:
            raise ValueError(f"{key}={value} outside {low}..{high}")
    if key in CHOICES and value not in CHOICES[key]:
        raise ValueError(f"{key}={value!r} not one of {CHOICES[key]}")
    if key in REQUIRED_TEXT and not value.strip():
        raise ValueError(f"{key} must not be blank")
    return value


def _load() -> None:
    global _current
    _current = dict(DEFAULTS)
    if not _FILE.exists():
        return
    try:
        saved = json.loads(_FILE.read_text(encoding="utf-8"))
        if not isinstance(saved, dict):
            raise ValueError("settings file is not a JSON object")
    except ValueError as exc:
        logger.warning("Ignoring malformed settings file %s: %s", _FILE, exc)
        return
    for k, v in saved.items():
        if k not in DEFAULTS:
            continue
        try:
            _current[k] = _coerce(k, v)
        except (ValueError, TypeError) as exc:
            logger.warning("Ignoring invalid setting in %s: %s", _FILE, exc)


def get_settings() -> dict[str, Any]:
    """Return a copy of the current settings dict."""
    if not _current:
        _load()
    return dict(_current)


def update_settings(patch: dict[str, Any]) -> dict[str, Any]:
    """Apply *patch* (unknown keys ignored), persist to disk, return full settings."""
    if not _current:
        _load()
    for k, v in patch.items():
        if k in DEFAULTS:
            _current[k] = _coerce(k, v)
    _FILE.parent.mkdir(parents=True, exist_ok=True)
    _FILE.write_text(json.dumps(_current, indent=2, ensure_ascii=False), encoding="utf-8")
    return dict(_current)


# Eagerly load on import
_load()
