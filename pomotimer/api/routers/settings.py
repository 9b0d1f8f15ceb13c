"""
/settings — read and update user-tunable timer settings.
"""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...settings import BOUNDS, DEFAULTS, get_settings, update_settings

router = APIRouter(prefix="/settings", tags=["settings"])


def _ranged(key: str):
    low, high = BOUNDS[key]
    return Field(None, ge=low, le=high)


class SettingsPatch(BaseModel):
    pomo:                  Optional[int]  = _ranged("pomo")
    short_break:           Optional[int]  = _ranged("short_break")
    long_break:            Optional[int]  = _ranged("long_break")
    long_break_interval:   Optional[int]  = _ranged("long_break_interval")
    autostart_timer:       Optional[bool] = None
    num_auto_cycles:       Optional[int]  = _ranged("num_auto_cycles")
    logging:               Optional[bool] = None
    log_file:              Optional[str]  = Field(None, min_length=1)
    log_to_daily:          Optional[bool] = None
    log_text:              Optional[str]  = Field(None, min_length=1)
    log_active_note:       Optional[bool] = None
    daily_folder:          Optional[str]  = None
    daily_format:          Optional[str]  = Field(None, min_length=1)
    checklist_file:        Optional[str]  = None
    checklist_action:      Optional[Literal["none", "log", "complete"]] = None
    custom_timer_fallback: Optional[Literal["default", "ignore"]] = None
    max_custom_minutes:    Optional[int]  = _ranged("max_custom_minutes")
    ribbon_icon:           Optional[bool] = None
    notifications:         Optional[bool] = None


@router.get("")
def read_settings():
    """Return current settings with their defaults for reference."""
    current = get_settings()
    return {"settings": current, "defaults": DEFAULTS}


@router.put("")
def write_settings(patch: SettingsPatch):
    """Apply a partial update; unknown keys are ignored. Persists to data/settings.json."""
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    return {"settings": update_settings(data)}
