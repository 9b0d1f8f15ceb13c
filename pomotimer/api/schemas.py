"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from ..actions.pomodoro import Mode

# ── Timer ──────────────────────────────────────────────────────────────────

class TimerStateOut(BaseModel):
    mode: Mode
    paused: bool
    elapsed_seconds: float = Field(..., ge=0.0)
    remaining_seconds: float = Field(..., ge=0.0)
    duration_seconds: float
    cycle_count: int
    active_note: Optional[str] = None
    status_text: str


class StartTimerRequest(BaseModel):
    mode: Mode = Mode.POMO
    active_note: Optional[str] = None


class CustomTimerRequest(BaseModel):
    # any value; the timer recovers non-numeric input
    minutes: Any = None
    active_note: Optional[str] = None


class CustomTimerOut(BaseModel):
    started: bool
    duration_minutes: float
    warning: Optional[str] = None
    degraded: bool
    state: TimerStateOut


class PauseOut(BaseModel):
    changed: bool
    state: TimerStateOut


class StatusTextOut(BaseModel):
    text: str


class LogTargetOut(BaseModel):
    path: str
    exists: bool


class CustomPromptOut(BaseModel):
    default_minutes: int
    checklist_file: Optional[str] = None
    checklist: Optional[str] = None


# ── Notes ──────────────────────────────────────────────────────────────────

class FileModifiedIn(BaseModel):
    path: str = Field(..., min_length=1)


class FileModifiedOut(BaseModel):
    matched: bool
    action: str
    logged: bool = False
    log_error: Optional[str] = None


# ── Commands ───────────────────────────────────────────────────────────────

class CommandOut(BaseModel):
    id: str
    name: str
    icon: str
    enabled: bool


class CommandRunIn(BaseModel):
    minutes: Any = None
    active_note: Optional[str] = None
