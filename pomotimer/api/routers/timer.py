"""
/timer — start, pause, quit and read the pomodoro timer.
All mutations go through the TimerController queue.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from ...actions.pomodoro import TimerSnapshot
from ...api.schemas import (
    CustomPromptOut,
    CustomTimerOut,
    CustomTimerRequest,
    LogTargetOut,
    PauseOut,
    StartTimerRequest,
    StatusTextOut,
    TimerStateOut,
)
from ...notes.store import NoteStoreError
from ...settings import get_settings

router = APIRouter(prefix="/timer", tags=["timer"])


def _get_controller(request: Request):
    return request.app.state.controller


def _get_store(request: Request):
    return request.app.state.store


def state_out(snapshot: TimerSnapshot, status_text: str) -> TimerStateOut:
    return TimerStateOut(
        mode=snapshot.mode,
        paused=snapshot.paused,
        elapsed_seconds=snapshot.elapsed_seconds,
        remaining_seconds=snapshot.remaining_seconds,
        duration_seconds=snapshot.duration_seconds,
        cycle_count=snapshot.cycle_count,
        active_note=snapshot.active_note,
        status_text=status_text,
    )


@router.get("", response_model=TimerStateOut)
async def get_timer(controller=Depends(_get_controller)):
    """Current timer state; an interval that has run out is completed first."""
    snapshot = await controller.submit("snapshot")
    return state_out(snapshot, controller.status_text)


@router.get("/status", response_model=StatusTextOut)
async def get_status(controller=Depends(_get_controller)):
    """Status bar text, e.g. "Pomo 24:59". Empty when no timer is running."""
    return StatusTextOut(text=await controller.submit("status"))


@router.post("/start", response_model=TimerStateOut)
async def start_timer(
    req: Optional[StartTimerRequest] = None,
    controller=Depends(_get_controller),
):
    req = req or StartTimerRequest()
    snapshot = await controller.submit("start", mode=req.mode, active_note=req.active_note)
    return state_out(snapshot, controller.status_text)


@router.post("/start-custom", response_model=CustomTimerOut)
async def start_custom_timer(req: CustomTimerRequest, controller=Depends(_get_controller)):
    result = await controller.submit(
        "start_custom", minutes=req.minutes, active_note=req.active_note
    )
    snapshot = await controller.submit("snapshot")
    return CustomTimerOut(
        started=result.started,
        duration_minutes=result.duration_minutes,
        warning=result.warning,
        degraded=result.degraded,
        state=state_out(snapshot, controller.status_text),
    )


@router.post("/pause", response_model=PauseOut)
async def toggle_pause(controller=Depends(_get_controller)):
    changed = await controller.submit("toggle_pause")
    snapshot = await controller.submit("snapshot")
    return PauseOut(changed=changed, state=state_out(snapshot, controller.status_text))


@router.post("/quit", response_model=TimerStateOut)
async def quit_timer(controller=Depends(_get_controller)):
    snapshot = await controller.submit("quit")
    return state_out(snapshot, controller.status_text)


@router.post("/ribbon", response_model=TimerStateOut)
async def ribbon_click(controller=Depends(_get_controller)):
    """Single-button toggle: start a pomodoro when idle, otherwise quit."""
    if not get_settings()["ribbon_icon"]:
        raise HTTPException(status_code=409, detail="Ribbon icon is disabled")
    snapshot = await controller.submit("ribbon_click")
    return state_out(snapshot, controller.status_text)


@router.get("/log-target", response_model=LogTargetOut)
def get_log_target(controller=Depends(_get_controller), store=Depends(_get_store)):
    """Note the next log line would be written to (for "open log file")."""
    try:
        path = controller.timer.log_target()
    except NoteStoreError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return LogTargetOut(path=path, exists=store.exists(path))


@router.get("/custom-prompt", response_model=CustomPromptOut)
def get_custom_prompt(store=Depends(_get_store)):
    """Defaults for the custom-length dialog, including the checklist note body."""
    s = get_settings()
    checklist_file = s["checklist_file"].strip() or None
    checklist = None
    if checklist_file and store.exists(checklist_file):
        checklist = store.read(checklist_file)
    return CustomPromptOut(
        default_minutes=s["pomo"],
        checklist_file=checklist_file,
        checklist=checklist,
    )
