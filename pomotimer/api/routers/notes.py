"""
/notes — note store notifications from the host (file modified).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from ...api.schemas import FileModifiedIn, FileModifiedOut

router = APIRouter(prefix="/notes", tags=["notes"])


def _get_controller(request: Request):
    return request.app.state.controller


@router.post("/modified", response_model=FileModifiedOut, status_code=status.HTTP_202_ACCEPTED)
async def note_modified(event: FileModifiedIn, controller=Depends(_get_controller)):
    """Report a modified note; the timer reacts only to its checklist note."""
    outcome = await controller.file_modified(event.path)
    return FileModifiedOut(
        matched=outcome.matched,
        action=outcome.action,
        logged=bool(outcome.log and outcome.log.written),
        log_error=outcome.log.error if outcome.log else None,
    )
