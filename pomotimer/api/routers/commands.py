"""
/commands — the command palette: list commands and run one by id.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from ...api.schemas import CommandOut, CommandRunIn
from ...runtime.commands import COMMANDS, get_command

router = APIRouter(prefix="/commands", tags=["commands"])


def _get_controller(request: Request):
    return request.app.state.controller


@router.get("", response_model=List[CommandOut])
def list_commands(controller=Depends(_get_controller)):
    mode = controller.timer.mode
    return [
        CommandOut(id=c.id, name=c.name, icon=c.icon, enabled=c.is_enabled(mode))
        for c in COMMANDS
    ]


@router.post("/{command_id}")
async def run_command(
    command_id: str,
    body: Optional[CommandRunIn] = None,
    controller=Depends(_get_controller),
):
    command = get_command(command_id)
    if command is None:
        raise HTTPException(status_code=404, detail=f"Unknown command: {command_id!r}")
    if not command.is_enabled(controller.timer.mode):
        raise HTTPException(status_code=409, detail=f"Command not available: {command_id!r}")

    body = body or CommandRunIn()
    args = {}
    if command.action in ("start", "start_custom"):
        args["active_note"] = body.active_note
    if command.action == "start_custom":
        args["minutes"] = body.minutes

    result = await controller.submit(command.action, **args)
    response = {"command": command.id, "mode": controller.timer.mode.value,
                "status_text": controller.status_text}
    if command.action == "start_custom":
        response["warning"] = result.warning
    return response
