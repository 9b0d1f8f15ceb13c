"""
Command palette entries — each maps a host command id onto a controller command.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..actions.pomodoro import Mode


@dataclass(frozen=True)
class Command:
    id: str
    name: str
    icon: str
    action: str                  # TimerController command name
    requires_timer: bool = False

    def is_enabled(self, mode: Mode) -> bool:
        return not self.requires_timer or mode != Mode.NO_TIMER


COMMANDS: List[Command] = [
    Command("start-pomo", "Start pomodoro", "play", "start"),
    Command("start-custom-pomo", "Start custom timer", "play", "start_custom"),
    Command("pause-pomo", "Toggle timer pause", "pause", "toggle_pause", requires_timer=True),
    Command("quit-pomo", "Quit timer", "quit", "quit", requires_timer=True),
]

_BY_ID: Dict[str, Command] = {c.id: c for c in COMMANDS}


def get_command(command_id: str) -> Optional[Command]:
    return _BY_ID.get(command_id)
