"""
Pomodoro Log — appends one line per completed work interval to either the
daily note or a fixed log note. Never raises: failures come back as a
LogResult with ``error`` set so the timer can keep cycling.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .store import NoteStore, NoteStoreError

logger = logging.getLogger(__name__)

CHECKLIST_MARKER = "checklist updated"


@dataclass
class LogResult:
    written: bool
    target: Optional[str] = None
    line: Optional[str] = None
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


def format_log_line(
    log_text: str,
    when: datetime,
    active_note: Optional[str] = None,
    suffix: str = "",
) -> str:
    """Render *log_text* with strftime and append the optional note link."""
    line = when.strftime(log_text).replace("\n", " ").strip()
    if suffix:
        line = f"{line} {suffix}"
    if active_note:
        link = active_note[:-3] if active_note.endswith(".md") else active_note
        line = f"{line} [[{link}]]"
    return line


class PomoLog:

    def __init__(self, store: NoteStore):
        self._store = store

    def target(self, settings: Dict[str, Any], when: Optional[datetime] = None) -> str:
        """Resolve the vault-relative log note without writing to it."""
        if settings["log_to_daily"]:
            return self._store.daily_note_path(
                when, folder=settings["daily_folder"], fmt=settings["daily_format"]
            )
        if not settings["log_file"].strip():
            raise NoteStoreError("no log file configured")
        return settings["log_file"]

    def write(
        self,
        settings: Dict[str, Any],
        when: datetime,
        active_note: Optional[str] = None,
        suffix: str = "",
    ) -> LogResult:
        if not settings["logging"]:
            return LogResult(written=False)

        note_link = active_note if settings["log_active_note"] else None
        try:
            if settings["log_to_daily"]:
                target = self._store.get_or_create_daily_note(
                    when, folder=settings["daily_folder"], fmt=settings["daily_format"]
                )
            else:
                target = self.target(settings, when)
            line = format_log_line(settings["log_text"], when, note_link, suffix)
            self._store.append(target, line)
        except (NoteStoreError, OSError, ValueError) as exc:
            logger.warning("Could not write pomodoro log entry: %s", exc)
            return LogResult(written=False, error=str(exc))

        logger.info("Logged pomodoro to %s", target)
        return LogResult(written=True, target=target, line=line)

    async def write_async(
        self,
        settings: Dict[str, Any],
        when: datetime,
        active_note: Optional[str] = None,
        suffix: str = "",
    ) -> LogResult:
        """Run the file append in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self.write, settings, when, active_note, suffix
        )
