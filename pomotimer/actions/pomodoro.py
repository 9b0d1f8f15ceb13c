"""
Pomodoro Timer — the work/break countdown state machine.

Remaining time is always recomputed from wall-clock timestamps, so callers may
refresh the status text as often or as rarely as they like. Every mutation goes
through the Timer's own methods; the session object is never handed out.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..notes.pomo_log import CHECKLIST_MARKER, LogResult, PomoLog
from ..notes.store import NoteStoreError, normalize_note_path
from ..settings import get_settings
from .notifications import Notifier

logger = logging.getLogger(__name__)

IDLE_STATUS = ""


class Mode(str, Enum):
    NO_TIMER = "no_timer"
    POMO = "pomo"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


MODE_LABELS = {
    Mode.POMO: "Pomo",
    Mode.SHORT_BREAK: "Short break",
    Mode.LONG_BREAK: "Long break",
}

# settings key holding each mode's length in minutes
_MODE_SETTING = {
    Mode.POMO: "pomo",
    Mode.SHORT_BREAK: "short_break",
    Mode.LONG_BREAK: "long_break",
}


@dataclass
class TimerSession:
    mode: Mode = Mode.NO_TIMER
    started_at: Optional[float] = None
    duration_seconds: float = 0.0
    elapsed_before_pause: float = 0.0
    paused: bool = False
    cycle_count: int = 0        # completed work intervals since the Timer was created
    auto_cycles: int = 0        # completed breaks since the last start/auto-stop
    active_note: Optional[str] = None

    def elapsed_seconds(self, now: float) -> float:
        if self.mode == Mode.NO_TIMER or self.started_at is None:
            return 0.0
        running = 0.0 if self.paused else max(0.0, now - self.started_at)
        return self.elapsed_before_pause + running

    def remaining_seconds(self, now: float) -> float:
        if self.mode == Mode.NO_TIMER:
            return 0.0
        return max(0.0, self.duration_seconds - self.elapsed_seconds(now))

    def is_complete(self, now: float) -> bool:
        return (
            self.mode != Mode.NO_TIMER
            and not self.paused
            and self.elapsed_seconds(now) >= self.duration_seconds
        )


@dataclass(frozen=True)
class TimerSnapshot:
    mode: Mode
    paused: bool
    elapsed_seconds: float
    remaining_seconds: float
    duration_seconds: float
    cycle_count: int
    active_note: Optional[str] = None


@dataclass(frozen=True)
class TimerResult:
    """Outcome of a start request that may have been recovered from bad input."""
    started: bool
    duration_minutes: float
    warning: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.warning is not None


@dataclass(frozen=True)
class FileModifyOutcome:
    matched: bool
    action: str                 # ignored | noted | logged | completed
    log: Optional[LogResult] = None


def format_remaining(seconds: float) -> str:
    """MM:SS, or H:MM:SS from one hour up. Zero and below render as 00:00."""
    total = int(math.ceil(seconds)) if seconds > 0 else 0
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def parse_minutes(value: Any) -> Optional[float]:
    """Best-effort numeric parse of user input; None when it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _note_key(path: str) -> str:
    key = normalize_note_path(path)
    return key[:-3] if key.endswith(".md") else key


class Timer:
    """
    Single pomodoro session: NO_TIMER → POMO → {SHORT_BREAK | LONG_BREAK} → POMO …

    Usage:
        timer = Timer(PomoLog(store))
        timer.start_timer(Mode.POMO)
        text = await timer.status_bar_text()
    """

    def __init__(
        self,
        pomo_log: PomoLog,
        notifier: Optional[Notifier] = None,
        settings_source: Callable[[], Dict[str, Any]] = get_settings,
        clock: Callable[[], float] = time.time,
    ):
        self._log = pomo_log
        self._notifier = notifier
        self._settings = settings_source
        self._clock = clock
        self._session = TimerSession()
        self.last_log: Optional[LogResult] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._session.mode

    @property
    def paused(self) -> bool:
        return self._session.paused

    @property
    def cycle_count(self) -> int:
        return self._session.cycle_count

    def remaining_seconds(self) -> float:
        return self._session.remaining_seconds(self._clock())

    def snapshot(self) -> TimerSnapshot:
        s = self._session
        now = self._clock()
        return TimerSnapshot(
            mode=s.mode,
            paused=s.paused,
            elapsed_seconds=s.elapsed_seconds(now),
            remaining_seconds=s.remaining_seconds(now),
            duration_seconds=s.duration_seconds,
            cycle_count=s.cycle_count,
            active_note=s.active_note,
        )

    def log_target(self) -> str:
        """Vault-relative note that the next log line would go to."""
        return self._log.target(self._settings(), datetime.fromtimestamp(self._clock()))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_timer(self, mode: Mode, active_note: Optional[str] = None) -> TimerSnapshot:
        mode = Mode(mode)
        if mode == Mode.NO_TIMER:
            return self.quit_timer()
        minutes = float(self._settings()[_MODE_SETTING[mode]])
        self._begin(mode, minutes * 60, active_note)
        self._session.auto_cycles = 0
        return self.snapshot()

    def start_custom_timer(self, minutes: Any, active_note: Optional[str] = None) -> TimerResult:
        settings = self._settings()
        parsed = parse_minutes(minutes)
        warning = None
        if parsed is None or parsed <= 0 or parsed > settings["max_custom_minutes"]:
            warning = f"invalid timer length {minutes!r}"
            if settings["custom_timer_fallback"] == "ignore":
                warning += "; timer left unchanged"
                logger.info("Custom timer not started: %s", warning)
                return TimerResult(started=False, duration_minutes=0.0, warning=warning)
            parsed = float(settings["pomo"])
            warning += f"; using the default {parsed:g} minutes"
            logger.info("Custom timer recovered: %s", warning)

        self._begin(Mode.POMO, parsed * 60, active_note)
        self._session.auto_cycles = 0
        return TimerResult(started=True, duration_minutes=parsed, warning=warning)

    def toggle_pause(self) -> bool:
        """Pause or resume. Returns False (no-op) when no timer is running."""
        s = self._session
        if s.mode == Mode.NO_TIMER:
            return False
        now = self._clock()
        if s.paused:
            s.started_at = now
            s.paused = False
            logger.info("Resumed %s", s.mode.value)
        else:
            s.elapsed_before_pause += max(0.0, now - s.started_at)
            s.started_at = now
            s.paused = True
            logger.info("Paused %s", s.mode.value)
        return True

    def quit_timer(self) -> TimerSnapshot:
        if self._session.mode != Mode.NO_TIMER:
            logger.info("Quit %s", self._session.mode.value)
        self._session = TimerSession(cycle_count=self._session.cycle_count)
        return self.snapshot()

    def on_ribbon_icon_click(self) -> TimerSnapshot:
        if self._session.mode == Mode.NO_TIMER:
            return self.start_timer(Mode.POMO)
        return self.quit_timer()

    async def on_file_modify(self, path: str) -> FileModifyOutcome:
        settings = self._settings()
        checklist = settings["checklist_file"]
        if not checklist.strip() or _note_key(path) != _note_key(checklist):
            return FileModifyOutcome(matched=False, action="ignored")

        s = self._session
        if s.mode != Mode.POMO or s.paused:
            logger.debug("Checklist %s modified outside a running pomodoro", path)
            return FileModifyOutcome(matched=True, action="ignored")

        action = settings["checklist_action"]
        if action == "log":
            try:
                target = self._log.target(settings, self._now())
            except NoteStoreError:
                target = ""
            if target and _note_key(target) == _note_key(path):
                # the append below is itself a modification of this note
                logger.debug("Checklist %s is the log target; not logging", path)
                return FileModifyOutcome(matched=True, action="ignored")
            result = await self._log.write_async(
                settings, self._now(), s.active_note, suffix=CHECKLIST_MARKER
            )
            return FileModifyOutcome(matched=True, action="logged", log=result)
        if action == "complete":
            await self._complete()
            return FileModifyOutcome(matched=True, action="completed", log=self.last_log)

        logger.debug("Checklist %s modified during pomodoro", path)
        return FileModifyOutcome(matched=True, action="noted")

    # ------------------------------------------------------------------
    # Status text
    # ------------------------------------------------------------------

    async def status_bar_text(self) -> str:
        """
        Short display string for the status bar. Runs completion handling when
        the current interval has run out, then renders the resulting state.
        """
        try:
            if self._session.is_complete(self._clock()):
                await self._complete()
            return self.format_status()
        except Exception:
            # status rendering never raises into the caller
            logger.exception("Failed to refresh timer status")
            return IDLE_STATUS

    def format_status(self) -> str:
        s = self._session
        if s.mode == Mode.NO_TIMER:
            return IDLE_STATUS
        text = f"{MODE_LABELS[s.mode]} {format_remaining(s.remaining_seconds(self._clock()))}"
        if s.paused:
            text += " (paused)"
        return text

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock())

    def _begin(self, mode: Mode, duration_seconds: float, active_note: Optional[str]) -> None:
        previous = self._session
        self._session = TimerSession(
            mode=mode,
            started_at=self._clock(),
            duration_seconds=float(duration_seconds),
            cycle_count=previous.cycle_count,
            auto_cycles=previous.auto_cycles,
            active_note=active_note,
        )
        minutes = duration_seconds / 60
        logger.info("Starting %g minute %s", minutes, mode.value)
        self._announce(f"Starting {minutes:g} minute {MODE_LABELS[mode].lower()}.")

    async def _complete(self) -> None:
        s = self._session
        settings = self._settings()
        finished = s.mode

        if finished == Mode.POMO:
            s.cycle_count += 1
            self.last_log = await self._log.write_async(settings, self._now(), s.active_note)
        else:
            s.auto_cycles += 1
        logger.info("Finished %s (%d work intervals so far)", finished.value, s.cycle_count)

        if not settings["autostart_timer"] and s.auto_cycles >= settings["num_auto_cycles"]:
            self._session = TimerSession(cycle_count=s.cycle_count)
            self._announce("Timer stopped.")
            return

        if finished == Mode.POMO:
            interval = max(1, int(settings["long_break_interval"]))
            next_mode = Mode.LONG_BREAK if s.cycle_count % interval == 0 else Mode.SHORT_BREAK
        else:
            next_mode = Mode.POMO
        minutes = float(settings[_MODE_SETTING[next_mode]])
        self._begin(next_mode, minutes * 60, s.active_note)

    def _announce(self, message: str) -> None:
        if self._notifier is None or not self._settings()["notifications"]:
            return
        self._notifier.notify_background("Pomodoro", message)
