"""
Timer Controller — the one place that mutates the Timer.

Ticks, user commands and file-modified notifications all go onto one
asyncio.Queue; a single consumer task applies them in arrival order and awaits
each to completion before taking the next, so events never interleave
mid-transition.

Usage:
    controller = TimerController(timer)
    await controller.start()
    await controller.submit("start", mode=Mode.POMO)
    text = controller.status_text
    await controller.stop()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..actions.pomodoro import IDLE_STATUS, FileModifyOutcome, Mode, Timer

logger = logging.getLogger(__name__)

COMMANDS = frozenset({
    "start",
    "start_custom",
    "toggle_pause",
    "quit",
    "ribbon_click",
    "snapshot",
    "status",
})


class EventKind(str, Enum):
    TICK = "tick"
    COMMAND = "command"
    FILE_MODIFIED = "file_modified"
    SHUTDOWN = "shutdown"


@dataclass
class TimerEvent:
    kind: EventKind
    name: str = ""
    args: Dict[str, Any] = field(default_factory=dict)
    future: Optional[asyncio.Future] = None


class ControllerStopped(RuntimeError):
    """The controller is not accepting events."""


class TimerController:

    def __init__(self, timer: Timer, tick_interval_ms: int = 500):
        self.timer = timer
        self._tick_interval = tick_interval_ms / 1000.0
        self._queue: Optional[asyncio.Queue] = None
        self._consumer: Optional[asyncio.Task] = None
        self._ticker: Optional[asyncio.Task] = None
        self._tick_pending = False
        self.status_text: str = IDLE_STATUS
        self.last_file_outcome: Optional[FileModifyOutcome] = None

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, ticker: bool = True) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._tick_pending = False
        self._consumer = asyncio.create_task(self._run())
        if ticker:
            self._ticker = asyncio.create_task(self._tick_loop())
        logger.info("Timer controller started")

    async def stop(self) -> None:
        """Stop ticking, drain queued events, then force the Timer idle."""
        if self._ticker is not None:
            self._ticker.cancel()
            try:
                await self._ticker
            except asyncio.CancelledError:
                pass
            self._ticker = None

        if self.running:
            await self._queue.put(TimerEvent(EventKind.SHUTDOWN))
            await self._consumer
        else:
            self.timer.quit_timer()
            self.status_text = IDLE_STATUS
        self._consumer = None
        logger.info("Timer controller stopped")

    # ------------------------------------------------------------------
    # Event producers
    # ------------------------------------------------------------------

    async def submit(self, name: str, **args: Any) -> Any:
        """Queue a command and wait for the Timer's answer."""
        if name not in COMMANDS:
            raise ValueError(f"unknown timer command: {name!r}")
        return await self._enqueue(TimerEvent(EventKind.COMMAND, name, args))

    async def file_modified(self, path: str) -> FileModifyOutcome:
        return await self._enqueue(TimerEvent(EventKind.FILE_MODIFIED, args={"path": path}))

    def notify_file_modified(self, path: str) -> None:
        """Fire-and-forget variant used by the vault watcher."""
        if not self.running:
            return
        self._queue.put_nowait(TimerEvent(EventKind.FILE_MODIFIED, args={"path": path}))

    def tick(self) -> None:
        """Queue a status refresh unless one is already waiting."""
        if self._tick_pending or not self.running:
            return
        self._tick_pending = True
        self._queue.put_nowait(TimerEvent(EventKind.TICK))

    async def _enqueue(self, event: TimerEvent) -> Any:
        if not self.running:
            raise ControllerStopped("timer controller is not running")
        event.future = asyncio.get_running_loop().create_future()
        await self._queue.put(event)
        return await event.future

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self.tick()

    async def _run(self) -> None:
        while True:
            event: TimerEvent = await self._queue.get()
            try:
                if event.kind == EventKind.SHUTDOWN:
                    self.timer.quit_timer()
                    self.status_text = IDLE_STATUS
                    self._reject_pending()
                    return
                result = await self._dispatch(event)
            except Exception as exc:
                logger.exception("Timer event %s %s failed", event.kind.value, event.name)
                if event.future is not None and not event.future.done():
                    event.future.set_exception(exc)
            else:
                if event.future is not None and not event.future.done():
                    event.future.set_result(result)
            finally:
                self._queue.task_done()

    async def _dispatch(self, event: TimerEvent) -> Any:
        timer = self.timer
        if event.kind == EventKind.TICK:
            self._tick_pending = False
            self.status_text = await timer.status_bar_text()
            return self.status_text

        if event.kind == EventKind.FILE_MODIFIED:
            outcome = await timer.on_file_modify(event.args["path"])
            self.last_file_outcome = outcome
            self.status_text = timer.format_status()
            return outcome

        name, args = event.name, event.args
        if name == "start":
            result = timer.start_timer(args.get("mode", Mode.POMO), args.get("active_note"))
        elif name == "start_custom":
            result = timer.start_custom_timer(args.get("minutes"), args.get("active_note"))
        elif name == "toggle_pause":
            result = timer.toggle_pause()
        elif name == "quit":
            result = timer.quit_timer()
        elif name == "ribbon_click":
            result = timer.on_ribbon_icon_click()
        elif name == "snapshot":
            await timer.status_bar_text()
            result = timer.snapshot()
        else:  # status
            result = await timer.status_bar_text()
        self.status_text = timer.format_status()
        return result

    def _reject_pending(self) -> None:
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event.future is not None and not event.future.done():
                event.future.set_exception(ControllerStopped("timer controller stopped"))
            self._queue.task_done()
