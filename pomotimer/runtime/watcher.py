"""
Vault Watcher — polls the vault for modified markdown notes and reports each
one to a callback (normally TimerController.notify_file_modified).

Only modifications of notes seen on a previous scan are reported; newly created
and deleted notes just update the baseline.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from ..notes.store import NoteStore

logger = logging.getLogger(__name__)


class VaultWatcher:

    def __init__(
        self,
        store: NoteStore,
        on_modified: Callable[[str], None],
        interval_s: float = 2.0,
    ):
        self._store = store
        self._on_modified = on_modified
        self._interval = interval_s
        self._mtimes: Optional[Dict[str, int]] = None
        self._task: Optional[asyncio.Task] = None

    def _stat_all(self) -> Dict[str, int]:
        mtimes: Dict[str, int] = {}
        for note in self._store.list_notes():
            try:
                mtimes[note] = self._store.resolve(note).stat().st_mtime_ns
            except OSError:
                continue    # vanished between listing and stat
        return mtimes

    def scan(self) -> List[str]:
        """Return notes whose mtime changed since the last scan. First call sets the baseline."""
        current = self._stat_all()
        previous, self._mtimes = self._mtimes, current
        if previous is None:
            return []
        return sorted(
            note for note, mtime in current.items()
            if note in previous and previous[note] != mtime
        )

    # ------------------------------------------------------------------
    # Background polling
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._poll())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _poll(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.scan)
        while True:
            await asyncio.sleep(self._interval)
            try:
                changed = await loop.run_in_executor(None, self.scan)
            except OSError as exc:
                logger.warning("Vault scan failed: %s", exc)
                continue
            for note in changed:
                logger.debug("Note modified: %s", note)
                self._on_modified(note)
