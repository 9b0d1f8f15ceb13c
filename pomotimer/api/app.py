"""
FastAPI application — local pomodoro timer API.
Runs on http://127.0.0.1:8766 by default.

The Timer, its controller and the vault watcher live on app.state so that each
call to create_app() produces a fully independent instance with no shared
module-level globals. This makes test isolation straightforward.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..actions.notifications import Notifier
from ..actions.pomodoro import Timer
from ..config import Config, config
from ..notes.pomo_log import PomoLog
from ..notes.store import NoteStore
from ..runtime.controller import TimerController
from ..runtime.watcher import VaultWatcher

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan — builds the timer session and tears it down on shutdown
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg: Config = app.state.config
    cfg.vault_dir.mkdir(parents=True, exist_ok=True)

    store = NoteStore(cfg.vault_dir)
    timer = Timer(PomoLog(store), notifier=Notifier())
    controller = TimerController(timer, tick_interval_ms=cfg.tick_interval_ms)
    await controller.start()

    watcher = None
    if cfg.watch_vault:
        watcher = VaultWatcher(store, controller.notify_file_modified, cfg.watch_interval_s)
        watcher.start()

    app.state.store = store
    app.state.controller = controller
    app.state.watcher = watcher
    logger.info("Pomodoro timer ready, vault at %s", cfg.vault_dir)

    yield

    if watcher is not None:
        await watcher.stop()
    await controller.stop()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(app_config: Optional[Config] = None) -> FastAPI:
    app = FastAPI(
        title="Pomodoro Timer",
        description="Local pomodoro countdown engine for a markdown notes vault",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = app_config or config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import commands, notes, settings, timer

    app.include_router(timer.router)
    app.include_router(commands.router)
    app.include_router(notes.router)
    app.include_router(settings.router)

    @app.get("/health")
    def health(request: Request):
        controller = getattr(request.app.state, "controller", None)
        return {
            "status": "ok",
            "version": "0.1.0",
            "timer": controller.timer.mode.value if controller else "unknown",
        }

    return app


app = create_app()
