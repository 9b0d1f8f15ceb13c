"""
Shared pytest fixtures and configuration.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import pomotimer.settings as settings_mod
from pomotimer.actions.pomodoro import Timer
from pomotimer.api.app import create_app
from pomotimer.config import Config
from pomotimer.notes.pomo_log import PomoLog
from pomotimer.notes.store import NoteStore
from pomotimer.settings import DEFAULTS


class FakeClock:
    """Callable epoch-seconds clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def tmp_settings_file(tmp_path, monkeypatch):
    """
    Redirect the settings store to a fresh temp file for each test.
    Also resets the in-memory cache so each test starts clean.
    """
    fake_file = tmp_path / "settings.json"
    monkeypatch.setattr(settings_mod, "_FILE", fake_file)
    monkeypatch.setattr(settings_mod, "_current", {})
    yield fake_file


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def vault(tmp_path):
    v = tmp_path / "vault"
    v.mkdir(exist_ok=True)
    return v


@pytest.fixture
def store(vault):
    return NoteStore(vault)


@pytest.fixture
def settings():
    """Mutable settings dict read live by the timer fixture."""
    return dict(DEFAULTS)


@pytest.fixture
def timer(store, settings, clock):
    return Timer(PomoLog(store), settings_source=lambda: settings, clock=clock)


@pytest.fixture
def app(tmp_path):
    """Create a fresh app instance per test, backed by a temp vault."""
    return create_app(Config(
        data_dir=tmp_path / "data",
        vault_dir=tmp_path / "vault",
        watch_vault=False,
        tick_interval_ms=50,
    ))


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
