"""
Central configuration for the pomodoro engine process.
All values can be overridden via environment variables or a local config.json.
User-tunable timer settings live in settings.py instead.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8766

    # Runtime
    tick_interval_ms: int = 500          # status text refresh, advisory only
    watch_interval_s: float = 2.0        # vault polling for modified notes
    watch_vault: bool = True

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    vault_dir: Path = field(default_factory=lambda: _ROOT / "vault")

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.vault_dir = Path(self.vault_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (POMO_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"POMO_{k.upper()}"
            if env_key in os.environ:
                current = getattr(cfg, k)
                raw = os.environ[env_key]
                setattr(cfg, k, _as_bool(raw) if isinstance(current, bool) else type(current)(raw))
        cfg.data_dir = Path(cfg.data_dir)
        cfg.vault_dir = Path(cfg.vault_dir)
        return cfg


# Module-level singleton
config = Config.load()
