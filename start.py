"""
Convenience launcher — starts the timer engine and (optionally) a terminal
status bar that mirrors the timer text.

Usage:
    python start.py             # engine only
    python start.py --status    # engine + status line in this terminal
"""

from __future__ import annotations

import argparse
import json
import subprocess
import sys
import time
import urllib.error
import urllib.request

from pomotimer.config import config

API = f"http://{config.api_host}:{config.api_port}"


def start_engine() -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "-m", "pomotimer.main"],
        stdout=sys.stdout,
        stderr=sys.stderr,
    )


def fetch_status() -> str | None:
    try:
        with urllib.request.urlopen(f"{API}/timer/status", timeout=3) as r:
            return json.loads(r.read())["text"]
    except (urllib.error.URLError, OSError, ValueError, KeyError):
        return None


def run_status_line(engine_proc: subprocess.Popen) -> None:
    """Redraw the timer text in place every tick until the engine exits."""
    interval = config.tick_interval_ms / 1000.0
    while engine_proc.poll() is None:
        text = fetch_status()
        if text is None:
            text = "(engine unreachable)"
        sys.stdout.write("\r" + (text or "no timer").ljust(32))
        sys.stdout.flush()
        time.sleep(interval)


def main() -> None:
    parser = argparse.ArgumentParser(description="Start the pomodoro timer engine")
    parser.add_argument("--status", action="store_true", help="Show the timer text in this terminal")
    args = parser.parse_args()

    print("Starting pomodoro timer engine…")
    engine_proc = start_engine()

    print(f"\nEngine → {API}")
    print(f"Vault  → {config.vault_dir}")
    print("Press Ctrl+C to stop.\n")

    try:
        if args.status:
            time.sleep(1.5)  # give engine a moment to bind
            run_status_line(engine_proc)
        engine_proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down…")
        engine_proc.terminate()
        engine_proc.wait()


if __name__ == "__main__":
    main()
